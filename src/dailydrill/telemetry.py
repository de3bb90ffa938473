"""Telemetry event records and the injected sink they are emitted to."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DrillStarted:
    session_id: str
    date: str
    question_count: int
    client_ts: int

    type: str = field(default="drill_started", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "sessionId": self.session_id,
            "date": self.date,
            "questionCount": self.question_count,
            "clientTs": self.client_ts,
        }


@dataclass(frozen=True)
class AnswerEvent:
    session_id: str
    question_id: str
    is_correct: bool
    latency_ms: int
    client_ts: int

    @property
    def type(self) -> str:
        return "answer_correct" if self.is_correct else "answer_incorrect"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "sessionId": self.session_id,
            "questionId": self.question_id,
            "isCorrect": self.is_correct,
            "latencyMs": self.latency_ms,
            "clientTs": self.client_ts,
        }


@dataclass(frozen=True)
class SessionCompleted:
    session_id: str
    total: int
    correct: int
    accuracy: float
    duration_ms: int
    client_ts: int

    type: str = field(default="session_completed", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "sessionId": self.session_id,
            "total": self.total,
            "correct": self.correct,
            "accuracy": self.accuracy,
            "durationMs": self.duration_ms,
            "clientTs": self.client_ts,
        }


@dataclass(frozen=True)
class ImmersiveEntered:
    mode: str
    client_ts: int

    type: str = field(default="immersive_entered", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "mode": self.mode, "clientTs": self.client_ts}


@dataclass(frozen=True)
class SnakeFoodConsumed:
    label: str
    score: int
    tick: int
    client_ts: int

    type: str = field(default="snake_food_consumed", init=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "label": self.label,
            "score": self.score,
            "tick": self.tick,
            "clientTs": self.client_ts,
        }


TelemetryEvent = DrillStarted | AnswerEvent | SessionCompleted | ImmersiveEntered | SnakeFoodConsumed


@runtime_checkable
class TelemetrySink(Protocol):
    """Fire-and-forget receiver for telemetry events."""

    def emit(self, event: TelemetryEvent) -> None: ...


class NullSink:
    """Sink that discards every event."""

    def emit(self, event: TelemetryEvent) -> None:
        return None


class RecordingSink:
    """Sink that keeps events in memory, in emission order."""

    def __init__(self) -> None:
        self.events: list[TelemetryEvent] = []

    def emit(self, event: TelemetryEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: str) -> list[TelemetryEvent]:
        """Return recorded events whose `type` matches."""
        return [event for event in self.events if event.type == event_type]


def emit_event(sink: TelemetrySink | None, event: TelemetryEvent) -> None:
    """Send an event to a sink; sink failures are logged, never raised."""
    if sink is None:
        return
    try:
        sink.emit(event)
    except Exception as exc:
        logger.warning("Telemetry sink rejected %s event: %s", event.type, exc)
