"""Drill session lifecycle: read-through start, answer log and completion."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from uuid import uuid4

from .answer_checker import check_answer, parse_match_selection
from .cache import OfflineQuestionCache
from .errors import DrillError, InvalidArgument, StorageError
from .models import AnswerRecord, MatchQuestion, MatchSelection, QuestionRecord
from .question_bank import DEFAULT_DAILY_COUNT, QuestionProvider
from .scheduler import next_review_at, next_review_delay
from .summary import SessionSummary, summarize
from .telemetry import AnswerEvent, DrillStarted, SessionCompleted, TelemetrySink, emit_event
from .timeutils import Clock, to_epoch_ms, utcnow

logger = logging.getLogger(__name__)


class SessionClosed(DrillError):
    """Raised when a completed session is asked to record more answers."""


@dataclass(frozen=True)
class SessionResult:
    """Outcome of a completed session."""

    session_id: str
    summary: SessionSummary
    completed_at: datetime
    duration_ms: int
    next_review_delay_ms: int
    next_review_at: datetime


class DrillSession:
    """One drill run over a fixed snapshot of questions."""

    def __init__(
        self,
        questions: Iterable[QuestionRecord],
        *,
        session_id: str | None = None,
        started_at: datetime | None = None,
        sink: TelemetrySink | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._clock: Clock = clock or utcnow
        self.id = session_id or uuid4().hex
        self.started_at = started_at or self._clock()
        self.questions: tuple[QuestionRecord, ...] = tuple(questions)
        self._by_id = {question.id: question for question in self.questions}
        self._answers: list[AnswerRecord] = []
        self._sink = sink
        self._result: SessionResult | None = None

    @property
    def answers(self) -> tuple[AnswerRecord, ...]:
        """Answer log in recording order."""
        return tuple(self._answers)

    @property
    def completed_at(self) -> datetime | None:
        return self._result.completed_at if self._result is not None else None

    @property
    def is_complete(self) -> bool:
        return self._result is not None

    def get_question(self, question_id: str) -> QuestionRecord:
        """Return a session question by id."""
        try:
            return self._by_id[question_id]
        except KeyError:
            raise InvalidArgument(f"Question '{question_id}' is not part of session {self.id}.") from None

    def unanswered_questions(self) -> list[QuestionRecord]:
        """Return questions without any recorded answer, in session order."""
        answered = {answer.question_id for answer in self._answers}
        return [question for question in self.questions if question.id not in answered]

    def record_answer(
        self,
        question_id: str,
        user_answer: object,
        *,
        latency_ms: int = 0,
        answered_at: datetime | None = None,
    ) -> AnswerRecord:
        """Check one answer, append it to the log and emit an answer event."""
        if self._result is not None:
            raise SessionClosed(f"Session {self.id} is already completed.")
        question = self.get_question(question_id)
        result = check_answer(question, user_answer)
        moment = answered_at or self._clock()
        record = AnswerRecord(
            question_id=question.id,
            user_answer=_stored_answer(question, user_answer),
            is_correct=result.is_correct,
            feedback=result.feedback,
            answered_at=moment,
            latency_ms=max(0, int(latency_ms)),
        )
        self._answers.append(record)
        emit_event(
            self._sink,
            AnswerEvent(
                session_id=self.id,
                question_id=question.id,
                is_correct=record.is_correct,
                latency_ms=record.latency_ms,
                client_ts=to_epoch_ms(moment),
            ),
        )
        return record

    def summary(self) -> SessionSummary:
        """Summarize the answers recorded so far."""
        return summarize(self._answers)

    def complete(self, now: datetime | None = None) -> SessionResult:
        """Close the session and schedule the next review.

        Completing twice returns the first result unchanged.
        """
        if self._result is not None:
            return self._result
        completed_at = now or self._clock()
        summary = self.summary()
        duration_ms = max(0, to_epoch_ms(completed_at) - to_epoch_ms(self.started_at))
        self._result = SessionResult(
            session_id=self.id,
            summary=summary,
            completed_at=completed_at,
            duration_ms=duration_ms,
            next_review_delay_ms=next_review_delay(summary.correct_count, summary.incorrect_count),
            next_review_at=next_review_at(summary.correct_count, summary.incorrect_count, completed_at),
        )
        emit_event(
            self._sink,
            SessionCompleted(
                session_id=self.id,
                total=summary.total_count,
                correct=summary.correct_count,
                accuracy=summary.accuracy,
                duration_ms=duration_ms,
                client_ts=to_epoch_ms(completed_at),
            ),
        )
        return self._result


def start_today_session(
    cache: OfflineQuestionCache | None,
    provider: QuestionProvider,
    *,
    count: int = DEFAULT_DAILY_COUNT,
    sink: TelemetrySink | None = None,
    clock: Clock | None = None,
) -> DrillSession:
    """Create today's session, serving from the cache and filling it on a miss."""
    clock = clock or utcnow
    now = clock()
    questions: list[QuestionRecord] = cache.load(now) if cache is not None else []
    if questions:
        logger.debug("Serving %d questions from offline cache", len(questions))
    else:
        questions = provider.get_daily_questions(count)
        if cache is not None and questions:
            try:
                cache.save(questions, now)
            except StorageError as exc:
                logger.warning("Could not write daily questions to cache: %s", exc)

    session = DrillSession(questions, started_at=now, sink=sink, clock=clock)
    emit_event(
        sink,
        DrillStarted(
            session_id=session.id,
            date=now.date().isoformat(),
            question_count=len(session.questions),
            client_ts=to_epoch_ms(now),
        ),
    )
    return session


def _stored_answer(question: QuestionRecord, user_answer: object) -> str | MatchSelection:
    if isinstance(question, MatchQuestion):
        pairs = parse_match_selection(user_answer)
        if pairs is not None:
            return pairs
    if isinstance(user_answer, str):
        return user_answer
    return repr(user_answer)
