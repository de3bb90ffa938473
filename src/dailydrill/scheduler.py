"""Review interval scheduling following the SM-2 progression."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from .errors import InvalidArgument

DAY_MS = 24 * 60 * 60 * 1000
MIN_INTERVAL_MS = DAY_MS
SECOND_INTERVAL_MS = 6 * DAY_MS
EASE_FACTOR = 2.5
MISTAKE_EXPONENT_CAP = 3
MAX_INTERVAL_MS = 10 * 365 * DAY_MS


@dataclass(frozen=True)
class SchedulingParams:
    """Fixed parameters of the review scheduler."""

    ease_factor: float
    min_interval_ms: int
    max_interval_ms: int


def get_scheduling_params() -> SchedulingParams:
    """Return the parameters used by `next_review_delay`."""
    return SchedulingParams(
        ease_factor=EASE_FACTOR,
        min_interval_ms=MIN_INTERVAL_MS,
        max_interval_ms=MAX_INTERVAL_MS,
    )


def next_review_delay(correct_count: int, incorrect_count: int) -> int:
    """Return milliseconds until the next review for a correctness history.

    Model:
    - no attempts: the minimum interval (1 day).
    - perfect history: 1 day, then 6 days, then 6 days * ease^(correct - 2).
    - any mistake: 1 day * ease^(accuracy * min(correct, 3)), which keeps the
      interval short however many correct answers were also given.
    """
    _check_count("correct_count", correct_count)
    _check_count("incorrect_count", incorrect_count)

    total = correct_count + incorrect_count
    if total == 0:
        return MIN_INTERVAL_MS

    if incorrect_count > 0:
        accuracy = correct_count / total
        exponent = accuracy * min(correct_count, MISTAKE_EXPONENT_CAP)
        return _clamp(MIN_INTERVAL_MS * EASE_FACTOR**exponent)

    if correct_count == 1:
        return MIN_INTERVAL_MS
    if correct_count == 2:
        return SECOND_INTERVAL_MS
    # Large exponents overflow float pow; anything past the cap is the cap.
    try:
        interval = SECOND_INTERVAL_MS * EASE_FACTOR ** (correct_count - 2)
    except OverflowError:
        return MAX_INTERVAL_MS
    return _clamp(interval)


def next_review_at(correct_count: int, incorrect_count: int, now: datetime | None = None) -> datetime:
    """Return the instant of the next review counted from `now`."""
    start = now if now is not None else datetime.now(UTC)
    return start + timedelta(milliseconds=next_review_delay(correct_count, incorrect_count))


def _check_count(name: str, value: object) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgument(f"{name} must be an integer count, got {value!r}.")
    if value < 0:
        raise InvalidArgument(f"{name} must be non-negative, got {value}.")


def _clamp(interval: float) -> int:
    if not math.isfinite(interval) or interval >= MAX_INTERVAL_MS:
        return MAX_INTERVAL_MS
    return max(1, int(round(interval)))
