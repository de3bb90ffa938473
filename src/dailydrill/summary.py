"""Aggregate metrics for a drill session answer log."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .models import AnswerRecord


@dataclass(frozen=True)
class SessionSummary:
    """Accuracy, counts and wrongly answered question ids."""

    accuracy: float
    correct_count: int
    total_count: int
    wrong_question_ids: tuple[str, ...]

    @property
    def incorrect_count(self) -> int:
        return self.total_count - self.correct_count


def summarize(answer_log: Iterable[AnswerRecord]) -> SessionSummary:
    """Summarize an ordered answer log.

    Accuracy is the raw ratio in [0, 1]; an empty log gives 0.0. Wrong ids keep
    log order and repeat when a question was answered wrongly more than once.
    """
    correct_count = 0
    total_count = 0
    wrong_ids: list[str] = []
    for answer in answer_log:
        total_count += 1
        if answer.is_correct:
            correct_count += 1
        else:
            wrong_ids.append(answer.question_id)

    if total_count == 0:
        return SessionSummary(accuracy=0.0, correct_count=0, total_count=0, wrong_question_ids=())
    return SessionSummary(
        accuracy=correct_count / total_count,
        correct_count=correct_count,
        total_count=total_count,
        wrong_question_ids=tuple(wrong_ids),
    )
