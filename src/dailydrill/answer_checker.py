"""Validate user answers against single, match and fill questions."""

from __future__ import annotations

import json
from collections.abc import Sequence

from .errors import InvalidArgument
from .models import CheckResult, FillQuestion, MatchQuestion, Pair, QuestionRecord, SingleQuestion

CORRECT_FEEDBACK = "Correct!"
MALFORMED_MATCH_FEEDBACK = "Malformed match answer."
PAIR_COUNT_FEEDBACK = "Pair count does not match."
WRONG_MATCH_FEEDBACK = "Some pairs are wrong, please check again."


def check_answer(question: QuestionRecord, candidate: object) -> CheckResult:
    """Return correctness and deterministic feedback for one answer."""
    if isinstance(question, SingleQuestion):
        return _check_single(question, candidate)
    if isinstance(question, MatchQuestion):
        return _check_match(question, candidate)
    if isinstance(question, FillQuestion):
        return _check_fill(question, candidate)
    raise InvalidArgument(f"Unsupported question record: {type(question).__name__}")


def _check_single(question: SingleQuestion, candidate: object) -> CheckResult:
    expected = question.correct_option
    if isinstance(candidate, str) and candidate == expected:
        return CheckResult(is_correct=True, feedback=CORRECT_FEEDBACK)
    return CheckResult(is_correct=False, feedback=f"Incorrect. The correct answer is: {expected}")


def _check_match(question: MatchQuestion, candidate: object) -> CheckResult:
    pairs = parse_match_selection(candidate)
    if pairs is None:
        return CheckResult(is_correct=False, feedback=MALFORMED_MATCH_FEEDBACK)
    if len(pairs) != len(question.pairs):
        return CheckResult(is_correct=False, feedback=PAIR_COUNT_FEEDBACK)
    if sorted(pairs) == sorted(question.pairs):
        return CheckResult(is_correct=True, feedback=CORRECT_FEEDBACK)
    return CheckResult(is_correct=False, feedback=WRONG_MATCH_FEEDBACK)


def _check_fill(question: FillQuestion, candidate: object) -> CheckResult:
    accepted = [solution for group in question.solutions for solution in group]
    listing = ", ".join(accepted)
    if not isinstance(candidate, str):
        return CheckResult(is_correct=False, feedback=f"Incorrect. Accepted answers: {listing}")

    normalized = candidate.strip()
    for solution in accepted:
        expected = solution.strip()
        if question.case_sensitive:
            matched = normalized == expected
        else:
            matched = normalized.casefold() == expected.casefold()
        if matched:
            return CheckResult(is_correct=True, feedback=CORRECT_FEEDBACK)
    return CheckResult(is_correct=False, feedback=f"Incorrect. Accepted answers: {listing}")


def parse_match_selection(candidate: object) -> tuple[Pair, ...] | None:
    """Parse a match selection from pairs or a JSON string; `None` when malformed."""
    if isinstance(candidate, str):
        try:
            candidate = json.loads(candidate)
        except ValueError:
            return None
    if isinstance(candidate, str | bytes) or not isinstance(candidate, Sequence):
        return None

    pairs: list[Pair] = []
    for item in candidate:
        if isinstance(item, str | bytes) or not isinstance(item, Sequence) or len(item) != 2:
            return None
        left, right = item
        if isinstance(left, bool) or isinstance(right, bool):
            return None
        if not isinstance(left, int) or not isinstance(right, int):
            return None
        pairs.append((left, right))
    return tuple(pairs)
