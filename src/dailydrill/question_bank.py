"""Load question batches from bundled JSON resources and serve daily sets."""

from __future__ import annotations

import json
import logging
import random
from collections.abc import Sequence
from importlib import resources
from pathlib import Path
from typing import Any, Protocol

from .errors import InvalidArgument
from .models import (
    MAX_DIFFICULTY,
    MIN_DIFFICULTY,
    QuestionRecord,
    QuestionStats,
    QuestionType,
    question_from_dict,
)

logger = logging.getLogger(__name__)

CONTENT_PACKAGE = "dailydrill.content.questions"
DEFAULT_DAILY_COUNT = 10


class QuestionProvider(Protocol):
    """Source of fresh question sets for a drill session."""

    def get_daily_questions(self, count: int = DEFAULT_DAILY_COUNT) -> list[QuestionRecord]: ...


def _questions_from_batch(raw: object, source: str) -> list[QuestionRecord]:
    """Build questions from one batch document."""
    if not isinstance(raw, dict) or not isinstance(raw.get("questions"), list):
        raise ValueError(f"Question batch '{source}' must be an object with a 'questions' list.")
    questions: list[QuestionRecord] = []
    for item in raw["questions"]:
        try:
            questions.append(question_from_dict(item))
        except InvalidArgument as exc:
            raise ValueError(f"Question batch '{source}': {exc}") from exc
    return questions


def load_questions() -> list[QuestionRecord]:
    """Load bundled question batches."""
    questions: list[QuestionRecord] = []
    entries = sorted(resources.files(CONTENT_PACKAGE).iterdir(), key=lambda entry: entry.name)
    for entry in entries:
        if entry.name.endswith(".json"):
            raw = json.loads(entry.read_text(encoding="utf-8-sig"))
            questions.extend(_questions_from_batch(raw, entry.name))
    _validate_unique_question_ids(questions)
    return questions


def load_questions_from_dir(path: Path) -> list[QuestionRecord]:
    """Load question batches from directory for tests/tools."""
    questions: list[QuestionRecord] = []
    for file_path in sorted(path.glob("*.json")):
        raw = json.loads(file_path.read_text(encoding="utf-8-sig"))
        questions.extend(_questions_from_batch(raw, file_path.name))
    _validate_unique_question_ids(questions)
    return questions


def _validate_unique_question_ids(questions: list[QuestionRecord]) -> None:
    """Validate that question IDs are unique across batches."""
    seen: set[str] = set()
    for question in questions:
        if question.id in seen:
            raise ValueError(f"Duplicate question id: {question.id}")
        seen.add(question.id)


class QuestionBank:
    """In-memory question bank with shuffled selection helpers."""

    def __init__(self, questions: Sequence[QuestionRecord] | None = None, rng: random.Random | None = None) -> None:
        self.questions: list[QuestionRecord] = list(questions) if questions is not None else load_questions()
        self._rng = rng or random.Random()

    def get_daily_questions(self, count: int = DEFAULT_DAILY_COUNT) -> list[QuestionRecord]:
        """Return up to `count` shuffled questions."""
        return self._pick(self.questions, count, "daily set")

    def get_questions_by_category(self, category: str, count: int = DEFAULT_DAILY_COUNT) -> list[QuestionRecord]:
        """Return up to `count` shuffled questions in one category."""
        matching = [question for question in self.questions if question.category == category]
        return self._pick(matching, count, f"category {category}")

    def get_questions_by_difficulty(self, difficulty: int, count: int = DEFAULT_DAILY_COUNT) -> list[QuestionRecord]:
        """Return up to `count` shuffled questions at one difficulty level."""
        if not MIN_DIFFICULTY <= difficulty <= MAX_DIFFICULTY:
            raise InvalidArgument(f"Difficulty must be within {MIN_DIFFICULTY}..{MAX_DIFFICULTY}.")
        matching = [question for question in self.questions if question.difficulty == difficulty]
        return self._pick(matching, count, f"difficulty {difficulty}")

    def stats(self) -> QuestionStats:
        """Return question counts by type, category and difficulty."""
        by_type = {str(kind): 0 for kind in QuestionType}
        by_category: dict[str, int] = {}
        by_difficulty = {level: 0 for level in range(MIN_DIFFICULTY, MAX_DIFFICULTY + 1)}
        for question in self.questions:
            by_type[str(question.type)] += 1
            by_category[question.category] = by_category.get(question.category, 0) + 1
            by_difficulty[question.difficulty] += 1
        return QuestionStats(
            total=len(self.questions),
            by_type=by_type,
            by_category=by_category,
            by_difficulty=by_difficulty,
        )

    def _pick(self, pool: list[QuestionRecord], count: Any, label: str) -> list[QuestionRecord]:
        if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
            return []
        if not pool:
            logger.warning("No questions available for %s", label)
            return []
        shuffled = list(pool)
        self._rng.shuffle(shuffled)
        return shuffled[: min(count, len(shuffled))]
