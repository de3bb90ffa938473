"""Core domain models for daily drill questions and answers."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, ClassVar

from .errors import InvalidArgument


class QuestionType(StrEnum):
    """Discriminator for question variants."""

    SINGLE = "single"
    MATCH = "match"
    FILL = "fill"


CATEGORIES = ("vocabulary", "grammar", "kanji", "listening", "reading", "particle")
MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 5

Pair = tuple[int, int]


def _check_difficulty(question_id: str, difficulty: int) -> None:
    if isinstance(difficulty, bool) or not isinstance(difficulty, int):
        raise InvalidArgument(f"Question '{question_id}' difficulty must be an integer.")
    if not MIN_DIFFICULTY <= difficulty <= MAX_DIFFICULTY:
        raise InvalidArgument(
            f"Question '{question_id}' difficulty {difficulty} is outside {MIN_DIFFICULTY}..{MAX_DIFFICULTY}."
        )


@dataclass(frozen=True)
class SingleQuestion:
    """Single-choice question answered by picking one option."""

    type: ClassVar[QuestionType] = QuestionType.SINGLE

    id: str
    prompt: str
    options: tuple[str, ...]
    answer_index: int
    category: str = "vocabulary"
    difficulty: int = 1
    explanation: str = ""
    tags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "options", tuple(self.options))
        object.__setattr__(self, "tags", tuple(self.tags))
        if len(self.options) < 2:
            raise InvalidArgument(f"Question '{self.id}' needs at least two options.")
        if isinstance(self.answer_index, bool) or not isinstance(self.answer_index, int):
            raise InvalidArgument(f"Question '{self.id}' answer index must be an integer.")
        if not 0 <= self.answer_index < len(self.options):
            raise InvalidArgument(f"Question '{self.id}' answer index {self.answer_index} has no option.")
        _check_difficulty(self.id, self.difficulty)

    @property
    def correct_option(self) -> str:
        """Return the option text that answers the question."""
        return self.options[self.answer_index]


@dataclass(frozen=True)
class MatchQuestion:
    """Question pairing every left item with one right item."""

    type: ClassVar[QuestionType] = QuestionType.MATCH

    id: str
    instruction: str
    left: tuple[str, ...]
    right: tuple[str, ...]
    pairs: tuple[Pair, ...]
    category: str = "vocabulary"
    difficulty: int = 1
    explanation: str = ""
    tags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "left", tuple(self.left))
        object.__setattr__(self, "right", tuple(self.right))
        object.__setattr__(self, "pairs", tuple(_pair(item) for item in _sequence(self.pairs)))
        object.__setattr__(self, "tags", tuple(self.tags))
        if len(self.pairs) != len(self.left):
            raise InvalidArgument(f"Question '{self.id}' needs exactly one pair per left item.")
        left_seen = {pair[0] for pair in self.pairs}
        right_seen = {pair[1] for pair in self.pairs}
        if left_seen != set(range(len(self.left))):
            raise InvalidArgument(f"Question '{self.id}' pairs must cover every left item once.")
        if len(right_seen) != len(self.pairs) or any(not 0 <= idx < len(self.right) for idx in right_seen):
            raise InvalidArgument(f"Question '{self.id}' pairs must map onto distinct right items.")
        _check_difficulty(self.id, self.difficulty)

    @property
    def prompt(self) -> str:
        """Instruction text shown for the question."""
        return self.instruction


@dataclass(frozen=True)
class FillQuestion:
    """Fill-in-the-blank question with acceptable answers per blank."""

    type: ClassVar[QuestionType] = QuestionType.FILL

    id: str
    prompt: str
    blanks: int
    solutions: tuple[tuple[str, ...], ...]
    case_sensitive: bool = True
    category: str = "vocabulary"
    difficulty: int = 1
    explanation: str = ""
    tags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "solutions", tuple(tuple(group) for group in self.solutions))
        object.__setattr__(self, "tags", tuple(self.tags))
        if isinstance(self.blanks, bool) or not isinstance(self.blanks, int) or self.blanks < 1:
            raise InvalidArgument(f"Question '{self.id}' needs at least one blank.")
        if len(self.solutions) != self.blanks:
            raise InvalidArgument(f"Question '{self.id}' needs one solution set per blank.")
        if any(not group for group in self.solutions):
            raise InvalidArgument(f"Question '{self.id}' has an empty solution set.")
        _check_difficulty(self.id, self.difficulty)


QuestionRecord = SingleQuestion | MatchQuestion | FillQuestion
MatchSelection = tuple[Pair, ...]


@dataclass(frozen=True)
class AnswerRecord:
    """One checked answer inside a drill session."""

    question_id: str
    user_answer: str | MatchSelection
    is_correct: bool
    feedback: str
    answered_at: datetime
    latency_ms: int = 0


@dataclass(frozen=True)
class CheckResult:
    """Correctness verdict plus user-facing feedback."""

    is_correct: bool
    feedback: str


@dataclass(frozen=True)
class QuestionStats:
    """Counts of questions in a bank grouped several ways."""

    total: int
    by_type: dict[str, int] = field(default_factory=dict)
    by_category: dict[str, int] = field(default_factory=dict)
    by_difficulty: dict[int, int] = field(default_factory=dict)


def question_to_dict(question: QuestionRecord) -> dict[str, Any]:
    """Convert a question into its persisted JSON layout."""
    base: dict[str, Any] = {
        "id": question.id,
        "type": str(question.type),
        "category": question.category,
        "difficulty": question.difficulty,
    }
    if isinstance(question, SingleQuestion):
        base.update(
            prompt=question.prompt,
            options=list(question.options),
            answerIndex=question.answer_index,
        )
    elif isinstance(question, MatchQuestion):
        base.update(
            instruction=question.instruction,
            left=list(question.left),
            right=list(question.right),
            pairs=[list(pair) for pair in question.pairs],
        )
    elif isinstance(question, FillQuestion):
        base.update(
            prompt=question.prompt,
            blanks=question.blanks,
            solutions=[list(group) for group in question.solutions],
            caseSensitive=question.case_sensitive,
        )
    else:
        raise InvalidArgument(f"Unsupported question record: {type(question).__name__}")
    base["explanation"] = question.explanation
    if question.tags:
        base["tags"] = list(question.tags)
    return base


def question_from_dict(raw: Mapping[str, Any]) -> QuestionRecord:
    """Build a question record from its JSON layout."""
    if not isinstance(raw, Mapping):
        raise InvalidArgument("Question entry must be a JSON object.")
    question_id = str(raw.get("id", "")).strip()
    if not question_id:
        raise InvalidArgument("Question entry has no id.")

    kind = raw.get("type")
    common: dict[str, Any] = {
        "category": str(raw.get("category", "vocabulary")),
        "difficulty": raw.get("difficulty", 1),
        "explanation": str(raw.get("explanation") or ""),
        "tags": tuple(str(tag) for tag in raw.get("tags") or ()),
    }
    try:
        if kind == QuestionType.SINGLE:
            return SingleQuestion(
                id=question_id,
                prompt=str(raw["prompt"]),
                options=tuple(str(option) for option in _sequence(raw["options"])),
                answer_index=raw["answerIndex"],
                **common,
            )
        if kind == QuestionType.MATCH:
            return MatchQuestion(
                id=question_id,
                instruction=str(raw.get("instruction", raw.get("prompt", ""))),
                left=tuple(str(item) for item in _sequence(raw["left"])),
                right=tuple(str(item) for item in _sequence(raw["right"])),
                pairs=tuple(_pair(item) for item in _sequence(raw["pairs"])),
                **common,
            )
        if kind == QuestionType.FILL:
            return FillQuestion(
                id=question_id,
                prompt=str(raw["prompt"]),
                blanks=raw["blanks"],
                solutions=tuple(
                    tuple(str(value) for value in _sequence(group)) for group in _sequence(raw["solutions"])
                ),
                case_sensitive=bool(raw.get("caseSensitive", True)),
                **common,
            )
    except KeyError as exc:
        raise InvalidArgument(f"Question '{question_id}' is missing field {exc.args[0]!r}.") from exc
    except TypeError as exc:
        raise InvalidArgument(f"Question '{question_id}' is malformed: {exc}") from exc
    raise InvalidArgument(f"Question '{question_id}' has unsupported type {kind!r}.")


def _sequence(value: object) -> Sequence[Any]:
    if isinstance(value, str) or not isinstance(value, Sequence):
        raise InvalidArgument(f"Expected a list, got {type(value).__name__}.")
    return value


def _pair(value: object) -> Pair:
    items = _sequence(value)
    if len(items) != 2 or any(isinstance(item, bool) or not isinstance(item, int) for item in items):
        raise InvalidArgument(f"Match pair must be two integers, got {value!r}.")
    return (items[0], items[1])
