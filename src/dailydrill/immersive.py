"""Bridge between drill questions and the snake side game."""

from __future__ import annotations

from collections.abc import Sequence

from .errors import InvalidArgument
from .models import FillQuestion, MatchQuestion, QuestionRecord, SingleQuestion
from .snake import FoodSeed, GameConfig, GameState, init_game
from .telemetry import ImmersiveEntered, SnakeFoodConsumed, TelemetrySink, emit_event
from .timeutils import Clock, to_epoch_ms, utcnow

MAX_FOODS = 4
FALLBACK_LABELS = ("①", "②", "③", "④")


def food_options(question: QuestionRecord, limit: int = MAX_FOODS) -> tuple[list[str], str]:
    """Return `(labels, correct_label)` to place as foods for a question.

    Single questions offer their options and always keep the right answer in
    the list. Match questions offer left items with the first as target. Fill
    questions offer the first blank's accepted answers.
    """
    if limit < 1:
        raise InvalidArgument("At least one food label is required.")
    if isinstance(question, SingleQuestion):
        labels = list(question.options[:limit])
        correct = question.correct_option
        if correct not in labels:
            labels[-1] = correct
    elif isinstance(question, MatchQuestion):
        labels = list(question.left[:limit])
        correct = labels[0] if labels else ""
    elif isinstance(question, FillQuestion):
        labels = list(question.solutions[0][:limit])
        correct = labels[0]
    else:
        raise InvalidArgument(f"Unsupported question record: {type(question).__name__}")

    if not labels:
        labels = list(FALLBACK_LABELS[:limit])
        correct = labels[0]
    return labels, correct


def seed_foods(labels: Sequence[str]) -> list[FoodSeed]:
    """Build food seeds with ids `opt-0`, `opt-1`, ..."""
    return [FoodSeed(id=f"opt-{index}", label=label) for index, label in enumerate(labels)]


def start_immersive_game(
    question: QuestionRecord,
    *,
    config: GameConfig | None = None,
    sink: TelemetrySink | None = None,
    clock: Clock | None = None,
) -> tuple[GameState, str]:
    """Create a game whose foods are the answer labels of `question`."""
    labels, correct = food_options(question)
    state = init_game(config, seed_foods(labels))
    now = (clock or utcnow)()
    emit_event(sink, ImmersiveEntered(mode="snake", client_ts=to_epoch_ms(now)))
    return state, correct


def report_food_consumed(
    state: GameState,
    correct_label: str,
    *,
    sink: TelemetrySink | None = None,
    clock: Clock | None = None,
) -> bool | None:
    """Report the food eaten on the last step.

    Returns whether it carried the correct label, or `None` when nothing was
    eaten.
    """
    eaten = state.last_eaten
    if eaten is None:
        return None
    now = (clock or utcnow)()
    emit_event(
        sink,
        SnakeFoodConsumed(label=eaten.label, score=state.score, tick=state.tick, client_ts=to_epoch_ms(now)),
    )
    return eaten.label == correct_label
