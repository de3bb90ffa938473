"""Deterministic snake simulation used as an answer-picking side game.

Every function is pure: it takes a `GameState` and returns a new one. The
engine never schedules itself; the host calls `step` once per tick.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from enum import StrEnum

from .errors import InvalidArgument

MIN_SPEED_MS = 40


class Direction(StrEnum):
    """Movement direction of the snake head."""

    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


_OPPOSITE = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}

_DELTAS = {
    Direction.UP: (0, -1),
    Direction.DOWN: (0, 1),
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
}


@dataclass(frozen=True)
class GridPos:
    x: int
    y: int


@dataclass(frozen=True)
class FoodSeed:
    """Food slot before it has been placed on the grid."""

    id: str
    label: str


@dataclass(frozen=True)
class Food:
    id: str
    label: str
    pos: GridPos


@dataclass(frozen=True)
class GameConfig:
    """Grid size, tick interval and wall behavior."""

    cols: int = 20
    rows: int = 14
    speed_ms: int = 200
    wrap: bool = False


@dataclass(frozen=True)
class GameState:
    """Full game state; `snake` is head-first."""

    config: GameConfig
    snake: tuple[GridPos, ...]
    direction: Direction
    foods: tuple[Food, ...]
    score: int = 0
    game_over: bool = False
    tick: int = 0
    last_eaten: Food | None = None

    @property
    def head(self) -> GridPos:
        return self.snake[0]


def init_game(config: GameConfig | None = None, seed_foods: Iterable[FoodSeed] = ()) -> GameState:
    """Create a game with a two-cell snake centered on the grid facing right.

    Each seed food is placed with `empty_cell` salted by its index, so a given
    grid and seed list always produces the same layout.
    """
    config = config or GameConfig()
    if config.cols < 2 or config.rows < 1:
        raise InvalidArgument(f"Grid {config.cols}x{config.rows} is too small for a snake.")

    center = GridPos(config.cols // 2, config.rows // 2)
    snake = (center, GridPos(center.x - 1, center.y))

    foods: list[Food] = []
    for index, seed in enumerate(seed_foods):
        pos = empty_cell(config, snake, foods, salt=index)
        if pos is None:
            raise InvalidArgument(f"No free cell left for food '{seed.id}'.")
        foods.append(Food(id=seed.id, label=seed.label, pos=pos))

    return GameState(config=config, snake=snake, direction=Direction.RIGHT, foods=tuple(foods))


def step(state: GameState) -> GameState:
    """Advance the game by one tick."""
    if state.game_over:
        return state

    cfg = state.config
    dx, dy = _DELTAS[state.direction]
    x = state.head.x + dx
    y = state.head.y + dy

    if not (0 <= x < cfg.cols and 0 <= y < cfg.rows):
        if not cfg.wrap:
            return replace(state, game_over=True)
        x %= cfg.cols
        y %= cfg.rows
    next_head = GridPos(x, y)

    if next_head in state.snake:
        return replace(state, game_over=True)

    eaten_index = next((index for index, food in enumerate(state.foods) if food.pos == next_head), None)
    grown = (next_head,) + state.snake
    if eaten_index is None:
        return replace(state, snake=grown[:-1], tick=state.tick + 1, last_eaten=None)

    eaten = state.foods[eaten_index]
    others = [food for index, food in enumerate(state.foods) if index != eaten_index]
    foods = list(state.foods)
    respawn = empty_cell(cfg, grown, others)
    if respawn is None:
        # Board is full: the slot cannot be refilled.
        del foods[eaten_index]
    else:
        foods[eaten_index] = replace(eaten, pos=respawn)

    return replace(
        state,
        snake=grown,
        foods=tuple(foods),
        score=state.score + 1,
        tick=state.tick + 1,
        last_eaten=eaten,
    )


def change_direction(state: GameState, direction: Direction | str) -> GameState:
    """Set the direction for the next step; 180 degree turns are ignored."""
    try:
        requested = Direction(direction)
    except ValueError:
        raise InvalidArgument(f"Unknown direction: {direction!r}") from None
    if _OPPOSITE[state.direction] == requested:
        return state
    return replace(state, direction=requested)


def update_speed(state: GameState, speed_ms: float) -> GameState:
    """Change the tick interval; values below `MIN_SPEED_MS` are ignored."""
    if isinstance(speed_ms, bool) or not isinstance(speed_ms, int | float):
        return state
    if not math.isfinite(speed_ms) or speed_ms < MIN_SPEED_MS:
        return state
    return replace(state, config=replace(state.config, speed_ms=int(speed_ms)))


def update_wrap(state: GameState, wrap: bool) -> GameState:
    return replace(state, config=replace(state.config, wrap=bool(wrap)))


def apply_wrong_food_penalty(state: GameState) -> GameState:
    """Penalize eating a wrong label: lose a point and up to two tail segments."""
    if state.game_over:
        return state
    keep = max(1, len(state.snake) - 2)
    return replace(state, score=max(0, state.score - 1), snake=state.snake[:keep])


def empty_cell(
    config: GameConfig,
    snake: Sequence[GridPos],
    foods: Iterable[Food],
    salt: int = 0,
) -> GridPos | None:
    """Return a free cell chosen by a deterministic positional hash.

    Probes `cols * rows` hashed positions first, then falls back to a row-major
    scan. Returns `None` only when every cell is occupied.
    """
    occupied = set(snake)
    occupied.update(food.pos for food in foods)
    for i in range(config.cols * config.rows):
        r = (i * 9301 + 49297 + salt * 233) % 233280
        candidate = GridPos((r + i * 13) % config.cols, (r + i * 29) % config.rows)
        if candidate not in occupied:
            return candidate
    for y in range(config.rows):
        for x in range(config.cols):
            candidate = GridPos(x, y)
            if candidate not in occupied:
                return candidate
    return None
