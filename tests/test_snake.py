import math

import pytest

from dailydrill.errors import InvalidArgument
from dailydrill.snake import (
    MIN_SPEED_MS,
    Direction,
    Food,
    FoodSeed,
    GameConfig,
    GameState,
    GridPos,
    apply_wrong_food_penalty,
    change_direction,
    empty_cell,
    init_game,
    step,
    update_speed,
    update_wrap,
)


def _seeds(count: int) -> list[FoodSeed]:
    return [FoodSeed(id=f"opt-{index}", label=f"label-{index}") for index in range(count)]


def test_init_game_centers_snake_facing_right() -> None:
    state = init_game()
    assert state.snake == (GridPos(10, 7), GridPos(9, 7))
    assert state.direction is Direction.RIGHT
    assert state.score == 0
    assert state.tick == 0
    assert state.game_over is False
    assert state.foods == ()


def test_init_game_is_deterministic() -> None:
    assert init_game(seed_foods=_seeds(4)) == init_game(seed_foods=_seeds(4))


def _play(moves: list[str]) -> GameState:
    state = GameState(
        config=GameConfig(),
        snake=(GridPos(10, 7), GridPos(9, 7)),
        direction=Direction.RIGHT,
        foods=(Food("opt-0", "a", GridPos(11, 7)), Food("opt-1", "b", GridPos(12, 7))),
    )
    for move in moves:
        state = step(state) if move == "step" else change_direction(state, move)
    return state


def test_identical_move_sequences_reach_identical_states() -> None:
    moves = ["step", "step", "down", "step", "step", "left", "step", "up", "step"]
    first = _play(moves)
    second = _play(moves)
    assert first == second
    assert first.game_over is False
    assert first.tick == 6
    assert first.score >= 2
    assert len(first.snake) == 2 + first.score


def test_init_game_places_foods_on_distinct_free_cells() -> None:
    state = init_game(seed_foods=_seeds(4))
    positions = [food.pos for food in state.foods]
    assert [food.id for food in state.foods] == ["opt-0", "opt-1", "opt-2", "opt-3"]
    assert len(set(positions)) == 4
    assert not set(positions) & set(state.snake)
    assert positions[0] == GridPos(17, 3)
    assert positions[1] == GridPos(10, 12)


def test_init_game_rejects_grids_without_room() -> None:
    with pytest.raises(InvalidArgument):
        init_game(GameConfig(cols=1, rows=5))
    with pytest.raises(InvalidArgument, match="No free cell"):
        init_game(GameConfig(cols=2, rows=1), _seeds(1))


def test_empty_cell_uses_positional_hash() -> None:
    config = GameConfig()
    snake = (GridPos(10, 7), GridPos(9, 7))
    assert empty_cell(config, snake, []) == GridPos(17, 3)
    assert empty_cell(config, snake, [], salt=1) == GridPos(10, 12)


def test_empty_cell_skips_occupied_and_reports_full_board() -> None:
    config = GameConfig(cols=2, rows=1)
    assert empty_cell(config, [GridPos(0, 0)], []) == GridPos(1, 0)
    assert empty_cell(config, [GridPos(0, 0)], [Food("f", "x", GridPos(1, 0))]) is None


def test_step_moves_and_advances_tick() -> None:
    state = step(init_game())
    assert state.snake == (GridPos(11, 7), GridPos(10, 7))
    assert state.tick == 1
    assert state.last_eaten is None


def test_eating_food_directly_ahead_grows_and_respawns() -> None:
    food = Food(id="opt-0", label="a", pos=GridPos(11, 7))
    state = GameState(
        config=GameConfig(),
        snake=(GridPos(10, 7), GridPos(9, 7)),
        direction=Direction.RIGHT,
        foods=(food,),
    )

    after = step(state)
    assert after.score == 1
    assert after.tick == 1
    assert len(after.snake) == 3
    assert after.head == GridPos(11, 7)
    assert after.last_eaten == food
    assert len(after.foods) == 1
    assert after.foods[0].id == "opt-0"
    assert after.foods[0].label == "a"
    assert after.foods[0].pos == GridPos(17, 3)

    assert step(after).last_eaten is None


def test_eating_last_free_cell_drops_the_slot() -> None:
    state = init_game(GameConfig(cols=3, rows=1), _seeds(1))
    assert state.foods[0].pos == GridPos(2, 0)
    after = step(state)
    assert after.score == 1
    assert after.foods == ()
    assert len(after.snake) == 3


def test_wall_collision_ends_game() -> None:
    food = Food(id="opt-0", label="a", pos=GridPos(0, 0))
    state = GameState(
        config=GameConfig(cols=4, rows=3),
        snake=(GridPos(3, 1), GridPos(2, 1)),
        direction=Direction.RIGHT,
        foods=(food,),
        score=2,
        tick=5,
    )
    over = step(state)
    assert over.game_over is True
    assert over.snake == state.snake
    assert over.foods == state.foods
    assert over.score == state.score
    assert over.tick == state.tick
    assert step(over) is over


def test_snake_reaches_wall_from_start() -> None:
    state = step(init_game(GameConfig(cols=4, rows=3)))
    assert state.head == GridPos(3, 1)
    assert step(state).game_over is True


def test_wrap_moves_head_to_opposite_edge() -> None:
    state = step(init_game(GameConfig(cols=4, rows=3, wrap=True)))
    wrapped = step(state)
    assert wrapped.game_over is False
    assert wrapped.head == GridPos(0, 1)


def test_update_wrap_toggles_wall_behavior() -> None:
    state = update_wrap(init_game(GameConfig(cols=4, rows=3)), True)
    assert state.config.wrap is True
    assert step(step(state)).game_over is False
    assert update_wrap(state, False).config.wrap is False


def test_self_collision_ends_game() -> None:
    state = GameState(
        config=GameConfig(cols=6, rows=6),
        snake=(GridPos(2, 2), GridPos(3, 2), GridPos(3, 1), GridPos(2, 1), GridPos(1, 1)),
        direction=Direction.UP,
        foods=(Food(id="opt-0", label="a", pos=GridPos(5, 5)),),
        score=1,
        tick=7,
    )
    over = step(state)
    assert over.game_over is True
    assert over.snake == state.snake
    assert over.foods == state.foods
    assert over.score == state.score
    assert over.tick == state.tick


def test_reverse_direction_is_ignored() -> None:
    state = init_game()
    assert change_direction(state, Direction.LEFT) is state
    assert change_direction(state, "up").direction is Direction.UP
    turned = change_direction(state, Direction.DOWN)
    assert change_direction(turned, "up") is turned


def test_unknown_direction_raises() -> None:
    with pytest.raises(InvalidArgument):
        change_direction(init_game(), "diagonal")


@pytest.mark.parametrize("speed", [MIN_SPEED_MS - 1, 0, -5, math.nan, math.inf, True, "100", None])
def test_update_speed_ignores_invalid_values(speed: object) -> None:
    state = init_game()
    assert update_speed(state, speed) is state  # type: ignore[arg-type]


def test_update_speed_accepts_floor_and_above() -> None:
    state = init_game()
    assert update_speed(state, MIN_SPEED_MS).config.speed_ms == MIN_SPEED_MS
    assert update_speed(state, 120.0).config.speed_ms == 120


def test_wrong_food_penalty() -> None:
    state = GameState(
        config=GameConfig(),
        snake=tuple(GridPos(x, 3) for x in range(5, 0, -1)),
        direction=Direction.RIGHT,
        foods=(),
        score=2,
    )
    penalized = apply_wrong_food_penalty(state)
    assert penalized.score == 1
    assert len(penalized.snake) == 3
    assert penalized.head == state.head

    floor = apply_wrong_food_penalty(init_game())
    assert floor.score == 0
    assert len(floor.snake) == 1

    over = GameState(config=GameConfig(), snake=state.snake, direction=Direction.RIGHT, foods=(), game_over=True)
    assert apply_wrong_food_penalty(over) is over
