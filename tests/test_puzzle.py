from collections import deque

import jax
import jax.numpy as jnp
import numpy as np
import openai
import pytest

from ai_platformer.entities.particles import ParticleConfig
from ai_platformer.puzzle import (
    GRID_SIZE,
    PuzzleConfig,
    PuzzleGame,
    PuzzleGenerator,
    generate_fallback_puzzle,
    get_puzzle_theme,
    repair_puzzle,
)
from ai_platformer.puzzle.generator import parse_puzzle_response
from ai_platformer.puzzle.level import FALLBACK_FUZZLE_RULE, FLOOR, GOAL, START, WALL
from ai_platformer.systems.generation import GeneratorConfig
from ai_platformer.systems.generation.client import LevelGenerationError
from ai_platformer.systems.generation.level import SOURCE_AI, SOURCE_FALLBACK

UP, DOWN, LEFT, RIGHT = PuzzleGame.UP, PuzzleGame.DOWN, PuzzleGame.LEFT, PuzzleGame.RIGHT

CHARS = {"S": "start", "G": "goal", "#": "wall", ".": "floor", "O": "pit"}


def board(*rows):
    """Puzzle from rows like ``"S.G"``; anything outside the rows is wall."""
    grid = [[CHARS[ch] for ch in row] for row in rows]
    return repair_puzzle({"grid": grid}, "retro", 1, source=SOURCE_FALLBACK)


OPEN_BOARD = ("S" + "." * 9,) + ("." * 10,) * 8 + ("." * 9 + "G",)


def reachable(level):
    grid = level.grid
    size = len(grid)
    seen = {level.start}
    queue = deque([level.start])
    while queue:
        x, y = queue.popleft()
        if grid[y][x] == "goal":
            return True
        for dx, dy in ((1, 0), (-1, 0), (0, 1), (0, -1)):
            nx, ny = x + dx, y + dy
            if 0 <= nx < size and 0 <= ny < size and (nx, ny) not in seen and grid[ny][nx] != "wall":
                seen.add((nx, ny))
                queue.append((nx, ny))
    return False


@pytest.fixture
def puzzle_game():
    return PuzzleGame(PuzzleConfig(H=120, W=160, cell_size=10, particles=ParticleConfig(capacity=32)))


def play(game, state, actions):
    step = jax.jit(game.step)
    infos = []
    for a in actions:
        state, info = step(state, jnp.int32(a))
        infos.append(info)
    return state, infos


def walls(state):
    return int(jnp.sum(state.grid == WALL))


# ---------------------------------------------------------------------------
# Fallback and repair
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("level_number", [1, 2, 5, 10, 15])
def test_fallback_board_is_solvable(level_number):
    level = generate_fallback_puzzle("forest", level_number)
    cells = level.cells()

    assert level.source == SOURCE_FALLBACK
    assert cells.shape == (GRID_SIZE, GRID_SIZE)
    assert level.start == (1, 1)
    assert level.grid[8][8] == "goal"
    assert int(np.sum(cells == START)) == 1
    assert reachable(level)


def test_fallback_board_is_deterministic():
    assert generate_fallback_puzzle("retro", 3) == generate_fallback_puzzle("retro", 3)
    a = generate_fallback_puzzle("retro", 3, key=jax.random.PRNGKey(7))
    b = generate_fallback_puzzle("retro", 3, key=jax.random.PRNGKey(7))
    assert a == b


def test_fallback_board_text():
    plain = generate_fallback_puzzle("retro", 1)
    assert plain.hint == "Pathfinding is key."
    assert plain.win_condition == "Reach the goal"
    assert plain.fuzzle_rule is None
    assert generate_fallback_puzzle("retro", 1, fuzzle=True).fuzzle_rule == FALLBACK_FUZZLE_RULE


def test_repair_adds_missing_start_and_goal():
    level = repair_puzzle({"grid": [["floor", "floor"], ["floor", "floor"]]}, "retro", 1)
    assert level.start == (0, 0)
    assert level.grid[GRID_SIZE - 1][GRID_SIZE - 1] == "goal"
    assert level.hint == "No hint available."


def test_repair_normalizes_cells_and_shape():
    rows = [["wall", "START", "start", "lava", 3]] + [["floor"] * 14 for _ in range(12)]
    level = repair_puzzle({"grid": rows, "hint": "  look left  ", "fuzzleRule": ""}, "retro", 2)

    assert level.size == GRID_SIZE
    assert all(len(row) == GRID_SIZE for row in level.grid)
    assert level.grid[0][:5] == ("wall", "start", "floor", "floor", "floor")
    assert level.grid[0][5:] == ("wall",) * 5
    assert level.start == (1, 0)
    assert level.hint == "look left"
    assert level.fuzzle_rule is None


def test_to_dict_uses_response_keys():
    data = generate_fallback_puzzle("forest", 1, fuzzle=True).to_dict()
    assert data["width"] == data["height"] == GRID_SIZE
    assert data["grid"][1][1] == "start"
    assert data["fuzzleRule"] == FALLBACK_FUZZLE_RULE
    assert data["source"] == "fallback"


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "response",
    [
        "",
        None,
        "the board is a maze",
        "[]",
        '{"grid": "floor"}',
        '{"grid": []}',
        '{"grid": [1, 2, 3]}',
        '{"hint": "no grid here"}',
    ],
)
def test_malformed_boards_fall_back(fake_client, response):
    level = PuzzleGenerator(client=fake_client(response=response)).generate_level("minimalist", 2)
    assert level.used_fallback
    assert reachable(level)


@pytest.mark.parametrize("error", [openai.OpenAIError("down"), TimeoutError("slow"), LevelGenerationError("no key")])
def test_request_failures_fall_back(fake_client, error):
    level = PuzzleGenerator(client=fake_client(error=error)).generate_level("retro", 1)
    assert level.used_fallback


def test_ai_board_is_repaired(fake_client):
    response = '```json\n{"grid": [["start", "floor", "goal"]], "hint": "Go right", "fuzzleRule": "Walls shift"}\n```'
    level = PuzzleGenerator(client=fake_client(response=response)).generate_level("forest", 1)

    assert level.source == SOURCE_AI
    assert level.grid[0][:3] == ("start", "floor", "goal")
    assert level.grid[1] == ("wall",) * GRID_SIZE
    assert level.hint == "Go right"
    assert level.fuzzle_rule == "Walls shift"


def test_prompt_mentions_fuzzle_and_custom_theme(fake_client):
    client = fake_client(error=TimeoutError("slow"))
    generator = PuzzleGenerator(client=client)
    generator.generate_level("haunted library", 14, fuzzle=True)
    generator.generate_level("retro", 1)

    assert "haunted library" in client.prompts[0]
    assert "FUZZLE MODE ACTIVE" in client.prompts[0]
    assert "Difficulty: 10 (1-10)" in client.prompts[0]
    assert "FUZZLE" not in client.prompts[1]
    assert "8-Bit Dungeon" in client.prompts[1]


def test_disabled_generator_skips_client(fake_client):
    client = fake_client(response='{"grid": [["start", "goal"]]}')
    level = PuzzleGenerator(GeneratorConfig(enabled=False), client=client).generate_level("retro", 1)
    assert level.used_fallback
    assert client.prompts == []


def test_invalid_arguments_raise(fake_client):
    generator = PuzzleGenerator(client=fake_client(response="{}"))
    with pytest.raises(ValueError):
        generator.generate_level("  ", 1)
    with pytest.raises(ValueError):
        generator.generate_level("retro", 0)


def test_custom_theme_uses_default_palette():
    custom = get_puzzle_theme("candy land")
    assert custom.name == "candy land"
    assert custom.rgb() == get_puzzle_theme("cyberpunk").rgb()


def test_parse_rejects_rows_that_are_not_lists():
    with pytest.raises(LevelGenerationError, match="Invalid grid"):
        parse_puzzle_response('{"grid": ["floor", "wall"]}')


# ---------------------------------------------------------------------------
# Game
# ---------------------------------------------------------------------------

def test_reaching_goal_wins_and_freezes(puzzle_game, key):
    state = puzzle_game.reset(board("S.G"), key)
    state, infos = play(puzzle_game, state, [RIGHT, RIGHT])

    assert bool(infos[-1]["won"])
    assert puzzle_game.is_solved(state)
    assert int(state.moves) == 2
    assert (int(state.player_x), int(state.player_y)) == (2, 0)

    after, infos = play(puzzle_game, state, [LEFT, PuzzleGame.RESTART])
    assert int(after.t) == int(state.t)
    assert int(after.player_x) == 2
    assert not bool(infos[0]["moved"])


def test_walls_and_edges_block(puzzle_game, key):
    state = puzzle_game.reset(board("S#G"), key)
    state, infos = play(puzzle_game, state, [RIGHT, UP, LEFT, DOWN])

    assert [bool(i["moved"]) for i in infos] == [False, False, False, False]
    assert (int(state.player_x), int(state.player_y)) == (0, 0)
    assert int(state.moves) == 0
    assert int(state.t) == 4


def test_pit_sends_player_back_to_start(puzzle_game, key):
    state = puzzle_game.reset(board("S.OG"), key)
    state, infos = play(puzzle_game, state, [RIGHT, RIGHT])

    assert bool(infos[-1]["died"])
    assert (int(state.player_x), int(state.player_y)) == (0, 0)
    assert int(state.moves) == 0
    assert int(state.deaths) == 1
    assert not bool(state.won)


def test_fuzzle_turns_a_floor_cell_into_a_wall(puzzle_game, key):
    state = puzzle_game.reset(board(*OPEN_BOARD), key, fuzzle=True)
    assert walls(state) == 0

    state, infos = play(puzzle_game, state, [RIGHT, LEFT, RIGHT, LEFT])
    assert walls(state) == 0
    assert not any(bool(i["fuzzle_mutated"]) for i in infos)

    state, infos = play(puzzle_game, state, [RIGHT])
    assert bool(infos[0]["fuzzle_mutated"])
    assert walls(state) == 1
    assert int(state.grid[state.player_y, state.player_x]) == FLOOR
    assert int(jnp.sum(state.grid == START)) == 1
    assert int(jnp.sum(state.grid == GOAL)) == 1
    assert int(jnp.sum(state.particles.alive)) > 0


def test_fuzzle_off_leaves_board_alone(puzzle_game, key):
    state = puzzle_game.reset(board(*OPEN_BOARD), key, fuzzle=False)
    state, infos = play(puzzle_game, state, [RIGHT, LEFT] * 5)
    assert walls(state) == 0
    assert not any(bool(i["fuzzle_mutated"]) for i in infos)


def test_fuzzle_without_free_floor_does_nothing(puzzle_game, key):
    state = puzzle_game.reset(board("S."), key, fuzzle=True)
    before = walls(state)
    state, infos = play(puzzle_game, state, [RIGHT, LEFT, RIGHT, LEFT, RIGHT])
    assert int(state.moves) == 5
    assert not bool(infos[-1]["fuzzle_mutated"])
    assert walls(state) == before


def test_fuzzle_defaults_to_level_rule(puzzle_game, key):
    assert bool(puzzle_game.reset(generate_fallback_puzzle("retro", 1, fuzzle=True), key).fuzzle)
    assert not bool(puzzle_game.reset(generate_fallback_puzzle("retro", 1), key).fuzzle)


def test_restart_restores_generated_board(puzzle_game, key):
    state = puzzle_game.reset(board(*OPEN_BOARD), key, fuzzle=True)
    state, _ = play(puzzle_game, state, [RIGHT, DOWN, RIGHT, DOWN, RIGHT])
    assert walls(state) == 1

    state, infos = play(puzzle_game, state, [PuzzleGame.RESTART])
    assert bool(infos[0]["restarted"])
    assert walls(state) == 0
    assert bool(jnp.all(state.grid == state.initial_grid))
    assert (int(state.player_x), int(state.player_y)) == (0, 0)
    assert int(state.moves) == 0


def test_dict_action_raises(puzzle_game, key):
    state = puzzle_game.reset(board("S.G"), key)
    with pytest.raises(TypeError):
        puzzle_game.step(state, {"won": False})


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def test_render_shape_and_win_overlay(puzzle_game, key):
    render = jax.jit(puzzle_game.render)
    state = puzzle_game.reset(board("S.G"), key)
    frame = np.asarray(render(state))
    assert frame.shape == (120, 160, 3)
    assert frame.dtype == np.uint8

    solved, _ = play(puzzle_game, state, [RIGHT, RIGHT])
    assert np.asarray(render(solved)).mean() < frame.mean()


def test_render_marks_fuzzle_mode(puzzle_game, key):
    render = jax.jit(puzzle_game.render)
    level = board(*OPEN_BOARD)
    plain = np.asarray(render(puzzle_game.reset(level, key, fuzzle=False)))
    fuzzle = np.asarray(render(puzzle_game.reset(level, key, fuzzle=True)))
    assert not np.array_equal(plain, fuzzle)
