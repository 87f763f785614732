"""
Grid puzzle level model, repair pass and procedural fallback.

A puzzle is a square grid of named cells. Whatever the generation service
returns is forced onto a ``GRID_SIZE`` x ``GRID_SIZE`` board (the game state
has a static shape): extra rows and columns are cut, missing ones are walled
off. After repair a board has exactly one start and at least one goal.
"""
from __future__ import annotations

import zlib
from dataclasses import dataclass
from typing import Any, Optional

import jax
import numpy as np

from ..systems.generation.level import SOURCE_AI, SOURCE_FALLBACK

GRID_SIZE = 10
MAX_DIFFICULTY = 10

FLOOR = 0
WALL = 1
START = 2
GOAL = 3
PIT = 4

CELL_TYPES = ("floor", "wall", "start", "goal", "pit")

DEFAULT_HINT = "No hint available."
DEFAULT_WIN_CONDITION = "Reach the goal"
FALLBACK_HINT = "Pathfinding is key."
FALLBACK_FLAVOR = "The AI is offline, but the path remains."
FALLBACK_FUZZLE_RULE = "Every 5 moves, a floor tile becomes a wall."


@dataclass(frozen=True)
class PuzzleLevel:
    """
    A complete, repaired puzzle board.

    Attributes
    ----------
    theme : str
        Theme key or custom theme text
    level_number : int
        1-based level index
    grid : tuple[tuple[str, ...], ...]
        Rows of cell names from ``CELL_TYPES``
    hint : str
        Clue shown on request
    win_condition : str
        Objective text
    flavor_text : str
        Atmospheric description
    fuzzle_rule : Optional[str]
        Dynamic rule description for fuzzle mode, None otherwise
    source : str
        ``"ai"`` or ``"fallback"``
    """
    theme: str
    level_number: int
    grid: tuple
    hint: str = DEFAULT_HINT
    win_condition: str = DEFAULT_WIN_CONDITION
    flavor_text: str = ""
    fuzzle_rule: Optional[str] = None
    source: str = SOURCE_FALLBACK

    @property
    def used_fallback(self) -> bool:
        return self.source == SOURCE_FALLBACK

    @property
    def size(self) -> int:
        return len(self.grid)

    @property
    def start(self) -> tuple[int, int]:
        """(x, y) of the start cell."""
        for y, row in enumerate(self.grid):
            for x, cell in enumerate(row):
                if cell == "start":
                    return x, y
        raise ValueError("Puzzle has no start cell")

    def cells(self) -> np.ndarray:
        """(size, size) int32 array of cell codes (index into ``CELL_TYPES``)."""
        return np.asarray(
            [[CELL_TYPES.index(cell) for cell in row] for row in self.grid], dtype=np.int32
        )

    def to_dict(self) -> dict:
        """JSON-friendly dict using the generation response key names."""
        data = {
            "theme": self.theme,
            "levelNumber": self.level_number,
            "source": self.source,
            "width": self.size,
            "height": self.size,
            "grid": [list(row) for row in self.grid],
            "hint": self.hint,
            "winCondition": self.win_condition,
            "flavorText": self.flavor_text,
        }
        if self.fuzzle_rule is not None:
            data["fuzzleRule"] = self.fuzzle_rule
        return data


def puzzle_difficulty(level_number: int) -> int:
    """
    Difficulty in [1, 10] for a level.

    Raises:
        ValueError: ``level_number`` is not a positive int
    """
    if isinstance(level_number, bool) or not isinstance(level_number, int) or level_number < 1:
        raise ValueError(f"level_number must be a positive int, got {level_number!r}")
    return min(level_number, MAX_DIFFICULTY)


# ============================================================================
# Repair pass
# ============================================================================

def _cell(value: Any) -> str:
    if isinstance(value, str) and value.strip().lower() in CELL_TYPES:
        return value.strip().lower()
    return "floor"


def _text(value: Any, default: Optional[str]) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def repair_puzzle(
    raw: dict,
    theme: str,
    level_number: int,
    source: str = SOURCE_AI,
    size: int = GRID_SIZE,
) -> PuzzleLevel:
    """
    Force raw puzzle data onto a valid ``size`` x ``size`` board.

    Unknown cell names become floor and cells outside the returned grid
    become walls. Only the first start (row-major) is kept; without one the
    top-left cell becomes the start. Without a goal the bottom-right cell
    becomes the goal.

    Args:
        raw: Dict with (some of) the keys ``grid``, ``hint``,
            ``winCondition``, ``flavorText``, ``fuzzleRule``
        theme: Theme key stored on the result
        level_number: Level index stored on the result
        source: ``"ai"`` or ``"fallback"``
        size: Board edge length

    Returns:
        PuzzleLevel
    """
    rows = raw.get("grid")
    if not isinstance(rows, list):
        rows = []

    grid = [["wall"] * size for _ in range(size)]
    for y, row in enumerate(rows[:size]):
        if not isinstance(row, list):
            continue
        for x, value in enumerate(row[:size]):
            grid[y][x] = _cell(value)

    has_start = False
    for row in grid:
        for x, cell in enumerate(row):
            if cell == "start":
                if has_start:
                    row[x] = "floor"
                has_start = True
    if not has_start:
        grid[0][0] = "start"

    if not any(cell == "goal" for row in grid for cell in row):
        grid[size - 1][size - 1] = "goal"

    return PuzzleLevel(
        theme=theme,
        level_number=level_number,
        grid=tuple(tuple(row) for row in grid),
        hint=_text(raw.get("hint"), DEFAULT_HINT),
        win_condition=_text(raw.get("winCondition"), DEFAULT_WIN_CONDITION),
        flavor_text=_text(raw.get("flavorText"), ""),
        fuzzle_rule=_text(raw.get("fuzzleRule"), None),
        source=source,
    )


# ============================================================================
# Procedural fallback
# ============================================================================

BASE_WALL_CHANCE = 0.1
WALL_CHANCE_PER_LEVEL = 0.02


def generate_fallback_puzzle(
    theme: str,
    level_number: int,
    fuzzle: bool = False,
    key: Optional[jax.Array] = None,
    size: int = GRID_SIZE,
) -> PuzzleLevel:
    """
    Deterministic procedural board.

    Every cell rolls a wall with chance ``0.1 + 0.02 * difficulty``. The start
    is at (1, 1) and the goal at (size - 2, size - 2). A random monotone
    staircase of right/down steps between them is then cleared, so the goal is
    always reachable.

    Args:
        theme: Theme key
        level_number: Level index
        fuzzle: Whether to attach the fuzzle rule text
        key: Optional PRNG key; defaults to one derived from the level number
        size: Board edge length (>= 4)

    Returns:
        PuzzleLevel with ``source == "fallback"``
    """
    difficulty = puzzle_difficulty(level_number)
    if key is None:
        key = jax.random.PRNGKey(zlib.crc32(f"puzzle|{level_number}|{size}".encode("utf-8")))
    k_walls, k_path = jax.random.split(key)

    wall_chance = BASE_WALL_CHANCE + WALL_CHANCE_PER_LEVEL * difficulty
    walls = np.asarray(jax.random.uniform(k_walls, (size, size))) < wall_chance
    grid = [["wall" if walls[y, x] else "floor" for x in range(size)] for y in range(size)]

    # Staircase path: (size - 3) steps right and (size - 3) steps down, shuffled.
    span = size - 3
    steps = np.asarray(jax.random.permutation(k_path, np.array([0] * span + [1] * span)))
    x, y = 1, 1
    for step in steps:
        grid[y][x] = "floor"
        if step == 0:
            x += 1
        else:
            y += 1
    grid[1][1] = "start"
    grid[size - 2][size - 2] = "goal"

    raw = {
        "grid": grid,
        "hint": FALLBACK_HINT,
        "winCondition": DEFAULT_WIN_CONDITION,
        "flavorText": FALLBACK_FLAVOR,
    }
    if fuzzle:
        raw["fuzzleRule"] = FALLBACK_FUZZLE_RULE
    return repair_puzzle(raw, theme, level_number, source=SOURCE_FALLBACK, size=size)
