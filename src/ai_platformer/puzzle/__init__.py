"""AI Puzzle: grid puzzle with generated boards and the optional fuzzle mode."""

from __future__ import annotations

from .game import PuzzleConfig, PuzzleGame, PuzzleState
from .generator import PuzzleGenerator
from .level import CELL_TYPES, GRID_SIZE, PuzzleLevel, generate_fallback_puzzle, repair_puzzle
from .themes import PUZZLE_THEMES, PuzzleTheme, get_puzzle_theme

__all__ = [
    "PuzzleConfig",
    "PuzzleGame",
    "PuzzleState",
    "PuzzleGenerator",
    "CELL_TYPES",
    "GRID_SIZE",
    "PuzzleLevel",
    "generate_fallback_puzzle",
    "repair_puzzle",
    "PUZZLE_THEMES",
    "PuzzleTheme",
    "get_puzzle_theme",
]
