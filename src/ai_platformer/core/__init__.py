"""Core game components for the JAX platformer.

This package contains the pure functional core of the game:
- State representations (GameState)
- Configuration dataclasses (GameConfig)
- Main game logic (PlatformerGame)
- The interactive session that loads levels asynchronously
"""

from __future__ import annotations

from .config import GameConfig
from .game import PlatformerGame
from .session import PlatformerSession
from .state import GAME_OVER, RUNNING, VICTORY, GameState

__all__ = [
    "GameState",
    "RUNNING",
    "GAME_OVER",
    "VICTORY",
    "GameConfig",
    "PlatformerGame",
    "PlatformerSession",
]
