"""Game wrappers (Gymnasium compatibility)."""

from __future__ import annotations

from .gymnasium import PlatformerGymEnv

__all__ = [
    "PlatformerGymEnv",
]
