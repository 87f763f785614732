"""Level generation: themes, difficulty, LLM request, repair and fallback."""

from __future__ import annotations

from .client import GeneratorConfig, LevelGenerationError
from .difficulty import Difficulty, calculate_difficulty
from .generator import LevelGenerator
from .level import LevelDescription, generate_fallback_level, repair_level
from .themes import THEMES, Theme, get_theme

__all__ = [
    "GeneratorConfig",
    "LevelGenerationError",
    "Difficulty",
    "calculate_difficulty",
    "LevelGenerator",
    "LevelDescription",
    "generate_fallback_level",
    "repair_level",
    "THEMES",
    "Theme",
    "get_theme",
]
