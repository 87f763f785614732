"""Puzzle board requests: prompt, response parsing and fallback."""
from __future__ import annotations

import json
import logging
from typing import Optional

import jax
import openai

from ..systems.generation.client import (
    CompletionClient,
    GeneratorConfig,
    LevelGenerationError,
    OpenAIChatClient,
    strip_code_fences,
)
from ..systems.generation.level import SOURCE_AI
from .level import (
    GRID_SIZE,
    PuzzleLevel,
    generate_fallback_puzzle,
    puzzle_difficulty,
    repair_puzzle,
)
from .themes import PuzzleTheme, get_puzzle_theme

logger = logging.getLogger(__name__)

PUZZLE_SYSTEM_PROMPT = (
    "You are a world-class puzzle designer. Create a grid-based puzzle level in JSON format. "
    f"The grid should be {GRID_SIZE}x{GRID_SIZE}. "
    'Cell types: "floor", "wall", "start", "goal", "pit". '
    "Ensure there is a valid path from start to goal. "
    "Output ONLY valid JSON. No markdown."
)


def build_puzzle_prompt(theme: PuzzleTheme, difficulty: int, fuzzle: bool) -> str:
    """User message for one board request."""
    fuzzle_instruction = ""
    if fuzzle:
        fuzzle_instruction = """
FUZZLE MODE ACTIVE:
Include a "fuzzleRule" field describing a dynamic rule change.
Examples: "Every 5 steps, walls shift", "Gravity reverses every 3 moves".
The layout should support this rule.
"""
    return f"""Theme: {theme.name} ({theme.description})
Difficulty: {difficulty} (1-10)
{fuzzle_instruction}
Generate a JSON object with:
- width: {GRID_SIZE}
- height: {GRID_SIZE}
- grid: 2D array of strings
- hint: A subtle clue for the player
- winCondition: "Reach the goal"
- flavorText: A short atmospheric description matching the theme"""


def parse_puzzle_response(text: Optional[str]) -> dict:
    """
    Parse a completion into raw puzzle data.

    Raises:
        LevelGenerationError: for empty text, invalid JSON, a non-object
            payload or a payload without a non-empty list-of-rows ``grid``
    """
    if not text or not text.strip():
        raise LevelGenerationError("Empty response")
    try:
        data = json.loads(strip_code_fences(text))
    except ValueError as e:
        raise LevelGenerationError(f"Response is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise LevelGenerationError(f"Expected a JSON object, got {type(data).__name__}")
    grid = data.get("grid")
    if not isinstance(grid, list) or not grid or not any(isinstance(row, list) for row in grid):
        raise LevelGenerationError("Invalid grid data")
    return data


class PuzzleGenerator:
    """
    Produces puzzle boards from the generation service, falling back to a
    procedural board whenever the service fails.

    Shares ``GeneratorConfig`` and the chat client with ``LevelGenerator``.

    Examples
    --------
    >>> gen = PuzzleGenerator(GeneratorConfig(enabled=False))
    >>> gen.generate_level("retro", 1, fuzzle=True).fuzzle_rule
    'Every 5 moves, a floor tile becomes a wall.'
    """

    def __init__(
        self,
        config: Optional[GeneratorConfig] = None,
        client: Optional[CompletionClient] = None,
    ):
        self.config = config if config is not None else GeneratorConfig()
        self.client = client if client is not None else OpenAIChatClient(self.config)

    def generate_level(
        self,
        theme: str,
        level_number: int,
        fuzzle: bool = False,
        key: Optional[jax.Array] = None,
    ) -> PuzzleLevel:
        """
        Generate (or fall back to) a repaired puzzle board.

        Raises:
            ValueError: empty theme or invalid level number
        """
        theme_info = get_puzzle_theme(theme)
        difficulty = puzzle_difficulty(level_number)

        try:
            if not self.config.enabled:
                raise LevelGenerationError("AI level generation is disabled")
            text = self.client.complete(
                PUZZLE_SYSTEM_PROMPT, build_puzzle_prompt(theme_info, difficulty, fuzzle)
            )
            raw = parse_puzzle_response(text)
        except (LevelGenerationError, openai.OpenAIError, OSError) as e:
            logger.warning(
                "Puzzle generation failed for %s level %d, falling back to procedural board: %s",
                theme_info.key, level_number, e,
            )
            return generate_fallback_puzzle(theme_info.key, level_number, fuzzle=fuzzle, key=key)

        level = repair_puzzle(raw, theme_info.key, level_number, source=SOURCE_AI)
        logger.info("Generated %s puzzle level %d", theme_info.key, level_number)
        return level
