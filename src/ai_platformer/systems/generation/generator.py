from __future__ import annotations

import logging
from typing import Optional

import jax
import openai

from .client import (
    SYSTEM_PROMPT,
    CompletionClient,
    GeneratorConfig,
    LevelGenerationError,
    OpenAIChatClient,
    build_prompt,
    parse_level_response,
)
from .difficulty import calculate_difficulty
from .level import SOURCE_AI, LevelDescription, generate_fallback_level, repair_level
from .themes import get_theme

logger = logging.getLogger(__name__)


class LevelGenerator:
    """
    Produces levels from the generation service, falling back to a
    deterministic procedural layout whenever the service fails.

    ``generate_level`` never raises for request or response problems. Use
    ``LevelDescription.source`` (or the logged warning) to tell the two
    paths apart.

    Examples
    --------
    >>> gen = LevelGenerator(GeneratorConfig(enabled=False))
    >>> level = gen.generate_level("forest", 1)
    >>> level.source
    'fallback'
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
        key: Optional[jax.Array] = None,
    ) -> LevelDescription:
        """
        Generate (or fall back to) a repaired level.

        Args:
            theme: Theme key, must exist in ``THEMES``
            level_number: Positive level index
            key: Optional PRNG key for the fallback layout

        Returns:
            LevelDescription, ``source`` is ``"ai"`` or ``"fallback"``

        Raises:
            ValueError: unknown theme or invalid level number
        """
        theme_info = get_theme(theme)
        difficulty = calculate_difficulty(level_number)

        try:
            if not self.config.enabled:
                raise LevelGenerationError("AI level generation is disabled")
            text = self.client.complete(
                SYSTEM_PROMPT, build_prompt(theme_info, level_number, difficulty)
            )
            raw = parse_level_response(text)
        except (LevelGenerationError, openai.OpenAIError, OSError) as e:
            logger.warning(
                "Level generation failed for %s level %d, falling back to procedural layout: %s",
                theme, level_number, e,
            )
            return generate_fallback_level(theme, level_number, difficulty, key=key)

        level = repair_level(raw, theme, level_number, source=SOURCE_AI)
        logger.info(
            "Generated %s level %d: %d platforms, %d enemies, %d collectibles",
            theme, level_number, len(level.platforms), len(level.enemies), len(level.collectibles),
        )
        return level
