"""
Chat-completion client for AI level layouts.

The generation service is any OpenAI-compatible chat endpoint (Groq by
default). Everything that can go wrong on this path raises
``LevelGenerationError`` (or an ``openai.OpenAIError``); the generator turns
both into the procedural fallback.
"""
from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass
from typing import Optional, Protocol

import openai

from .difficulty import Difficulty
from .themes import Theme


class LevelGenerationError(RuntimeError):
    """The generation service could not produce usable level data."""


@dataclass
class GeneratorConfig:
    """Settings for the level generation request.

    Attributes
    ----------
    enabled : bool
        Send requests at all; when False every level is procedural (default: True)
    api_key_env : str
        Environment variable holding the API key (default: "GROQ_API_KEY")
    base_url : str
        OpenAI-compatible endpoint (default: Groq)
    model : str
        Chat model name (default: "llama-3.3-70b-versatile")
    temperature : float
        Sampling temperature (default: 0.8)
    max_tokens : int
        Completion token limit (default: 2000)
    timeout_s : float
        Client-side request timeout in seconds (default: 15.0)
    max_retries : int
        Retries performed by the SDK before giving up (default: 0)
    """
    enabled: bool = True
    api_key_env: str = "GROQ_API_KEY"
    base_url: str = "https://api.groq.com/openai/v1"
    model: str = "llama-3.3-70b-versatile"
    temperature: float = 0.8
    max_tokens: int = 2000
    timeout_s: float = 15.0
    max_retries: int = 0


SYSTEM_PROMPT = (
    "You are a game level designer that outputs ONLY valid JSON. "
    "Never include markdown formatting or explanations."
)


class CompletionClient(Protocol):
    def complete(self, system: str, prompt: str) -> str:
        ...


class OpenAIChatClient:
    """Thin wrapper around ``openai.OpenAI().chat.completions.create``."""

    def __init__(self, config: GeneratorConfig):
        self.config = config
        self._client = None

    def _get_client(self):
        if self._client is None:
            api_key = os.getenv(self.config.api_key_env)
            if not api_key:
                raise LevelGenerationError(
                    f"No API key found in ${self.config.api_key_env}"
                )
            self._client = openai.OpenAI(
                api_key=api_key,
                base_url=self.config.base_url,
                timeout=self.config.timeout_s,
                max_retries=self.config.max_retries,
            )
        return self._client

    def complete(self, system: str, prompt: str) -> str:
        resp = self._get_client().chat.completions.create(
            model=self.config.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
        )
        content = resp.choices[0].message.content if resp.choices else None
        if not content:
            raise LevelGenerationError("Empty completion")
        return content


def build_prompt(theme: Theme, level_number: int, difficulty: Difficulty) -> str:
    """User message for one level request."""
    d = difficulty
    return f"""You are a platformer game level designer. Generate a challenging but fair level layout.

Theme: {theme.name}
Level Number: {level_number}
Difficulty: {d.description}

Requirements:
- Create {d.platform_count} platforms
- Platform width range: {d.min_platform_width:g}-{d.max_platform_width:g} units
- Vertical spacing: {d.min_gap:g}-{d.max_gap:g} units
- Horizontal spacing: {d.min_horizontal_gap:g}-{d.max_horizontal_gap:g} units
- Include {d.enemy_count} enemies
- Include {d.collectible_count} collectibles
- Add {d.hazard_count} hazards
- {d.moving_platforms} platforms should move
- Level length: approximately {d.level_length:g} units

Generate a JSON object with this EXACT structure (no markdown, no explanation, ONLY valid JSON):
{{
  "platforms": [
    {{"x": number, "y": number, "width": number, "height": 20, "moving": boolean, "moveRange": number}}
  ],
  "enemies": [
    {{"x": number, "y": number, "type": "walker|jumper|flyer", "range": number}}
  ],
  "collectibles": [
    {{"x": number, "y": number, "type": "coin|powerup"}}
  ],
  "hazards": [
    {{"x": number, "y": number, "width": number, "type": "spike|pit|fire"}}
  ],
  "goal": {{"x": number, "y": number}}
}}

Important rules:
1. First platform MUST be at x:100, y:400 (starting position)
2. Each platform must be reachable from previous platforms (max jump: 150 horizontal, 120 vertical)
3. No platforms should overlap
4. Goal should be at the end of the level
5. Y coordinates: 200-500 (lower Y = higher position)
6. Make the layout interesting with varied heights and gaps
7. Theme: {theme.description}"""


_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text).strip()


def parse_level_response(text: Optional[str]) -> dict:
    """
    Parse a completion into raw level data.

    Raises:
        LevelGenerationError: for empty text, invalid JSON, a non-object
            payload or a payload without a non-empty ``platforms`` list
    """
    if not text or not text.strip():
        raise LevelGenerationError("Empty response")
    try:
        data = json.loads(strip_code_fences(text))
    except ValueError as e:
        # JSONDecodeError, or an integer literal past the int conversion limit
        raise LevelGenerationError(f"Response is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise LevelGenerationError(f"Expected a JSON object, got {type(data).__name__}")
    platforms = data.get("platforms")
    if not isinstance(platforms, list) or not platforms:
        raise LevelGenerationError("Response has no platforms")
    return data
