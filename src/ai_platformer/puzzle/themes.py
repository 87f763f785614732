"""
Palettes for the grid puzzle.

Puzzle themes are separate from the platformer themes: a puzzle board needs
floor/wall/goal colors rather than a sky gradient. Any non-empty theme name
is accepted; names without an entry here become a custom theme drawn with the
``cyberpunk`` palette, and the name itself is sent to the level generator.
"""
from __future__ import annotations

from dataclasses import dataclass, replace

from ..systems.generation.themes import hex_to_rgb


@dataclass(frozen=True)
class PuzzleTheme:
    """Board palette.

    Attributes
    ----------
    key : str
        Lookup key (or the custom theme text)
    name : str
        Display name
    description : str
        Flavor line embedded in generation prompts
    background, grid, wall, floor, player, goal : str
        Hex colors
    """
    key: str
    name: str
    description: str
    background: str
    grid: str
    wall: str
    floor: str
    player: str
    goal: str

    def rgb(self) -> dict[str, tuple]:
        return {
            name: hex_to_rgb(getattr(self, name))
            for name in ("background", "grid", "wall", "floor", "player", "goal")
        }


PUZZLE_THEMES: dict[str, PuzzleTheme] = {
    "cyberpunk": PuzzleTheme(
        key="cyberpunk",
        name="Neon City",
        description="High-tech logic puzzles in a glitchy metropolis.",
        background="#020617",
        grid="#1e293b",
        wall="#0ea5e9",
        floor="#0f172a",
        player="#d946ef",
        goal="#22c55e",
    ),
    "forest": PuzzleTheme(
        key="forest",
        name="Ancient Woods",
        description="Organic paths through overgrown ruins.",
        background="#052e16",
        grid="#14532d",
        wall="#15803d",
        floor="#064e3b",
        player="#fbbf24",
        goal="#4ade80",
    ),
    "minimalist": PuzzleTheme(
        key="minimalist",
        name="Zen Garden",
        description="Pure logic in a stark, white void.",
        background="#f8fafc",
        grid="#e2e8f0",
        wall="#475569",
        floor="#ffffff",
        player="#3b82f6",
        goal="#ef4444",
    ),
    "retro": PuzzleTheme(
        key="retro",
        name="8-Bit Dungeon",
        description="Old-school pixel puzzles.",
        background="#000000",
        grid="#333333",
        wall="#ffffff",
        floor="#111111",
        player="#ff0000",
        goal="#ffff00",
    ),
}

DEFAULT_PUZZLE_THEME = "cyberpunk"


def get_puzzle_theme(theme: str) -> PuzzleTheme:
    """
    Palette for ``theme``.

    Raises:
        ValueError: ``theme`` is not a non-empty string
    """
    if not isinstance(theme, str) or not theme.strip():
        raise ValueError(f"Puzzle theme must be a non-empty string, got {theme!r}")
    if theme in PUZZLE_THEMES:
        return PUZZLE_THEMES[theme]
    custom = theme.strip()
    return replace(
        PUZZLE_THEMES[DEFAULT_PUZZLE_THEME],
        key=custom,
        name=custom,
        description=f"A custom puzzle world: {custom}.",
    )
