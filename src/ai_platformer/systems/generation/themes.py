"""
Theme table for generated levels.

A theme is a named palette: a 3-stop background gradient plus platform,
accent and particle colors. Colors are stored as hex strings (the way level
designers write them) and converted to RGB tuples for rendering.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Theme:
    """Visual palette applied to a level.

    Attributes
    ----------
    key : str
        Lookup key in ``THEMES`` (e.g. ``"forest"``)
    name : str
        Display name used in generation prompts and the HUD
    description : str
        One-line flavor text embedded in generation prompts
    background : tuple[str, str, str]
        Top, middle and bottom gradient stops
    platform : str
        Platform base color
    accent : str
        Platform border, player body and goal flag color
    particle : str
        Collection burst color
    """
    key: str
    name: str
    description: str
    background: tuple[str, str, str]
    platform: str
    accent: str
    particle: str

    def rgb(self) -> dict[str, tuple]:
        """All theme colors as RGB tuples, keyed like the attributes."""
        return {
            "background": tuple(hex_to_rgb(c) for c in self.background),
            "platform": hex_to_rgb(self.platform),
            "accent": hex_to_rgb(self.accent),
            "particle": hex_to_rgb(self.particle),
        }


THEMES: dict[str, Theme] = {
    "forest": Theme(
        key="forest",
        name="Forest Adventure",
        description="Lush green platforms among ancient trees",
        background=("#1a4d2e", "#2d5a3d", "#4a7c59"),
        platform="#8b4513",
        accent="#90ee90",
        particle="#7cfc00",
    ),
    "mountain": Theme(
        key="mountain",
        name="Mountain Peak",
        description="Rocky platforms reaching for the sky",
        background=("#4a5568", "#718096", "#a0aec0"),
        platform="#8b8989",
        accent="#e0f2fe",
        particle="#bfdbfe",
    ),
    "ocean": Theme(
        key="ocean",
        name="Ocean Depths",
        description="Floating platforms above crystal waters",
        background=("#0c4a6e", "#075985", "#0369a1"),
        platform="#1e40af",
        accent="#7dd3fc",
        particle="#67e8f9",
    ),
    "volcanic": Theme(
        key="volcanic",
        name="Volcanic Chaos",
        description="Dangerous platforms over molten lava",
        background=("#7c2d12", "#991b1b", "#b91c1c"),
        platform="#44403c",
        accent="#fb923c",
        particle="#fbbf24",
    ),
    "space": Theme(
        key="space",
        name="Space Odyssey",
        description="Zero-gravity platforms among the stars",
        background=("#0f172a", "#1e1b4b", "#312e81"),
        platform="#4c1d95",
        accent="#c084fc",
        particle="#e9d5ff",
    ),
    "medieval": Theme(
        key="medieval",
        name="Medieval Castle",
        description="Stone platforms in ancient fortresses",
        background=("#44403c", "#57534e", "#78716c"),
        platform="#6b7280",
        accent="#fbbf24",
        particle="#fde047",
    ),
    "cyberpunk": Theme(
        key="cyberpunk",
        name="Cyberpunk City",
        description="Neon-lit platforms in a digital world",
        background=("#1a1a2e", "#16213e", "#0f3460"),
        platform="#e94560",
        accent="#00d9ff",
        particle="#ff00ff",
    ),
    "mushroom": Theme(
        key="mushroom",
        name="Mushroom Kingdom",
        description="Bouncy organic platforms in a magical realm",
        background=("#fef3c7", "#fde68a", "#fcd34d"),
        platform="#dc2626",
        accent="#f87171",
        particle="#fca5a5",
    ),
}


def get_theme(key: str) -> Theme:
    """Look up a theme by key, raising ``ValueError`` for unknown keys."""
    if key not in THEMES:
        raise ValueError(
            f"Unknown theme: {key!r}. "
            f"Available themes: {list(THEMES.keys())}"
        )
    return THEMES[key]


def hex_to_rgb(value: str) -> tuple[int, int, int]:
    """Convert ``"#rrggbb"`` (or ``"rrggbb"``) to an RGB tuple."""
    value = value.lstrip("#")
    if len(value) != 6:
        raise ValueError(f"Expected a 6-digit hex color, got {value!r}")
    return tuple(int(value[i:i + 2], 16) for i in (0, 2, 4))


def _shift(rgb: tuple[int, int, int], amount: int) -> tuple[int, int, int]:
    return tuple(max(0, min(255, c + amount)) for c in rgb)


def lighten(color: str | tuple, percent: float) -> tuple[int, int, int]:
    """Brighten every channel by ``round(2.55 * percent)``, clamped to 255."""
    rgb = hex_to_rgb(color) if isinstance(color, str) else tuple(color)
    return _shift(rgb, round(2.55 * percent))


def darken(color: str | tuple, percent: float) -> tuple[int, int, int]:
    """Darken every channel by ``round(2.55 * percent)``, clamped to 0."""
    rgb = hex_to_rgb(color) if isinstance(color, str) else tuple(color)
    return _shift(rgb, -round(2.55 * percent))
