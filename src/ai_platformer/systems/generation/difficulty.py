"""Difficulty presets keyed by level number."""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class Difficulty:
    """Generation parameters for one level.

    Distances are in world units (pixels at 1:1 zoom). ``min_gap``/``max_gap``
    bound the vertical spacing between platforms, the ``*_horizontal_gap``
    pair bounds the horizontal spacing.
    """
    description: str
    platform_count: int
    min_platform_width: float
    max_platform_width: float
    min_gap: float
    max_gap: float
    min_horizontal_gap: float
    max_horizontal_gap: float
    enemy_count: int
    collectible_count: int
    hazard_count: int
    moving_platforms: int
    level_length: float

    def to_dict(self) -> dict:
        return asdict(self)


DIFFICULTY_PRESETS: dict[int, Difficulty] = {
    1: Difficulty(
        description="Easy - Wide platforms, simple jumps",
        platform_count=12,
        min_platform_width=150, max_platform_width=250,
        min_gap=80, max_gap=120,
        min_horizontal_gap=100, max_horizontal_gap=200,
        enemy_count=0, collectible_count=5, hazard_count=0,
        moving_platforms=0, level_length=2000,
    ),
    2: Difficulty(
        description="Medium - Narrower platforms, some enemies",
        platform_count=15,
        min_platform_width=120, max_platform_width=200,
        min_gap=90, max_gap=140,
        min_horizontal_gap=120, max_horizontal_gap=250,
        enemy_count=2, collectible_count=8, hazard_count=1,
        moving_platforms=2, level_length=2500,
    ),
    3: Difficulty(
        description="Hard - Precise jumps, more enemies",
        platform_count=18,
        min_platform_width=100, max_platform_width=180,
        min_gap=100, max_gap=160,
        min_horizontal_gap=140, max_horizontal_gap=280,
        enemy_count=4, collectible_count=10, hazard_count=3,
        moving_platforms=3, level_length=3000,
    ),
}

MAX_MOVING_PLATFORMS = 8


def calculate_difficulty(level_number: int) -> Difficulty:
    """
    Difficulty for a level number.

    Levels 1-3 use the hand-tuned presets. Past level 3 every parameter of
    preset 3 scales linearly with ``k = level_number - 3``: platform count
    grows 15% per level, widths shrink toward a floor, gap ranges widen,
    enemy and hazard counts grow by one per level and moving platforms are
    capped at ``MAX_MOVING_PLATFORMS``.

    Raises:
        ValueError: if ``level_number`` is not a positive integer
    """
    if isinstance(level_number, bool) or not isinstance(level_number, int) or level_number < 1:
        raise ValueError(f"level_number must be a positive integer, got {level_number!r}")

    if level_number in DIFFICULTY_PRESETS:
        return DIFFICULTY_PRESETS[level_number]

    k = level_number - 3
    scale = 1 + k * 0.15
    return Difficulty(
        description=f"Very Hard - Level {level_number}",
        platform_count=math.floor(18 * scale),
        min_platform_width=max(80, 100 - k * 5),
        max_platform_width=max(120, 180 - k * 10),
        min_gap=100 + k * 10,
        max_gap=160 + k * 15,
        min_horizontal_gap=140 + k * 10,
        max_horizontal_gap=280 + k * 20,
        enemy_count=4 + k,
        collectible_count=10 + k * 2,
        hazard_count=3 + k,
        moving_platforms=min(3 + k, MAX_MOVING_PLATFORMS),
        level_length=3000 + k * 500,
    )
