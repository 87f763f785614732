"""
Level description model, repair pass and procedural fallback.

A ``LevelDescription`` is immutable once built. Raw level data (parsed from a
generation response, or produced by the fallback) always goes through
``repair_level`` so that every level handed to the game satisfies:

- exactly one goal;
- the first platform is the spawn platform;
- every platform has positive width/height and a y inside the play band.
"""
from __future__ import annotations

import math
import zlib
from dataclasses import asdict, dataclass
from typing import Any, Optional

import jax
import numpy as np

from .difficulty import Difficulty


# ============================================================================
# Constants
# ============================================================================

PLATFORM_HEIGHT = 20.0
FLOAT32_MAX = float(np.finfo(np.float32).max)
MIN_PLATFORM_Y = 200.0
MAX_PLATFORM_Y = 500.0

ENEMY_TYPES = ("walker", "jumper", "flyer")
COLLECTIBLE_TYPES = ("coin", "powerup")
HAZARD_TYPES = ("spike", "pit", "fire")

# Goal placement relative to the last platform
GOAL_OFFSET_X = 100.0
GOAL_OFFSET_Y = -50.0

SOURCE_AI = "ai"
SOURCE_FALLBACK = "fallback"


# ============================================================================
# Level data model
# ============================================================================

@dataclass(frozen=True)
class Platform:
    x: float
    y: float
    width: float
    height: float = PLATFORM_HEIGHT
    moving: bool = False
    move_range: float = 0.0


@dataclass(frozen=True)
class EnemySpawn:
    x: float
    y: float
    type: str = "walker"
    range: float = 100.0


@dataclass(frozen=True)
class CollectibleSpawn:
    x: float
    y: float
    type: str = "coin"


@dataclass(frozen=True)
class Hazard:
    x: float
    y: float
    width: float = 50.0
    type: str = "spike"


@dataclass(frozen=True)
class Goal:
    x: float
    y: float


SPAWN_PLATFORM = Platform(x=100.0, y=400.0, width=200.0, height=PLATFORM_HEIGHT)


@dataclass(frozen=True)
class LevelDescription:
    """
    A complete, repaired level.

    Attributes
    ----------
    theme : str
        Theme key (see ``themes.THEMES``)
    level_number : int
        1-based level index
    platforms, enemies, collectibles, hazards : tuple
        Spawn data in world coordinates (y grows downward)
    goal : Goal
        Top-left corner of the goal flag rectangle
    source : str
        ``"ai"`` when the layout came from the generation service,
        ``"fallback"`` when it was produced procedurally
    """
    theme: str
    level_number: int
    platforms: tuple[Platform, ...]
    enemies: tuple[EnemySpawn, ...]
    collectibles: tuple[CollectibleSpawn, ...]
    hazards: tuple[Hazard, ...]
    goal: Goal
    source: str = SOURCE_FALLBACK

    @property
    def used_fallback(self) -> bool:
        return self.source == SOURCE_FALLBACK

    def to_dict(self) -> dict:
        """JSON-friendly dict using the generation response key names."""
        return {
            "theme": self.theme,
            "levelNumber": self.level_number,
            "source": self.source,
            "platforms": [
                {"x": p.x, "y": p.y, "width": p.width, "height": p.height,
                 "moving": p.moving, "moveRange": p.move_range}
                for p in self.platforms
            ],
            "enemies": [asdict(e) for e in self.enemies],
            "collectibles": [asdict(c) for c in self.collectibles],
            "hazards": [asdict(h) for h in self.hazards],
            "goal": asdict(self.goal),
        }


# ============================================================================
# Repair pass
# ============================================================================

def _number(value: Any, default: float) -> float:
    """
    Numeric field or ``default``.

    Zero, NaN, non-numbers and magnitudes that do not fit in float32 (the
    game state dtype) count as missing.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return float(default)
    try:
        number = float(value)
    except OverflowError:
        return float(default)
    if not math.isfinite(number) or number == 0 or abs(number) > FLOAT32_MAX:
        return float(default)
    return number


def _choice(value: Any, allowed: tuple[str, ...]) -> str:
    return value if value in allowed else allowed[0]


def _entries(raw: dict, key: str) -> list[dict]:
    items = raw.get(key)
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def _repair_platform(p: dict) -> Platform:
    width = _number(p.get("width"), 150.0)
    if width <= 0:
        width = 150.0
    y = _number(p.get("y"), 400.0)
    return Platform(
        x=_number(p.get("x"), 0.0),
        y=min(max(y, MIN_PLATFORM_Y), MAX_PLATFORM_Y),
        width=width,
        height=PLATFORM_HEIGHT,
        moving=p.get("moving") is True,
        move_range=abs(_number(p.get("moveRange", p.get("move_range")), 0.0)),
    )


def repair_level(
    raw: dict,
    theme: str,
    level_number: int,
    source: str = SOURCE_AI,
) -> LevelDescription:
    """
    Validate raw level data and fill in everything that is missing.

    The first platform is always replaced by ``SPAWN_PLATFORM`` (inserted if
    there are no platforms at all). Missing fields are backfilled with
    defaults, platform y is clamped to ``[MIN_PLATFORM_Y, MAX_PLATFORM_Y]``
    and a goal is synthesized next to the last platform when absent.

    Args:
        raw: Dict with (some of) the keys ``platforms``, ``enemies``,
            ``collectibles``, ``hazards``, ``goal``
        theme: Theme key stored on the result
        level_number: Level index stored on the result
        source: ``"ai"`` or ``"fallback"``

    Returns:
        LevelDescription that satisfies the level invariants
    """
    platform_entries = _entries(raw, "platforms")
    platforms = [_repair_platform(p) for p in platform_entries[1:]]
    platforms.insert(0, SPAWN_PLATFORM)

    enemies = [
        EnemySpawn(
            x=_number(e.get("x"), 0.0),
            y=_number(e.get("y"), 400.0),
            type=_choice(e.get("type"), ENEMY_TYPES),
            range=abs(_number(e.get("range"), 100.0)),
        )
        for e in _entries(raw, "enemies")
    ]
    collectibles = [
        CollectibleSpawn(
            x=_number(c.get("x"), 0.0),
            y=_number(c.get("y"), 400.0),
            type=_choice(c.get("type"), COLLECTIBLE_TYPES),
        )
        for c in _entries(raw, "collectibles")
    ]
    hazards = []
    for h in _entries(raw, "hazards"):
        width = _number(h.get("width"), 50.0)
        hazards.append(Hazard(
            x=_number(h.get("x"), 0.0),
            y=_number(h.get("y"), 500.0),
            width=width if width > 0 else 50.0,
            type=_choice(h.get("type"), HAZARD_TYPES),
        ))

    last = platforms[-1]
    default_goal = Goal(x=last.x + GOAL_OFFSET_X, y=last.y + GOAL_OFFSET_Y)
    raw_goal = raw.get("goal")
    if isinstance(raw_goal, dict):
        goal = Goal(
            x=_number(raw_goal.get("x"), default_goal.x),
            y=_number(raw_goal.get("y"), default_goal.y),
        )
    else:
        goal = default_goal

    return LevelDescription(
        theme=theme,
        level_number=level_number,
        platforms=tuple(platforms),
        enemies=tuple(enemies),
        collectibles=tuple(collectibles),
        hazards=tuple(hazards),
        goal=goal,
        source=source,
    )


# ============================================================================
# Procedural fallback
# ============================================================================

COLLECTIBLE_CHANCE = 0.4    # per platform after the first
POWERUP_CHANCE = 0.2        # share of collectibles that are powerups
ENEMY_CHANCE = 0.3          # per platform after the third
FALLBACK_MOVE_RANGE = 50.0
FALLBACK_MIN_Y = 250.0
FALLBACK_Y_SPAN = 200.0


def difficulty_seed(level_number: int, difficulty: Difficulty) -> int:
    """Stable 32-bit seed derived from the level number and difficulty."""
    fields = [str(level_number)] + [str(v) for v in difficulty.to_dict().values()]
    return zlib.crc32("|".join(fields).encode("utf-8"))


def generate_fallback_level(
    theme: str,
    level_number: int,
    difficulty: Difficulty,
    key: Optional[jax.Array] = None,
) -> LevelDescription:
    """
    Deterministic procedural level.

    Walks forward from the spawn point placing ``difficulty.platform_count``
    platforms with widths inside the difficulty bounds. Collectibles roll
    ``COLLECTIBLE_CHANCE`` per platform after the first and are then topped
    up (lowest rolls first) or capped to ``difficulty.collectible_count``.
    Enemies roll ``ENEMY_CHANCE`` per platform after the third, capped at
    ``difficulty.enemy_count``. The goal is placed past the final platform.

    Args:
        theme: Theme key
        level_number: Level index
        difficulty: Parameters from ``calculate_difficulty``
        key: Optional PRNG key; defaults to one seeded by ``difficulty_seed``
            so identical inputs always produce identical levels

    Returns:
        LevelDescription with ``source == "fallback"``
    """
    if key is None:
        key = jax.random.PRNGKey(difficulty_seed(level_number, difficulty))

    n = difficulty.platform_count
    key, k_width, k_gap, k_y = jax.random.split(key, 4)
    key, k_item, k_item_type, k_enemy, k_enemy_type = jax.random.split(key, 5)

    # Draw everything up front; the walk below is plain host-side Python.
    u_width = np.asarray(jax.random.uniform(k_width, (n,)))
    u_gap = np.asarray(jax.random.uniform(k_gap, (n,)))
    u_y = np.asarray(jax.random.uniform(k_y, (n,)))
    u_item = np.asarray(jax.random.uniform(k_item, (n,)))
    u_item_type = np.asarray(jax.random.uniform(k_item_type, (n,)))
    u_enemy = np.asarray(jax.random.uniform(k_enemy, (n,)))
    u_enemy_type = np.asarray(jax.random.uniform(k_enemy_type, (n,)))

    width_span = difficulty.max_platform_width - difficulty.min_platform_width
    gap_span = difficulty.max_horizontal_gap - difficulty.min_horizontal_gap

    platforms = []
    enemies = []
    current_x, current_y = SPAWN_PLATFORM.x, SPAWN_PLATFORM.y
    for i in range(n):
        width = difficulty.min_platform_width + float(u_width[i]) * width_span
        moving = 0 < i <= difficulty.moving_platforms
        platforms.append({
            "x": current_x, "y": current_y, "width": width, "height": PLATFORM_HEIGHT,
            "moving": moving, "moveRange": FALLBACK_MOVE_RANGE if moving else 0.0,
        })

        if i > 2 and u_enemy[i] < ENEMY_CHANCE and len(enemies) < difficulty.enemy_count:
            enemies.append({
                "x": current_x + width / 2, "y": current_y - 30,
                "type": "walker" if u_enemy_type[i] < 0.5 else "jumper",
                "range": 100.0,
            })

        current_x += width + difficulty.min_horizontal_gap + float(u_gap[i]) * gap_span
        current_y = FALLBACK_MIN_Y + float(u_y[i]) * FALLBACK_Y_SPAN

    # Collectibles: chance roll, then top up or cap to the target count.
    count = difficulty.collectible_count
    candidates = list(range(1, n))
    chosen = [i for i in candidates if u_item[i] < COLLECTIBLE_CHANCE][:count]
    if len(chosen) < count:
        rest = sorted((i for i in candidates if i not in chosen), key=lambda i: u_item[i])
        chosen += rest[:count - len(chosen)]
    collectibles = []
    for i in sorted(chosen):
        p = platforms[i]
        collectibles.append({
            "x": p["x"] + p["width"] / 2, "y": p["y"] - 40,
            "type": "powerup" if u_item_type[i] < POWERUP_CHANCE else "coin",
        })

    last = platforms[-1]
    goal = {"x": last["x"] + GOAL_OFFSET_X, "y": last["y"] + GOAL_OFFSET_Y}

    raw = {
        "platforms": platforms,
        "enemies": enemies,
        "collectibles": collectibles,
        "hazards": [],
        "goal": goal,
    }
    return repair_level(raw, theme, level_number, source=SOURCE_FALLBACK)
