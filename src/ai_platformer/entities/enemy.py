"""
Enemy behaviors.

Three variants share one set of arrays and are dispatched with masks:

- walker: patrols ``origin_x +/- range``, falls under gravity, lands on platforms
- jumper: walker that also hops every ``jump_interval`` ticks
- flyer: patrols horizontally and bobs on ``sin(0.05 * x)``, ignores platforms
"""
from __future__ import annotations

import jax
import jax.numpy as jnp
from flax import struct

from ..systems.physics import aabb_overlap
from ..systems.platforms import PlatformState

WALKER = 0
JUMPER = 1
FLYER = 2

ENEMY_TYPE_IDS = {"walker": WALKER, "jumper": JUMPER, "flyer": FLYER}


@struct.dataclass
class EnemyConfig:
    """Enemy parameters.

    Attributes
    ----------
    width, height : float
        Collision box in px (default: 25 x 25)
    ground_speed : float
        Patrol speed of walkers and jumpers (default: 2.0)
    flyer_speed : float
        Patrol speed of flyers (default: 1.5)
    gravity : float
        Gravity for walkers and jumpers (default: 0.5)
    jump_interval : int
        Ticks between jumper hops (default: 60)
    jump_velocity : float
        Upward speed of a hop (default: 8.0)
    flyer_wave_freq, flyer_wave_amp : float
        Flyer y changes by ``sin(freq * x) * amp`` per tick (default: 0.05, 2.0)
    stomp_bounce : float
        Upward speed given to the player after a stomp (default: 8.0)
    stomp_score : int
        Points for a stomp (default: 25)
    """
    width: float = 25.0
    height: float = 25.0
    ground_speed: float = 2.0
    flyer_speed: float = 1.5
    gravity: float = 0.5
    jump_interval: int = 60
    jump_velocity: float = 8.0
    flyer_wave_freq: float = 0.05
    flyer_wave_amp: float = 2.0
    stomp_bounce: float = 8.0
    stomp_score: int = 25


@struct.dataclass
class EnemyState:
    x: jnp.ndarray           # (E,) float32
    y: jnp.ndarray           # (E,) float32
    vx: jnp.ndarray          # (E,) float32
    vy: jnp.ndarray          # (E,) float32
    kind: jnp.ndarray        # (E,) int32, WALKER / JUMPER / FLYER
    patrol_range: jnp.ndarray  # (E,) float32
    origin_x: jnp.ndarray    # (E,) float32
    active: jnp.ndarray      # (E,) bool
    jump_timer: jnp.ndarray  # (E,) int32


def update_enemies(
    enemies: EnemyState,
    platforms: PlatformState,
    cfg: EnemyConfig,
) -> EnemyState:
    """
    Advance every active enemy one tick.

    Patrol reversal happens when ``|x - origin_x| > patrol_range`` after the
    move. Ground variants then apply gravity and land on any platform they
    overlap while falling. Inactive enemies are left untouched.
    """
    is_flyer = enemies.kind == FLYER
    is_jumper = enemies.kind == JUMPER
    grounded_kind = ~is_flyer

    x = enemies.x + enemies.vx
    reverse = jnp.abs(x - enemies.origin_x) > enemies.patrol_range
    vx = jnp.where(reverse, -enemies.vx, enemies.vx)

    timer = jnp.where(is_jumper, enemies.jump_timer + 1, enemies.jump_timer)
    hop = is_jumper & (timer >= cfg.jump_interval)
    timer = jnp.where(hop, 0, timer)
    vy = jnp.where(hop, -cfg.jump_velocity, enemies.vy)

    vy = jnp.where(grounded_kind, vy + cfg.gravity, vy)
    y = jnp.where(
        grounded_kind,
        enemies.y + vy,
        enemies.y + jnp.sin(x * cfg.flyer_wave_freq) * cfg.flyer_wave_amp,
    )

    def land(carry, plat):
        y, vy = carry
        px, py, pw, ph = plat
        hit = aabb_overlap(x, y, cfg.width, cfg.height, px, py, pw, ph)
        landing = grounded_kind & hit & (vy > 0)
        y = jnp.where(landing, py - cfg.height, y)
        vy = jnp.where(landing, 0.0, vy)
        return (y.astype(jnp.float32), vy.astype(jnp.float32)), None

    (y, vy), _ = jax.lax.scan(
        land,
        (y.astype(jnp.float32), vy.astype(jnp.float32)),
        (platforms.x, platforms.y, platforms.width, platforms.height),
    )

    a = enemies.active
    return enemies.replace(
        x=jnp.where(a, x, enemies.x),
        y=jnp.where(a, y, enemies.y),
        vx=jnp.where(a, vx, enemies.vx),
        vy=jnp.where(a, vy, enemies.vy),
        jump_timer=jnp.where(a, timer, enemies.jump_timer).astype(jnp.int32),
    )


def enemy_contacts(
    px: jnp.ndarray,
    py: jnp.ndarray,
    pw: float,
    ph: float,
    enemies: EnemyState,
    cfg: EnemyConfig,
) -> jnp.ndarray:
    """(E,) bool: active enemies overlapping the player box."""
    return enemies.active & aabb_overlap(px, py, pw, ph, enemies.x, enemies.y, cfg.width, cfg.height)


def stomp_mask(
    contacts: jnp.ndarray,
    py: jnp.ndarray,
    pvy: jnp.ndarray,
    ph: float,
    enemies: EnemyState,
    cfg: EnemyConfig,
) -> jnp.ndarray:
    """(E,) bool: contacts where the player came down on the enemy's top half."""
    prev_bottom = py + ph - pvy
    return contacts & (pvy > 0) & (prev_bottom <= enemies.y + 0.5 * cfg.height)
