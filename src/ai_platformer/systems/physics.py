from __future__ import annotations

import jax
import jax.numpy as jnp
from flax import struct

from ..entities.player import PlayerConfig, PlayerState
from .platforms import PlatformState

# Tolerance for edge comparisons after float snapping.
CONTACT_EPS = 1e-3


@struct.dataclass
class PhysicsConfig:
    """World physics parameters.

    All velocities and accelerations in pixels per tick.

    Attributes
    ----------
    gravity : float
        Downward acceleration in px/tick^2 (default: 0.5)
    terminal_velocity : float
        Maximum fall speed in px/tick (default: 15.0)
    friction : float
        Horizontal velocity multiplier per tick with no input held (default: 0.8)
    world_bottom : float
        Falling below this y is a damage event plus respawn (default: 600)
    platform_speed : float
        Moving platform speed in px/tick (default: 1.0)
    """
    gravity: float = 0.5              # downward acceleration (px/tick^2)
    terminal_velocity: float = 15.0   # max fall speed (px/tick)
    friction: float = 0.8             # vx multiplier with no horizontal input
    world_bottom: float = 600.0       # fall-out threshold (world y)
    platform_speed: float = 1.0       # moving platform speed (px/tick)


def aabb_overlap(ax, ay, aw, ah, bx, by, bw, bh) -> jnp.ndarray:
    """Strict axis-aligned box overlap; broadcasts over array arguments."""
    return (ax < bx + bw) & (ax + aw > bx) & (ay < by + bh) & (ay + ah > by)


def apply_player_input(
    player: PlayerState,
    left: jnp.ndarray,
    right: jnp.ndarray,
    jump: jnp.ndarray,
    cfg: PhysicsConfig,
    player_cfg: PlayerConfig,
) -> PlayerState:
    """
    Update player velocity from input and integrate position.

    Order:
        1. Horizontal: left wins over right; no input decays vx by friction
        2. Jump: only when grounded, sets vy = -jump_power
        3. Gravity: vy += gravity, capped at terminal velocity
        4. Position: x += vx, y += vy
    """
    vx = jnp.where(
        left, -player_cfg.speed,
        jnp.where(right, player_cfg.speed, player.vx * cfg.friction),
    ).astype(jnp.float32)
    facing = jnp.where(left, -1, jnp.where(right, 1, player.facing)).astype(jnp.int32)

    vy = jnp.where(jump & player.on_ground, -player_cfg.jump_power, player.vy)
    vy = jnp.minimum(vy + cfg.gravity, cfg.terminal_velocity).astype(jnp.float32)

    return player.replace(
        x=player.x + vx,
        y=player.y + vy,
        vx=vx,
        vy=vy,
        facing=facing,
    )


def resolve_platform_collisions(
    player: PlayerState,
    platforms: PlatformState,
    player_cfg: PlayerConfig,
) -> PlayerState:
    """
    Push the player out of every overlapping platform.

    Platforms are visited in order and each sees the position left by the
    previous one. For an overlapping platform the cases are checked in this
    priority:

    - landing: falling (vy > 0) and the bottom edge was at or above the
      platform top before this tick's move; snap onto the top, vy = 0,
      grounded
    - underside: rising (vy < 0) and the top edge was at or below the
      platform bottom; snap below, vy = 0
    - side: push out against the direction of travel, vx = 0

    ``on_ground`` is recomputed from scratch each tick.
    """
    w = player_cfg.width
    h = player_cfg.height

    def body(carry, plat):
        x, y, vx, vy, on_ground = carry
        px, py, pw, ph = plat
        hit = aabb_overlap(x, y, w, h, px, py, pw, ph)

        landing = hit & (vy > 0) & (y + h - vy <= py + CONTACT_EPS)
        underside = hit & ~landing & (vy < 0) & (y - vy >= py + ph - CONTACT_EPS)
        side = hit & ~landing & ~underside

        y = jnp.where(landing, py - h, jnp.where(underside, py + ph, y))
        vy = jnp.where(landing | underside, 0.0, vy).astype(jnp.float32)
        x = jnp.where(
            side & (vx > 0), px - w,
            jnp.where(side & (vx < 0), px + pw, x),
        )
        vx = jnp.where(side, 0.0, vx).astype(jnp.float32)
        return (x, y, vx, vy, on_ground | landing), None

    init = (
        jnp.asarray(player.x, jnp.float32),
        jnp.asarray(player.y, jnp.float32),
        jnp.asarray(player.vx, jnp.float32),
        jnp.asarray(player.vy, jnp.float32),
        jnp.array(False),
    )
    (x, y, vx, vy, on_ground), _ = jax.lax.scan(
        body, init, (platforms.x, platforms.y, platforms.width, platforms.height)
    )
    return player.replace(x=x, y=y, vx=vx, vy=vy, on_ground=on_ground)
