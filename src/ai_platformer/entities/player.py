from __future__ import annotations

import jax.numpy as jnp
from flax import struct


@struct.dataclass
class PlayerConfig:
    """Player body and health parameters.

    Attributes
    ----------
    width, height : float
        Collision box in px (default: 30 x 40)
    speed : float
        Horizontal speed while a direction key is held, px/tick (default: 5)
    jump_power : float
        Upward speed applied on jump, px/tick (default: 12)
    max_health : int
        Health cap, also the starting health (default: 3)
    invincible_ticks : int
        Invincibility window after taking damage (default: 120)
    spawn_x, spawn_y : float
        Respawn position after falling out of the world (default: 100, 300)
    """
    width: float = 30.0
    height: float = 40.0
    speed: float = 5.0
    jump_power: float = 12.0
    max_health: int = 3
    invincible_ticks: int = 120
    spawn_x: float = 100.0
    spawn_y: float = 300.0


@struct.dataclass
class PlayerState:
    x: jnp.ndarray                 # float32 scalar, top-left x (world)
    y: jnp.ndarray                 # float32 scalar, top-left y (world, y down)
    vx: jnp.ndarray                # float32 scalar
    vy: jnp.ndarray                # float32 scalar
    on_ground: jnp.ndarray         # bool scalar
    health: jnp.ndarray            # int32 scalar in [0, max_health]
    invincible: jnp.ndarray        # bool scalar
    invincible_timer: jnp.ndarray  # int32 scalar, ticks left
    coins: jnp.ndarray             # int32 scalar
    facing: jnp.ndarray            # int32 scalar, +1 right / -1 left


def init_player(cfg: PlayerConfig) -> PlayerState:
    return PlayerState(
        x=jnp.float32(cfg.spawn_x),
        y=jnp.float32(cfg.spawn_y),
        vx=jnp.float32(0.0),
        vy=jnp.float32(0.0),
        on_ground=jnp.array(False),
        health=jnp.int32(cfg.max_health),
        invincible=jnp.array(False),
        invincible_timer=jnp.int32(0),
        coins=jnp.int32(0),
        facing=jnp.int32(1),
    )


def take_damage(
    player: PlayerState,
    cfg: PlayerConfig,
    hit: jnp.ndarray = True,
) -> tuple[PlayerState, jnp.ndarray]:
    """
    Apply one damage event if ``hit`` and the player is not invincible.

    Damage costs one health point (never below 0) and starts the
    invincibility window, so repeated hits in the same window are ignored.

    Returns:
        (player, damaged) where ``damaged`` is a bool scalar
    """
    damaged = jnp.asarray(hit) & ~player.invincible
    player = player.replace(
        health=jnp.where(damaged, jnp.maximum(player.health - 1, 0), player.health),
        invincible=player.invincible | damaged,
        invincible_timer=jnp.where(damaged, jnp.int32(cfg.invincible_ticks), player.invincible_timer),
    )
    return player, damaged


def heal(player: PlayerState, amount: jnp.ndarray, cfg: PlayerConfig) -> PlayerState:
    """Add ``amount`` health, capped at ``max_health``."""
    health = jnp.minimum(player.health + jnp.asarray(amount, jnp.int32), cfg.max_health)
    return player.replace(health=health)


def tick_invincibility(player: PlayerState) -> PlayerState:
    timer = jnp.where(player.invincible, player.invincible_timer - 1, player.invincible_timer)
    still = player.invincible & (timer > 0)
    return player.replace(
        invincible=still,
        invincible_timer=jnp.where(still, timer, 0),
    )


def respawn(player: PlayerState, cfg: PlayerConfig, do_respawn: jnp.ndarray) -> PlayerState:
    """Move the player back to the spawn point and stop it."""
    return player.replace(
        x=jnp.where(do_respawn, jnp.float32(cfg.spawn_x), player.x),
        y=jnp.where(do_respawn, jnp.float32(cfg.spawn_y), player.y),
        vx=jnp.where(do_respawn, 0.0, player.vx),
        vy=jnp.where(do_respawn, 0.0, player.vy),
    )
