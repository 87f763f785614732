from __future__ import annotations

import jax.numpy as jnp
from flax import struct

from ..systems.physics import aabb_overlap

COIN = 0
POWERUP = 1

COLLECTIBLE_TYPE_IDS = {"coin": COIN, "powerup": POWERUP}


@struct.dataclass
class CollectibleConfig:
    """Pickup parameters.

    Attributes
    ----------
    size : float
        Square collision box edge in px (default: 20)
    coin_score : int
        Score per coin (default: 10)
    powerup_score : int
        Score per powerup (default: 50)
    powerup_heal : int
        Health restored by a powerup (default: 1)
    bob_speed : float
        Bob phase advance per tick in radians (default: 0.05)
    bob_amplitude : float
        Vertical bob in px, render only (default: 5)
    spin_speed : float
        Rotation advance per tick in radians (default: 0.1)
    """
    size: float = 20.0
    coin_score: int = 10
    powerup_score: int = 50
    powerup_heal: int = 1
    bob_speed: float = 0.05
    bob_amplitude: float = 5.0
    spin_speed: float = 0.1


@struct.dataclass
class CollectibleState:
    x: jnp.ndarray          # (C,) float32
    y: jnp.ndarray          # (C,) float32
    kind: jnp.ndarray       # (C,) int32, COIN / POWERUP
    collected: jnp.ndarray  # (C,) bool
    bob: jnp.ndarray        # (C,) float32, phase in radians
    rotation: jnp.ndarray   # (C,) float32, radians


def collect(
    items: CollectibleState,
    px: jnp.ndarray,
    py: jnp.ndarray,
    pw: float,
    ph: float,
    cfg: CollectibleConfig,
) -> tuple[CollectibleState, jnp.ndarray]:
    """
    Mark items touched by the player as collected.

    Collision uses the resting position (bob is cosmetic). Items already
    collected never trigger again.

    Returns:
        (items, picked) where ``picked`` is a (C,) bool mask of items
        collected this tick
    """
    hit = aabb_overlap(px, py, pw, ph, items.x, items.y, cfg.size, cfg.size)
    picked = hit & ~items.collected
    return items.replace(collected=items.collected | picked), picked


def animate_collectibles(items: CollectibleState, cfg: CollectibleConfig) -> CollectibleState:
    """Advance bob phase and rotation of every item, collected or not; the renderer skips collected ones."""
    return items.replace(
        bob=items.bob + cfg.bob_speed,
        rotation=items.rotation + cfg.spin_speed,
    )


def bob_offset(items: CollectibleState, cfg: CollectibleConfig) -> jnp.ndarray:
    """Vertical render offset of each item."""
    return jnp.sin(items.bob) * cfg.bob_amplitude
