from __future__ import annotations

import jax.numpy as jnp
from flax import struct


@struct.dataclass
class PlatformState:
    """
    Level platforms as parallel arrays.

    Moving platforms oscillate around ``origin_x``: every tick ``offset``
    advances by ``direction * speed`` and the direction flips once
    ``|offset|`` exceeds ``move_range``.
    """
    x: jnp.ndarray           # (P,) float32, current left edge
    y: jnp.ndarray           # (P,) float32, top edge
    width: jnp.ndarray       # (P,) float32
    height: jnp.ndarray      # (P,) float32
    moving: jnp.ndarray      # (P,) bool
    move_range: jnp.ndarray  # (P,) float32
    origin_x: jnp.ndarray    # (P,) float32, anchor for moving platforms
    offset: jnp.ndarray      # (P,) float32
    direction: jnp.ndarray   # (P,) float32, +1 or -1


def update_moving_platforms(platforms: PlatformState, speed: float = 1.0) -> PlatformState:
    m = platforms.moving
    offset = jnp.where(m, platforms.offset + platforms.direction * speed, platforms.offset)
    flip = m & (jnp.abs(offset) > platforms.move_range)
    direction = jnp.where(flip, -platforms.direction, platforms.direction)
    return platforms.replace(
        x=jnp.where(m, platforms.origin_x + offset, platforms.x),
        offset=offset,
        direction=direction,
    )
