from __future__ import annotations

import jax.numpy as jnp
from flax import struct


@struct.dataclass
class CameraConfig:
    """Smoothed follow camera.

    The camera eases toward keeping the player ``lead_fraction`` of the way
    across the screen, closing ``smoothing`` of the remaining distance each
    tick, and never scrolls left of the world origin.

    Attributes
    ----------
    smoothing : float
        Fraction of the remaining distance covered per tick (default: 0.1)
    lead_fraction : float
        Target player screen position as a fraction of width (default: 1/3)
    """
    smoothing: float = 0.1
    lead_fraction: float = 1.0 / 3.0


def update_camera(
    camera_x: jnp.ndarray,
    player_x: jnp.ndarray,
    screen_width: int,
    cfg: CameraConfig,
) -> jnp.ndarray:
    """
    Advance the camera one tick.

    Args:
        camera_x: Current camera x (world space), float32 scalar
        player_x: Player left edge (world space), float32 scalar
        screen_width: Viewport width in pixels
        cfg: Camera configuration

    Returns:
        Updated camera_x, float32 scalar, always >= 0
    """
    target = player_x - screen_width * cfg.lead_fraction
    camera_x = camera_x + (target - camera_x) * cfg.smoothing
    return jnp.maximum(camera_x, 0.0).astype(jnp.float32)


def world_to_screen(world_x: jnp.ndarray, camera_x: jnp.ndarray) -> jnp.ndarray:
    return world_x - camera_x
