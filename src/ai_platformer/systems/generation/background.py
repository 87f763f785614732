"""
Background rendering for the platformer.

Supports:
- Theme gradient (default): 3-stop vertical gradient
- Image background with horizontal tiling and parallax scrolling
- A drifting star field drawn on top of either
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import jax
import jax.numpy as jnp
import numpy as np

from ...utils.shapes import blend_mask_color, circle_mask, lerp_color, paint_patch


@dataclass
class BackgroundConfig:
    """Configuration for background rendering."""

    mode: str = "gradient"  # "gradient" or "image"
    image_path: Optional[str] = None
    parallax_factor: float = 0.5  # image scroll speed relative to the camera

    # Star field
    star_count: int = 50
    star_drift: float = 0.5     # offset gained per tick
    star_parallax: float = 0.3  # share of the offset applied to star x


def gradient_background(stops: jnp.ndarray, H: int, W: int) -> jnp.ndarray:
    """
    Vertical gradient through three color stops.

    Args:
        stops: (3, 3) uint8, top / middle / bottom colors
        H: Height in pixels
        W: Width in pixels

    Returns:
        (H, W, 3) uint8
    """
    t = jnp.arange(H, dtype=jnp.float32) / max(H - 1, 1)
    upper = lerp_color(stops[0], stops[1], jnp.clip(t * 2.0, 0.0, 1.0))
    lower = lerp_color(stops[1], stops[2], jnp.clip(t * 2.0 - 1.0, 0.0, 1.0))
    rows = jnp.where((t < 0.5)[:, None], upper, lower)
    rows = jnp.clip(jnp.round(rows), 0, 255).astype(jnp.uint8)
    return jnp.broadcast_to(rows[:, None, :], (H, W, 3))


def draw_star_field(img: jnp.ndarray, tick: jnp.ndarray, cfg: BackgroundConfig) -> jnp.ndarray:
    """
    Star ``i`` sits at x = (157 i + parallax * offset) mod W, y = 73 i mod H,
    where offset grows by ``star_drift`` per tick. Size and brightness cycle
    with ``i mod 3``.
    """
    H, W = img.shape[:2]
    offset = tick.astype(jnp.float32) * cfg.star_drift

    def draw_star(i, img):
        fi = i.astype(jnp.float32)
        band = (i % 3).astype(jnp.float32)
        sx = jnp.mod(fi * 157.0 + offset * cfg.star_parallax, float(W))
        sy = jnp.mod(fi * 73.0, float(H))
        radius = 0.5 * (band + 1.0) + 0.25
        alpha = 0.3 + band * 0.2

        def draw_fn(patch, lcx, lcy):
            m = circle_mask(8, 8, lcx, lcy, radius)
            return blend_mask_color(patch, m, jnp.array([255, 255, 255], jnp.uint8), alpha)

        return paint_patch(img, sx, sy, 8, draw_fn)

    return jax.lax.fori_loop(0, cfg.star_count, draw_star, img)


def load_background_image(
    image_path: str,
    target_height: int,
    target_width: Optional[int] = None,
) -> jnp.ndarray:
    """
    Load and resize a background image for JAX rendering.

    Args:
        image_path: Path to image file (jpeg, png, etc.)
        target_height: Target height in pixels (aspect ratio kept if width not set)
        target_width: Optional exact target width

    Returns:
        (H, W, 3) uint8 JAX array
    """
    from PIL import Image

    img_path = Path(image_path)
    if not img_path.exists():
        raise FileNotFoundError(f"Background image not found: {image_path}")

    img = Image.open(img_path)
    if img.mode != "RGB":
        img = img.convert("RGB")

    if target_width is not None:
        img = img.resize((target_width, target_height), Image.LANCZOS)
    else:
        aspect_ratio = img.width / img.height
        img = img.resize((int(target_height * aspect_ratio), target_height), Image.LANCZOS)

    return jnp.array(np.array(img, dtype=np.uint8))


def render_background(
    stops: jnp.ndarray,
    bg_image: Optional[jnp.ndarray],
    camera_x: jnp.ndarray,
    tick: jnp.ndarray,
    H: int,
    W: int,
    cfg: BackgroundConfig,
) -> jnp.ndarray:
    """
    Base layer: gradient (or parallax-scrolled image) plus star field.

    Args:
        stops: (3, 3) uint8 theme gradient
        bg_image: Optional (H_bg, W_bg, 3) uint8 image, used when mode == "image"
        camera_x: Camera x position in world coordinates
        tick: Game tick, drives the star drift
        H, W: Screen size
        cfg: Background configuration

    Returns:
        (H, W, 3) uint8
    """
    if cfg.mode == "image" and bg_image is not None:
        bg_H, bg_W = bg_image.shape[:2]
        shift = jnp.round(camera_x * cfg.parallax_factor).astype(jnp.int32)
        ys = jnp.clip(jnp.arange(H, dtype=jnp.int32), 0, bg_H - 1)[:, None]
        xs = (jnp.arange(W, dtype=jnp.int32)[None, :] + shift) % bg_W
        img = bg_image[ys, xs]
    elif cfg.mode in ("gradient", "image"):
        img = gradient_background(stops, H, W)
    else:
        raise ValueError(f"Unknown background mode: {cfg.mode}")

    if cfg.star_count > 0:
        img = draw_star_field(img, tick, cfg)
    return img
