"""
Raster mask utilities for the JAX renderer (pure JAX, jit-friendly).

Notes
-----
- Image coordinates: x rightwards, y downwards.
- Masks are (H, W) bool arrays; H and W must be static Python ints.
- Positions, sizes and colors may be traced JAX scalars.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp


# ---------------------------------------------------------------------
# Fixed palette
# ---------------------------------------------------------------------

COLORS = {
    "white": (255, 255, 255),
    "black": (0, 0, 0),
    "red": (255, 0, 0),
    "heart": (255, 23, 68),        # #ff1744
    "heart_empty": (68, 68, 68),   # #444444
    "walker": (255, 68, 68),       # #ff4444
    "jumper": (255, 136, 68),      # #ff8844
    "flyer": (255, 68, 255),       # #ff44ff
    "coin_outer": (255, 152, 0),   # #ff9800
    "coin_mid": (255, 193, 7),     # #ffc107
    "coin_inner": (255, 235, 59),  # #ffeb3b
    "pole": (139, 69, 19),         # #8b4513
    "gold": (255, 215, 0),
    "spike": (180, 180, 190),
    "pit": (20, 12, 8),
    "fire": (255, 110, 20),
}


# ---------------------------------------------------------------------
# Coordinates
# ---------------------------------------------------------------------

def coords(H: int, W: int) -> tuple[jnp.ndarray, jnp.ndarray]:
    """Pixel-center coordinate grids, shapes (H, 1) and (1, W)."""
    ys = jnp.arange(H, dtype=jnp.float32)[:, None] + 0.5
    xs = jnp.arange(W, dtype=jnp.float32)[None, :] + 0.5
    return ys, xs


# ---------------------------------------------------------------------
# Masks
# ---------------------------------------------------------------------

def rect_mask(H: int, W: int, x, y, w, h) -> jnp.ndarray:
    """Axis-aligned rectangle with top-left (x, y)."""
    ys, xs = coords(H, W)
    return (xs >= x) & (xs < x + w) & (ys >= y) & (ys < y + h)


def rect_outline_mask(H: int, W: int, x, y, w, h, thickness: float = 2.0) -> jnp.ndarray:
    outer = rect_mask(H, W, x, y, w, h)
    inner = rect_mask(H, W, x + thickness, y + thickness, w - 2 * thickness, h - 2 * thickness)
    return outer & ~inner


def circle_mask(H: int, W: int, cx, cy, radius) -> jnp.ndarray:
    ys, xs = coords(H, W)
    dx = xs - cx
    dy = ys - cy
    return (dx * dx + dy * dy) <= radius * radius


def ellipse_mask(H: int, W: int, cx, cy, rx, ry) -> jnp.ndarray:
    ys, xs = coords(H, W)
    return ((xs - cx) / (rx + 1e-6)) ** 2 + ((ys - cy) / (ry + 1e-6)) ** 2 <= 1.0


def heart_mask(H: int, W: int, cx, cy, size) -> jnp.ndarray:
    """
    Heart of roughly ``size`` x ``size`` pixels centered at (cx, cy).

    Uses the implicit curve (x^2 + y^2 - 1)^3 - x^2 y^3 <= 0 with y flipped
    so the point faces down.
    """
    ys, xs = coords(H, W)
    scale = 0.5 * size / 1.25
    u = (xs - cx) / scale
    v = -(ys - cy) / scale + 0.2
    a = u * u + v * v - 1.0
    return a * a * a - u * u * v * v * v <= 0.0


def polygon_evenodd_mask(H: int, W: int, pts_xy: jnp.ndarray) -> jnp.ndarray:
    """
    Fill a simple polygon with the even-odd rule.

    Casts a ray from every pixel center toward +x and counts edge crossings.

    Args:
        pts_xy: (V, 2) float32 vertices in image coordinates

    Returns:
        (H, W) bool mask
    """
    pts_xy = jnp.asarray(pts_xy, dtype=jnp.float32)
    x0 = pts_xy[:, 0][None, None, :]
    y0 = pts_xy[:, 1][None, None, :]
    x1 = jnp.roll(pts_xy[:, 0], -1)[None, None, :]
    y1 = jnp.roll(pts_xy[:, 1], -1)[None, None, :]

    ys, xs = coords(H, W)
    py = ys[:, :, None]
    px = xs[:, :, None]

    straddles = (y0 > py) != (y1 > py)
    dy = jnp.where(y1 == y0, 1e-12, y1 - y0)
    x_cross = x0 + (py - y0) * (x1 - x0) / dy
    crossings = jnp.sum(straddles & (px < x_cross), axis=-1)
    return (crossings & 1) == 1


# ---------------------------------------------------------------------
# Compositing
# ---------------------------------------------------------------------

def apply_mask_color(img: jnp.ndarray, mask: jnp.ndarray, color) -> jnp.ndarray:
    """Set img[mask] = color (uint8 RGB)."""
    color = jnp.asarray(color).astype(jnp.uint8)
    return jnp.where(mask[:, :, None], color[None, None, :], img)


def blend_mask_color(img: jnp.ndarray, mask: jnp.ndarray, color, alpha) -> jnp.ndarray:
    """
    Alpha-blend ``color`` over ``img`` where ``mask`` is set.

    ``alpha`` may be a scalar or an (H, W) array; the result is uint8.
    """
    color = jnp.asarray(color, dtype=jnp.float32)
    a = jnp.clip(jnp.asarray(alpha, dtype=jnp.float32), 0.0, 1.0)
    a = jnp.where(mask, a, 0.0)
    if a.ndim == 2:
        a = a[:, :, None]
    out = img.astype(jnp.float32) * (1.0 - a) + color * a
    return jnp.clip(jnp.round(out), 0, 255).astype(jnp.uint8)


def lerp_color(c0, c1, t) -> jnp.ndarray:
    """Linear mix of two colors; ``t`` broadcasts against the trailing RGB axis."""
    c0 = jnp.asarray(c0, dtype=jnp.float32)
    c1 = jnp.asarray(c1, dtype=jnp.float32)
    t = jnp.asarray(t, dtype=jnp.float32)[..., None]
    return c0 + (c1 - c0) * t


def paint_patch(img: jnp.ndarray, cx, cy, patch_size: int, draw_fn) -> jnp.ndarray:
    """
    Run ``draw_fn`` on a small square patch centered at (cx, cy).

    Drawing into a (patch_size, patch_size) window is much cheaper than
    building full-frame masks for small sprites. ``draw_fn(patch, lcx, lcy)``
    receives the patch and the center in patch coordinates and returns the
    updated patch. Off-screen centers leave the image untouched.
    """
    H, W = img.shape[:2]
    half = patch_size // 2
    visible = (cx > -half) & (cx < W + half) & (cy > -half) & (cy < H + half)

    padded = jnp.pad(img, ((patch_size, patch_size), (patch_size, patch_size), (0, 0)))
    icx = jnp.clip(jnp.round(cx), -patch_size, W + patch_size).astype(jnp.int32)
    icy = jnp.clip(jnp.round(cy), -patch_size, H + patch_size).astype(jnp.int32)
    y0 = icy - half + patch_size
    x0 = icx - half + patch_size
    patch = jax.lax.dynamic_slice(padded, (y0, x0, 0), (patch_size, patch_size, 3))

    local_cx = (cx - icx) + float(half)
    local_cy = (cy - icy) + float(half)
    patch = draw_fn(patch, local_cx, local_cy)

    padded = jax.lax.dynamic_update_slice(padded, patch, (y0, x0, 0))
    out = padded[patch_size:patch_size + H, patch_size:patch_size + W]
    return jnp.where(visible, out, img)
