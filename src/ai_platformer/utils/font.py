"""
Tiny 3x5 bitmap font for HUD and overlay text.

Static strings are rasterized on the host with NumPy; numbers that live in
the game state are drawn digit by digit inside jit.
"""

from __future__ import annotations

import jax.numpy as jnp
import numpy as np


GLYPH_W = 3
GLYPH_H = 5

_GLYPHS = {
    "0": ("###", "#.#", "#.#", "#.#", "###"),
    "1": (".#.", "##.", ".#.", ".#.", "###"),
    "2": ("###", "..#", "###", "#..", "###"),
    "3": ("###", "..#", ".##", "..#", "###"),
    "4": ("#.#", "#.#", "###", "..#", "..#"),
    "5": ("###", "#..", "###", "..#", "###"),
    "6": ("###", "#..", "###", "#.#", "###"),
    "7": ("###", "..#", ".#.", ".#.", ".#."),
    "8": ("###", "#.#", "###", "#.#", "###"),
    "9": ("###", "#.#", "###", "..#", "###"),
    "A": (".#.", "#.#", "###", "#.#", "#.#"),
    "B": ("##.", "#.#", "##.", "#.#", "##."),
    "C": (".##", "#..", "#..", "#..", ".##"),
    "D": ("##.", "#.#", "#.#", "#.#", "##."),
    "E": ("###", "#..", "##.", "#..", "###"),
    "F": ("###", "#..", "##.", "#..", "#.."),
    "G": (".##", "#..", "#.#", "#.#", ".##"),
    "H": ("#.#", "#.#", "###", "#.#", "#.#"),
    "I": ("###", ".#.", ".#.", ".#.", "###"),
    "J": ("..#", "..#", "..#", "#.#", ".#."),
    "K": ("#.#", "#.#", "##.", "#.#", "#.#"),
    "L": ("#..", "#..", "#..", "#..", "###"),
    "M": ("#.#", "###", "###", "#.#", "#.#"),
    "N": ("##.", "#.#", "#.#", "#.#", "#.#"),
    "O": (".#.", "#.#", "#.#", "#.#", ".#."),
    "P": ("##.", "#.#", "##.", "#..", "#.."),
    "Q": (".#.", "#.#", "#.#", "##.", ".##"),
    "R": ("##.", "#.#", "##.", "#.#", "#.#"),
    "S": (".##", "#..", ".#.", "..#", "##."),
    "T": ("###", ".#.", ".#.", ".#.", ".#."),
    "U": ("#.#", "#.#", "#.#", "#.#", "###"),
    "V": ("#.#", "#.#", "#.#", "#.#", ".#."),
    "W": ("#.#", "#.#", "###", "###", "#.#"),
    "X": ("#.#", "#.#", ".#.", "#.#", "#.#"),
    "Y": ("#.#", "#.#", ".#.", ".#.", ".#."),
    "Z": ("###", "..#", ".#.", "#..", "###"),
    ":": ("...", ".#.", "...", ".#.", "..."),
    "!": (".#.", ".#.", ".#.", "...", ".#."),
    "-": ("...", "...", "###", "...", "..."),
    " ": ("...", "...", "...", "...", "..."),
}


def _glyph(ch: str) -> np.ndarray:
    rows = _GLYPHS.get(ch.upper(), _GLYPHS[" "])
    return np.array([[c == "#" for c in row] for row in rows], dtype=bool)


DIGIT_TABLE = jnp.asarray(np.stack([_glyph(str(d)) for d in range(10)]))  # (10, 5, 3)


def text_size(text: str, scale: int) -> tuple[int, int]:
    """(width, height) in pixels of ``text`` drawn at ``scale``."""
    if not text:
        return 0, GLYPH_H * scale
    return (len(text) * (GLYPH_W + 1) - 1) * scale, GLYPH_H * scale


def text_bitmap(text: str, scale: int) -> np.ndarray:
    """Host-side (h, w) bool bitmap of a static string."""
    w, h = text_size(text, scale)
    out = np.zeros((GLYPH_H, max(w // scale, 0)), dtype=bool)
    for i, ch in enumerate(text):
        x0 = i * (GLYPH_W + 1)
        out[:, x0:x0 + GLYPH_W] = _glyph(ch)
    return np.kron(out, np.ones((scale, scale), dtype=bool))


def _paste(img: jnp.ndarray, bitmap, x: int, y: int, color) -> jnp.ndarray:
    """Paint a bitmap at a static position, clipped to the image."""
    H, W = img.shape[:2]
    h, w = bitmap.shape
    x0, y0 = max(x, 0), max(y, 0)
    x1, y1 = min(x + w, W), min(y + h, H)
    if x1 <= x0 or y1 <= y0:
        return img
    mask = bitmap[y0 - y:y1 - y, x0 - x:x1 - x]
    region = img[y0:y1, x0:x1]
    color = jnp.asarray(color).astype(jnp.uint8)
    region = jnp.where(jnp.asarray(mask)[:, :, None], color[None, None, :], region)
    return img.at[y0:y1, x0:x1].set(region)


def draw_text(img, text: str, x: int, y: int, scale: int, color, shadow: bool = True):
    """Draw a static string with its top-left corner at (x, y)."""
    bitmap = text_bitmap(text, scale)
    if shadow:
        img = _paste(img, bitmap, x + scale, y + scale, (0, 0, 0))
    return _paste(img, bitmap, x, y, color)


def draw_text_centered(img, text: str, y: int, scale: int, color, shadow: bool = True):
    W = img.shape[1]
    w, _ = text_size(text, scale)
    return draw_text(img, text, (W - w) // 2, y, scale, color, shadow)


def draw_number(img, value, x: int, y: int, scale: int, color, max_digits: int = 7):
    """
    Draw a non-negative traced integer left-aligned at (x, y).

    Uses ``max_digits`` static slots; values that need more digits are
    clamped to all nines.
    """
    value = jnp.clip(jnp.asarray(value, jnp.int32), 0, 10 ** max_digits - 1)
    n_digits = jnp.int32(1)
    for k in range(1, max_digits):
        n_digits = n_digits + (value >= 10 ** k).astype(jnp.int32)

    pitch = (GLYPH_W + 1) * scale
    color = jnp.asarray(color).astype(jnp.uint8)
    H, W = img.shape[:2]
    h, w = GLYPH_H * scale, GLYPH_W * scale
    if y < 0 or y + h > H:
        return img
    for slot in range(max_digits):
        x0 = x + slot * pitch
        if x0 < 0 or x0 + w > W:
            continue
        place = n_digits - 1 - slot
        divisor = jnp.power(10, jnp.maximum(place, 0)).astype(jnp.int32)
        digit = (value // divisor) % 10
        glyph = DIGIT_TABLE[digit]
        glyph = jnp.repeat(jnp.repeat(glyph, scale, axis=0), scale, axis=1)
        mask = glyph & (slot < n_digits)
        region = img[y:y + h, x0:x0 + w]
        region = jnp.where(mask[:, :, None], color[None, None, :], region)
        img = img.at[y:y + h, x0:x0 + w].set(region)
    return img
