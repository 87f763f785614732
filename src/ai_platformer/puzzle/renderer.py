"""Pure functional rendering for the grid puzzle.

render_puzzle(state, config) -> (H, W, 3) uint8

The board is centered on screen. Cell layers are evaluated per pixel from the
cell each pixel falls in, so the cost does not grow with the number of walls.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp

from ..utils.font import draw_number, draw_text, draw_text_centered, text_size
from ..utils.shapes import (
    COLORS,
    apply_mask_color,
    blend_mask_color,
    circle_mask,
    coords,
    paint_patch,
    rect_mask,
)
from .level import GOAL, PIT, WALL

WALL_SHADE = 10          # px of darker strip at the bottom of a wall
PLAYER_INSET = 10        # px between the cell edge and the player block
GLITCH_PERIOD = 40       # ticks between fuzzle glitches
GLITCH_TICKS = 3


def board_origin(config, size: int) -> tuple[float, float]:
    """Screen position of the board's top-left corner."""
    span = size * config.cell_size
    return (config.W - span) / 2.0, (config.H - span) / 2.0


def cell_center(config, size: int, x, y):
    """Screen-space center of grid cell (x, y)."""
    ox, oy = board_origin(config, size)
    half = config.cell_size / 2.0
    return ox + x * config.cell_size + half, oy + y * config.cell_size + half


def _hud_scale(W: int) -> int:
    return max(1, W // 260)


def _render_board(img: jnp.ndarray, state, config) -> jnp.ndarray:
    H, W = config.H, config.W
    c = state.colors
    size = state.grid.shape[0]
    cell = float(config.cell_size)
    ox, oy = board_origin(config, size)
    ys, xs = coords(H, W)

    bx = jnp.floor((xs - ox) / cell).astype(jnp.int32)
    by = jnp.floor((ys - oy) / cell).astype(jnp.int32)
    inside = (bx >= 0) & (bx < size) & (by >= 0) & (by < size)
    kind = state.grid[jnp.clip(by, 0, size - 1), jnp.clip(bx, 0, size - 1)]
    lx = xs - ox - bx * cell
    ly = ys - oy - by * cell

    img = apply_mask_color(img, inside, c.floor)
    img = apply_mask_color(img, inside & ((lx < 1.0) | (ly < 1.0)), c.grid)

    wall = inside & (kind == WALL)
    img = apply_mask_color(img, wall & (ly < cell - WALL_SHADE), c.wall_light)
    img = apply_mask_color(img, wall & (ly >= cell - WALL_SHADE), c.wall_dark)

    # Pit: radial fade from black at the center to the floor color at the rim.
    d = jnp.sqrt((lx - cell / 2) ** 2 + (ly - cell / 2) ** 2)
    fade = jnp.clip((d - 5.0) / (cell / 2 - 5.0), 0.0, 1.0)
    pit_color = (c.floor.astype(jnp.float32) * fade[:, :, None]).astype(jnp.uint8)
    img = jnp.where((inside & (kind == PIT))[:, :, None], pit_color, img)

    # Goal: pulsing disc with a soft glow.
    pulse = jnp.sin(state.t.astype(jnp.float32) * 0.08) * (cell / 12)
    radius = cell / 3 + pulse
    goal = inside & (kind == GOAL)
    img = blend_mask_color(img, goal & (d <= radius * 1.4), c.goal, 0.3)
    img = apply_mask_color(img, goal & (d <= radius), c.goal)
    return img


def _render_player(img: jnp.ndarray, state, config) -> jnp.ndarray:
    size = state.grid.shape[0]
    cx, cy = cell_center(config, size, state.player_x, state.player_y)
    body = config.cell_size - 2 * PLAYER_INSET

    def draw_fn(patch, lcx, lcy):
        n = patch.shape[0]
        x0, y0 = lcx - body / 2, lcy - body / 2
        patch = blend_mask_color(patch, rect_mask(n, n, x0 - 4, y0 - 4, body + 8, body + 8), state.colors.player, 0.25)
        return apply_mask_color(patch, rect_mask(n, n, x0, y0, body, body), state.colors.player)

    return paint_patch(img, cx, cy, config.cell_size + 16, draw_fn)


def _render_particles(img: jnp.ndarray, state) -> jnp.ndarray:
    p = state.particles

    def draw(i, img):
        alpha = p.life[i] / jnp.maximum(p.max_life[i], 1.0)

        def draw_fn(patch, lcx, lcy):
            n = patch.shape[0]
            return blend_mask_color(patch, circle_mask(n, n, lcx, lcy, p.size[i]), p.color[i], alpha)

        def paint(img):
            return paint_patch(img, p.x[i], p.y[i], 16, draw_fn)

        return jax.lax.cond(p.alive[i], paint, lambda img: img, img)

    return jax.lax.fori_loop(0, p.x.shape[0], draw, img)


def _render_glitch(img: jnp.ndarray, state, config) -> jnp.ndarray:
    """Fuzzle mode: every few seconds a band of rows tears sideways."""
    H = config.H
    t = state.t
    band_h = max(1, H // 10)
    y0 = (t * 37) % H
    offset = (t * 13) % 21 - 10
    rows = jnp.arange(H)[:, None, None]
    band = (rows >= y0) & (rows < y0 + band_h)
    torn = jnp.where(band, jnp.roll(img, offset, axis=1), img)
    active = state.fuzzle & ((t % GLITCH_PERIOD) < GLITCH_TICKS)
    return jnp.where(active, torn, img)


def _render_hud(img: jnp.ndarray, state, config) -> jnp.ndarray:
    W = config.W
    s = _hud_scale(W)
    pad = 6 * s
    line = 8 * s
    white = COLORS["white"]

    label_w, _ = text_size("MOVES ", s)
    img = draw_text(img, "MOVES", pad, pad, s, white)
    img = draw_number(img, state.moves, pad + label_w, pad, s, white, max_digits=4)
    label_w, _ = text_size("LEVEL ", s)
    img = draw_text(img, "LEVEL", pad, pad + line, s, white)
    img = draw_number(img, state.level_number, pad + label_w, pad + line, s, white, max_digits=3)

    badge_w, _ = text_size("FUZZLE", s)
    badge = draw_text(img, "FUZZLE", W - pad - badge_w, pad, s, state.colors.player)
    return jnp.where(state.fuzzle, badge, img)


def _render_win(img: jnp.ndarray, state, config) -> jnp.ndarray:
    H, W = config.H, config.W
    s = _hud_scale(W)
    img = jnp.round(img.astype(jnp.float32) * 0.3).astype(jnp.uint8)
    img = draw_text_centered(img, "PUZZLE SOLVED!", H // 2 - 20 * s, 2 * s, state.colors.goal)
    moves_w, _ = text_size("MOVES 0000", s)
    mx = (W - moves_w) // 2
    img = draw_text(img, "MOVES", mx, H // 2, s, COLORS["white"])
    img = draw_number(img, state.moves, mx + text_size("MOVES ", s)[0], H // 2, s, COLORS["white"], max_digits=4)
    return draw_text_centered(img, "PRESS ENTER FOR NEXT LEVEL", H // 2 + 14 * s, s, (200, 200, 200))


def render_puzzle(state, config) -> jnp.ndarray:
    H, W = config.H, config.W
    img = jnp.broadcast_to(state.colors.background, (H, W, 3)).astype(jnp.uint8)
    img = _render_board(img, state, config)
    img = _render_particles(img, state)
    img = _render_player(img, state, config)
    img = _render_glitch(img, state, config)
    img = _render_hud(img, state, config)
    return jax.lax.cond(state.won, lambda img: _render_win(img, state, config), lambda img: img, img)
