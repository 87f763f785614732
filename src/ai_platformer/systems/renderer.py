"""Pure functional rendering system for the platformer.

All rendering functions are pure and JIT-compatible:
render(state, config) -> uint8 RGB image

Layers, back to front: background, hazards, platforms, collectibles,
enemies, goal, particles, player, HUD, end-of-level overlay.
"""

from __future__ import annotations

from typing import Optional

import jax
import jax.numpy as jnp

from ..core.config import GameConfig
from ..core.state import RUNNING, VICTORY, GameState
from ..entities.collectible import COIN, bob_offset
from ..entities.enemy import FLYER
from ..systems.camera import world_to_screen
from ..systems.generation.background import render_background
from ..utils.font import draw_number, draw_text, draw_text_centered, text_size
from ..utils.shapes import (
    COLORS,
    apply_mask_color,
    blend_mask_color,
    circle_mask,
    coords,
    ellipse_mask,
    heart_mask,
    paint_patch,
    polygon_evenodd_mask,
    rect_mask,
    rect_outline_mask,
)


def render(
    state: GameState,
    config: GameConfig,
    bg_image: Optional[jnp.ndarray] = None,
) -> jnp.ndarray:
    H, W = config.H, config.W

    img = render_background(
        state.theme.background, bg_image, state.camera_x, state.t, H, W, config.background
    )
    img = _render_hazards(img, state, config)
    img = _render_platforms(img, state, config)
    img = _render_collectibles(img, state, config)
    img = _render_enemies(img, state, config)
    img = _render_goal(img, state, config)
    img = _render_particles(img, state, config)
    img = _render_player(img, state, config)
    img = _render_hud(img, state, config)
    img = _render_overlay(img, state, config)
    return img


def _u8(color) -> jnp.ndarray:
    return jnp.asarray(color, dtype=jnp.uint8)


# -----------------------------------------------------------------------------
# World layers
# -----------------------------------------------------------------------------

def _render_platforms(img: jnp.ndarray, state: GameState, config: GameConfig) -> jnp.ndarray:
    H, W = config.H, config.W
    plats = state.platforms
    base = state.theme.platform
    light = state.theme.platform_light
    accent = state.theme.accent
    ys, _ = coords(H, W)

    def draw(i, img):
        sx = world_to_screen(plats.x[i], state.camera_x)
        y, w, h = plats.y[i], plats.width[i], plats.height[i]
        visible = (sx + w > -10) & (sx < W + 10)

        def paint(img):
            img = blend_mask_color(img, rect_mask(H, W, sx + 5, y + 5, w, h), COLORS["black"], 0.3)
            body = rect_mask(H, W, sx, y, w, h)
            t = jnp.clip((ys - y) / jnp.maximum(h, 1.0), 0.0, 1.0)
            grad = light.astype(jnp.float32) + (base.astype(jnp.float32) - light.astype(jnp.float32)) * t[:, :, None]
            grad = jnp.broadcast_to(grad, (H, W, 3)).astype(jnp.uint8)
            img = jnp.where(body[:, :, None], grad, img)
            img = blend_mask_color(img, rect_mask(H, W, sx, y, w, 3.0), COLORS["white"], 0.2)
            return apply_mask_color(img, rect_outline_mask(H, W, sx, y, w, h, 2.0), accent)

        return jax.lax.cond(visible, paint, lambda img: img, img)

    return jax.lax.fori_loop(0, plats.x.shape[0], draw, img)


def _render_hazards(img: jnp.ndarray, state: GameState, config: GameConfig) -> jnp.ndarray:
    """Spikes are a row of teeth, pits a dark slab, fire flickering teeth."""
    H, W = config.H, config.W
    hz = state.hazards
    h = config.hazard_height
    ys, xs = coords(H, W)
    palette = _u8([COLORS["spike"], COLORS["pit"], COLORS["fire"]])

    def draw(i, img):
        sx = world_to_screen(hz.x[i], state.camera_x)
        y, w, kind = hz.y[i], hz.width[i], hz.kind[i]
        visible = (sx + w > 0) & (sx < W)

        def paint(img):
            box = rect_mask(H, W, sx, y, w, h)
            flicker = jnp.where(kind == 2, jnp.sin(state.t.astype(jnp.float32) * 0.3 + xs * 0.2) * 3.0, 0.0)
            u = jnp.mod(xs - sx, 10.0)
            teeth = (ys - y + flicker) >= h * jnp.abs(u - 5.0) / 5.0
            mask = box & jnp.where(kind == 1, True, teeth)
            return apply_mask_color(img, mask, palette[kind])

        return jax.lax.cond(visible, paint, lambda img: img, img)

    return jax.lax.fori_loop(0, hz.x.shape[0], draw, img)


def _render_collectibles(img: jnp.ndarray, state: GameState, config: GameConfig) -> jnp.ndarray:
    items = state.collectibles
    size = config.collectible.size
    half = size / 2
    bob = bob_offset(items, config.collectible)
    glow = state.theme.particle

    def draw(i, img):
        cx = world_to_screen(items.x[i] + half, state.camera_x)
        cy = items.y[i] + half + bob[i]
        spin = jnp.maximum(jnp.abs(jnp.cos(items.rotation[i])), 0.15)
        is_coin = items.kind[i] == COIN

        def draw_fn(patch, lcx, lcy):
            n = patch.shape[0]
            patch = blend_mask_color(patch, circle_mask(n, n, lcx, lcy, size), glow, 0.13)
            coin = apply_mask_color(patch, ellipse_mask(n, n, lcx, lcy, half * spin, half), COLORS["coin_outer"])
            coin = apply_mask_color(coin, ellipse_mask(n, n, lcx, lcy, 0.7 * half * spin, 0.7 * half), COLORS["coin_mid"])
            coin = apply_mask_color(coin, ellipse_mask(n, n, lcx - 3 * spin, lcy - 3, 4 * spin, 4), COLORS["coin_inner"])
            heart = apply_mask_color(patch, heart_mask(n, n, lcx, lcy, size), COLORS["heart"])
            heart = blend_mask_color(heart, circle_mask(n, n, lcx - 3, lcy - 3, 3.0), COLORS["white"], 0.5)
            return jnp.where(is_coin, coin, heart)

        def paint(img):
            return paint_patch(img, cx, cy, 48, draw_fn)

        return jax.lax.cond(~items.collected[i], paint, lambda img: img, img)

    return jax.lax.fori_loop(0, items.x.shape[0], draw, img)


def _render_enemies(img: jnp.ndarray, state: GameState, config: GameConfig) -> jnp.ndarray:
    en = state.enemies
    ew, eh = config.enemy.width, config.enemy.height
    palette = _u8([COLORS["walker"], COLORS["jumper"], COLORS["flyer"]])
    flap = jnp.sin(state.t.astype(jnp.float32) * 0.3)

    def draw(i, img):
        cx = world_to_screen(en.x[i] + ew / 2, state.camera_x)
        cy = en.y[i] + eh / 2
        kind = en.kind[i]
        look = jnp.sign(en.vx[i]) * 1.5

        def draw_fn(patch, lcx, lcy):
            n = patch.shape[0]
            wings = ellipse_mask(n, n, lcx - ew * 0.6, lcy - 2, 8.0, 5.0 + 2.0 * flap)
            wings = wings | ellipse_mask(n, n, lcx + ew * 0.6, lcy - 2, 8.0, 5.0 + 2.0 * flap)
            patch = blend_mask_color(patch, wings & (kind == FLYER), COLORS["white"], 0.6)
            patch = blend_mask_color(patch, circle_mask(n, n, lcx + 3, lcy + 3, ew / 2), COLORS["black"], 0.3)
            patch = apply_mask_color(patch, circle_mask(n, n, lcx, lcy, ew / 2), palette[kind])
            eyes = circle_mask(n, n, lcx - 5, lcy - 3, 3.0) | circle_mask(n, n, lcx + 5, lcy - 3, 3.0)
            patch = apply_mask_color(patch, eyes, COLORS["white"])
            pupils = (circle_mask(n, n, lcx - 5 + look, lcy - 3, 1.5)
                      | circle_mask(n, n, lcx + 5 + look, lcy - 3, 1.5))
            return apply_mask_color(patch, pupils, COLORS["black"])

        def paint(img):
            return paint_patch(img, cx, cy, 64, draw_fn)

        return jax.lax.cond(en.active[i], paint, lambda img: img, img)

    return jax.lax.fori_loop(0, en.x.shape[0], draw, img)


def _render_goal(img: jnp.ndarray, state: GameState, config: GameConfig) -> jnp.ndarray:
    """Pole, accent flag and a ring of 8 sparkles rotating with the tick."""
    gw, gh = config.goal_width, config.goal_height
    t = state.t.astype(jnp.float32)
    accent = state.theme.accent

    def draw_fn(patch, lcx, lcy):
        n = patch.shape[0]
        gx = lcx - gw / 2
        gy = lcy - gh / 2
        patch = apply_mask_color(patch, rect_mask(n, n, gx + 18, gy, 4.0, gh), COLORS["pole"])
        flag = jnp.stack([
            jnp.stack([gx + 22, gy]),
            jnp.stack([gx + 52, gy + 12]),
            jnp.stack([gx + 22, gy + 24]),
        ]).astype(jnp.float32)
        patch = apply_mask_color(patch, polygon_evenodd_mask(n, n, flag), accent)

        for k in range(8):
            angle = t * 0.05 + k * (2.0 * jnp.pi / 8)
            sx = gx + gw / 2 + jnp.cos(angle) * 30.0
            sy = gy + 20.0 + jnp.sin(angle) * 30.0
            alpha = 0.5 + 0.5 * jnp.sin(t * 0.1 + k)
            patch = blend_mask_color(patch, circle_mask(n, n, sx, sy, 2.0), state.theme.particle, alpha)
        return patch

    cx = world_to_screen(state.goal_x + gw / 2, state.camera_x)
    cy = state.goal_y + gh / 2
    return paint_patch(img, cx, cy, 128, draw_fn)


def _render_particles(img: jnp.ndarray, state: GameState, config: GameConfig) -> jnp.ndarray:
    p = state.particles

    def draw(i, img):
        sx = world_to_screen(p.x[i], state.camera_x)
        alpha = p.life[i] / jnp.maximum(p.max_life[i], 1.0)

        def draw_fn(patch, lcx, lcy):
            n = patch.shape[0]
            return blend_mask_color(patch, circle_mask(n, n, lcx, lcy, p.size[i]), p.color[i], alpha)

        def paint(img):
            return paint_patch(img, sx, p.y[i], 16, draw_fn)

        return jax.lax.cond(p.alive[i], paint, lambda img: img, img)

    return jax.lax.fori_loop(0, p.x.shape[0], draw, img)


def _render_player(img: jnp.ndarray, state: GameState, config: GameConfig) -> jnp.ndarray:
    """
    Accent-colored body with a vertical gradient and square eyes that follow
    ``facing``. While invincible the sprite blinks to half opacity every
    5 ticks. A faint trail is drawn under the feet while airborne.
    """
    pl = state.player
    pw, ph = config.player.width, config.player.height
    accent = state.theme.accent
    dark = state.theme.accent_dark
    facing = pl.facing.astype(jnp.float32)
    blink = pl.invincible & ((state.t // 5) % 2 == 0)
    alpha = jnp.where(blink, 0.5, 1.0)

    def draw_fn(patch, lcx, lcy):
        n = patch.shape[0]
        ys, _ = coords(n, n)
        x0 = lcx - pw / 2
        y0 = lcy - ph / 2

        sprite = blend_mask_color(
            patch, rect_mask(n, n, x0 + 5, y0 + ph, pw - 10, 3.0) & ~pl.on_ground,
            state.theme.particle, 0.2,
        )
        body = rect_mask(n, n, x0, y0, pw, ph)
        t = jnp.clip((ys - y0) / ph, 0.0, 1.0)
        grad = accent.astype(jnp.float32) + (dark.astype(jnp.float32) - accent.astype(jnp.float32)) * t[:, :, None]
        grad = jnp.broadcast_to(grad, (n, n, 3)).astype(jnp.uint8)
        sprite = jnp.where(body[:, :, None], grad, sprite)
        sprite = apply_mask_color(sprite, rect_outline_mask(n, n, x0, y0, pw, ph, 2.0), COLORS["black"])

        # Pupils sit on the side of each eye the player faces.
        ex = lcx + facing * jnp.asarray([-8.0, 2.0]) + jnp.where(facing < 0, -6.0, 0.0)
        eyes = rect_mask(n, n, ex[0], y0 + 5, 6.0, 6.0) | rect_mask(n, n, ex[1], y0 + 5, 6.0, 6.0)
        sprite = apply_mask_color(sprite, eyes, COLORS["white"])
        px = ex + jnp.where(facing < 0, 0.0, 3.0)
        pupils = rect_mask(n, n, px[0], y0 + 7, 3.0, 3.0) | rect_mask(n, n, px[1], y0 + 7, 3.0, 3.0)
        sprite = apply_mask_color(sprite, pupils, COLORS["black"])

        out = patch.astype(jnp.float32) * (1.0 - alpha) + sprite.astype(jnp.float32) * alpha
        return jnp.clip(jnp.round(out), 0, 255).astype(jnp.uint8)

    cx = world_to_screen(pl.x + pw / 2, state.camera_x)
    cy = pl.y + ph / 2
    return paint_patch(img, cx, cy, 64, draw_fn)


# -----------------------------------------------------------------------------
# Screen-space layers
# -----------------------------------------------------------------------------

def _hud_scale(W: int) -> int:
    return max(1, W // 260)


def _draw_heart(img: jnp.ndarray, x: int, y: int, size: int, color) -> jnp.ndarray:
    H, W = img.shape[:2]
    if x < 0 or y < 0 or x + size > W or y + size > H:
        return img
    region = img[y:y + size, x:x + size]
    m = heart_mask(size, size, size / 2, size / 2, size)
    return img.at[y:y + size, x:x + size].set(apply_mask_color(region, m, color))


def _render_hud(img: jnp.ndarray, state: GameState, config: GameConfig) -> jnp.ndarray:
    W = config.W
    s = _hud_scale(W)
    pad = 6 * s
    white = COLORS["white"]
    line = 8 * s

    label_w, _ = text_size("SCORE ", s)
    img = draw_text(img, "SCORE", pad, pad, s, white)
    img = draw_number(img, state.score, pad + label_w, pad, s, white)
    label_w, _ = text_size("COINS ", s)
    img = draw_text(img, "COINS", pad, pad + line, s, COLORS["coin_inner"])
    img = draw_number(img, state.player.coins, pad + label_w, pad + line, s, white)

    level_w, _ = text_size("LEVEL 00", s)
    lx = (W - level_w) // 2
    img = draw_text(img, "LEVEL", lx, pad, s, white)
    img = draw_number(img, state.level_number, lx + text_size("LEVEL ", s)[0], pad, s, white, max_digits=3)

    heart = 7 * s
    for i in range(config.player.max_health):
        x = W - pad - (i + 1) * heart - i * 2 * s
        full = state.player.health >= config.player.max_health - i
        color = jnp.where(full, _u8(COLORS["heart"]), _u8(COLORS["heart_empty"]))
        img = _draw_heart(img, x, pad, heart, color)
    return img


def _overlay(img: jnp.ndarray, state: GameState, config: GameConfig, title: str, color, hint: str) -> jnp.ndarray:
    H, W = config.H, config.W
    s = _hud_scale(W)
    img = jnp.round(img.astype(jnp.float32) * 0.3).astype(jnp.uint8)
    img = draw_text_centered(img, title, H // 2 - 20 * s, 2 * s, color)
    score_w, _ = text_size("SCORE 00000", s)
    sx = (W - score_w) // 2
    img = draw_text(img, "SCORE", sx, H // 2, s, COLORS["white"])
    img = draw_number(img, state.score, sx + text_size("SCORE ", s)[0], H // 2, s, COLORS["white"])
    img = draw_text_centered(img, hint, H // 2 + 14 * s, s, (200, 200, 200))
    return img


def _render_overlay(img: jnp.ndarray, state: GameState, config: GameConfig) -> jnp.ndarray:
    branches = [
        lambda img: img,
        lambda img: _overlay(img, state, config, "GAME OVER", COLORS["walker"], "PRESS ENTER TO TRY AGAIN"),
        lambda img: _overlay(img, state, config, "LEVEL COMPLETE!", state.theme.accent, "PRESS ENTER FOR NEXT LEVEL"),
    ]
    index = jnp.clip(state.status, RUNNING, VICTORY)
    return jax.lax.switch(index, branches, img)

