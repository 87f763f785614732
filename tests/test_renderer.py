import jax
import jax.numpy as jnp
import numpy as np

from ai_platformer import PlatformerGame
from ai_platformer.core.state import GAME_OVER, VICTORY
from ai_platformer.systems.generation.background import BackgroundConfig, gradient_background, render_background


def test_render_shape_and_dtype(game, offline_generator, key):
    level = offline_generator.generate_level("cyberpunk", 4)
    state = game.reset(level, key)
    frame = jax.jit(game.render)(state)
    assert frame.shape == (game.config.H, game.config.W, 3)
    assert frame.dtype == jnp.uint8


def test_render_is_pure_and_repeatable(game, level_factory, key):
    state = game.reset(level_factory(
        enemies=[{"x": 150, "y": 375, "type": "jumper"}],
        collectibles=[{"x": 200, "y": 350, "type": "powerup"}],
        hazards=[{"x": 250, "y": 380, "type": "pit"}],
    ), key)
    render = jax.jit(game.render)
    a = np.asarray(render(state))
    b = np.asarray(render(state))
    assert np.array_equal(a, b)
    assert int(state.t) == 0


def test_overlays_change_the_frame(game, level_factory, key):
    state = game.reset(level_factory(), key)
    render = jax.jit(game.render)
    running = np.asarray(render(state))
    over = np.asarray(render(state.replace(status=jnp.int32(GAME_OVER))))
    won = np.asarray(render(state.replace(status=jnp.int32(VICTORY))))

    assert not np.array_equal(running, over)
    assert not np.array_equal(over, won)
    # The overlay dims the scene
    assert over.mean() < running.mean()


def test_hud_hearts_follow_health(game, level_factory, key):
    state = game.reset(level_factory(), key)
    render = jax.jit(game.render)
    full = np.asarray(render(state))
    hurt = np.asarray(render(state.replace(player=state.player.replace(health=jnp.int32(1)))))
    assert not np.array_equal(full, hurt)


def test_gradient_background_stops():
    stops = jnp.asarray([[0, 0, 0], [100, 100, 100], [200, 200, 200]], dtype=jnp.uint8)
    img = gradient_background(stops, 5, 4)
    assert img.shape == (5, 4, 3)
    assert img[0, 0].tolist() == [0, 0, 0]
    assert img[2, 3].tolist() == [100, 100, 100]
    assert img[4, 1].tolist() == [200, 200, 200]


def test_star_field_drifts_with_time():
    stops = jnp.zeros((3, 3), dtype=jnp.uint8)
    cfg = BackgroundConfig()
    a = render_background(stops, None, jnp.float32(0.0), jnp.int32(0), 60, 80, cfg)
    b = render_background(stops, None, jnp.float32(0.0), jnp.int32(40), 60, 80, cfg)
    assert a.max() > 0
    assert not np.array_equal(np.asarray(a), np.asarray(b))
