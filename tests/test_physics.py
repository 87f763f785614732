import jax.numpy as jnp
import pytest

from ai_platformer.entities.player import PlayerConfig, init_player
from ai_platformer.systems.camera import CameraConfig, update_camera, world_to_screen
from ai_platformer.systems.physics import (
    PhysicsConfig,
    aabb_overlap,
    apply_player_input,
    resolve_platform_collisions,
)
from ai_platformer.systems.platforms import PlatformState

PLAYER = PlayerConfig()
PHYSICS = PhysicsConfig()


def one_platform(x=0.0, y=400.0, width=300.0, height=20.0):
    return PlatformState(
        x=jnp.asarray([x], jnp.float32),
        y=jnp.asarray([y], jnp.float32),
        width=jnp.asarray([width], jnp.float32),
        height=jnp.asarray([height], jnp.float32),
        moving=jnp.asarray([False]),
        move_range=jnp.zeros((1,), jnp.float32),
        origin_x=jnp.asarray([x], jnp.float32),
        offset=jnp.zeros((1,), jnp.float32),
        direction=jnp.ones((1,), jnp.float32),
    )


def tick(player, platforms, left=False, right=False, jump=False):
    player = apply_player_input(
        player, jnp.array(left), jnp.array(right), jnp.array(jump), PHYSICS, PLAYER
    )
    return resolve_platform_collisions(player, platforms, PLAYER)


def test_aabb_overlap_is_strict():
    assert bool(aabb_overlap(0, 0, 10, 10, 5, 5, 10, 10))
    assert not bool(aabb_overlap(0, 0, 10, 10, 10, 0, 10, 10))


def test_landing_sets_grounded_and_zeroes_vy():
    platforms = one_platform()
    # Bottom edge 2px above the top, falling at 4px/tick -> crosses this tick
    player = init_player(PLAYER).replace(x=jnp.float32(100.0), y=jnp.float32(358.0), vy=jnp.float32(3.5))
    player = tick(player, platforms)
    assert bool(player.on_ground)
    assert float(player.vy) == 0.0
    assert float(player.y) == 400.0 - PLAYER.height


def test_not_grounded_before_crossing():
    platforms = one_platform()
    player = init_player(PLAYER).replace(x=jnp.float32(100.0), y=jnp.float32(300.0), vy=jnp.float32(0.0))
    player = tick(player, platforms)
    assert not bool(player.on_ground)
    assert float(player.vy) == PHYSICS.gravity


def test_resting_player_stays_grounded():
    platforms = one_platform()
    player = init_player(PLAYER).replace(x=jnp.float32(100.0), y=jnp.float32(360.0))
    for _ in range(10):
        player = tick(player, platforms)
        assert bool(player.on_ground)
        assert float(player.y) == 360.0


def test_jump_only_from_ground():
    platforms = one_platform()
    player = init_player(PLAYER).replace(x=jnp.float32(100.0), y=jnp.float32(360.0))
    player = tick(player, platforms)
    player = tick(player, platforms, jump=True)
    assert float(player.vy) == -PLAYER.jump_power + PHYSICS.gravity
    assert not bool(player.on_ground)

    vy = float(player.vy)
    player = tick(player, platforms, jump=True)
    assert float(player.vy) == vy + PHYSICS.gravity


def test_head_bump_on_underside():
    platforms = one_platform(y=200.0)
    player = init_player(PLAYER).replace(x=jnp.float32(100.0), y=jnp.float32(225.0), vy=jnp.float32(-10.0))
    player = tick(player, platforms)
    assert float(player.y) == 220.0
    assert float(player.vy) == 0.0
    assert not bool(player.on_ground)


def test_side_push_out():
    platforms = one_platform(x=200.0, y=300.0, width=100.0, height=200.0)
    player = init_player(PLAYER).replace(x=jnp.float32(168.0), y=jnp.float32(350.0))
    player = tick(player, platforms, right=True)
    assert float(player.x) == 200.0 - PLAYER.width
    assert float(player.vx) == 0.0


def test_left_wins_and_friction():
    platforms = one_platform(y=1000.0)
    player = init_player(PLAYER)
    player = tick(player, platforms, left=True, right=True)
    assert float(player.vx) == -PLAYER.speed
    assert int(player.facing) == -1

    player = tick(player, platforms)
    assert float(player.vx) == pytest.approx(-PLAYER.speed * PHYSICS.friction)
    assert int(player.facing) == -1


def test_terminal_velocity():
    platforms = one_platform(y=10000.0)
    player = init_player(PLAYER).replace(vy=jnp.float32(14.8))
    player = tick(player, platforms)
    assert float(player.vy) == PHYSICS.terminal_velocity


def test_camera_eases_and_clamps():
    cfg = CameraConfig()
    camera = update_camera(jnp.float32(0.0), jnp.float32(1000.0), 600, cfg)
    assert float(camera) == pytest.approx((1000.0 - 200.0) * 0.1)

    camera = update_camera(jnp.float32(10.0), jnp.float32(0.0), 600, cfg)
    assert float(camera) == 0.0

    assert float(world_to_screen(jnp.float32(150.0), camera)) == 150.0
