import jax
import jax.numpy as jnp
import pytest

from ai_platformer.entities.collectible import (
    COIN,
    POWERUP,
    CollectibleConfig,
    CollectibleState,
    animate_collectibles,
    collect,
)
from ai_platformer.entities.enemy import (
    FLYER,
    JUMPER,
    WALKER,
    EnemyConfig,
    EnemyState,
    enemy_contacts,
    update_enemies,
)
from ai_platformer.entities.particles import ParticleConfig, empty_particles, spawn_burst, update_particles
from ai_platformer.entities.player import (
    PlayerConfig,
    heal,
    init_player,
    respawn,
    take_damage,
    tick_invincibility,
)
from ai_platformer.systems.platforms import PlatformState, update_moving_platforms


def make_platforms(xs, ys, widths, moving=None, move_range=None):
    n = len(xs)
    x = jnp.asarray(xs, jnp.float32)
    return PlatformState(
        x=x,
        y=jnp.asarray(ys, jnp.float32),
        width=jnp.asarray(widths, jnp.float32),
        height=jnp.full((n,), 20.0, jnp.float32),
        moving=jnp.asarray(moving if moving is not None else [False] * n),
        move_range=jnp.asarray(move_range if move_range is not None else [0.0] * n, jnp.float32),
        origin_x=x,
        offset=jnp.zeros((n,), jnp.float32),
        direction=jnp.ones((n,), jnp.float32),
    )


# ---------------------------------------------------------------------------
# Player health
# ---------------------------------------------------------------------------

def test_back_to_back_damage_costs_one_health():
    cfg = PlayerConfig()
    player = init_player(cfg)
    for _ in range(3):
        player, _ = take_damage(player, cfg, True)
    assert int(player.health) == 2
    assert bool(player.invincible)
    assert int(player.invincible_timer) == cfg.invincible_ticks


def test_damage_after_invincibility_expires():
    cfg = PlayerConfig(invincible_ticks=3)
    player = init_player(cfg)
    player, damaged = take_damage(player, cfg, True)
    assert bool(damaged)
    for _ in range(3):
        player = tick_invincibility(player)
    assert not bool(player.invincible)
    player, damaged = take_damage(player, cfg, True)
    assert bool(damaged)
    assert int(player.health) == 1


def test_health_stays_in_range():
    cfg = PlayerConfig(invincible_ticks=1)
    player = init_player(cfg)
    for _ in range(10):
        player, _ = take_damage(player, cfg, True)
        player = tick_invincibility(player)
        assert 0 <= int(player.health) <= cfg.max_health
    assert int(player.health) == 0

    player = heal(player, 10, cfg)
    assert int(player.health) == cfg.max_health


def test_no_hit_no_damage():
    cfg = PlayerConfig()
    player, damaged = take_damage(init_player(cfg), cfg, jnp.array(False))
    assert not bool(damaged)
    assert int(player.health) == cfg.max_health


def test_respawn_resets_position_and_velocity():
    cfg = PlayerConfig()
    player = init_player(cfg).replace(x=jnp.float32(900.0), y=jnp.float32(700.0), vy=jnp.float32(15.0))
    player = respawn(player, cfg, jnp.array(True))
    assert (float(player.x), float(player.y), float(player.vy)) == (cfg.spawn_x, cfg.spawn_y, 0.0)


# ---------------------------------------------------------------------------
# Particles
# ---------------------------------------------------------------------------

def test_particle_life_budget():
    cfg = ParticleConfig(capacity=8, min_life=30.0, life_jitter=0.0)
    particles = spawn_burst(empty_particles(8), jax.random.PRNGKey(0), 10.0, 10.0, (255, 0, 0), 1, cfg)
    assert int(particles.alive.sum()) == 1

    lives = []
    for _ in range(29):
        particles = update_particles(particles, cfg)
        lives.append(float(particles.life[particles.alive][0]))
    assert bool(particles.alive.any())
    assert lives == sorted(lives, reverse=True) and len(set(lives)) == len(lives)

    particles = update_particles(update_particles(particles, cfg), cfg)
    assert not bool(particles.alive.any())


def test_particles_fall_under_gravity():
    cfg = ParticleConfig(capacity=4)
    particles = spawn_burst(empty_particles(4), jax.random.PRNGKey(1), 0.0, 0.0, (0, 255, 0), 4, cfg)
    vy0 = particles.vy
    particles = update_particles(particles, cfg)
    assert jnp.allclose(particles.vy, vy0 + cfg.gravity)


def test_burst_uses_free_slots_and_drops_overflow():
    cfg = ParticleConfig(capacity=10)
    particles = empty_particles(10)
    particles = spawn_burst(particles, jax.random.PRNGKey(0), 0.0, 0.0, (1, 2, 3), 6, cfg)
    particles = spawn_burst(particles, jax.random.PRNGKey(1), 5.0, 5.0, (4, 5, 6), 6, cfg)
    assert int(particles.alive.sum()) == 10
    assert particles.color[9].tolist() == [4, 5, 6]


def test_disabled_burst_is_a_no_op():
    cfg = ParticleConfig(capacity=10)
    particles = spawn_burst(empty_particles(10), jax.random.PRNGKey(0), 0.0, 0.0, (1, 2, 3), 5, cfg, enabled=False)
    assert not bool(particles.alive.any())


# ---------------------------------------------------------------------------
# Platforms
# ---------------------------------------------------------------------------

def test_moving_platform_oscillates_within_range():
    platforms = make_platforms([500.0, 900.0], [300.0, 300.0], [100.0, 100.0],
                               moving=[True, False], move_range=[5.0, 0.0])
    offsets = []
    for _ in range(30):
        platforms = update_moving_platforms(platforms)
        offsets.append(float(platforms.offset[0]))
    assert max(offsets) == 6.0 and min(offsets) == -6.0
    assert float(platforms.x[0]) == 500.0 + offsets[-1]
    assert float(platforms.x[1]) == 900.0


# ---------------------------------------------------------------------------
# Enemies
# ---------------------------------------------------------------------------

def make_enemies(kinds, x, y, vx, patrol=100.0):
    n = len(kinds)
    x = jnp.asarray(x, jnp.float32)
    return EnemyState(
        x=x,
        y=jnp.asarray(y, jnp.float32),
        vx=jnp.asarray(vx, jnp.float32),
        vy=jnp.zeros((n,), jnp.float32),
        kind=jnp.asarray(kinds, jnp.int32),
        patrol_range=jnp.full((n,), patrol, jnp.float32),
        origin_x=x,
        active=jnp.ones((n,), bool),
        jump_timer=jnp.zeros((n,), jnp.int32),
    )


def test_walker_patrols_and_stays_on_platform():
    cfg = EnemyConfig()
    platforms = make_platforms([0.0], [400.0], [1000.0])
    enemies = make_enemies([WALKER], [500.0], [375.0], [2.0], patrol=10.0)
    xs = []
    for _ in range(40):
        enemies = update_enemies(enemies, platforms, cfg)
        xs.append(float(enemies.x[0]))
        assert float(enemies.y[0]) == 375.0
    assert max(xs) <= 512.0 and min(xs) >= 488.0
    assert min(xs) < 500.0 < max(xs)


def test_jumper_hops_on_interval():
    cfg = EnemyConfig(jump_interval=5)
    platforms = make_platforms([0.0], [400.0], [1000.0])
    enemies = make_enemies([JUMPER], [500.0], [375.0], [0.0])
    for _ in range(4):
        enemies = update_enemies(enemies, platforms, cfg)
    assert float(enemies.y[0]) == 375.0
    enemies = update_enemies(enemies, platforms, cfg)
    assert float(enemies.y[0]) < 375.0
    assert int(enemies.jump_timer[0]) == 0


def test_flyer_ignores_gravity_and_platforms():
    cfg = EnemyConfig()
    platforms = make_platforms([0.0], [400.0], [1000.0])
    enemies = make_enemies([FLYER], [0.0], [100.0], [1.5])
    enemies = update_enemies(enemies, platforms, cfg)
    expected = 100.0 + float(jnp.sin(1.5 * cfg.flyer_wave_freq)) * cfg.flyer_wave_amp
    assert float(enemies.y[0]) == pytest.approx(expected, abs=1e-4)
    assert float(enemies.vy[0]) == 0.0


def test_inactive_enemies_are_frozen_and_harmless():
    cfg = EnemyConfig()
    platforms = make_platforms([0.0], [400.0], [1000.0])
    enemies = make_enemies([WALKER], [500.0], [375.0], [2.0]).replace(active=jnp.array([False]))
    moved = update_enemies(enemies, platforms, cfg)
    assert float(moved.x[0]) == 500.0
    assert not bool(enemy_contacts(500.0, 375.0, 30.0, 40.0, moved, cfg).any())


# ---------------------------------------------------------------------------
# Collectibles
# ---------------------------------------------------------------------------

def test_collect_is_idempotent():
    cfg = CollectibleConfig()
    items = CollectibleState(
        x=jnp.asarray([100.0, 500.0], jnp.float32),
        y=jnp.asarray([100.0, 100.0], jnp.float32),
        kind=jnp.asarray([COIN, POWERUP], jnp.int32),
        collected=jnp.zeros((2,), bool),
        bob=jnp.zeros((2,), jnp.float32),
        rotation=jnp.zeros((2,), jnp.float32),
    )
    items, picked = collect(items, 95.0, 90.0, 30.0, 40.0, cfg)
    assert picked.tolist() == [True, False]
    items, picked = collect(items, 95.0, 90.0, 30.0, 40.0, cfg)
    assert picked.tolist() == [False, False]
    assert items.collected.tolist() == [True, False]

    animated = animate_collectibles(items, cfg)
    assert jnp.allclose(animated.bob, items.bob + cfg.bob_speed)
    assert jnp.allclose(animated.rotation, items.rotation + cfg.spin_speed)
