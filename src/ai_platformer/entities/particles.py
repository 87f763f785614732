"""
Particle pool for damage and pickup bursts.

JAX needs static shapes, so particles live in a fixed-capacity pool. A slot
is active while ``alive`` is set; aging clears ``alive`` as soon as life
reaches zero, and bursts reuse free slots. When the pool is full the extra
particles of a burst are dropped.
"""
from __future__ import annotations

import jax
import jax.numpy as jnp
from flax import struct


@struct.dataclass
class ParticleConfig:
    """Particle pool and burst parameters.

    Attributes
    ----------
    capacity : int
        Pool size (default: 256)
    gravity : float
        Downward acceleration per tick (default: 0.2)
    min_speed, speed_jitter : float
        Burst speed is ``min_speed + U(0, 1) * speed_jitter`` (default: 2, 3)
    min_life, life_jitter : float
        Burst life in ticks is ``min_life + U(0, 1) * life_jitter`` (default: 30, 30)
    min_size, size_jitter : float
        Radius-ish size in px (default: 3, 3)
    damage_count : int
        Particles per damage burst (default: 10)
    collect_count : int
        Particles per pickup burst (default: 15)
    """
    capacity: int = 256
    gravity: float = 0.2
    min_speed: float = 2.0
    speed_jitter: float = 3.0
    min_life: float = 30.0
    life_jitter: float = 30.0
    min_size: float = 3.0
    size_jitter: float = 3.0
    damage_count: int = 10
    collect_count: int = 15


@struct.dataclass
class ParticleState:
    x: jnp.ndarray         # (N,) float32
    y: jnp.ndarray         # (N,) float32
    vx: jnp.ndarray        # (N,) float32
    vy: jnp.ndarray        # (N,) float32
    life: jnp.ndarray      # (N,) float32, ticks left
    max_life: jnp.ndarray  # (N,) float32
    size: jnp.ndarray      # (N,) float32
    color: jnp.ndarray     # (N, 3) uint8
    alive: jnp.ndarray     # (N,) bool


def empty_particles(capacity: int) -> ParticleState:
    zeros = jnp.zeros((capacity,), dtype=jnp.float32)
    return ParticleState(
        x=zeros, y=zeros, vx=zeros, vy=zeros,
        life=zeros, max_life=jnp.ones((capacity,), dtype=jnp.float32),
        size=zeros,
        color=jnp.zeros((capacity, 3), dtype=jnp.uint8),
        alive=jnp.zeros((capacity,), dtype=bool),
    )


def spawn_burst(
    particles: ParticleState,
    key: jax.Array,
    x: jnp.ndarray,
    y: jnp.ndarray,
    color: jnp.ndarray,
    count: int,
    cfg: ParticleConfig,
    enabled: jnp.ndarray = True,
) -> ParticleState:
    """
    Emit ``count`` particles evenly spaced on a circle around (x, y).

    Particle ``i`` of the burst leaves at angle ``2*pi*i/count`` with a
    random speed; life and size are randomized per particle.

    Args:
        particles: Current pool
        key: PRNG key consumed by this burst
        x, y: Burst origin in world space
        color: (3,) uint8 RGB
        count: Static number of particles
        cfg: Particle configuration
        enabled: Bool scalar; when False the pool is returned unchanged

    Returns:
        Updated pool
    """
    n = particles.alive.shape[0]
    free = ~particles.alive
    rank = jnp.cumsum(free.astype(jnp.int32)) - 1
    take = free & (rank < count) & jnp.asarray(enabled)

    k_speed, k_life, k_size = jax.random.split(key, 3)
    angle = 2.0 * jnp.pi * jnp.clip(rank, 0, count - 1).astype(jnp.float32) / count
    speed = cfg.min_speed + jax.random.uniform(k_speed, (n,)) * cfg.speed_jitter
    life = cfg.min_life + jax.random.uniform(k_life, (n,)) * cfg.life_jitter
    size = cfg.min_size + jax.random.uniform(k_size, (n,)) * cfg.size_jitter
    color = jnp.asarray(color).astype(jnp.uint8)

    return particles.replace(
        x=jnp.where(take, jnp.asarray(x, jnp.float32), particles.x),
        y=jnp.where(take, jnp.asarray(y, jnp.float32), particles.y),
        vx=jnp.where(take, jnp.cos(angle) * speed, particles.vx),
        vy=jnp.where(take, jnp.sin(angle) * speed, particles.vy),
        life=jnp.where(take, life, particles.life),
        max_life=jnp.where(take, life, particles.max_life),
        size=jnp.where(take, size, particles.size),
        color=jnp.where(take[:, None], color[None, :], particles.color),
        alive=particles.alive | take,
    )


def update_particles(particles: ParticleState, cfg: ParticleConfig) -> ParticleState:
    """Integrate alive particles one tick and retire the expired ones."""
    a = particles.alive
    life = jnp.where(a, particles.life - 1.0, particles.life)
    return particles.replace(
        x=jnp.where(a, particles.x + particles.vx, particles.x),
        y=jnp.where(a, particles.y + particles.vy, particles.y),
        vy=jnp.where(a, particles.vy + cfg.gravity, particles.vy),
        life=life,
        alive=a & (life > 0),
    )
