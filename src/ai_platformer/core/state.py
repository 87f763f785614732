"""Game state representation.

GameState is an immutable Flax struct dataclass; every ``step`` returns a new
one. Entity groups live in their own struct dataclasses as parallel arrays
so that the per-entity updates vectorize.
"""

from __future__ import annotations

import jax
import jax.numpy as jnp
from flax import struct

from ..entities.collectible import CollectibleState
from ..entities.enemy import EnemyState
from ..entities.particles import ParticleState
from ..entities.player import PlayerState
from ..systems.platforms import PlatformState

RUNNING = 0
GAME_OVER = 1
VICTORY = 2

STATUS_NAMES = {RUNNING: "running", GAME_OVER: "game_over", VICTORY: "victory"}


@struct.dataclass
class HazardState:
    x: jnp.ndarray      # (Z,) float32
    y: jnp.ndarray      # (Z,) float32
    width: jnp.ndarray  # (Z,) float32
    kind: jnp.ndarray   # (Z,) int32, index into HAZARD_TYPES


@struct.dataclass
class ThemeColors:
    background: jnp.ndarray      # (3, 3) uint8, gradient stops
    platform: jnp.ndarray        # (3,) uint8
    platform_light: jnp.ndarray  # (3,) uint8, platform lightened 20%
    accent: jnp.ndarray          # (3,) uint8
    accent_dark: jnp.ndarray     # (3,) uint8, accent darkened 30%
    particle: jnp.ndarray        # (3,) uint8


@struct.dataclass
class GameState:
    """Complete game state.

    Attributes
    ----------
    player : PlayerState
        Player kinematics, health and coins
    platforms : PlatformState
        (P,) platform arrays, including moving-platform oscillation
    enemies : EnemyState
        (E,) enemy arrays
    collectibles : CollectibleState
        (C,) pickup arrays
    hazards : HazardState
        (Z,) hazard arrays
    particles : ParticleState
        Fixed-capacity particle pool
    goal_x, goal_y : jnp.ndarray
        float32 scalars, top-left of the goal rectangle
    camera_x : jnp.ndarray
        float32 scalar, camera left edge in world space
    score : jnp.ndarray
        int32 scalar
    status : jnp.ndarray
        int32 scalar, RUNNING / GAME_OVER / VICTORY
    t : jnp.ndarray
        int32 scalar, ticks advanced while running
    level_number : jnp.ndarray
        int32 scalar
    theme : ThemeColors
        Palette used by the renderer and pickup bursts
    key : jax.Array
        PRNG key for particle randomness
    """
    player: PlayerState
    platforms: PlatformState
    enemies: EnemyState
    collectibles: CollectibleState
    hazards: HazardState
    particles: ParticleState
    goal_x: jnp.ndarray
    goal_y: jnp.ndarray
    camera_x: jnp.ndarray
    score: jnp.ndarray
    status: jnp.ndarray
    t: jnp.ndarray
    level_number: jnp.ndarray
    theme: ThemeColors
    key: jax.Array
