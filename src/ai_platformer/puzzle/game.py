"""AI Puzzle: pure functional grid puzzle.

The player walks a square board one cell per move. Walls and the board edge
block movement, pits send the player back to the start, and reaching a goal
solves the puzzle. In fuzzle mode every ``fuzzle_interval``-th move turns a
random floor cell (never the player's) into a wall.

Usage
-----
>>> import jax
>>> from ai_platformer.puzzle import PuzzleGame, PuzzleGenerator
>>>
>>> level = PuzzleGenerator().generate_level("retro", 1, fuzzle=True)
>>> game = PuzzleGame()
>>> state = game.reset(level, jax.random.PRNGKey(0))
>>> state, info = jax.jit(game.step)(state, PuzzleGame.RIGHT)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import jax
import jax.numpy as jnp
from flax import struct

from ..entities.particles import ParticleConfig, ParticleState, empty_particles, spawn_burst, update_particles
from ..systems.generation.client import GeneratorConfig
from ..systems.generation.themes import darken, lighten
from .level import FLOOR, GOAL, PIT, WALL, PuzzleLevel
from .renderer import cell_center, render_puzzle
from .themes import get_puzzle_theme

FUZZLE_COLOR = (255, 0, 255)


@dataclass
class PuzzleConfig:
    """Puzzle game configuration.

    Attributes
    ----------
    H : int
        Screen height in pixels (default: 600)
    W : int
        Screen width in pixels (default: 800)
    cell_size : int
        Board cell edge in pixels (default: 50)
    fuzzle_interval : int
        Fuzzle mode mutates the board every this many moves (default: 5)
    move_particles : int
        Sparks left on each entered cell (default: 3)
    fuzzle_particles : int
        Sparks on a cell that turns into a wall (default: 10)
    particles : ParticleConfig
        Spark pool; weightless and short-lived by default
    generator : GeneratorConfig
        Level generation request settings
    """

    H: int = 600
    W: int = 800
    cell_size: int = 50
    fuzzle_interval: int = 5
    move_particles: int = 3
    fuzzle_particles: int = 10

    particles: Optional[ParticleConfig] = None
    generator: Optional[GeneratorConfig] = None

    def __post_init__(self):
        if self.particles is None:
            self.particles = ParticleConfig(
                capacity=64,
                gravity=0.0,
                min_speed=0.5,
                speed_jitter=1.5,
                min_life=20.0,
                life_jitter=30.0,
                min_size=2.0,
                size_jitter=4.0,
            )

        if self.generator is None:
            self.generator = GeneratorConfig()


@struct.dataclass
class PuzzleColors:
    background: jnp.ndarray  # (3,) uint8
    grid: jnp.ndarray        # (3,) uint8, cell outlines
    wall_light: jnp.ndarray  # (3,) uint8, wall top, lightened 20%
    wall_dark: jnp.ndarray   # (3,) uint8, wall bottom strip, darkened 20%
    floor: jnp.ndarray       # (3,) uint8
    player: jnp.ndarray      # (3,) uint8
    goal: jnp.ndarray        # (3,) uint8


@struct.dataclass
class PuzzleState:
    """Complete puzzle state.

    Attributes
    ----------
    grid : jnp.ndarray
        (S, S) int32 cell codes with fuzzle mutations applied
    initial_grid : jnp.ndarray
        (S, S) int32 board as generated, restored on restart
    player_x, player_y : jnp.ndarray
        int32 scalars, player cell
    start_x, start_y : jnp.ndarray
        int32 scalars, start cell
    moves : jnp.ndarray
        int32 scalar, moves since the last (re)start
    deaths : jnp.ndarray
        int32 scalar, pits fallen into
    won : jnp.ndarray
        bool scalar
    fuzzle : jnp.ndarray
        bool scalar, fuzzle mode
    level_number : jnp.ndarray
        int32 scalar
    t : jnp.ndarray
        int32 scalar, ticks advanced before the win
    colors : PuzzleColors
    particles : ParticleState
    key : jax.Array
    """
    grid: jnp.ndarray
    initial_grid: jnp.ndarray
    player_x: jnp.ndarray
    player_y: jnp.ndarray
    start_x: jnp.ndarray
    start_y: jnp.ndarray
    moves: jnp.ndarray
    deaths: jnp.ndarray
    won: jnp.ndarray
    fuzzle: jnp.ndarray
    level_number: jnp.ndarray
    t: jnp.ndarray
    colors: PuzzleColors
    particles: ParticleState
    key: jax.Array


class PuzzleGame:
    """Pure functional grid puzzle.

    Action Space
    ------------
    Discrete {0..5}: NOOP, UP, DOWN, LEFT, RIGHT, RESTART.
    RESTART restores the generated board and returns the player to the start.

    Once the puzzle is solved ``step`` returns the state unchanged.
    """

    NOOP = 0
    UP = 1
    DOWN = 2
    LEFT = 3
    RIGHT = 4
    RESTART = 5

    _DX = (0, 0, 0, -1, 1, 0)
    _DY = (0, -1, 1, 0, 0, 0)

    def __init__(self, config: Optional[PuzzleConfig] = None):
        self.config = config if config is not None else PuzzleConfig()

    def reset(
        self,
        level: PuzzleLevel,
        key: Optional[jax.Array] = None,
        fuzzle: Optional[bool] = None,
    ) -> PuzzleState:
        """
        Build the initial state for a board.

        Args:
            level: Repaired puzzle level
            key: PRNG key for fuzzle mutations and sparks
            fuzzle: Fuzzle mode; defaults to whether the level carries a fuzzle rule

        Returns:
            PuzzleState at the start cell
        """
        if key is None:
            key = jax.random.PRNGKey(0)
        if fuzzle is None:
            fuzzle = level.fuzzle_rule is not None

        theme = get_puzzle_theme(level.theme)
        rgb = theme.rgb()
        colors = PuzzleColors(
            background=jnp.asarray(rgb["background"], dtype=jnp.uint8),
            grid=jnp.asarray(rgb["grid"], dtype=jnp.uint8),
            wall_light=jnp.asarray(lighten(theme.wall, 20), dtype=jnp.uint8),
            wall_dark=jnp.asarray(darken(theme.wall, 20), dtype=jnp.uint8),
            floor=jnp.asarray(rgb["floor"], dtype=jnp.uint8),
            player=jnp.asarray(rgb["player"], dtype=jnp.uint8),
            goal=jnp.asarray(rgb["goal"], dtype=jnp.uint8),
        )

        grid = jnp.asarray(level.cells(), dtype=jnp.int32)
        sx, sy = level.start
        return PuzzleState(
            grid=grid,
            initial_grid=grid,
            player_x=jnp.int32(sx),
            player_y=jnp.int32(sy),
            start_x=jnp.int32(sx),
            start_y=jnp.int32(sy),
            moves=jnp.int32(0),
            deaths=jnp.int32(0),
            won=jnp.array(False),
            fuzzle=jnp.array(bool(fuzzle)),
            level_number=jnp.int32(level.level_number),
            t=jnp.int32(0),
            colors=colors,
            particles=empty_particles(self.config.particles.capacity),
            key=key,
        )

    def step(self, state: PuzzleState, action: jnp.ndarray) -> tuple[PuzzleState, dict]:
        """
        Apply one action.

        Args:
            state: Current state
            action: int in {0..5}

        Returns:
            (next_state, info) with per-step event flags
        """
        if isinstance(action, dict):
            raise TypeError(
                "step() got a dict as action. Did you pass the info dict by mistake? "
                "Call step(state, action) with an integer action."
            )
        cfg = self.config
        size = state.grid.shape[0]
        action = jnp.clip(jnp.asarray(action, dtype=jnp.int32), self.NOOP, self.RESTART)
        key, k_move, k_cell, k_fuzzle = jax.random.split(state.key, 4)

        # Move
        nx = state.player_x + jnp.asarray(self._DX, dtype=jnp.int32)[action]
        ny = state.player_y + jnp.asarray(self._DY, dtype=jnp.int32)[action]
        in_bounds = (nx >= 0) & (nx < size) & (ny >= 0) & (ny < size)
        target = state.grid[jnp.clip(ny, 0, size - 1), jnp.clip(nx, 0, size - 1)]
        is_move = (action >= self.UP) & (action <= self.RIGHT)
        moved = is_move & in_bounds & (target != WALL)

        px = jnp.where(moved, nx, state.player_x)
        py = jnp.where(moved, ny, state.player_y)
        moves = state.moves + moved.astype(jnp.int32)
        won = moved & (target == GOAL)
        died = moved & (target == PIT)

        mx, my = cell_center(cfg, size, px, py)
        particles = spawn_burst(
            state.particles, k_move, mx, my, state.colors.player,
            cfg.move_particles, cfg.particles, enabled=moved,
        )

        # Pit: back to the start, move count restarts
        px = jnp.where(died, state.start_x, px)
        py = jnp.where(died, state.start_y, py)
        moves = jnp.where(died, 0, moves)

        # Fuzzle: a random floor cell becomes a wall
        ys, xs = jnp.meshgrid(jnp.arange(size), jnp.arange(size), indexing="ij")
        candidates = (state.grid == FLOOR) & ~((xs == px) & (ys == py))
        due = state.fuzzle & moved & ~won & ~died & (moves % cfg.fuzzle_interval == 0)
        mutated = due & jnp.any(candidates)
        logits = jnp.where(candidates.ravel(), 0.0, -jnp.inf)
        cell = jax.random.categorical(k_cell, logits)
        grid = jnp.where(
            mutated, state.grid.ravel().at[cell].set(WALL), state.grid.ravel()
        ).reshape(size, size)

        fx, fy = cell_center(cfg, size, cell % size, cell // size)
        particles = spawn_burst(
            particles, k_fuzzle, fx, fy, jnp.asarray(FUZZLE_COLOR, dtype=jnp.uint8),
            cfg.fuzzle_particles, cfg.particles, enabled=mutated,
        )
        particles = update_particles(particles, cfg.particles)

        moved_state = state.replace(
            grid=grid,
            player_x=px.astype(jnp.int32),
            player_y=py.astype(jnp.int32),
            moves=moves.astype(jnp.int32),
            deaths=state.deaths + died.astype(jnp.int32),
            won=won,
            t=state.t + 1,
            particles=particles,
            key=key,
        )
        restarted = state.replace(
            grid=state.initial_grid,
            player_x=state.start_x,
            player_y=state.start_y,
            moves=jnp.int32(0),
            t=state.t + 1,
            particles=update_particles(state.particles, cfg.particles),
            key=key,
        )
        restart = action == self.RESTART
        new_state = jax.tree_util.tree_map(
            lambda r, m: jnp.where(restart, r, m), restarted, moved_state
        )

        playing = ~state.won
        next_state = jax.tree_util.tree_map(
            lambda new, old: jnp.where(playing, new, old), new_state, state
        )

        info = {
            "moved": playing & moved,
            "died": playing & died,
            "fuzzle_mutated": playing & mutated,
            "restarted": playing & restart,
            "won": next_state.won,
            "moves": next_state.moves,
            "deaths": next_state.deaths,
            "t": next_state.t,
        }
        return next_state, info

    def render(self, state: PuzzleState) -> jnp.ndarray:
        """Render state to an (H, W, 3) uint8 image. No state is modified."""
        return render_puzzle(state, self.config)

    @staticmethod
    def is_solved(state: PuzzleState) -> bool:
        return bool(state.won)
