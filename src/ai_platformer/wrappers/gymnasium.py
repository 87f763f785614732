"""Gymnasium-compatible wrapper for the JAX platformer.

Adapts the pure functional PlatformerGame to the Gymnasium API.
Manages state externally and provides the familiar reset()/step() interface.
Levels are generated on reset; by default generation is procedural only so
that episodes do not depend on network access.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import gymnasium as gym
import jax
import jax.numpy as jnp
import numpy as np
from gymnasium import spaces

from ..core import GameConfig, PlatformerGame
from ..core.state import RUNNING
from ..systems.generation import GeneratorConfig, LevelGenerator


class PlatformerGymEnv(gym.Env):
    """Gymnasium wrapper around PlatformerGame.

    Attributes
    ----------
    game : PlatformerGame
        Underlying pure functional game
    generator : LevelGenerator
        Level source used on every reset
    render_mode : Optional[str]
        Render mode ("rgb_array" or None)
    action_space : spaces.Discrete
        Discrete(8) for bitmask actions
    observation_space : spaces.Box
        Box(0, 255, (H, W, 3), uint8) for RGB images

    Notes
    -----
    Semantics:
    - Observation: uint8 RGB frame (H, W, 3)
    - Action: Discrete(8) bitmask in {0..7} for {LEFT=1, RIGHT=2, JUMP=4}
    - Reward: score gained this tick
    - Termination: victory or game over
    - Truncation: ``config.max_steps`` ticks

    Examples
    --------
    >>> env = PlatformerGymEnv(render_mode="rgb_array", theme="ocean", level_number=2)
    >>> obs, info = env.reset(seed=42)
    >>> obs, reward, terminated, truncated, info = env.step(env.RIGHT | env.JUMP)
    """

    # Convenience constants (match PlatformerGame)
    NOOP = 0
    LEFT = 1
    RIGHT = 2
    JUMP = 4

    metadata = {"render_modes": ["rgb_array"], "render_fps": 60}

    def __init__(
        self,
        *,
        render_mode: Optional[str] = None,
        theme: Optional[str] = None,
        level_number: int = 1,
        config_path: Optional[str] = None,
        game_config: Optional[GameConfig] = None,
        generator: Optional[LevelGenerator] = None,
    ):
        """Initialize Gymnasium wrapper.

        Parameters
        ----------
        render_mode : Optional[str]
        theme : Optional[str]
            Theme key; ``config.default_theme`` when None
        level_number : int
            Level generated on each reset
        config_path : Optional[str]
            Path to YAML configuration file
        game_config : Optional[GameConfig]
            Complete GameConfig object (takes priority over config_path)
        generator : Optional[LevelGenerator]
            Level source; defaults to procedural-only generation
        """
        self.render_mode = render_mode

        if game_config is None:
            if config_path:
                from ..utils.config_loader import load_config_from_yaml
                game_config = load_config_from_yaml(config_path)
            else:
                game_config = GameConfig()

        self.game = PlatformerGame(game_config)
        self.generator = generator if generator is not None else LevelGenerator(GeneratorConfig(enabled=False))
        self.theme = theme if theme is not None else game_config.default_theme
        self.level_number = level_number

        # Without these, JAX retraces on every call
        self._step_jit = jax.jit(self.game.step)
        self._render_jit = jax.jit(self.game.render)

        # Gymnasium spaces
        self.action_space = spaces.Discrete(8)
        self.observation_space = spaces.Box(
            low=0,
            high=255,
            shape=(game_config.H, game_config.W, 3),
            dtype=np.uint8,
        )

        # Internal state
        self._state = None
        self._steps = 0
        self.level = None

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> Tuple[np.ndarray, Dict[str, Any]]:
        """Generate a level and start it.

        Parameters
        ----------
        seed : Optional[int]
            Random seed for the fallback level and particle randomness
        options : Optional[Dict[str, Any]]
            ``{"theme": str, "level_number": int}`` override the defaults for this episode

        Returns
        -------
        obs : np.ndarray
            Initial observation, shape (H, W, 3), dtype uint8
        info : Dict[str, Any]
            Seed, level number and level source ("ai" or "fallback")
        """
        super().reset(seed=seed, options=options)
        options = options or {}
        theme = options.get("theme", self.theme)
        level_number = options.get("level_number", self.level_number)

        if seed is None:
            seed = int(self.np_random.integers(0, 2**31 - 1))
        seed32 = int(seed) & 0xFFFFFFFF
        level_key, state_key = jax.random.split(jax.random.PRNGKey(seed32))

        self.level = self.generator.generate_level(theme, level_number, level_key)
        self._state = self.game.reset(self.level, state_key)
        self._steps = 0

        obs_np = np.asarray(self._render_jit(self._state))
        return_info = {
            "seed": seed32,
            "theme": theme,
            "level_number": self.level.level_number,
            "source": self.level.source,
        }
        return obs_np, return_info

    def step(self, action: int):
        """Execute one game tick.

        Parameters
        ----------
        action : int
            Action bitmask in {0..7}

        Returns
        -------
        obs : np.ndarray
            Observation, shape (H, W, 3), dtype uint8
        reward : float
            Score gained this tick
        terminated : bool
            Victory or game over
        truncated : bool
            Tick limit reached
        info : Dict[str, Any]
            Scalar step info
        """
        if self._state is None:
            raise RuntimeError("Call reset() before step().")

        a = int(action)
        if not (0 <= a <= 7):
            raise ValueError(f"Action must be in [0, 7] (bitmask), got {a}.")

        prev_score = int(self._state.score)
        self._state, info = self._step_jit(self._state, jnp.int32(a))
        self._steps += 1

        obs_np = np.asarray(self._render_jit(self._state))
        score = int(info["score"])
        terminated = int(info["status"]) != RUNNING
        truncated = (not terminated) and self._steps >= self.game.config.max_steps

        player = self._state.player
        return_info = {
            "score": score,
            "status": int(info["status"]),
            "victory": bool(info["victory"]),
            "game_over": bool(info["game_over"]),
            "damaged": bool(info["damaged"]),
            "fell": bool(info["fell"]),
            "coins_collected": int(info["coins_collected"]),
            "powerups_collected": int(info["powerups_collected"]),
            "health": int(player.health),
            "coins": int(player.coins),
            "x": float(player.x),
            "y": float(player.y),
            "camera_x": float(self._state.camera_x),
            "t": int(info["t"]),
        }
        return obs_np, float(score - prev_score), terminated, truncated, return_info

    def render(self):
        """Render current state.

        Returns
        -------
        img : Optional[np.ndarray]
            RGB image if state exists, None otherwise
        """
        if self._state is None:
            return None
        return np.asarray(jax.device_get(self._render_jit(self._state)))

    def close(self):
        """Close environment (no-op for the JAX game)."""
        return None
