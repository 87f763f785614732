"""AI Platformer: a pure functional, JIT-compilable 2D platformer core.

Levels come from an LLM-backed generator with a deterministic fallback:
- Immutable state (Flax struct dataclasses)
- Deterministic rendering to an (H, W, 3) uint8 frame
- Themed level generation with a repair pass and a seeded fallback
- Async level loading for interactive front ends
- A companion grid puzzle with generated boards and fuzzle mode
- Gymnasium-compatible wrapper

Quickstart
----------
```python
import jax
from ai_platformer import PlatformerGame, GameConfig, LevelGenerator, GeneratorConfig

# Generate a level (falls back to the built-in generator without an API key)
generator = LevelGenerator(GeneratorConfig(enabled=False))
level = generator.generate_level("forest", 1)

# Create the game and start the level
game = PlatformerGame(GameConfig())
state = game.reset(level, jax.random.PRNGKey(0))

# JIT compile for performance
step_jit = jax.jit(game.step)
render_jit = jax.jit(game.render)

state, info = step_jit(state, 2 | 4)  # right + jump
frame = render_jit(state)
```

Gymnasium API
-------------
```python
from ai_platformer import PlatformerGymEnv

env = PlatformerGymEnv(render_mode="rgb_array")
obs, info = env.reset(seed=42)
obs, reward, terminated, truncated, info = env.step(action)
```

Modules
-------
core
    Pure functional game core (PlatformerGame, GameState, GameConfig) and the async session
systems
    Subsystems (physics, platforms, camera, rendering, level generation)
entities
    Game entities (player, enemies, collectibles, particles)
puzzle
    Grid puzzle mini-game (PuzzleGame, PuzzleGenerator) with fuzzle mode
utils
    Utilities (shapes, bitmap font, config loading)
wrappers
    API wrappers (Gymnasium)
"""

from __future__ import annotations

# Core API
from .core import GameConfig, GameState, PlatformerGame, PlatformerSession

# Level generation
from .systems.generation import GeneratorConfig, LevelDescription, LevelGenerator

# Puzzle mini-game
from .puzzle import PuzzleConfig, PuzzleGame, PuzzleGenerator

from .utils.config_loader import load_config_from_yaml

# Gymnasium wrapper
from .wrappers import PlatformerGymEnv


__version__ = "0.1.0"

__all__ = [
    # Core API
    "PlatformerGame",
    "GameState",
    "GameConfig",
    "PlatformerSession",
    "load_config_from_yaml",
    # Level generation
    "LevelGenerator",
    "GeneratorConfig",
    "LevelDescription",
    # Puzzle mini-game
    "PuzzleGame",
    "PuzzleConfig",
    "PuzzleGenerator",
    # Wrappers
    "PlatformerGymEnv",
]
