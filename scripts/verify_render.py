import argparse
import os

import jax
import jax.numpy as jnp
import numpy as np
from PIL import Image

from ai_platformer import GeneratorConfig, LevelGenerator, PlatformerGame, load_config_from_yaml
from ai_platformer.systems.generation import THEMES


def main():
    parser = argparse.ArgumentParser(description="Render the first frames of a procedural level for every theme")
    parser.add_argument("--config", type=str, default="src/ai_platformer/configs/default_config.yaml")
    parser.add_argument("--level", type=int, default=1)
    parser.add_argument("--steps", type=int, default=30)
    parser.add_argument("--out", type=str, default="tmp")
    args = parser.parse_args()

    if not os.path.exists(args.config):
        print(f"Config {args.config} not found.")
        return

    print(f"Loading config: {args.config}")
    config = load_config_from_yaml(args.config)
    game = PlatformerGame(config)
    generator = LevelGenerator(GeneratorConfig(enabled=False))

    step_jit = jax.jit(game.step)
    render_jit = jax.jit(game.render)
    os.makedirs(args.out, exist_ok=True)

    # Reset with a fixed key for reproducibility
    key = jax.random.PRNGKey(42)
    for theme in THEMES:
        key, level_key, state_key = jax.random.split(key, 3)
        level = generator.generate_level(theme, args.level, level_key)
        state = game.reset(level, state_key)

        # Hold right so the camera scrolls
        for _ in range(args.steps):
            state, info = step_jit(state, jnp.int32(game.RIGHT))

        img = Image.fromarray(np.array(render_jit(state)))
        output_path = os.path.join(args.out, f"verify_{theme}_level{args.level}.png")
        img.save(output_path)
        print(f"Saved {theme}: {len(level.platforms)} platforms, score={int(state.score)} -> {output_path}")


if __name__ == "__main__":
    main()
