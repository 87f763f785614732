"""
Generate one level description and print it as JSON.

Usage:
    python scripts/generate_level.py --theme space --level 4 [--offline]

Without --offline the LLM is asked first (GROQ_API_KEY must be set);
any failure falls back to the procedural generator.
"""
import argparse
import json
import logging

import jax

from ai_platformer import GeneratorConfig, LevelGenerator
from ai_platformer.systems.generation import THEMES, calculate_difficulty


def main():
    parser = argparse.ArgumentParser(description="Generate a platformer level")
    parser.add_argument("--theme", type=str, default="forest", choices=sorted(THEMES))
    parser.add_argument("--level", type=int, default=1)
    parser.add_argument("--seed", type=int, default=None, help="Seed for the procedural fallback")
    parser.add_argument("--offline", action="store_true", help="Skip the LLM request")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    generator = LevelGenerator(GeneratorConfig(enabled=not args.offline))
    key = jax.random.PRNGKey(args.seed) if args.seed is not None else None
    level = generator.generate_level(args.theme, args.level, key)

    difficulty = calculate_difficulty(args.level)
    print(f"# {THEMES[args.theme].name}, level {args.level}: {difficulty.description}")
    print(f"# source={level.source} platforms={len(level.platforms)} enemies={len(level.enemies)} "
          f"collectibles={len(level.collectibles)} hazards={len(level.hazards)}")
    print(json.dumps(level.to_dict(), indent=2))


if __name__ == "__main__":
    main()
