"""
Play the AI grid puzzle with the keyboard.

Usage:
    python scripts/play_puzzle.py [--theme cyberpunk] [--level 1] [--fuzzle]

Any --theme text is accepted; names outside the built-in palettes are sent to
the generator as a custom theme. Boards are requested from the LLM when
GROQ_API_KEY is set and generated procedurally otherwise.
"""
import argparse
import logging
import time
from concurrent.futures import ThreadPoolExecutor

import jax
import jax.numpy as jnp
import numpy as np
import pygame

from ai_platformer.puzzle import PuzzleConfig, PuzzleGame, PuzzleGenerator, get_puzzle_theme

KEY_ACTIONS = {
    pygame.K_UP: PuzzleGame.UP,
    pygame.K_w: PuzzleGame.UP,
    pygame.K_DOWN: PuzzleGame.DOWN,
    pygame.K_s: PuzzleGame.DOWN,
    pygame.K_LEFT: PuzzleGame.LEFT,
    pygame.K_a: PuzzleGame.LEFT,
    pygame.K_RIGHT: PuzzleGame.RIGHT,
    pygame.K_d: PuzzleGame.RIGHT,
    pygame.K_r: PuzzleGame.RESTART,
}


def main():
    parser = argparse.ArgumentParser(description="Play the AI grid puzzle")
    parser.add_argument("--theme", type=str, default="cyberpunk")
    parser.add_argument("--level", type=int, default=1)
    parser.add_argument("--fuzzle", action="store_true", help="Start with fuzzle mode on")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    config = PuzzleConfig()
    theme = get_puzzle_theme(args.theme)
    level_number = args.level
    fuzzle = args.fuzzle

    game = PuzzleGame(config)
    generator = PuzzleGenerator(config.generator)
    step = jax.jit(game.step)
    render = jax.jit(game.render)
    executor = ThreadPoolExecutor(max_workers=1)
    key = jax.random.PRNGKey(int(time.time_ns()) & 0xFFFFFFFF)

    pending = executor.submit(generator.generate_level, theme.key, level_number, fuzzle)
    level = None
    state = None
    show_hint = False

    pygame.init()
    screen = pygame.display.set_mode((config.W, config.H))
    pygame.display.set_caption(f"AI Puzzle - {theme.name}")
    font = pygame.font.SysFont("monospace", 16)
    big_font = pygame.font.SysFont("monospace", 32, bold=True)
    clock = pygame.time.Clock()

    print("\nControls:")
    print("  WASD/Arrow keys : Move one cell")
    print("  R               : Restart the board")
    print("  H               : Toggle hint")
    print("  F               : Toggle fuzzle mode")
    print("  Enter           : Next level after solving")
    print("  Q/Esc           : Quit")

    running = True
    while running:
        action = PuzzleGame.NOOP
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key in (pygame.K_ESCAPE, pygame.K_q):
                    running = False
                elif event.key == pygame.K_h:
                    show_hint = not show_hint
                elif event.key == pygame.K_f:
                    fuzzle = not fuzzle
                    if state is not None:
                        state = state.replace(fuzzle=jnp.array(fuzzle))
                elif event.key == pygame.K_RETURN and state is not None and game.is_solved(state):
                    level_number += 1
                    state = None
                    pending = executor.submit(generator.generate_level, theme.key, level_number, fuzzle)
                elif event.key in KEY_ACTIONS:
                    action = KEY_ACTIONS[event.key]

        if pending is not None and pending.done():
            level = pending.result()
            pending = None
            key, sub = jax.random.split(key)
            state = game.reset(level, sub, fuzzle=fuzzle)
            show_hint = False

        if state is None:
            screen.fill((2, 6, 23))
            txt = big_font.render(f"Generating puzzle {level_number}...", True, (255, 255, 255))
            screen.blit(txt, txt.get_rect(center=(config.W // 2, config.H // 2)))
        else:
            # Actions arrive on key presses; NOOP frames keep the animations going.
            state, info = step(state, action)
            if bool(info["died"]):
                print("Fell into a pit, back to the start.")
            img = np.asarray(jax.device_get(render(state)))
            surf = pygame.surfarray.make_surface(np.transpose(img, (1, 0, 2)))
            screen.blit(surf, (0, 0))

            line = level.hint if show_hint else f"{level.flavor_text}  source={level.source}"
            txt = font.render(line, True, (255, 255, 255))
            screen.blit(txt, (6, config.H - 22))

        pygame.display.flip()
        clock.tick(60)

    executor.shutdown(wait=False, cancel_futures=True)
    pygame.quit()


if __name__ == "__main__":
    main()
