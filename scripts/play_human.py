"""
Play the AI platformer with the keyboard.

Usage:
    python scripts/play_human.py [--config path/to/config.yaml] [--theme forest] [--level 1]

Levels are requested from the LLM when GROQ_API_KEY is set and generated
procedurally otherwise. Generation runs in the background; the game shows
a loading screen meanwhile and ignores input.
"""
import argparse
import logging
import time

import jax
import numpy as np
import pygame

from ai_platformer import GameConfig, LevelGenerator, PlatformerGame, PlatformerSession
from ai_platformer.systems.generation import THEMES
from ai_platformer.utils.config_loader import load_config_from_yaml


def decode_action(keys) -> int:
    """
    Decode keyboard input to action.
    """
    left = keys[pygame.K_a] or keys[pygame.K_LEFT]
    right = keys[pygame.K_d] or keys[pygame.K_RIGHT]
    jump = keys[pygame.K_w] or keys[pygame.K_SPACE] or keys[pygame.K_UP]

    # Bitmask: allow combining jump + horizontal in the same frame.
    a = PlatformerGame.NOOP
    a |= PlatformerGame.LEFT if left else 0
    a |= PlatformerGame.RIGHT if right else 0
    a |= PlatformerGame.JUMP if jump else 0
    return a


def main():
    parser = argparse.ArgumentParser(description="Play the AI platformer")
    parser.add_argument("--config", type=str, default=None, help="Path to YAML configuration file")
    parser.add_argument("--theme", type=str, default=None, choices=sorted(THEMES))
    parser.add_argument("--level", type=int, default=1)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.config:
        print(f"Loading configuration from {args.config}...")
        config = load_config_from_yaml(args.config)
    else:
        config = GameConfig()

    theme = args.theme or config.default_theme
    level_number = args.level

    game = PlatformerGame(config)
    session = PlatformerSession(game, LevelGenerator(config.generator), seed=int(time.time_ns()) & 0xFFFFFFFF)
    session.request_level(theme, level_number)

    pygame.init()
    screen = pygame.display.set_mode((config.W, config.H))
    pygame.display.set_caption(f"AI Platformer - {THEMES[theme].name}")
    font = pygame.font.SysFont("monospace", 16)
    big_font = pygame.font.SysFont("monospace", 32, bold=True)
    clock = pygame.time.Clock()

    print("\nControls:")
    print("  A/D/Arrow keys : Move")
    print("  Space/W/Up     : Jump")
    print("  Enter          : Next level / retry when the level is over")
    print("  Q/Esc          : Quit")

    running = True
    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False
            elif event.type == pygame.KEYDOWN:
                if event.key in (pygame.K_ESCAPE, pygame.K_q):
                    running = False
                elif event.key == pygame.K_RETURN and not session.loading:
                    if session.status == "victory":
                        level_number += 1
                        session.request_level(theme, level_number)
                    elif session.status == "game_over":
                        session.request_level(theme, level_number)

        session.poll()

        if session.loading or session.state is None:
            screen.fill((26, 26, 46))
            txt = big_font.render(f"Generating level {level_number}...", True, (255, 255, 255))
            screen.blit(txt, txt.get_rect(center=(config.W // 2, config.H // 2)))
        else:
            session.step(decode_action(pygame.key.get_pressed()))
            img = np.asarray(jax.device_get(session.render()))
            # Transpose to (W, H, 3) for pygame surface
            surf = pygame.surfarray.make_surface(np.transpose(img, (1, 0, 2)))
            screen.blit(surf, (0, 0))

            source = session.level.source if session.level is not None else "-"
            txt = font.render(f"{THEMES[theme].name}  source={source}", True, (255, 255, 255))
            screen.blit(txt, (6, config.H - 22))

        pygame.display.flip()
        clock.tick(60)

    session.close()
    pygame.quit()


if __name__ == "__main__":
    main()
