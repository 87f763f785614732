"""AI Platformer: pure functional game core.

Core game implementation with:
- Immutable state (Flax struct dataclasses)
- Pure functions: reset(), step(), render()
- JIT-friendly per-tick code (no Python control flow on traced values)
- Static shapes (entity arrays sized by the level, fixed particle pool)

Usage
-----
>>> import jax
>>> from ai_platformer import PlatformerGame, GameConfig, LevelGenerator
>>>
>>> level = LevelGenerator().generate_level("forest", 1)
>>> game = PlatformerGame(GameConfig())
>>> state = game.reset(level, jax.random.PRNGKey(0))
>>>
>>> step = jax.jit(game.step)
>>> state, info = step(state, PlatformerGame.RIGHT | PlatformerGame.JUMP)
>>> frame = jax.jit(game.render)(state)  # (600, 800, 3) uint8
"""

from __future__ import annotations

from typing import Optional

import jax
import jax.numpy as jnp

from .config import GameConfig
from .state import GAME_OVER, RUNNING, VICTORY, GameState, HazardState, ThemeColors
from ..entities.collectible import (
    COIN,
    COLLECTIBLE_TYPE_IDS,
    POWERUP,
    CollectibleState,
    animate_collectibles,
    collect,
)
from ..entities.enemy import (
    ENEMY_TYPE_IDS,
    FLYER,
    EnemyState,
    enemy_contacts,
    stomp_mask,
    update_enemies,
)
from ..entities.particles import empty_particles, spawn_burst, update_particles
from ..entities.player import heal, init_player, respawn, take_damage, tick_invincibility
from ..systems.camera import update_camera
from ..systems.generation.background import load_background_image
from ..systems.generation.level import HAZARD_TYPES, LevelDescription
from ..systems.generation.themes import darken, get_theme, lighten
from ..systems.physics import aabb_overlap, apply_player_input, resolve_platform_collisions
from ..systems.platforms import PlatformState, update_moving_platforms
from ..systems.renderer import render

DAMAGE_COLOR = (255, 0, 0)


class PlatformerGame:
    """Pure functional platformer game.

    All per-tick methods are pure functions operating on an immutable
    GameState; the class only holds the configuration and host-side assets.

    Attributes
    ----------
    config : GameConfig
        Game configuration
    background_image : Optional[jnp.ndarray]
        Preloaded background image (None unless background mode is "image")

    Action Space
    ------------
    Bitmask {0..7}:
    - LEFT  = 1 (bit 0)
    - RIGHT = 2 (bit 1)
    - JUMP  = 4 (bit 2)
    Left takes precedence when both directions are held.

    Tick Order
    ----------
    1. Player input, gravity and platform collisions; fall-out damage + respawn
    2. Moving platforms
    3. Enemies
    4. Player vs enemies (damage, optional stomp)
    5. Player vs hazards
    6. Player vs collectibles
    7. Player vs goal
    8. Particles
    9. Camera
    10. Terminal status

    Once the status is GAME_OVER or VICTORY, ``step`` returns the state
    unchanged.
    """

    NOOP = 0
    LEFT = 1
    RIGHT = 2
    JUMP = 4

    def __init__(self, config: Optional[GameConfig] = None):
        self.config = config if config is not None else GameConfig()
        self.background_image = None
        bg_cfg = self.config.background
        if bg_cfg.mode == "image" and bg_cfg.image_path:
            self.background_image = load_background_image(bg_cfg.image_path, self.config.H)

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def reset(self, level: LevelDescription, key: Optional[jax.Array] = None) -> GameState:
        """
        Build the initial state for a level.

        Runs on the host: converts the level description into arrays.

        Args:
            level: Repaired level description
            key: PRNG key for collectible phases and particle randomness

        Returns:
            GameState with status RUNNING
        """
        if key is None:
            key = jax.random.PRNGKey(0)
        cfg = self.config
        key, k_bob = jax.random.split(key)

        theme_info = get_theme(level.theme)
        colors = theme_info.rgb()
        theme = ThemeColors(
            background=jnp.asarray(colors["background"], dtype=jnp.uint8),
            platform=jnp.asarray(colors["platform"], dtype=jnp.uint8),
            platform_light=jnp.asarray(lighten(theme_info.platform, 20), dtype=jnp.uint8),
            accent=jnp.asarray(colors["accent"], dtype=jnp.uint8),
            accent_dark=jnp.asarray(darken(theme_info.accent, 30), dtype=jnp.uint8),
            particle=jnp.asarray(colors["particle"], dtype=jnp.uint8),
        )

        plats = level.platforms
        plat_x = jnp.asarray([p.x for p in plats], dtype=jnp.float32)
        platforms = PlatformState(
            x=plat_x,
            y=jnp.asarray([p.y for p in plats], dtype=jnp.float32),
            width=jnp.asarray([p.width for p in plats], dtype=jnp.float32),
            height=jnp.asarray([p.height for p in plats], dtype=jnp.float32),
            moving=jnp.asarray([p.moving for p in plats], dtype=bool),
            move_range=jnp.asarray([p.move_range for p in plats], dtype=jnp.float32),
            origin_x=plat_x,
            offset=jnp.zeros((len(plats),), dtype=jnp.float32),
            direction=jnp.ones((len(plats),), dtype=jnp.float32),
        )

        kinds = jnp.asarray([ENEMY_TYPE_IDS[e.type] for e in level.enemies], dtype=jnp.int32)
        enemy_x = jnp.asarray([e.x for e in level.enemies], dtype=jnp.float32)
        n_enemies = len(level.enemies)
        enemies = EnemyState(
            x=enemy_x,
            y=jnp.asarray([e.y for e in level.enemies], dtype=jnp.float32),
            vx=jnp.where(kinds == FLYER, cfg.enemy.flyer_speed, cfg.enemy.ground_speed).astype(jnp.float32),
            vy=jnp.zeros((n_enemies,), dtype=jnp.float32),
            kind=kinds,
            patrol_range=jnp.asarray([e.range for e in level.enemies], dtype=jnp.float32),
            origin_x=enemy_x,
            active=jnp.ones((n_enemies,), dtype=bool),
            jump_timer=jnp.zeros((n_enemies,), dtype=jnp.int32),
        )

        n_items = len(level.collectibles)
        collectibles = CollectibleState(
            x=jnp.asarray([c.x for c in level.collectibles], dtype=jnp.float32),
            y=jnp.asarray([c.y for c in level.collectibles], dtype=jnp.float32),
            kind=jnp.asarray([COLLECTIBLE_TYPE_IDS[c.type] for c in level.collectibles], dtype=jnp.int32),
            collected=jnp.zeros((n_items,), dtype=bool),
            bob=jax.random.uniform(k_bob, (n_items,), maxval=2.0 * jnp.pi),
            rotation=jnp.zeros((n_items,), dtype=jnp.float32),
        )

        hazards = HazardState(
            x=jnp.asarray([h.x for h in level.hazards], dtype=jnp.float32),
            y=jnp.asarray([h.y for h in level.hazards], dtype=jnp.float32),
            width=jnp.asarray([h.width for h in level.hazards], dtype=jnp.float32),
            kind=jnp.asarray([HAZARD_TYPES.index(h.type) for h in level.hazards], dtype=jnp.int32),
        )

        return GameState(
            player=init_player(cfg.player),
            platforms=platforms,
            enemies=enemies,
            collectibles=collectibles,
            hazards=hazards,
            particles=empty_particles(cfg.particles.capacity),
            goal_x=jnp.float32(level.goal.x),
            goal_y=jnp.float32(level.goal.y),
            camera_x=jnp.float32(0.0),
            score=jnp.int32(0),
            status=jnp.int32(RUNNING),
            t=jnp.int32(0),
            level_number=jnp.int32(level.level_number),
            theme=theme,
            key=key,
        )

    # ------------------------------------------------------------------
    # Step
    # ------------------------------------------------------------------

    def step(self, state: GameState, action: jnp.ndarray) -> tuple[GameState, dict]:
        """
        Advance the game one tick.

        Args:
            state: Current state
            action: int bitmask (LEFT=1, RIGHT=2, JUMP=4)

        Returns:
            (next_state, info) where info holds per-tick event flags/counts
        """
        if isinstance(action, dict):
            raise TypeError(
                "step() got a dict as action. Did you pass the info dict by mistake? "
                "Call step(state, action) with an integer bitmask."
            )
        cfg = self.config
        pw, ph = cfg.player.width, cfg.player.height

        action = jnp.asarray(action, dtype=jnp.int32)
        left = (action & self.LEFT) != 0
        right = (action & self.RIGHT) != 0
        jump = (action & self.JUMP) != 0

        key, k_damage, k_collect = jax.random.split(state.key, 3)

        # 1. Player
        player = apply_player_input(state.player, left, right, jump, cfg.physics, cfg.player)
        player = resolve_platform_collisions(player, state.platforms, cfg.player)
        player = tick_invincibility(player)
        fell = player.y > cfg.physics.world_bottom
        player, fall_damage = take_damage(player, cfg.player, fell)
        player = respawn(player, cfg.player, fell)

        # 2. Platforms
        platforms = update_moving_platforms(state.platforms, cfg.physics.platform_speed)

        # 3. Enemies
        enemies = update_enemies(state.enemies, platforms, cfg.enemy)

        # 4. Player vs enemies
        score = state.score
        contacts = enemy_contacts(player.x, player.y, pw, ph, enemies, cfg.enemy)
        if cfg.stomp_enabled:
            stomped = stomp_mask(contacts, player.y, player.vy, ph, enemies, cfg.enemy)
            enemies = enemies.replace(active=enemies.active & ~stomped)
            player = player.replace(
                vy=jnp.where(jnp.any(stomped), -cfg.enemy.stomp_bounce, player.vy).astype(jnp.float32)
            )
            score = score + cfg.enemy.stomp_score * jnp.sum(stomped).astype(jnp.int32)
            contacts = contacts & ~stomped
        player, enemy_damage = take_damage(player, cfg.player, jnp.any(contacts))

        # 5. Player vs hazards
        hazard_damage = jnp.array(False)
        if cfg.hazards_damage:
            hz = state.hazards
            touching = jnp.any(aabb_overlap(player.x, player.y, pw, ph, hz.x, hz.y, hz.width, cfg.hazard_height))
            player, hazard_damage = take_damage(player, cfg.player, touching)

        particles = spawn_burst(
            state.particles, k_damage,
            player.x + pw / 2, player.y + ph / 2,
            jnp.asarray(DAMAGE_COLOR, dtype=jnp.uint8),
            cfg.particles.damage_count, cfg.particles,
            enabled=enemy_damage | hazard_damage,
        )

        # 6. Collectibles
        items, picked = collect(state.collectibles, player.x, player.y, pw, ph, cfg.collectible)
        coin_hits = jnp.sum(picked & (items.kind == COIN)).astype(jnp.int32)
        powerup_hits = jnp.sum(picked & (items.kind == POWERUP)).astype(jnp.int32)
        player = player.replace(coins=player.coins + coin_hits)
        player = heal(player, powerup_hits * cfg.collectible.powerup_heal, cfg.player)
        score = score + coin_hits * cfg.collectible.coin_score + powerup_hits * cfg.collectible.powerup_score

        half = cfg.collectible.size / 2

        def pickup_burst(i, carry):
            particles, k = carry
            k, sub = jax.random.split(k)
            particles = spawn_burst(
                particles, sub, items.x[i] + half, items.y[i] + half,
                state.theme.particle, cfg.particles.collect_count, cfg.particles,
                enabled=picked[i],
            )
            return particles, k

        particles, _ = jax.lax.fori_loop(0, items.x.shape[0], pickup_burst, (particles, k_collect))
        items = animate_collectibles(items, cfg.collectible)

        # 7. Goal
        reached = aabb_overlap(
            player.x, player.y, pw, ph,
            state.goal_x, state.goal_y, cfg.goal_width, cfg.goal_height,
        )
        score = score + jnp.where(reached, cfg.goal_bonus + player.health * cfg.health_bonus, 0)

        # 8. Particles
        particles = update_particles(particles, cfg.particles)

        # 9. Camera
        camera_x = update_camera(state.camera_x, player.x, cfg.W, cfg.camera)

        # 10. Terminal status (victory wins a same-tick tie)
        status = jnp.where(reached, VICTORY, jnp.where(player.health <= 0, GAME_OVER, RUNNING))

        new_state = state.replace(
            player=player,
            platforms=platforms,
            enemies=enemies,
            collectibles=items,
            particles=particles,
            camera_x=camera_x,
            score=score.astype(jnp.int32),
            status=status.astype(jnp.int32),
            t=state.t + 1,
            key=key,
        )

        running = state.status == RUNNING
        next_state = jax.tree_util.tree_map(
            lambda new, old: jnp.where(running, new, old), new_state, state
        )

        info = {
            "damaged": running & (fall_damage | enemy_damage | hazard_damage),
            "fell": running & fell,
            "coins_collected": jnp.where(running, coin_hits, 0),
            "powerups_collected": jnp.where(running, powerup_hits, 0),
            "score": next_state.score,
            "status": next_state.status,
            "victory": next_state.status == VICTORY,
            "game_over": next_state.status == GAME_OVER,
            "t": next_state.t,
        }
        return next_state, info

    # ------------------------------------------------------------------
    # Render
    # ------------------------------------------------------------------

    def render(self, state: GameState) -> jnp.ndarray:
        """Render state to an (H, W, 3) uint8 image. No state is modified."""
        return render(state, self.config, self.background_image)

    @staticmethod
    def is_running(state: GameState) -> bool:
        return int(state.status) == RUNNING
