"""Game configuration composition.

GameConfig composes all subsystem configurations into a single dataclass.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..entities.collectible import CollectibleConfig
from ..entities.enemy import EnemyConfig
from ..entities.particles import ParticleConfig
from ..entities.player import PlayerConfig
from ..systems.camera import CameraConfig
from ..systems.generation.background import BackgroundConfig
from ..systems.generation.client import GeneratorConfig
from ..systems.physics import PhysicsConfig


@dataclass
class GameConfig:
    """Complete game configuration.

    Composes all subsystem configurations for easy parameter passing.

    Attributes
    ----------
    H : int
        Screen height in pixels (default: 600)
    W : int
        Screen width in pixels (default: 800)
    default_theme : str
        Theme used by scripts and wrappers when none is given (default: "forest")
    goal_width, goal_height : float
        Goal rectangle size in px (default: 40 x 60)
    goal_bonus : int
        Score for reaching the goal (default: 100)
    health_bonus : int
        Extra score per remaining health point at the goal (default: 50)
    hazard_height : float
        Height of hazard rectangles (default: 20)
    hazards_damage : bool
        Whether touching a hazard damages the player (default: True)
    stomp_enabled : bool
        Whether landing on an enemy defeats it (default: False)
    max_steps : int
        Truncation limit used by the Gymnasium wrapper (default: 5000)
    physics : PhysicsConfig
        Gravity, friction and world bounds
    player : PlayerConfig
        Player size, speed and health
    enemy : EnemyConfig
        Enemy behavior parameters
    collectible : CollectibleConfig
        Pickup scoring and animation
    particles : ParticleConfig
        Particle pool and bursts
    camera : CameraConfig
        Follow camera
    background : BackgroundConfig
        Background layer
    generator : GeneratorConfig
        Level generation request settings

    Examples
    --------
    >>> config = GameConfig(W=400, H=300)
    >>> config = GameConfig(stomp_enabled=True, physics=PhysicsConfig(gravity=0.4))
    """

    H: int = 600
    W: int = 800
    default_theme: str = "forest"
    goal_width: float = 40.0
    goal_height: float = 60.0
    goal_bonus: int = 100
    health_bonus: int = 50
    hazard_height: float = 20.0
    hazards_damage: bool = True
    stomp_enabled: bool = False
    max_steps: int = 5000

    physics: Optional[PhysicsConfig] = None
    player: Optional[PlayerConfig] = None
    enemy: Optional[EnemyConfig] = None
    collectible: Optional[CollectibleConfig] = None
    particles: Optional[ParticleConfig] = None
    camera: Optional[CameraConfig] = None
    background: Optional[BackgroundConfig] = None
    generator: Optional[GeneratorConfig] = None

    def __post_init__(self):
        """Initialize default sub-configs if not provided."""
        if self.physics is None:
            self.physics = PhysicsConfig()

        if self.player is None:
            self.player = PlayerConfig()

        if self.enemy is None:
            self.enemy = EnemyConfig()

        if self.collectible is None:
            self.collectible = CollectibleConfig()

        if self.particles is None:
            self.particles = ParticleConfig()

        if self.camera is None:
            self.camera = CameraConfig()

        if self.background is None:
            self.background = BackgroundConfig()

        if self.generator is None:
            self.generator = GeneratorConfig()
