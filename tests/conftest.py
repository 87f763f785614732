"""Pytest configuration and shared fixtures."""

import jax
import pytest

from ai_platformer import GameConfig, GeneratorConfig, LevelGenerator, PlatformerGame
from ai_platformer.entities.particles import ParticleConfig
from ai_platformer.systems.generation.level import SOURCE_FALLBACK, repair_level


class FakeCompletionClient:
    """Stands in for the chat endpoint; returns a canned reply or raises."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.prompts = []

    def complete(self, system, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response


def make_level(**overrides):
    """Hand-built level: the spawn platform plus a long floor to the right."""
    raw = {
        "platforms": [
            {"x": 100, "y": 400, "width": 200},
            {"x": 300, "y": 400, "width": 2000},
        ],
        "enemies": [],
        "collectibles": [],
        "hazards": [],
        "goal": {"x": 5000, "y": 300},
    }
    raw.update(overrides)
    return repair_level(raw, "forest", 1, source=SOURCE_FALLBACK)


@pytest.fixture
def small_config():
    """Small screen and particle pool so jit compiles stay quick."""
    return GameConfig(H=120, W=160, particles=ParticleConfig(capacity=64))


@pytest.fixture
def game(small_config):
    return PlatformerGame(small_config)


@pytest.fixture
def offline_generator():
    return LevelGenerator(GeneratorConfig(enabled=False))


@pytest.fixture
def fake_client():
    return FakeCompletionClient


@pytest.fixture
def level_factory():
    return make_level


@pytest.fixture
def key():
    return jax.random.PRNGKey(0)
