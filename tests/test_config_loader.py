from pathlib import Path

import pytest
import yaml

from ai_platformer import GameConfig, load_config_from_yaml
from ai_platformer.utils.config_loader import from_dict, merge_configs

DEFAULT_CONFIG = Path(__file__).resolve().parents[1] / "src" / "ai_platformer" / "configs" / "default_config.yaml"


def write_yaml(tmp_path, data):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


def test_default_config_matches_dataclass_defaults():
    assert load_config_from_yaml(str(DEFAULT_CONFIG)) == GameConfig()


def test_sparse_sections_keep_defaults(tmp_path):
    path = write_yaml(tmp_path, {"W": 320, "physics": {"gravity": 0.4}, "generator": {"enabled": False}})
    config = load_config_from_yaml(str(path))
    assert config.W == 320
    assert config.H == 600
    assert config.physics.gravity == 0.4
    assert config.physics.friction == 0.8
    assert config.generator.enabled is False
    assert config.generator.model == "llama-3.3-70b-versatile"
    assert config.player.max_health == 3


def test_overrides_merge_over_file(tmp_path):
    path = write_yaml(tmp_path, {"player": {"speed": 4.0, "max_health": 5}})
    config = load_config_from_yaml(str(path), overrides={"player": {"speed": 6.0}})
    assert config.player.speed == 6.0
    assert config.player.max_health == 5


def test_merge_configs_is_recursive():
    merged = merge_configs({"a": {"b": 1, "c": 2}, "d": 3}, {"a": {"c": 4}})
    assert merged == {"a": {"b": 1, "c": 4}, "d": 3}


@pytest.mark.parametrize(
    "data",
    [
        {"default_theme": "swamp"},
        {"W": 0},
        {"physics": {"friction": 1.5}},
        {"camera": {"smoothing": 0.0}},
        {"particles": {"capacity": 0}},
        {"background": {"mode": "video"}},
        {"background": {"mode": "image"}},
        {"generator": {"timeout_s": 0}},
        {"generator": {"temperature": 3.0}},
        {"player": {"max_health": 0}},
        {"not_a_key": 1},
        {"enemy": {"speed": 3}},
    ],
)
def test_invalid_values_are_rejected(data):
    with pytest.raises(AssertionError):
        from_dict(GameConfig, data)


def test_missing_file(tmp_path):
    with pytest.raises(AssertionError):
        load_config_from_yaml(str(tmp_path / "missing.yaml"))
