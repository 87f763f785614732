import yaml
from typing import Type, TypeVar, Any, Dict, Optional, get_type_hints
from dataclasses import is_dataclass, fields
from pathlib import Path
from termcolor import colored
from ..core.config import GameConfig
from ..systems.generation.themes import THEMES

T = TypeVar("T")

BACKGROUND_MODES = ("gradient", "image")


def _config_error(section: str, problem: str, required: str, provided: Any) -> str:
    return (
        f"{colored(f'{section} CONFIG ERROR', 'white', 'on_red', attrs=['bold'])}\n"
        f"{colored('Problem:', 'red', attrs=['bold'])} {problem}\n"
        f"{colored('Required:', 'cyan')} {required}\n"
        f"{colored('Provided:', 'yellow')} {provided}"
    )


def merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge two dictionaries.
    Values in override take precedence over base.
    """
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value
    return merged


def _validate(cls: type, data: Dict[str, Any]) -> None:
    """Per-section checks, run before the dataclass is constructed."""
    name = cls.__name__

    if name == "GameConfig":
        for dim in ("H", "W"):
            if dim in data:
                value = data[dim]
                assert isinstance(value, int) and value > 0, _config_error(
                    "GAME", f"Invalid screen {dim}", f"{dim} must be a positive int",
                    f"{dim}={value} ({type(value).__name__})",
                )
        if "default_theme" in data:
            theme = data["default_theme"]
            assert theme in THEMES, (
                f"{colored('GAME CONFIG ERROR', 'white', 'on_red', attrs=['bold'])}\n"
                f"{colored('Problem:', 'red', attrs=['bold'])} Unknown default_theme\n"
                f"{colored('Invalid theme:', 'yellow')} {theme}\n"
                f"{colored('Valid themes:', 'cyan')} {sorted(THEMES)}\n"
                f"{colored('Solution:', 'green', attrs=['bold'])} Use one of the theme keys above"
            )
        if "max_steps" in data:
            steps = data["max_steps"]
            assert isinstance(steps, int) and steps >= 1, _config_error(
                "GAME", "Invalid max_steps", "max_steps must be int and >= 1", steps
            )

    if name == "PhysicsConfig":
        if "friction" in data:
            friction = data["friction"]
            assert 0.0 <= friction <= 1.0, _config_error(
                "PHYSICS", "Invalid friction value", "Value must be in range [0.0, 1.0]", friction
            )
        for key in ("gravity", "terminal_velocity"):
            if key in data:
                assert data[key] > 0, _config_error(
                    "PHYSICS", f"Invalid {key} value", "Value must be > 0", data[key]
                )

    if name == "PlayerConfig":
        if "max_health" in data:
            health = data["max_health"]
            assert isinstance(health, int) and health >= 1, _config_error(
                "PLAYER", "Invalid max_health", "max_health must be int and >= 1", health
            )
        for key in ("width", "height"):
            if key in data:
                assert data[key] > 0, _config_error(
                    "PLAYER", f"Invalid player {key}", "Value must be > 0", data[key]
                )

    if name == "ParticleConfig":
        for key in ("capacity", "damage_count", "collect_count"):
            if key in data:
                count = data[key]
                assert isinstance(count, int) and count >= 1, _config_error(
                    "PARTICLE", f"Invalid {key}", f"{key} must be int and >= 1", count
                )

    if name == "CameraConfig":
        if "smoothing" in data:
            smoothing = data["smoothing"]
            assert 0.0 < smoothing <= 1.0, _config_error(
                "CAMERA", "Invalid smoothing value", "Value must be in range (0.0, 1.0]", smoothing
            )

    if name == "BackgroundConfig":
        mode = data.get("mode", "gradient")
        assert mode in BACKGROUND_MODES, _config_error(
            "BACKGROUND", "Unknown background mode", f"One of {list(BACKGROUND_MODES)}", mode
        )
        if mode == "image":
            assert data.get("image_path"), (
                f"{colored('BACKGROUND CONFIG ERROR', 'white', 'on_red', attrs=['bold'])}\n"
                f"{colored('Problem:', 'red', attrs=['bold'])} Image background without an image_path\n"
                f"{colored('Solution:', 'green', attrs=['bold'])} Set background.image_path or use mode: gradient"
            )
        if "star_count" in data:
            stars = data["star_count"]
            assert isinstance(stars, int) and stars >= 0, _config_error(
                "BACKGROUND", "Invalid star_count", "star_count must be int and >= 0", stars
            )

    if name == "GeneratorConfig":
        if "timeout_s" in data:
            timeout = data["timeout_s"]
            assert timeout > 0, _config_error(
                "GENERATOR", "Invalid request timeout", "timeout_s must be > 0", timeout
            )
        if "temperature" in data:
            temperature = data["temperature"]
            assert 0.0 <= temperature <= 2.0, _config_error(
                "GENERATOR", "Invalid sampling temperature", "Value must be in range [0.0, 2.0]", temperature
            )
        if "max_retries" in data:
            retries = data["max_retries"]
            assert isinstance(retries, int) and retries >= 0, _config_error(
                "GENERATOR", "Invalid max_retries", "max_retries must be int and >= 0", retries
            )


def from_dict(cls: Type[T], data: Dict[str, Any]) -> T:
    """
    Convert dictionary to dataclass recursively.
    """
    if not is_dataclass(cls):
        return data

    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    assert not unknown, (
        f"{colored('CONFIG ERROR', 'white', 'on_red', attrs=['bold'])}\n"
        f"{colored('Problem:', 'red', attrs=['bold'])} Unknown keys for {cls.__name__}\n"
        f"{colored('Unknown keys:', 'yellow')} {unknown}\n"
        f"{colored('Valid keys:', 'cyan')} {sorted(known)}"
    )

    _validate(cls, data)

    # get_type_hints resolves the string annotations left by `from __future__ import annotations`
    type_hints = get_type_hints(cls)

    kwargs = {}

    for key, value in data.items():
        field_type = type_hints[key]

        # Unwrap Optional[SubConfig]
        if hasattr(field_type, "__origin__"):
            args = field_type.__args__
            real_type = next((a for a in args if a is not type(None)), None)
            if real_type and is_dataclass(real_type) and isinstance(value, dict):
                kwargs[key] = from_dict(real_type, value)
                continue

        if is_dataclass(field_type) and isinstance(value, dict):
            kwargs[key] = from_dict(field_type, value)
        else:
            kwargs[key] = value

    return cls(**kwargs)


def load_config_from_yaml(config_path: str, overrides: Optional[Dict[str, Any]] = None) -> GameConfig:
    """
    Load configuration from a YAML file.

    Sections are sparse: any key left out keeps its dataclass default.

    Args:
        config_path: Path to YAML config file
        overrides: Optional nested dict merged over the file contents

    Returns:
        GameConfig: Loaded configuration
    """
    path = Path(config_path)
    assert path.exists(), (
        f"{colored('FILE ERROR', 'white', 'on_red', attrs=['bold'])}\n"
        f"{colored('Problem:', 'red', attrs=['bold'])} Configuration file not found\n"
        f"{colored('Path:', 'cyan')} {config_path}\n"
        f"{colored('Solution:', 'green', attrs=['bold'])} Check if the file exists and path is correct"
    )

    with open(path, "r") as f:
        yaml_config = yaml.safe_load(f) or {}

    if overrides:
        yaml_config = merge_configs(yaml_config, overrides)

    return from_dict(GameConfig, yaml_config)
