import json
import sys

import jax
import openai
import pytest

from ai_platformer.systems.generation import (
    THEMES,
    GeneratorConfig,
    LevelGenerator,
    calculate_difficulty,
    generate_fallback_level,
    repair_level,
)
from ai_platformer.systems.generation.client import (
    LevelGenerationError,
    parse_level_response,
    strip_code_fences,
)
from ai_platformer.systems.generation.level import (
    MAX_PLATFORM_Y,
    MIN_PLATFORM_Y,
    SOURCE_AI,
    SOURCE_FALLBACK,
    SPAWN_PLATFORM,
    Goal,
)


def assert_valid_level(level):
    assert isinstance(level.goal, Goal)
    assert len(level.platforms) >= 1
    assert level.platforms[0] == SPAWN_PLATFORM
    for p in level.platforms:
        assert p.width > 0 and p.height > 0
        assert MIN_PLATFORM_Y <= p.y <= MAX_PLATFORM_Y


# ---------------------------------------------------------------------------
# Fallback path
# ---------------------------------------------------------------------------

def test_forest_level_one_fallback_scenario(fake_client):
    generator = LevelGenerator(client=fake_client(error=TimeoutError("request timed out")))
    level = generator.generate_level("forest", 1)

    assert level.source == SOURCE_FALLBACK
    assert level.used_fallback
    assert len(level.platforms) == 12
    assert level.platforms[0] == SPAWN_PLATFORM
    assert len(level.enemies) == 0
    assert len(level.collectibles) == 5
    assert len(level.hazards) == 0


@pytest.mark.parametrize("level_number", [1, 2, 3, 4, 5, 6])
def test_fallback_levels_are_structurally_valid(offline_generator, level_number):
    level = offline_generator.generate_level("space", level_number)
    difficulty = calculate_difficulty(level_number)

    assert_valid_level(level)
    assert level.level_number == level_number
    assert len(level.platforms) == difficulty.platform_count
    assert len(level.collectibles) == difficulty.collectible_count
    assert len(level.enemies) <= difficulty.enemy_count
    assert all(e.type in ("walker", "jumper") for e in level.enemies)
    assert level.hazards == ()


def test_fallback_goal_is_past_last_platform(offline_generator):
    level = offline_generator.generate_level("ocean", 2)
    last = level.platforms[-1]
    assert level.goal == Goal(x=last.x + 100, y=last.y - 50)


def test_fallback_moving_platforms():
    difficulty = calculate_difficulty(3)
    level = generate_fallback_level("volcanic", 3, difficulty)
    moving = [p for p in level.platforms if p.moving]
    assert len(moving) == difficulty.moving_platforms
    assert all(p.move_range == 50 for p in moving)
    assert not level.platforms[0].moving


def test_fallback_is_deterministic():
    difficulty = calculate_difficulty(4)
    a = generate_fallback_level("forest", 4, difficulty)
    b = generate_fallback_level("forest", 4, difficulty)
    assert a == b


def test_fallback_honors_explicit_key():
    difficulty = calculate_difficulty(2)
    a = generate_fallback_level("forest", 2, difficulty, key=jax.random.PRNGKey(1))
    b = generate_fallback_level("forest", 2, difficulty, key=jax.random.PRNGKey(1))
    assert a == b
    assert_valid_level(a)


@pytest.mark.parametrize(
    "response",
    [
        "",
        "   ",
        None,
        "not json at all",
        "```json\n{\"platforms\": [\n```",
        "[1, 2, 3]",
        "{}",
        json.dumps({"enemies": [], "goal": {"x": 1, "y": 2}}),
        json.dumps({"platforms": []}),
        json.dumps({"platforms": "many"}),
    ],
)
def test_malformed_responses_fall_back(fake_client, response):
    generator = LevelGenerator(client=fake_client(response=response))
    level = generator.generate_level("forest", 1)
    assert level.source == SOURCE_FALLBACK
    assert_valid_level(level)


def _level_with_platform_x(x_literal):
    return (
        '{"platforms": [{"x": 100, "y": 400, "width": 200}, '
        '{"x": ' + x_literal + ', "y": 350, "width": 120}], '
        '"goal": {"x": ' + x_literal + ', "y": 300}}'
    )


@pytest.mark.parametrize(
    "x_literal",
    [
        "1" + "0" * 400,      # overflows float
        "1" + "0" * 5000,     # past the int string conversion limit on newer Pythons
        "1e39",               # finite double, infinite float32
        "-1e39",
    ],
)
def test_out_of_range_numbers_never_raise(fake_client, x_literal):
    generator = LevelGenerator(client=fake_client(response=_level_with_platform_x(x_literal)))
    level = generator.generate_level("forest", 1)
    assert_valid_level(level)
    coords = [p.x for p in level.platforms] + [level.goal.x, level.goal.y]
    assert all(abs(v) < 1e38 for v in coords)


def test_out_of_range_platform_x_uses_default():
    raw = json.loads(_level_with_platform_x("1" + "0" * 400))
    level = repair_level(raw, "forest", 1)
    assert level.platforms[1].x == 0.0
    assert level.platforms[1].width == 120.0
    assert level.goal == Goal(x=100.0, y=300.0)


def test_overlong_integer_literal_is_malformed():
    if not hasattr(sys, "get_int_max_str_digits"):
        pytest.skip("interpreter has no int string conversion limit")
    text = '{"platforms": [{"x": ' + "9" * 5001 + "}]}"
    with pytest.raises(LevelGenerationError, match="not valid JSON"):
        parse_level_response(text)


@pytest.mark.parametrize(
    "error",
    [
        LevelGenerationError("no key"),
        openai.OpenAIError("service unavailable"),
        ConnectionError("connection refused"),
        TimeoutError("timed out"),
    ],
)
def test_request_failures_fall_back(fake_client, error):
    generator = LevelGenerator(client=fake_client(error=error))
    level = generator.generate_level("medieval", 2)
    assert level.used_fallback
    assert_valid_level(level)


def test_failure_is_logged(fake_client, caplog):
    generator = LevelGenerator(client=fake_client(response="nope"))
    with caplog.at_level("WARNING", logger="ai_platformer.systems.generation.generator"):
        generator.generate_level("forest", 1)
    assert any("falling back" in r.getMessage() for r in caplog.records)


def test_disabled_generator_never_calls_client(fake_client):
    client = fake_client(response="{}")
    generator = LevelGenerator(GeneratorConfig(enabled=False), client=client)
    assert generator.generate_level("forest", 1).used_fallback
    assert client.prompts == []


def test_missing_api_key_falls_back(monkeypatch):
    monkeypatch.delenv("AI_PLATFORMER_TEST_KEY", raising=False)
    generator = LevelGenerator(GeneratorConfig(api_key_env="AI_PLATFORMER_TEST_KEY"))
    level = generator.generate_level("cyberpunk", 1)
    assert level.used_fallback


def test_invalid_arguments_raise(offline_generator):
    with pytest.raises(ValueError):
        offline_generator.generate_level("underwater-castle", 1)
    with pytest.raises(ValueError):
        offline_generator.generate_level("forest", 0)


# ---------------------------------------------------------------------------
# Primary path
# ---------------------------------------------------------------------------

AI_RESPONSE = """```json
{
  "platforms": [
    {"x": 0, "y": 100, "width": 90, "height": 5, "moving": true, "moveRange": 30},
    {"x": 400, "y": 120, "width": 0, "height": 20},
    {"x": 700, "y": 650, "width": 160, "moving": true, "moveRange": -40},
    "garbage"
  ],
  "enemies": [
    {"x": 450, "y": 300, "type": "dragon", "range": 80},
    {"x": 720, "y": 420, "type": "flyer"}
  ],
  "collectibles": [
    {"x": 480, "y": 260, "type": "powerup"},
    {"x": 760}
  ],
  "hazards": [
    {"x": 550, "y": 480, "type": "lava"}
  ]
}
```"""


def test_ai_response_is_repaired(fake_client):
    client = fake_client(response=AI_RESPONSE)
    level = LevelGenerator(client=client).generate_level("forest", 1)

    assert level.source == SOURCE_AI
    assert not level.used_fallback
    assert_valid_level(level)

    spawn, second, third = level.platforms
    assert spawn == SPAWN_PLATFORM
    assert second.y == MIN_PLATFORM_Y
    assert second.width == 150
    assert third.y == MAX_PLATFORM_Y
    assert third.moving and third.move_range == 40

    assert [e.type for e in level.enemies] == ["walker", "flyer"]
    assert level.enemies[1].range == 100
    assert [c.type for c in level.collectibles] == ["powerup", "coin"]
    assert level.collectibles[1].y == 400

    hazard = level.hazards[0]
    assert hazard.type == "spike" and hazard.width == 50

    assert level.goal == Goal(x=third.x + 100, y=third.y - 50)


def test_prompt_embeds_theme_and_difficulty(fake_client):
    client = fake_client(response=AI_RESPONSE)
    LevelGenerator(client=client).generate_level("mushroom", 2)

    prompt = client.prompts[0]
    assert THEMES["mushroom"].name in prompt
    assert "Level Number: 2" in prompt
    assert "Create 15 platforms" in prompt
    assert "Include 2 enemies" in prompt
    assert '"goal"' in prompt


# ---------------------------------------------------------------------------
# Repair pass and parsing
# ---------------------------------------------------------------------------

def test_repair_inserts_spawn_when_empty():
    level = repair_level({}, "space", 3)
    assert level.platforms == (SPAWN_PLATFORM,)
    assert level.goal == Goal(x=SPAWN_PLATFORM.x + 100, y=SPAWN_PLATFORM.y - 50)


def test_repair_keeps_given_goal():
    level = repair_level({"platforms": [{}], "goal": {"x": 900, "y": 250}}, "space", 1)
    assert level.goal == Goal(x=900, y=250)


def test_repair_treats_non_numbers_as_missing():
    raw = {"platforms": [{}, {"x": "far", "y": None, "width": True}]}
    platform = repair_level(raw, "space", 1).platforms[1]
    assert (platform.x, platform.y, platform.width) == (0.0, 400.0, 150.0)


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('{"a": 1}') == '{"a": 1}'


def test_parse_level_response_rejects_missing_platforms():
    with pytest.raises(LevelGenerationError):
        parse_level_response('{"goal": {"x": 1, "y": 1}}')
    assert parse_level_response('```{"platforms": [{}]}```') == {"platforms": [{}]}


def test_to_dict_round_trips_through_json(offline_generator):
    level = offline_generator.generate_level("forest", 2)
    data = json.loads(json.dumps(level.to_dict()))
    assert data["source"] == "fallback"
    assert len(data["platforms"]) == len(level.platforms)
    assert data["goal"] == {"x": level.goal.x, "y": level.goal.y}
