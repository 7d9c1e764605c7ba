"""
Tests for configuration loading, saving and key conversion.
"""

import json

from budgetbot.config.loader import (
    camel_to_snake,
    convert_keys,
    load_config,
    save_config,
    snake_to_camel,
)
from budgetbot.config.schema import Config


def test_key_conversion() -> None:
    assert camel_to_snake("maxIterations") == "max_iterations"
    assert snake_to_camel("regeneration_grace_seconds") == "regenerationGraceSeconds"
    assert convert_keys({"agents": {"defaults": {"maxTokens": 10}}}) == {
        "agents": {"defaults": {"max_tokens": 10}}
    }


def test_save_then_load(tmp_path) -> None:
    path = tmp_path / "config.json"
    config = Config()
    config.agents.defaults.max_iterations = 8
    config.tools.search.max_results = 15

    save_config(config, path)
    raw = json.loads(path.read_text())
    assert raw["agents"]["defaults"]["maxIterations"] == 8
    assert raw["tools"]["search"]["maxResults"] == 15

    loaded = load_config(path)
    assert loaded.agents.defaults.max_iterations == 8
    assert loaded.tools.search.max_results == 15
    assert loaded.recommendations.expiry_days == 7


def test_missing_or_corrupt_file_uses_defaults(tmp_path) -> None:
    assert load_config(tmp_path / "absent.json").agents.defaults.max_iterations == 5

    corrupt = tmp_path / "config.json"
    corrupt.write_text("{not json")
    assert load_config(corrupt).tools.spending.max_top_n == 20

    invalid = tmp_path / "invalid.json"
    invalid.write_text(json.dumps({"agents": {"defaults": {"maxIterations": 0}}}))
    assert load_config(invalid).agents.defaults.max_iterations == 5


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("BUDGETBOT_AGENTS__DEFAULTS__MODEL", "anthropic/claude-3-haiku")

    assert Config().agents.defaults.model == "anthropic/claude-3-haiku"
