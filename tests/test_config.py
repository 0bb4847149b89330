"""Tests for config/config_loader.py."""

from pathlib import Path

import pytest
import yaml

from config.config_loader import AppConfig, ExitCriteriaConfig, load_config, load_exit_criteria_config


@pytest.fixture
def minimal_settings(tmp_path: Path) -> Path:
    """Write a minimal valid settings.yaml to a temp path."""
    settings = {
        "defaults": {
            "rounds": 2,
            "max_rounds": 4,
            "mode": "adversarial",
            "output_dir": "./output",
            "synthesizer": "claude",
        },
        "exit_criteria": {"enabled": True, "consensus_threshold": 0.8},
        "models": {
            "claude": {
                "sdk": "anthropic",
                "model": "claude-sonnet-4-20250514",
                "api_key_env": "TEST_CLAUDE_KEY",
                "timeout_sec": 120,
                "max_tokens": 8192,
            },
            "openai": {
                "sdk": "openai",
                "model": "gpt-4o",
                "api_key_env": "TEST_OPENAI_KEY",
                "timeout_sec": 60,
                "max_tokens": 4096,
                "temperature": 0.2,
            },
        },
        "agents": {
            "claude": {"name": "Claude", "model": "claude", "system_prompt": "You are a systems architect."},
            "chatgpt": {"name": "ChatGPT", "model": "openai"},
            "ghost": {"name": "Ghost", "model": "missing"},
        },
    }
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.dump(settings), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (
        "TEST_CLAUDE_KEY",
        "TEST_OPENAI_KEY",
        "ROUNDTABLE_EXIT_ENABLED",
        "ROUNDTABLE_EXIT_CONSENSUS_THRESHOLD",
        "ROUNDTABLE_EXIT_CONVERGENCE_ROUNDS",
        "ROUNDTABLE_EXIT_CONFIDENCE_THRESHOLD",
    ):
        monkeypatch.delenv(name, raising=False)


def test_load_config_returns_app_config(minimal_settings):
    config = load_config(minimal_settings)
    assert isinstance(config, AppConfig)


def test_load_config_defaults(minimal_settings):
    config = load_config(minimal_settings)
    assert config.defaults.rounds == 2
    assert config.defaults.max_rounds == 4
    assert config.defaults.mode == "adversarial"
    assert config.defaults.synthesizer == "claude"
    assert config.defaults.use_ai_consensus is False
    assert isinstance(config.defaults.output_dir, Path)


def test_load_config_models(minimal_settings):
    config = load_config(minimal_settings)
    assert config.models["claude"].sdk == "anthropic"
    assert config.models["claude"].temperature == 0.7
    assert config.models["openai"].temperature == 0.2


def test_agents_with_unknown_model_are_skipped(minimal_settings):
    config = load_config(minimal_settings)
    assert set(config.agents) == {"claude", "chatgpt"}
    assert config.agents["claude"].system_prompt == "You are a systems architect."


def test_available_agents_follow_api_keys(minimal_settings, monkeypatch):
    monkeypatch.setenv("TEST_CLAUDE_KEY", "sk-test")
    config = load_config(minimal_settings)
    assert config.available_agents == ["claude"]


def test_blank_api_key_not_available(minimal_settings, monkeypatch):
    monkeypatch.setenv("TEST_OPENAI_KEY", "   ")
    config = load_config(minimal_settings)
    assert config.available_agents == []


def test_missing_settings_file_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_exit_criteria_from_yaml(minimal_settings):
    criteria = load_config(minimal_settings).exit_criteria
    assert criteria.consensus_threshold == 0.8
    assert criteria.convergence_rounds == 2
    assert criteria.confidence_threshold == 0.85


def test_exit_criteria_defaults_without_section():
    assert load_exit_criteria_config(None) == ExitCriteriaConfig()


def test_exit_criteria_env_overrides(monkeypatch):
    monkeypatch.setenv("ROUNDTABLE_EXIT_ENABLED", "false")
    monkeypatch.setenv("ROUNDTABLE_EXIT_CONSENSUS_THRESHOLD", "0.75")
    monkeypatch.setenv("ROUNDTABLE_EXIT_CONVERGENCE_ROUNDS", "3")
    criteria = load_exit_criteria_config({"consensus_threshold": 0.95})
    assert criteria.enabled is False
    assert criteria.consensus_threshold == 0.75
    assert criteria.convergence_rounds == 3


def test_exit_criteria_invalid_env_ignored(monkeypatch, caplog):
    monkeypatch.setenv("ROUNDTABLE_EXIT_CONFIDENCE_THRESHOLD", "very")
    criteria = load_exit_criteria_config({})
    assert criteria.confidence_threshold == 0.85
    assert "ROUNDTABLE_EXIT_CONFIDENCE_THRESHOLD" in caplog.text


def test_shipped_settings_load():
    config = load_config()
    assert config.defaults.mode == "collaborative"
    assert {"claude", "chatgpt", "gemini", "grok"} <= set(config.agents)
