from pathlib import Path

import pytest

from writing_feedback.config import (
    FeedbackConfig,
    OpenAISettings,
    ReadabilitySettings,
    config_from_dict,
    config_from_yaml,
    load_config,
)


def test_defaults_match_documented_values():
    cfg = load_config(None)

    assert cfg.readability == ReadabilitySettings(25, 5, 150, 147)
    assert cfg.openai.api_key_env == "OPENAI_API_KEY"
    assert cfg.openai.max_attempts == 3
    assert cfg.max_rewrite_attempts == 3
    assert cfg.examples_path is None


def test_config_from_dict_builds_nested_settings_and_ignores_unknown_keys():
    cfg = config_from_dict(
        {
            "readability": {"long_sentence_threshold": 30, "bogus": 1},
            "openai": {"model": "gpt-4.1-mini", "parallel_requests": 2},
            "max_rewrite_attempts": 5,
            "unknown": True,
        }
    )

    assert cfg.readability.long_sentence_threshold == 30
    assert cfg.readability.max_long_sentences == 5
    assert cfg.openai.model == "gpt-4.1-mini"
    assert cfg.openai.parallel_requests == 2
    assert cfg.max_rewrite_attempts == 5


def test_config_from_dict_accepts_settings_instances():
    settings = OpenAISettings(model="custom")

    cfg = config_from_dict({"openai": settings})

    assert cfg.openai is settings


def test_config_from_yaml(tmp_path: Path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "readability:\n  max_long_sentences: 2\nexamples_path: examples.yaml\n",
        encoding="utf-8",
    )

    cfg = config_from_yaml(path)

    assert cfg.readability.max_long_sentences == 2
    assert cfg.examples_path == "examples.yaml"


def test_empty_yaml_yields_defaults(tmp_path: Path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")

    assert config_from_yaml(path) == FeedbackConfig()


def test_non_mapping_yaml_is_rejected(tmp_path: Path):
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")

    with pytest.raises(ValueError):
        config_from_yaml(path)


def test_to_dict_round_trips_through_config_from_dict():
    cfg = FeedbackConfig()

    assert config_from_dict(cfg.to_dict()) == cfg
