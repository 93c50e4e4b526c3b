from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, MutableMapping

import yaml


@dataclass(slots=True)
class ReadabilitySettings:
    """Thresholds used by the deterministic readability analyzer."""

    long_sentence_threshold: int = 25
    max_long_sentences: int = 5
    display_max_chars: int = 150
    display_truncate_chars: int = 147


@dataclass(slots=True)
class OpenAISettings:
    """Configuration block for OpenAI-backed evaluation and rewriting."""

    model: str = "gpt-4.1"
    api_key: str | None = None
    api_key_env: str = "OPENAI_API_KEY"
    base_url: str | None = None
    organization: str | None = None
    temperature: float | None = None
    max_output_tokens: int = 4096
    request_timeout: float = 120.0
    parallel_requests: int = 1
    max_attempts: int = 3


@dataclass(slots=True)
class FeedbackConfig:
    """Top-level configuration for the writing feedback tools."""

    readability: ReadabilitySettings = field(default_factory=ReadabilitySettings)
    openai: OpenAISettings = field(default_factory=OpenAISettings)
    max_rewrite_attempts: int = 3
    examples_path: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return a mutable dictionary representation of the configuration."""
        return dict(asdict(self))


_NESTED_SETTINGS: dict[str, type] = {
    "readability": ReadabilitySettings,
    "openai": OpenAISettings,
}


def _build_kwargs(data: Mapping[str, Any]) -> dict[str, Any]:
    allowed = {item.name for item in fields(FeedbackConfig)}
    kwargs = {key: data[key] for key in data if key in allowed}
    for name, settings_cls in _NESTED_SETTINGS.items():
        if name not in data:
            continue
        value = data[name]
        if isinstance(value, settings_cls):
            kwargs[name] = value
        elif isinstance(value, Mapping):
            kwargs[name] = _build_settings(settings_cls, value)
        else:
            kwargs.pop(name)
    return kwargs


def _build_settings(settings_cls: type, data: Mapping[str, Any]) -> Any:
    allowed = {item.name for item in fields(settings_cls)}
    filtered = {key: data[key] for key in data if key in allowed}
    return settings_cls(**filtered)


def config_from_dict(data: Mapping[str, Any] | None) -> FeedbackConfig:
    """Build a FeedbackConfig from a dictionary-like input."""
    if data is None:
        return FeedbackConfig()
    return FeedbackConfig(**_build_kwargs(data))


def config_from_yaml(path: str | Path) -> FeedbackConfig:
    """Load configuration from a YAML file."""
    contents = Path(path).read_text(encoding="utf-8")
    parsed = yaml.safe_load(contents) or {}
    if not isinstance(parsed, MutableMapping):
        raise ValueError("Configuration YAML must define a mapping.")
    return config_from_dict(parsed)


def load_config(path: str | Path | None = None) -> FeedbackConfig:
    """Load configuration from YAML when provided, otherwise return defaults."""
    if path is None:
        return FeedbackConfig()
    return config_from_yaml(path)
