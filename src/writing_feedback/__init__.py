"""
writing_feedback package exports convenience helpers for library consumers.
"""

from __future__ import annotations

from .config import FeedbackConfig, config_from_dict, config_from_yaml, load_config
from .diffing import diff
from .readability import analyze

__all__ = [
    "FeedbackConfig",
    "config_from_dict",
    "config_from_yaml",
    "load_config",
    "analyze",
    "diff",
]

__version__ = "0.1.0"
