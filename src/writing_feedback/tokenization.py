from __future__ import annotations

import re
from typing import List

WHITESPACE_SPLIT_PATTERN = re.compile(r"(\s+)")
ALPHA_PATTERN = re.compile(r"[a-zA-Z]")


def split_words(text: str) -> List[str]:
    """Split text into whitespace-delimited tokens."""
    return text.split()


def alphabetic_words(text: str) -> List[str]:
    """Return whitespace-delimited tokens that contain at least one ASCII letter."""
    return [word for word in text.split() if ALPHA_PATTERN.search(word)]


def tokenize_with_whitespace(text: str) -> List[str]:
    """Tokenize text into words and the whitespace runs between them.

    Joining the returned tokens reproduces the input exactly. Text that starts
    or ends with whitespace yields an empty leading or trailing token, and the
    empty string yields ``[""]``.
    """
    return WHITESPACE_SPLIT_PATTERN.split(text)
