from __future__ import annotations

import logging
import re

import textstat

logger = logging.getLogger(__name__)

NON_ALPHA_PATTERN = re.compile(r"[^a-z]")
VOWELS = frozenset("aeiouy")


def count_syllables(word: str) -> int:
    """Estimate syllables in a word; non-empty words count at least one."""
    cleaned = NON_ALPHA_PATTERN.sub("", word.lower())
    if not cleaned:
        return 0
    try:
        count = int(textstat.syllable_count(cleaned))
    except Exception as exc:  # pragma: no cover - depends on dictionary backend
        logger.debug("Syllable estimator failed for %r: %s", cleaned, exc)
        return count_vowel_groups(cleaned)
    return max(1, count)


def count_vowel_groups(word: str) -> int:
    """Count transitions into vowel groups, treating y as a vowel."""
    count = 0
    previous_vowel = False
    for char in word:
        is_vowel = char in VOWELS
        if is_vowel and not previous_vowel:
            count += 1
        previous_vowel = is_vowel
    return max(1, count)
