"""
Deterministic readability analysis: Flesch Reading Ease, passive voice share
and long-sentence extraction. No network access and no randomness.
"""

from __future__ import annotations

import logging
import math
import re
from typing import List, Sequence

from .config import ReadabilitySettings
from .models import LongSentence, ReadabilityReport, Sentence
from .sentences import segment_sentences
from .syllables import count_syllables
from .tokenization import alphabetic_words

logger = logging.getLogger(__name__)

UNABLE_TO_ANALYZE = "Unable to analyze"

# Lower bound of each band, highest first; anything below the last bound is
# "Extremely Difficult (Professional)".
GRADE_BANDS: tuple[tuple[float, str], ...] = (
    (90.0, "Very Easy (5th grade)"),
    (80.0, "Easy (6th grade)"),
    (70.0, "Fairly Easy (7th grade)"),
    (60.0, "Standard (8th-9th grade)"),
    (50.0, "Fairly Difficult (10th-12th grade)"),
    (30.0, "Difficult (College)"),
    (10.0, "Very Difficult (Graduate)"),
)
LOWEST_GRADE = "Extremely Difficult (Professional)"

_PARTICIPLE = r"\w+ed"
PASSIVE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"\b(am|is|are|was|were|be|been|being)\s+"
        r"(\w+ed|done|made|given|taken|seen|known|shown|found|used|called)\b",
        re.IGNORECASE,
    ),
    re.compile(rf"\b(has|have|had)\s+been\s+{_PARTICIPLE}\b", re.IGNORECASE),
    *(
        re.compile(rf"\b{modal}\s+be\s+{_PARTICIPLE}\b", re.IGNORECASE)
        for modal in ("will", "can", "may", "must", "should", "would", "could")
    ),
)


def analyze(text: str, settings: ReadabilitySettings | None = None) -> ReadabilityReport:
    """Compute a readability report for text; never raises for str input."""
    settings = settings or ReadabilitySettings()
    sentences = segment_sentences(text)
    words = alphabetic_words(text)
    if not sentences or not words:
        return empty_report()

    total_sentences = len(sentences)
    total_words = len(words)
    total_syllables = sum(count_syllables(word) for word in words)

    avg_sentence_length = total_words / total_sentences
    avg_syllables_per_word = total_syllables / total_words
    raw_score = flesch_reading_ease(avg_sentence_length, avg_syllables_per_word)
    if raw_score < 0:
        # Usually a run-on sentence or a systematic mis-split.
        logger.warning(
            "Flesch score went negative (%.1f). ASL: %.1f, ASW: %.2f, "
            "Sentences: %d, Words: %d",
            raw_score,
            avg_sentence_length,
            avg_syllables_per_word,
            total_sentences,
            total_words,
        )
    score = min(100.0, max(0.0, raw_score))

    passive_count = sum(1 for sentence in sentences if is_passive_voice(sentence.text))
    passive_percent = int(_round_half_up(passive_count / total_sentences * 100, 0))

    return ReadabilityReport(
        flesch_score=_round_half_up(score, 1),
        flesch_grade=flesch_grade(score),
        avg_sentence_length=_round_half_up(avg_sentence_length, 1),
        avg_word_length=_round_half_up(avg_syllables_per_word, 1),
        passive_voice_percent=passive_percent,
        long_sentences=tuple(find_long_sentences(sentences, settings)),
        total_sentences=total_sentences,
        total_words=total_words,
    )


def empty_report() -> ReadabilityReport:
    """Report returned when the text has no sentences or no alphabetic words."""
    return ReadabilityReport(
        flesch_score=0.0,
        flesch_grade=UNABLE_TO_ANALYZE,
        avg_sentence_length=0.0,
        avg_word_length=0.0,
        passive_voice_percent=0,
        long_sentences=(),
        total_sentences=0,
        total_words=0,
    )


def flesch_reading_ease(avg_sentence_length: float, avg_syllables_per_word: float) -> float:
    """Unclamped Flesch Reading Ease score."""
    return 206.835 - 1.015 * avg_sentence_length - 84.6 * avg_syllables_per_word


def flesch_grade(score: float) -> str:
    """Map a clamped Flesch score onto its human-readable band."""
    for lower_bound, label in GRADE_BANDS:
        if score >= lower_bound:
            return label
    return LOWEST_GRADE


def is_passive_voice(sentence: str) -> bool:
    """Heuristic passive-voice check: auxiliary verb plus participle-shaped word."""
    return any(pattern.search(sentence) for pattern in PASSIVE_PATTERNS)


def find_long_sentences(
    sentences: Sequence[Sentence], settings: ReadabilitySettings
) -> List[LongSentence]:
    """Return the first sentences over the word threshold, in order of appearance."""
    found: List[LongSentence] = []
    for sentence in sentences:
        if len(found) >= settings.max_long_sentences:
            break
        if sentence.word_count <= settings.long_sentence_threshold:
            continue
        found.append(
            LongSentence(
                text=truncate_for_display(
                    sentence.text,
                    settings.display_max_chars,
                    settings.display_truncate_chars,
                ),
                word_count=sentence.word_count,
                position=sentence.position,
            )
        )
    return found


def truncate_for_display(sentence: str, max_chars: int = 150, keep_chars: int = 147) -> str:
    """Shorten a sentence at a word boundary and append an ellipsis."""
    if len(sentence) <= max_chars:
        return sentence
    truncated = ""
    for word in sentence.split():
        if len(truncated) + len(word) + 1 > keep_chars:
            break
        truncated = f"{truncated} {word}" if truncated else word
    return truncated + "..."


def _round_half_up(value: float, digits: int) -> float:
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor
