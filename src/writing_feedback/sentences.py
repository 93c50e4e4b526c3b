from __future__ import annotations

import re
from typing import List

from .models import Sentence
from .tokenization import ALPHA_PATTERN, split_words

ABBREVIATIONS = (
    "e.g", "i.e", "et al", "etc", "vs", "cf", "viz", "ibid",
    "Dr", "Prof", "Mr", "Mrs", "Ms", "Jr", "Sr", "St",
    "Fig", "Figs", "Tab", "Eq", "Eqs", "Vol", "No", "pp", "ed", "eds",
    "Jan", "Feb", "Mar", "Apr", "Jun", "Jul", "Aug", "Sep", "Sept", "Oct", "Nov", "Dec",
    "Inc", "Corp", "Ltd", "Co", "Dept", "Univ", "Rev", "Int", "J",
    "approx", "ca", "c.f", "n.b", "N.B", "P.S",
)

# Terminal punctuation, optional closing quotes/brackets, then whitespace that
# precedes an uppercase letter, a digit or the end of the text. Decimal points
# and domain dots are never followed by whitespace, so they cannot match.
BOUNDARY_PATTERN = re.compile(r"([.!?])(['\")\]]*)\s+(?=[A-Z0-9]|\Z)")

ABBREVIATION_PATTERN = re.compile(
    r"\b(?:" + "|".join(re.escape(abbr) for abbr in ABBREVIATIONS) + r")\Z",
    re.IGNORECASE | re.ASCII,
)

# Longest abbreviation plus one character of left context for the \b check.
_LOOKBEHIND_CHARS = max(len(abbr) for abbr in ABBREVIATIONS) + 1


def _is_abbreviation_period(text: str, match: re.Match[str]) -> bool:
    if match.group(1) != "." or match.group(2):
        return False
    end = match.start(1)
    prefix = text[max(0, end - _LOOKBEHIND_CHARS) : end]
    return ABBREVIATION_PATTERN.search(prefix) is not None


def split_into_sentences(text: str) -> List[str]:
    """Split text into sentences with an abbreviation-aware punctuation heuristic.

    Sentences that contain no ASCII letter are dropped.
    """
    pieces: List[str] = []
    start = 0
    for match in BOUNDARY_PATTERN.finditer(text):
        if _is_abbreviation_period(text, match):
            continue
        pieces.append(text[start : match.end(2)])
        start = match.end()
    pieces.append(text[start:])

    sentences: List[str] = []
    for piece in pieces:
        sentence = piece.strip()
        if sentence and ALPHA_PATTERN.search(sentence):
            sentences.append(sentence)
    return sentences


def segment_sentences(text: str) -> List[Sentence]:
    """Return sentences with their word counts and 1-based positions."""
    return [
        Sentence(text=sentence, word_count=len(split_words(sentence)), position=idx)
        for idx, sentence in enumerate(split_into_sentences(text), start=1)
    ]
