from __future__ import annotations

from typing import List, Tuple

from .models import DiffSegment, DiffType
from .tokenization import tokenize_with_whitespace


def diff(original: str, modified: str) -> List[DiffSegment]:
    """Word-level diff of two strings as coalesced equal/added/removed segments.

    Whitespace runs are tokens of their own, so joining the equal+removed
    segments gives back ``original`` and joining equal+added gives ``modified``.
    Time and memory are O(m*n) in token counts.
    """
    original_tokens = tokenize_with_whitespace(original)
    modified_tokens = tokenize_with_whitespace(modified)
    operations = _edit_script(original_tokens, modified_tokens)
    return _coalesce(operations)


def _lcs_table(a: List[str], b: List[str]) -> List[List[int]]:
    m, n = len(a), len(b)
    table = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(1, m + 1):
        row, previous = table[i], table[i - 1]
        for j in range(1, n + 1):
            if a[i - 1] == b[j - 1]:
                row[j] = previous[j - 1] + 1
            else:
                row[j] = max(previous[j], row[j - 1])
    return table


def _edit_script(a: List[str], b: List[str]) -> List[Tuple[DiffType, str]]:
    table = _lcs_table(a, b)
    operations: List[Tuple[DiffType, str]] = []
    i, j = len(a), len(b)
    while i > 0 or j > 0:
        if i > 0 and j > 0 and a[i - 1] == b[j - 1]:
            operations.append(("equal", a[i - 1]))
            i -= 1
            j -= 1
        elif j > 0 and (i == 0 or table[i][j - 1] >= table[i - 1][j]):
            # Ties go to the modified side.
            operations.append(("added", b[j - 1]))
            j -= 1
        else:
            operations.append(("removed", a[i - 1]))
            i -= 1
    operations.reverse()
    return operations


def _coalesce(operations: List[Tuple[DiffType, str]]) -> List[DiffSegment]:
    segments: List[DiffSegment] = []
    for op_type, text in operations:
        # Empty edge tokens take part in the alignment but never reach the output.
        if not text:
            continue
        if segments and segments[-1].type == op_type:
            segments[-1].text += text
        else:
            segments.append(DiffSegment(type=op_type, text=text))
    return segments
