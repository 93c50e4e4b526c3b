from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Sequence

import yaml

from .styles import WritingStyle

# Style presets that map onto a discipline with curated examples.
STYLE_DISCIPLINES = {
    "engineering": "engineering",
    "natural_sciences": "natural_sciences",
    "social_sciences": "social_sciences",
    "management": "business_management",
    "information_systems": "information_systems",
}


@dataclass(slots=True)
class WritingExample:
    """Annotated excerpt of high-quality academic writing."""

    discipline: str
    section_type: str
    title: str
    excerpt: str
    annotation: str | None = None
    source_journal: str | None = None
    is_active: bool = True


def examples_from_records(records: Iterable[Mapping[str, Any]]) -> List[WritingExample]:
    allowed = {item.name for item in fields(WritingExample)}
    examples: List[WritingExample] = []
    for record in records:
        if not isinstance(record, Mapping):
            raise ValueError("Each writing example must be a mapping.")
        examples.append(WritingExample(**{k: v for k, v in record.items() if k in allowed}))
    return examples


def load_examples(path: str | Path | None) -> List[WritingExample]:
    """Load active writing examples from a YAML list (or an ``examples`` key)."""
    if path is None:
        return []
    parsed = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or []
    if isinstance(parsed, Mapping):
        parsed = parsed.get("examples") or []
    if not isinstance(parsed, list):
        raise ValueError("Writing examples YAML must define a list.")
    return [example for example in examples_from_records(parsed) if example.is_active]


def discipline_for_style(style: WritingStyle | None) -> str | None:
    if style is None:
        return None
    return STYLE_DISCIPLINES.get(style.preset)


def select_relevant_examples(
    examples: Sequence[WritingExample],
    section_type: str,
    discipline: str | None = None,
    limit: int = 2,
) -> List[WritingExample]:
    """Pick examples for a section, preferring the same discipline."""
    normalized = "conclusion" if section_type.startswith("conclusion") else section_type
    if discipline:
        exact = [
            ex for ex in examples if ex.discipline == discipline and ex.section_type == normalized
        ]
        if exact:
            return exact[:limit]
    return [ex for ex in examples if ex.section_type == normalized][:limit]


def build_examples_prompt(examples: Sequence[WritingExample]) -> str:
    if not examples:
        return ""
    blocks = []
    for idx, ex in enumerate(examples, start=1):
        block = f'\nExample {idx} ({ex.discipline}, {ex.section_type}):\n"{ex.excerpt}"'
        if ex.annotation:
            block += f"\n\nWhy this works: {ex.annotation}"
        blocks.append(block)
    return (
        "\n\nHIGH-QUALITY EXAMPLES - Use these as reference for excellent academic writing:"
        + "\n".join(blocks)
        + "\n\nLearn from these examples: notice the specific numbers, clear structure, active "
        "voice, and concrete details. Your feedback should guide the user toward writing like "
        "these examples."
    )


def build_rewrite_examples_prompt(examples: Sequence[WritingExample]) -> str:
    """Single reference example for rewrite prompts."""
    if not examples:
        return ""
    ex = examples[0]
    annotation = ex.annotation or "Clear, specific, well-structured academic writing."
    return (
        "\n\nREFERENCE EXAMPLES - Learn from these high-quality academic writing examples:\n"
        f'\n"{ex.excerpt}"\n'
        f"What makes this excellent: {annotation}\n"
        "\nAim to achieve this level of clarity, specificity, and structure in your rewrite."
    )
