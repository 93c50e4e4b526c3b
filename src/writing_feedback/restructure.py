from __future__ import annotations

import logging
import re
import uuid
from typing import Any, List, Mapping, Tuple

from .evaluation import normalize_for_match
from .llm import JSONCompletionClient, RequestMetadata
from .models import RestructureResult, RestructureSuggestion
from .sections import get_section

logger = logging.getLogger(__name__)

PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
MAX_SUGGESTIONS = 5
DEFAULT_COHERENCE = 8.0
SINGLE_PARAGRAPH_SUMMARY = "Text has only one paragraph. No restructuring needed."

SYSTEM_PROMPT = """You are an expert academic writing editor. Analyze the paragraph structure of academic text and identify sentences that would flow better in a different paragraph.{custom}

Your job is to identify sentences that:
1. Break the logical flow of their current paragraph
2. Would fit more naturally in another paragraph based on topic/theme
3. Are out of place given the paragraph's main idea

CRITICAL CONSTRAINTS:
- Only suggest moving COMPLETE sentences that already exist in the text
- Never suggest adding, removing, or modifying content
- Be conservative - only suggest moves that clearly improve the structure
- If the structure is already coherent, return an empty suggestions array

Respond with a JSON object containing:
{{
  "suggestions": [
    {{
      "id": "unique-id",
      "sentence": "The exact sentence to move (must be verbatim from text)",
      "fromParagraph": 1,
      "toParagraph": 3,
      "reason": "Brief explanation of why this move improves coherence"
    }}
  ],
  "overallCoherence": 7.5,
  "summary": "Brief assessment of the text's current structure"
}}

Notes:
- Paragraph numbers are 1-indexed
- overallCoherence is a score from 1-10 (10 = perfectly structured)
- Maximum {limit} suggestions"""


def split_paragraphs(text: str) -> List[str]:
    """Split text on blank lines, dropping empty paragraphs."""
    return [part.strip() for part in PARAGRAPH_BREAK.split(text) if part.strip()]


def build_restructure_prompts(
    paragraphs: List[str], section_type: str, custom_instructions: str | None = None
) -> Tuple[str, str]:
    section = get_section(section_type)
    custom = ""
    if custom_instructions:
        custom = (
            "\n\nUSER-PROVIDED CUSTOM INSTRUCTIONS (consider these when analyzing structure):\n"
            f"{custom_instructions}"
        )
    system_prompt = SYSTEM_PROMPT.format(custom=custom, limit=MAX_SUGGESTIONS)
    body = "\n\n".join(
        f"--- Paragraph {idx} ---\n{paragraph}" for idx, paragraph in enumerate(paragraphs, start=1)
    )
    user_prompt = (
        f"Analyze this {section.label} section for paragraph coherence. Identify any sentences "
        "that should be moved to a different paragraph.\n\n"
        f"TEXT ({len(paragraphs)} paragraphs):\n{body}\n\n"
        "Remember: Only suggest moves that clearly improve coherence. If the structure is "
        "good, return empty suggestions."
    )
    return system_prompt, user_prompt


def _as_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _as_float(value: Any, default: float) -> float:
    """Model number or ``default`` when the value is missing, zero or not numeric."""
    if not value:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def parse_restructure_response(payload: Mapping[str, Any], text: str) -> RestructureResult:
    """Keep only suggestions whose sentence appears verbatim in the text."""
    haystack = normalize_for_match(text)
    raw = payload.get("suggestions")
    suggestions: List[RestructureSuggestion] = []
    for item in raw if isinstance(raw, list) else []:
        if not isinstance(item, Mapping):
            continue
        sentence = item.get("sentence")
        if not isinstance(sentence, str) or not sentence.strip():
            continue
        if normalize_for_match(sentence).strip() not in haystack:
            logger.debug("Discarding restructure suggestion not found in text: %r", sentence)
            continue
        suggestions.append(
            RestructureSuggestion(
                id=str(item.get("id") or uuid.uuid4()),
                sentence=sentence,
                from_paragraph=_as_int(item.get("fromParagraph")),
                to_paragraph=_as_int(item.get("toParagraph")),
                reason=str(item.get("reason") or ""),
            )
        )
        if len(suggestions) >= MAX_SUGGESTIONS:
            break
    return RestructureResult(
        suggestions=suggestions,
        overall_coherence=_as_float(payload.get("overallCoherence"), DEFAULT_COHERENCE),
        summary=str(payload.get("summary") or "Analysis complete"),
    )


def suggest_restructure(
    text: str,
    section_type: str,
    client: JSONCompletionClient,
    custom_instructions: str | None = None,
) -> RestructureResult:
    """Suggest sentence moves between paragraphs to improve coherence."""
    paragraphs = split_paragraphs(text)
    if len(paragraphs) < 2:
        return RestructureResult(
            suggestions=[], overall_coherence=10.0, summary=SINGLE_PARAGRAPH_SUMMARY
        )
    system_prompt, user_prompt = build_restructure_prompts(
        paragraphs, section_type, custom_instructions
    )
    payload = client.complete_json(
        system_prompt=system_prompt,
        user_prompt=user_prompt,
        metadata=RequestMetadata(
            task="restructure", section_type=section_type, word_count=len(text.split())
        ),
    )
    return parse_restructure_response(payload, text)
