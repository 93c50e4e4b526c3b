from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Sequence

from .llm import JSONCompletionClient, RequestMetadata
from .models import CoherenceInsight, CoherenceResult, SectionSubmission
from .sections import section_label

logger = logging.getLogger(__name__)

EXCERPT_CHARS = 800

SYSTEM_PROMPT = """You are an expert academic writing reviewer analyzing the COHERENCE between different sections of a research paper. Your task is to evaluate how well the sections work together as a unified whole.

Analyze:
1. Logical flow between sections - do ideas build naturally?
2. Consistency of terminology, concepts, and claims
3. Alignment of research question (intro) with methodology, results, and conclusions
4. Whether the paper tells a coherent story
5. Gaps or disconnects between sections

You must respond with a valid JSON object containing:
1. "overallScore": A score from 1-10 for overall coherence
2. "summary": A 2-3 sentence summary of the paper's coherence (plain language)
3. "strengths": An array of 2-3 specific coherence strengths
4. "improvements": An array of 2-3 specific areas to improve coherence
5. "insights": An array of section-pair analyses, each with:
   - "fromSection": The source section type
   - "toSection": The target section type
   - "score": Coherence score for this transition (1-10)
   - "feedback": Brief feedback on how well these sections connect

Focus on actionable insights. Be constructive and specific."""


def latest_by_section(submissions: Sequence[SectionSubmission]) -> List[SectionSubmission]:
    """Most recent submission per section, newest first.

    ``submissions`` is expected in chronological order.
    """
    seen: Dict[str, SectionSubmission] = {}
    for submission in reversed(submissions):
        seen.setdefault(submission.section_type, submission)
    return list(seen.values())


def build_coherence_prompt(title: str, submissions: Sequence[SectionSubmission]) -> str:
    blocks = []
    for item in submissions:
        excerpt = item.text[:EXCERPT_CHARS]
        if len(item.text) > EXCERPT_CHARS:
            excerpt += "..."
        heading = f"### {section_label(item.section_type)}"
        if item.overall_score is not None:
            heading += f" (Score: {item.overall_score:.1f}/10)"
        blocks.append(f"{heading}\n{excerpt}")
    return (
        f'Analyze the coherence between these sections from "{title}":\n\n'
        + "\n\n".join(blocks)
        + "\n\nProvide a coherence analysis in JSON format."
    )


def _as_float(value: Any, default: float) -> float:
    """Model number or ``default`` when the value is missing, zero or not numeric."""
    if not value:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value]


def parse_coherence_response(payload: Mapping[str, Any]) -> CoherenceResult:
    insights = [
        CoherenceInsight(
            from_section=str(item.get("fromSection", "")),
            to_section=str(item.get("toSection", "")),
            score=_as_float(item.get("score"), 0.0),
            feedback=str(item.get("feedback", "")),
        )
        for item in payload.get("insights") or []
        if isinstance(item, Mapping)
    ]
    return CoherenceResult(
        overall_score=_as_float(payload.get("overallScore"), 5.0),
        summary=str(payload.get("summary") or "Analysis complete."),
        insights=insights,
        strengths=_string_list(payload.get("strengths")),
        improvements=_string_list(payload.get("improvements")),
    )


def analyze_coherence(
    title: str, submissions: Sequence[SectionSubmission], client: JSONCompletionClient
) -> CoherenceResult:
    """Judge how well the sections of one paper work together."""
    if len(submissions) < 2:
        raise ValueError("Need at least 2 sections to analyze coherence.")
    latest = latest_by_section(submissions)
    logger.info("Analyzing coherence of %d sections for %r", len(latest), title)
    payload = client.complete_json(
        system_prompt=SYSTEM_PROMPT,
        user_prompt=build_coherence_prompt(title, latest),
        metadata=RequestMetadata(task="coherence"),
    )
    return parse_coherence_response(payload)
