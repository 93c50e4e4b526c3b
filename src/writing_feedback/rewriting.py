from __future__ import annotations

import logging
import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence

from .config import ReadabilitySettings
from .diffing import diff
from .evaluation import EvaluationRequest, Evaluator
from .examples import (
    WritingExample,
    build_rewrite_examples_prompt,
    discipline_for_style,
    select_relevant_examples,
)
from .llm import JSONCompletionClient, RequestMetadata
from .models import (
    ChangeEntry,
    CriteriaScoreComparison,
    EvaluationResult,
    ReadabilityReport,
    RewriteDraft,
    RewriteResult,
    SupportArgument,
    ThinkingStep,
)
from .readability import analyze
from .sections import get_section
from .styles import WritingStyle, build_style_prompt

logger = logging.getLogger(__name__)

_QUOTED_CHANGE = re.compile(r"['\"“”]([^'\"]+)['\"“”].*?['\"“”]([^'\"]+)['\"“”]")

DEFAULT_THINKING_STEPS = (
    ("Analysis", "Analyzed text structure and content"),
    ("Improvement", "Applied writing improvements"),
)

SYSTEM_PROMPT_RULES = """
CRITICAL RULES - YOU MUST FOLLOW THESE:
1. ONLY use information that is EXPLICITLY present in the original text
2. NEVER add new citations, references, or author names that are not in the original
3. NEVER add statistics, numbers, percentages, or data that are not in the original
4. NEVER add claims, findings, or conclusions that are not stated in the original
5. NEVER invent names of theories, frameworks, methods, or concepts not in the original
6. NEVER add dates, years, or timeframes not in the original
7. If you cannot improve the text without adding new information, return the original text unchanged

What you CAN do:
- Restructure sentences for better flow and clarity
- Improve word choice and academic tone
- Fix grammar and punctuation
- Combine or split sentences for readability
- Reorder information for logical flow
- Remove redundant ideas (concepts stated multiple times)
- Vary sentence starters (avoid multiple sentences/paragraphs starting with "The...", "This...", "It...")
- Make implicit connections explicit (if clearly implied)"""

SYSTEM_PROMPT_OUTPUT = """

SPECIAL FOCUS - Fix these common issues:
1. Repetitive sentence starters: If sentences or paragraphs start with the same word, vary the openings
2. Idea redundancy: If the same concept is stated in multiple places, consolidate or remove duplicates
3. For paragraphs: Ensure one clear main idea with all other sentences supporting it

You must respond with a valid JSON object containing:
1. "thinkingSteps": An array of your analysis steps, each with "phase" (a short label) and "summary" (a hyperspecific description quoting exact phrases)
2. "suggestedText": The rewritten version of the text
3. "changes": An array of {"original": ..., "new": ...} objects quoting the EXACT original phrase and the EXACT replacement. Never use vague descriptions like "improved clarity".
4. "constraintWarning": null if successful, or a string explaining if you couldn't improve without adding new content

Include 3-5 thinking steps that show your analysis process. Before outputting, verify each sentence of your rewrite contains ONLY information from the original. If any new information was added, remove it."""

STORYTELLING_INSTRUCTIONS = """
STORYTELLING & READABILITY FOCUS:
- Create a clear narrative arc that guides the reader
- Use accessible language that doesn't sacrifice precision
- Favor clear, direct phrasing over unnecessarily complex language
- Ensure smooth transitions between ideas
- Make the "so what?" clear - why does this matter?
"""

SHORTEN_INSTRUCTIONS = """
SHORTEN MODE ACTIVATED - ADDITIONAL PRIORITY:
- SIGNIFICANTLY reduce the word count while preserving ALL key information
- Target: reduce by 20-40% if possible
- Combine sentences, remove filler words, eliminate redundancy aggressively
- Use concise academic phrasing
- Remove unnecessary modifiers and qualifiers
- Every word must earn its place
"""


@dataclass(slots=True)
class RewriteRequest:
    """Section text to rewrite plus the context gathered by a prior evaluation."""

    text: str
    section_type: str
    original_score: float | None = None
    shorten_mode: bool = False
    style: WritingStyle | None = None
    emphasis_suggestions: List[SupportArgument] = field(default_factory=list)
    custom_instructions: str | None = None
    evaluation_feedback: EvaluationResult | None = None


@dataclass(slots=True)
class ReadabilityTargets:
    flesch: float
    sentence_length: float
    passive_percent: float


def readability_targets(report: ReadabilityReport) -> ReadabilityTargets:
    return ReadabilityTargets(
        flesch=max(40, min(60, report.flesch_score + 15)),
        sentence_length=min(18, max(15, report.avg_sentence_length - 5)),
        passive_percent=min(20, max(10, report.passive_voice_percent - 10)),
    )


def readability_issues(report: ReadabilityReport) -> List[str]:
    """Describe the readability problems a rewrite should fix, worst first."""
    issues: List[str] = []
    passive = report.passive_voice_percent
    if passive > 30:
        issues.append(
            f"- HIGH PASSIVE VOICE ({passive}%): Convert passive constructions to active voice "
            'where possible. Example: "The results were analyzed" -> "We analyzed the results"'
        )
    elif passive > 20:
        issues.append(
            f"- MODERATE PASSIVE VOICE ({passive}%): Consider converting some passive sentences "
            "to active voice for better readability"
        )
    if report.long_sentences:
        first = report.long_sentences[0]
        issues.append(
            f"- LONG SENTENCES ({len(report.long_sentences)} found): Break down sentences over "
            f'25 words. Example issue: "{first.text}" ({first.word_count} words)'
        )
    if report.avg_sentence_length > 25:
        issues.append(
            f"- HIGH AVERAGE SENTENCE LENGTH ({report.avg_sentence_length} words): Target 15-20 "
            "words average. Split complex sentences without losing meaning."
        )
    if report.flesch_score < 30:
        issues.append(
            f"- LOW READABILITY SCORE ({report.flesch_score}): Text is very difficult to read. "
            "Simplify vocabulary and sentence structure while maintaining academic rigor."
        )
    elif report.flesch_score < 50:
        issues.append(
            f"- MODERATE READABILITY SCORE ({report.flesch_score}): Text is fairly difficult. "
            "Consider simplifying some complex phrases."
        )
    return issues


def _readability_instructions(report: ReadabilityReport) -> str:
    targets = readability_targets(report)
    issues = readability_issues(report)
    issue_block = "\nSPECIFIC ISSUES TO ADDRESS:\n" + "\n".join(issues) + "\n" if issues else ""
    return (
        "\nREADABILITY ANALYSIS - CURRENT vs TARGET:\n"
        f"- Flesch Reading Ease: {report.flesch_score} (target {targets.flesch:g}+, aim for 40-60)\n"
        f"- Avg Sentence Length: {report.avg_sentence_length:.1f} "
        f"(target <={targets.sentence_length:g} words)\n"
        f"- Passive Voice: {report.passive_voice_percent}% (target <={targets.passive_percent:g}%)\n"
        f"- Long Sentences (>25w): {len(report.long_sentences)} (target 0)\n"
        "\nYOUR MISSION: Transform the current metrics to meet or exceed the TARGET values.\n"
        f"{issue_block}"
        "\nMAINTAIN while improving readability: scholarly tone and precise terminology, all "
        "technical content and nuance, academic rigor for an educated reader audience.\n"
    )


def _evaluation_instructions(feedback: EvaluationResult | None) -> str:
    if feedback is None:
        return ""
    low = [item for item in feedback.criteria if item.score < 8]
    if not low:
        return ""
    lines = "\n".join(f"- {c.name} (Score: {c.score}/10): {c.suggestion}" for c in low)
    return (
        "\nEVALUATION FEEDBACK TO ADDRESS:\n"
        "The original text was evaluated and received the following feedback. Your rewrite "
        f"MUST specifically address these issues:\n\n{lines}\n\n"
        f"General feedback: {feedback.general_feedback}\n\n"
        "PRIORITY: Focus your rewrite on fixing the lowest-scoring criteria above.\n"
    )


def _emphasis_instructions(suggestions: Sequence[SupportArgument]) -> str:
    if not suggestions:
        return ""
    lines = "\n".join(
        f'{idx}. From quote: "{s.source_quote}"\n'
        f"   Emphasis suggestion: {s.emphasis_suggestion}\n"
        f"   Rationale: {s.rationale}"
        for idx, s in enumerate(suggestions, start=1)
    )
    return (
        "\nEMPHASIS AMPLIFICATION - The user has selected specific points to emphasize:\n"
        f"{lines}\n\n"
        "When rewriting, AMPLIFY these points with framing language and more prominent "
        "positioning, but NEVER add new data, citations, or claims.\n"
    )


def build_rewrite_system_prompt(
    request: RewriteRequest,
    readability: ReadabilityReport,
    examples: Sequence[WritingExample] = (),
) -> str:
    section = get_section(request.section_type)
    custom = ""
    if request.custom_instructions:
        custom = (
            "\nUSER-PROVIDED CUSTOM INSTRUCTIONS (prioritize these above all else):\n"
            f"{request.custom_instructions}\n\nApply these instructions when rewriting the text.\n"
        )
    relevant = select_relevant_examples(
        examples, section.key, discipline_for_style(request.style)
    )
    rules = SYSTEM_PROMPT_RULES
    if request.shorten_mode:
        rules += "\n- AGGRESSIVELY remove filler and condense"
    return (
        "You are an expert academic writing editor. Your task is to rewrite academic text to "
        "improve its quality while following STRICT constraints.\n"
        + custom
        + _evaluation_instructions(request.evaluation_feedback)
        + _readability_instructions(readability)
        + (STORYTELLING_INSTRUCTIONS if section.is_narrative else "")
        + build_rewrite_examples_prompt(relevant)
        + (SHORTEN_INSTRUCTIONS if request.shorten_mode else "")
        + _emphasis_instructions(request.emphasis_suggestions)
        + build_style_prompt(request.style)
        + rules
        + SYSTEM_PROMPT_OUTPUT
    )


def build_rewrite_user_prompt(
    request: RewriteRequest, attempt: int = 1, previous_score: float | None = None
) -> str:
    section = get_section(request.section_type)
    criteria = "\n".join(f"- {c.name}: {c.description}" for c in section.criteria)
    prompt = (
        f"Rewrite this {section.label} section to improve its quality for academic publication.\n\n"
        "ORIGINAL TEXT (this is your ONLY source of information - do not add anything not "
        f"present here):\n---\n{request.text}\n---\n\n"
        f"Optimize for these criteria:\n{criteria}\n\n"
        "Remember: You can ONLY restructure, clarify, and improve what's already written. Do "
        "NOT add any new citations, data, claims, or information."
    )
    if attempt > 1 and previous_score is not None and request.original_score is not None:
        original = request.original_score
        prompt += (
            f"\n\nIMPORTANT: Your previous rewrite attempt scored {previous_score}/10, which is "
            f"LOWER than the original score of {original}/10.\n"
            f"You MUST produce a better rewrite that scores HIGHER than {original}. Focus on:\n"
            "- Improving sentence variety and flow\n"
            "- Eliminating redundancy\n"
            "- Strengthening clarity and structure\n"
            "- Being more conservative with changes if needed"
        )
    prompt += (
        "\n\nRespond with JSON containing:\n"
        '- "thinkingSteps" (array of {phase, summary})\n'
        '- "suggestedText"\n'
        '- "changes" (array of {original, new} objects, showing exact phrase changes)\n'
        '- "constraintWarning" (null or warning string)'
    )
    return prompt


def normalize_change(change: Any) -> ChangeEntry:
    """Turn a change entry into an {original, new} pair.

    Free-text entries are split on their first two quoted phrases; when no
    quotes are found the text is used for both sides.
    """
    if isinstance(change, Mapping):
        return ChangeEntry(
            original=str(change.get("original", "")), new=str(change.get("new", ""))
        )
    text = str(change)
    match = _QUOTED_CHANGE.search(text)
    if match:
        return ChangeEntry(original=match.group(1), new=match.group(2))
    return ChangeEntry(original=text, new=text)


def parse_rewrite_response(payload: Mapping[str, Any], original_text: str) -> RewriteDraft:
    raw_steps = payload.get("thinkingSteps")
    steps = [
        ThinkingStep(phase=str(item.get("phase", "")), summary=str(item.get("summary", "")))
        for item in raw_steps or []
        if isinstance(item, Mapping)
    ]
    if not raw_steps:
        steps = [ThinkingStep(phase, summary) for phase, summary in DEFAULT_THINKING_STEPS]
    raw_changes = payload.get("changes")
    changes = [normalize_change(item) for item in raw_changes] if isinstance(raw_changes, list) else []
    suggested = payload.get("suggestedText")
    return RewriteDraft(
        suggested_text=str(suggested) if suggested else original_text,
        changes=changes,
        thinking_steps=steps,
        constraint_warning=payload.get("constraintWarning") or None,
    )


def compare_criteria(
    original: EvaluationResult | None, draft: RewriteDraft
) -> List[CriteriaScoreComparison]:
    """Per-criterion score deltas between the original evaluation and the kept draft."""
    if original is None or not draft.suggested_criteria:
        return []
    suggested_by_name: Dict[str, float] = {c.name: c.score for c in draft.suggested_criteria}
    comparison: List[CriteriaScoreComparison] = []
    for item in original.criteria:
        suggested = suggested_by_name.get(item.name, item.score)
        comparison.append(
            CriteriaScoreComparison(
                name=item.name,
                original_score=item.score,
                suggested_score=suggested,
                delta=math.floor((suggested - item.score) * 10 + 0.5) / 10,
            )
        )
    return comparison


class Rewriter(ABC):
    """Abstract interface for producing an improved version of a section."""

    @abstractmethod
    def rewrite(self, request: RewriteRequest) -> RewriteResult:
        """Return the rewrite outcome."""
        raise NotImplementedError


class NoOpRewriter(Rewriter):
    """Returns the original text unchanged."""

    def __init__(self, readability_settings: ReadabilitySettings | None = None) -> None:
        self._readability_settings = readability_settings

    def rewrite(self, request: RewriteRequest) -> RewriteResult:
        report = analyze(request.text, self._readability_settings)
        return RewriteResult(
            suggested_text=request.text,
            changes=[],
            constraint_warning=None,
            thinking_steps=[],
            diff_segments=diff(request.text, request.text),
            suggested_score=request.original_score,
            original_readability=report,
            suggested_readability=report,
        )


class LLMRewriter(Rewriter):
    """Rewriter that drafts with a model and keeps only drafts that re-score well."""

    def __init__(
        self,
        client: JSONCompletionClient,
        evaluator: Evaluator,
        *,
        examples: Sequence[WritingExample] = (),
        max_attempts: int = 3,
        readability_settings: ReadabilitySettings | None = None,
    ) -> None:
        self._client = client
        self._evaluator = evaluator
        self._examples = list(examples)
        self._max_attempts = max(1, max_attempts)
        self._readability_settings = readability_settings

    def draft(
        self,
        request: RewriteRequest,
        system_prompt: str,
        attempt: int,
        previous_score: float | None = None,
    ) -> RewriteDraft:
        payload = self._client.complete_json(
            system_prompt=system_prompt,
            user_prompt=build_rewrite_user_prompt(request, attempt, previous_score),
            metadata=RequestMetadata(
                task="rewrite",
                section_type=request.section_type,
                attempt=attempt,
                word_count=len(request.text.split()),
            ),
        )
        return parse_rewrite_response(payload, request.text)

    def _score(self, draft: RewriteDraft, request: RewriteRequest) -> float:
        evaluation = self._evaluator.evaluate(
            EvaluationRequest(text=draft.suggested_text, section_type=request.section_type)
        )
        draft.suggested_score = evaluation.overall_score
        draft.suggested_criteria = list(evaluation.criteria)
        return evaluation.overall_score

    def rewrite(self, request: RewriteRequest) -> RewriteResult:
        original_readability = analyze(request.text, self._readability_settings)
        system_prompt = build_rewrite_system_prompt(request, original_readability, self._examples)
        original_score = request.original_score
        best: RewriteDraft | None = None
        previous_score: float | None = None

        for attempt in range(1, self._max_attempts + 1):
            draft = self.draft(request, system_prompt, attempt, previous_score)
            if draft.suggested_text == request.text:
                logger.info("Rewrite attempt %d returned the original text", attempt)
                continue
            try:
                score = self._score(draft, request)
            except (RuntimeError, ValueError) as exc:
                logger.warning("Rewrite attempt %d could not be re-scored: %s", attempt, exc)
                continue
            if original_score is None or score >= original_score:
                best = draft
                break
            if best is None or score > (best.suggested_score or 0):
                best = draft
            previous_score = score
            logger.info(
                "Rewrite attempt %d scored %.1f below original %.1f; retrying",
                attempt,
                score,
                original_score,
            )

        no_improvement = False
        if best is None:
            no_improvement = True
            best = self._fallback(
                request,
                "Analyzed text structure and attempted multiple rewrites",
                "Could not verify improvement - keeping your original text",
            )
        elif (
            original_score is not None
            and best.suggested_score is not None
            and best.suggested_score < original_score
        ):
            no_improvement = True
            best = self._fallback(
                request,
                "Analyzed text structure and evaluated multiple rewrite options",
                f"After {self._max_attempts} attempts, no rewrite could improve upon your "
                f"original score of {original_score}",
            )

        suggested_readability = (
            analyze(best.suggested_text, self._readability_settings)
            if best.suggested_text != request.text
            else original_readability
        )
        return RewriteResult(
            suggested_text=best.suggested_text,
            changes=best.changes,
            constraint_warning=best.constraint_warning,
            thinking_steps=best.thinking_steps,
            diff_segments=diff(request.text, best.suggested_text),
            suggested_score=best.suggested_score,
            no_improvement_found=no_improvement,
            original_readability=original_readability,
            suggested_readability=suggested_readability,
            criteria_comparison=compare_criteria(request.evaluation_feedback, best),
        )

    @staticmethod
    def _fallback(request: RewriteRequest, analysis: str, quality: str) -> RewriteDraft:
        return RewriteDraft(
            suggested_text=request.text,
            changes=[],
            thinking_steps=[
                ThinkingStep("Analysis Complete", analysis),
                ThinkingStep("Quality Check", quality),
            ],
            suggested_score=request.original_score,
        )
