"""
Section and figure evaluation: prompt construction around the deterministic
readability report, and validation of the model's JSON reply.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from .config import ReadabilitySettings
from .examples import (
    WritingExample,
    build_examples_prompt,
    discipline_for_style,
    select_relevant_examples,
)
from .llm import JSONCompletionClient, RequestMetadata
from .models import (
    Criterion,
    CriterionScore,
    EvaluationResult,
    KeyPoint,
    ReadabilityReport,
    SectionSubmission,
    SupportArgument,
)
from .readability import analyze
from .sections import (
    FIGURE_CONTEXT,
    SectionType,
    get_section,
    key_point_types,
    section_label,
)
from .styles import WritingStyle, build_style_prompt

logger = logging.getLogger(__name__)

DEFAULT_SCORE = 5
MISSING_SCORE_CUTOFF = 8
MAX_KEY_POINTS = 7
MAX_SUPPORT_ARGUMENTS = 5
STANDALONE_CONTEXT_LIMIT = 3
CONTEXT_EXCERPT_CHARS = 600

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_NAME_SPLIT = re.compile(r"[\s/]")
_WHITESPACE = re.compile(r"\s+")


@dataclass(slots=True)
class EvaluationRequest:
    """Everything needed to evaluate one section of a paper."""

    text: str
    section_type: str
    style: WritingStyle | None = None
    include_emphasis: bool = False
    custom_instructions: str | None = None
    past_context: List[SectionSubmission] = field(default_factory=list)
    full_publication: bool = False
    readability: ReadabilityReport | None = None


SCORING_GUIDE = """Scoring guide:
- 1-2 (Poor): Major issues; criterion barely addressed
- 3-4 (Below Average): Significant gaps; needs substantial work
- 5-6 (Average): Meets basic requirements; room for improvement
- 7-8 (Good): Well executed; minor refinements needed
- 9-10 (Excellent): Publication-ready quality; exceptional execution"""

HYPERSPECIFIC_RULES = """HYPERSPECIFIC FEEDBACK REQUIREMENTS:
- ALWAYS quote problematic phrases directly from the text
- ALWAYS provide concrete rewrite examples (e.g., "Change 'The results show...' to 'The regression analysis revealed a statistically significant correlation (r=0.78)...'")
- NEVER give generic advice like "add more detail" or "be more specific" - instead say EXACTLY what to add
- Reference sentence positions when possible ("The second sentence needs...", "After 'methodology section,' add...")"""

REDUNDANCY_GUIDANCE = """SPECIAL ATTENTION FOR REDUNDANCY CRITERIA:
- "Sentence Starter Variety": Check if sentences/paragraphs begin with the same words (e.g., multiple sentences starting with "The...", "This...", "It..."). Penalize heavily if 3+ consecutive sentences or paragraphs start the same way.
- "No Idea Redundancy": Check if the same concept, claim, or point is stated multiple times across different paragraphs. Technical term consistency is GOOD (using the same term for the same concept), but restating the same idea in different words is BAD.

For Paragraph section type specifically:
- "Main Idea Clarity": Every paragraph should have ONE clear main idea, typically in the topic sentence.
- "Supporting Sentences": All other sentences must directly support, explain, or provide evidence for that main idea."""

STORYTELLING_GUIDANCE = """

STORYTELLING & READABILITY FOCUS (High Priority for this section):
This is a narrative section that benefits from clear storytelling. Evaluate with emphasis on:
- Clear narrative arc: Does the text flow logically from setup -> tension/gap -> resolution/contribution?
- Reader engagement: Is the opening compelling? Does it draw the reader in?
- Accessibility: Is the language accessible to a broader academic audience, not just specialists?
- Clarity over complexity: Favor clear, direct language over unnecessarily complex phrasing
- Transitions: Are ideas connected with smooth transitions that guide the reader?

When suggesting improvements, encourage:
- Strong opening hooks that establish context quickly
- Clear "so what?" framing that shows why the work matters
- Accessible language that doesn't sacrifice precision"""

NARRATIVE_FLOW_GUIDANCE = """

NARRATIVE FLOW (applies to all sections):
Even technical sections benefit from logical flow. Consider:
- Does each paragraph have a clear main idea?
- Do ideas connect with clear transitions?
- Is the information presented in a logical sequence?"""


def build_readability_prompt(report: ReadabilityReport | None) -> str:
    """Summarize pre-computed readability metrics for the evaluator prompt."""
    if report is None:
        return ""
    if report.long_sentences:
        long_line = f"- Long sentences (>25 words): {len(report.long_sentences)} found"
    else:
        long_line = "- No excessively long sentences detected"
    return (
        "\n\nPRE-COMPUTED READABILITY METRICS (deterministic analysis):\n"
        f"- Flesch Reading Ease Score: {report.flesch_score} ({report.flesch_grade})\n"
        f"- Average sentence length: {report.avg_sentence_length} words "
        "(target: 15-20 for academic writing)\n"
        f"- Average syllables per word: {report.avg_word_length} (lower = more accessible)\n"
        f"- Passive voice usage: {report.passive_voice_percent}%\n"
        f"- Total: {report.total_words} words, {report.total_sentences} sentences\n"
        f"{long_line}\n"
        "\nUse these metrics to inform your evaluation. Reference specific metrics in your "
        'feedback when relevant (e.g., "Your average sentence length of 32 words makes the '
        'text harder to follow...").'
    )


def build_context_prompt(past_context: Sequence[SectionSubmission], full_publication: bool) -> str:
    """Past submitted text (never past feedback) as history context."""
    usable = [item for item in past_context if item.text and item.text.strip()]
    if not full_publication:
        usable = usable[:STANDALONE_CONTEXT_LIMIT]
    if not usable:
        return ""
    if full_publication:
        heading = "FULL PUBLICATION HISTORY - Past text from this research paper:"
    else:
        heading = "RESEARCH HISTORY - Past submitted text:"
    excerpts = []
    for item in usable:
        excerpt = item.text[:CONTEXT_EXCERPT_CHARS]
        if len(item.text) > CONTEXT_EXCERPT_CHARS:
            excerpt += "..."
        excerpts.append(f"--- Past {section_label(item.section_type)} ---\n{excerpt}")
    coherence_line = (
        "\n- Maintain narrative coherence with other parts of the publication"
        if full_publication
        else ""
    )
    return (
        f"\n\n{heading}\n"
        "The user has previously submitted the following sections. Review their writing to "
        "understand their style, recurring patterns, and the paper's overall narrative:\n\n"
        + "\n\n".join(excerpts)
        + "\n\nUse this context to:\n"
        "- Identify recurring writing patterns (good or problematic)\n"
        f"- Ensure consistency across sections{coherence_line}\n"
        "- Provide feedback that accounts for the user's writing style"
    )


def build_custom_instructions_prompt(custom_instructions: str | None, heading: str) -> str:
    if not custom_instructions:
        return ""
    return f"\n\n{heading}\n{custom_instructions}"


def _key_points_instructions(section_type: str) -> str:
    types = ", ".join(f'"{item}"' for item in key_point_types(section_type))
    return f"""

3. "keyPoints": An array of 3-7 key points/claims extracted from the text. Each must have:
   - "id": A unique identifier (e.g., "kp1", "kp2", etc.)
   - "statement": A concise summary of the point (10-20 words) - must capture the essence without adding new information
   - "sourceQuote": The EXACT quote from the original text this point is based on (verbatim, 15-50 words)
   - "pointType": One of: {types}

CRITICAL RULES FOR keyPoints:
- Extract the MAIN claims, findings, or statements that form the outline of this section
- Each keyPoint MUST be derived from and traceable to a specific quote in the original text
- The sourceQuote MUST appear verbatim in the user's text - NEVER paraphrase, summarize, or invent quotes
- The statement should summarize the quote concisely WITHOUT adding any new data, citations, or claims
- Order keyPoints by their appearance in the text (first to last)
- Choose pointType based on what the point represents in this section context"""


EMPHASIS_INSTRUCTIONS = """

4. "supportArguments": An array of EXACTLY 5 emphasis suggestions. Each suggestion helps the user highlight the importance/relevance of their existing claims. Each must have:
   - "id": A unique identifier (e.g., "arg1", "arg2", etc.)
   - "sourceQuote": The EXACT quote from the original text that this suggestion is based on (must be verbatim from the input)
   - "emphasisSuggestion": How to reframe or amplify this point to show its importance/relevance (15-30 words)
   - "rationale": Why this point deserves more emphasis - what makes it significant (10-20 words)

CRITICAL RULES FOR supportArguments:
- Each suggestion MUST be derived from a specific quote in the original text
- The sourceQuote MUST appear verbatim in the user's text - never paraphrase or invent quotes
- NEVER suggest adding new data, citations, statistics, or claims not already in the text
- Focus on EMPHASIS and FRAMING: show WHY existing points matter, highlight their significance"""


def format_criteria_list(criteria: Sequence[Criterion]) -> str:
    return "\n".join(
        f"{idx}. {c.name} ({c.weight}% weight): {c.description}"
        for idx, c in enumerate(criteria, start=1)
    )


def build_evaluation_prompts(
    request: EvaluationRequest, examples: Sequence[WritingExample] = ()
) -> Tuple[str, str]:
    """Return the (system, user) prompt pair for a text section evaluation."""
    section = get_section(request.section_type)
    if section.is_figure:
        raise ValueError(f"Section '{section.key}' is a figure section; use figure evaluation.")
    relevant = select_relevant_examples(
        examples, section.key, discipline_for_style(request.style)
    )
    guidance = STORYTELLING_GUIDANCE if section.is_narrative else NARRATIVE_FLOW_GUIDANCE
    system_prompt = (
        "You are an expert academic writing evaluator with deep knowledge of scholarly "
        "publication standards. Your task is to evaluate academic text against specific "
        "criteria and provide HYPERSPECIFIC, actionable feedback."
        + build_context_prompt(request.past_context, request.full_publication)
        + build_style_prompt(request.style)
        + build_readability_prompt(request.readability)
        + guidance
        + build_examples_prompt(relevant)
        + build_custom_instructions_prompt(
            request.custom_instructions,
            "USER-PROVIDED CUSTOM INSTRUCTIONS (prioritize these):",
        )
        + """

You must respond with a valid JSON object containing:
1. "criteria": An array of criterion evaluations, each with:
   - "name": The exact criterion name
   - "score": A number from 1-10 (1-2: Poor, 3-4: Below Average, 5-6: Average, 7-8: Good, 9-10: Excellent)
   - "suggestion": A HYPERSPECIFIC suggestion that quotes exact phrases from the text, provides a concrete rewritten example, names specific elements to add and references specific sentence positions
   - "missing": A specific label (5-10 words) describing exactly what's missing. If score is 8+, set to null or empty string.

2. "generalFeedback": A brief overall assessment (2-3 sentences) highlighting the main strengths and areas for improvement."""
        + _key_points_instructions(section.key)
        + (EMPHASIS_INSTRUCTIONS if request.include_emphasis else "")
        + f"\n\n{HYPERSPECIFIC_RULES}\n\n{SCORING_GUIDE}\n\n{REDUNDANCY_GUIDANCE}\n\n"
        "Be constructive but honest. Provide specific suggestions tied to the text."
    )
    emphasis_clause = (
        ', "supportArguments" (array of 5 emphasis suggestions as described above),'
        if request.include_emphasis
        else ","
    )
    user_prompt = (
        f"Evaluate this {section.label} section of an academic paper:\n\n"
        f"---\n{request.text}\n---\n\n"
        f"Evaluate against these criteria:\n{format_criteria_list(section.criteria)}\n\n"
        'Respond with a JSON object containing "criteria" (array with name, score, '
        'suggestion, missing for each), "keyPoints" (array of 3-7 key claims/points '
        f'extracted from the text){emphasis_clause} and "generalFeedback" (string).'
    )
    return system_prompt, user_prompt


def build_figure_prompts(
    section_type: str,
    caption: str | None = None,
    custom_instructions: str | None = None,
) -> Tuple[str, str]:
    """Return the (system, user) prompt pair for a figure evaluation."""
    section = get_section(section_type)
    if not section.is_figure:
        raise ValueError(f"Section '{section.key}' is not a figure section.")
    system_prompt = (
        "You are an expert academic figure evaluator with deep knowledge of data "
        "visualization, scientific communication, and scholarly publication standards. Your "
        "task is to evaluate academic figures and provide HYPERSPECIFIC, actionable feedback "
        "tailored to the figure's purpose within the paper.\n\n"
        + FIGURE_CONTEXT.get(section.key, "")
        + build_custom_instructions_prompt(
            custom_instructions, "USER-PROVIDED CUSTOM INSTRUCTIONS (prioritize these):"
        )
        + """

You must respond with a valid JSON object containing:
1. "criteria": An array of criterion evaluations, each with:
   - "name": The exact criterion name (must match exactly)
   - "score": A number from 1-10
   - "suggestion": A HYPERSPECIFIC suggestion that identifies the EXACT visual element that needs improvement, provides a concrete fix and references specific parts of the figure
   - "missing": A specific label (5-10 words) describing exactly what's missing, specific to this figure type. If score is 8+, set to null.

2. "generalFeedback": A 2-3 sentence assessment highlighting main strengths and priority improvements for this specific figure type.

HYPERSPECIFIC FEEDBACK REQUIREMENTS:
- Reference exact visual elements you can see (boxes, arrows, labels, bars, lines, colors, text)
- Suggest specific improvements with concrete examples relevant to this figure type
- Mention accessibility issues (colorblind-friendly palettes, contrast ratios, font sizes)
- Consider publication standards (resolution, readability at print size)

Scoring guide:
- 1-2 (Poor): Major issues; figure is confusing or unprofessional for its intended purpose
- 3-4 (Below Average): Significant gaps; missing key elements for this section type
- 5-6 (Average): Functional but needs polish to serve its purpose effectively
- 7-8 (Good): Publication-ready with minor refinements
- 9-10 (Excellent): Exceptional quality, optimally designed for its section context"""
    )
    if caption:
        caption_context = (
            f'\n\nFIGURE CAPTION PROVIDED BY USER:\n"{caption}"\n\n'
            "Evaluate if this caption adequately explains the figure and supports standalone "
            "interpretability."
        )
    else:
        caption_context = (
            "\n\nNo caption was provided. Note this in your Standalone Interpretability "
            "evaluation - a good caption is essential."
        )
    user_prompt = (
        f"Evaluate this academic figure for use in a {section.label} section.{caption_context}\n\n"
        "Evaluate against these criteria (UNIVERSAL + SECTION-SPECIFIC):\n"
        f"{format_criteria_list(section.criteria)}\n\n"
        'Respond with a JSON object containing "criteria" (array with name, score, '
        'suggestion, missing for each) and "generalFeedback" (string).'
    )
    return system_prompt, user_prompt


def normalize_for_match(text: str) -> str:
    """Collapse whitespace and lower-case text for verbatim quote checks."""
    return _WHITESPACE.sub(" ", text).lower()


def clamp_score(value: Any, default: int = DEFAULT_SCORE) -> int:
    """Round a model score half-up and clamp it to 1..10."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        number = float(default)
    if math.isnan(number):
        number = float(default)
    return max(1, min(10, int(math.floor(number + 0.5))))


def weighted_overall(scores: Sequence[CriterionScore]) -> float:
    total = sum(item.score * item.weight / 100 for item in scores)
    return math.floor(total * 10 + 0.5) / 10


def _first_word(name: str) -> str:
    return _NAME_SPLIT.split(name.lower())[0]


def _model_criteria(payload: Mapping[str, Any]) -> List[Dict[str, Any]]:
    raw = payload.get("criteria")
    if not isinstance(raw, list):
        return []
    return [item for item in raw if isinstance(item, dict)]


def match_criterion(
    criterion: Criterion, index: int, candidates: Sequence[Mapping[str, Any]], fuzzy: bool = True
) -> Mapping[str, Any] | None:
    """Find the model's entry for a catalogue criterion.

    Tries the exact name, then the alphanumeric name, then a shared first word,
    and finally falls back to the entry at the same position.
    """
    target = criterion.name.lower()
    names = [str(item.get("name", "")).lower() for item in candidates]
    for item, name in zip(candidates, names):
        if name == target:
            return item
    if fuzzy:
        normalized = _NON_ALNUM.sub("", target)
        for item, name in zip(candidates, names):
            if _NON_ALNUM.sub("", name) == normalized:
                return item
        first_word = _first_word(criterion.name)
        for item, name in zip(candidates, names):
            if first_word in name or _first_word(name) in first_word:
                return item
    if index < len(candidates):
        return candidates[index]
    return None


def _score_criteria(
    section: SectionType,
    payload: Mapping[str, Any],
    default_suggestion: str,
    fuzzy: bool,
) -> List[CriterionScore]:
    candidates = _model_criteria(payload)
    scores: List[CriterionScore] = []
    for index, criterion in enumerate(section.criteria):
        entry = match_criterion(criterion, index, candidates, fuzzy=fuzzy) or {}
        score = clamp_score(entry.get("score", DEFAULT_SCORE))
        suggestion = entry.get("suggestion") or default_suggestion.format(
            name=criterion.name.lower()
        )
        missing = entry.get("missing") if score < MISSING_SCORE_CUTOFF else None
        scores.append(
            CriterionScore(
                name=criterion.name,
                weight=criterion.weight,
                score=score,
                suggestion=str(suggestion),
                missing=str(missing) if missing else None,
            )
        )
    return scores


def _support_arguments(payload: Mapping[str, Any]) -> List[SupportArgument]:
    raw = payload.get("supportArguments")
    if not isinstance(raw, list):
        return []
    arguments: List[SupportArgument] = []
    for index, item in enumerate(raw[:MAX_SUPPORT_ARGUMENTS]):
        if not isinstance(item, dict):
            continue
        arguments.append(
            SupportArgument(
                id=str(item.get("id") or f"arg{index + 1}"),
                source_quote=str(item.get("sourceQuote") or ""),
                emphasis_suggestion=str(item.get("emphasisSuggestion") or ""),
                rationale=str(item.get("rationale") or ""),
            )
        )
    return arguments


def _key_points(payload: Mapping[str, Any], text: str) -> List[KeyPoint]:
    raw = payload.get("keyPoints")
    if not isinstance(raw, list):
        return []
    haystack = normalize_for_match(text)
    verified = [
        item
        for item in raw[:MAX_KEY_POINTS]
        if isinstance(item, dict)
        and isinstance(item.get("sourceQuote"), str)
        and item["sourceQuote"]
        and normalize_for_match(item["sourceQuote"]) in haystack
    ]
    dropped = min(len(raw), MAX_KEY_POINTS) - len(verified)
    if dropped:
        logger.debug("Dropped %d key points whose quotes are not in the text", dropped)
    return [
        KeyPoint(
            id=str(item.get("id") or f"kp{index + 1}"),
            statement=str(item.get("statement") or ""),
            source_quote=item["sourceQuote"],
            point_type=str(item.get("pointType") or "claim"),
        )
        for index, item in enumerate(verified)
    ]


def parse_evaluation_response(
    payload: Mapping[str, Any], section_type: str, text: str
) -> EvaluationResult:
    """Validate a text-evaluation reply against the section's criteria catalogue."""
    section = get_section(section_type)
    criteria = _score_criteria(
        section,
        payload,
        "Consider reviewing the {name} aspect of your text to improve this criterion.",
        fuzzy=True,
    )
    return EvaluationResult(
        overall_score=weighted_overall(criteria),
        section_type=section.key,
        criteria=criteria,
        general_feedback=str(payload.get("generalFeedback") or "Evaluation complete."),
        support_arguments=_support_arguments(payload),
        key_points=_key_points(payload, text),
    )


def parse_figure_response(payload: Mapping[str, Any], section_type: str) -> EvaluationResult:
    """Validate a figure-evaluation reply; names match exactly or by position."""
    section = get_section(section_type)
    criteria = _score_criteria(
        section,
        payload,
        "Consider reviewing the {name} aspect of your figure.",
        fuzzy=False,
    )
    return EvaluationResult(
        overall_score=weighted_overall(criteria),
        section_type=section.key,
        criteria=criteria,
        general_feedback=str(payload.get("generalFeedback") or "Evaluation complete."),
    )


class Evaluator:
    """Runs section and figure evaluations through a JSON completion client."""

    def __init__(
        self,
        client: JSONCompletionClient,
        *,
        examples: Sequence[WritingExample] = (),
        readability_settings: ReadabilitySettings | None = None,
    ) -> None:
        self._client = client
        self._examples = list(examples)
        self._readability_settings = readability_settings

    def evaluate(self, request: EvaluationRequest) -> EvaluationResult:
        """Evaluate a text section; readability is computed when not supplied."""
        if request.readability is None:
            request.readability = analyze(request.text, self._readability_settings)
        system_prompt, user_prompt = build_evaluation_prompts(request, self._examples)
        logger.info(
            "Evaluating section=%s words=%d",
            request.section_type,
            request.readability.total_words,
        )
        payload = self._client.complete_json(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            metadata=RequestMetadata(
                task="evaluation",
                section_type=request.section_type,
                word_count=request.readability.total_words,
            ),
        )
        result = parse_evaluation_response(payload, request.section_type, request.text)
        result.readability = request.readability
        return result

    def evaluate_figure(
        self,
        image_data: str,
        section_type: str,
        caption: str | None = None,
        custom_instructions: str | None = None,
    ) -> EvaluationResult:
        """Evaluate a figure given as an image URL or data URI."""
        if not image_data:
            raise ValueError("Image data is required for figure evaluation.")
        system_prompt, user_prompt = build_figure_prompts(
            section_type, caption, custom_instructions
        )
        payload = self._client.complete_json(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            metadata=RequestMetadata(task="figure_evaluation", section_type=section_type),
            image_url=image_data,
        )
        return parse_figure_response(payload, section_type)
