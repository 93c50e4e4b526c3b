"""
Catalogue of academic section types and their weighted evaluation criteria.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from .models import Criterion


@dataclass(frozen=True, slots=True)
class SectionType:
    key: str
    label: str
    criteria: Tuple[Criterion, ...]

    @property
    def is_figure(self) -> bool:
        return self.key in FIGURE_SECTION_KEYS

    @property
    def is_narrative(self) -> bool:
        return self.key in NARRATIVE_SECTION_KEYS


def _criteria(*rows: Tuple[str, int, str]) -> Tuple[Criterion, ...]:
    return tuple(Criterion(name=name, weight=weight, description=desc) for name, weight, desc in rows)


_STARTER_VARIETY = (
    "Sentence Starter Variety",
    10,
    "Paragraphs and sentences begin with varied words, not repetitive openers",
)
_CONCLUSION_SUMMARY_REDUNDANCY = (
    "No Idea Redundancy",
    10,
    "Summarizes without excessive repetition from earlier sections",
)
_VISUAL_DESIGN = (
    "Visual Design",
    25,
    "Readable, uncluttered, balanced layout, good contrast, clear visual hierarchy",
)
_STANDALONE = (
    "Standalone Interpretability",
    25,
    "Understandable from figure + caption alone; all abbreviations, symbols, and elements explained",
)

_SECTIONS: Tuple[SectionType, ...] = (
    SectionType(
        "title",
        "Title",
        _criteria(
            ("Content", 30, "Does it capture the essence? Includes main concepts, theories, methods, findings, or data characteristics?"),
            ("Suspense/Interest", 30, "Does it generate interest? Contains counter-intuitive, unexpected, humor, or surprise elements?"),
            ("Clarity", 25, "Is it easy to understand? Uses plain words, avoids jargon, avoids consecutive nouns?"),
            ("Brevity", 15, "Is it concise? Shorter titles are generally better; message clear without re-reading?"),
        ),
    ),
    SectionType(
        "abstract",
        "Abstract",
        _criteria(
            ("Goal/Purpose", 18, "Clearly states the research question or study objective"),
            ("Research Design", 18, "Briefly explains methodology or approach used"),
            ("Main Findings", 22, "Summarizes the key results/discoveries"),
            ("Implications", 17, "States contributions to theory and/or practice"),
            ("Completeness", 10, "Contains all required elements within word limits"),
            ("Sentence Starter Variety", 8, "Sentences begin with varied words, avoiding repetitive openers"),
            ("No Idea Redundancy", 7, "Each sentence adds new information; no repetition of concepts already stated"),
        ),
    ),
    SectionType(
        "introduction",
        "Introduction",
        _criteria(
            ("Hook/Topic Introduction", 12, "Opens with engaging description of the area/phenomenon"),
            ("Problem Statement", 12, "Clearly identifies what is not well understood"),
            ("Relevancy of Problem", 12, "Answers 'So what? Who cares? Why bother?'"),
            ("Current Understanding", 12, "Briefly describes what we know (references to key studies)"),
            ("Limits of Current Knowledge", 8, "Identifies the gap in literature"),
            ("Research Question/Aim", 12, "Explicit, specific, well-fitted purpose statement"),
            ("Contributions", 8, "Clear statement of what the paper adds"),
            ("Logical Flow", 5, "Smooth transitions between elements"),
            _STARTER_VARIETY,
            ("No Idea Redundancy", 9, "Each paragraph adds new content; avoids restating what was already said"),
        ),
    ),
    SectionType(
        "literature_review",
        "Literature Review / Theoretical Background",
        _criteria(
            ("Focus on Study", 16, "Literature serves the paper's story, not just reporting others' work"),
            ("State of the Art", 16, "Covers relevant, recent, high-impact sources"),
            ("Foundation Building", 12, "Builds logical bridge from known to unknown"),
            ("Author's Voice", 12, "Written in own words, not just quotes; author tells the story"),
            ("Critical Analysis", 12, "Summarizes, analyzes, explains, and evaluates (not just describes)"),
            ("Research Ideas/Hypotheses", 12, "Clear link to the study's propositions or conceptual model"),
            _STARTER_VARIETY,
            ("No Idea Redundancy", 10, "Each paragraph introduces new concepts; avoids restating previous points"),
        ),
    ),
    SectionType(
        "methodology",
        "Methodology / Research Design",
        _criteria(
            ("Research Steps Clarity", 16, "What was done is clearly described (replicable)"),
            ("Justification", 16, "Why this method is appropriate (matches research question, follows accepted practice)"),
            ("Data Collection", 16, "Clear description of what data, how collected, from whom/where"),
            ("Measurement Quality", 12, "Valid, reliable measurements; concepts properly operationalized"),
            ("Quality Evidence", 12, "Evidence that procedures worked well (statistics, checks)"),
            ("Rigor", 8, "Follows methodological standards; meets assumptions of methods used"),
            _STARTER_VARIETY,
            ("No Idea Redundancy", 10, "Each paragraph covers new ground; avoids repeating previously stated information"),
        ),
    ),
    SectionType(
        "results",
        "Results",
        _criteria(
            ("Clarity of Presentation", 20, "Results clearly organized, logical sequence"),
            ("Separation from Interpretation", 12, "Findings presented distinctly from discussion/meaning"),
            ("Completeness", 16, "All relevant analyses included; hypotheses addressed"),
            ("Visual Communication", 12, "Tables/figures are stand-alone, properly captioned, not overloaded"),
            ("Statistical Rigor", 12, "Appropriate tests, correct reporting of statistics"),
            ("Conciseness", 8, "Focuses on key findings; avoids unnecessary detail"),
            _STARTER_VARIETY,
            ("No Idea Redundancy", 10, "Each finding stated once; avoids restating the same result multiple ways"),
        ),
    ),
    SectionType(
        "discussion",
        "Discussion",
        _criteria(
            ("Interpretation", 20, "What do the findings mean in the real world?"),
            ("Connection to Prior Research", 20, "How do findings relate to/extend/contradict existing knowledge?"),
            ("Explaining Key Findings", 16, "Distinguished findings are explained (especially unexpected ones)"),
            ("Critical Distance", 12, "Avoids jumping to conclusions; acknowledges alternative interpretations"),
            ("Focus on Forest", 12, "Emphasizes distinguishing elements, not all individual trees"),
            _STARTER_VARIETY,
            ("No Idea Redundancy", 10, "Each paragraph adds new insights; avoids restating points from earlier sections"),
        ),
    ),
    SectionType(
        "conclusion",
        "Conclusion (General)",
        _criteria(
            ("Theoretical Contributions", 16, "Clear statement of what new knowledge is discovered"),
            ("Practical Implications", 16, "Who benefits, how, when, why (concrete, not vague)"),
            ("Limitations", 12, "Honest acknowledgment of shortcomings without being masochistic"),
            ("Future Research", 12, "Concrete suggestions for follow-up studies"),
            ("Answer to Research Question", 12, "Directly addresses the promise made in introduction"),
            ("Positive Closure", 4, "Ends with forward-looking, positive final sentence"),
            ("No Overclaiming", 8, "Claims match evidence; appropriate hedging"),
            _STARTER_VARIETY,
            _CONCLUSION_SUMMARY_REDUNDANCY,
        ),
    ),
    SectionType(
        "conclusion_with_limits",
        "Conclusion (with Limitations & Future Research)",
        _criteria(
            ("Theoretical Contributions", 14, "Clear statement of what new knowledge is discovered"),
            ("Practical Implications", 14, "Who benefits, how, when, why (concrete, not vague)"),
            ("Limitations", 14, "Honest acknowledgment of shortcomings without being masochistic; specific, not generic"),
            ("Future Research", 14, "Concrete, actionable suggestions for follow-up studies stemming from limitations"),
            ("Answer to Research Question", 12, "Directly addresses the promise made in introduction"),
            ("Positive Closure", 4, "Ends with forward-looking, positive final sentence"),
            ("No Overclaiming", 8, "Claims match evidence; appropriate hedging"),
            _STARTER_VARIETY,
            _CONCLUSION_SUMMARY_REDUNDANCY,
        ),
    ),
    SectionType(
        "conclusion_without_limits",
        "Conclusion (without Limitations/Future Research)",
        _criteria(
            ("Theoretical Contributions", 22, "Clear statement of what new knowledge is discovered"),
            ("Practical Implications", 22, "Who benefits, how, when, why (concrete, not vague)"),
            ("Answer to Research Question", 16, "Directly addresses the promise made in introduction"),
            ("Positive Closure", 8, "Ends with forward-looking, positive final sentence"),
            ("No Overclaiming", 12, "Claims match evidence; appropriate hedging"),
            _STARTER_VARIETY,
            _CONCLUSION_SUMMARY_REDUNDANCY,
        ),
    ),
    SectionType(
        "limitations_future_research",
        "Limitations & Future Research (Standalone)",
        _criteria(
            ("Limitation Specificity", 20, "Limitations are specific to this study, not generic disclaimers; acknowledges actual constraints faced"),
            ("Limitation Honesty", 15, "Honest acknowledgment without being overly apologetic or undermining the research"),
            ("Future Research Concreteness", 20, "Concrete, actionable research directions; not vague suggestions like 'more research is needed'"),
            ("Limitation-Future Link", 15, "Future research suggestions logically stem from stated limitations"),
            ("Balanced Tone", 10, "Neither dismissive of limitations nor masochistic; maintains scholarly confidence"),
            _STARTER_VARIETY,
            ("No Idea Redundancy", 10, "Each point adds new information; avoids restating the same limitation or suggestion"),
        ),
    ),
    SectionType(
        "paragraph",
        "Single Paragraph",
        _criteria(
            ("Main Idea Clarity", 30, "Paragraph has one clear, identifiable main idea or topic sentence"),
            ("Supporting Sentences", 30, "All other sentences directly support, explain, or elaborate the main idea"),
            ("Sentence Starter Variety", 20, "Sentences begin with varied words/structures, not repetitive openers like 'The... The...' or 'This... This...'"),
            ("Internal Coherence", 20, "Logical flow between sentences with smooth transitions"),
        ),
    ),
    SectionType(
        "figure_introduction",
        "Figure: Introduction / Problem Setup",
        _criteria(
            _VISUAL_DESIGN,
            _STANDALONE,
            ("Problem Framing", 25, "Clearly visualizes the gap, context, or motivation for the research"),
            ("Conceptual Accessibility", 25, "Simple enough for broad audience; effectively sets the stage"),
        ),
    ),
    SectionType(
        "figure_theory",
        "Figure: Theory / Literature Review",
        _criteria(
            _VISUAL_DESIGN,
            _STANDALONE,
            ("Prior Work Representation", 25, "Accurately depicts existing concepts, models, or relationships from literature"),
            ("Contribution Positioning", 25, "Your novelty, lens, or extension is visually distinguishable from existing work"),
        ),
    ),
    SectionType(
        "figure_methodology",
        "Figure: Methodology",
        _criteria(
            _VISUAL_DESIGN,
            _STANDALONE,
            ("Process Flow Clarity", 25, "Clear sequence of steps, phases, or stages; obvious directionality"),
            ("Input-Output Visibility", 25, "What goes into each phase and what comes out is apparent"),
        ),
    ),
    SectionType(
        "figure_results_quantitative",
        "Figure: Results (Quantitative)",
        _criteria(
            _VISUAL_DESIGN,
            _STANDALONE,
            ("Data-Ink Ratio", 25, "Maximizes data representation, minimizes chartjunk (unnecessary gridlines, borders, effects)"),
            ("Uncertainty Representation", 25, "Error bars, confidence intervals, or variability shown where appropriate"),
        ),
    ),
    SectionType(
        "figure_results_qualitative",
        "Figure: Results (Qualitative)",
        _criteria(
            _VISUAL_DESIGN,
            _STANDALONE,
            ("Theme Relationship Clarity", 25, "Connections, hierarchies, or patterns between themes are visible"),
            ("Appropriate Abstraction", 25, "Captures richness without oversimplifying or implying false precision"),
        ),
    ),
    SectionType(
        "figure_discussion",
        "Figure: Discussion / Framework",
        _criteria(
            _VISUAL_DESIGN,
            _STANDALONE,
            ("Logical Structure", 25, "Clear hierarchy showing relationships between components; obvious reading flow"),
            ("Relationship Clarity", 25, "Arrows, lines, or positioning clearly indicate how components relate; consistent visual logic"),
        ),
    ),
)

SECTIONS: Dict[str, SectionType] = {section.key: section for section in _SECTIONS}

FIGURE_SECTION_KEYS = frozenset(key for key in SECTIONS if key.startswith("figure_"))

NARRATIVE_SECTION_KEYS = frozenset(
    {
        "abstract",
        "introduction",
        "discussion",
        "conclusion",
        "conclusion_with_limits",
        "conclusion_without_limits",
        "limitations_future_research",
    }
)

FIGURE_CONTEXT: Dict[str, str] = {
    "figure_introduction": (
        "This figure is for an INTRODUCTION / PROBLEM SETUP section. It should visualize the "
        "research gap, context, or motivation. Focus on whether it effectively frames the "
        "problem and is accessible to a broad academic audience."
    ),
    "figure_theory": (
        "This figure is for a THEORY / LITERATURE REVIEW section. It should represent prior "
        "work, existing models, or theoretical frameworks. Focus on whether it accurately "
        "depicts existing concepts and clearly positions the author's contribution."
    ),
    "figure_methodology": (
        "This figure is for a METHODOLOGY section. It should show research processes, "
        "workflows, or procedures. Focus on whether the sequence of steps is clear, with "
        "obvious directionality and visible inputs/outputs."
    ),
    "figure_results_quantitative": (
        "This figure is for a QUANTITATIVE RESULTS section. It likely contains charts, graphs, "
        "or statistical visualizations. Focus on data-ink ratio (minimize chartjunk), "
        "appropriate chart type, and whether uncertainty (error bars, confidence intervals) "
        "is properly shown."
    ),
    "figure_results_qualitative": (
        "This figure is for a QUALITATIVE RESULTS section. It may show themes, categories, or "
        "conceptual relationships. Focus on whether theme relationships are visible and "
        "whether abstraction level appropriately captures richness without oversimplifying."
    ),
    "figure_discussion": (
        "This figure is for a DISCUSSION / FRAMEWORK section. It likely presents a conceptual "
        "framework, model, or synthesis. Focus on logical structure, clear hierarchy, and "
        "whether relationships between components are clearly indicated."
    ),
}

KEY_POINT_TYPES: Dict[str, List[str]] = {
    "abstract": ["purpose", "method", "finding", "implication"],
    "introduction": ["context", "problem", "gap", "objective", "contribution"],
    "literature_review": ["prior_work", "theory", "finding", "gap"],
    "methodology": ["approach", "data_source", "procedure", "measure"],
    "results": ["finding", "comparison", "pattern", "statistic"],
    "discussion": ["interpretation", "comparison", "implication", "limitation"],
    "conclusion": ["contribution", "implication", "limitation", "future_work"],
    "title": ["topic", "method", "scope"],
    "paragraph": ["main_idea", "support", "evidence"],
}
DEFAULT_KEY_POINT_TYPES = ["claim", "point", "statement"]


def get_section(key: str) -> SectionType:
    """Look up a section type by key."""
    try:
        return SECTIONS[key]
    except KeyError:
        raise ValueError(f"Unknown section type '{key}'.") from None


def section_label(key: str) -> str:
    """Human-readable label, falling back to the raw key for unknown sections."""
    section = SECTIONS.get(key)
    return section.label if section else key


def key_point_types(key: str) -> List[str]:
    return KEY_POINT_TYPES.get(key, DEFAULT_KEY_POINT_TYPES)
