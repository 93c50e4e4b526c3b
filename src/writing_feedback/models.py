from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

DiffType = Literal["equal", "added", "removed"]


@dataclass(frozen=True, slots=True)
class Sentence:
    """A sentence of the analyzed text with its 1-based position."""

    text: str
    word_count: int
    position: int


@dataclass(frozen=True, slots=True)
class LongSentence:
    """A sentence whose word count exceeds the long-sentence threshold."""

    text: str
    word_count: int
    position: int

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "wordCount": self.word_count, "position": self.position}


@dataclass(frozen=True, slots=True)
class ReadabilityReport:
    """Deterministic readability metrics for a block of text."""

    flesch_score: float
    flesch_grade: str
    avg_sentence_length: float
    avg_word_length: float
    passive_voice_percent: int
    long_sentences: tuple[LongSentence, ...]
    total_sentences: int
    total_words: int

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the camelCase keys consumed by the UI."""
        return {
            "fleschScore": self.flesch_score,
            "fleschGrade": self.flesch_grade,
            "avgSentenceLength": self.avg_sentence_length,
            "avgWordLength": self.avg_word_length,
            "passiveVoicePercent": self.passive_voice_percent,
            "longSentences": [item.to_dict() for item in self.long_sentences],
            "totalSentences": self.total_sentences,
            "totalWords": self.total_words,
        }


@dataclass(slots=True)
class DiffSegment:
    """A run of text that is unchanged, added or removed between two versions."""

    type: DiffType
    text: str

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type, "text": self.text}


@dataclass(slots=True)
class Criterion:
    """Weighted evaluation criterion for a section type."""

    name: str
    weight: int
    description: str


@dataclass(slots=True)
class CriterionScore:
    name: str
    weight: int
    score: int
    suggestion: str
    missing: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": self.name,
            "weight": self.weight,
            "score": self.score,
            "suggestion": self.suggestion,
        }
        if self.missing:
            payload["missing"] = self.missing
        return payload


@dataclass(slots=True)
class KeyPoint:
    """Claim extracted from the text, traceable to a verbatim quote."""

    id: str
    statement: str
    source_quote: str
    point_type: str

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "statement": self.statement,
            "sourceQuote": self.source_quote,
            "pointType": self.point_type,
        }


@dataclass(slots=True)
class SupportArgument:
    """Suggestion for emphasizing a point that already exists in the text."""

    id: str
    source_quote: str
    emphasis_suggestion: str
    rationale: str
    selected: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "sourceQuote": self.source_quote,
            "emphasisSuggestion": self.emphasis_suggestion,
            "rationale": self.rationale,
            "selected": self.selected,
        }


@dataclass(slots=True)
class EvaluationResult:
    overall_score: float
    section_type: str
    criteria: list[CriterionScore]
    general_feedback: str
    support_arguments: list[SupportArgument] = field(default_factory=list)
    key_points: list[KeyPoint] = field(default_factory=list)
    readability: ReadabilityReport | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "overallScore": self.overall_score,
            "sectionType": self.section_type,
            "criteria": [item.to_dict() for item in self.criteria],
            "generalFeedback": self.general_feedback,
        }
        if self.support_arguments:
            payload["supportArguments"] = [
                item.to_dict() for item in self.support_arguments
            ]
        if self.key_points:
            payload["keyPoints"] = [item.to_dict() for item in self.key_points]
        if self.readability is not None:
            payload["readabilityMetrics"] = self.readability.to_dict()
        return payload


@dataclass(slots=True)
class ThinkingStep:
    phase: str
    summary: str

    def to_dict(self) -> dict[str, str]:
        return {"phase": self.phase, "summary": self.summary}


@dataclass(slots=True)
class ChangeEntry:
    original: str
    new: str

    def to_dict(self) -> dict[str, str]:
        return {"original": self.original, "new": self.new}


@dataclass(slots=True)
class CriteriaScoreComparison:
    name: str
    original_score: float
    suggested_score: float
    delta: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "originalScore": self.original_score,
            "suggestedScore": self.suggested_score,
            "delta": self.delta,
        }


@dataclass(slots=True)
class RewriteDraft:
    """Single parsed rewrite returned by the model."""

    suggested_text: str
    changes: list[ChangeEntry]
    thinking_steps: list[ThinkingStep]
    constraint_warning: str | None = None
    suggested_score: float | None = None
    suggested_criteria: list[CriterionScore] = field(default_factory=list)


@dataclass(slots=True)
class RewriteResult:
    suggested_text: str
    changes: list[ChangeEntry]
    constraint_warning: str | None
    thinking_steps: list[ThinkingStep]
    diff_segments: list[DiffSegment]
    suggested_score: float | None = None
    no_improvement_found: bool = False
    original_readability: ReadabilityReport | None = None
    suggested_readability: ReadabilityReport | None = None
    criteria_comparison: list[CriteriaScoreComparison] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "suggestedText": self.suggested_text,
            "changes": [item.to_dict() for item in self.changes],
            "constraintWarning": self.constraint_warning,
            "thinkingSteps": [item.to_dict() for item in self.thinking_steps],
            "diffSegments": [item.to_dict() for item in self.diff_segments],
            "suggestedScore": self.suggested_score,
            "noImprovementFound": self.no_improvement_found,
        }
        if self.original_readability is not None:
            payload["originalReadability"] = self.original_readability.to_dict()
        if self.suggested_readability is not None:
            payload["suggestedReadability"] = self.suggested_readability.to_dict()
        if self.criteria_comparison:
            payload["criteriaComparison"] = [
                item.to_dict() for item in self.criteria_comparison
            ]
        return payload


@dataclass(slots=True)
class RestructureSuggestion:
    """A sentence that would fit better in another paragraph (1-indexed)."""

    id: str
    sentence: str
    from_paragraph: int
    to_paragraph: int
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "sentence": self.sentence,
            "fromParagraph": self.from_paragraph,
            "toParagraph": self.to_paragraph,
            "reason": self.reason,
        }


@dataclass(slots=True)
class RestructureResult:
    suggestions: list[RestructureSuggestion]
    overall_coherence: float
    summary: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "suggestions": [item.to_dict() for item in self.suggestions],
            "overallCoherence": self.overall_coherence,
            "summary": self.summary,
        }


@dataclass(slots=True)
class SectionSubmission:
    """Text previously submitted for a section, used as history context."""

    section_type: str
    text: str
    overall_score: float | None = None
    general_feedback: str = ""


@dataclass(slots=True)
class CoherenceInsight:
    from_section: str
    to_section: str
    score: float
    feedback: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "fromSection": self.from_section,
            "toSection": self.to_section,
            "score": self.score,
            "feedback": self.feedback,
        }


@dataclass(slots=True)
class CoherenceResult:
    overall_score: float
    summary: str
    insights: list[CoherenceInsight]
    strengths: list[str]
    improvements: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "overallScore": self.overall_score,
            "summary": self.summary,
            "insights": [item.to_dict() for item in self.insights],
            "strengths": list(self.strengths),
            "improvements": list(self.improvements),
        }
