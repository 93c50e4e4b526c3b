from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping

VOICES = ("passive", "active", "mixed")
PERSONS = ("first_singular", "first_plural", "third")

PRESET_LABELS: Dict[str, str] = {
    "engineering": "Engineering / Technical",
    "management": "Management / Business",
    "information_systems": "Information Systems",
    "social_sciences": "Social Sciences",
    "qualitative": "Qualitative Research",
    "natural_sciences": "Natural Sciences",
    "conference": "Conference Paper",
    "custom": "Custom Style",
}

PRESET_DESCRIPTIONS: Dict[str, str] = {
    "engineering": "Precise, concise, methods-heavy, minimal hedging (IEEE, ASME, CIRP)",
    "management": "Contribution-focused, practitioner implications, moderate formality (AMJ, SMJ, JOM)",
    "information_systems": "Blends technical and managerial, theory-driven, structured argumentation (MISQ, ISR)",
    "social_sciences": "Reflexive, acknowledges positionality, richer descriptions (ASQ, Organization Studies)",
    "qualitative": "First-person acceptable, thick description, interpretive tone (Qualitative Inquiry, JMS)",
    "natural_sciences": "Extremely concise, standardized structure (Nature, Science)",
    "conference": "More direct, space-constrained, contribution upfront",
    "custom": "Your personalized writing style",
}

_FORMALITY = ("very conversational", "conversational", "moderately formal", "formal", "highly formal")
_COMPLEXITY = (
    "very short and direct sentences",
    "short sentences",
    "moderate sentence length",
    "longer sentences",
    "complex, elaborate sentences",
)
_HEDGING = (
    "very assertive (e.g., 'X causes Y')",
    "assertive",
    "moderately hedged",
    "cautious (e.g., 'X may influence Y')",
    "very cautious (e.g., 'X may potentially contribute to Y')",
)
_DENSITY = (
    "spacious/explanatory prose",
    "readable with explanations",
    "moderate density",
    "dense prose",
    "highly compressed prose",
)
_JARGON = (
    "accessible to general readers",
    "minimal jargon",
    "moderate technical language",
    "technical jargon acceptable",
    "specialist-level jargon expected",
)
_VOICE_TEXT = {
    "passive": "passive voice preferred",
    "active": "active voice preferred",
    "mixed": "mixed voice (both passive and active)",
}
_PERSON_TEXT = {
    "third": "third person (e.g., 'The authors')",
    "first_plural": "first person plural (e.g., 'We')",
    "first_singular": "first person singular (e.g., 'I')",
}


@dataclass(slots=True)
class StyleDimensions:
    """Fine-tuning knobs for a writing style; numeric values range 1-5."""

    formality: int = 3
    sentence_complexity: int = 2
    hedging_level: int = 3
    voice: str = "active"
    person: str = "first_plural"
    density: int = 3
    jargon_tolerance: int = 2

    def validate(self) -> None:
        for name in ("formality", "sentence_complexity", "hedging_level", "density", "jargon_tolerance"):
            value = getattr(self, name)
            if not isinstance(value, int) or not 1 <= value <= 5:
                raise ValueError(f"Style dimension '{name}' must be an integer from 1 to 5.")
        if self.voice not in VOICES:
            raise ValueError(f"Unknown voice '{self.voice}'.")
        if self.person not in PERSONS:
            raise ValueError(f"Unknown person '{self.person}'.")


@dataclass(slots=True)
class WritingStyle:
    preset: str
    dimensions: StyleDimensions
    name: str | None = None
    description: str | None = None


# All presets default to active voice with moderate sentence complexity and low
# jargon tolerance.
PRESET_DIMENSIONS: Dict[str, StyleDimensions] = {
    "engineering": StyleDimensions(4, 2, 2, "active", "third", 3, 2),
    "management": StyleDimensions(4, 2, 3, "active", "first_plural", 3, 2),
    "information_systems": StyleDimensions(4, 2, 3, "active", "first_plural", 3, 2),
    "social_sciences": StyleDimensions(4, 2, 4, "active", "first_plural", 3, 2),
    "qualitative": StyleDimensions(3, 2, 3, "active", "first_singular", 2, 2),
    "natural_sciences": StyleDimensions(5, 2, 2, "active", "third", 3, 2),
    "conference": StyleDimensions(3, 2, 2, "active", "first_plural", 3, 2),
    "custom": StyleDimensions(3, 2, 3, "active", "first_plural", 3, 2),
}


def preset_style(preset: str) -> WritingStyle:
    """Return the default style for a preset name."""
    if preset not in PRESET_DIMENSIONS:
        raise ValueError(f"Unknown writing style preset '{preset}'.")
    return WritingStyle(preset=preset, dimensions=replace(PRESET_DIMENSIONS[preset]))


def style_from_dict(data: Mapping[str, Any]) -> WritingStyle:
    """Build a WritingStyle from a preset name plus optional dimension overrides."""
    style = preset_style(str(data.get("preset", "custom")))
    overrides = data.get("dimensions") or {}
    if not isinstance(overrides, Mapping):
        raise ValueError("Style 'dimensions' must be a mapping.")
    allowed = {item.name for item in fields(StyleDimensions)}
    for key, value in overrides.items():
        if key in allowed:
            setattr(style.dimensions, key, value)
    style.dimensions.validate()
    style.name = data.get("name")
    style.description = data.get("description")
    return style


def build_style_prompt(style: WritingStyle | None) -> str:
    """Describe the target writing style for inclusion in a system prompt."""
    if style is None:
        return ""
    d = style.dimensions
    d.validate()
    label = PRESET_LABELS.get(style.preset, style.preset)
    return (
        f"\n\nTARGET WRITING STYLE: {label}\n"
        "The user is targeting the following academic writing style. Evaluate their text "
        "against this style and provide feedback that helps them match it:\n"
        f"- Formality: {_FORMALITY[d.formality - 1]}\n"
        f"- Sentence complexity: {_COMPLEXITY[d.sentence_complexity - 1]}\n"
        f"- Hedging level: {_HEDGING[d.hedging_level - 1]}\n"
        f"- Voice: {_VOICE_TEXT[d.voice]}\n"
        f"- Person: {_PERSON_TEXT[d.person]}\n"
        f"- Density: {_DENSITY[d.density - 1]}\n"
        f"- Jargon tolerance: {_JARGON[d.jargon_tolerance - 1]}\n"
        "\n"
        "When providing suggestions, guide the user toward this target style. For example, "
        "if they're writing too informally for a \"formal\" target, suggest specific ways to "
        "increase formality."
    )
