from pathlib import Path

import pytest

from writing_feedback.examples import (
    WritingExample,
    build_examples_prompt,
    build_rewrite_examples_prompt,
    load_examples,
    select_relevant_examples,
)
from writing_feedback.sections import (
    FIGURE_SECTION_KEYS,
    SECTIONS,
    get_section,
    key_point_types,
    section_label,
)
from writing_feedback.styles import build_style_prompt, preset_style, style_from_dict


@pytest.mark.parametrize("key", sorted(SECTIONS))
def test_section_weights_sum_to_one_hundred(key: str):
    assert sum(c.weight for c in get_section(key).criteria) == 100


def test_section_lookup_and_labels():
    assert get_section("paragraph").label == "Single Paragraph"
    assert get_section("figure_theory").is_figure
    assert get_section("introduction").is_narrative
    assert not get_section("methodology").is_narrative
    assert len(FIGURE_SECTION_KEYS) == 6
    assert section_label("nonexistent") == "nonexistent"
    assert key_point_types("results")[0] == "finding"
    assert key_point_types("figure_theory") == ["claim", "point", "statement"]
    with pytest.raises(ValueError):
        get_section("nonexistent")


def test_preset_style_prompt_mentions_dimensions():
    prompt = build_style_prompt(preset_style("engineering"))

    assert "TARGET WRITING STYLE: Engineering / Technical" in prompt
    assert "Person: third person" in prompt
    assert build_style_prompt(None) == ""


def test_style_from_dict_applies_overrides_and_validates():
    style = style_from_dict(
        {"preset": "qualitative", "dimensions": {"formality": 5, "voice": "mixed"}}
    )

    assert style.dimensions.formality == 5
    assert style.dimensions.voice == "mixed"
    assert style.dimensions.person == "first_singular"
    with pytest.raises(ValueError):
        style_from_dict({"preset": "custom", "dimensions": {"density": 9}})
    with pytest.raises(ValueError):
        style_from_dict({"preset": "custom", "dimensions": ["formality", 5]})
    with pytest.raises(ValueError):
        preset_style("unknown")


def test_presets_are_not_shared_between_styles():
    first = preset_style("custom")
    first.dimensions.formality = 1

    assert preset_style("custom").dimensions.formality == 3


def test_load_examples_keeps_active_entries(tmp_path: Path):
    path = tmp_path / "examples.yaml"
    path.write_text(
        "examples:\n"
        "  - discipline: engineering\n"
        "    section_type: conclusion\n"
        "    title: Good\n"
        "    excerpt: We reduced latency by 40 percent.\n"
        "    annotation: Specific numbers.\n"
        "  - discipline: engineering\n"
        "    section_type: conclusion\n"
        "    title: Retired\n"
        "    excerpt: Old text.\n"
        "    is_active: false\n",
        encoding="utf-8",
    )

    examples = load_examples(path)

    assert [ex.title for ex in examples] == ["Good"]
    assert load_examples(None) == []


def test_select_relevant_examples_prefers_discipline_and_maps_conclusions():
    examples = [
        WritingExample("social_sciences", "conclusion", "A", "Excerpt A"),
        WritingExample("engineering", "conclusion", "B", "Excerpt B", annotation="Clear."),
        WritingExample("engineering", "results", "C", "Excerpt C"),
    ]

    chosen = select_relevant_examples(examples, "conclusion_with_limits", "engineering")
    fallback = select_relevant_examples(examples, "conclusion", "natural_sciences")

    assert [ex.title for ex in chosen] == ["B"]
    assert [ex.title for ex in fallback] == ["A", "B"]
    assert "Why this works: Clear." in build_examples_prompt(chosen)
    assert build_examples_prompt([]) == ""
    assert '"Excerpt A"' in build_rewrite_examples_prompt(fallback)
    assert "Excerpt B" not in build_rewrite_examples_prompt(fallback)
