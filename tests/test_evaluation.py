from dataclasses import replace

import pytest

from tests.utils import FakeJSONClient, criteria_payload
from writing_feedback.evaluation import (
    EvaluationRequest,
    Evaluator,
    build_evaluation_prompts,
    build_figure_prompts,
    clamp_score,
    parse_evaluation_response,
    parse_figure_response,
)
from writing_feedback.models import SectionSubmission
from writing_feedback.readability import analyze, empty_report
from writing_feedback.sections import get_section
from writing_feedback.styles import preset_style

PARAGRAPH = get_section("paragraph")
TEXT = "We measured rainfall in ten cities. Results show a clear upward trend."


def test_scores_are_matched_by_name_and_weighted():
    payload = criteria_payload(PARAGRAPH.criteria, 7)
    payload["criteria"][0]["score"] = 8
    payload["criteria"][2]["score"] = 9

    result = parse_evaluation_response(payload, "paragraph", TEXT)

    assert [c.score for c in result.criteria] == [8, 7, 9, 7]
    assert result.overall_score == 7.7
    assert result.general_feedback == "Solid draft."
    assert result.criteria[0].missing is None
    assert result.criteria[1].missing == "gap"


def test_fuzzy_matching_uses_shared_first_word():
    payload = {
        "criteria": [
            {"name": "MAIN IDEA CLARITY", "score": 8.6},
            {"name": "supporting-sentences", "score": "7"},
            {"name": "Sentence starters", "score": 12},
            {"name": "???", "score": 0},
        ]
    }

    result = parse_evaluation_response(payload, "paragraph", TEXT)

    assert [c.name for c in result.criteria] == [c.name for c in PARAGRAPH.criteria]
    assert [c.score for c in result.criteria] == [9, 7, 7, 1]
    assert result.overall_score == 6.4
    assert result.criteria[0].suggestion == (
        "Consider reviewing the main idea clarity aspect of your text to improve this criterion."
    )


def test_empty_reply_gets_defaults():
    result = parse_evaluation_response({}, "paragraph", TEXT)

    assert all(c.score == 5 for c in result.criteria)
    assert result.overall_score == 5.0
    assert result.general_feedback == "Evaluation complete."
    assert result.key_points == []
    assert result.support_arguments == []


@pytest.mark.parametrize(
    ("value", "expected"),
    [(None, 5), ("n/a", 5), (4.5, 5), (4.4, 4), (-3, 1), (11, 10), (float("nan"), 5)],
)
def test_clamp_score(value, expected):
    assert clamp_score(value) == expected


def test_key_points_must_quote_the_text():
    payload = criteria_payload(
        PARAGRAPH.criteria,
        8,
        keyPoints=[
            {"statement": "Rainfall was measured.", "sourceQuote": "we measured   RAINFALL in ten cities"},
            {"id": "kp9", "statement": "Invented.", "sourceQuote": "a quote that is not there"},
            {"id": "kp3", "statement": "Trend.", "sourceQuote": "clear upward trend", "pointType": "finding"},
        ],
    )

    result = parse_evaluation_response(payload, "paragraph", TEXT)

    assert [(kp.id, kp.point_type) for kp in result.key_points] == [
        ("kp1", "claim"),
        ("kp3", "finding"),
    ]


def test_support_arguments_are_capped_at_five():
    arguments = [
        {"sourceQuote": TEXT, "emphasisSuggestion": f"Stress point {idx}.", "rationale": "Matters."}
        for idx in range(7)
    ]
    payload = criteria_payload(PARAGRAPH.criteria, 8, supportArguments=arguments)

    result = parse_evaluation_response(payload, "paragraph", TEXT)

    assert [arg.id for arg in result.support_arguments] == ["arg1", "arg2", "arg3", "arg4", "arg5"]
    assert result.to_dict()["supportArguments"][0]["emphasisSuggestion"] == "Stress point 0."


def test_evaluation_prompt_sections():
    history = [
        SectionSubmission("introduction", "x" * 700),
        SectionSubmission("methodology", "Methods text."),
        SectionSubmission("results", "Results text."),
        SectionSubmission("discussion", "Discussion text."),
    ]
    request = EvaluationRequest(
        text=TEXT,
        section_type="introduction",
        style=preset_style("engineering"),
        include_emphasis=True,
        custom_instructions="Focus on the gap.",
        past_context=history,
        readability=analyze(TEXT),
    )

    system_prompt, user_prompt = build_evaluation_prompts(request)

    assert "PRE-COMPUTED READABILITY METRICS" in system_prompt
    assert "STORYTELLING & READABILITY FOCUS" in system_prompt
    assert "TARGET WRITING STYLE" in system_prompt
    assert "Focus on the gap." in system_prompt
    assert '"supportArguments"' in system_prompt
    assert "--- Past Introduction ---" in system_prompt
    assert "x" * 600 + "..." in system_prompt
    assert "Discussion text." not in system_prompt
    assert "Hook/Topic Introduction (12% weight)" in user_prompt
    assert TEXT in user_prompt


def test_full_publication_uses_all_history_and_plain_sections_get_flow_guidance():
    history = [SectionSubmission("results", f"Part {idx}.") for idx in range(5)]
    request = EvaluationRequest(
        text=TEXT,
        section_type="methodology",
        past_context=history,
        full_publication=True,
    )

    system_prompt, _ = build_evaluation_prompts(request)

    assert "FULL PUBLICATION HISTORY" in system_prompt
    assert "Part 4." in system_prompt
    assert "NARRATIVE FLOW (applies to all sections)" in system_prompt
    assert "supportArguments" not in system_prompt
    assert "PRE-COMPUTED READABILITY METRICS" not in system_prompt


def test_figure_sections_need_figure_prompts():
    with pytest.raises(ValueError):
        build_evaluation_prompts(EvaluationRequest(text=TEXT, section_type="figure_theory"))
    with pytest.raises(ValueError):
        build_figure_prompts("paragraph")

    system_prompt, user_prompt = build_figure_prompts("figure_theory", caption="Model overview.")

    assert "THEORY / LITERATURE REVIEW" in system_prompt
    assert '"Model overview."' in user_prompt


def test_evaluator_attaches_readability_and_metadata():
    client = FakeJSONClient(criteria_payload(PARAGRAPH.criteria, 6))
    evaluator = Evaluator(client)

    result = evaluator.evaluate(EvaluationRequest(text=TEXT, section_type="paragraph"))

    assert result.readability == analyze(TEXT)
    assert result.overall_score == 6.0
    call = client.calls[0]
    assert call["metadata"].task == "evaluation"
    assert call["metadata"].word_count == 12
    assert "PRE-COMPUTED READABILITY METRICS" in call["system"]
    assert result.to_dict()["readabilityMetrics"]["totalWords"] == 12


def test_evaluator_keeps_supplied_readability():
    client = FakeJSONClient({})
    supplied = replace(empty_report(), total_words=99)

    result = Evaluator(client).evaluate(
        EvaluationRequest(text=TEXT, section_type="paragraph", readability=supplied)
    )

    assert result.readability is supplied


def test_evaluate_figure_sends_image_and_matches_names_exactly():
    section = get_section("figure_methodology")
    client = FakeJSONClient(
        {
            "criteria": [
                {"name": section.criteria[0].name, "score": 9},
                {"name": "something else", "score": 3},
            ]
        }
    )

    result = Evaluator(client).evaluate_figure("data:image/png;base64,AAAA", "figure_methodology")

    assert client.calls[0]["image_url"] == "data:image/png;base64,AAAA"
    assert [c.score for c in result.criteria] == [9, 3, 5, 5]
    assert result.criteria[2].suggestion.endswith("aspect of your figure.")
    with pytest.raises(ValueError):
        Evaluator(client).evaluate_figure("", "figure_methodology")


def test_parse_figure_response_defaults():
    result = parse_figure_response({}, "figure_discussion")

    assert result.overall_score == 5.0
    assert result.section_type == "figure_discussion"
