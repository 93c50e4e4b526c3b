import uuid

import pytest

from tests.utils import FakeJSONClient
from writing_feedback.coherence import (
    analyze_coherence,
    latest_by_section,
    parse_coherence_response,
)
from writing_feedback.models import SectionSubmission
from writing_feedback.restructure import (
    parse_restructure_response,
    split_paragraphs,
    suggest_restructure,
)

TWO_PARAGRAPHS = (
    "We surveyed 200 firms. Budgets were tight.\n\n"
    "  \n"
    "Survey responses were coded twice. Coders agreed in most cases."
)


def test_split_paragraphs_on_blank_lines():
    assert split_paragraphs(TWO_PARAGRAPHS) == [
        "We surveyed 200 firms. Budgets were tight.",
        "Survey responses were coded twice. Coders agreed in most cases.",
    ]
    assert split_paragraphs("One paragraph\nwith a soft break.") == [
        "One paragraph\nwith a soft break."
    ]


def test_single_paragraph_skips_the_model():
    client = FakeJSONClient()

    result = suggest_restructure("Only one paragraph here.", "discussion", client)

    assert client.calls == []
    assert result.suggestions == []
    assert result.overall_coherence == 10
    assert result.summary == "Text has only one paragraph. No restructuring needed."


def test_suggestions_must_quote_the_text():
    client = FakeJSONClient(
        {
            "suggestions": [
                {"sentence": "budgets  were TIGHT.", "fromParagraph": 1, "toParagraph": 2, "reason": "Context."},
                {"id": "s2", "sentence": "A sentence that was never written.", "fromParagraph": 2, "toParagraph": 1},
                {"id": "s3", "sentence": "Coders agreed in most cases.", "fromParagraph": "2", "toParagraph": 1},
            ]
        }
    )

    result = suggest_restructure(TWO_PARAGRAPHS, "results", client, "Keep it short.")

    assert [s.sentence for s in result.suggestions] == [
        "budgets  were TIGHT.",
        "Coders agreed in most cases.",
    ]
    uuid.UUID(result.suggestions[0].id)
    assert result.suggestions[1].id == "s3"
    assert result.suggestions[1].from_paragraph == 2
    assert result.overall_coherence == 8
    assert result.summary == "Analysis complete"
    call = client.calls[0]
    assert "TEXT (2 paragraphs)" in call["user"]
    assert "--- Paragraph 2 ---" in call["user"]
    assert "Keep it short." in call["system"]


def test_coherence_needs_two_submissions():
    with pytest.raises(ValueError):
        analyze_coherence("Paper", [SectionSubmission("introduction", "Intro.")], FakeJSONClient())


def test_latest_submission_per_section_is_used():
    submissions = [
        SectionSubmission("introduction", "Old intro.", overall_score=5.0),
        SectionSubmission("methodology", "m" * 900, overall_score=6.5),
        SectionSubmission("introduction", "New intro.", overall_score=7.0),
    ]
    client = FakeJSONClient(
        {
            "overallScore": 7,
            "summary": "Sections connect well.",
            "strengths": ["Consistent terms"],
            "insights": [
                {"fromSection": "introduction", "toSection": "methodology", "score": 6, "feedback": "Link the aim."}
            ],
        }
    )

    result = analyze_coherence("Rain and Cities", submissions, client)

    assert [s.text for s in latest_by_section(submissions)] == ["New intro.", "m" * 900]
    prompt = client.calls[0]["user"]
    assert '"Rain and Cities"' in prompt
    assert "New intro." in prompt
    assert "Old intro." not in prompt
    assert "### Methodology / Research Design (Score: 6.5/10)" in prompt
    assert "m" * 800 + "..." in prompt
    assert result.overall_score == 7
    assert result.insights[0].to_dict()["toSection"] == "methodology"
    assert result.strengths == ["Consistent terms"]
    assert result.improvements == []


def test_coherence_defaults():
    submissions = [SectionSubmission("abstract", "A."), SectionSubmission("results", "R.")]
    client = FakeJSONClient({})

    result = analyze_coherence("Paper", submissions, client)

    assert result.overall_score == 5
    assert result.summary == "Analysis complete."
    assert result.insights == []
    assert "### Abstract\nA." in client.calls[0]["user"]
    assert "(Score:" not in client.calls[0]["user"]


def test_non_numeric_scores_fall_back_to_defaults():
    restructured = parse_restructure_response({"overallCoherence": "very good"}, TWO_PARAGRAPHS)
    coherence = parse_coherence_response(
        {
            "overallScore": "high",
            "insights": [{"fromSection": "abstract", "toSection": "results", "score": "n/a"}],
        }
    )

    assert restructured.overall_coherence == 8
    assert coherence.overall_score == 5
    assert coherence.insights[0].score == 0
