import json
from pathlib import Path
from typing import Any

import pytest
from pytest import MonkeyPatch
from typer.testing import CliRunner

from tests.utils import FakeJSONClient, criteria_payload, write_text
from writing_feedback import cli
from writing_feedback.cli import app
from writing_feedback.config import OpenAISettings
from writing_feedback.sections import get_section

runner = CliRunner()

TEXT = "The cat sat on the mat. It was a nice day."


def _use_fake_client(monkeypatch: MonkeyPatch, client: FakeJSONClient) -> dict[str, Any]:
    seen: dict[str, Any] = {}

    def fake_build_client(config: Any) -> FakeJSONClient:
        seen["config"] = config
        return client

    monkeypatch.setattr(cli, "_build_client", fake_build_client)
    return seen


def test_cli_analyze_outputs_report(tmp_path: Path):
    """analyze prints the readability report as camelCase JSON."""
    path = write_text(tmp_path / "draft.txt", TEXT)

    result = runner.invoke(app, ["analyze", "--input-path", str(path)])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["totalSentences"] == 2
    assert payload["passiveVoicePercent"] == 0
    assert payload["longSentences"] == []


def test_cli_analyze_honours_config(tmp_path: Path):
    path = write_text(tmp_path / "draft.txt", "One two three four five six. Short one.")
    config_path = write_text(tmp_path / "config.yaml", "readability:\n  long_sentence_threshold: 5\n")

    result = runner.invoke(app, ["analyze", "--input-path", str(path), "--config", str(config_path)])

    assert result.exit_code == 0
    assert json.loads(result.stdout)["longSentences"][0]["wordCount"] == 6


def test_cli_diff_outputs_segments(tmp_path: Path):
    original = write_text(tmp_path / "a.txt", "The quick fox")
    modified = write_text(tmp_path / "b.txt", "The quick brown fox")

    result = runner.invoke(app, ["diff", "--original", str(original), "--modified", str(modified)])

    assert result.exit_code == 0
    assert json.loads(result.stdout) == [
        {"type": "equal", "text": "The quick"},
        {"type": "added", "text": " brown"},
        {"type": "equal", "text": " fox"},
    ]


def test_cli_print_config():
    """print-config dumps the default configuration values."""
    result = runner.invoke(app, ["print-config"])

    assert result.exit_code == 0
    assert "long_sentence_threshold: 25" in result.stdout
    assert "api_key_env: OPENAI_API_KEY" in result.stdout


def test_cli_evaluate_with_openai_options(monkeypatch: MonkeyPatch, tmp_path: Path):
    """evaluate wires CLI overrides into the OpenAI settings and prints the result."""
    path = write_text(tmp_path / "intro.txt", TEXT)
    history = write_text(tmp_path / "abstract.txt", "An earlier abstract.")
    client = FakeJSONClient(criteria_payload(get_section("introduction").criteria, 7))
    seen = _use_fake_client(monkeypatch, client)

    result = runner.invoke(
        app,
        [
            "evaluate",
            "--input-path",
            str(path),
            "--section",
            "introduction",
            "--style",
            "management",
            "--history",
            f"abstract={history}",
            "--openai-model",
            "gpt-4.1-mini",
        ],
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["overallScore"] == 7.0
    assert payload["readabilityMetrics"]["totalWords"] == 11
    assert seen["config"].openai.model == "gpt-4.1-mini"
    assert "An earlier abstract." in client.calls[0]["system"]
    assert "Management / Business" in client.calls[0]["system"]


def test_cli_evaluate_rejects_malformed_style_file(monkeypatch: MonkeyPatch, tmp_path: Path):
    path = write_text(tmp_path / "draft.txt", TEXT)
    style_file = write_text(tmp_path / "style.yaml", "preset: custom\ndimensions: [formality, 5]\n")
    client = FakeJSONClient()
    _use_fake_client(monkeypatch, client)

    result = runner.invoke(
        app,
        [
            "evaluate",
            "--input-path",
            str(path),
            "--section",
            "introduction",
            "--style-file",
            str(style_file),
        ],
    )

    assert result.exit_code == 2
    assert client.calls == []


def test_cli_evaluate_figure_sends_image(monkeypatch: MonkeyPatch, tmp_path: Path):
    image = tmp_path / "figure.png"
    image.write_bytes(b"\x89PNG fake")
    client = FakeJSONClient({})
    _use_fake_client(monkeypatch, client)

    result = runner.invoke(
        app, ["evaluate", "--input-path", str(image), "--section", "figure_methodology"]
    )

    assert result.exit_code == 0, result.output
    assert client.calls[0]["image_url"].startswith("data:image/png;base64,")


def test_cli_rejects_unknown_section(tmp_path: Path):
    path = write_text(tmp_path / "draft.txt", TEXT)

    result = runner.invoke(app, ["evaluate", "--input-path", str(path), "--section", "preface"])

    assert result.exit_code != 0
    assert "preface" in result.output


def test_cli_rewrite_writes_suggested_text(monkeypatch: MonkeyPatch, tmp_path: Path):
    path = write_text(tmp_path / "para.txt", TEXT)
    output = tmp_path / "out" / "para.txt"
    criteria = get_section("paragraph").criteria
    client = FakeJSONClient(
        criteria_payload(criteria, 6),
        {"suggestedText": "A cat sat on the mat. The day was nice.", "changes": []},
        criteria_payload(criteria, 8),
    )
    _use_fake_client(monkeypatch, client)

    result = runner.invoke(
        app,
        ["rewrite", "--input-path", str(path), "--section", "paragraph", "--output-path", str(output)],
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["suggestedScore"] == 8.0
    assert payload["noImprovementFound"] is False
    assert len(payload["criteriaComparison"]) == 4
    assert output.read_text(encoding="utf-8") == "A cat sat on the mat. The day was nice."


def test_cli_restructure_single_paragraph(monkeypatch: MonkeyPatch, tmp_path: Path):
    path = write_text(tmp_path / "para.txt", TEXT)
    client = FakeJSONClient()
    _use_fake_client(monkeypatch, client)

    result = runner.invoke(app, ["restructure", "--input-path", str(path), "--section", "discussion"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["overallCoherence"] == 10
    assert client.calls == []


def test_cli_coherence(monkeypatch: MonkeyPatch, tmp_path: Path):
    intro = write_text(tmp_path / "intro.txt", "Intro text.")
    methods = write_text(tmp_path / "methods.txt", "Methods text.")
    client = FakeJSONClient({"overallScore": 6, "summary": "Fine."})
    _use_fake_client(monkeypatch, client)

    result = runner.invoke(
        app,
        [
            "coherence",
            "--title",
            "A Paper",
            "--section",
            f"introduction={intro}",
            "--section",
            f"methodology={methods}@6.5",
        ],
    )

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["summary"] == "Fine."
    prompt = client.calls[0]["user"]
    assert "### Introduction\nIntro text." in prompt
    assert "### Methodology / Research Design (Score: 6.5/10)" in prompt
    assert "Score: 0.0" not in prompt


def test_cli_coherence_needs_two_sections(tmp_path: Path):
    intro = write_text(tmp_path / "intro.txt", "Intro text.")

    result = runner.invoke(
        app, ["coherence", "--title", "A Paper", "--section", f"introduction={intro}"]
    )

    assert result.exit_code == 2


def test_resolve_openai_api_key(monkeypatch: MonkeyPatch):
    monkeypatch.setenv("CUSTOM_KEY", "from-env")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    assert cli._resolve_openai_api_key(OpenAISettings(api_key="explicit")) == "explicit"
    assert cli._resolve_openai_api_key(OpenAISettings(api_key_env="CUSTOM_KEY")) == "from-env"
    with pytest.raises(RuntimeError):
        cli._resolve_openai_api_key(OpenAISettings())
