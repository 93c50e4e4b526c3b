from __future__ import annotations

import base64
import json
import logging
import mimetypes
import os
from pathlib import Path
from typing import Any, List

import typer
import yaml

from .config import FeedbackConfig, OpenAISettings, load_config
from .coherence import analyze_coherence
from .diffing import diff as compute_diff
from .evaluation import EvaluationRequest, Evaluator
from .examples import load_examples
from .llm import JSONCompletionClient, OpenAIJSONClient
from .models import SectionSubmission
from .readability import analyze as analyze_readability
from .restructure import suggest_restructure
from .rewriting import LLMRewriter, RewriteRequest
from .sections import SectionType, get_section
from .styles import WritingStyle, preset_style, style_from_dict

app = typer.Typer(help="Academic writing feedback CLI.", no_args_is_help=True)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
        )


@app.command()
def analyze(
    input_path: Path = typer.Option(..., exists=True, readable=True, dir_okay=False),
    config: Path | None = typer.Option(None, "--config", "-c"),
) -> None:
    """Print deterministic readability metrics for a text file as JSON."""
    cfg = load_config(config)
    report = analyze_readability(_read_text(input_path), cfg.readability)
    typer.echo(json.dumps(report.to_dict(), indent=2))


@app.command()
def diff(
    original_path: Path = typer.Option(..., "--original", exists=True, dir_okay=False),
    modified_path: Path = typer.Option(..., "--modified", exists=True, dir_okay=False),
) -> None:
    """Print the word-level diff between two text files as JSON."""
    segments = compute_diff(_read_text(original_path), _read_text(modified_path))
    typer.echo(json.dumps([segment.to_dict() for segment in segments], indent=2))


@app.command()
def evaluate(
    input_path: Path = typer.Option(..., exists=True, readable=True, dir_okay=False),
    section: str = typer.Option(..., "--section", "-s", help="Section type key."),
    config: Path | None = typer.Option(None, "--config", "-c"),
    style: str | None = typer.Option(None, "--style", help="Writing style preset."),
    style_file: Path | None = typer.Option(
        None, "--style-file", exists=True, help="YAML file with a custom writing style."
    ),
    emphasis: bool = typer.Option(
        False, "--emphasis/--no-emphasis", help="Request emphasis suggestions."
    ),
    custom_instructions: str | None = typer.Option(None, "--instructions"),
    history: List[str] = typer.Option(
        [], "--history", help="Past submission as SECTION=PATH[@SCORE]; repeatable."
    ),
    full_publication: bool = typer.Option(
        False, "--full-publication", help="Use all history as full-paper context."
    ),
    caption: str | None = typer.Option(None, "--caption", help="Figure caption."),
    openai_model: str | None = typer.Option(None, "--openai-model"),
    openai_api_key: str | None = typer.Option(
        None, "--openai-api-key", help="Explicit OpenAI API key (prefer env vars)."
    ),
    openai_api_key_env: str | None = typer.Option(None, "--openai-api-key-env"),
    openai_base_url: str | None = typer.Option(None, "--openai-base-url"),
) -> None:
    """Evaluate a section (or a figure image) against its weighted criteria."""
    cfg = load_config(config)
    _apply_openai_overrides(
        cfg.openai, openai_model, openai_api_key, openai_api_key_env, openai_base_url
    )
    section_type = _resolve_section(section)
    evaluator = Evaluator(
        _build_client(cfg),
        examples=load_examples(cfg.examples_path),
        readability_settings=cfg.readability,
    )
    if section_type.is_figure:
        result = evaluator.evaluate_figure(
            _image_data_uri(input_path), section_type.key, caption, custom_instructions
        )
    else:
        request = EvaluationRequest(
            text=_read_text(input_path),
            section_type=section_type.key,
            style=_resolve_style(style, style_file),
            include_emphasis=emphasis,
            custom_instructions=custom_instructions,
            past_context=[_parse_submission(item) for item in history],
            full_publication=full_publication,
        )
        result = evaluator.evaluate(request)
    typer.echo(json.dumps(result.to_dict(), indent=2))


@app.command()
def rewrite(
    input_path: Path = typer.Option(..., exists=True, readable=True, dir_okay=False),
    section: str = typer.Option(..., "--section", "-s", help="Section type key."),
    output_path: Path | None = typer.Option(
        None, "--output-path", "-o", dir_okay=False, help="Write the suggested text here."
    ),
    config: Path | None = typer.Option(None, "--config", "-c"),
    style: str | None = typer.Option(None, "--style", help="Writing style preset."),
    style_file: Path | None = typer.Option(None, "--style-file", exists=True),
    shorten: bool = typer.Option(False, "--shorten", help="Aim for a 20-40% shorter text."),
    custom_instructions: str | None = typer.Option(None, "--instructions"),
    openai_model: str | None = typer.Option(None, "--openai-model"),
    openai_api_key: str | None = typer.Option(
        None, "--openai-api-key", help="Explicit OpenAI API key (prefer env vars)."
    ),
    openai_api_key_env: str | None = typer.Option(None, "--openai-api-key-env"),
    openai_base_url: str | None = typer.Option(None, "--openai-base-url"),
) -> None:
    """Evaluate a section, then propose a rewrite that must not score lower."""
    cfg = load_config(config)
    _apply_openai_overrides(
        cfg.openai, openai_model, openai_api_key, openai_api_key_env, openai_base_url
    )
    section_type = _resolve_section(section)
    if section_type.is_figure:
        raise typer.BadParameter("Figure sections cannot be rewritten.", param_hint="--section")
    text = _read_text(input_path)
    writing_style = _resolve_style(style, style_file)
    client = _build_client(cfg)
    examples = load_examples(cfg.examples_path)
    evaluator = Evaluator(client, examples=examples, readability_settings=cfg.readability)
    # The original score gates which drafts are accepted.
    evaluation = evaluator.evaluate(
        EvaluationRequest(text=text, section_type=section_type.key, style=writing_style)
    )
    rewriter = LLMRewriter(
        client,
        evaluator,
        examples=examples,
        max_attempts=cfg.max_rewrite_attempts,
        readability_settings=cfg.readability,
    )
    result = rewriter.rewrite(
        RewriteRequest(
            text=text,
            section_type=section_type.key,
            original_score=evaluation.overall_score,
            shorten_mode=shorten,
            style=writing_style,
            custom_instructions=custom_instructions,
            evaluation_feedback=evaluation,
        )
    )
    if output_path is not None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(result.suggested_text, encoding="utf-8")
    typer.echo(json.dumps(result.to_dict(), indent=2))


@app.command()
def restructure(
    input_path: Path = typer.Option(..., exists=True, readable=True, dir_okay=False),
    section: str = typer.Option(..., "--section", "-s", help="Section type key."),
    config: Path | None = typer.Option(None, "--config", "-c"),
    custom_instructions: str | None = typer.Option(None, "--instructions"),
    openai_model: str | None = typer.Option(None, "--openai-model"),
    openai_api_key: str | None = typer.Option(
        None, "--openai-api-key", help="Explicit OpenAI API key (prefer env vars)."
    ),
    openai_api_key_env: str | None = typer.Option(None, "--openai-api-key-env"),
    openai_base_url: str | None = typer.Option(None, "--openai-base-url"),
) -> None:
    """Suggest sentences that belong in a different paragraph."""
    cfg = load_config(config)
    _apply_openai_overrides(
        cfg.openai, openai_model, openai_api_key, openai_api_key_env, openai_base_url
    )
    section_type = _resolve_section(section)
    result = suggest_restructure(
        _read_text(input_path), section_type.key, _build_client(cfg), custom_instructions
    )
    typer.echo(json.dumps(result.to_dict(), indent=2))


@app.command()
def coherence(
    title: str = typer.Option(..., "--title", help="Paper title."),
    submissions: List[str] = typer.Option(
        ...,
        "--section",
        "-s",
        help="Section text as SECTION=PATH[@SCORE]; repeat in submission order.",
    ),
    config: Path | None = typer.Option(None, "--config", "-c"),
    openai_model: str | None = typer.Option(None, "--openai-model"),
    openai_api_key: str | None = typer.Option(
        None, "--openai-api-key", help="Explicit OpenAI API key (prefer env vars)."
    ),
    openai_api_key_env: str | None = typer.Option(None, "--openai-api-key-env"),
    openai_base_url: str | None = typer.Option(None, "--openai-base-url"),
) -> None:
    """Analyze how well several sections of one paper fit together."""
    cfg = load_config(config)
    _apply_openai_overrides(
        cfg.openai, openai_model, openai_api_key, openai_api_key_env, openai_base_url
    )
    parsed = [_parse_submission(item) for item in submissions]
    if len(parsed) < 2:
        raise typer.BadParameter(
            "Need at least 2 sections to analyze coherence.", param_hint="--section"
        )
    result = analyze_coherence(title, parsed, _build_client(cfg))
    typer.echo(json.dumps(result.to_dict(), indent=2))


@app.command("print-config")
def print_config() -> None:
    """Print the default configuration as YAML."""
    cfg = FeedbackConfig()
    typer.echo(yaml.safe_dump(cfg.to_dict(), sort_keys=False))


def main() -> None:
    app()


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise typer.BadParameter(f"{path} is not UTF-8 text.") from exc


def _resolve_section(key: str) -> SectionType:
    try:
        return get_section(key)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--section") from exc


def _resolve_style(preset: str | None, style_file: Path | None) -> WritingStyle | None:
    """Build the target style from a preset name or a YAML description."""
    try:
        if style_file is not None:
            data: Any = yaml.safe_load(style_file.read_text(encoding="utf-8")) or {}
            if not isinstance(data, dict):
                raise ValueError("Style file must contain a mapping.")
            return style_from_dict(data)
        if preset:
            return preset_style(preset)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--style") from exc
    return None


def _parse_submission(value: str) -> SectionSubmission:
    """Parse SECTION=PATH[@SCORE] into a submission."""
    section, sep, raw_path = value.partition("=")
    if not sep or not section or not raw_path:
        raise typer.BadParameter(f"Expected SECTION=PATH[@SCORE], got '{value}'.")
    score = None
    head, at, tail = raw_path.rpartition("@")
    if at and head:
        try:
            score = float(tail)
        except ValueError:
            score = None
        else:
            raw_path = head
    path = Path(raw_path)
    if not path.is_file():
        raise typer.BadParameter(f"File not found: {raw_path}")
    return SectionSubmission(section_type=section, text=_read_text(path), overall_score=score)


def _image_data_uri(path: Path) -> str:
    mime, _ = mimetypes.guess_type(path.name)
    if mime is None or not mime.startswith("image/"):
        raise typer.BadParameter(f"{path} does not look like an image file.")
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def _apply_openai_overrides(
    settings: OpenAISettings,
    openai_model: str | None,
    openai_api_key: str | None,
    openai_api_key_env: str | None,
    openai_base_url: str | None,
) -> None:
    """Override OpenAI settings from CLI flags."""
    if openai_model:
        settings.model = openai_model
    if openai_api_key:
        settings.api_key = openai_api_key
    if openai_api_key_env:
        settings.api_key_env = openai_api_key_env
    if openai_base_url:
        settings.base_url = openai_base_url


def _build_client(config: FeedbackConfig) -> JSONCompletionClient:
    """Instantiate the OpenAI-backed JSON client for the current run."""
    api_key = _resolve_openai_api_key(config.openai)
    return OpenAIJSONClient(config.openai, api_key=api_key)


def _resolve_openai_api_key(settings: OpenAISettings) -> str:
    """Resolve the API key from explicit config or the configured environment variable."""
    if settings.api_key:
        return settings.api_key
    env_name = settings.api_key_env or "OPENAI_API_KEY"
    if env_name in os.environ and os.environ[env_name]:
        return os.environ[env_name]
    raise RuntimeError(
        "OpenAI API key not provided. Use --openai-api-key or set the configured environment variable."
    )


if __name__ == "__main__":
    main()
