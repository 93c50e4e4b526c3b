from __future__ import annotations

import importlib
import json
import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Protocol, cast

from ..config import OpenAISettings

logger = logging.getLogger(__name__)

OpenAI: Callable[..., Any] | None = None


class ResponseFormatError(ValueError):
    """Raised when the model reply is not a JSON object."""


@dataclass(slots=True)
class RequestMetadata:
    """Describes the request being sent, used for logging."""

    task: str
    section_type: str | None = None
    attempt: int | None = None
    word_count: int | None = None


class JSONCompletionClient(Protocol):
    """Anything that turns a system/user prompt pair into a parsed JSON object."""

    def complete_json(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        metadata: RequestMetadata,
        image_url: str | None = None,
    ) -> Dict[str, Any]: ...


class OpenAIJSONClient:
    """Thin wrapper around Chat Completions in JSON mode with retries and throttling."""

    def __init__(self, settings: OpenAISettings, api_key: str) -> None:
        if not api_key:
            raise ValueError("OpenAI API key is required for model-backed feedback.")
        self._settings = settings
        self._api_key = api_key
        self._client_factory: Callable[..., Any] = _load_openai_factory()
        self._client: Any | None = None
        self._semaphore: threading.BoundedSemaphore | None = None
        if settings.parallel_requests > 0:
            self._semaphore = threading.BoundedSemaphore(settings.parallel_requests)
        self._max_attempts = max(1, settings.max_attempts)

    @property
    def settings(self) -> OpenAISettings:
        return self._settings

    def complete_json(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        metadata: RequestMetadata,
        image_url: str | None = None,
    ) -> Dict[str, Any]:
        """Send the prompts and return the reply parsed as a JSON object."""
        messages = _build_messages(system_prompt, user_prompt, image_url)
        attempt = 0
        last_error: Exception | None = None
        content: str | None = None
        while attempt < self._max_attempts:
            attempt += 1
            try:
                with self._acquire_slot():
                    client = self._ensure_client()
                    response: Any = client.chat.completions.create(**self._request_kwargs(messages))
                content = self._extract_content(response)
                logger.debug(
                    "OpenAI %s request succeeded for section=%s (%s chars)",
                    metadata.task,
                    metadata.section_type,
                    len(content),
                )
                break
            except Exception as exc:  # pragma: no cover - network-related
                last_error = exc
                logger.warning(
                    "OpenAI %s request failed for section=%s (attempt %s/%s): %s",
                    metadata.task,
                    metadata.section_type,
                    attempt,
                    self._max_attempts,
                    exc,
                )
                if attempt >= self._max_attempts:
                    break
                time.sleep(min(attempt, 5))
        if content is None:
            raise RuntimeError(
                f"OpenAI {metadata.task} request failed after {self._max_attempts} attempts."
            ) from last_error
        return parse_json_object(content)

    def _request_kwargs(self, messages: List[Dict[str, Any]]) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "model": self._settings.model,
            "messages": messages,
            "response_format": {"type": "json_object"},
            "max_completion_tokens": self._settings.max_output_tokens,
            "timeout": self._settings.request_timeout,
        }
        if self._settings.temperature is not None:
            kwargs["temperature"] = self._settings.temperature
        return kwargs

    def _ensure_client(self) -> Any:
        if self._client is None:
            self._client = self._client_factory(
                api_key=self._api_key,
                base_url=self._settings.base_url,
                organization=self._settings.organization,
            )
        return self._client

    @contextmanager
    def _acquire_slot(self) -> Iterator[None]:
        if self._semaphore is None:
            yield
            return
        self._semaphore.acquire()
        try:
            yield
        finally:
            self._semaphore.release()

    @staticmethod
    def _extract_content(response: Any) -> str:
        choices = getattr(response, "choices", None)
        if not choices:
            raise RuntimeError("OpenAI response is missing choices.")
        choice = OpenAIJSONClient._materialize_item(choices[0])
        message = choice.get("message")
        if not message:
            raise RuntimeError("OpenAI response choice has no message.")
        content = OpenAIJSONClient._materialize_item(message).get("content")
        if not content:
            raise RuntimeError("Empty response from OpenAI.")
        return str(content)

    @staticmethod
    def _materialize_item(item: Any) -> dict[str, Any]:
        if isinstance(item, dict):
            return cast(dict[str, Any], item)
        if hasattr(item, "model_dump"):
            dumpable: Any = item
            raw_dump: dict[str, Any] = dumpable.model_dump()
            return raw_dump
        if hasattr(item, "__dict__"):
            dumpable: Any = item
            raw_dict: dict[str, Any] = dict(dumpable.__dict__)
            return raw_dict
        raise RuntimeError("Unexpected OpenAI response format.")


def parse_json_object(content: str) -> Dict[str, Any]:
    """Decode a model reply that must be a JSON object."""
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ResponseFormatError(f"Model reply is not valid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ResponseFormatError("Model reply must be a JSON object.")
    return cast(Dict[str, Any], parsed)


def _build_messages(
    system_prompt: str, user_prompt: str, image_url: str | None
) -> List[Dict[str, Any]]:
    user_content: Any = user_prompt
    if image_url:
        user_content = [
            {"type": "text", "text": user_prompt},
            {"type": "image_url", "image_url": {"url": image_url, "detail": "high"}},
        ]
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": user_content},
    ]


def _load_openai_factory() -> Callable[..., Any]:
    """Dynamically import the OpenAI client factory to avoid hard dependency at import."""
    global OpenAI
    if OpenAI is not None:
        return OpenAI
    try:  # pragma: no cover - import guard
        module = importlib.import_module("openai")
    except Exception as exc:  # pragma: no cover - handled at runtime
        raise RuntimeError(
            "openai package is not installed. Install extras via 'pip install .[llm-openai]'."
        ) from exc
    openai_cls = getattr(module, "OpenAI", None)
    if openai_cls is None:  # pragma: no cover - defensive
        raise RuntimeError("openai.OpenAI client class is unavailable in this environment.")
    OpenAI = cast(Callable[..., Any], openai_cls)
    return OpenAI
