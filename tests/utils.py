from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List


class FakeJSONClient:
    """Returns queued JSON payloads in order and records every request."""

    def __init__(self, *payloads: Dict[str, Any]) -> None:
        self._payloads = list(payloads)
        self.calls: List[Dict[str, Any]] = []

    def complete_json(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        metadata: Any,
        image_url: str | None = None,
    ) -> Dict[str, Any]:
        self.calls.append(
            {
                "system": system_prompt,
                "user": user_prompt,
                "metadata": metadata,
                "image_url": image_url,
            }
        )
        if not self._payloads:
            raise AssertionError("FakeJSONClient ran out of queued payloads")
        return self._payloads.pop(0)


def criteria_payload(section_criteria: Any, score: int, **extra: Any) -> Dict[str, Any]:
    """Model reply scoring every criterion of a section with the same value."""
    payload: Dict[str, Any] = {
        "criteria": [
            {"name": c.name, "score": score, "suggestion": f"Improve {c.name}.", "missing": "gap"}
            for c in section_criteria
        ],
        "generalFeedback": "Solid draft.",
    }
    payload.update(extra)
    return payload


def write_text(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path
