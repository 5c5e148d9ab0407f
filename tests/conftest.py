"""Shared fakes for the Gemini client and local storage."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict, Optional

import pytest

from config.settings import AppConfig
from modules.services.credential_service import ApiKeySelector
from modules.utils.client_loader import GeminiClientLoader

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-image-bytes"


def image_response(data: Any = PNG_BYTES, mime_type: str = "image/png") -> SimpleNamespace:
    """Mimic a generate_content response carrying one inline image."""
    part = SimpleNamespace(inline_data=SimpleNamespace(data=data, mime_type=mime_type), text=None)
    candidate = SimpleNamespace(content=SimpleNamespace(parts=[part]), finish_reason=None)
    return SimpleNamespace(candidates=[candidate], prompt_feedback=None)


def empty_response(finish_reason: Optional[str] = None) -> SimpleNamespace:
    part = SimpleNamespace(inline_data=None, text="I can't draw that.")
    candidate = SimpleNamespace(content=SimpleNamespace(parts=[part]), finish_reason=finish_reason)
    return SimpleNamespace(candidates=[candidate], prompt_feedback=None)


def text_response(text: Optional[str]) -> SimpleNamespace:
    return SimpleNamespace(text=text)


class FakeModels:
    """Records calls; each model name maps to a response or an exception."""

    def __init__(self, outcomes: Dict[str, Any]) -> None:
        self.outcomes = outcomes
        self.calls: list[dict[str, Any]] = []

    def generate_content(self, *, model: str, contents: Any, config: Any = None) -> Any:
        self.calls.append({"model": model, "contents": contents, "config": config})
        outcome = self.outcomes.get(model)
        if outcome is None:
            raise RuntimeError(f"404 NOT_FOUND. model {model} not configured in fake")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def models_called(self) -> list[str]:
        return [call["model"] for call in self.calls]


class FakeClient:
    def __init__(self, outcomes: Dict[str, Any]) -> None:
        self.models = FakeModels(outcomes)


class MemoryStorage:
    """In-memory stand-in for StorageService's key/value API."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.blobs: Dict[str, str] = dict(initial or {})
        self.writes = 0

    def read(self, key: str) -> Optional[str]:
        return self.blobs.get(key)

    def write(self, key: str, value: str) -> None:
        self.writes += 1
        self.blobs[key] = value

    def remove(self, key: str) -> None:
        self.blobs.pop(key, None)


@pytest.fixture
def config(tmp_path) -> AppConfig:
    return AppConfig(storage_dir=tmp_path / "data", output_dir=tmp_path / "outputs", log_dir=tmp_path / "logs")


@pytest.fixture
def make_loader():
    """Build a GeminiClientLoader whose client is a FakeClient."""

    def _make(outcomes: Dict[str, Any], api_key: Optional[str] = "test-key"):
        client = FakeClient(outcomes)
        loader = GeminiClientLoader(ApiKeySelector(api_key), client_factory=lambda key: client)
        return loader, client

    return _make
