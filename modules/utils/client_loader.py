"""Shared Gemini client loading."""

from __future__ import annotations

from typing import Any, Callable, Optional

from google import genai

from modules.services.credential_service import ApiKeySelector

ClientFactory = Callable[[str], Any]


def _default_factory(api_key: str) -> Any:
    return genai.Client(api_key=api_key)


class GeminiClientLoader:
    """Build one ``genai.Client`` per selected key and reuse it.

    Constructed once per process and handed to the refiner and the image
    generator; tests pass a ``client_factory`` returning fakes.
    """

    def __init__(
        self,
        credentials: ApiKeySelector,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self.credentials = credentials
        self._factory = client_factory or _default_factory
        self._client: Any = None
        self._revision: Optional[int] = None

    def get_client(self) -> Any:
        """Return the cached client, rebuilding it after a key change.

        Raises:
            RuntimeError: if no API key has been selected.
        """
        if not self.credentials.has_selected_api_key():
            raise RuntimeError("API key not selected. Set GEMINI_API_KEY or enter a key in the UI.")
        if self._client is None or self._revision != self.credentials.revision:
            self._client = self._factory(self.credentials.api_key)
            self._revision = self.credentials.revision
        return self._client

    def clear(self) -> None:
        """Drop the cached client."""
        self._client = None
        self._revision = None
