"""API key selection state."""

from __future__ import annotations

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class ApiKeySelector:
    """Hold the Gemini API key chosen for this process.

    The UI checks ``has_selected_api_key`` before submitting and calls
    ``reset`` when the service reports the key as invalid, which brings the
    key prompt back.
    """

    def __init__(self, initial_key: Optional[str] = None) -> None:
        self._key = (initial_key or "").strip() or None
        self._revision = 0

    @property
    def api_key(self) -> Optional[str]:
        return self._key

    @property
    def revision(self) -> int:
        """Counter bumped on every change, used to invalidate cached clients."""
        return self._revision

    def has_selected_api_key(self) -> bool:
        return self._key is not None

    def open_select_key(self, key: str) -> bool:
        """Store a newly entered key. Returns False for blank input."""
        cleaned = (key or "").strip()
        if not cleaned:
            return False
        self._key = cleaned
        self._revision += 1
        logger.info("API key selected")
        return True

    def reset(self) -> None:
        """Forget the current key so the user is asked for a new one."""
        if self._key is not None:
            logger.warning("Clearing selected API key")
        self._key = None
        self._revision += 1
