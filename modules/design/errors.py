"""Error taxonomy for image generation failures."""

from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple


class ErrorKind(str, Enum):
    """Classification of a failed generation, checked in declaration order."""

    QUOTA_EXCEEDED = "quota_exceeded"
    CONTENT_FILTERED = "content_filtered"
    PERMISSION_DENIED = "permission_denied"
    KEY_RESET_REQUIRED = "key_reset_required"
    UNCLASSIFIED = "unclassified"


_QUOTA_MARKERS: Tuple[str, ...] = ("429", "quota", "resource_exhausted", "rate limit")
_SAFETY_MARKERS: Tuple[str, ...] = ("safety", "blocked", "prohibited", "content filter")
_KEY_RESET_MARKERS: Tuple[str, ...] = ("not found",)
_PERMISSION_MARKERS: Tuple[str, ...] = (
    "permission",
    "403",
    "401",
    "api key",
    "unauthenticated",
)


def classify_error(message: Optional[str]) -> ErrorKind:
    """Map a failure message to exactly one ErrorKind.

    Quota is checked before safety, safety before permission. A "not found"
    signal is the credential sub-case: the selected key silently stopped
    resolving and has to be picked again.
    """
    text = (message or "").lower()
    if any(marker in text for marker in _QUOTA_MARKERS):
        return ErrorKind.QUOTA_EXCEEDED
    if any(marker in text for marker in _SAFETY_MARKERS):
        return ErrorKind.CONTENT_FILTERED
    if any(marker in text for marker in _KEY_RESET_MARKERS):
        return ErrorKind.KEY_RESET_REQUIRED
    if any(marker in text for marker in _PERMISSION_MARKERS):
        return ErrorKind.PERMISSION_DENIED
    return ErrorKind.UNCLASSIFIED


class EmptyPromptError(ValueError):
    """Raised when a submission carries no concept text."""


class GenerationError(RuntimeError):
    """Both image tiers failed."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def requires_key_reset(self) -> bool:
        return self.kind in (ErrorKind.PERMISSION_DENIED, ErrorKind.KEY_RESET_REQUIRED)
