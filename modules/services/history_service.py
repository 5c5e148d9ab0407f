"""Generation history tracking."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from modules.design.models import DEFAULT_VIEW_MODE, GeneratedDesign

logger = logging.getLogger(__name__)


class HistoryStorage(Protocol):
    """Key/value storage the history is persisted to."""

    def read(self, key: str) -> Optional[str]: ...

    def write(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


@dataclass(slots=True)
class HistoryLoadReport:
    """Result of rehydrating the persisted history."""

    entries: List[GeneratedDesign] = field(default_factory=list)
    discarded: int = 0
    corrupted: bool = False


def filter_valid(raw_entries: List[Any]) -> tuple[List[Dict[str, Any]], int]:
    """Drop entries without ``id`` or ``imageUrl`` and backfill ``viewMode``.

    Returns the surviving (copied) entries and the number dropped. Entries
    are never repaired beyond the ``viewMode`` default.
    """
    kept: List[Dict[str, Any]] = []
    dropped = 0
    for entry in raw_entries:
        if not isinstance(entry, dict) or not entry.get("id") or not entry.get("imageUrl"):
            dropped += 1
            continue
        entry = dict(entry)
        request = entry.get("originalRequest")
        if isinstance(request, dict) and not request.get("viewMode"):
            entry["originalRequest"] = {**request, "viewMode": DEFAULT_VIEW_MODE.value}
        kept.append(entry)
    return kept, dropped


class GenerationHistoryService:
    """Newest-first, optionally capped ledger of generated designs.

    The full sequence is rewritten to storage after every mutation; with
    several writers the last write wins.
    """

    def __init__(
        self,
        storage: HistoryStorage,
        key: str = "inkspire_history",
        max_items: Optional[int] = 5,
    ) -> None:
        if max_items is not None and max_items < 1:
            raise ValueError("max_items must be positive or None")
        self.storage = storage
        self.key = key
        self.max_items = max_items
        self._entries: List[GeneratedDesign] = []

    def __len__(self) -> int:
        return len(self._entries)

    def entries(self) -> List[GeneratedDesign]:
        """Return a copy of the history, newest first."""
        return list(self._entries)

    def load(self) -> HistoryLoadReport:
        """Rehydrate from storage, discarding the blob entirely if it is corrupt."""
        blob = self.storage.read(self.key)
        if blob is None:
            self._entries = []
            return HistoryLoadReport()

        try:
            raw = json.loads(blob)
            if not isinstance(raw, list):
                raise ValueError(f"expected a JSON array, got {type(raw).__name__}")
        except ValueError as exc:
            logger.warning("Discarding corrupted history blob: %s", exc)
            self.storage.remove(self.key)
            self._entries = []
            return HistoryLoadReport(corrupted=True)

        candidates, discarded = filter_valid(raw)
        entries: List[GeneratedDesign] = []
        seen: set[str] = set()
        for entry in candidates:
            try:
                design = GeneratedDesign.from_dict(entry)
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Dropping unreadable history entry %s: %s", entry.get("id"), exc)
                discarded += 1
                continue
            if design.id in seen:
                discarded += 1
                continue
            seen.add(design.id)
            entries.append(design)

        if self.max_items is not None and len(entries) > self.max_items:
            discarded += len(entries) - self.max_items
            entries = entries[: self.max_items]

        if discarded:
            logger.warning("Dropped %d invalid history entries", discarded)
        self._entries = entries
        return HistoryLoadReport(entries=list(entries), discarded=discarded)

    def append(self, design: GeneratedDesign) -> None:
        """Prepend ``design``, trim to the cap and persist."""
        if any(existing.id == design.id for existing in self._entries):
            raise ValueError(f"Design {design.id} is already in history")
        entries = [design, *self._entries]
        if self.max_items is not None:
            entries = entries[: self.max_items]
        self._entries = entries
        self._persist()

    def select(self, design_id: str) -> GeneratedDesign:
        """Return the entry with ``design_id``."""
        for design in self._entries:
            if design.id == design_id:
                return design
        raise KeyError(f"Design '{design_id}' not found in history")

    def clear(self) -> None:
        """Forget all entries and remove the persisted blob."""
        self._entries = []
        self.storage.remove(self.key)

    def _persist(self) -> None:
        payload = [design.to_dict() for design in self._entries]
        self.storage.write(self.key, json.dumps(payload, ensure_ascii=False))
