"""File storage helpers."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional

from modules.design.models import GeneratedDesign
from modules.utils.image_utils import data_uri_to_bytes

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class StorageService:
    """Durable local storage: one text blob per key, plus downloaded images."""

    def __init__(self, storage_dir: Path, output_dir: Optional[Path] = None) -> None:
        self.storage_dir = Path(storage_dir)
        self.output_dir = Path(output_dir) if output_dir is not None else self.storage_dir

    def _path_for(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.storage_dir / f"{key}.json"

    def read(self, key: str) -> Optional[str]:
        """Return the stored blob, or None when the key was never written."""
        path = self._path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, value: str) -> None:
        """Overwrite the blob for ``key``."""
        path = self._path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(value, encoding="utf-8")
        tmp_path.replace(path)

    def remove(self, key: str) -> None:
        self._path_for(key).unlink(missing_ok=True)

    def save_image(self, design: GeneratedDesign) -> Path:
        """Write the design's PNG as ``inkspire-<id>.png`` and return the path."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / design.download_name
        path.write_bytes(data_uri_to_bytes(design.image_url))
        logger.info("Saved design %s to %s", design.id, path)
        return path
