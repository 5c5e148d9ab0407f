"""Configuration helpers for the Inkspire tattoo design studio."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

DEFAULT_HISTORY_LIMIT = 5


@dataclass(slots=True)
class AppConfig:
    """Centralized application configuration."""

    assets_dir: Path = Path("assets")
    storage_dir: Path = Path("data")
    output_dir: Path = Path("outputs")
    log_dir: Path = Path("logs")
    gemini_api_key: Optional[str] = None
    text_model: str = "gemini-3-flash-preview"
    primary_image_model: str = "gemini-3-pro-image-preview"
    secondary_image_model: str = "gemini-2.5-flash-image"
    aspect_ratio: str = "1:1"
    image_size: str = "1K"
    refine_temperature: float = 0.7
    history_key: str = "inkspire_history"
    history_limit: Optional[int] = DEFAULT_HISTORY_LIMIT
    metadata: dict[str, Any] = field(default_factory=dict)


def _load_env_file(path: Path) -> None:
    """Populate environment variables from a simple KEY=VALUE .env file."""
    if not path.exists():
        return

    for line in path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ[key.strip()] = value.strip()


def _parse_history_limit(raw: Optional[str]) -> Optional[int]:
    """Translate INKSPIRE_HISTORY_LIMIT into a cap; 0 or 'none' means unbounded."""
    if raw is None or not raw.strip():
        return DEFAULT_HISTORY_LIMIT
    value = raw.strip().lower()
    if value in ("none", "unbounded", "unlimited"):
        return None
    try:
        limit = int(value)
    except ValueError:
        return DEFAULT_HISTORY_LIMIT
    return limit if limit > 0 else None


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Return an AppConfig instance with environment-aware settings."""
    env_path = Path(config_path) if config_path else Path(".env")
    _load_env_file(env_path)

    defaults = AppConfig()
    api_key = (
        os.getenv("GEMINI_API_KEY")
        or os.getenv("GOOGLE_API_KEY")
        or os.getenv("API_KEY")
    )

    metadata: dict[str, Any] = {}
    if os.getenv("INKSPIRE_STYLES_FILE"):
        metadata["styles_file"] = os.environ["INKSPIRE_STYLES_FILE"]

    return AppConfig(
        assets_dir=Path(os.getenv("INKSPIRE_ASSETS_DIR", str(defaults.assets_dir))),
        storage_dir=Path(os.getenv("INKSPIRE_STORAGE_DIR", str(defaults.storage_dir))).expanduser(),
        output_dir=Path(os.getenv("INKSPIRE_OUTPUT_DIR", str(defaults.output_dir))).expanduser(),
        log_dir=Path(os.getenv("LOG_DIR", str(defaults.log_dir))).expanduser(),
        gemini_api_key=api_key,
        text_model=os.getenv("INKSPIRE_TEXT_MODEL") or defaults.text_model,
        primary_image_model=os.getenv("INKSPIRE_PRIMARY_IMAGE_MODEL") or defaults.primary_image_model,
        secondary_image_model=(
            os.getenv("INKSPIRE_SECONDARY_IMAGE_MODEL") or defaults.secondary_image_model
        ),
        history_limit=_parse_history_limit(os.getenv("INKSPIRE_HISTORY_LIMIT")),
        metadata=metadata,
    )
