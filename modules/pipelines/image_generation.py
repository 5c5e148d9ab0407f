"""Two-tier Gemini image generation service."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from google.genai import types

from config.settings import AppConfig
from modules.design.errors import ErrorKind, GenerationError, classify_error
from modules.utils.client_loader import GeminiClientLoader
from modules.utils.image_utils import data_uri_to_bytes, normalize_png, split_data_uri, to_data_uri

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ImageTier:
    """A backing model and the configuration surface it accepts."""

    name: str
    model: str
    aspect_ratio: str
    image_size: Optional[str] = None  # resolution hint; the secondary tier takes none


@dataclass(slots=True)
class TierResult:
    """Outcome of a single tier attempt: an image or a classified failure."""

    tier: ImageTier
    image_url: Optional[str] = None
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None

    @property
    def ok(self) -> bool:
        return self.image_url is not None


@dataclass(slots=True)
class GenerationOutcome:
    """Every tier attempt made for one prompt, in order."""

    attempts: List[TierResult] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.attempts) and self.attempts[-1].ok

    @property
    def image_url(self) -> Optional[str]:
        return self.attempts[-1].image_url if self.ok else None

    @property
    def failure(self) -> Optional[TierResult]:
        """The failure that decides the outcome: the last tier tried."""
        if not self.attempts or self.ok:
            return None
        return self.attempts[-1]

    def unwrap(self) -> str:
        """Return the image data-URI or raise the classified failure."""
        if self.ok:
            return self.image_url  # type: ignore[return-value]
        failure = self.failure
        if failure is None:
            raise GenerationError(ErrorKind.UNCLASSIFIED, "no image tier was attempted")
        raise GenerationError(failure.kind or ErrorKind.UNCLASSIFIED, failure.error or "unknown error")


class ImageGenerationService:
    """Facade around the primary and secondary Gemini image models."""

    def __init__(self, config: AppConfig, client_loader: GeminiClientLoader) -> None:
        self.config = config
        self.client_loader = client_loader

    @property
    def tiers(self) -> List[ImageTier]:
        return [
            ImageTier(
                name="primary",
                model=self.config.primary_image_model,
                aspect_ratio=self.config.aspect_ratio,
                image_size=self.config.image_size,
            ),
            ImageTier(
                name="secondary",
                model=self.config.secondary_image_model,
                aspect_ratio=self.config.aspect_ratio,
            ),
        ]

    def build_contents(self, refined_prompt: str, reference_image: Optional[str] = None) -> List[Any]:
        """Inline the reference image (if it parses) ahead of the prompt text."""
        parts: List[Any] = []
        if reference_image:
            split = split_data_uri(reference_image)
            if split is None:
                logger.warning("Ignoring reference image that is not a base64 data-URI")
            else:
                mime_type, _ = split
                try:
                    data = data_uri_to_bytes(reference_image)
                except ValueError as exc:
                    logger.warning("Ignoring reference image with undecodable payload: %s", exc)
                else:
                    parts.append(types.Part.from_bytes(data=data, mime_type=mime_type))
        parts.append(types.Part.from_text(text=refined_prompt))
        return parts

    def _generation_config(self, tier: ImageTier) -> types.GenerateContentConfig:
        image_config_kwargs = {"aspect_ratio": tier.aspect_ratio}
        if tier.image_size:
            image_config_kwargs["image_size"] = tier.image_size
        return types.GenerateContentConfig(
            response_modalities=["IMAGE", "TEXT"],
            image_config=types.ImageConfig(**image_config_kwargs),
        )

    def attempt(self, tier: ImageTier, contents: List[Any]) -> TierResult:
        """Call one tier and report the result without raising."""
        try:
            client = self.client_loader.get_client()
            response = client.models.generate_content(
                model=tier.model,
                contents=contents,
                config=self._generation_config(tier),
            )
            image_url = self._extract_image(response)
        except Exception as exc:  # noqa: BLE001
            message = str(exc) or type(exc).__name__
            kind = classify_error(message)
            logger.warning("%s image tier (%s) failed [%s]: %s", tier.name, tier.model, kind.value, message)
            return TierResult(tier=tier, error=message, kind=kind)

        logger.info("%s image tier (%s) produced an image", tier.name, tier.model)
        return TierResult(tier=tier, image_url=image_url)

    def generate(self, refined_prompt: str, reference_image: Optional[str] = None) -> GenerationOutcome:
        """Try the primary tier, then the secondary tier only if the primary failed."""
        contents = self.build_contents(refined_prompt, reference_image)
        outcome = GenerationOutcome()
        for tier in self.tiers:
            result = self.attempt(tier, contents)
            outcome.attempts.append(result)
            if result.ok:
                break
        return outcome

    def _extract_image(self, response: Any) -> str:
        reasons: List[str] = []
        for candidate in getattr(response, "candidates", None) or []:
            content = getattr(candidate, "content", None)
            for part in getattr(content, "parts", None) or []:
                inline = getattr(part, "inline_data", None)
                if inline is None or not inline.data:
                    continue
                data = inline.data
                mime_type = getattr(inline, "mime_type", None) or "image/png"
                if isinstance(data, str):
                    if mime_type == "image/png":
                        return to_data_uri(data)
                    data = data_uri_to_bytes(to_data_uri(data, mime_type))
                if mime_type != "image/png":
                    data = normalize_png(data)
                return to_data_uri(data)
            finish_reason = getattr(candidate, "finish_reason", None)
            if finish_reason is not None:
                reasons.append(f"finish_reason={getattr(finish_reason, 'name', finish_reason)}")

        feedback = getattr(response, "prompt_feedback", None)
        block_reason = getattr(feedback, "block_reason", None) if feedback is not None else None
        if block_reason is not None:
            reasons.append(f"block_reason={getattr(block_reason, 'name', block_reason)}")
        detail = f" ({', '.join(reasons)})" if reasons else ""
        raise RuntimeError(f"No image returned in response{detail}")
