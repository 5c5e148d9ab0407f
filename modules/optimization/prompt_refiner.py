"""Prompt refinement via the Gemini text model."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from google.genai import types

from config.settings import AppConfig
from modules.design.models import (
    BODY_PART_ENGLISH,
    COLOR_ENGLISH,
    COMPLEXITY_ENGLISH,
    DesignRequest,
    ViewMode,
)
from modules.optimization.style_presets import StylePresetRegistry
from modules.utils.client_loader import GeminiClientLoader

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    "You are a world-class tattoo artist. Convert the user's idea into a professional "
    "image generation prompt.\n"
    "- If a reference image is provided, focus on modifying or enhancing it according to the concept.\n"
    "- If no image is provided, create a design from scratch.\n"
    "- Ensure the output is only the prompt text in English."
)

REFERENCE_NOTE = (
    "Reference Note: Based on the uploaded reference image, adapt the design to fit the "
    "user's request while maintaining structural coherence."
)


@dataclass(slots=True)
class RefinementRequest:
    """Information passed to refinement backends."""

    instruction: str
    system_instruction: str
    temperature: float
    original: DesignRequest


BackendCallable = Callable[[RefinementRequest], Optional[str]]


def view_mode_phrase(request: DesignRequest) -> str:
    body_part = BODY_PART_ENGLISH[request.body_part]
    if request.view_mode is ViewMode.BODY_PREVIEW:
        return f"shown as a realistic photograph of the healed tattoo on a person's {body_part}"
    return f"presented as a clean tattoo flash sheet on plain white paper, sized for the {body_part}"


class PromptRefiner:
    """Turn a terse concept into a detailed generation prompt.

    ``refine`` never raises: a missing backend, an exception or an empty
    reply all fall back to ``fallback_prompt``.
    """

    def __init__(
        self,
        config: AppConfig,
        client_loader: Optional[GeminiClientLoader] = None,
        style_registry: Optional[StylePresetRegistry] = None,
    ) -> None:
        self.config = config
        self.styles = style_registry or StylePresetRegistry()
        self._backends: Dict[str, BackendCallable] = {}
        if client_loader is not None:
            self._register_gemini_backend(client_loader)

    def register_backend(self, name: str, backend: BackendCallable) -> None:
        """Register a refinement backend."""
        self._backends[name.lower()] = backend

    def clear_backends(self) -> None:
        """Remove all backends (mainly for tests)."""
        self._backends.clear()

    def has_backend(self, name: str) -> bool:
        return name.lower() in self._backends

    def build_instruction(self, request: DesignRequest) -> str:
        """Describe every form field for the text model."""
        preset = self.styles.get(request.style)
        lines = [
            f"Concept: {request.prompt.strip()}",
            f"Style: {request.style.value} ({preset.keyword}: {preset.description})",
            f"BodyPart: {request.body_part.value} ({BODY_PART_ENGLISH[request.body_part]})",
            f"Complexity: {request.complexity.value} ({COMPLEXITY_ENGLISH[request.complexity]})",
            f"Color: {request.color.value} ({COLOR_ENGLISH[request.color]})",
            f"ViewMode: {request.view_mode.value} ({view_mode_phrase(request)})",
        ]
        if request.reference_image:
            lines.append(REFERENCE_NOTE)
        return "\n".join(lines)

    def fallback_prompt(self, request: DesignRequest) -> str:
        """Templated prompt built only from the request fields."""
        preset = self.styles.get(request.style)
        parts = [
            f"{preset.keyword} style tattoo design of {request.prompt.strip()}",
            preset.description,
            COLOR_ENGLISH[request.color],
            COMPLEXITY_ENGLISH[request.complexity],
            view_mode_phrase(request),
        ]
        return ", ".join(part for part in parts if part)

    def refine(self, request: DesignRequest, backend: str = "gemini") -> str:
        """Return the refined prompt, or the templated fallback on any failure."""
        handler = self._backends.get(backend.lower())
        if handler is None:
            logger.info("No refinement backend '%s'; using templated prompt", backend)
            return self.fallback_prompt(request)

        try:
            refinement = RefinementRequest(
                instruction=self.build_instruction(request),
                system_instruction=SYSTEM_INSTRUCTION,
                temperature=self.config.refine_temperature,
                original=request,
            )
            reply = handler(refinement)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Prompt refinement failed, using templated prompt: %s", exc)
            return self.fallback_prompt(request)

        cleaned = self._clean_backend_text(reply)
        if not cleaned:
            logger.warning("Prompt refinement returned no text, using templated prompt")
            return self.fallback_prompt(request)
        return cleaned

    # Internal helpers ---------------------------------------------------------
    def _clean_backend_text(self, text: Optional[str]) -> str:
        """Strip code fences and a leading 'Prompt:' label from model output."""
        cleaned = (text or "").strip()
        if cleaned.startswith("```"):
            lines = cleaned.splitlines()
            if lines and lines[0].startswith("```"):
                lines = lines[1:]
            if lines and lines[-1].startswith("```"):
                lines = lines[:-1]
            cleaned = "\n".join(lines).strip()
        for label in ("Prompt:", "prompt:", "PROMPT:"):
            if cleaned.startswith(label):
                cleaned = cleaned[len(label):].strip()
                break
        return cleaned

    def _register_gemini_backend(self, loader: GeminiClientLoader) -> None:
        def _gemini_backend(request: RefinementRequest) -> Optional[str]:
            client = loader.get_client()
            response = client.models.generate_content(
                model=self.config.text_model,
                contents=request.instruction,
                config=types.GenerateContentConfig(
                    system_instruction=request.system_instruction,
                    temperature=request.temperature,
                ),
            )
            return response.text

        self.register_backend("gemini", _gemini_backend)
