"""Callback implementations for the Gradio interface."""

from __future__ import annotations

import logging
import random
from typing import Any, Dict, List, Optional, Tuple

import gradio as gr
from PIL import Image

from config.settings import AppConfig
from modules.design.errors import EmptyPromptError, ErrorKind, GenerationError
from modules.design.models import BodyPart, ColorMode, Complexity, DesignRequest, TattooStyle, ViewMode
from modules.optimization.style_presets import random_concept
from modules.pipelines.design_pipeline import DesignPipeline
from modules.services.credential_service import ApiKeySelector
from modules.services.history_service import GenerationHistoryService
from modules.services.storage_service import StorageService
from modules.utils.image_utils import data_uri_to_image, generate_thumbnail, image_to_data_uri

logger = logging.getLogger(__name__)

ERROR_MESSAGES: Dict[ErrorKind, str] = {
    ErrorKind.QUOTA_EXCEEDED: "⚠️ 已達到 API 使用額度上限，請稍後再試。",
    ErrorKind.CONTENT_FILTERED: "⚠️ 內容可能違反安全規範而被過濾，請調整設計構想的描述後再試。",
    ErrorKind.PERMISSION_DENIED: "⚠️ API Key 權限不足或無效，請重新設定 API Key。",
    ErrorKind.KEY_RESET_REQUIRED: "⚠️ API Key 設定有誤。請重新設定 API Key 後再試。",
}

READY_MESSAGE = "準備就緒。"
KEY_REQUIRED_MESSAGE = "請先設定 API Key 才能生成設計。"
EMPTY_PROMPT_MESSAGE = "請輸入設計構想。"

KEY_LOADED_PLACEHOLDER = "已從環境變數載入"
KEY_MISSING_PLACEHOLDER = "請輸入具有計費權限的 API Key"

THUMBNAIL_SIZE = (256, 256)

GalleryItems = List[Tuple[Any, str]]


def placeholder_thumbnail() -> Image.Image:
    """Grey tile shown for history entries whose image cannot be decoded."""
    return Image.new("RGB", THUMBNAIL_SIZE, (200, 200, 200))


def describe_error(error: GenerationError) -> str:
    """User-facing message for a classified generation failure."""
    template = ERROR_MESSAGES.get(error.kind)
    if template is None:
        return f"系統錯誤: {error.message or '未知錯誤'}"
    return template


def build_callbacks(
    config: AppConfig,
    pipeline: Optional[DesignPipeline] = None,
    history: Optional[GenerationHistoryService] = None,
    storage: Optional[StorageService] = None,
    credentials: Optional[ApiKeySelector] = None,
    rng: Optional[random.Random] = None,
) -> dict[str, Any]:
    """Return a dictionary of Gradio callback functions."""

    selector = credentials or ApiKeySelector(config.gemini_api_key)

    def _ensure_pipeline() -> DesignPipeline:
        if pipeline is None:
            raise RuntimeError("設計生成服務未配置")
        return pipeline

    def _history_entries():
        if history is None:
            return []
        return history.entries()

    def _gallery() -> GalleryItems:
        # One tile per history entry so gallery indexes match history.entries().
        items: GalleryItems = []
        for design in _history_entries():
            try:
                thumb = generate_thumbnail(design.image_url, THUMBNAIL_SIZE)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Using placeholder thumbnail for %s: %s", design.id, exc)
                thumb = placeholder_thumbnail()
            items.append((thumb, design.original_request.prompt))
        return items

    def _failed(message: str, key_box: Any = None) -> tuple[Any, ...]:
        # Leave the current design on screen.
        return gr.update(), gr.update(), gr.update(), _gallery(), message, key_box or gr.update()

    def _save(design) -> Optional[str]:
        if storage is None:
            return None
        try:
            return str(storage.save_image(design))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Could not save design %s: %s", design.id, exc)
            return None

    def _to_image(uri: Optional[str]) -> Optional[Any]:
        if not uri:
            return None
        try:
            return data_uri_to_image(uri)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Could not decode image: %s", exc)
            return None

    def has_api_key() -> bool:
        return selector.has_selected_api_key()

    def on_set_api_key(key: str) -> str:
        if selector.open_select_key(key):
            return "API Key 已設定，可以開始生成。"
        return KEY_REQUIRED_MESSAGE

    def on_random_prompt() -> str:
        return random_concept(rng)

    def on_generate(
        prompt: str,
        style: str,
        body_part: str,
        complexity: str,
        color: str,
        view_mode: str,
        reference_image: Any,
    ) -> tuple[Any, ...]:
        """Returns (image, refined prompt, download, gallery, status, key box)."""
        if not (prompt or "").strip():
            return _failed(EMPTY_PROMPT_MESSAGE)
        if not selector.has_selected_api_key():
            return _failed(KEY_REQUIRED_MESSAGE, gr.update(placeholder=KEY_MISSING_PLACEHOLDER))

        service = _ensure_pipeline()
        reference_uri = None
        if reference_image is not None:
            reference_uri = (
                reference_image if isinstance(reference_image, str) else image_to_data_uri(reference_image)
            )

        request = DesignRequest(
            prompt=prompt,
            style=TattooStyle(style),
            body_part=BodyPart(body_part),
            complexity=Complexity(complexity),
            color=ColorMode(color),
            view_mode=ViewMode(view_mode),
            reference_image=reference_uri,
        )
        try:
            design = service.submit(request)
        except EmptyPromptError:
            return _failed(EMPTY_PROMPT_MESSAGE)
        except GenerationError as exc:
            if exc.requires_key_reset:
                selector.reset()
                return _failed(describe_error(exc), gr.update(value="", placeholder=KEY_MISSING_PLACEHOLDER))
            return _failed(describe_error(exc))

        return (
            _to_image(design.image_url),
            design.refined_prompt,
            _save(design),
            _gallery(),
            "生成成功",
            gr.update(),
        )

    def on_select_history(index: int) -> tuple[Any, ...]:
        """Restore the form values and displayed image of a history entry."""
        entries = _history_entries()
        if index is None or not 0 <= index < len(entries):
            return (None,) * 10 + ("找不到此歷史紀錄。",)
        design = history.select(entries[index].id)  # type: ignore[union-attr]
        request = design.original_request
        return (
            request.prompt,
            request.style.value,
            request.body_part.value,
            request.complexity.value,
            request.color.value,
            request.view_mode.value,
            _to_image(request.reference_image),
            _to_image(design.image_url),
            design.refined_prompt,
            _save(design),
            "已載入歷史設計",
        )

    def on_clear_history() -> tuple[GalleryItems, str]:
        if history is not None:
            history.clear()
        return [], "已清除歷史紀錄。"

    return {
        "has_api_key": has_api_key,
        "on_set_api_key": on_set_api_key,
        "on_random_prompt": on_random_prompt,
        "on_generate": on_generate,
        "on_select_history": on_select_history,
        "on_clear_history": on_clear_history,
        "history_gallery": _gallery,
    }
