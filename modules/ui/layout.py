"""Gradio layout composition for the tattoo design studio."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Sequence

import gradio as gr

from config.settings import AppConfig
from modules.design.models import BodyPart, ColorMode, Complexity, DesignRequest, TattooStyle, ViewMode
from modules.optimization.prompt_refiner import PromptRefiner
from modules.optimization.style_presets import StylePresetRegistry
from modules.pipelines.design_pipeline import DesignOrchestrator, DesignPipeline
from modules.pipelines.image_generation import ImageGenerationService
from modules.services.credential_service import ApiKeySelector
from modules.services.history_service import GenerationHistoryService
from modules.services.storage_service import StorageService
from modules.ui.callbacks import (
    KEY_LOADED_PLACEHOLDER,
    KEY_MISSING_PLACEHOLDER,
    READY_MESSAGE,
    build_callbacks,
)
from modules.utils.client_loader import GeminiClientLoader


def _load_style_registry(config: AppConfig) -> StylePresetRegistry:
    registry = StylePresetRegistry()
    styles_path = Path(config.metadata.get("styles_file") or Path(config.assets_dir) / "styles.json")
    registry.load_from_file(styles_path)
    return registry


def _choices(enum_type) -> Sequence[str]:
    return [member.value for member in enum_type]


def build_app(config: AppConfig) -> Any:
    """Compose and return the Gradio application."""
    credentials = ApiKeySelector(config.gemini_api_key)
    client_loader = GeminiClientLoader(credentials)
    refiner = PromptRefiner(config, client_loader=client_loader, style_registry=_load_style_registry(config))
    generator = ImageGenerationService(config, client_loader)

    storage = StorageService(config.storage_dir, config.output_dir)
    history = GenerationHistoryService(storage, key=config.history_key, max_items=config.history_limit)
    history.load()

    pipeline = DesignPipeline(DesignOrchestrator(refiner, generator), history)
    callbacks_map = build_callbacks(
        config,
        pipeline=pipeline,
        history=history,
        storage=storage,
        credentials=credentials,
    )

    defaults = DesignRequest(prompt="")

    with gr.Blocks(title="Inkspire AI Tattoo Studio") as demo:
        gr.Markdown("## Inkspire AI 刺青設計工作室")

        with gr.Row():
            api_key = gr.Textbox(
                label="Gemini API Key",
                type="password",
                placeholder=KEY_LOADED_PLACEHOLDER if callbacks_map["has_api_key"]() else KEY_MISSING_PLACEHOLDER,
                scale=4,
            )
            api_key_btn = gr.Button("設定 API Key", scale=1)

        with gr.Row():
            with gr.Column(scale=5):
                reference_image = gr.Image(label="參考圖 Reference（選擇性）", type="pil")
                view_mode = gr.Radio(
                    label="呈現方式 View Mode",
                    choices=_choices(ViewMode),
                    value=defaults.view_mode.value,
                )
                with gr.Row():
                    prompt = gr.Textbox(
                        label="設計構想 Concept",
                        lines=3,
                        placeholder="例如：在參考圖的手臂上加入一朵盛開的藍色玫瑰...",
                        scale=4,
                    )
                    random_btn = gr.Button("隨機靈感", scale=1)
                style = gr.Dropdown(label="藝術風格 Style", choices=_choices(TattooStyle), value=defaults.style.value)
                body_part = gr.Dropdown(
                    label="身體部位 Body Part",
                    choices=_choices(BodyPart),
                    value=defaults.body_part.value,
                )
                with gr.Row():
                    complexity = gr.Radio(
                        label="複雜度 Complexity",
                        choices=_choices(Complexity),
                        value=defaults.complexity.value,
                    )
                    color = gr.Radio(label="色彩 Color", choices=_choices(ColorMode), value=defaults.color.value)
                generate_btn = gr.Button("生成 AI 刺青設計", variant="primary")

            with gr.Column(scale=7):
                output_image = gr.Image(label="生成結果", type="pil", interactive=False)
                refined_prompt = gr.Textbox(label="AI 優化後提示詞", lines=3, interactive=False)
                download = gr.File(label="下載設計圖", interactive=False)
                status = gr.Markdown(READY_MESSAGE)
                gallery = gr.Gallery(
                    label="最近的設計",
                    value=callbacks_map["history_gallery"](),
                    columns=5,
                    height="auto",
                    allow_preview=False,
                )
                clear_btn = gr.Button("清除歷史紀錄", size="sm")

        api_key_btn.click(fn=callbacks_map["on_set_api_key"], inputs=[api_key], outputs=[status])
        random_btn.click(fn=callbacks_map["on_random_prompt"], inputs=[], outputs=[prompt])

        generate_btn.click(
            fn=callbacks_map["on_generate"],
            inputs=[prompt, style, body_part, complexity, color, view_mode, reference_image],
            outputs=[output_image, refined_prompt, download, gallery, status, api_key],
            concurrency_limit=1,
        )

        def _on_gallery_select(evt: gr.SelectData):
            return callbacks_map["on_select_history"](evt.index)

        gallery.select(
            fn=_on_gallery_select,
            inputs=None,
            outputs=[
                prompt,
                style,
                body_part,
                complexity,
                color,
                view_mode,
                reference_image,
                output_image,
                refined_prompt,
                download,
                status,
            ],
        )
        clear_btn.click(fn=callbacks_map["on_clear_history"], inputs=[], outputs=[gallery, status])

    return demo
