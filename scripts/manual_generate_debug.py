"""One-off script for debugging a real refine + generate round trip."""

from __future__ import annotations

import argparse

from config.settings import load_config
from modules.design.models import BodyPart, ColorMode, DesignRequest, TattooStyle, ViewMode
from modules.optimization.prompt_refiner import PromptRefiner
from modules.pipelines.design_pipeline import DesignOrchestrator, DesignPipeline
from modules.pipelines.image_generation import ImageGenerationService
from modules.services.credential_service import ApiKeySelector
from modules.services.history_service import GenerationHistoryService
from modules.services.storage_service import StorageService
from modules.utils.client_loader import GeminiClientLoader
from modules.utils.logging import setup_logging


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate one tattoo design against the live API.")
    parser.add_argument("prompt", nargs="?", default="a wolf howling at the moon")
    parser.add_argument("--preview", action="store_true", help="render on skin instead of a flash sheet")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    # 1. Real configuration and services
    config = load_config()
    setup_logging(config)

    loader = GeminiClientLoader(ApiKeySelector(config.gemini_api_key))
    orchestrator = DesignOrchestrator(PromptRefiner(config, client_loader=loader), ImageGenerationService(config, loader))
    storage = StorageService(config.storage_dir, config.output_dir)
    history = GenerationHistoryService(storage, key=config.history_key, max_items=config.history_limit)
    history.load()
    pipeline = DesignPipeline(orchestrator, history)

    # 2. Submit
    request = DesignRequest(
        prompt=args.prompt,
        style=TattooStyle.TRADITIONAL,
        body_part=BodyPart.ARM,
        color=ColorMode.MONOCHROME,
        view_mode=ViewMode.BODY_PREVIEW if args.preview else ViewMode.FLASH_SHEET,
    )
    design = pipeline.submit(request)

    # 3. Report
    print("Refined prompt:", design.refined_prompt)
    if orchestrator.last_outcome is not None:
        for attempt in orchestrator.last_outcome.attempts:
            print(f"- {attempt.tier.name} ({attempt.tier.model}):", "ok" if attempt.ok else attempt.error)
    print("Saved to:", storage.save_image(design))


if __name__ == "__main__":
    main()
