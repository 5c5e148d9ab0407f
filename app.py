"""Application entry point for the Inkspire tattoo design studio."""

from __future__ import annotations

from typing import Optional

from config.settings import load_config
from modules.ui.layout import build_app
from modules.utils.logging import setup_logging


def main(config_path: Optional[str] = None) -> None:
    """Load configuration and launch the Gradio interface."""
    config = load_config(config_path)
    logger = setup_logging(config)
    logger.info(
        "Starting Inkspire (text=%s, image=%s -> %s, history_limit=%s)",
        config.text_model,
        config.primary_image_model,
        config.secondary_image_model,
        config.history_limit,
    )
    app = build_app(config)
    app.queue()
    app.launch(share=False, inbrowser=False)


if __name__ == "__main__":
    main()
