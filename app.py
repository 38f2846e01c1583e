"""Application entry point for Tech Lab Studio."""

from __future__ import annotations

from typing import Optional

from config.settings import load_config, require_api_key
from modules.ui.layout import build_app
from modules.utils.logging import setup_logging


def main(config_path: Optional[str] = None) -> None:
    """Load configuration and launch the Gradio interface."""
    config = load_config(config_path)
    logger = setup_logging(config)
    require_api_key(config)
    logger.info("Starting studio: model=%s brand_style=%s", config.gemini_model, config.brand_style_version)
    app = build_app(config)
    app.queue()
    app.launch(share=False, inbrowser=False)


if __name__ == "__main__":
    main()
