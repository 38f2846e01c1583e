"""Instruction composition for evolution requests."""

from __future__ import annotations

import logging
from typing import Optional

from config.settings import AppConfig
from modules.prompting.brand_styles import (
    DEFAULT_BRAND_VERSION,
    SERVER_BRIEF,
    BrandStyle,
    BrandStyleRegistry,
)

logger = logging.getLogger(__name__)

INTENT_LABEL = "Operator Vision"


class PromptComposer:
    """Prefix operator intent with a fixed brand-style block."""

    def __init__(self, brand_style: BrandStyle = SERVER_BRIEF) -> None:
        self.brand_style = brand_style
        self._block = brand_style.render()

    @property
    def brand_block(self) -> str:
        return self._block

    def compose(self, intent_text: str) -> str:
        """Return the instruction text; intent is inserted verbatim."""
        return f"{self._block}\n\n{INTENT_LABEL}: {intent_text}"


def load_composer(config: AppConfig, registry: Optional[BrandStyleRegistry] = None) -> PromptComposer:
    """Build a composer for the configured brand-style version."""
    registry = registry or BrandStyleRegistry()
    registry.load_from_file(config.brand_styles_path)
    try:
        style = registry.get(config.brand_style_version)
    except KeyError:
        logger.warning(
            "Unknown brand style %r, falling back to %s",
            config.brand_style_version,
            DEFAULT_BRAND_VERSION,
        )
        style = registry.get(DEFAULT_BRAND_VERSION)
    return PromptComposer(style)
