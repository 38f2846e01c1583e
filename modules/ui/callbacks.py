"""Callback implementations for the Gradio interface."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, List, Optional, Tuple

from config.settings import AppConfig
from modules.pipelines.evolution import EvolutionClient, EvolutionRequest
from modules.services.history_service import (
    EvolutionHistoryService,
    HistoryEntry,
    PipelineStatus,
)
from modules.utils.image_utils import reference_from_pil, reference_to_pil

logger = logging.getLogger(__name__)

GalleryItem = Tuple[Any, str]


def format_caption(entry: HistoryEntry) -> str:
    stamp = datetime.fromtimestamp(entry.result.created_at).strftime("%H:%M")
    return f"Revision {entry.revision} · {stamp}"


def build_callbacks(
    config: AppConfig,
    history: Optional[EvolutionHistoryService] = None,
    client: Optional[EvolutionClient] = None,
) -> dict[str, Any]:
    """Return a dictionary of Gradio callback functions."""

    service = history or EvolutionHistoryService(client or EvolutionClient(config))

    def _gallery() -> List[GalleryItem]:
        items: List[GalleryItem] = []
        for entry in service.history():
            try:
                image = reference_to_pil(entry.result.image_reference)
            except (OSError, ValueError) as exc:
                logger.warning("Skipping unreadable revision %d: %s", entry.revision, exc)
                continue
            items.append((image, format_caption(entry)))
        return items

    def _status_message() -> str:
        state = service.current_state()
        if state.status is PipelineStatus.IN_FLIGHT:
            return "Processing..."
        if state.status is PipelineStatus.FAILED:
            return f"Evolution failed: {state.reason}"
        if state.status is PipelineStatus.SUCCEEDED:
            return f"Evolution complete. {len(service.history())} versions generated."
        return "System idle. Awaiting source photo and evolution instructions."

    def _source_reference(init_image: Any) -> Optional[str]:
        if init_image is None:
            return None
        return reference_from_pil(init_image).to_uri()

    async def on_evolve(init_image: Any, intent_text: str) -> tuple[List[GalleryItem], str]:
        try:
            source_image = _source_reference(init_image)
        except (OSError, ValueError) as exc:
            return _gallery(), f"Evolution failed: could not read source image ({exc})"

        request = EvolutionRequest(intent_text=intent_text or "", source_image=source_image)
        task = service.submit(request)
        if task is None:
            return _gallery(), "Evolution already in progress."
        # shielded: a disconnected caller must not cancel the evolution itself
        await asyncio.shield(task)
        return _gallery(), _status_message()

    def on_refresh() -> tuple[List[GalleryItem], str]:
        return _gallery(), _status_message()

    return {
        "on_evolve": on_evolve,
        "on_refresh": on_refresh,
    }
