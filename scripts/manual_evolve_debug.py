"""One-off script for running a real evolution against the remote service."""

import asyncio
import sys
from pathlib import Path

from PIL import Image

from config.settings import load_config
from modules.pipelines.evolution import EvolutionClient, EvolutionRequest
from modules.prompting.composer import load_composer
from modules.services.history_service import EvolutionHistoryService, PipelineStatus
from modules.utils.image_utils import reference_from_pil, reference_to_pil
from modules.utils.logging import setup_logging


async def run(source_path: Path | None, intent: str) -> None:
    config = load_config()
    setup_logging(config)
    history = EvolutionHistoryService(EvolutionClient(config, composer=load_composer(config)))

    source_image = None
    if source_path is not None:
        if not source_path.exists():
            raise FileNotFoundError(f"Missing source image: {source_path}")
        source_image = reference_from_pil(Image.open(source_path)).to_uri()

    task = history.submit(EvolutionRequest(intent_text=intent, source_image=source_image))
    if task is not None:
        await task

    state = history.current_state()
    print("State:", state.status.value, state.reason or "")
    entry = history.latest()
    if state.status is PipelineStatus.SUCCEEDED and entry is not None:
        out_path = Path(f"SB_TechLab_OG_{int(entry.result.created_at * 1000)}.png")
        reference_to_pil(entry.result.image_reference).save(out_path)
        print("Saved:", out_path.resolve())


def main() -> None:
    # usage: manual_evolve_debug.py [source.jpg] [intent...]
    source = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    intent = " ".join(sys.argv[2:]) or load_config().default_intent
    asyncio.run(run(source, intent))


if __name__ == "__main__":
    main()
