"""Gradio layout for the Tech Lab evolution studio."""

from __future__ import annotations

from typing import Any

try:
    import gradio as gr
except ImportError:  # pragma: no cover
    gr = None  # type: ignore

from config.settings import AppConfig
from modules.pipelines.evolution import EvolutionClient
from modules.prompting.composer import load_composer
from modules.services.history_service import EvolutionHistoryService
from modules.ui.callbacks import build_callbacks


def build_app(config: AppConfig) -> Any:
    """Compose and return the Gradio application."""
    if gr is None:
        raise RuntimeError("Gradio is not installed; install the project dependencies first.")

    client = EvolutionClient(config, composer=load_composer(config))
    history = EvolutionHistoryService(client)
    callbacks_map = build_callbacks(config, history=history)

    with gr.Blocks(title="Tech Lab Studio") as demo:
        gr.Markdown("## TECH LAB STUDIO\nInternal Ops // Studio v1.0")

        with gr.Row():
            with gr.Column(scale=4):
                source_image = gr.Image(label="01. Source Material", type="pil")
                intent = gr.Textbox(
                    label="02. Design Intent",
                    lines=5,
                    value=config.default_intent,
                    placeholder="Describe the evolution...",
                )
                evolve_btn = gr.Button("Evolve Brand Asset", variant="primary")
                status = gr.Markdown("System idle. Awaiting source photo and evolution instructions.")
                gr.Markdown(
                    "**PRO TIP:** upload a photo of your actual desk or workshop. "
                    "The layout is kept while the vibe is swapped for the Lab aesthetic."
                )

            with gr.Column(scale=8):
                gallery = gr.Gallery(
                    label="03. Output Gallery",
                    columns=1,
                    object_fit="cover",
                )

        evolve_btn.click(
            fn=callbacks_map["on_evolve"],
            inputs=[source_image, intent],
            outputs=[gallery, status],
            concurrency_limit=1,
        )
        demo.load(fn=callbacks_map["on_refresh"], outputs=[gallery, status])

    return demo
