"""EvolutionClient unit tests."""

from __future__ import annotations

import asyncio
import base64
from types import SimpleNamespace
from typing import Any, Optional

import pytest
from google.genai import types

from config.settings import AppConfig
from modules.pipelines import evolution
from modules.pipelines.errors import ConfigurationError, GenerationError, ValidationError
from modules.pipelines.evolution import (
    EvolutionClient,
    EvolutionRequest,
    ImageSegment,
    TextSegment,
    evolve_payload,
)
from modules.prompting.composer import PromptComposer

SOURCE_BYTES = b"\xff\xd8\xffjpeg-source"
SOURCE_BODY = base64.b64encode(SOURCE_BYTES).decode("ascii")


def text_part(text: str) -> SimpleNamespace:
    return SimpleNamespace(text=text, inline_data=None)


def image_part(data: Any, mime_type: str = "image/png") -> SimpleNamespace:
    return SimpleNamespace(text=None, inline_data=SimpleNamespace(data=data, mime_type=mime_type))


def response_with(*parts: SimpleNamespace) -> SimpleNamespace:
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=list(parts)))])


class DummyModels:
    """Stand-in for ``client.aio.models`` that records calls."""

    def __init__(self, response: Any = None, error: Optional[Exception] = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


class DummyGenaiClient:
    def __init__(self, models: DummyModels) -> None:
        self.models = models
        self.aio = SimpleNamespace(models=models)


def build_client(models: DummyModels, **config_kwargs) -> EvolutionClient:
    config = AppConfig(gemini_api_key="test-key", **config_kwargs)
    return EvolutionClient(config, client=DummyGenaiClient(models), clock=lambda: 1700000000.0)


@pytest.mark.parametrize("intent", ["", "   ", "\n\t"])
def test_empty_intent_fails_without_network(intent):
    models = DummyModels(response=response_with(image_part(b"png")))
    client = build_client(models)

    with pytest.raises(ValidationError):
        asyncio.run(client.evolve(EvolutionRequest(intent_text=intent)))

    assert models.calls == []


def test_invalid_source_image_fails_without_network():
    models = DummyModels(response=response_with(image_part(b"png")))
    client = build_client(models)

    request = EvolutionRequest(intent_text="desk", source_image="data:image/png;base64,")
    with pytest.raises(ValidationError):
        asyncio.run(client.evolve(request))

    assert models.calls == []


def test_missing_api_key_is_configuration_error(monkeypatch):
    def fail_client(**kwargs):
        raise AssertionError("client must not be created without a key")

    monkeypatch.setattr(evolution.genai, "Client", fail_client)
    client = EvolutionClient(AppConfig(gemini_api_key=None))

    with pytest.raises(ConfigurationError):
        asyncio.run(client.evolve(EvolutionRequest(intent_text="desk")))


def test_builds_text_then_image_segments():
    client = build_client(DummyModels())

    segments = client.build_segments(
        EvolutionRequest(intent_text="orange glow", source_image=f"data:image/webp;base64,{SOURCE_BODY}")
    )

    assert isinstance(segments[0], TextSegment)
    assert segments[0].text.endswith("Operator Vision: orange glow")
    assert segments[1] == ImageSegment(mime_type="image/webp", body=SOURCE_BODY)


def test_bare_source_image_defaults_to_jpeg():
    client = build_client(DummyModels())

    segments = client.build_segments(EvolutionRequest(intent_text="desk", source_image=SOURCE_BODY))

    assert segments[1] == ImageSegment(mime_type="image/jpeg", body=SOURCE_BODY)


def test_evolve_sends_single_request_with_aspect_ratio():
    models = DummyModels(response=response_with(image_part(b"result-png")))
    composer = PromptComposer()
    client = EvolutionClient(
        AppConfig(gemini_api_key="test-key", gemini_model="image-model-x"),
        composer=composer,
        client=DummyGenaiClient(models),
    )

    asyncio.run(client.evolve(EvolutionRequest(intent_text="desk", source_image=SOURCE_BODY)))

    assert len(models.calls) == 1
    call = models.calls[0]
    assert call["model"] == "image-model-x"
    config = call["config"]
    assert isinstance(config, types.GenerateContentConfig)
    assert config.image_config.aspect_ratio == "16:9"
    assert config.candidate_count == 1
    parts = call["contents"][0].parts
    assert parts[0].text == composer.compose("desk")
    assert parts[1].inline_data.data == SOURCE_BYTES
    assert parts[1].inline_data.mime_type == "image/jpeg"


def test_evolve_without_source_sends_text_only():
    models = DummyModels(response=response_with(image_part(b"result-png")))
    client = build_client(models)

    asyncio.run(client.evolve(EvolutionRequest(intent_text="desk")))

    assert len(models.calls[0]["contents"][0].parts) == 1


def test_first_image_segment_wins():
    models = DummyModels(
        response=response_with(
            text_part("Here is your asset"),
            image_part(b"image-A", mime_type="image/jpeg"),
            image_part(b"image-B"),
        )
    )
    client = build_client(models)

    result = asyncio.run(client.evolve(EvolutionRequest(intent_text="sunset desk shot")))

    assert result.image_reference.to_bytes() == b"image-A"
    assert result.image_reference.mime_type == "image/png"
    assert result.prompt_used == "sunset desk shot"
    assert result.created_at == 1700000000.0


def test_string_inline_data_is_used_as_body():
    body = base64.b64encode(b"already-encoded").decode("ascii")
    client = build_client(DummyModels(response=response_with(image_part(body))))

    result = asyncio.run(client.evolve(EvolutionRequest(intent_text="desk")))

    assert result.image_reference.body == body


def test_prompt_used_is_caller_intent_not_instruction():
    client = build_client(DummyModels(response=response_with(image_part(b"png"))))

    result = asyncio.run(client.evolve(EvolutionRequest(intent_text="  keep spacing ")))

    assert result.prompt_used == "  keep spacing "


@pytest.mark.parametrize(
    "response",
    [
        SimpleNamespace(candidates=[]),
        SimpleNamespace(candidates=None),
        response_with(text_part("I cannot render that.")),
        SimpleNamespace(candidates=[SimpleNamespace(content=None)]),
    ],
)
def test_missing_image_is_generation_error(response):
    client = build_client(DummyModels(response=response))

    with pytest.raises(GenerationError, match="No image returned"):
        asyncio.run(client.evolve(EvolutionRequest(intent_text="desk")))


def test_remote_failure_is_generation_error():
    client = build_client(DummyModels(error=ConnectionError("connection reset")))

    with pytest.raises(GenerationError, match="connection reset"):
        asyncio.run(client.evolve(EvolutionRequest(intent_text="desk")))


def test_evolve_payload_success():
    client = build_client(DummyModels(response=response_with(image_part(b"png"))))

    payload = asyncio.run(evolve_payload(client, {"intentText": "desk", "sourceImage": SOURCE_BODY}))

    expected = "data:image/png;base64," + base64.b64encode(b"png").decode("ascii")
    assert payload == {"imageReference": expected}


@pytest.mark.parametrize(
    "body, message",
    [
        ({}, "Missing prompt"),
        ({"intentText": 42}, "Missing prompt"),
        ({"intentText": ""}, "Missing prompt"),
        ({"intentText": "desk", "sourceImage": 7}, "sourceImage must be a string"),
    ],
)
def test_evolve_payload_validation(body, message):
    models = DummyModels(response=response_with(image_part(b"png")))
    client = build_client(models)

    payload = asyncio.run(evolve_payload(client, body))

    assert payload == {"errorMessage": message}
    assert models.calls == []


def test_evolve_payload_generation_failure():
    client = build_client(DummyModels(response=SimpleNamespace(candidates=[])))

    payload = asyncio.run(evolve_payload(client, {"intentText": "desk"}))

    assert "No image returned" in payload["errorMessage"]


def test_line_wrapped_source_image_is_accepted():
    models = DummyModels(response=response_with(image_part(b"png")))
    client = build_client(models)
    wrapped = base64.encodebytes(SOURCE_BYTES * 20).decode("ascii")

    asyncio.run(client.evolve(EvolutionRequest(intent_text="desk", source_image=wrapped)))

    assert models.calls[0]["contents"][0].parts[1].inline_data.data == SOURCE_BYTES * 20
