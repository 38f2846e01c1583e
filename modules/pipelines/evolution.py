"""Image evolution against the remote Gemini image model."""

from __future__ import annotations

import base64
import binascii
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from config.settings import AppConfig, require_api_key
from modules.codec.payload import RESULT_MIME_TYPE, ImageReference, decode
from modules.pipelines.errors import EvolutionError, GenerationError, ValidationError
from modules.prompting.composer import PromptComposer

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EvolutionRequest:
    """Operator input for one evolution."""

    intent_text: str
    source_image: Optional[str] = None


@dataclass(frozen=True, slots=True)
class EvolutionResult:
    """A generated image and the intent that produced it."""

    image_reference: ImageReference
    prompt_used: str
    created_at: float


@dataclass(frozen=True, slots=True)
class TextSegment:
    text: str


@dataclass(frozen=True, slots=True)
class ImageSegment:
    mime_type: str
    body: str

    def to_bytes(self) -> bytes:
        return ImageReference(self.mime_type, self.body).to_bytes()


Segment = Union[TextSegment, ImageSegment]


def read_segment(part: Any) -> Optional[Segment]:
    """Classify one response part; parts carrying neither text nor image give None."""
    inline_data = getattr(part, "inline_data", None)
    data = getattr(inline_data, "data", None) if inline_data is not None else None
    if data:
        if isinstance(data, (bytes, bytearray)):
            body = base64.b64encode(bytes(data)).decode("ascii")
        else:
            body = str(data)
        mime_type = getattr(inline_data, "mime_type", None) or RESULT_MIME_TYPE
        return ImageSegment(mime_type=mime_type, body=body)

    text = getattr(part, "text", None)
    if text:
        return TextSegment(text=text)
    return None


def first_candidate_segments(response: Any) -> List[Segment]:
    """Return the segments of the first candidate in response order."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        raise GenerationError("No image returned: the service produced no candidates.")

    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    segments: List[Segment] = []
    for part in parts:
        segment = read_segment(part)
        if segment is not None:
            segments.append(segment)
    return segments


def first_image(segments: Sequence[Segment]) -> Optional[ImageSegment]:
    for segment in segments:
        if isinstance(segment, ImageSegment):
            return segment
    return None


class EvolutionClient:
    """Build, submit and unpack a single evolution call."""

    def __init__(
        self,
        config: AppConfig,
        composer: Optional[PromptComposer] = None,
        client: Optional[Any] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config
        self.composer = composer or PromptComposer()
        self._client = client
        self._clock = clock

    def _ensure_client(self) -> Any:
        if self._client is not None:
            return self._client
        api_key = require_api_key(self.config)
        self._client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=self.config.request_timeout_ms),
        )
        return self._client

    def _generation_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            candidate_count=1,
            response_modalities=["TEXT", "IMAGE"],
            image_config=types.ImageConfig(aspect_ratio=self.config.aspect_ratio),
        )

    def build_segments(self, request: EvolutionRequest) -> List[Segment]:
        """Return the instruction segment, followed by the reference image if any."""
        if not request.intent_text or not request.intent_text.strip():
            raise ValidationError("Missing prompt")

        segments: List[Segment] = [TextSegment(text=self.composer.compose(request.intent_text))]
        if request.source_image:
            reference = decode(request.source_image)
            segment = ImageSegment(mime_type=reference.mime_type, body=reference.body)
            try:
                segment.to_bytes()
            except (binascii.Error, ValueError) as exc:
                raise ValidationError("Source image is not valid base64 image data") from exc
            segments.append(segment)
        return segments

    @staticmethod
    def _to_part(segment: Segment) -> types.Part:
        if isinstance(segment, TextSegment):
            return types.Part.from_text(text=segment.text)
        return types.Part.from_bytes(data=segment.to_bytes(), mime_type=segment.mime_type)

    async def evolve(self, request: EvolutionRequest) -> EvolutionResult:
        """Generate one brand-styled image for the request."""
        segments = self.build_segments(request)
        client = self._ensure_client()

        contents = [types.Content(role="user", parts=[self._to_part(s) for s in segments])]
        logger.info(
            "Submitting evolution: model=%s aspect_ratio=%s reference_image=%s",
            self.config.gemini_model,
            self.config.aspect_ratio,
            len(segments) > 1,
        )
        try:
            response = await client.aio.models.generate_content(
                model=self.config.gemini_model,
                contents=contents,
                config=self._generation_config(),
            )
        except genai_errors.APIError as exc:
            logger.warning("Remote generation rejected (code=%s): %s", exc.code, exc)
            raise GenerationError(f"Remote generation failed: {exc}") from exc
        except Exception as exc:  # noqa: BLE001
            logger.warning("Remote generation call failed: %s", exc)
            raise GenerationError(f"Remote generation failed: {str(exc) or type(exc).__name__}") from exc

        image = first_image(first_candidate_segments(response))
        if image is None:
            raise GenerationError("No image returned.")

        return EvolutionResult(
            image_reference=ImageReference(mime_type=RESULT_MIME_TYPE, body=image.body),
            prompt_used=request.intent_text,
            created_at=self._clock(),
        )


async def evolve_payload(client: EvolutionClient, payload: Mapping[str, Any]) -> Dict[str, str]:
    """Serve one ``{intentText, sourceImage?}`` request as a plain dict response."""
    intent_text = payload.get("intentText")
    source_image = payload.get("sourceImage")
    try:
        if not isinstance(intent_text, str):
            raise ValidationError("Missing prompt")
        if source_image is not None and not isinstance(source_image, str):
            raise ValidationError("sourceImage must be a string")
        result = await client.evolve(EvolutionRequest(intent_text=intent_text, source_image=source_image))
    except EvolutionError as exc:
        return {"errorMessage": str(exc) or "Evolution failed."}
    return {"imageReference": result.image_reference.to_uri()}
