"""Conversion between tagged image references and (MIME type, body) pairs."""

from __future__ import annotations

import base64
import re
from dataclasses import dataclass

DEFAULT_MIME_TYPE = "image/jpeg"
RESULT_MIME_TYPE = "image/png"

_TAGGED_PATTERN = re.compile(r"data:(.+?);base64,(.+)", re.DOTALL)


@dataclass(frozen=True, slots=True)
class ImageReference:
    """An image as a MIME type plus a base64 body."""

    mime_type: str
    body: str

    def to_uri(self) -> str:
        """Return the tagged ``data:`` form."""
        return encode(self.mime_type, self.body)

    def to_bytes(self) -> bytes:
        """Decode the body, raising ``binascii.Error`` when it is not base64.

        Line breaks from MIME-style wrapping are ignored.
        """
        return base64.b64decode("".join(self.body.split()), validate=True)

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str = RESULT_MIME_TYPE) -> "ImageReference":
        return cls(mime_type=mime_type, body=base64.b64encode(data).decode("ascii"))


def decode(reference: str) -> ImageReference:
    """Split a reference into MIME type and body.

    Tagged input keeps its explicit MIME type. Anything else, including a
    ``data:`` prefix without a ``;base64,`` separator or with an empty body,
    is taken whole as a bare body with the JPEG default.
    """
    match = _TAGGED_PATTERN.fullmatch(reference)
    if match is None:
        return ImageReference(mime_type=DEFAULT_MIME_TYPE, body=reference)
    return ImageReference(mime_type=match.group(1), body=match.group(2))


def encode(mime_type: str, body: str) -> str:
    """Build the tagged ``data:<mime>;base64,<body>`` form."""
    return f"data:{mime_type};base64,{body}"
