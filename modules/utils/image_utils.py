"""Utility helpers for moving images between PIL and tagged references."""

from __future__ import annotations

from io import BytesIO

from PIL import Image

from modules.codec.payload import ImageReference


def reference_from_pil(image: Image.Image, image_format: str = "JPEG") -> ImageReference:
    """Encode an uploaded image as a reference for the evolution request."""
    if image_format.upper() == "JPEG" and image.mode not in ("RGB", "L"):
        image = image.convert("RGB")
    buffer = BytesIO()
    image.save(buffer, format=image_format)
    return ImageReference.from_bytes(buffer.getvalue(), mime_type=f"image/{image_format.lower()}")


def reference_to_pil(reference: ImageReference) -> Image.Image:
    """Open a returned reference for display."""
    image = Image.open(BytesIO(reference.to_bytes()))
    image.load()
    return image
