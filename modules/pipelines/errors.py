"""Error taxonomy for the image-evolution pipeline."""

from __future__ import annotations


class EvolutionError(Exception):
    """Base class for failures that end an evolution request."""


class ValidationError(EvolutionError):
    """Caller input is empty or malformed; raised before any remote call."""


class ConfigurationError(EvolutionError):
    """The remote service credential is missing or unusable."""


class GenerationError(EvolutionError):
    """The remote call failed or returned no image."""
