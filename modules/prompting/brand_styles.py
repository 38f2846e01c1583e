"""Versioned brand-style blocks prepended to every evolution instruction."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Tuple


@dataclass(frozen=True, slots=True)
class BrandColor:
    """A named brand color."""

    name: str
    hex_code: str

    def label(self) -> str:
        return f"{self.name} ({self.hex_code})"


@dataclass(frozen=True, slots=True)
class BrandStyle:
    """Static brand voice injected ahead of the operator intent."""

    version: str
    persona: str
    brand: str
    colors: Tuple[BrandColor, BrandColor]
    lighting: str
    atmosphere: str
    execution: Tuple[str, ...] = field(default_factory=tuple)

    def render(self) -> str:
        """Return the instruction block text."""
        primary, secondary = self.colors
        lines = [
            self.persona,
            "",
            "Brand:",
            self.brand,
            "",
            "Visual Language:",
            f"- Primary Colors: {primary.label()} and {secondary.label()}",
            f"- Lighting: {self.lighting}",
            f"- Atmosphere: {self.atmosphere}",
            "",
            "Execution:",
        ]
        lines.extend(f"- {rule}" for rule in self.execution)
        return "\n".join(lines).strip()


MIDNIGHT_BLACK = BrandColor(name="Midnight Black", hex_code="#020617")
INTERNATIONAL_ORANGE = BrandColor(name="International Orange", hex_code="#f97316")

STUDIO_BRIEF = BrandStyle(
    version="v1",
    persona=(
        "You are the Visual Infrastructure Lead for Square Bidness Tech Lab. "
        "You are an operator with a veteran-led mindset. Your goal is to transform "
        "reference photos into high-performance 1200x630 (16:9) Open Graph assets."
    ),
    brand=(
        "SB Tech Lab is a commerce and AI infrastructure company. "
        "We are quiet, disciplined, and rooted in Louisiana."
    ),
    colors=(MIDNIGHT_BLACK, INTERNATIONAL_ORANGE),
    lighting="Cinematic, low-key, professional workspace vibes.",
    atmosphere=(
        "High-end engineering. Think Mac Studio, 5K displays, clean cables, "
        "and the glow of an execution engine at work."
    ),
    execution=(
        'Use the uploaded photo as the "blueprint."',
        'Replace generic elements with "Tech Lab" infrastructure.',
        "Ensure any branding (SB or Tech Lab) feels quietly installed, not loudly advertised.",
        "Deliver sharp, production-ready depth of field.",
    ),
)

SERVER_BRIEF = BrandStyle(
    version="v2",
    persona=(
        "You are the Visual Infrastructure Lead for Square Bidness Tech Lab. "
        "Veteran-led mindset. Transform reference photos into high-performance Open Graph assets."
    ),
    brand="SB Tech Lab — commerce and AI infrastructure. Quiet, disciplined, Louisiana-rooted.",
    colors=(MIDNIGHT_BLACK, INTERNATIONAL_ORANGE),
    lighting="Cinematic low-key lighting, professional engineering workspace.",
    atmosphere='"Quietly installed" branding, never loud.',
    execution=(
        "Use uploaded photo as blueprint",
        "Replace generic elements with Tech Lab infrastructure",
        "Sharp depth of field, production-ready",
    ),
)

DEFAULT_BRAND_VERSION = SERVER_BRIEF.version


class BrandStyleRegistry:
    """In-memory registry of brand-style versions."""

    def __init__(self, include_builtin: bool = True) -> None:
        self._styles: Dict[str, BrandStyle] = {}
        if include_builtin:
            self.add(STUDIO_BRIEF)
            self.add(SERVER_BRIEF)

    def load_from_file(self, path: Path) -> None:
        """Load brand styles from a JSON list; missing files are ignored."""
        if not path.exists():
            return
        with path.open("r", encoding="utf-8") as fp:
            data = json.load(fp)
        for entry in data:
            primary, secondary = entry["colors"][:2]
            style = BrandStyle(
                version=entry["version"],
                persona=entry["persona"],
                brand=entry.get("brand", ""),
                colors=(
                    BrandColor(name=primary["name"], hex_code=primary["hex"]),
                    BrandColor(name=secondary["name"], hex_code=secondary["hex"]),
                ),
                lighting=entry.get("lighting", ""),
                atmosphere=entry.get("atmosphere", ""),
                execution=tuple(entry.get("execution", [])),
            )
            self.add(style)

    def add(self, style: BrandStyle) -> None:
        """Register a brand style, replacing any with the same version."""
        self._styles[style.version] = style

    def versions(self) -> List[str]:
        return sorted(self._styles)

    def get(self, version: str) -> BrandStyle:
        """Retrieve a brand style by version."""
        try:
            return self._styles[version]
        except KeyError as exc:
            raise KeyError(f"Brand style '{version}' not found") from exc
