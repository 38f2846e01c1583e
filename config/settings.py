"""Configuration helpers for the Tech Lab Studio project."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from modules.pipelines.errors import ConfigurationError
from modules.prompting.brand_styles import DEFAULT_BRAND_VERSION

DEFAULT_INTENT = (
    "Cinematic tech lab workspace, moody Louisiana sunset light through a window, "
    "professional engineering desk, SB logo on the main 5K display."
)


@dataclass(slots=True)
class AppConfig:
    """Centralized application configuration."""

    assets_dir: Path = Path("assets")
    log_dir: Path = Path("logs")
    log_level: str = "INFO"
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash-image"
    aspect_ratio: str = "16:9"
    request_timeout_ms: int = 300_000
    brand_style_version: str = DEFAULT_BRAND_VERSION
    default_intent: str = DEFAULT_INTENT
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def brand_styles_path(self) -> Path:
        return Path(self.assets_dir) / "brand_styles.json"


def _load_env_file(path: Path) -> None:
    """Populate environment variables from a simple KEY=VALUE .env file."""
    if not path.exists():
        return

    for line in path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ[key.strip()] = value.strip().strip('"').strip("'")


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Return an AppConfig instance with environment-aware settings."""
    env_path = Path(config_path) if config_path else Path(".env")
    _load_env_file(env_path)

    api_key = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
    defaults = AppConfig()

    metadata: dict[str, Any] = {}
    if os.getenv("GEMINI_API_KEY"):
        metadata["api_key_source"] = "GEMINI_API_KEY"
    elif api_key:
        metadata["api_key_source"] = "API_KEY"

    return AppConfig(
        assets_dir=Path(os.getenv("ASSETS_DIR", str(defaults.assets_dir))).expanduser(),
        log_dir=Path(os.getenv("LOG_DIR", str(defaults.log_dir))).expanduser(),
        log_level=(os.getenv("LOG_LEVEL") or defaults.log_level).upper(),
        gemini_api_key=api_key or None,
        gemini_model=os.getenv("GEMINI_MODEL") or defaults.gemini_model,
        request_timeout_ms=_int_env("GEMINI_TIMEOUT_MS", defaults.request_timeout_ms),
        brand_style_version=os.getenv("BRAND_STYLE_VERSION") or defaults.brand_style_version,
        metadata=metadata,
    )


def require_api_key(config: AppConfig) -> str:
    """Return the remote service credential or fail with ConfigurationError."""
    key = (config.gemini_api_key or "").strip()
    if not key:
        raise ConfigurationError("Missing GEMINI_API_KEY")
    return key
