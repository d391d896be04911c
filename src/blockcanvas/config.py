"""Canvas metrics, provider configuration and logging setup.

Geometry constants mirror the block canvas UI and are fixed so that layouts
are reproducible. Only process-level settings read the environment.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Final

# --- Node metrics ---
DEFAULT_NODE_WIDTH: Final[float] = 300.0
DEFAULT_NODE_HEIGHT: Final[float] = 150.0
IMAGE_NODE_HEIGHT: Final[float] = 200.0
COLLAPSED_WIDTH: Final[float] = 220.0
COLLAPSED_MIN_HEIGHT: Final[float] = 70.0
COLLAPSED_HEIGHT_BASE: Final[float] = 45.0
PORT_SPACING: Final[float] = 28.0
COLLAPSED_PORT_TOP: Final[float] = 35.0
EXPANDED_PORT_TOP: Final[float] = 50.0 + PORT_SPACING

# --- Layout ---
LAYOUT_H_GAP: Final[float] = 80.0
LAYOUT_V_GAP: Final[float] = 50.0
LAYOUT_ORIGIN_X: Final[float] = 100.0
LAYOUT_ORIGIN_Y: Final[float] = 100.0
MIN_COLUMN_WIDTH: Final[float] = 300.0

# --- Deletion ---
IDEAL_GAP: Final[float] = 400.0
GAP_SLACK: Final[float] = 50.0

# --- Viewport ---
MIN_SCALE: Final[float] = 0.1
MAX_SCALE: Final[float] = 5.0
ZOOM_STEP: Final[float] = 1.2
WHEEL_SENSITIVITY: Final[float] = 0.001

# --- Generation ---
DEFAULT_MODEL: Final[str] = "gemini-2.0-flash"
IMAGE_PLACEHOLDER: Final[str] = "(image data)"

# --- Persistence ---
CANVAS_FORMAT_VERSION: Final[str] = "1.1"

# --- Logging ---
LOG_LEVEL: str = os.getenv("BLOCKCANVAS_LOG_LEVEL", "INFO").upper()
_LOG_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_HANDLER_ATTACHED: bool = False


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """Attach a single stream handler to the package logger.

    The library itself never installs handlers; applications and the CLI
    call this once at startup.
    """
    global _HANDLER_ATTACHED

    if level is None:
        level = LOG_LEVEL
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger("blockcanvas")
    if not _HANDLER_ATTACHED:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)
        _HANDLER_ATTACHED = True
    logger.setLevel(level)
    return logger


# ─── Provider Configuration ───────────────────────────────────────────────────


class ProviderType(str, Enum):
    GEMINI = "gemini"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


@dataclass(frozen=True)
class TuningConfig:
    """Per-model request tuning.

    The named fields are the keys the request builders understand. ``extra``
    carries provider-specific options through untouched.
    """

    temperature: float | None = None
    top_p: float | None = None
    top_k: int | None = None
    max_tokens: int | None = None
    thinking_budget: int | None = None
    stop_sequences: tuple[str, ...] | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    def to_request_options(self) -> dict[str, Any]:
        """Flatten set keys plus ``extra`` into a request options mapping."""
        options: dict[str, Any] = {}
        for name in ("temperature", "top_p", "top_k", "max_tokens", "thinking_budget"):
            value = getattr(self, name)
            if value is not None:
                options[name] = value
        if self.stop_sequences is not None:
            options["stop_sequences"] = list(self.stop_sequences)
        options.update(self.extra)
        return options


@dataclass(frozen=True)
class ModelConfig:
    id: str
    value: str
    label: str = ""
    enabled: bool = True
    kind: str = "text"
    tuning: TuningConfig = field(default_factory=TuningConfig)


@dataclass(frozen=True)
class ProviderConfig:
    key: str = ""
    base_url: str = ""
    models: tuple[ModelConfig, ...] = ()
    is_valid: bool | None = None


@dataclass(frozen=True)
class ResolvedModel:
    """Which provider serves a model id, and the provider-side model name."""

    provider: ProviderType
    model_value: str
    config: ModelConfig | None = None


def resolve_model(configs: Mapping[ProviderType, ProviderConfig], model_id: str) -> ResolvedModel:
    """Find the provider that lists ``model_id``.

    Within each provider a match on the config id wins over a match on the
    model value. Unlisted ids go to Gemini unchanged.
    """
    for provider, provider_config in configs.items():
        found = next((m for m in provider_config.models if m.id == model_id), None)
        if found is None:
            found = next((m for m in provider_config.models if m.value == model_id), None)
        if found is not None:
            return ResolvedModel(provider=ProviderType(provider), model_value=found.value, config=found)
    return ResolvedModel(provider=ProviderType.GEMINI, model_value=model_id)


def available_models(configs: Mapping[ProviderType, ProviderConfig]) -> list[tuple[ProviderType, ModelConfig]]:
    """Enabled models of every provider, in provider order."""
    return [
        (ProviderType(provider), model)
        for provider, provider_config in configs.items()
        for model in provider_config.models
        if model.enabled
    ]
