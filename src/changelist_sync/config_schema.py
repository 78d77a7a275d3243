"""Unified configuration schema for changelist_sync.

Defines Pydantic models for the YAML config structure with dedicated
sections for the Contentful connection, run inputs and logging, plus an
adapter that flattens it into fallbacks for ``load_config()``.

Usage:
    from changelist_sync.config_schema import build_config, to_fallbacks

    raw = load_hierarchical_config()
    unified = build_config(raw)
    config = load_config(yaml_fallbacks=to_fallbacks(unified))
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class ContentfulConfig(BaseModel):
    """Contentful connection settings.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime instead.
    """

    space_id: str | None = Field(default=None, description="Space id")
    delivery_token: str | None = Field(
        default=None, description="Content Delivery API access token"
    )
    preview_token: str | None = Field(
        default=None, description="Content Preview API access token"
    )
    environment_id: str | None = Field(
        default=None, description="Content environment id"
    )
    delivery_host: str | None = Field(
        default=None, description="Content Delivery API host"
    )
    preview_host: str | None = Field(
        default=None, description="Content Preview API host"
    )
    changelist_content_type: str = Field(
        default="changelist",
        description="Content type id of changelist entries",
    )
    changelist_id_field: str = Field(
        default="changelistId",
        description="Field holding the changelist identifier",
    )
    locale: str | None = Field(
        default=None,
        description="Locale used to unwrap localized changelist fields",
    )

    model_config = {"frozen": True}


class RunConfig(BaseModel):
    """Per-invocation inputs that may also come from the config file."""

    changelist_id: str | None = None
    preview_only: bool = False
    verbosity: int = Field(default=0, ge=0, le=3)
    output_path: str | None = None
    context_path: str | None = None

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        file: Optional log file path.
        format: ``text`` or ``json``.
    """

    file: str | None = Field(default=None, description="Log file path")
    format: str = Field(default="text", pattern="^(text|json)$")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has sensible defaults, so ``UnifiedConfig()`` is valid.
    """

    contentful: ContentfulConfig = Field(default_factory=ContentfulConfig)
    run: RunConfig = Field(default_factory=RunConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Raises:
        ConfigurationError: If the file content fails validation.
    """
    if not raw_data:
        return UnifiedConfig()

    try:
        return UnifiedConfig(**raw_data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid config file: {e}") from e


def to_fallbacks(unified: UnifiedConfig) -> dict[str, Any]:
    """Flatten the ``contentful`` and ``run`` sections into the fallback
    dict accepted by ``load_config()``.  Unset (``None``) values are dropped.
    """
    merged = {
        **unified.contentful.model_dump(),
        **unified.run.model_dump(),
    }
    return {k: v for k, v in merged.items() if v is not None}
