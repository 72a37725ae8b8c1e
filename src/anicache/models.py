"""Canonical Pydantic models shared across anicache modules.

The models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`CacheConfig`, :class:`ProviderConfig`, :class:`OutputConfig`,
    and :class:`GlobalConfig`.

**Cache models** -- the in-memory and persisted shape of cached data:
    :class:`CacheEntry`.

All models use Pydantic v2.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator


# --- Configuration ---


class CacheConfig(BaseModel):
    """Response cache settings stored in :class:`GlobalConfig`.

    Every cache category (search results, anime info, episode lists, ...)
    gets its own instance built from these settings.
    """

    enabled: bool = Field(default=True, description="Enable response caching")
    capacity: int = Field(
        default=20, ge=0, description="Maximum number of entries per category"
    )
    max_age_seconds: float = Field(
        default=24 * 60 * 60, ge=0, description="Entry lifetime in seconds"
    )
    persist: bool = Field(
        default=True, description="Persist cache snapshots to the cache directory"
    )


class ProviderConfig(BaseModel):
    """Remote data provider settings stored in :class:`GlobalConfig`."""

    base_url: str = Field(
        default="https://api.consumet.org/meta/anilist",
        description="Base URL of the Anilist meta API",
    )
    skip_times_url: str = Field(
        default="https://api.aniskip.com/",
        description="Base URL of the skip-times API",
    )
    timeout: int = Field(default=30, description="Request timeout in seconds")
    default_provider: str = Field(
        default="gogoanime", description="Streaming provider used for episode data"
    )

    @field_validator("skip_times_url")
    @classmethod
    def _ensure_trailing_slash(cls, value: str) -> str:
        return value if value.endswith("/") else f"{value}/"


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )

    @field_validator("format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        if value not in ("auto", "json", "plain", "rich"):
            raise ValueError(f"unknown output format: {value}")
        return value


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/anicache/config.json``.

    Loaded and saved by :func:`~anicache.config.load_global_config` and
    :func:`~anicache.config.save_global_config`. See
    :func:`~anicache.config.resolve_config` for the precedence chain.
    """

    cache: CacheConfig = Field(default_factory=CacheConfig)
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- Cache ---


class CacheEntry(BaseModel):
    """A single cached value and the wall-clock time it was stored.

    ``stored_at`` is a UNIX timestamp in seconds so that snapshots written in
    one session expire at the same moment when reloaded in the next.
    """

    value: Any
    stored_at: float
