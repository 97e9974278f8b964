"""Canonical Pydantic models shared across alphatrader modules.

The models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`RequestConfig`, :class:`CacheConfig`, and :class:`Settings`.

**Transport models** -- produced by the transport and stored by the cache:
    :class:`RawResponse`.

Game entities decoded from response bodies live in
:mod:`alphatrader.entities`.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_API_URL = "https://stable.alphatrader.de"


class RequestConfig(BaseModel):
    """Default HTTP request settings applied to every API call."""

    timeout: int = Field(default=30, gt=0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class CacheConfig(BaseModel):
    """Response cache sizing and refresh settings.

    Fixed when a :class:`~alphatrader.cache.ResponseCache` is constructed and
    immutable for the cache's lifetime.
    """

    model_config = ConfigDict(frozen=True)

    max_entries: int = Field(
        default=1000, gt=0, description="Maximum number of cached paths"
    )
    expire_after_access_seconds: float = Field(
        default=86400, gt=0, description="Idle time after which an entry expires"
    )
    refresh_interval_minutes: float = Field(
        default=5, gt=0, description="Delay between background refresh cycles"
    )

    @property
    def refresh_interval_seconds(self) -> float:
        """The refresh interval converted to seconds."""
        return self.refresh_interval_minutes * 60


class Settings(BaseModel):
    """Connection settings persisted at ``~/.config/alphatrader/config.json``.

    Loaded by :func:`~alphatrader.config.load_settings`, which layers the
    ``ALPHATRADER_*`` environment variables on top of the file.  ``token``
    may hold the bearer token itself or a credential source such as
    ``env:ALPHATRADER_TOKEN`` or ``file:~/.alphatrader-token``; see
    :func:`~alphatrader.config.resolve_credential`.
    """

    api_url: str = Field(default=DEFAULT_API_URL, description="Base URL of the REST API")
    token: Optional[str] = Field(default=None, description="Bearer token or credential source")
    partner_id: Optional[str] = Field(
        default=None, description="Partner id sent as X-Authorization"
    )
    request: RequestConfig = Field(default_factory=RequestConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)


class RawResponse(BaseModel):
    """An HTTP response reduced to what the cache stores.

    The cache keeps every response it loads, error statuses included, so
    callers decide how to treat the status code.
    """

    model_config = ConfigDict(frozen=True)

    status_code: int
    body: str = ""
    headers: dict[str, str] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the body should be decoded (HTTP 200 only)."""
        return self.status_code == 200
