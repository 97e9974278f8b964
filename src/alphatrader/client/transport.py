"""Synchronous HTTP transport with the game's authentication headers.

This module provides :class:`HttpTransport`, the blocking transport used
by the response cache.  It wraps :class:`httpx.Client` and layers on:

- **Auth headers** -- ``Accept: */*``, ``Authorization: Bearer <token>``
  and ``X-Authorization: <partner id>`` on every request.
- **Error mapping** -- network, timeout and protocol failures raise
  :class:`~alphatrader.exceptions.TransportError`.  HTTP error statuses
  are returned as ordinary responses.

There is no retry logic here: a failed background refresh is simply tried
again on the next refresh cycle.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional, Protocol

import httpx

from alphatrader.client.response import to_raw_response
from alphatrader.config import resolve_token
from alphatrader.exceptions import TransportError
from alphatrader.models import RawResponse, Settings

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """What the cache and fetcher need from a transport."""

    def get(self, path: str) -> RawResponse: ...

    def post(self, path: str) -> RawResponse: ...


class HttpTransport:
    """Blocking transport backed by :class:`httpx.Client`.

    The underlying client is opened lazily on the first request so a
    transport can be built at import time and shared by the caller threads
    and the cache refresher.  It can also be used as a context manager to
    control when the connection pool is closed.

    Args:
        settings: API URL, credentials and request settings.
        transport: Optional :mod:`httpx` transport, e.g.
            :class:`httpx.MockTransport` in tests.

    Example::

        with HttpTransport(settings) as transport:
            raw = transport.get("/api/companyprofiles/abc")
    """

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._client: Optional[httpx.Client] = None
        self._lock = threading.Lock()

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> HttpTransport:
        self._ensure_client()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the connection pool.  A later request reopens it."""
        with self._lock:
            if self._client is not None:
                self._client.close()
                self._client = None

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    def get(self, path: str) -> RawResponse:
        """Send a GET request to ``api_url + path``."""
        return self.request("GET", path)

    def post(self, path: str) -> RawResponse:
        """Send a POST request to ``api_url + path``."""
        return self.request("POST", path)

    def request(self, method: str, path: str) -> RawResponse:
        """Send one authenticated request.

        Args:
            method: HTTP method.
            path: Endpoint suffix appended to the configured API URL.

        Returns:
            The response, whatever its status code.

        Raises:
            TransportError: On network, timeout or protocol errors, or when
                *path* does not form a valid URL.
        """
        client = self._ensure_client()
        logger.debug("%s %s", method, path)
        try:
            response = client.request(method, path, headers=self._auth_headers())
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc
        return to_raw_response(response)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _ensure_client(self) -> httpx.Client:
        with self._lock:
            if self._client is None:
                config = self._settings.request
                self._client = httpx.Client(
                    base_url=self._settings.api_url,
                    timeout=config.timeout,
                    verify=config.verify_ssl,
                    follow_redirects=True,
                    transport=self._transport,
                )
            return self._client

    def _auth_headers(self) -> dict[str, str]:
        """Build the standard headers sent with every request."""
        headers = {"Accept": "*/*"}
        token = resolve_token(self._settings)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if self._settings.partner_id:
            headers["X-Authorization"] = self._settings.partner_id
        return headers
