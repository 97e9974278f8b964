"""Typed retrieval of API objects through the response cache.

:class:`Fetcher` is the only thing entity models talk to.  It asks the
:class:`~alphatrader.cache.ResponseCache` for the raw response at a path
and decodes the body into the requested shape with a
:class:`pydantic.TypeAdapter`.  Every failure -- transport error, non-200
status, malformed or mismatched body -- is logged and comes back as
``None`` (:meth:`Fetcher.fetch_one`) or ``[]`` (:meth:`Fetcher.fetch_many`),
so callers treat "failed" and "not found" alike.

The module also owns the process-wide default fetcher used by
:mod:`alphatrader.entities` when no fetcher is passed explicitly; see
:func:`get_fetcher`, :func:`set_fetcher` and :func:`reset_fetcher`.
"""

from __future__ import annotations

import atexit
import functools
import logging
import threading
from typing import Any, Optional, TypeVar

from pydantic import TypeAdapter, ValidationError

from alphatrader.cache import ResponseCache
from alphatrader.client import HttpTransport, Transport
from alphatrader.exceptions import DecodeError
from alphatrader.models import CacheConfig, RawResponse, Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@functools.lru_cache(maxsize=None)
def _one_adapter(shape: Any) -> TypeAdapter:
    return TypeAdapter(Optional[shape])


@functools.lru_cache(maxsize=None)
def _many_adapter(shape: Any) -> TypeAdapter:
    return TypeAdapter(Optional[list[shape]])


def _shape_name(shape: Any) -> str:
    return getattr(shape, "__name__", repr(shape))


def decode_one(shape: type[T], body: str) -> Optional[T]:
    """Decode a JSON document into *shape*.

    A ``null`` document decodes to ``None``.

    Raises:
        DecodeError: If *body* is not JSON or does not match *shape*.
    """
    try:
        return _one_adapter(shape).validate_json(body)
    except ValidationError as exc:
        raise DecodeError(f"Cannot decode {_shape_name(shape)}: {exc}") from exc


def decode_many(shape: type[T], body: str) -> list[T]:
    """Decode a JSON array into a list of *shape*.

    A ``null`` document decodes to an empty list.

    Raises:
        DecodeError: If *body* is not a JSON array of *shape*.
    """
    try:
        return _many_adapter(shape).validate_json(body) or []
    except ValidationError as exc:
        raise DecodeError(f"Cannot decode list of {_shape_name(shape)}: {exc}") from exc


class Fetcher:
    """Decode cached API responses into caller-requested shapes.

    Args:
        transport: Performs the actual requests.  Its ``get`` is the cache
            loader.
        config: Cache settings, used when *cache* is not given.
        cache: An existing cache to read through instead of building one.

    Example::

        fetcher = Fetcher.from_settings(load_settings())
        with fetcher:
            profile = fetcher.fetch_one(CompanyProfile, "/api/companyprofiles/abc")
    """

    def __init__(
        self,
        transport: Transport,
        config: Optional[CacheConfig] = None,
        cache: Optional[ResponseCache] = None,
    ) -> None:
        self._transport = transport
        self._cache = cache if cache is not None else ResponseCache(transport.get, config)

    @classmethod
    def from_settings(cls, settings: Settings) -> Fetcher:
        """Build a fetcher over an :class:`HttpTransport` for *settings*."""
        return cls(HttpTransport(settings), settings.cache)

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    @property
    def transport(self) -> Transport:
        return self._transport

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def start(self) -> None:
        """Start the cache's background refresher."""
        self._cache.start()

    def close(self) -> None:
        """Stop the refresher and release the transport's connections."""
        self._cache.stop()
        close = getattr(self._transport, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> Fetcher:
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Typed fetches
    # ------------------------------------------------------------------ #

    def fetch_one(self, shape: type[T], path: str) -> Optional[T]:
        """Fetch a single object of *shape* from *path*.

        Returns:
            The decoded object, or ``None`` when the response is not a 200,
            the body is ``null``, the body does not decode, or the request
            failed.  Never raises for those cases.
        """
        try:
            response = self._cache.get(path)
            if not response.ok:
                logger.debug("GET %s returned HTTP %d", path, response.status_code)
                return None
            return decode_one(shape, response.body)
        except Exception as exc:
            _log_failure(shape, exc)
            return None

    def fetch_many(self, shape: type[T], path: str) -> list[T]:
        """Fetch a list of objects of *shape* from *path*.

        Returns:
            The decoded objects in response order, or an empty list on any
            failure.  A partially decodable array yields an empty list.
        """
        try:
            response = self._cache.get(path)
            if not response.ok:
                logger.debug("GET %s returned HTTP %d", path, response.status_code)
                return []
            return decode_many(shape, response.body)
        except Exception as exc:
            _log_failure(shape, exc)
            return []

    def post(self, path: str) -> Optional[RawResponse]:
        """Send an uncached POST to *path*.

        Returns:
            The response, or ``None`` if the request failed.
        """
        try:
            return self._transport.post(path)
        except Exception as exc:
            logger.error("Error posting to %s: %s", path, exc)
            logger.debug("POST failure detail", exc_info=exc)
            return None


def _log_failure(shape: Any, exc: Exception) -> None:
    logger.error("Error fetching %ss: %s", _shape_name(shape), exc)
    logger.debug("Fetch failure detail", exc_info=exc)


# ------------------------------------------------------------------ #
# Process-wide default fetcher
# ------------------------------------------------------------------ #

_fetcher: Optional[Fetcher] = None
_fetcher_lock = threading.Lock()
_atexit_registered = False


def get_fetcher() -> Fetcher:
    """Return the default :class:`Fetcher`, creating it on first use.

    The default fetcher is built from :func:`~alphatrader.config.load_settings`,
    its refresher is started, and it is closed at interpreter exit.

    Raises:
        ConfigError: If the settings cannot be loaded.
    """
    global _fetcher, _atexit_registered
    with _fetcher_lock:
        if _fetcher is None:
            from alphatrader.config import load_settings

            fetcher = Fetcher.from_settings(load_settings())
            fetcher.start()
            _fetcher = fetcher
            if not _atexit_registered:
                atexit.register(reset_fetcher)
                _atexit_registered = True
        return _fetcher


def set_fetcher(fetcher: Fetcher) -> None:
    """Install *fetcher* as the default, closing any previous default."""
    global _fetcher
    with _fetcher_lock:
        previous, _fetcher = _fetcher, fetcher
    if previous is not None and previous is not fetcher:
        previous.close()


def reset_fetcher() -> None:
    """Close and forget the default fetcher.

    Primarily useful in test suites to ensure a clean state between tests.
    """
    global _fetcher
    with _fetcher_lock:
        previous, _fetcher = _fetcher, None
    if previous is not None:
        previous.close()
