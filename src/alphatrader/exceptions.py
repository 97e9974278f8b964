"""Exception hierarchy for alphatrader.

All exceptions inherit from :class:`AlphaTraderError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`alphatrader.exit_codes`.  Inside the library these errors travel
from the transport through the response cache and stop at the
:class:`~alphatrader.fetcher.Fetcher` boundary, where they are logged and
turned into an empty result.  The command-line tool catches them and exits
with the matching code.

Subclass hierarchy::

    AlphaTraderError (exit 1)
    +-- TransportError    (exit 6)
    +-- DecodeError       (exit 7)
    +-- ConfigError       (exit 1)
"""

from alphatrader.exit_codes import (
    EXIT_DECODE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_TRANSPORT_ERROR,
)


class AlphaTraderError(Exception):
    """Base exception for all alphatrader errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class TransportError(AlphaTraderError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    HTTP error statuses are *not* transport errors: a 404 or 500 is a
    valid response and is returned (and cached) like any other.
    """

    exit_code = EXIT_TRANSPORT_ERROR


class DecodeError(AlphaTraderError):
    """Raised when a response body does not match the requested shape."""

    exit_code = EXIT_DECODE_ERROR


class ConfigError(AlphaTraderError):
    """Raised for configuration problems (invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE
