"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~alphatrader.exceptions.AlphaTraderError` subclass.
Only the ``alphatrader`` command-line tool exits with these codes; the
library itself never calls ``sys.exit``.

Example::

    $ alphatrader get /api/companies
    $ echo $?
    6   # EXIT_TRANSPORT_ERROR -- the API could not be reached
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_TRANSPORT_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_DECODE_ERROR = 7
"""A response body could not be decoded into the requested shape."""
