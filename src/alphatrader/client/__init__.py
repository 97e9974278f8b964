"""HTTP transport for alphatrader.

Provides :class:`HttpTransport`, a thin blocking transport over
:class:`httpx.Client` that attaches the game's authentication headers and
reduces every response to a :class:`~alphatrader.models.RawResponse`.
Anything implementing the :class:`Transport` protocol can stand in for it,
which is how the test suite feeds canned responses to the cache.

Example::

    from alphatrader.client import HttpTransport

    with HttpTransport(settings) as transport:
        raw = transport.get("/api/companies")
"""

from alphatrader.client.response import extract_response_data, to_raw_response
from alphatrader.client.transport import HttpTransport, Transport

__all__ = ["HttpTransport", "Transport", "extract_response_data", "to_raw_response"]
