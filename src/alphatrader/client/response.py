"""Conversion between :class:`httpx.Response` and the cached :class:`RawResponse`.

The cache only needs the status code and the body text; keeping that
reduced form means cached values are immutable and cheap to share between
threads.  :func:`extract_response_data` goes the other way for display,
turning a cached body back into JSON data when it parses.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from alphatrader.models import RawResponse


def to_raw_response(response: httpx.Response) -> RawResponse:
    """Reduce an :class:`httpx.Response` to a :class:`RawResponse`.

    Args:
        response: A fully read response.

    Returns:
        The status code, decoded body text, and response headers.
    """
    return RawResponse(
        status_code=response.status_code,
        body=response.text,
        headers=dict(response.headers),
    )


def extract_response_data(raw: RawResponse) -> Any:
    """Extract the body from a cached response.

    Attempts to parse the body as JSON first.  If that fails (e.g. the
    response is HTML or plain text), returns the raw text.  Returns
    ``None`` for responses with no content.
    """
    if not raw.body:
        return None

    try:
        return json.loads(raw.body)
    except ValueError:
        return raw.body
