"""Request commands -- fetch a raw API path through the response cache.

``alphatrader get PATH`` is handy for checking what the API returns for an
endpoint before writing an entity model for it.  The status line goes to
stderr and the body to stdout.
"""

from __future__ import annotations

import typer

from alphatrader.client.response import extract_response_data
from alphatrader.models import RawResponse
from alphatrader.output import debug, format_response, info


def _emit(method: str, path: str, raw: RawResponse) -> None:
    info(f"{method} {path} -> HTTP {raw.status_code}")
    format_response(extract_response_data(raw))
    if raw.status_code >= 400:
        raise typer.Exit(code=1)


def get_command(
    path: str = typer.Argument(help="API path, e.g. /api/companyprofiles/<id>."),
    repeat: int = typer.Option(
        1, "--repeat", min=1, help="Fetch N times; later fetches are cache hits."
    ),
) -> None:
    """GET an API path and print the response body."""
    from alphatrader.config import load_settings
    from alphatrader.fetcher import Fetcher

    with Fetcher.from_settings(load_settings()) as fetcher:
        raw = fetcher.cache.get(path)
        for _ in range(repeat - 1):
            raw = fetcher.cache.get(path)
        debug(f"Cache: {fetcher.cache.stats()}")
    _emit("GET", path, raw)


def post_command(
    path: str = typer.Argument(help="API path to POST to."),
) -> None:
    """POST to an API path (uncached) and print the response body."""
    from alphatrader.client import HttpTransport
    from alphatrader.config import load_settings

    with HttpTransport(load_settings()) as transport:
        raw = transport.post(path)
    _emit("POST", path, raw)
