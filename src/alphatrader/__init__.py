"""alphatrader -- cached, typed access to the Alphatrader trading-game REST API.

Entity models such as :class:`~alphatrader.entities.CompanyProfile` and
:class:`~alphatrader.entities.Order` populate themselves through a
:class:`~alphatrader.fetcher.Fetcher`, which reads API responses through an
in-memory :class:`~alphatrader.cache.ResponseCache`.  The cache coalesces
concurrent requests for the same path, evicts idle entries, and refreshes
resident responses in the background.

Typical use::

    from alphatrader.entities import CompanyProfile

    profile = CompanyProfile.get_by_company("0b1a...")   # default fetcher

or, with an explicitly owned fetcher::

    from alphatrader.config import load_settings
    from alphatrader.fetcher import Fetcher

    with Fetcher.from_settings(load_settings()) as fetcher:
        profile = CompanyProfile.get_by_company("0b1a...", fetcher=fetcher)

Modules:
    app: Typer CLI entry point.
    models: Pydantic configuration and response models.
    config: XDG-aware settings loading and credential resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    fetcher: Typed fetches and the process-wide default fetcher.
    entities: Game entities decoded from API responses.
"""

__version__ = "0.3.0"
