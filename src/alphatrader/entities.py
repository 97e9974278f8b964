"""Game entities decoded from API responses.

Every entity is an immutable Pydantic model populated once when a response
body is decoded.  Field names are snake_case in Python and camelCase on the
wire; unknown fields are ignored so schema additions on the server side do
not break decoding.

Lookup helpers (``CompanyProfile.get_by_company``, ``Order.get_by_id`` ...)
go through a :class:`~alphatrader.fetcher.Fetcher`, the default one unless
another is passed, and so share its cache.  They return ``None`` or an
empty list when the API has nothing (or cannot be reached).
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Annotated, Any, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

from alphatrader.fetcher import Fetcher, get_fetcher


def _from_epoch_millis(value: Any) -> Any:
    """Turn the API's epoch-millisecond timestamps into local aware datetimes."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc).astimezone()
    return value


EpochMillis = Annotated[datetime, BeforeValidator(_from_epoch_millis)]


class Entity(BaseModel):
    """Base for all API entities."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _fetcher(fetcher: Optional[Fetcher]) -> Fetcher:
    return fetcher if fetcher is not None else get_fetcher()


class Listing(Entity):
    """A tradeable security."""

    security_identifier: Optional[str] = None
    name: Optional[str] = None
    type: Optional[str] = None


class CompanyCapabilities(Entity):
    """Banking capabilities of a company."""

    bank_ready: Optional[bool] = None
    bank: Optional[bool] = None
    taken_central_bank_loans: Optional[float] = None
    designated_sponsor: Optional[bool] = None
    reserves: Optional[float] = None
    max_central_bank_loans: Optional[float] = None
    net_cash: Optional[float] = None


class CompanyProfile(Entity):
    """The public profile of a company."""

    id: str
    name: Optional[str] = None
    securities_account_id: Optional[str] = None
    outstanding_shares: Optional[int] = None
    market_cap: Optional[float] = None
    logo_url: Optional[str] = None
    listing: Optional[Listing] = None
    company_capabilities: Optional[CompanyCapabilities] = None

    @classmethod
    def get_by_company(
        cls, company_id: str, fetcher: Optional[Fetcher] = None
    ) -> Optional[CompanyProfile]:
        """Fetch the profile of the company with id *company_id*."""
        return _fetcher(fetcher).fetch_one(cls, f"/api/companyprofiles/{company_id}")


class OrderType(str, enum.Enum):
    LIMIT = "LIMIT"
    MARKET = "MARKET"


class OrderAction(str, enum.Enum):
    BUY = "BUY"
    SELL = "SELL"


CompanyRef = Union[str, CompanyProfile]


class Order(Entity):
    """A security order placed on the exchange."""

    id: str
    creation_date: Optional[EpochMillis] = None
    listing: Optional[Listing] = None
    type: Optional[OrderType] = None
    security_identifier: Optional[str] = None
    number_of_shares: Optional[int] = None
    counter_party_name: Optional[str] = None
    counter_party: Optional[str] = None
    action: Optional[OrderAction] = None
    committed_cash: Optional[float] = None
    price: Optional[float] = None
    owner_name: Optional[str] = None
    owner: Optional[str] = None

    @property
    def name(self) -> Optional[str]:
        """Name of the traded security."""
        return self.listing.name if self.listing else None

    @classmethod
    def get_by_id(cls, order_id: str, fetcher: Optional[Fetcher] = None) -> Optional[Order]:
        return _fetcher(fetcher).fetch_one(cls, f"/api/securityorders/{order_id}")

    @classmethod
    def get_orders(cls, company: CompanyRef, fetcher: Optional[Fetcher] = None) -> list[Order]:
        """Orders placed by a securities account (or the company owning it)."""
        account = _securities_account(company)
        if account is None:
            return []
        return cls._fetch_many(f"securityorders/securitiesaccount/{account}", fetcher)

    @classmethod
    def get_otc_orders(
        cls, company: CompanyRef, fetcher: Optional[Fetcher] = None
    ) -> list[Order]:
        """Over-the-counter orders where the account is the counter party."""
        account = _securities_account(company)
        if account is None:
            return []
        return cls._fetch_many(f"securityorders/counterparty/{account}", fetcher)

    @classmethod
    def get_orders_for_company(
        cls, company: CompanyRef, fetcher: Optional[Fetcher] = None
    ) -> list[Order]:
        """All orders on a security identifier (or a company's listing)."""
        if isinstance(company, CompanyProfile):
            security = company.listing.security_identifier if company.listing else None
        else:
            security = company
        if security is None:
            return []
        return cls._fetch_many(f"orderlist/{security}", fetcher)

    @classmethod
    def _fetch_many(cls, suffix: str, fetcher: Optional[Fetcher]) -> list[Order]:
        return _fetcher(fetcher).fetch_many(cls, f"/api/{suffix}")


def _securities_account(company: CompanyRef) -> Optional[str]:
    if isinstance(company, CompanyProfile):
        return company.securities_account_id
    return company
