"""
Data models for Evolve Monitor.

Defines the canonical dataclasses that monitoring payloads are mapped into,
the per-category snapshot kept by the cache, fetch results, and the two
subscription record types.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


# Status strings used by the upstream monitoring panel
STATUS_ACTIVE = "Активен"
STATUS_ON_AUCTION = "На аукционе"

# Owner value the car market reports while it has no owner
NO_OWNER = "none"

# Separator the panel uses inside deputy/worker lists
LIST_SEPARATOR = "<br/>"


class Category(str, Enum):
    """Entity categories exposed by the monitoring endpoint."""
    BUSINESS = "business"
    FARMS = "farms"
    STO = "sto"
    REALTOR = "realtor"
    CARMARKET = "carmarket"

    @classmethod
    def parse(cls, value: str) -> "Category":
        """Parse a category tag, raising ValueError for unknown tags."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            valid = ", ".join(c.value for c in cls)
            raise ValueError(f"Unknown category '{value}' (expected one of: {valid})")


class FetchStatus(str, Enum):
    """Outcome of a single category fetch."""
    OK = "ok"            # Success flag true and content present
    EMPTY = "empty"      # Well-formed reply without usable content
    FAILED = "failed"    # Transport error, auth error, unresolved challenge


def _parse_int(value: str) -> Optional[int]:
    """Parse the leading integer of a panel value ("1500" -> 1500, "n/a" -> None)."""
    match = re.match(r"\s*(-?\d+)", value or "")
    return int(match.group(1)) if match else None


def split_panel_list(value: str) -> list[str]:
    """Split a <br/>-separated panel list, dropping 'None' placeholders."""
    if not value:
        return []
    return [part for part in value.split(LIST_SEPARATOR) if part and part != "None"]


@dataclass(frozen=True)
class Business:
    """A business listing."""
    name: str
    status: str = ""
    status_type: str = ""
    controller: str = ""
    owner: str = ""
    products: str = ""
    price: str = ""

    @property
    def key(self) -> str:
        return self.name

    @property
    def is_on_auction(self) -> bool:
        return self.status == STATUS_ON_AUCTION

    @property
    def product_count(self) -> Optional[int]:
        """Number of products in stock, or None when the panel value is not numeric."""
        return _parse_int(self.products)

    @classmethod
    def from_dict(cls, data: dict) -> "Business":
        return cls(
            name=str(data.get("name", "")),
            status=str(data.get("status", "")),
            status_type=str(data.get("statusType", "")),
            controller=str(data.get("controller", "")),
            owner=str(data.get("owner", "")),
            products=str(data.get("products", "")),
            price=str(data.get("price", "")),
        )


@dataclass(frozen=True)
class Farm:
    """A farm listing, identified by its number."""
    number: str
    status: str = ""
    status_type: str = ""
    owner: str = ""
    vice: str = ""
    workers: str = ""

    @property
    def key(self) -> str:
        return self.number

    @property
    def is_on_auction(self) -> bool:
        return self.status == STATUS_ON_AUCTION

    @classmethod
    def from_dict(cls, data: dict) -> "Farm":
        return cls(
            number=str(data.get("number", "")),
            status=str(data.get("status", "")),
            status_type=str(data.get("statusType", "")),
            owner=str(data.get("owner", "")),
            vice=str(data.get("vice", "")),
            workers=str(data.get("fermers", "")),
        )


@dataclass(frozen=True)
class ServiceStation:
    """A service station (STO) listing. The panel reuses the farm schema."""
    number: str
    status: str = ""
    status_type: str = ""
    owner: str = ""
    vice: str = ""
    mechanics: str = ""

    @property
    def key(self) -> str:
        return self.number

    @property
    def is_on_auction(self) -> bool:
        return self.status == STATUS_ON_AUCTION

    @classmethod
    def from_dict(cls, data: dict) -> "ServiceStation":
        return cls(
            number=str(data.get("number", "")),
            status=str(data.get("status", "")),
            status_type=str(data.get("statusType", "")),
            owner=str(data.get("owner", "")),
            vice=str(data.get("vice", "")),
            mechanics=str(data.get("fermers", "")),
        )


@dataclass(frozen=True)
class Realty:
    """A realty agency listing."""
    name: str
    status: str = ""
    status_type: str = ""
    owner: str = ""
    products: str = ""

    @property
    def key(self) -> str:
        return self.name

    @property
    def is_on_auction(self) -> bool:
        return self.status == STATUS_ON_AUCTION

    @classmethod
    def from_dict(cls, data: dict) -> "Realty":
        return cls(
            name=str(data.get("name", "")),
            status=str(data.get("status", "")),
            status_type=str(data.get("statusType", "")),
            owner=str(data.get("owner", "")),
            products=str(data.get("products", "")),
        )


@dataclass(frozen=True)
class MarketplaceLot:
    """
    The car market lot.

    It has no status field; an owner of "none" means the lot is up for auction.
    """
    number: str = ""
    owner: str = ""
    vice: str = ""
    per_hour: str = ""
    out_price: str = ""

    @property
    def key(self) -> str:
        return self.number

    @property
    def is_on_auction(self) -> bool:
        return self.owner == NO_OWNER

    @classmethod
    def from_dict(cls, data: dict) -> "MarketplaceLot":
        return cls(
            number=str(data.get("number", "")),
            owner=str(data.get("owner", "")),
            vice=str(data.get("vice", "")),
            per_hour=str(data.get("perhour", "")),
            out_price=str(data.get("outprice", "")),
        )


Entity = Union[Business, Farm, ServiceStation, Realty, MarketplaceLot]

ENTITY_TYPES: dict[Category, type] = {
    Category.BUSINESS: Business,
    Category.FARMS: Farm,
    Category.STO: ServiceStation,
    Category.REALTOR: Realty,
    Category.CARMARKET: MarketplaceLot,
}


def entity_from_dict(category: Category, data: dict) -> Entity:
    """Map one raw panel row to the entity variant for its category."""
    return ENTITY_TYPES[category].from_dict(data)


@dataclass(frozen=True)
class FetchResult:
    """
    Result of fetching one category.

    The status is what lets the cache tell a failed fetch (serve stale data)
    apart from an upstream that legitimately returned nothing.
    """
    category: Category
    status: FetchStatus
    entities: tuple = ()
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.status is FetchStatus.OK

    @property
    def failed(self) -> bool:
        return self.status is FetchStatus.FAILED

    @classmethod
    def success(cls, category: Category, entities) -> "FetchResult":
        return cls(category=category, status=FetchStatus.OK, entities=tuple(entities))

    @classmethod
    def empty(cls, category: Category, reason: str = "") -> "FetchResult":
        return cls(category=category, status=FetchStatus.EMPTY, error=reason)

    @classmethod
    def failure(cls, category: Category, reason: str) -> "FetchResult":
        return cls(category=category, status=FetchStatus.FAILED, error=reason)


@dataclass(frozen=True)
class CategorySnapshot:
    """Entities of one category captured during a given wall-clock hour."""
    category: Category
    entities: tuple
    capture_hour: int

    def is_valid(self, current_hour: int) -> bool:
        return self.capture_hour == current_hour


@dataclass(frozen=True)
class BusinessSubscription:
    """Per-business notification settings for one recipient."""
    recipient_id: int
    business_name: str
    hourly: bool = False
    low_products: bool = False


@dataclass(frozen=True)
class AuctionSubscription:
    """Set of categories a recipient wants auction alerts for."""
    recipient_id: int
    categories: frozenset = field(default_factory=frozenset)
