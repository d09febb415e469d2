"""Typed directory records, validated once at the store boundary."""

from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Mapping, Sequence
from typing import Annotated, Literal, Optional, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, ValidationError

from .errors import DirectoryError, StoreErrorKind, user_message

logger = logging.getLogger(__name__)


def coerce_identifier(value):
    """Numeric ids (serial columns) and uuid strings both become str."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, bool):
        raise ValueError("boolean is not an identifier")
    return str(value)


Identifier = Annotated[str, BeforeValidator(coerce_identifier)]


class DirectoryRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", from_attributes=True)

    id: Identifier


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------

class Market(DirectoryRecord):
    kind: Literal["market"] = "market"
    name: str
    location: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True
    created_at: Optional[dt.datetime] = None


class Category(DirectoryRecord):
    """Business categories carry ``title``; product categories carry ``name``."""

    kind: Literal["category"] = "category"
    title: Optional[str] = None
    name: Optional[str] = None
    icon_type: Optional[str] = None

    @property
    def label(self) -> str:
        return self.title or self.name or ""


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------

class Business(DirectoryRecord):
    kind: Literal["business"] = "business"
    name: str
    description: Optional[str] = None
    category_id: Optional[Identifier] = None
    market_id: Optional[Identifier] = None
    owner_id: Optional[Identifier] = None
    status: str = "active"
    address: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    logo_url: Optional[str] = None
    rating: Optional[float] = None
    price_range: Optional[str] = None
    created_at: Optional[dt.datetime] = None


class Product(DirectoryRecord):
    kind: Literal["product"] = "product"
    name: str
    description: Optional[str] = None
    price: Optional[float] = None
    category_id: Optional[Identifier] = None
    market_id: Optional[Identifier] = None
    owner_id: Optional[Identifier] = None
    business_id: Optional[Identifier] = None
    status: str = "active"
    image_urls: Optional[str] = None
    views_count: int = 0
    is_featured: bool = False
    quantity: Optional[int] = None
    condition: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


RecordT = TypeVar("RecordT", bound=DirectoryRecord)


def validate_rows(model: type[RecordT], rows, table: Optional[str] = None) -> list[RecordT]:
    """
    Validate raw store rows into ``model`` instances.

    A response that is not a sequence of rows fails as MALFORMED. Individual
    rows that do not validate are dropped and logged; their siblings survive.
    """
    if isinstance(rows, (str, bytes)) or not isinstance(rows, Sequence):
        raise DirectoryError(StoreErrorKind.MALFORMED, user_message(StoreErrorKind.MALFORMED, table), table)

    records: list[RecordT] = []
    for idx, row in enumerate(rows):
        if not isinstance(row, Mapping):
            logger.warning("Dropping non-mapping row #%d from %s", idx, table)
            continue
        try:
            records.append(model.model_validate(dict(row)))
        except ValidationError as e:
            logger.warning("Dropping malformed row #%d from %s: %s", idx, table, e.errors()[:1])
    return records
