"""
Catalog models.

Suppliers, master products, mapping entries and the in-memory snapshot
that every read and write operates on.
"""

from copy import deepcopy
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, NamedTuple, Optional

from pydantic import AliasChoices, Field, field_validator

from models.base import BaseSchema, RecordSchema


class Collection(str, Enum):
    """Document names in the per-user store."""
    SUPPLIERS = "suppliers"
    PRICES = "prices"
    MAPPINGS = "mappings"
    MASTER_PRODUCTS = "master_products"


ALL_COLLECTIONS = tuple(Collection)


class MappingKey(NamedTuple):
    """Composite key of a mapping entry."""
    supplier_id: str
    local_name: str


# ===================
# STORED RECORDS
# ===================

class Supplier(RecordSchema):
    """Supplier that sends price lists."""

    id: str = Field(..., min_length=1, description="Stable supplier id")
    name: str = Field(..., min_length=1, description="Display name")
    last_update: Optional[date] = Field(
        None,
        validation_alias=AliasChoices("last_update", "lastUpdate"),
        description="Date of the last applied price list"
    )

    @field_validator("last_update", mode="before")
    @classmethod
    def parse_last_update(cls, value):
        """Accept ISO dates and the dd.mm.yyyy dates older clients wrote."""
        if value is None or value == "":
            return None
        if isinstance(value, str) and "." in value:
            return datetime.strptime(value.strip(), "%d.%m.%Y").date()
        return value


class MasterProduct(RecordSchema):
    """Canonical product shared across suppliers."""

    name: str = Field(..., min_length=1, description="Canonical name (unique, case-sensitive)")
    is_favorite: bool = Field(default=False, description="Pinned to the top of listings")


class MappingRecord(RecordSchema):
    """One mapping entry in its stored form."""

    supplier_id: str = Field(..., min_length=1)
    local_name: str = Field(..., min_length=1)
    canonical_name: str = Field(..., min_length=1)

    @property
    def key(self) -> MappingKey:
        return MappingKey(self.supplier_id, self.local_name)


class SupplierCreate(BaseSchema):
    """Create a new supplier."""

    name: str = Field(..., min_length=1, max_length=200, description="Display name")


class SupplierListResponse(BaseSchema):
    """List of suppliers."""
    data: list[Supplier]
    total: int


class MasterProductListResponse(BaseSchema):
    """Filtered and sorted master products."""
    data: list[MasterProduct]
    total: int


# ===================
# SNAPSHOT
# ===================

@dataclass
class CatalogSnapshot:
    """
    Current state of one user's four collections.

    Mapping order is the store's enumeration order; price lookups that
    hit more than one local name take the first.

    rejected holds stored rows that failed validation, per collection,
    so writing a collection back does not erase them.
    """
    suppliers: list[Supplier] = field(default_factory=list)
    prices: dict[str, dict[str, float]] = field(default_factory=dict)
    mappings: dict[MappingKey, str] = field(default_factory=dict)
    master_products: list[MasterProduct] = field(default_factory=list)
    versions: dict[str, int] = field(default_factory=dict)
    rejected: dict[str, Any] = field(default_factory=dict)

    def copy(self) -> "CatalogSnapshot":
        """Deep copy for read-modify-write."""
        return CatalogSnapshot(
            suppliers=[s.model_copy() for s in self.suppliers],
            prices=deepcopy(self.prices),
            mappings=dict(self.mappings),
            master_products=[p.model_copy() for p in self.master_products],
            versions=dict(self.versions),
            rejected=deepcopy(self.rejected),
        )

    def get_supplier(self, supplier_id: str) -> Optional[Supplier]:
        for supplier in self.suppliers:
            if supplier.id == supplier_id:
                return supplier
        return None

    def get_master_product(self, name: str) -> Optional[MasterProduct]:
        for product in self.master_products:
            if product.name == name:
                return product
        return None

    def ensure_master_product(self, name: str) -> bool:
        """Add a non-favorite record for name if missing. Returns True if created."""
        if self.get_master_product(name) is not None:
            return False
        self.master_products.append(MasterProduct(name=name, is_favorite=False))
        return True

    def set_mapping(self, supplier_id: str, local_name: str, canonical_name: str) -> None:
        self.mappings[MappingKey(supplier_id, local_name)] = canonical_name

    def set_price(self, supplier_id: str, local_name: str, price: float) -> None:
        self.prices.setdefault(supplier_id, {})[local_name] = price

    def drop_rejected_rows(self, supplier_id: str) -> None:
        """Forget rejected price and mapping rows of a deleted supplier."""
        prices = self.rejected.get(Collection.PRICES.value)
        if prices:
            prices.pop(supplier_id, None)
        mappings = self.rejected.get(Collection.MAPPINGS.value)
        if mappings:
            self.rejected[Collection.MAPPINGS.value] = [
                row for row in mappings
                if not (isinstance(row, dict) and row.get("supplier_id") == supplier_id)
            ]
