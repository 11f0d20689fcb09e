"""
Upload and catalog-edit models.

Extracted price entries, reconciliation decisions, merges and
manual entries.
"""

from datetime import date
from typing import Optional
from pydantic import Field

from models.base import BaseSchema


class PriceEntry(BaseSchema):
    """One (product, price) pair read from a supplier price list."""

    product: str = Field(..., min_length=1, description="Name as printed by the supplier")
    price: float = Field(..., ge=0, allow_inf_nan=False, description="Net purchase price")


class MatchSuggestion(BaseSchema):
    """Master product that looks like an unmapped supplier name."""

    name: str
    score: int = Field(..., ge=0, le=100, description="Fuzzy match score")


class ProposedEntry(PriceEntry):
    """Extracted entry with the decision the review step starts from."""

    canonical_name: str = Field(
        default="",
        description="Existing mapping for this name, empty when new"
    )
    suggestions: list[MatchSuggestion] = Field(
        default_factory=list,
        description="Similar master products, best first (only for new names)"
    )


class ExtractionResult(BaseSchema):
    """Result of reading one uploaded price list. Nothing is written yet."""

    supplier_id: str
    filename: Optional[str] = None
    mime_type: str
    entries: list[ProposedEntry]
    total: int


class ReconcileEntry(BaseSchema):
    """Reviewed entry: extracted name, price and the chosen canonical name."""

    product: str = Field(..., min_length=1)
    price: float
    canonical_name: Optional[str] = Field(
        None,
        description="Existing canonical name, or empty to create one from the product name"
    )


class ReconcileRequest(BaseSchema):
    """Apply a reviewed batch to one supplier."""

    supplier_id: str = Field(..., min_length=1)
    entries: list[ReconcileEntry]
    replace_existing: bool = Field(
        default=False,
        description="Clear the supplier's price list before applying the batch"
    )


class ReconcileResult(BaseSchema):
    supplier_id: str
    applied: int
    created_products: list[str]
    cleared_prices: int = 0
    last_update: date


class MergeRequest(BaseSchema):
    """Collapse several canonical names into one."""

    names: list[str] = Field(..., description="Canonical names to merge (at least two)")
    target: str = Field(..., min_length=1, description="Surviving canonical name")


class MergeResult(BaseSchema):
    target: str
    removed: list[str]
    remapped: int
    is_favorite: bool


class ManualEntryCreate(BaseSchema):
    """Add one price by hand."""

    canonical_name: str = Field(..., min_length=1)
    local_name: Optional[str] = Field(
        None,
        description="Supplier's name for the product; defaults to the canonical name"
    )
    price: float
    supplier_id: str = Field(..., min_length=1)
