"""
Comparison models.

Read-side projections: the comparison table, per-product detail,
ambiguity reports and the savings report.
"""

from typing import Optional
from pydantic import Field

from models.base import BaseSchema
from models.catalog import Supplier


class ComparisonCell(BaseSchema):
    """Price of one master product at one supplier."""

    supplier_id: str
    price: Optional[float] = Field(None, description="None when the supplier has no mapped price")
    is_best: bool = Field(default=False, description="Price equals the row minimum")


class ComparisonRow(BaseSchema):
    """One master product across the selected suppliers."""

    name: str
    is_favorite: bool = False
    cells: list[ComparisonCell]
    min_price: Optional[float] = None
    best_supplier_ids: list[str] = Field(default_factory=list)


class ComparisonTable(BaseSchema):
    """Comparison grid for the catalog view."""

    suppliers: list[Supplier]
    rows: list[ComparisonRow]
    total: int


class ProductSource(BaseSchema):
    """A supplier-local name that maps to a master product."""

    supplier_id: str
    supplier_name: Optional[str] = None
    local_name: str
    price: Optional[float] = None


class ProductDetail(BaseSchema):
    """Everything that maps to one master product."""

    name: str
    is_favorite: bool = False
    sources: list[ProductSource]
    descriptions: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Supplier display name -> local names used for this product"
    )


class AmbiguousMapping(BaseSchema):
    """A supplier with several local names for one master product."""

    supplier_id: str
    canonical_name: str
    local_names: list[str]
    resolved_local_name: str = Field(..., description="Local name price lookups use")


class AmbiguityListResponse(BaseSchema):
    data: list[AmbiguousMapping]
    total: int


class PendingPrice(BaseSchema):
    """Price without a mapping (awaiting review)."""

    local_name: str
    price: float


# ===================
# REPORT
# ===================

class ReportLine(BaseSchema):
    """One master product in the savings report."""

    name: str
    prices: dict[str, Optional[float]] = Field(default_factory=dict)
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    best_supplier_ids: list[str] = Field(default_factory=list)


class SupplierReportLine(BaseSchema):
    name: str
    price: float
    savings: float = Field(..., description="Row maximum minus this supplier's price")


class SupplierReport(BaseSchema):
    """Products priced by one supplier, with totals."""

    supplier_id: str
    supplier_name: str
    lines: list[SupplierReportLine]
    total: float
    total_savings: float


class PriceReport(BaseSchema):
    """Report data for the selected suppliers."""

    supplier_ids: list[str]
    only_differences: bool
    group_by_supplier: bool
    lines: list[ReportLine] = Field(default_factory=list)
    groups: list[SupplierReport] = Field(default_factory=list)
