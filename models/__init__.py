"""
Pydantic models for validation and serialization.
"""

from models.base import BaseSchema, RecordSchema
from models.catalog import (
    Collection,
    ALL_COLLECTIONS,
    MappingKey,
    Supplier,
    MasterProduct,
    MappingRecord,
    SupplierCreate,
    SupplierListResponse,
    MasterProductListResponse,
    CatalogSnapshot,
)
from models.comparison import (
    ComparisonCell,
    ComparisonRow,
    ComparisonTable,
    ProductSource,
    ProductDetail,
    AmbiguousMapping,
    AmbiguityListResponse,
    PendingPrice,
    ReportLine,
    SupplierReportLine,
    SupplierReport,
    PriceReport,
)
from models.upload import (
    PriceEntry,
    MatchSuggestion,
    ProposedEntry,
    ExtractionResult,
    ReconcileEntry,
    ReconcileRequest,
    ReconcileResult,
    MergeRequest,
    MergeResult,
    ManualEntryCreate,
)
from models.auth import Credentials, AuthSession

__all__ = [
    # Base
    "BaseSchema",
    "RecordSchema",

    # Catalog
    "Collection",
    "ALL_COLLECTIONS",
    "MappingKey",
    "Supplier",
    "MasterProduct",
    "MappingRecord",
    "SupplierCreate",
    "SupplierListResponse",
    "MasterProductListResponse",
    "CatalogSnapshot",

    # Comparison
    "ComparisonCell",
    "ComparisonRow",
    "ComparisonTable",
    "ProductSource",
    "ProductDetail",
    "AmbiguousMapping",
    "AmbiguityListResponse",
    "PendingPrice",
    "ReportLine",
    "SupplierReportLine",
    "SupplierReport",
    "PriceReport",

    # Upload
    "PriceEntry",
    "MatchSuggestion",
    "ProposedEntry",
    "ExtractionResult",
    "ReconcileEntry",
    "ReconcileRequest",
    "ReconcileResult",
    "MergeRequest",
    "MergeResult",
    "ManualEntryCreate",

    # Auth
    "Credentials",
    "AuthSession",
]
