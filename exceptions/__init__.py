"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    ConflictError,
    ExternalServiceError,
    PersistenceError,
    AuthenticationError,

    # Extraction
    ExtractionError,
    UnsupportedDocumentError,

    # Catalog
    SupplierNotFoundError,
    MasterProductNotFoundError,
    InvalidPriceError,
    UnknownSupplierError,
    InvalidMergeError,
    AmbiguousMappingError,
    StaleSnapshotError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "ExternalServiceError",
    "PersistenceError",
    "AuthenticationError",

    # Extraction
    "ExtractionError",
    "UnsupportedDocumentError",

    # Catalog
    "SupplierNotFoundError",
    "MasterProductNotFoundError",
    "InvalidPriceError",
    "UnknownSupplierError",
    "InvalidMergeError",
    "AmbiguousMappingError",
    "StaleSnapshotError",
]
