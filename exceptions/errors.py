"""
Custom exception classes for the application.

Every error carries a stable code so clients can react without
parsing messages.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "SUPPLIER_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class ConflictError(AppError):
    """Conflict with existing resource (409)."""

    def __init__(
        self,
        message: str,
        code: str = "CONFLICT",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details
        )


class ExternalServiceError(AppError):
    """External service failure (503)."""

    def __init__(
        self,
        service: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code=f"{service.upper()}_ERROR",
            message=message,
            status_code=503,
            details={"service": service, **(details or {})}
        )


class PersistenceError(AppError):
    """Document store read or write failed (500). Nothing was applied."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="PERSISTENCE_ERROR",
            message=f"Document store {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


class AuthenticationError(AppError):
    """Missing or rejected credentials (401)."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(
            code="AUTHENTICATION_FAILED",
            message=message,
            status_code=401
        )


# ===================
# EXTRACTION ERRORS
# ===================

class ExtractionError(ExternalServiceError):
    """Price list could not be read or the AI call failed."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            service="extraction",
            message=message,
            details=details
        )


class UnsupportedDocumentError(ValidationError):
    """Uploaded document type cannot be sent to the extractor."""

    def __init__(self, mime_type: str, supported: list[str]):
        super().__init__(
            code="UNSUPPORTED_DOCUMENT_TYPE",
            message=f"Unsupported document type: {mime_type}",
            details={"provided": mime_type, "valid": supported}
        )


# ===================
# CATALOG ERRORS
# ===================

class SupplierNotFoundError(NotFoundError):
    """Supplier not found."""

    def __init__(self, supplier_id: str):
        super().__init__(
            resource="Supplier",
            identifier=supplier_id,
            code="SUPPLIER_NOT_FOUND"
        )


class MasterProductNotFoundError(NotFoundError):
    """Master product not found."""

    def __init__(self, name: str):
        super().__init__(
            resource="Master product",
            identifier=name,
            code="MASTER_PRODUCT_NOT_FOUND"
        )


class InvalidPriceError(ValidationError):
    """Price is not a finite, non-negative number."""

    def __init__(self, price: Any, product: Optional[str] = None):
        super().__init__(
            code="INVALID_PRICE",
            message="Price must be a finite number greater than or equal to 0",
            details={"provided": str(price), "product": product}
        )


class UnknownSupplierError(ValidationError):
    """Manual entry names a supplier that does not exist."""

    def __init__(self, supplier_id: str):
        super().__init__(
            code="UNKNOWN_SUPPLIER",
            message=f"Unknown supplier: {supplier_id}",
            details={"supplier_id": supplier_id}
        )


class InvalidMergeError(ValidationError):
    """Merge request does not name enough products or a target."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(
            code="INVALID_MERGE",
            message=message,
            details=details
        )


class AmbiguousMappingError(ConflictError):
    """Write would give one supplier two local names for the same canonical product."""

    def __init__(self, ambiguities: list[dict]):
        super().__init__(
            code="AMBIGUOUS_MAPPING",
            message=(
                f"{len(ambiguities)} canonical product(s) would have more than "
                "one local name for the same supplier"
            ),
            details={"ambiguities": ambiguities}
        )


class StaleSnapshotError(ConflictError):
    """Stored documents changed since the workspace was loaded."""

    def __init__(self, collections: list[str]):
        super().__init__(
            code="STALE_SNAPSHOT",
            message="Data was changed elsewhere. Reload and try again.",
            details={"collections": collections}
        )
