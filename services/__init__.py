"""
Business logic services.

Each service handles one domain area.
"""

from services.document_store_service import DocumentStoreService, get_document_store
from services.workspace_service import Workspace, get_workspace, close_workspace
from services.extraction_service import ExtractionService, get_extraction_service
from services.auth_service import AuthService, get_auth_service

__all__ = [
    "DocumentStoreService",
    "get_document_store",
    "Workspace",
    "get_workspace",
    "close_workspace",
    "ExtractionService",
    "get_extraction_service",
    "AuthService",
    "get_auth_service",
]
