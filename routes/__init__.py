"""
API route modules.

Each module defines routes for one domain area.
"""

from routes.auth import router as auth_router
from routes.suppliers import router as suppliers_router
from routes.catalog import router as catalog_router
from routes.uploads import router as uploads_router

__all__ = [
    "auth_router",
    "suppliers_router",
    "catalog_router",
    "uploads_router",
]
