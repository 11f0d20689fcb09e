"""
Supplier API routes.
"""

from fastapi import APIRouter, Depends, Response
import structlog

from models.catalog import Supplier, SupplierCreate, SupplierListResponse
from models.comparison import PendingPrice
from services.workspace_service import Workspace
from routes.auth import get_current_workspace, handle_error

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/suppliers", tags=["Suppliers"])


@router.get("", response_model=SupplierListResponse)
async def list_suppliers(workspace: Workspace = Depends(get_current_workspace)):
    """List suppliers in the order they were added."""
    suppliers = workspace.list_suppliers()
    return SupplierListResponse(data=suppliers, total=len(suppliers))


@router.post("", response_model=Supplier, status_code=201)
async def add_supplier(
    data: SupplierCreate,
    workspace: Workspace = Depends(get_current_workspace)
):
    """
    Add a supplier.

    Raises:
        422: Empty name
        409: Data changed elsewhere
    """
    try:
        return workspace.add_supplier(data.name)
    except Exception as e:
        return handle_error(e)


@router.delete("/{supplier_id}", status_code=204)
async def delete_supplier(
    supplier_id: str,
    workspace: Workspace = Depends(get_current_workspace)
):
    """
    Delete a supplier with its prices and mappings.

    Master products are kept.

    Raises:
        404: Supplier not found
    """
    try:
        workspace.delete_supplier(supplier_id)
        return Response(status_code=204)
    except Exception as e:
        return handle_error(e)


@router.get("/{supplier_id}/pending", response_model=list[PendingPrice])
async def list_pending_prices(
    supplier_id: str,
    workspace: Workspace = Depends(get_current_workspace)
):
    """
    Prices of a supplier that are not mapped to a master product yet.

    Raises:
        404: Supplier not found
    """
    try:
        return workspace.pending(supplier_id)
    except Exception as e:
        return handle_error(e)
