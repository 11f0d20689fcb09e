"""
Catalog API routes.

Comparison grid, product detail, favorites, merges, manual entries
and the savings report.
"""

from fastapi import APIRouter, Depends, Query
from typing import Optional
import structlog

from models.catalog import MasterProduct, MasterProductListResponse
from models.comparison import (
    AmbiguityListResponse,
    ComparisonTable,
    PriceReport,
    ProductDetail,
)
from models.upload import ManualEntryCreate, MergeRequest, MergeResult
from services.workspace_service import Workspace
from routes.auth import get_current_workspace, handle_error

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/catalog", tags=["Catalog"])


@router.get("/products", response_model=MasterProductListResponse)
async def list_master_products(
    q: Optional[str] = Query(None, description="Case-insensitive name filter"),
    workspace: Workspace = Depends(get_current_workspace)
):
    """Master products, favorites first, then alphabetical."""
    products = workspace.master_products(q)
    return MasterProductListResponse(data=products, total=len(products))


@router.get("/comparison", response_model=ComparisonTable)
async def get_comparison(
    q: Optional[str] = Query(None, description="Case-insensitive name filter"),
    supplier_id: Optional[list[str]] = Query(None, description="Restrict to these suppliers"),
    workspace: Workspace = Depends(get_current_workspace)
):
    """
    Price grid: one row per master product, one column per supplier.

    Every supplier sharing the row minimum is marked best.
    """
    return workspace.comparison(q, supplier_id)


@router.get("/products/detail", response_model=ProductDetail)
async def get_product_detail(
    name: str = Query(..., min_length=1, description="Master product name"),
    workspace: Workspace = Depends(get_current_workspace)
):
    """
    Supplier names and prices behind one master product.

    Raises:
        404: Master product not found
    """
    try:
        return workspace.product_detail(name)
    except Exception as e:
        return handle_error(e)


@router.post("/products/favorite", response_model=MasterProduct)
async def toggle_favorite(
    name: str = Query(..., min_length=1, description="Master product name"),
    workspace: Workspace = Depends(get_current_workspace)
):
    """
    Flip the favorite flag.

    Raises:
        404: Master product not found
    """
    try:
        return workspace.toggle_favorite(name)
    except Exception as e:
        return handle_error(e)


@router.post("/merge", response_model=MergeResult)
async def merge_products(
    data: MergeRequest,
    workspace: Workspace = Depends(get_current_workspace)
):
    """
    Merge duplicate master products into one.

    Raises:
        422: Fewer than two names or empty target
        409: Data changed elsewhere, or strict mappings rejected the result
    """
    try:
        return workspace.merge(data.names, data.target)
    except Exception as e:
        return handle_error(e)


@router.post("/manual", status_code=201)
async def add_manual_entry(
    data: ManualEntryCreate,
    workspace: Workspace = Depends(get_current_workspace)
):
    """
    Add one supplier price by hand.

    Raises:
        422: Invalid price, empty name or unknown supplier
    """
    try:
        workspace.add_manual(data)
        return {"status": "created", "canonical_name": data.canonical_name}
    except Exception as e:
        return handle_error(e)


@router.get("/ambiguities", response_model=AmbiguityListResponse)
async def list_ambiguities(workspace: Workspace = Depends(get_current_workspace)):
    """Suppliers with several local names for one master product."""
    ambiguities = workspace.ambiguities()
    return AmbiguityListResponse(data=ambiguities, total=len(ambiguities))


@router.get("/report", response_model=PriceReport)
async def get_report(
    supplier_id: Optional[list[str]] = Query(None, description="Suppliers to include"),
    only_differences: bool = Query(True, description="Only products with differing prices"),
    group_by_supplier: bool = Query(True, description="Group lines per supplier"),
    sort_by_savings: bool = Query(False, description="Largest savings first"),
    workspace: Workspace = Depends(get_current_workspace)
):
    """Savings report data for the selected suppliers."""
    return workspace.report(
        supplier_ids=supplier_id,
        only_differences=only_differences,
        group_by_supplier=group_by_supplier,
        sort_by_savings=sort_by_savings,
    )


@router.post("/refresh", status_code=204)
async def refresh_workspace(workspace: Workspace = Depends(get_current_workspace)):
    """
    Reload documents changed elsewhere.

    Raises:
        500: Document store unavailable
    """
    try:
        workspace.refresh()
    except Exception as e:
        return handle_error(e)
