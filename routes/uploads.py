"""
Price list upload routes.

Two steps: /extract reads a file and proposes mappings without
writing anything; /reconcile applies the reviewed batch.
"""

from fastapi import APIRouter, Depends, File, Form, UploadFile
import structlog

from config import settings
from models.upload import ExtractionResult, ReconcileRequest, ReconcileResult
from services.extraction_service import get_extraction_service
from services.workspace_service import Workspace
from routes.auth import get_current_workspace, handle_error
from exceptions import SupplierNotFoundError, ValidationError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/uploads", tags=["Uploads"])


@router.post("/extract", response_model=ExtractionResult)
async def extract_price_list(
    file: UploadFile = File(..., description="Price list (PDF or image)"),
    supplier_id: str = Form(..., description="Supplier the list belongs to"),
    workspace: Workspace = Depends(get_current_workspace)
):
    """
    Read a supplier price list and propose mappings.

    Names this supplier already mapped come back with their current
    canonical name; new names come back with an empty one.

    Raises:
        404: Supplier not found
        422: Unsupported file type, empty or oversized file
        503: Extraction failed
    """
    logger.info(
        "price_list_upload_started",
        filename=file.filename,
        content_type=file.content_type,
        supplier_id=supplier_id
    )

    try:
        if workspace.snapshot.get_supplier(supplier_id) is None:
            raise SupplierNotFoundError(supplier_id)

        document = await file.read()
        if not document:
            raise ValidationError(code="EMPTY_FILE", message="Uploaded file is empty")
        if len(document) > settings.max_upload_mb * 1024 * 1024:
            raise ValidationError(
                code="FILE_TOO_LARGE",
                message=f"File exceeds {settings.max_upload_mb} MB",
                details={"size": len(document)}
            )

        mime_type = file.content_type or ""
        entries = await get_extraction_service().extract_prices(document, mime_type)
        proposed = workspace.propose(supplier_id, entries)

        return ExtractionResult(
            supplier_id=supplier_id,
            filename=file.filename,
            mime_type=mime_type,
            entries=proposed,
            total=len(proposed),
        )

    except Exception as e:
        logger.warning("price_list_upload_failed", supplier_id=supplier_id, error=str(e))
        return handle_error(e)


@router.post("/reconcile", response_model=ReconcileResult)
async def reconcile_price_list(
    data: ReconcileRequest,
    workspace: Workspace = Depends(get_current_workspace)
):
    """
    Apply a reviewed price list.

    Mappings, prices, new master products and the supplier's last
    update are written together.

    Raises:
        404: Supplier not found
        409: Data changed elsewhere, or strict mappings rejected the batch
        422: Invalid price or empty name
    """
    try:
        return workspace.reconcile(data)
    except Exception as e:
        return handle_error(e)
