"""
Workspace service: one user's catalog state.

The workspace owns the current snapshot of the four collections,
kept up to date through a document store subscription. Every
mutation is computed on a copy of the snapshot and committed as a
single write of the changed documents, based on the versions the
snapshot was loaded with. Reads never hit the network.
"""

from datetime import datetime, timedelta
from typing import Optional
from uuid import uuid4
import structlog

from config import settings
from models.catalog import (
    ALL_COLLECTIONS,
    CatalogSnapshot,
    Collection,
    MasterProduct,
    Supplier,
)
from models.comparison import (
    AmbiguousMapping,
    ComparisonTable,
    PendingPrice,
    PriceReport,
    ProductDetail,
)
from models.upload import (
    ManualEntryCreate,
    MergeResult,
    PriceEntry,
    ProposedEntry,
    ReconcileRequest,
    ReconcileResult,
)
from services import comparison_service, merge_service, reconciliation_service
from services.document_store_service import (
    DocumentStoreService,
    StoredDocument,
    apply_documents,
    encode_collection,
    get_document_store,
)
from exceptions import (
    AmbiguousMappingError,
    MasterProductNotFoundError,
    SupplierNotFoundError,
    ValidationError,
)

logger = structlog.get_logger(__name__)


class Workspace:
    """
    Catalog state of one signed-in user.

    Handles supplier management, reconciliation, merges, manual
    entries and the read-side projections over the resident snapshot.
    """

    def __init__(self, user_id: str, store: Optional[DocumentStoreService] = None):
        self.user_id = user_id
        self.store = store or get_document_store()
        self._snapshot = CatalogSnapshot()
        self._unsubscribe = self.store.subscribe(user_id, self._on_documents)

    def _on_documents(self, documents: dict[str, StoredDocument]) -> None:
        updated = self._snapshot.copy()
        apply_documents(updated, documents)
        self._snapshot = updated
        logger.debug(
            "workspace_updated",
            user_id=self.user_id,
            documents=sorted(documents.keys())
        )

    @property
    def snapshot(self) -> CatalogSnapshot:
        """Copy of the current state."""
        return self._snapshot.copy()

    def refresh(self) -> None:
        """Pull documents changed elsewhere."""
        self.store.refresh(self.user_id)

    def close(self) -> None:
        self._unsubscribe()

    # ===================
    # COMMIT
    # ===================

    def _commit(
        self,
        updated: CatalogSnapshot,
        collections: tuple[Collection, ...],
        enforce_strict: bool = True
    ) -> None:
        """
        Write the given collections of updated as one batch.

        With enforce_strict False a new ambiguity is only logged, even in
        strict mode.

        Raises:
            AmbiguousMappingError: Strict mode and the change adds an ambiguity
            StaleSnapshotError: Stored documents moved since the snapshot
            PersistenceError: Write failed; nothing applied
        """
        if Collection.MAPPINGS in collections:
            self._check_ambiguities(updated, enforce_strict)

        values = {c.value: encode_collection(updated, c) for c in collections}
        base_versions = {
            c.value: self._snapshot.versions.get(c.value, 0) for c in collections
        }
        self.store.write_many(self.user_id, values, base_versions=base_versions)

    def _check_ambiguities(self, updated: CatalogSnapshot, enforce_strict: bool) -> None:
        before = {
            (a.supplier_id, a.canonical_name)
            for a in comparison_service.find_ambiguous_mappings(self._snapshot)
        }
        introduced = [
            a for a in comparison_service.find_ambiguous_mappings(updated)
            if (a.supplier_id, a.canonical_name) not in before
        ]
        if not introduced:
            return

        details = [a.model_dump() for a in introduced]
        if settings.strict_mappings and enforce_strict:
            raise AmbiguousMappingError(details)
        logger.warning(
            "ambiguous_mapping_introduced",
            user_id=self.user_id,
            ambiguities=details
        )

    # ===================
    # SUPPLIERS
    # ===================

    def list_suppliers(self) -> list[Supplier]:
        return list(self._snapshot.suppliers)

    def add_supplier(self, name: str) -> Supplier:
        """
        Add a supplier with a generated id.

        Raises:
            ValidationError: Empty name
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError(
                code="SUPPLIER_NAME_REQUIRED",
                message="Supplier name cannot be empty"
            )

        supplier = Supplier(id=uuid4().hex, name=name)
        updated = self._snapshot.copy()
        updated.suppliers.append(supplier)
        self._commit(updated, (Collection.SUPPLIERS,))

        logger.info("supplier_added", supplier_id=supplier.id, name=name)
        return supplier

    def delete_supplier(self, supplier_id: str) -> None:
        """
        Delete a supplier with its prices and mappings.

        Master products stay, even if nothing prices them anymore.

        Raises:
            SupplierNotFoundError: Unknown supplier
        """
        if self._snapshot.get_supplier(supplier_id) is None:
            raise SupplierNotFoundError(supplier_id)

        updated = self._snapshot.copy()
        updated.suppliers = [s for s in updated.suppliers if s.id != supplier_id]
        updated.drop_rejected_rows(supplier_id)
        removed_prices = len(updated.prices.pop(supplier_id, {}))
        removed_mappings = [k for k in updated.mappings if k.supplier_id == supplier_id]
        for key in removed_mappings:
            del updated.mappings[key]

        self._commit(
            updated,
            (Collection.SUPPLIERS, Collection.PRICES, Collection.MAPPINGS)
        )

        logger.info(
            "supplier_deleted",
            supplier_id=supplier_id,
            removed_prices=removed_prices,
            removed_mappings=len(removed_mappings)
        )

    # ===================
    # CATALOG EDITS
    # ===================

    def toggle_favorite(self, name: str) -> MasterProduct:
        """
        Flip the favorite flag of a master product.

        Raises:
            MasterProductNotFoundError: Unknown name
        """
        if self._snapshot.get_master_product(name) is None:
            raise MasterProductNotFoundError(name)

        updated = self._snapshot.copy()
        updated.master_products = [
            p.model_copy(update={"is_favorite": not p.is_favorite}) if p.name == name else p
            for p in updated.master_products
        ]
        self._commit(updated, (Collection.MASTER_PRODUCTS,))

        product = updated.get_master_product(name)
        logger.info("favorite_toggled", name=name, is_favorite=product.is_favorite)
        return product

    def propose(self, supplier_id: str, entries: list[PriceEntry]) -> list[ProposedEntry]:
        """Review defaults for freshly extracted entries."""
        if self._snapshot.get_supplier(supplier_id) is None:
            raise SupplierNotFoundError(supplier_id)
        return reconciliation_service.propose_decisions(self._snapshot, supplier_id, entries)

    def reconcile(self, request: ReconcileRequest) -> ReconcileResult:
        """Apply a reviewed batch; mappings, prices, catalog and suppliers in one write."""
        updated, result = reconciliation_service.apply_batch(
            self._snapshot,
            request.supplier_id,
            request.entries,
            replace_existing=request.replace_existing,
        )
        self._commit(updated, ALL_COLLECTIONS)
        return result

    def merge(self, names: list[str], target: str) -> MergeResult:
        """
        Merge canonical names; mappings and catalog in one write.

        Ambiguities the merge leaves behind are logged, never refused,
        even in strict mode.
        """
        updated, result = merge_service.merge(self._snapshot, names, target)
        self._commit(
            updated,
            (Collection.MAPPINGS, Collection.MASTER_PRODUCTS),
            enforce_strict=False
        )
        return result

    def add_manual(self, data: ManualEntryCreate) -> None:
        """Add one price by hand; mappings, prices and catalog in one write."""
        updated = reconciliation_service.add_manual(self._snapshot, data)
        self._commit(
            updated,
            (Collection.MAPPINGS, Collection.PRICES, Collection.MASTER_PRODUCTS)
        )

    # ===================
    # READ PROJECTIONS
    # ===================

    def master_products(self, query: Optional[str] = None) -> list[MasterProduct]:
        return comparison_service.filter_and_sort(self._snapshot.master_products, query)

    def comparison(
        self,
        query: Optional[str] = None,
        supplier_ids: Optional[list[str]] = None
    ) -> ComparisonTable:
        return comparison_service.comparison_table(self._snapshot, query, supplier_ids)

    def product_detail(self, name: str) -> ProductDetail:
        if self._snapshot.get_master_product(name) is None:
            raise MasterProductNotFoundError(name)
        return comparison_service.product_detail(self._snapshot, name)

    def ambiguities(self) -> list[AmbiguousMapping]:
        return comparison_service.find_ambiguous_mappings(self._snapshot)

    def pending(self, supplier_id: str) -> list[PendingPrice]:
        if self._snapshot.get_supplier(supplier_id) is None:
            raise SupplierNotFoundError(supplier_id)
        return comparison_service.pending_prices(self._snapshot, supplier_id)

    def report(
        self,
        supplier_ids: Optional[list[str]] = None,
        only_differences: bool = True,
        group_by_supplier: bool = True,
        sort_by_savings: bool = False
    ) -> PriceReport:
        return comparison_service.price_report(
            self._snapshot,
            supplier_ids=supplier_ids,
            only_differences=only_differences,
            group_by_supplier=group_by_supplier,
            sort_by_savings=sort_by_savings,
        )


# One workspace per user, closed after settings.workspace_idle_minutes idle
_workspaces: dict[str, tuple[datetime, Workspace]] = {}


def get_workspace(user_id: str) -> Workspace:
    """Get or create the Workspace of a user."""
    _cleanup_idle()
    entry = _workspaces.get(user_id)
    if entry is None:
        workspace = Workspace(user_id)
        logger.info("workspace_opened", user_id=user_id)
    else:
        _, workspace = entry
    _workspaces[user_id] = (datetime.now(), workspace)
    return workspace


def close_workspace(user_id: str) -> None:
    """Drop a user's workspace (on sign-out)."""
    entry = _workspaces.pop(user_id, None)
    if entry is not None:
        entry[1].close()
        logger.info("workspace_closed", user_id=user_id)


def _cleanup_idle() -> None:
    """Close workspaces unused for longer than the idle limit."""
    cutoff = datetime.now() - timedelta(minutes=settings.workspace_idle_minutes)
    idle = [user_id for user_id, (last_used, _) in _workspaces.items() if last_used < cutoff]
    for user_id in idle:
        _, workspace = _workspaces.pop(user_id)
        workspace.close()
        logger.info("workspace_expired", user_id=user_id)
