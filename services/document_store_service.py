"""
Document store service.

Each user owns one JSON document per collection in a Supabase table:
    user_documents(user_id, document_id, value, version, updated_at)

Writes replace whole documents in a single upsert request. Every
document carries a version; a write names the versions it was based
on and is refused if the stored ones moved on. Subscribers get the
current documents when they subscribe and again after every write
or refresh.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional
import structlog
from pydantic import ValidationError as PydanticValidationError

from config import get_supabase_client, settings
from models.catalog import (
    ALL_COLLECTIONS,
    CatalogSnapshot,
    Collection,
    MappingKey,
    MappingRecord,
    MasterProduct,
    Supplier,
)
from exceptions import PersistenceError, StaleSnapshotError

logger = structlog.get_logger(__name__)

LEGACY_KEY_SEPARATOR = "|"


@dataclass
class StoredDocument:
    """One collection document as stored."""
    document_id: str
    value: Any
    version: int = 0


Listener = Callable[[dict[str, StoredDocument]], None]


# ===================
# DECODING (store -> snapshot)
# ===================

def decode_suppliers(value: Any, rejected: Optional[list] = None) -> list[Supplier]:
    """
    Validate the suppliers document. Malformed or duplicate rows are dropped.

    Malformed rows are appended to rejected when given; duplicates are not.
    """
    suppliers = []
    seen = set()
    for row in value if isinstance(value, list) else []:
        try:
            supplier = Supplier.model_validate(row)
        except PydanticValidationError as e:
            logger.warning("invalid_supplier_dropped", row=str(row)[:200], error=str(e))
            if rejected is not None:
                rejected.append(row)
            continue
        if supplier.id in seen:
            logger.warning("duplicate_supplier_dropped", supplier_id=supplier.id)
            continue
        seen.add(supplier.id)
        suppliers.append(supplier)
    return suppliers


def decode_prices(value: Any, rejected: Optional[dict] = None) -> dict[str, dict[str, float]]:
    """
    Validate the prices document: supplier id -> local name -> price.

    rejected collects what was dropped: the raw value for a table that
    is not a map, otherwise a map of the dropped entries.
    """
    prices: dict[str, dict[str, float]] = {}
    if not isinstance(value, dict):
        return prices

    for supplier_id, table in value.items():
        if not isinstance(table, dict):
            logger.warning("invalid_price_table_dropped", supplier_id=supplier_id)
            if rejected is not None:
                rejected[supplier_id] = table
            continue
        clean = {}
        for local_name, price in table.items():
            if (
                isinstance(price, bool)
                or not isinstance(price, (int, float))
                or not math.isfinite(price)
                or price < 0
            ):
                logger.warning(
                    "invalid_price_dropped",
                    supplier_id=supplier_id,
                    local_name=local_name,
                    price=str(price)
                )
                if rejected is not None:
                    rejected.setdefault(supplier_id, {})[local_name] = price
                continue
            clean[local_name] = float(price)
        prices[supplier_id] = clean
    return prices


def decode_mappings(value: Any, rejected: Optional[list] = None) -> dict[MappingKey, str]:
    """
    Validate the mappings document.

    Accepts the list-of-records form and the older flat map keyed by
    "<supplier_id>|<local_name>". Supplier ids never contain "|", so
    legacy keys split at the first separator. A bad legacy entry is
    kept in rejected as {"legacy_key": ..., "canonical_name": ...}.
    """
    mappings: dict[MappingKey, str] = {}

    if isinstance(value, dict):
        for raw_key, canonical in value.items():
            supplier_id, sep, local_name = str(raw_key).partition(LEGACY_KEY_SEPARATOR)
            if not sep or not supplier_id or not local_name or not canonical:
                logger.warning("invalid_legacy_mapping_dropped", key=raw_key)
                if rejected is not None:
                    rejected.append({"legacy_key": raw_key, "canonical_name": canonical})
                continue
            mappings[MappingKey(supplier_id, local_name)] = str(canonical)
        return mappings

    for row in value if isinstance(value, list) else []:
        try:
            record = MappingRecord.model_validate(row)
        except PydanticValidationError as e:
            logger.warning("invalid_mapping_dropped", row=str(row)[:200], error=str(e))
            if rejected is not None:
                rejected.append(row)
            continue
        mappings[record.key] = record.canonical_name
    return mappings


def decode_master_products(value: Any, rejected: Optional[list] = None) -> list[MasterProduct]:
    """Validate the master products document. Names stay unique (first wins)."""
    products = []
    seen = set()
    for row in value if isinstance(value, list) else []:
        try:
            product = MasterProduct.model_validate(row)
        except PydanticValidationError as e:
            logger.warning("invalid_master_product_dropped", row=str(row)[:200], error=str(e))
            if rejected is not None:
                rejected.append(row)
            continue
        if product.name in seen:
            logger.warning("duplicate_master_product_dropped", name=product.name)
            continue
        seen.add(product.name)
        products.append(product)
    return products


def apply_documents(snapshot: CatalogSnapshot, documents: dict[str, StoredDocument]) -> None:
    """Replace the snapshot collections present in documents."""
    for document_id, document in documents.items():
        if document_id == Collection.PRICES.value:
            rejected = {}
            snapshot.prices = decode_prices(document.value, rejected)
        elif document_id == Collection.SUPPLIERS.value:
            rejected = []
            snapshot.suppliers = decode_suppliers(document.value, rejected)
        elif document_id == Collection.MAPPINGS.value:
            rejected = []
            snapshot.mappings = decode_mappings(document.value, rejected)
        elif document_id == Collection.MASTER_PRODUCTS.value:
            rejected = []
            snapshot.master_products = decode_master_products(document.value, rejected)
        else:
            continue
        snapshot.versions[document_id] = document.version
        if rejected:
            snapshot.rejected[document_id] = rejected
        else:
            snapshot.rejected.pop(document_id, None)


# ===================
# ENCODING (snapshot -> store)
# ===================

def _encode_prices(snapshot: CatalogSnapshot) -> dict[str, Any]:
    # Rejected entries go back unless a valid price took their place
    encoded: dict[str, Any] = {}
    rejected = snapshot.rejected.get(Collection.PRICES.value, {})
    for supplier_id, raw in rejected.items():
        if isinstance(raw, dict):
            table = snapshot.prices.get(supplier_id, {})
            kept = {name: value for name, value in raw.items() if name not in table}
            if kept:
                encoded[supplier_id] = kept
        elif supplier_id not in snapshot.prices:
            encoded[supplier_id] = raw

    for supplier_id, table in snapshot.prices.items():
        if isinstance(encoded.get(supplier_id), dict):
            encoded[supplier_id].update(table)
        else:
            encoded[supplier_id] = dict(table)
    return encoded


def encode_collection(snapshot: CatalogSnapshot, collection: Collection) -> Any:
    """JSON value of one collection, rejected rows included."""
    if collection == Collection.PRICES:
        return _encode_prices(snapshot)

    rejected = list(snapshot.rejected.get(collection.value, []))
    if collection == Collection.SUPPLIERS:
        return [s.model_dump(mode="json") for s in snapshot.suppliers] + rejected
    if collection == Collection.MAPPINGS:
        return [
            {
                "supplier_id": key.supplier_id,
                "local_name": key.local_name,
                "canonical_name": canonical,
            }
            for key, canonical in snapshot.mappings.items()
        ] + rejected
    return [p.model_dump(mode="json") for p in snapshot.master_products] + rejected


# ===================
# STORE
# ===================

class DocumentStoreService:
    """
    Per-user document persistence on Supabase.

    Holds the in-process subscriber list; pushes happen after
    successful writes and on refresh.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = settings.documents_table
        self._listeners: dict[str, list[tuple[frozenset[str], Listener]]] = {}

    # ===================
    # READ OPERATIONS
    # ===================

    def read(
        self,
        user_id: str,
        document_ids: Iterable[str] = tuple(c.value for c in ALL_COLLECTIONS)
    ) -> dict[str, StoredDocument]:
        """
        Read documents of one user.

        Missing documents come back with value None and version 0.

        Raises:
            PersistenceError: If the query fails
        """
        wanted = list(document_ids)
        logger.debug("reading_documents", user_id=user_id, documents=wanted)

        try:
            result = (
                self.db.table(self.table)
                .select("document_id, value, version")
                .eq("user_id", user_id)
                .execute()
            )
        except Exception as e:
            logger.error("read_documents_failed", user_id=user_id, error=str(e))
            raise PersistenceError("select", str(e))

        rows = {row["document_id"]: row for row in result.data or []}
        return {
            document_id: StoredDocument(
                document_id=document_id,
                value=rows.get(document_id, {}).get("value"),
                version=rows.get(document_id, {}).get("version") or 0,
            )
            for document_id in wanted
        }

    # ===================
    # WRITE OPERATIONS
    # ===================

    def write_many(
        self,
        user_id: str,
        values: dict[str, Any],
        base_versions: Optional[dict[str, int]] = None
    ) -> dict[str, StoredDocument]:
        """
        Replace several documents of one user in one request.

        Args:
            user_id: Owner
            values: document_id -> new JSON value
            base_versions: document_id -> version the change was computed
                from. When given, the write is refused if any stored
                version differs.

        Returns:
            The written documents with their new versions

        Raises:
            StaleSnapshotError: A base version is out of date
            PersistenceError: If the store rejects the write
        """
        current = self.read(user_id, values.keys())

        if base_versions is not None:
            stale = sorted(
                document_id
                for document_id in values
                if current[document_id].version != base_versions.get(document_id, 0)
            )
            if stale:
                logger.warning(
                    "stale_write_rejected",
                    user_id=user_id,
                    documents=stale
                )
                raise StaleSnapshotError(stale)

        now = datetime.now(timezone.utc).isoformat()
        rows = [
            {
                "user_id": user_id,
                "document_id": document_id,
                "value": value,
                "version": current[document_id].version + 1,
                "updated_at": now,
            }
            for document_id, value in values.items()
        ]

        logger.info(
            "writing_documents",
            user_id=user_id,
            documents=list(values.keys())
        )

        try:
            (
                self.db.table(self.table)
                .upsert(rows, on_conflict="user_id,document_id")
                .execute()
            )
        except Exception as e:
            logger.error(
                "write_documents_failed",
                user_id=user_id,
                documents=list(values.keys()),
                error=str(e)
            )
            raise PersistenceError("upsert", str(e))

        written = {
            row["document_id"]: StoredDocument(
                document_id=row["document_id"],
                value=row["value"],
                version=row["version"],
            )
            for row in rows
        }
        self._notify(user_id, written)
        return written

    # ===================
    # SUBSCRIPTIONS
    # ===================

    def subscribe(
        self,
        user_id: str,
        listener: Listener,
        document_ids: Iterable[str] = tuple(c.value for c in ALL_COLLECTIONS)
    ) -> Callable[[], None]:
        """
        Subscribe to documents of one user.

        The listener is called once right away with the current
        documents, then after every write or refresh touching them.

        Returns:
            Function that removes the subscription
        """
        wanted = frozenset(document_ids)
        initial = self.read(user_id, wanted)

        entry = (wanted, listener)
        self._listeners.setdefault(user_id, []).append(entry)
        listener(initial)

        def unsubscribe() -> None:
            listeners = self._listeners.get(user_id, [])
            if entry in listeners:
                listeners.remove(entry)

        return unsubscribe

    def refresh(self, user_id: str) -> dict[str, StoredDocument]:
        """Re-read a user's documents and push them to subscribers."""
        documents = self.read(user_id)
        self._notify(user_id, documents)
        return documents

    def _notify(self, user_id: str, documents: dict[str, StoredDocument]) -> None:
        for wanted, listener in list(self._listeners.get(user_id, [])):
            relevant = {k: v for k, v in documents.items() if k in wanted}
            if relevant:
                listener(relevant)


# Singleton instance
_document_store: Optional[DocumentStoreService] = None


def get_document_store() -> DocumentStoreService:
    """Get or create DocumentStoreService instance."""
    global _document_store
    if _document_store is None:
        _document_store = DocumentStoreService()
    return _document_store
