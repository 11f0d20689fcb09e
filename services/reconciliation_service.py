"""
Reconciliation service. Core write-side logic.

Turns reviewed price list entries and manual entries into mapping,
price and catalog updates. Functions work on a copy of the snapshot
and return it; committing is the workspace's job.
"""

import math
from datetime import date
from typing import Any, Iterable, Optional
import structlog
from rapidfuzz import fuzz

from models.catalog import CatalogSnapshot, MappingKey, MasterProduct
from models.upload import (
    ManualEntryCreate,
    MatchSuggestion,
    PriceEntry,
    ProposedEntry,
    ReconcileEntry,
    ReconcileResult,
)
from exceptions import (
    InvalidPriceError,
    SupplierNotFoundError,
    UnknownSupplierError,
    ValidationError,
)
from utils.text_utils import collation_key, fold_name

logger = structlog.get_logger(__name__)

# Review suggestions for unmapped names
MIN_SUGGESTION_SCORE = 60
SUGGESTION_LIMIT = 3


def validate_price(price: Any, product: Optional[str] = None) -> float:
    """
    Check that a price is a finite, non-negative number.

    Raises:
        InvalidPriceError: For bools, non-numbers, NaN, infinities and negatives
    """
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        raise InvalidPriceError(price, product)
    if not math.isfinite(price) or price < 0:
        raise InvalidPriceError(price, product)
    return float(price)


def _require_supplier(snapshot: CatalogSnapshot, supplier_id: str) -> None:
    if snapshot.get_supplier(supplier_id) is None:
        raise SupplierNotFoundError(supplier_id)


def propose_decisions(
    snapshot: CatalogSnapshot,
    supplier_id: str,
    entries: Iterable[PriceEntry]
) -> list[ProposedEntry]:
    """
    Starting decisions for the review step.

    Names this supplier already mapped get their current canonical
    name; new names start empty (meaning "create new") and carry
    similar master products as suggestions.
    """
    proposed = []
    for entry in entries:
        canonical = snapshot.mappings.get(MappingKey(supplier_id, entry.product), "")
        proposed.append(ProposedEntry(
            product=entry.product,
            price=entry.price,
            canonical_name=canonical,
            suggestions=[] if canonical else suggest_canonical_names(
                entry.product, snapshot.master_products
            ),
        ))
    return proposed


def suggest_canonical_names(
    local_name: str,
    products: list[MasterProduct],
    limit: int = SUGGESTION_LIMIT
) -> list[MatchSuggestion]:
    """
    Master products whose names resemble a supplier's local name.

    Uses token sort ratio on folded names, so word order and case do
    not matter ("5kg Tomaten" finds "Tomaten").

    Args:
        local_name: Name as printed on the price list
        products: Master products to match against
        limit: Max suggestions to return

    Returns:
        Suggestions sorted by score, best first
    """
    folded = fold_name(local_name)
    if not folded:
        return []

    suggestions = []
    for product in products:
        score = int(fuzz.token_sort_ratio(folded, fold_name(product.name)))
        if score >= MIN_SUGGESTION_SCORE:
            suggestions.append(MatchSuggestion(name=product.name, score=score))

    suggestions.sort(key=lambda s: (-s.score, collation_key(s.name)))
    return suggestions[:limit]


def apply_batch(
    snapshot: CatalogSnapshot,
    supplier_id: str,
    entries: list[ReconcileEntry],
    replace_existing: bool = False,
    today: Optional[date] = None
) -> tuple[CatalogSnapshot, ReconcileResult]:
    """
    Apply a reviewed batch of extracted entries for one supplier.

    Per entry, in order: the canonical name is the decision or, when
    empty, the extracted name itself; a master product is created if
    missing; mapping and price for (supplier, extracted name) are
    overwritten. Finally the supplier's last update is set to today.

    With replace_existing the supplier's whole price list is cleared
    first, so prices missing from the new list disappear. Otherwise
    the batch is merged into the existing list.

    Args:
        snapshot: Current state (not modified)
        supplier_id: Supplier the list belongs to
        entries: Reviewed entries
        replace_existing: Treat the batch as the supplier's full list
        today: Date to record (defaults to date.today())

    Returns:
        (updated snapshot, result summary)

    Raises:
        SupplierNotFoundError: Unknown supplier
        ValidationError: Empty product name or invalid price
    """
    _require_supplier(snapshot, supplier_id)

    # Validate everything before touching the copy
    for entry in entries:
        if not entry.product:
            raise ValidationError(
                code="PRODUCT_NAME_REQUIRED",
                message="Product name cannot be empty"
            )
        validate_price(entry.price, entry.product)

    updated = snapshot.copy()
    cleared = 0
    if replace_existing:
        cleared = len(updated.prices.get(supplier_id, {}))
        updated.prices[supplier_id] = {}

    created = []
    for entry in entries:
        canonical = entry.canonical_name or entry.product
        if updated.ensure_master_product(canonical):
            created.append(canonical)
        updated.set_mapping(supplier_id, entry.product, canonical)
        updated.set_price(supplier_id, entry.product, float(entry.price))

    today = today or date.today()
    updated.suppliers = [
        s.model_copy(update={"last_update": today}) if s.id == supplier_id else s
        for s in updated.suppliers
    ]

    logger.info(
        "batch_reconciled",
        supplier_id=supplier_id,
        entries=len(entries),
        created_products=len(created),
        cleared_prices=cleared,
        replace_existing=replace_existing
    )

    return updated, ReconcileResult(
        supplier_id=supplier_id,
        applied=len(entries),
        created_products=created,
        cleared_prices=cleared,
        last_update=today,
    )


def add_manual(
    snapshot: CatalogSnapshot,
    data: ManualEntryCreate
) -> CatalogSnapshot:
    """
    Add one price by hand.

    An empty local name defaults to the canonical name. Creates the
    master product if missing, then writes one mapping and one price.

    Raises:
        ValidationError: Empty canonical name or invalid price
        UnknownSupplierError: Supplier id not in the snapshot
    """
    if not data.canonical_name:
        raise ValidationError(
            code="CANONICAL_NAME_REQUIRED",
            message="Product name cannot be empty"
        )
    price = validate_price(data.price, data.canonical_name)
    if snapshot.get_supplier(data.supplier_id) is None:
        raise UnknownSupplierError(data.supplier_id)

    local_name = data.local_name or data.canonical_name

    updated = snapshot.copy()
    created = updated.ensure_master_product(data.canonical_name)
    updated.set_mapping(data.supplier_id, local_name, data.canonical_name)
    updated.set_price(data.supplier_id, local_name, price)

    logger.info(
        "manual_entry_added",
        supplier_id=data.supplier_id,
        canonical_name=data.canonical_name,
        local_name=local_name,
        created_product=created
    )
    return updated
