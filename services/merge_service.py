"""
Merge service.

Collapses duplicate canonical names into one survivor and points
every mapping of the merged names at it.
"""

from typing import Iterable
import structlog

from models.catalog import CatalogSnapshot, MasterProduct
from models.upload import MergeResult
from exceptions import InvalidMergeError

logger = structlog.get_logger(__name__)


def merge(
    snapshot: CatalogSnapshot,
    names: Iterable[str],
    target: str
) -> tuple[CatalogSnapshot, MergeResult]:
    """
    Merge canonical names into target.

    The target may be one of the merged names or a new name. Merged
    records other than the target are removed from the catalog; the
    target is created if missing and becomes a favorite if any merged
    record was one. Every mapping whose value is a merged name now
    points to target, whatever supplier it belongs to. Prices are
    untouched, so everything that resolved before still resolves,
    now under target.

    Args:
        snapshot: Current state (not modified)
        names: Canonical names to merge (at least two distinct)
        target: Surviving name

    Returns:
        (updated snapshot, result summary)

    Raises:
        InvalidMergeError: Fewer than two names or empty target
    """
    merged_names = {name for name in names if name}
    if len(merged_names) < 2:
        raise InvalidMergeError(
            "Select at least two products to merge",
            details={"names": sorted(merged_names)}
        )
    if not target:
        raise InvalidMergeError("Merge target cannot be empty")

    updated = snapshot.copy()

    is_favorite = any(
        p.is_favorite for p in updated.master_products
        if p.name in merged_names or p.name == target
    )
    removed = [
        p.name for p in updated.master_products
        if p.name in merged_names and p.name != target
    ]

    kept = []
    target_seen = False
    for product in updated.master_products:
        if product.name == target:
            if not target_seen:
                kept.append(MasterProduct(name=target, is_favorite=is_favorite))
                target_seen = True
            continue
        if product.name in merged_names:
            continue
        kept.append(product)
    if not target_seen:
        kept.append(MasterProduct(name=target, is_favorite=is_favorite))
    updated.master_products = kept

    remapped = 0
    for key, canonical in updated.mappings.items():
        if canonical in merged_names and canonical != target:
            updated.mappings[key] = target
            remapped += 1

    logger.info(
        "products_merged",
        target=target,
        removed=removed,
        remapped=remapped,
        is_favorite=is_favorite
    )

    return updated, MergeResult(
        target=target,
        removed=removed,
        remapped=remapped,
        is_favorite=is_favorite,
    )
