"""
Price comparison. Core read-side logic.

Resolves canonical product names to supplier prices through the
mapping store and derives per-product minimums, best suppliers,
product detail and the savings report.

Every function is pure over a CatalogSnapshot and never touches
the network.
"""

from typing import Iterable, Optional
import structlog

from models.catalog import CatalogSnapshot, MappingKey, MasterProduct
from models.comparison import (
    AmbiguousMapping,
    ComparisonCell,
    ComparisonRow,
    ComparisonTable,
    PendingPrice,
    PriceReport,
    ProductDetail,
    ProductSource,
    ReportLine,
    SupplierReport,
    SupplierReportLine,
)
from utils.text_utils import collation_key, matches_query

logger = structlog.get_logger(__name__)


# ===================
# PRICE RESOLUTION
# ===================

def local_names_for(
    snapshot: CatalogSnapshot,
    supplier_id: str,
    canonical_name: str
) -> list[str]:
    """Local names of one supplier mapped to canonical_name, in store order."""
    return [
        key.local_name
        for key, canonical in snapshot.mappings.items()
        if key.supplier_id == supplier_id and canonical == canonical_name
    ]


def resolve_price(
    snapshot: CatalogSnapshot,
    supplier_id: str,
    canonical_name: str
) -> Optional[float]:
    """
    Price a supplier charges for a canonical product.

    Uses the first mapping entry (in store order) of that supplier whose
    value is canonical_name and looks its local name up in the
    supplier's price table.

    Args:
        snapshot: Current catalog state
        supplier_id: Supplier to price
        canonical_name: Master product name

    Returns:
        Price, or None when nothing is mapped or the mapped name has no price
    """
    local_names = local_names_for(snapshot, supplier_id, canonical_name)
    if not local_names:
        return None

    if len(local_names) > 1:
        logger.warning(
            "ambiguous_mapping",
            supplier_id=supplier_id,
            canonical_name=canonical_name,
            local_names=local_names,
            resolved=local_names[0]
        )

    supplier_prices = snapshot.prices.get(supplier_id)
    if not supplier_prices:
        return None

    return supplier_prices.get(local_names[0])


def resolve_prices(
    snapshot: CatalogSnapshot,
    canonical_name: str,
    supplier_ids: Iterable[str]
) -> dict[str, Optional[float]]:
    """resolve_price for each supplier, keyed by supplier id."""
    return {
        supplier_id: resolve_price(snapshot, supplier_id, canonical_name)
        for supplier_id in supplier_ids
    }


def row_minimum(
    snapshot: CatalogSnapshot,
    canonical_name: str,
    supplier_ids: Iterable[str]
) -> Optional[float]:
    """
    Lowest resolved price across suppliers.

    Returns:
        Minimum of the prices that resolve, or None if none do
    """
    prices = [
        price
        for price in resolve_prices(snapshot, canonical_name, supplier_ids).values()
        if price is not None
    ]
    return min(prices) if prices else None


def best_suppliers(prices: dict[str, Optional[float]]) -> list[str]:
    """All suppliers whose price equals the minimum (ties included)."""
    present = [price for price in prices.values() if price is not None]
    if not present:
        return []
    lowest = min(present)
    return [supplier_id for supplier_id, price in prices.items() if price == lowest]


# ===================
# LISTING
# ===================

def filter_and_sort(
    master_products: Iterable[MasterProduct],
    query: Optional[str] = None
) -> list[MasterProduct]:
    """
    Filter master products by name and order them for display.

    Case-insensitive substring match on the name, favorites first,
    then by name using accent- and case-insensitive collation.
    Returns a new list on every call.
    """
    matching = [
        product for product in master_products
        if product.name and matches_query(product.name, query)
    ]
    return sorted(
        matching,
        key=lambda p: (not p.is_favorite, collation_key(p.name))
    )


def comparison_table(
    snapshot: CatalogSnapshot,
    query: Optional[str] = None,
    supplier_ids: Optional[list[str]] = None
) -> ComparisonTable:
    """
    Comparison grid: one row per visible master product, one cell per supplier.

    Args:
        snapshot: Current catalog state
        query: Optional name filter
        supplier_ids: Restrict columns to these suppliers (default all, in order)
    """
    suppliers = snapshot.suppliers
    if supplier_ids is not None:
        wanted = set(supplier_ids)
        suppliers = [s for s in suppliers if s.id in wanted]
    column_ids = [s.id for s in suppliers]

    rows = []
    for product in filter_and_sort(snapshot.master_products, query):
        prices = resolve_prices(snapshot, product.name, column_ids)
        best = best_suppliers(prices)
        rows.append(ComparisonRow(
            name=product.name,
            is_favorite=product.is_favorite,
            cells=[
                ComparisonCell(
                    supplier_id=supplier_id,
                    price=price,
                    is_best=supplier_id in best
                )
                for supplier_id, price in prices.items()
            ],
            min_price=min((p for p in prices.values() if p is not None), default=None),
            best_supplier_ids=best,
        ))

    return ComparisonTable(suppliers=suppliers, rows=rows, total=len(rows))


def product_detail(snapshot: CatalogSnapshot, canonical_name: str) -> ProductDetail:
    """
    All supplier names that map to one master product.

    Mappings of suppliers that no longer exist are listed in sources
    but left out of descriptions.
    """
    product = snapshot.get_master_product(canonical_name)
    names_by_id = {s.id: s.name for s in snapshot.suppliers}

    sources = []
    descriptions: dict[str, list[str]] = {}
    for key, canonical in snapshot.mappings.items():
        if canonical != canonical_name:
            continue
        supplier_name = names_by_id.get(key.supplier_id)
        sources.append(ProductSource(
            supplier_id=key.supplier_id,
            supplier_name=supplier_name,
            local_name=key.local_name,
            price=snapshot.prices.get(key.supplier_id, {}).get(key.local_name),
        ))
        if supplier_name is not None:
            descriptions.setdefault(supplier_name, []).append(key.local_name)

    return ProductDetail(
        name=canonical_name,
        is_favorite=product.is_favorite if product else False,
        sources=sources,
        descriptions=descriptions,
    )


def pending_prices(snapshot: CatalogSnapshot, supplier_id: str) -> list[PendingPrice]:
    """Prices of a supplier whose local name has no mapping yet."""
    return [
        PendingPrice(local_name=local_name, price=price)
        for local_name, price in snapshot.prices.get(supplier_id, {}).items()
        if MappingKey(supplier_id, local_name) not in snapshot.mappings
    ]


def find_ambiguous_mappings(snapshot: CatalogSnapshot) -> list[AmbiguousMapping]:
    """
    Every (supplier, canonical) pair reached from more than one local name.

    Price lookups for these pairs depend on store order.
    """
    groups: dict[tuple[str, str], list[str]] = {}
    for key, canonical in snapshot.mappings.items():
        groups.setdefault((key.supplier_id, canonical), []).append(key.local_name)

    return [
        AmbiguousMapping(
            supplier_id=supplier_id,
            canonical_name=canonical,
            local_names=local_names,
            resolved_local_name=local_names[0],
        )
        for (supplier_id, canonical), local_names in groups.items()
        if len(local_names) > 1
    ]


# ===================
# REPORT
# ===================

def price_report(
    snapshot: CatalogSnapshot,
    supplier_ids: Optional[list[str]] = None,
    only_differences: bool = True,
    group_by_supplier: bool = True,
    sort_by_savings: bool = False
) -> PriceReport:
    """
    Report data for the selected suppliers.

    Args:
        snapshot: Current catalog state
        supplier_ids: Suppliers to include (default all)
        only_differences: Keep products priced by two or more suppliers
            at different prices
        group_by_supplier: Build per-supplier groups instead of a grid
        sort_by_savings: Order lines by savings, largest first

    Returns:
        PriceReport with either lines or groups filled
    """
    wanted = set(supplier_ids) if supplier_ids is not None else None
    selected = [
        s for s in snapshot.suppliers
        if wanted is None or s.id in wanted
    ]
    selected_ids = [s.id for s in selected]

    lines = []
    for product in filter_and_sort(snapshot.master_products):
        prices = resolve_prices(snapshot, product.name, selected_ids)
        present = [p for p in prices.values() if p is not None]
        if not present:
            continue
        if only_differences and (len(present) < 2 or max(present) == min(present)):
            continue
        lines.append(ReportLine(
            name=product.name,
            prices=prices,
            min_price=min(present),
            max_price=max(present),
            best_supplier_ids=best_suppliers(prices),
        ))

    report = PriceReport(
        supplier_ids=selected_ids,
        only_differences=only_differences,
        group_by_supplier=group_by_supplier,
    )

    if not group_by_supplier:
        if sort_by_savings:
            lines.sort(key=lambda line: line.max_price - line.min_price, reverse=True)
        report.lines = lines
        return report

    for supplier in selected:
        supplier_lines = [
            SupplierReportLine(
                name=line.name,
                price=line.prices[supplier.id],
                savings=line.max_price - line.prices[supplier.id],
            )
            for line in lines
            if line.prices.get(supplier.id) is not None
        ]
        if not supplier_lines:
            continue
        if sort_by_savings:
            supplier_lines.sort(key=lambda line: line.savings, reverse=True)
        report.groups.append(SupplierReport(
            supplier_id=supplier.id,
            supplier_name=supplier.name,
            lines=supplier_lines,
            total=sum(line.price for line in supplier_lines),
            total_savings=sum(line.savings for line in supplier_lines),
        ))

    logger.debug(
        "price_report_built",
        suppliers=len(selected_ids),
        lines=len(lines),
        groups=len(report.groups)
    )
    return report
