"""
Unit tests for the comparison engine.

Run: pytest tests/unit/test_comparison_service.py -v
"""

import pytest

from models.catalog import CatalogSnapshot, MappingKey, MasterProduct, Supplier
from services.comparison_service import (
    best_suppliers,
    comparison_table,
    filter_and_sort,
    find_ambiguous_mappings,
    pending_prices,
    price_report,
    product_detail,
    resolve_price,
    row_minimum,
)

from tests.factories import SupplierFactory


class TestResolvePrice:
    """Tests for resolve_price()"""

    def test_resolves_through_mapping(self, sample_snapshot):
        """Should look the mapped local name up in the supplier's prices."""
        assert resolve_price(sample_snapshot, "metro", "Tomaten") == 12.50

    def test_no_mapping_returns_none(self, sample_snapshot):
        """Should return None when the supplier has nothing mapped to the name."""
        assert resolve_price(sample_snapshot, "metro", "Tomate") is None
        assert resolve_price(sample_snapshot, "unknown", "Tomaten") is None

    def test_mapping_without_price_returns_none(self, sample_snapshot):
        """Should return None when the mapped local name has no price."""
        sample_snapshot.set_mapping("metro", "Salat Kopf", "Salat")

        assert resolve_price(sample_snapshot, "metro", "Salat") is None

    def test_ambiguous_mapping_uses_first_entry(self, sample_snapshot):
        """Should use the first local name in store order."""
        sample_snapshot.set_mapping("metro", "Tomaten 10kg", "Tomaten")
        sample_snapshot.set_price("metro", "Tomaten 10kg", 20.00)

        assert resolve_price(sample_snapshot, "metro", "Tomaten") == 12.50

    def test_local_name_with_separator(self):
        """Should handle local names containing '|'."""
        snapshot = CatalogSnapshot(
            suppliers=[Supplier(id="metro", name="Metro")],
            prices={"metro": {"Tomaten | Kiste": 7.0}},
            mappings={MappingKey("metro", "Tomaten | Kiste"): "Tomaten"},
        )

        assert resolve_price(snapshot, "metro", "Tomaten") == 7.0


class TestRowMinimum:
    """Tests for row_minimum() and best_suppliers()"""

    def test_single_supplier_scenario(self):
        """Metro uploads Tomaten 5kg at 12.50, assigned to Tomaten."""
        snapshot = CatalogSnapshot(
            suppliers=[Supplier(id="Metro", name="Metro")],
            prices={"Metro": {"Tomaten 5kg": 12.50}},
            mappings={MappingKey("Metro", "Tomaten 5kg"): "Tomaten"},
            master_products=[MasterProduct(name="Tomaten")],
        )

        assert resolve_price(snapshot, "Metro", "Tomaten") == 12.50
        assert row_minimum(snapshot, "Tomaten", ["Metro"]) == 12.50

    def test_minimum_across_suppliers(self, sample_snapshot):
        """Should return the lowest resolved price."""
        assert row_minimum(sample_snapshot, "Gurke", ["metro", "selgros"]) == 8.90

    def test_none_when_nothing_resolves(self, sample_snapshot):
        """Should return None when no supplier prices the product."""
        assert row_minimum(sample_snapshot, "Salat", ["metro", "selgros"]) is None
        assert row_minimum(sample_snapshot, "Gurke", []) is None

    def test_ties_mark_all_minimal_suppliers(self):
        """Should mark every supplier sharing the minimum."""
        prices = {"metro": 5.0, "selgros": 5.0, "edeka": 6.0, "rewe": None}

        assert best_suppliers(prices) == ["metro", "selgros"]

    def test_best_suppliers_empty(self):
        assert best_suppliers({"metro": None}) == []


class TestFilterAndSort:
    """Tests for filter_and_sort()"""

    def test_query_filters_case_insensitive(self):
        """Query 'toma' keeps only names containing it, favorites first."""
        products = [
            MasterProduct(name="Gurke"),
            MasterProduct(name="Tomatenmark", is_favorite=False),
            MasterProduct(name="TOMATE"),
            MasterProduct(name="Cherry Tomaten", is_favorite=True),
        ]

        result = filter_and_sort(products, "toma")

        assert [p.name for p in result] == ["Cherry Tomaten", "TOMATE", "Tomatenmark"]

    def test_favorites_first_then_alphabetical(self):
        products = [
            MasterProduct(name="Zwiebel"),
            MasterProduct(name="Äpfel"),
            MasterProduct(name="Salz", is_favorite=True),
            MasterProduct(name="banane"),
        ]

        result = filter_and_sort(products, "")

        assert [p.name for p in result] == ["Salz", "Äpfel", "banane", "Zwiebel"]

    def test_returns_new_list_each_call(self):
        products = [MasterProduct(name="Gurke")]

        first = filter_and_sort(products)
        second = filter_and_sort(products)

        assert first == second
        assert first is not second


class TestComparisonTable:
    """Tests for comparison_table()"""

    def test_rows_with_best_cells(self, sample_snapshot):
        table = comparison_table(sample_snapshot)

        assert table.total == 3
        gurke = next(row for row in table.rows if row.name == "Gurke")
        assert gurke.min_price == 8.90
        assert gurke.best_supplier_ids == ["metro"]
        cells = {cell.supplier_id: cell for cell in gurke.cells}
        assert cells["metro"].is_best is True
        assert cells["selgros"].is_best is False
        assert cells["selgros"].price == 9.40

    def test_favorite_row_first(self, sample_snapshot):
        table = comparison_table(sample_snapshot)

        assert table.rows[0].name == "Tomate"

    def test_supplier_filter(self, sample_snapshot):
        table = comparison_table(sample_snapshot, supplier_ids=["selgros"])

        assert [s.id for s in table.suppliers] == ["selgros"]
        assert all(len(row.cells) == 1 for row in table.rows)

    def test_supplier_without_prices_has_empty_cells(self, sample_snapshot):
        supplier = SupplierFactory.create(name="Edeka")
        sample_snapshot.suppliers.append(supplier)

        table = comparison_table(sample_snapshot)

        assert len(table.suppliers) == 3
        for row in table.rows:
            cell = next(c for c in row.cells if c.supplier_id == supplier.id)
            assert cell.price is None
            assert cell.is_best is False

    def test_query_filters_rows(self, sample_snapshot):
        table = comparison_table(sample_snapshot, query="gurk")

        assert [row.name for row in table.rows] == ["Gurke"]


class TestProductDetail:
    """Tests for product_detail()"""

    def test_lists_local_names_per_supplier(self, sample_snapshot):
        detail = product_detail(sample_snapshot, "Gurke")

        assert detail.descriptions == {"Metro": ["Gurken Kiste"], "Selgros": ["Gurke"]}
        assert {s.price for s in detail.sources} == {8.90, 9.40}

    def test_unknown_supplier_left_out_of_descriptions(self, sample_snapshot):
        sample_snapshot.set_mapping("gone", "Gurke XL", "Gurke")

        detail = product_detail(sample_snapshot, "Gurke")

        assert len(detail.sources) == 3
        assert "gone" not in detail.descriptions


class TestAmbiguitiesAndPending:
    """Tests for find_ambiguous_mappings() and pending_prices()"""

    def test_detects_synonyms_of_one_supplier(self, sample_snapshot):
        sample_snapshot.set_mapping("metro", "Tomaten lose", "Tomaten")

        ambiguities = find_ambiguous_mappings(sample_snapshot)

        assert len(ambiguities) == 1
        assert ambiguities[0].supplier_id == "metro"
        assert ambiguities[0].local_names == ["Tomaten 5kg", "Tomaten lose"]
        assert ambiguities[0].resolved_local_name == "Tomaten 5kg"

    def test_no_ambiguities_in_sample(self, sample_snapshot):
        assert find_ambiguous_mappings(sample_snapshot) == []

    def test_pending_prices(self, sample_snapshot):
        sample_snapshot.set_price("metro", "Paprika rot", 3.20)

        pending = pending_prices(sample_snapshot, "metro")

        assert [(p.local_name, p.price) for p in pending] == [("Paprika rot", 3.20)]


class TestPriceReport:
    """Tests for price_report()"""

    def test_only_differences_grid(self, sample_snapshot):
        """Should keep only products priced differently by two suppliers."""
        report = price_report(sample_snapshot, only_differences=True, group_by_supplier=False)

        assert [line.name for line in report.lines] == ["Gurke"]
        assert report.lines[0].min_price == 8.90
        assert report.lines[0].max_price == 9.40

    def test_all_priced_products(self, sample_snapshot):
        report = price_report(sample_snapshot, only_differences=False, group_by_supplier=False)

        assert {line.name for line in report.lines} == {"Tomate", "Tomaten", "Gurke"}

    def test_grouped_totals_and_savings(self, sample_snapshot):
        report = price_report(sample_snapshot, only_differences=False, group_by_supplier=True)

        groups = {g.supplier_id: g for g in report.groups}
        assert groups["metro"].total == pytest.approx(12.50 + 8.90)
        assert groups["metro"].total_savings == pytest.approx(9.40 - 8.90)
        assert groups["selgros"].total_savings == pytest.approx(0.0)

    def test_suppliers_without_lines_omitted(self, sample_snapshot):
        report = price_report(sample_snapshot, supplier_ids=["metro"], only_differences=True)

        assert report.groups == []

    def test_sort_by_savings(self, sample_snapshot):
        sample_snapshot.set_mapping("metro", "Tomate Rispe", "Tomate")
        sample_snapshot.set_price("metro", "Tomate Rispe", 15.00)

        report = price_report(
            sample_snapshot,
            only_differences=True,
            group_by_supplier=False,
            sort_by_savings=True,
        )

        assert [line.name for line in report.lines] == ["Tomate", "Gurke"]
