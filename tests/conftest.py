"""
Shared test fixtures.
"""

import sys
from pathlib import Path

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

import pytest
from types import SimpleNamespace
from unittest.mock import MagicMock, patch
from typing import Generator

from models.catalog import CatalogSnapshot, MappingKey, MasterProduct, Supplier

# ===================
# MOCK SUPABASE CLIENT
# ===================

class MockSupabaseResponse:
    """Mock Supabase query response."""

    def __init__(self, data: list = None, count: int = None):
        self.data = data or []
        self.count = count if count is not None else len(self.data)


class MockSupabaseQuery:
    """Mock Supabase query builder with chainable methods."""

    def __init__(self, client: "MockSupabaseClient", table: str):
        self._client = client
        self._table = table
        self._filters: list[tuple[str, object]] = []
        self._upsert_rows: list[dict] = None
        self._on_conflict: list[str] = []

    def select(self, *args, **kwargs):
        return self

    def upsert(self, rows, on_conflict: str = ""):
        self._upsert_rows = rows if isinstance(rows, list) else [rows]
        self._on_conflict = [c.strip() for c in on_conflict.split(",") if c.strip()]
        return self

    def eq(self, column, value):
        self._filters.append((column, value))
        return self

    def order(self, column, **kwargs):
        return self

    def limit(self, count):
        return self

    def execute(self) -> MockSupabaseResponse:
        if self._upsert_rows is not None:
            return self._client._upsert(self._table, self._upsert_rows, self._on_conflict)

        self._client.read_calls += 1
        if self._client.fail_reads:
            raise RuntimeError("connection refused")
        rows = [
            dict(row) for row in self._client._tables.get(self._table, [])
            if all(row.get(column) == value for column, value in self._filters)
        ]
        return MockSupabaseResponse(data=rows)


class MockSupabaseClient:
    """
    Mock Supabase client backed by in-memory tables.

    Upserts are visible to later selects, so read-modify-write flows
    can be tested end to end.
    """

    def __init__(self):
        self._tables: dict[str, list[dict]] = {}
        self.fail_reads = False
        self.fail_writes = False
        self.read_calls = 0
        self.upsert_calls: list[list[dict]] = []
        self.auth = MagicMock()
        self.options = SimpleNamespace(headers={"Authorization": "Bearer service-role-key"})

    def set_table_data(self, table_name: str, data: list):
        """Configure mock data for a table."""
        self._tables[table_name] = [dict(row) for row in data]

    def table_data(self, table_name: str) -> list[dict]:
        return self._tables.get(table_name, [])

    def table(self, name: str) -> MockSupabaseQuery:
        return MockSupabaseQuery(self, name)

    def _upsert(self, table: str, rows: list[dict], on_conflict: list[str]) -> MockSupabaseResponse:
        if self.fail_writes:
            raise RuntimeError("write rejected")
        self.upsert_calls.append([dict(row) for row in rows])

        stored = self._tables.setdefault(table, [])
        for row in rows:
            for index, existing in enumerate(stored):
                if all(existing.get(c) == row.get(c) for c in on_conflict):
                    stored[index] = {**existing, **row}
                    break
            else:
                stored.append(dict(row))
        return MockSupabaseResponse(data=rows)


def document_row(user_id: str, document_id: str, value, version: int = 1) -> dict:
    """Row of the user_documents table."""
    return {
        "user_id": user_id,
        "document_id": document_id,
        "value": value,
        "version": version,
        "updated_at": "2026-10-01T08:00:00+00:00",
    }


# ===================
# FIXTURES
# ===================

@pytest.fixture
def mock_supabase() -> MockSupabaseClient:
    """
    Create a mock Supabase client.

    Usage:
        def test_something(mock_supabase):
            mock_supabase.set_table_data("user_documents", [
                document_row("user-1", "suppliers", [...])
            ])
    """
    return MockSupabaseClient()


@pytest.fixture
def mock_db(mock_supabase) -> Generator:
    """
    Patch the database client with mock.

    Any service created inside the fixture gets the mock from
    get_supabase_client().
    """
    with patch("config.database.get_supabase_client", return_value=mock_supabase):
        with patch("services.document_store_service.get_supabase_client", return_value=mock_supabase):
            yield mock_supabase


@pytest.fixture
def mock_auth() -> Generator:
    """
    Patch the sessionless auth clients with one mock.

    The mock stands in for both the per-call sign-in client and the
    cached client used for token checks and sign-out.
    """
    client = MagicMock()
    with patch("services.auth_service.create_auth_client", return_value=client) as factory:
        with patch("services.auth_service.get_auth_client", return_value=client):
            client.factory = factory
            yield client


@pytest.fixture
def sample_snapshot() -> CatalogSnapshot:
    """
    Two suppliers, three master products.

    Metro sells "Tomaten 5kg" as Tomaten, Selgros sells "Tomate rot" as
    Tomate (a duplicate spelling) and "Gurke" as Gurke.
    """
    return CatalogSnapshot(
        suppliers=[
            Supplier(id="metro", name="Metro"),
            Supplier(id="selgros", name="Selgros"),
        ],
        prices={
            "metro": {"Tomaten 5kg": 12.50, "Gurken Kiste": 8.90},
            "selgros": {"Tomate rot": 11.00, "Gurke": 9.40},
        },
        mappings={
            MappingKey("metro", "Tomaten 5kg"): "Tomaten",
            MappingKey("metro", "Gurken Kiste"): "Gurke",
            MappingKey("selgros", "Tomate rot"): "Tomate",
            MappingKey("selgros", "Gurke"): "Gurke",
        },
        master_products=[
            MasterProduct(name="Tomaten", is_favorite=False),
            MasterProduct(name="Tomate", is_favorite=True),
            MasterProduct(name="Gurke", is_favorite=False),
        ],
    )


@pytest.fixture
def sample_documents(sample_snapshot) -> list[dict]:
    """sample_snapshot stored for user-1."""
    from services.document_store_service import encode_collection
    from models.catalog import ALL_COLLECTIONS

    return [
        document_row("user-1", c.value, encode_collection(sample_snapshot, c))
        for c in ALL_COLLECTIONS
    ]


@pytest.fixture
def store(mock_db):
    """DocumentStoreService on the mock client."""
    from services.document_store_service import DocumentStoreService

    return DocumentStoreService()


@pytest.fixture
def workspace(mock_supabase, sample_documents, store):
    """Workspace of user-1 loaded with sample_documents."""
    from services.workspace_service import Workspace

    mock_supabase.set_table_data("user_documents", sample_documents)
    return Workspace("user-1", store=store)


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client(workspace):
    """
    FastAPI test client signed in as user-1.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/api/suppliers")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app
    from routes.auth import get_current_user_id, get_current_workspace

    app.dependency_overrides[get_current_user_id] = lambda: "user-1"
    app.dependency_overrides[get_current_workspace] = lambda: workspace
    yield TestClient(app)
    app.dependency_overrides.clear()
