"""
Test data factories.

Uses factory pattern to generate consistent test data.
"""

from typing import Optional
from uuid import uuid4

from models.catalog import Supplier
from models.upload import ReconcileEntry


class SupplierFactory:
    """
    Factory for creating test Supplier records.

    Usage:
        supplier = SupplierFactory.create()
        supplier = SupplierFactory.create(name="Metro")
        suppliers = SupplierFactory.create_batch(3)
    """

    _counter = 0

    @classmethod
    def _next_counter(cls) -> int:
        cls._counter += 1
        return cls._counter

    @classmethod
    def create(
        cls,
        id: Optional[str] = None,
        name: Optional[str] = None,
        last_update: Optional[str] = None
    ) -> Supplier:
        counter = cls._next_counter()
        return Supplier(
            id=id or uuid4().hex,
            name=name or f"Supplier {counter}",
            last_update=last_update,
        )

    @classmethod
    def create_batch(cls, count: int, **overrides) -> list[Supplier]:
        return [cls.create(**overrides) for _ in range(count)]


class ReconcileEntryFactory:
    """
    Factory for reviewed price list entries.

    Usage:
        entry = ReconcileEntryFactory.create("Tomaten 5kg", 12.5, "Tomaten")
        entries = ReconcileEntryFactory.from_pairs([("Gurke", 1.2), ("Salat", 0.9)])
    """

    @classmethod
    def create(
        cls,
        product: str,
        price: float,
        canonical_name: Optional[str] = None
    ) -> ReconcileEntry:
        return ReconcileEntry(product=product, price=price, canonical_name=canonical_name)

    @classmethod
    def from_pairs(cls, pairs: list[tuple[str, float]]) -> list[ReconcileEntry]:
        """Entries without a decision (each creates its own master product)."""
        return [cls.create(product, price) for product, price in pairs]
