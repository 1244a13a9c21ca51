"""Record store: the typed transaction rows every analysis reads.

One TransactionRecord is one sales line item as delivered by the ingestion
collaborator. Records are never mutated; a RecordStore holds the records of a
single computation pass.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from typing import Any, overload


@dataclass(frozen=True)
class TransactionRecord:
    """One sales line item.

    Attributes:
        branch: Branch identifier, e.g. "WALM003".
        city: City the branch is located in.
        category: Product category.
        unit_price: Price per unit.
        quantity: Units sold.
        total: unit_price * quantity, computed upstream.
        payment_method: "Cash", "Credit card", "Ewallet", ...
        rating: Customer rating, 0-10.
        profit_margin: Opaque multiplier applied to total to obtain profit.
        transaction_date: A date, or the raw dd/mm/YYYY string from ingestion.
        transaction_time: A time, or the raw HH:MM[:SS] string from ingestion.
        invoice_id: Optional invoice identifier.
    """

    branch: str
    city: str
    category: str
    unit_price: Decimal
    quantity: int
    total: Decimal
    payment_method: str
    rating: Decimal
    profit_margin: Decimal
    transaction_date: date | str
    transaction_time: time | str
    invoice_id: int | None = None

    @property
    def profit(self) -> Decimal:
        """Profit of the line: total * profit_margin."""
        return self.total * self.profit_margin

    @property
    def line_amount(self) -> Decimal:
        return self.unit_price * self.quantity


RecordPredicate = Callable[[TransactionRecord], bool]


class RecordStore:
    """Immutable, ordered collection of transaction records.

    Example:
        >>> store = RecordStore(records)
        >>> len(store)
        3
        >>> store.distinct("branch")
        ['A', 'B']
    """

    __slots__ = ("_records",)

    def __init__(self, records: Iterable[TransactionRecord] = ()) -> None:
        self._records: tuple[TransactionRecord, ...] = tuple(records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[TransactionRecord]:
        return iter(self._records)

    @overload
    def __getitem__(self, index: int) -> TransactionRecord: ...

    @overload
    def __getitem__(self, index: slice) -> RecordStore: ...

    def __getitem__(self, index: int | slice) -> TransactionRecord | RecordStore:
        if isinstance(index, slice):
            return RecordStore(self._records[index])
        return self._records[index]

    def __repr__(self) -> str:
        return f"RecordStore({len(self._records)} records)"

    @property
    def records(self) -> tuple[TransactionRecord, ...]:
        return self._records

    def filter(self, predicate: RecordPredicate) -> RecordStore:
        """Return a new store holding the records matching predicate."""
        return RecordStore(r for r in self._records if predicate(r))

    def distinct(self, field: str) -> list[Any]:
        """Return the sorted distinct values of a record field.

        Args:
            field: Attribute name, e.g. "branch".

        Raises:
            AttributeError: If records have no such field.
        """
        return sorted({getattr(r, field) for r in self._records})
