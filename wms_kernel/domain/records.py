"""
Records -- frozen value objects for products, bins, batches and transactions.

Responsibility:
    Define the immutable records the store holds, plus their flat,
    field-named row shapes for tabular encode/decode by external import
    and export routines.

Architecture position:
    Kernel > Domain -- pure value objects, zero I/O.

Invariants enforced:
    - StockBatch.quantity > 0 (a batch at zero must be deleted, never built).
    - Transaction is frozen; there is no way to edit one after creation.
    - Row shapes are flat: batch locations export as a pipe-separated list
      of bin codes.

Failure modes:
    - InvalidQuantityError from StockBatch on quantity <= 0.
    - InvalidBinCodeError / ValueError from ``from_row`` on malformed rows.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from wms_kernel.domain.locations import Location, format_locations, parse_locations
from wms_kernel.domain.values import ZERO, as_quantity
from wms_kernel.exceptions import InvalidQuantityError

DEFAULT_UNIT = "pcs"


def parse_timestamp(value: Any) -> datetime | None:
    """
    Parse an ISO string, a ``datetime``, or epoch milliseconds.

    Naive datetimes are treated as UTC. Epoch values are milliseconds,
    the format used by the browser-side spreadsheet sync.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=UTC)
    text = str(value).strip()
    if text.isdigit():
        return datetime.fromtimestamp(int(text) / 1000, tz=UTC)
    parsed = datetime.fromisoformat(text)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _iso(value: datetime | None) -> str:
    return value.isoformat() if value is not None else ""


# ---------------------------------------------------------------------------
# Product master (read-only reference data)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Product:
    """A product-master entry, keyed by ``code``."""

    code: str
    name: str
    default_unit: str = DEFAULT_UNIT
    default_category: str | None = None
    min_stock_level: Decimal = ZERO

    def __post_init__(self) -> None:
        if not self.code or not str(self.code).strip():
            raise ValueError("Product code is required")
        object.__setattr__(self, "min_stock_level", as_quantity(self.min_stock_level))

    def to_row(self) -> dict[str, str]:
        return {
            "code": self.code,
            "name": self.name,
            "default_unit": self.default_unit,
            "default_category": self.default_category or "",
            "min_stock_level": str(self.min_stock_level),
        }

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Product:
        return cls(
            code=str(row["code"]).strip(),
            name=str(row.get("name") or row["code"]),
            default_unit=str(row.get("default_unit") or DEFAULT_UNIT),
            default_category=row.get("default_category") or None,
            min_stock_level=row.get("min_stock_level") or ZERO,
        )


# ---------------------------------------------------------------------------
# Bins
# ---------------------------------------------------------------------------


class BinStatus(str, Enum):
    ACTIVE = "active"
    DISABLED = "disabled"


@dataclass(frozen=True, slots=True)
class Bin:
    """A catalog bin. ``status`` is advisory metadata for calling UIs."""

    id: str
    location: Location
    status: BinStatus = BinStatus.ACTIVE

    @property
    def bin_code(self) -> str:
        return self.location.bin_code

    @property
    def is_active(self) -> bool:
        return self.status is BinStatus.ACTIVE

    def toggled(self) -> Bin:
        """Return a copy with the status flipped."""
        new_status = BinStatus.ACTIVE if self.status is BinStatus.DISABLED else BinStatus.DISABLED
        return replace(self, status=new_status)

    def to_row(self) -> dict[str, str]:
        return {
            "id": self.id,
            "bin_code": self.bin_code,
            "rack": self.location.rack,
            "bay": str(self.location.bay),
            "level": str(self.location.level),
            "status": self.status.value,
        }

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Bin:
        location = Location(rack=row["rack"], bay=row["bay"], level=row["level"])
        return cls(
            id=str(row["id"]),
            location=location,
            status=BinStatus(row.get("status") or BinStatus.ACTIVE.value),
        )


# ---------------------------------------------------------------------------
# Stock batches
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class StockBatch:
    """
    A quantity of one product held at one bin.

    ``locations`` is a tuple for compatibility with historical records;
    allocation and transfer logic always use the first entry.
    """

    id: str
    product_code: str
    quantity: Decimal
    unit: str
    category: str
    locations: tuple[Location, ...]
    updated_at: datetime
    product_name: str = ""
    notes: str | None = None
    last_counted_at: datetime | None = None

    def __post_init__(self) -> None:
        quantity = as_quantity(self.quantity)
        if quantity <= ZERO:
            raise InvalidQuantityError(quantity, "a stock batch must hold a positive quantity")
        object.__setattr__(self, "quantity", quantity)
        object.__setattr__(self, "locations", tuple(self.locations))
        object.__setattr__(self, "updated_at", parse_timestamp(self.updated_at))
        object.__setattr__(self, "last_counted_at", parse_timestamp(self.last_counted_at))

    @property
    def primary_location(self) -> Location | None:
        return self.locations[0] if self.locations else None

    @property
    def location_text(self) -> str:
        """Human-readable location snapshot used in ledger entries."""
        return ", ".join(loc.legacy_key for loc in self.locations)

    def is_at(self, location: Location) -> bool:
        return self.primary_location == location

    def to_row(self) -> dict[str, str]:
        return {
            "id": self.id,
            "product_code": self.product_code,
            "product_name": self.product_name,
            "quantity": str(self.quantity),
            "unit": self.unit,
            "category": self.category,
            "locations": format_locations(self.locations),
            "notes": self.notes or "",
            "updated_at": _iso(self.updated_at),
            "last_counted_at": _iso(self.last_counted_at),
        }

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> StockBatch:
        locations = row.get("locations") or ()
        if isinstance(locations, str):
            parsed = parse_locations(locations)
        else:
            parsed = tuple(
                loc if isinstance(loc, Location) else Location.from_dict(loc)
                for loc in locations
            )
        return cls(
            id=str(row["id"]),
            product_code=str(row["product_code"]).strip(),
            quantity=row["quantity"],
            unit=str(row.get("unit") or DEFAULT_UNIT),
            category=str(row.get("category") or ""),
            locations=parsed,
            updated_at=parse_timestamp(row.get("updated_at")) or datetime.fromtimestamp(0, tz=UTC),
            product_name=str(row.get("product_name") or ""),
            notes=row.get("notes") or None,
            last_counted_at=parse_timestamp(row.get("last_counted_at")),
        )


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


class TransactionType(str, Enum):
    """Kinds of stock-affecting events recorded in the ledger."""

    INBOUND = "INBOUND"
    OUTBOUND = "OUTBOUND"
    ADJUSTMENT = "ADJUSTMENT"
    MOVE = "MOVE"
    DELETE = "DELETE"
    COUNT = "COUNT"


@dataclass(frozen=True, slots=True)
class Transaction:
    """
    Immutable ledger entry.

    ``quantity`` is signed: positive for inbound, negative for outbound and
    removals, zero for pure relocations and verified counts.
    """

    id: str
    date: datetime
    type: TransactionType
    product_code: str
    quantity: Decimal
    unit: str
    location_info: str
    notes: str = ""
    product_name: str = ""
    category: str = ""
    batch_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "quantity", as_quantity(self.quantity))
        object.__setattr__(self, "type", TransactionType(self.type))
        date = parse_timestamp(self.date)
        if date is None:
            raise ValueError(f"Transaction {self.id} has no date")
        object.__setattr__(self, "date", date)

    def to_row(self) -> dict[str, str]:
        return {
            "id": self.id,
            "date": _iso(self.date),
            "type": self.type.value,
            "product_code": self.product_code,
            "product_name": self.product_name,
            "category": self.category,
            "quantity": str(self.quantity),
            "unit": self.unit,
            "location_info": self.location_info,
            "notes": self.notes,
            "batch_id": self.batch_id or "",
        }

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Transaction:
        return cls(
            id=str(row["id"]),
            date=parse_timestamp(row["date"]),
            type=TransactionType(row["type"]),
            product_code=str(row["product_code"]).strip(),
            quantity=row["quantity"],
            unit=str(row.get("unit") or DEFAULT_UNIT),
            location_info=str(row.get("location_info") or ""),
            notes=str(row.get("notes") or ""),
            product_name=str(row.get("product_name") or ""),
            category=str(row.get("category") or ""),
            batch_id=row.get("batch_id") or None,
        )


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InventorySnapshot:
    """
    The replicated state: products, batches, bins and transactions.

    ``batches`` is always present. ``None`` for any other collection means
    the source did not supply it, and loading keeps the local copy.
    """

    products: tuple[Product, ...] | None = None
    batches: tuple[StockBatch, ...] = ()
    bins: tuple[Bin, ...] | None = None
    transactions: tuple[Transaction, ...] | None = None

    @property
    def batch_count(self) -> int:
        return len(self.batches)

    def to_rows(self) -> dict[str, list[dict[str, str]]]:
        """Flat rows per collection; collections not supplied are omitted."""
        rows = {"batches": [b.to_row() for b in self.batches]}
        for name in ("products", "bins", "transactions"):
            records = getattr(self, name)
            if records is not None:
                rows[name] = [r.to_row() for r in records]
        return rows

    @classmethod
    def from_rows(cls, data: Mapping[str, Any]) -> InventorySnapshot:
        def optional(name: str, decode: Callable[[Mapping[str, Any]], Any]) -> tuple | None:
            if data.get(name) is None:
                return None
            return tuple(decode(r) for r in data[name])

        return cls(
            products=optional("products", Product.from_row),
            batches=tuple(StockBatch.from_row(r) for r in data.get("batches") or ()),
            bins=optional("bins", Bin.from_row),
            transactions=optional("transactions", Transaction.from_row),
        )


@dataclass(frozen=True)
class ReferenceReport:
    """Referential-integrity findings for a snapshot. Orphans are flagged, not rejected."""

    orphan_product_batches: tuple[str, ...] = ()
    orphan_location_batches: tuple[str, ...] = ()
    orphan_product_transactions: tuple[str, ...] = ()

    @property
    def is_clean(self) -> bool:
        return not (
            self.orphan_product_batches
            or self.orphan_location_batches
            or self.orphan_product_transactions
        )
