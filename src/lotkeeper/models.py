"""
Core data models for lotkeeper.

This module defines the entities cached by the stores (lots, portfolios,
instruments), the derived per-ticker summary, and the outcome reports
produced by sequential batch operations. All monetary and share quantities
use Decimal for precision.

Each entity has a single ``from_record`` factory that normalizes a raw
record coming from a collection into its canonical in-memory form.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


DEFAULT_PORTFOLIO = "Default"


class ActionType(Enum):
    """Types of logged actions for the audit log."""
    LOT_SAVED = "LOT_SAVED"
    LOTS_DELETED = "LOTS_DELETED"
    PORTFOLIO_CREATED = "PORTFOLIO_CREATED"
    PORTFOLIO_DELETED = "PORTFOLIO_DELETED"
    INSTRUMENT_UPSERTED = "INSTRUMENT_UPSERTED"
    MIGRATION_COMPLETED = "MIGRATION_COMPLETED"


class OutcomeStatus(Enum):
    """Result of one item in a sequential batch operation."""
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    NOT_ATTEMPTED = "NOT_ATTEMPTED"


def to_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    """Convert a raw numeric value to Decimal, mapping None to ``default``."""
    if value is None:
        return default
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _dedupe(names: list[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for name in names:
        if name not in seen:
            seen.add(name)
            result.append(name)
    return result


@dataclass
class Lot:
    """
    One recorded purchase of shares of an instrument.

    Attributes:
        id: Identity assigned by the collection
        instrument_symbol: Ticker symbol (exact, case-sensitive grouping key)
        shares: Number of shares purchased
        cost_per_share: Per-share cost basis
        purchase_date: ISO ``YYYY-MM-DD`` string
        portfolios: Names of the portfolios this lot belongs to (never empty)
        notes: Free text
        total_cost: shares * cost_per_share as of the last save
        calculate_accumulated_pnl: Display flag carried through unchanged
    """
    id: str
    instrument_symbol: str
    shares: Decimal
    cost_per_share: Decimal
    purchase_date: str
    portfolios: list[str]
    notes: str = ""
    total_cost: Decimal = Decimal("0")
    calculate_accumulated_pnl: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    owner: Optional[str] = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Lot":
        """
        Normalize a raw collection record into a Lot.

        Missing or empty membership falls back to the default portfolio
        (blank and null names are dropped first), a missing
        total cost is derived from shares and cost per share, and missing
        optional text becomes an empty string.
        """
        shares = to_decimal(record.get("shares"))
        cost_per_share = to_decimal(record.get("costPerShare"))

        raw_portfolios = record.get("portfolios") or []
        portfolios = _dedupe([
            p for p in raw_portfolios if p is not None and str(p).strip()
        ])
        if not portfolios:
            portfolios = [DEFAULT_PORTFOLIO]

        total_cost = record.get("totalCost")
        if total_cost is None:
            total_cost = shares * cost_per_share

        pnl_flag = record.get("calculateAccumulatedProfitLoss")

        return cls(
            id=str(record["id"]),
            instrument_symbol=str(record.get("ticker") or ""),
            shares=shares,
            cost_per_share=cost_per_share,
            purchase_date=str(record.get("purchaseDate") or ""),
            portfolios=portfolios,
            notes=record.get("notes") or "",
            total_cost=to_decimal(total_cost),
            calculate_accumulated_pnl=True if pnl_flag is None else bool(pnl_flag),
            created_at=record.get("createdAt"),
            updated_at=record.get("updatedAt"),
            owner=record.get("owner"),
        )


@dataclass
class Portfolio:
    """A named grouping that lots can belong to."""
    id: str
    name: str
    description: str = ""
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    owner: Optional[str] = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Portfolio":
        """Normalize a raw collection record into a Portfolio."""
        return cls(
            id=str(record["id"]),
            name=str(record.get("name") or ""),
            description=record.get("description") or "",
            created_at=record.get("createdAt"),
            updated_at=record.get("updatedAt"),
            owner=record.get("owner"),
        )


@dataclass
class Instrument:
    """
    Ticker-level metadata keyed by symbol.

    ``base_yield`` is an informational percentage; it never takes part in
    cost-basis arithmetic.
    """
    id: str
    symbol: str
    company_name: str = ""
    base_yield: Decimal = Decimal("0")
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    owner: Optional[str] = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Instrument":
        """Normalize a raw collection record into an Instrument."""
        return cls(
            id=str(record["id"]),
            symbol=str(record.get("symbol") or ""),
            company_name=record.get("companyName") or "",
            base_yield=to_decimal(record.get("baseYield")),
            created_at=record.get("createdAt"),
            updated_at=record.get("updatedAt"),
            owner=record.get("owner"),
        )


@dataclass
class LotFields:
    """
    User-supplied fields for creating or updating a lot.

    Attributes:
        instrument_symbol: Ticker symbol
        shares: Number of shares (must be positive)
        cost_per_share: Per-share cost (must be positive)
        purchase_date: ISO ``YYYY-MM-DD`` string
        portfolios: Portfolio names (must be non-empty)
        notes: Optional free text
        calculate_accumulated_pnl: Display flag carried through unchanged
    """
    instrument_symbol: str
    shares: Decimal
    cost_per_share: Decimal
    purchase_date: str
    portfolios: list[str] = field(default_factory=lambda: [DEFAULT_PORTFOLIO])
    notes: str = ""
    calculate_accumulated_pnl: bool = True

    @property
    def total_cost(self) -> Decimal:
        """Total cost for these fields (shares * cost_per_share)."""
        return self.shares * self.cost_per_share

    def to_record(self) -> dict[str, Any]:
        """Build the collection write payload, including the persisted total cost."""
        return {
            "ticker": self.instrument_symbol,
            "shares": self.shares,
            "costPerShare": self.cost_per_share,
            "purchaseDate": self.purchase_date,
            "portfolios": _dedupe(list(self.portfolios)),
            "notes": self.notes,
            "calculateAccumulatedProfitLoss": self.calculate_accumulated_pnl,
            "totalCost": self.total_cost,
        }


@dataclass
class TickerSummary:
    """
    Aggregated view of all lots for a single ticker symbol.

    Attributes:
        instrument_symbol: Ticker symbol
        total_shares: Total shares across all lots
        total_cost: Sum of the lots' persisted total cost
        average_cost_per_share: total_cost / total_shares
        lot_count: Number of lots
        earliest_purchase: Earliest ISO purchase date
        latest_purchase: Latest ISO purchase date
    """
    instrument_symbol: str
    total_shares: Decimal
    total_cost: Decimal
    average_cost_per_share: Decimal
    lot_count: int
    earliest_purchase: str
    latest_purchase: str


@dataclass
class ItemOutcome:
    """Outcome of one item in a batch."""
    item_id: str
    status: OutcomeStatus
    error: Optional[str] = None


@dataclass
class BatchReport:
    """
    Per-item outcomes of a sequential, non-atomic batch operation.

    Attributes:
        operation: Name of the batch operation
        outcomes: One entry per item, in processing order
    """
    operation: str
    outcomes: list[ItemOutcome] = field(default_factory=list)

    def record(self, item_id: str, status: OutcomeStatus, error: Optional[str] = None) -> None:
        self.outcomes.append(ItemOutcome(item_id=item_id, status=status, error=error))

    def ids_with_status(self, status: OutcomeStatus) -> list[str]:
        return [o.item_id for o in self.outcomes if o.status == status]

    @property
    def succeeded(self) -> list[str]:
        return self.ids_with_status(OutcomeStatus.SUCCEEDED)

    @property
    def failed(self) -> list[str]:
        return self.ids_with_status(OutcomeStatus.FAILED)

    @property
    def not_attempted(self) -> list[str]:
        return self.ids_with_status(OutcomeStatus.NOT_ATTEMPTED)

    @property
    def is_complete(self) -> bool:
        """True when every item succeeded."""
        return all(o.status == OutcomeStatus.SUCCEEDED for o in self.outcomes)


@dataclass
class MigrationReport:
    """
    Result of a legacy migration pass.

    Attributes:
        default_created: Whether the default portfolio had to be created
        lot_updates: Per-lot outcomes for lots that needed a backfill
    """
    default_created: bool
    lot_updates: BatchReport

    @property
    def write_count(self) -> int:
        """Number of remote writes issued by the pass."""
        attempted = [
            o for o in self.lot_updates.outcomes
            if o.status != OutcomeStatus.NOT_ATTEMPTED
        ]
        return len(attempted) + (1 if self.default_created else 0)


@dataclass
class AuditLogEntry:
    """
    Entry for the append-only audit log.

    Attributes:
        timestamp: When the action occurred
        action_type: Type of action
        subject: Entity the action applied to (lot id, portfolio name, symbol)
        details: JSON-serializable details dictionary
    """
    timestamp: datetime
    action_type: ActionType
    subject: Optional[str]
    details: dict

    @classmethod
    def create(
        cls,
        action_type: ActionType,
        subject: Optional[str],
        details: dict,
    ) -> "AuditLogEntry":
        """Factory method with auto-generated timestamp."""
        return cls(
            timestamp=datetime.now(),
            action_type=action_type,
            subject=subject,
            details=details,
        )
