"""
Pytest fixtures for the lotkeeper tests.

Provides collections with failure injection, wired stores, and sample lots.
"""

from decimal import Decimal
from typing import Any, Optional

import pytest

from lotkeeper.data.collections.base import CollectionError, ListResult, Record
from lotkeeper.data.collections.memory import InMemoryCollection
from lotkeeper.models import Lot
from lotkeeper.stores.instruments import InstrumentStore
from lotkeeper.stores.lots import LotStore
from lotkeeper.stores.portfolios import PortfolioStore


class RecordingCollection(InMemoryCollection):
    """
    In-memory collection that records every call and can be told to fail.

    Attributes:
        calls: (operation, argument) tuples in call order
        fail_ids: Record ids whose update/delete should be rejected
        fail_creates: Reject every create
        list_errors: Errors to report from list()
    """

    def __init__(self, name: str, records: Optional[list[Record]] = None):
        super().__init__(name, records)
        self.calls: list[tuple[str, Any]] = []
        self.fail_ids: set[str] = set()
        self.fail_creates = False
        self.list_errors: Optional[list[str]] = None

    @property
    def writes(self) -> list[tuple[str, Any]]:
        return [c for c in self.calls if c[0] != "list"]

    async def list(self, filter: Optional[dict[str, Any]] = None) -> ListResult:
        self.calls.append(("list", filter))
        if self.list_errors:
            return ListResult(items=[], errors=self.list_errors)
        return await super().list(filter)

    async def create(self, fields: Record) -> Record:
        self.calls.append(("create", fields))
        if self.fail_creates:
            raise CollectionError("create rejected")
        return await super().create(fields)

    async def update(self, fields: Record) -> Record:
        self.calls.append(("update", fields))
        if fields.get("id") in self.fail_ids:
            raise CollectionError(f"update rejected for {fields['id']}")
        return await super().update(fields)

    async def delete(self, record_id: str) -> Record:
        self.calls.append(("delete", record_id))
        if record_id in self.fail_ids:
            raise CollectionError(f"delete rejected for {record_id}")
        return await super().delete(record_id)


def lot_record(
    lot_id: str,
    ticker: str,
    shares: str,
    cost: str,
    purchase_date: str,
    portfolios: Optional[list[str]] = None,
    total_cost: Optional[str] = None,
) -> Record:
    """Build a raw lot record as stored in a collection."""
    record = {
        "id": lot_id,
        "ticker": ticker,
        "shares": Decimal(shares),
        "costPerShare": Decimal(cost),
        "purchaseDate": purchase_date,
        "portfolios": portfolios if portfolios is not None else ["Default"],
        "totalCost": Decimal(total_cost) if total_cost else Decimal(shares) * Decimal(cost),
    }
    return record


def make_lot(
    lot_id: str,
    ticker: str,
    shares: str,
    cost: str,
    purchase_date: str,
    portfolios: Optional[list[str]] = None,
    total_cost: Optional[str] = None,
) -> Lot:
    """Build a normalized Lot."""
    return Lot.from_record(
        lot_record(lot_id, ticker, shares, cost, purchase_date, portfolios, total_cost)
    )


@pytest.fixture
def lot_collection() -> RecordingCollection:
    return RecordingCollection("TickerLot")


@pytest.fixture
def portfolio_collection() -> RecordingCollection:
    return RecordingCollection(
        "Portfolio",
        [
            {"id": "p-default", "name": "Default", "description": "Default portfolio for existing lots"},
            {"id": "p-growth", "name": "Growth", "description": "Growth stocks"},
            {"id": "p-income", "name": "Income", "description": None},
        ],
    )


@pytest.fixture
def instrument_collection() -> RecordingCollection:
    return RecordingCollection("Ticker")


@pytest.fixture
def lot_store(lot_collection: RecordingCollection) -> LotStore:
    store = LotStore(lot_collection)
    store.start()
    return store


@pytest.fixture
def portfolio_store(
    portfolio_collection: RecordingCollection,
    lot_store: LotStore,
) -> PortfolioStore:
    store = PortfolioStore(portfolio_collection, lot_store)
    store.start()
    return store


@pytest.fixture
def instrument_store(instrument_collection: RecordingCollection) -> InstrumentStore:
    store = InstrumentStore(instrument_collection)
    store.start()
    return store


@pytest.fixture
def sample_lots() -> list[Lot]:
    """Sample lots across three tickers and two portfolios."""
    return [
        make_lot("lot-001", "AAPL", "10", "150", "2023-01-01", ["Default"]),
        make_lot("lot-002", "MSFT", "4", "300", "2023-03-15", ["Growth"]),
        make_lot("lot-003", "AAPL", "5", "160", "2023-06-01", ["Default", "Growth"]),
        make_lot("lot-004", "JNJ", "20", "155", "2022-11-20", ["Income"]),
    ]
