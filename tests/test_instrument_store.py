"""
Tests for the instrument store.
"""

import asyncio
from decimal import Decimal

import pytest

from conftest import RecordingCollection

from lotkeeper.errors import ValidationError
from lotkeeper.stores.instruments import InstrumentStore


class TestUpsertBySymbol:
    """Tests for InstrumentStore.upsert_by_symbol."""

    @pytest.mark.asyncio
    async def test_creates_when_absent(
        self, instrument_store: InstrumentStore, instrument_collection: RecordingCollection
    ):
        instrument = await instrument_store.upsert_by_symbol("AAPL", "Apple Inc.", "0.5")

        assert instrument.symbol == "AAPL"
        assert instrument.company_name == "Apple Inc."
        assert instrument.base_yield == Decimal("0.5")
        assert instrument_collection.calls[0] == ("list", {"symbol": "AAPL"})
        assert instrument_collection.calls[1][0] == "create"

    @pytest.mark.asyncio
    async def test_updates_when_present(
        self, instrument_store: InstrumentStore, instrument_collection: RecordingCollection
    ):
        first = await instrument_store.upsert_by_symbol("AAPL", "Apple", 0)

        second = await instrument_store.upsert_by_symbol("AAPL", "Apple Inc.", 0.44)

        assert second.id == first.id
        assert second.base_yield == Decimal("0.44")
        assert len(instrument_store.items) == 1
        assert instrument_store.get_by_symbol("AAPL").company_name == "Apple Inc."

    @pytest.mark.asyncio
    async def test_symbol_match_is_exact(self, instrument_store: InstrumentStore):
        await instrument_store.upsert_by_symbol("AAPL", "Apple")
        await instrument_store.upsert_by_symbol("aapl", "lowercase")

        assert len(instrument_store.items) == 2

    @pytest.mark.asyncio
    async def test_concurrent_upserts_in_one_process(self, instrument_store: InstrumentStore):
        await asyncio.gather(
            instrument_store.upsert_by_symbol("MSFT", "Microsoft"),
            instrument_store.upsert_by_symbol("MSFT", "Microsoft Corp"),
        )

        assert len(instrument_store.items) == 1

    @pytest.mark.asyncio
    async def test_rejects_empty_symbol(
        self, instrument_store: InstrumentStore, instrument_collection: RecordingCollection
    ):
        with pytest.raises(ValidationError):
            await instrument_store.upsert_by_symbol("  ", "Nothing")

        assert instrument_collection.calls == []

    @pytest.mark.asyncio
    async def test_rejects_bad_yield(self, instrument_store: InstrumentStore):
        with pytest.raises(ValidationError, match="yield"):
            await instrument_store.upsert_by_symbol("AAPL", "Apple", "lots")

    def test_normalizes_missing_fields(self):
        collection = RecordingCollection("Ticker", [{"id": "t1", "symbol": "JNJ"}])
        store = InstrumentStore(collection)
        store.start()

        instrument = store.get_by_symbol("JNJ")

        assert instrument.company_name == ""
        assert instrument.base_yield == Decimal("0")
