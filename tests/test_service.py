"""
Tests for the portfolio data service facade.
"""

from decimal import Decimal

import pytest

from conftest import RecordingCollection

from lotkeeper.logging.audit_log import AuditLogger
from lotkeeper.models import ActionType, LotFields
from lotkeeper.service import PortfolioDataService


def aapl(shares: str, cost: str, purchase_date: str, portfolios=None) -> LotFields:
    return LotFields(
        instrument_symbol="AAPL",
        shares=Decimal(shares),
        cost_per_share=Decimal(cost),
        purchase_date=purchase_date,
        portfolios=portfolios or ["Default"],
    )


@pytest.fixture
def service(tmp_path) -> PortfolioDataService:
    return PortfolioDataService(
        RecordingCollection("TickerLot", [
            {"id": "legacy", "ticker": "MSFT", "shares": "4", "costPerShare": "300",
             "purchaseDate": "2022-05-05", "totalCost": "1200"},
        ]),
        RecordingCollection("Portfolio"),
        RecordingCollection("Ticker"),
        audit=AuditLogger(tmp_path / "audit.jsonl"),
    )


class TestPortfolioDataService:
    """Tests for PortfolioDataService."""

    @pytest.mark.asyncio
    async def test_start_migrates_and_summarizes(self, service: PortfolioDataService):
        report = await service.start()

        assert report.default_created
        assert report.lot_updates.succeeded == ["legacy"]
        assert service.portfolios.names() == ["Default"]
        assert [s.instrument_symbol for s in service.summaries] == ["MSFT"]
        assert service.summaries[0].total_cost == Decimal("1200")

    @pytest.mark.asyncio
    async def test_summaries_follow_lot_changes(self, service: PortfolioDataService):
        await service.start()
        seen = []
        service.on_summaries(seen.append)

        await service.save_lot(aapl("10", "150", "2023-01-01"))
        await service.save_lot(aapl("5", "160", "2023-06-01"))

        assert len(seen) == 2
        summaries = service.summaries
        assert [s.instrument_symbol for s in summaries] == ["AAPL", "MSFT"]
        assert summaries[0].total_cost == Decimal("2300")
        assert summaries[0].lot_count == 2

    @pytest.mark.asyncio
    async def test_summaries_recompute_on_instrument_change(self, service: PortfolioDataService):
        await service.start()
        seen = []
        service.on_summaries(seen.append)

        await service.update_instrument("MSFT", "Microsoft", "0.8")

        assert len(seen) == 1
        assert seen[0][0].total_cost == Decimal("1200")

    @pytest.mark.asyncio
    async def test_portfolio_summaries(self, service: PortfolioDataService):
        await service.start()
        await service.create_portfolio("Growth")
        await service.save_lot(aapl("1", "100", "2023-01-01", ["Growth"]))

        growth = service.summaries_for_portfolio("Growth")

        assert [s.instrument_symbol for s in growth] == ["AAPL"]

    @pytest.mark.asyncio
    async def test_delete_portfolio_moves_lots_to_default(self, service: PortfolioDataService):
        await service.start()
        growth = await service.create_portfolio("Growth")
        lot = await service.save_lot(aapl("1", "100", "2023-01-01", ["Growth"]))

        await service.delete_portfolio(growth.id, growth.name)

        assert service.lots.get(lot.id).portfolios == ["Default"]
        assert service.portfolios.names() == ["Default"]

    @pytest.mark.asyncio
    async def test_stop_unsubscribes(self, service: PortfolioDataService):
        await service.start()
        service.stop()

        await service.save_lot(aapl("1", "100", "2023-01-01"))

        assert [s.instrument_symbol for s in service.summaries] == ["MSFT"]

    @pytest.mark.asyncio
    async def test_mutations_are_audited(self, service: PortfolioDataService):
        await service.start()
        lot = await service.save_lot(aapl("1", "100", "2023-01-01"))
        await service.delete_lots([lot.id])

        entries = service.lots.audit.read_log()
        actions = [e.action_type for e in entries]

        assert actions == [
            ActionType.PORTFOLIO_CREATED,
            ActionType.MIGRATION_COMPLETED,
            ActionType.LOT_SAVED,
            ActionType.LOTS_DELETED,
        ]
        assert entries[2].subject == lot.id
        assert entries[3].details["succeeded"] == [lot.id]
