"""
Service facade combining the lot, portfolio and instrument stores.

This is the entry point callers should use: it wires the stores together,
runs the legacy migration on start, and keeps the per-ticker summaries
current as lot and instrument snapshots arrive.
"""

import logging
from typing import Any, Callable, Optional

from lotkeeper.analytics.summary import calculate_ticker_summaries, summaries_for_portfolio
from lotkeeper.config import Settings
from lotkeeper.data.collections.base import Collection
from lotkeeper.data.collections.file import open_collections
from lotkeeper.logging.audit_log import AuditLogger
from lotkeeper.models import (
    DEFAULT_PORTFOLIO,
    BatchReport,
    Instrument,
    Lot,
    LotFields,
    MigrationReport,
    Portfolio,
    TickerSummary,
)
from lotkeeper.portfolio.migration import LegacyMigrator
from lotkeeper.stores.instruments import InstrumentStore
from lotkeeper.stores.lots import LotStore
from lotkeeper.stores.portfolios import PortfolioStore

logger = logging.getLogger(__name__)

SummaryListener = Callable[[list[TickerSummary]], None]


class PortfolioDataService:
    """
    Unified access to lots, portfolios, instruments and derived summaries.

    Summaries are recomputed whenever the lot or instrument snapshot
    changes and are never persisted.
    """

    def __init__(
        self,
        lot_collection: Collection,
        portfolio_collection: Collection,
        instrument_collection: Collection,
        audit: Optional[AuditLogger] = None,
        default_portfolio: str = DEFAULT_PORTFOLIO,
    ):
        self.lots = LotStore(lot_collection, audit)
        self.portfolios = PortfolioStore(
            portfolio_collection, self.lots, audit, default_portfolio
        )
        self.instruments = InstrumentStore(instrument_collection, audit)
        self.migrator = LegacyMigrator(self.lots, self.portfolios, default_portfolio)

        self._summaries: list[TickerSummary] = []
        self._summary_listeners: list[SummaryListener] = []
        self._unsubscribers: list[Callable[[], None]] = []

    @property
    def summaries(self) -> list[TickerSummary]:
        return list(self._summaries)

    def summaries_for_portfolio(self, portfolio_name: str) -> list[TickerSummary]:
        return summaries_for_portfolio(
            self.lots.items, portfolio_name, self.instruments.items
        )

    def on_summaries(self, listener: SummaryListener) -> Callable[[], None]:
        """Register a listener called with the recomputed summaries."""
        self._summary_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._summary_listeners:
                self._summary_listeners.remove(listener)

        return unsubscribe

    async def start(self, migrate: bool = True) -> Optional[MigrationReport]:
        """
        Subscribe every store and run the legacy migration once.

        Args:
            migrate: Run the legacy migration pass

        Returns:
            The migration report, or None when migration was skipped
        """
        if not self._unsubscribers:
            self._unsubscribers = [
                self.lots.subscribe(self._recompute),
                self.instruments.subscribe(self._recompute),
            ]
        self.lots.start()
        self.portfolios.start()
        self.instruments.start()
        self._recompute()

        if migrate:
            return await self.migrator.run()
        return None

    def stop(self) -> None:
        """Unsubscribe every store. In-flight writes still complete."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self.lots.stop()
        self.portfolios.stop()
        self.instruments.stop()

    async def refresh(self) -> None:
        """Reload every collection explicitly."""
        await self.lots.refresh()
        await self.portfolios.refresh()
        await self.instruments.refresh()

    async def save_lot(self, fields: LotFields, lot_id: Optional[str] = None) -> Lot:
        return await self.lots.save(fields, lot_id)

    async def delete_lot(self, lot_id: str) -> None:
        await self.lots.delete(lot_id)

    async def delete_lots(self, lot_ids: list[str]) -> BatchReport:
        return await self.lots.delete_many(lot_ids)

    async def create_portfolio(self, name: str, description: str = "") -> Portfolio:
        return await self.portfolios.create(name, description)

    async def delete_portfolio(self, portfolio_id: str, name: str) -> BatchReport:
        return await self.portfolios.delete(portfolio_id, name)

    async def update_instrument(
        self,
        symbol: str,
        company_name: str = "",
        base_yield: Any = 0,
    ) -> Instrument:
        return await self.instruments.upsert_by_symbol(symbol, company_name, base_yield)

    def _recompute(self, _snapshot: Optional[list] = None) -> None:
        self._summaries = calculate_ticker_summaries(
            self.lots.items, self.instruments.items
        )
        for listener in list(self._summary_listeners):
            listener(self.summaries)


def open_service(settings: Settings) -> PortfolioDataService:
    """
    Build a service backed by JSON files under the configured data directory.

    Args:
        settings: Loaded settings

    Returns:
        PortfolioDataService (not yet started)
    """
    collections = open_collections(settings.data_dir)
    audit = AuditLogger(settings.audit_log) if settings.audit_log else None
    logger.debug(f"Opened collections in {settings.data_dir}")
    return PortfolioDataService(
        collections["lots"],
        collections["portfolios"],
        collections["instruments"],
        audit=audit,
        default_portfolio=settings.default_portfolio,
    )
