"""
Legacy schema migration.

Lots written before multi-portfolio support either have no membership at
all or carry a single ``portfolio`` string. This pass makes sure the
default portfolio exists and backfills ``portfolios`` on those lots. It is
safe to run on every session start: lots that already have a non-empty
membership are left alone, so a second run issues no writes.

An empty ``portfolios`` list is treated the same as a missing one and is
backfilled, since a lot must always belong to at least one portfolio. A
blank legacy ``portfolio`` string also falls back to the default.
"""

import logging
from typing import TYPE_CHECKING, Any, Optional

from lotkeeper.data.collections.base import Record
from lotkeeper.errors import PartialBatchError, RemoteError, ValidationError
from lotkeeper.models import DEFAULT_PORTFOLIO, BatchReport, MigrationReport, OutcomeStatus

if TYPE_CHECKING:
    from lotkeeper.stores.lots import LotStore
    from lotkeeper.stores.portfolios import PortfolioStore

logger = logging.getLogger(__name__)

LEGACY_PORTFOLIO_FIELD = "portfolio"
MEMBERSHIP_FIELD = "portfolios"
DEFAULT_DESCRIPTION = "Default portfolio for existing lots"


def backfilled_portfolios(
    record: Record,
    default_portfolio: str = DEFAULT_PORTFOLIO,
) -> Optional[list[str]]:
    """
    Decide the membership a stored lot record should be given.

    Args:
        record: Raw lot record as stored
        default_portfolio: Name used when the lot has no portfolio at all

    Returns:
        The membership to write, or None if the record already has a
        non-empty ``portfolios`` list
    """
    if record.get(MEMBERSHIP_FIELD):
        return None
    legacy: Any = record.get(LEGACY_PORTFOLIO_FIELD)
    if legacy is not None and str(legacy).strip():
        return [str(legacy).strip()]
    return [default_portfolio]


class LegacyMigrator:
    """
    One-time backfill of the default portfolio and lot memberships.

    Creating the default portfolio is a check-then-act sequence; two
    sessions starting at the same moment can both create it.
    """

    def __init__(
        self,
        lots: "LotStore",
        portfolios: "PortfolioStore",
        default_portfolio: str = DEFAULT_PORTFOLIO,
    ):
        self.lots = lots
        self.portfolios = portfolios
        self.default_portfolio = default_portfolio

    async def ensure_default_portfolio(self) -> bool:
        """
        Create the default portfolio if no portfolio has that exact name.

        Returns:
            True if it was created
        """
        records = await self.portfolios.fetch_records()
        if any(r and r.get("name") == self.default_portfolio for r in records):
            return False

        await self.portfolios.create(self.default_portfolio, DEFAULT_DESCRIPTION)
        return True

    async def run(self) -> MigrationReport:
        """
        Run the migration pass.

        Lot updates continue past individual failures so that one bad
        record does not block the rest.

        Returns:
            MigrationReport describing the writes issued

        Raises:
            RemoteError: If listing portfolios or lots fails, or the default
                portfolio cannot be created
            PartialBatchError: If any lot backfill failed
        """
        default_created = await self.ensure_default_portfolio()

        report = BatchReport(operation="legacy_migration")
        for record in await self.lots.fetch_records():
            if record is None:
                continue
            portfolios = backfilled_portfolios(record, self.default_portfolio)
            if portfolios is None:
                continue
            lot_id = str(record["id"])
            try:
                await self.lots.set_portfolios(lot_id, portfolios)
            except (RemoteError, ValidationError) as e:
                report.record(lot_id, OutcomeStatus.FAILED, str(e))
            else:
                report.record(lot_id, OutcomeStatus.SUCCEEDED)

        result = MigrationReport(default_created=default_created, lot_updates=report)
        if self.lots.audit and result.write_count:
            self.lots.audit.log_migration_completed(result)

        if report.failed:
            logger.error(
                f"Legacy migration backfilled {len(report.succeeded)} lots, "
                f"{len(report.failed)} failed"
            )
            raise PartialBatchError("Legacy migration did not complete", report)

        if result.write_count:
            logger.info(
                f"Legacy migration backfilled {len(report.succeeded)} lots"
                f"{' and created the default portfolio' if default_created else ''}"
            )
        return result
