"""
Lot membership reconciliation on portfolio deletion.

Deleting a portfolio first rewrites the membership of every lot that
references it, then deletes the portfolio record. A lot that would be
left with no portfolio is moved to the default portfolio.
"""

import logging
from typing import TYPE_CHECKING

from lotkeeper.errors import GuardError, PartialBatchError, RemoteError, ValidationError
from lotkeeper.models import DEFAULT_PORTFOLIO, BatchReport, Lot, OutcomeStatus

if TYPE_CHECKING:
    from lotkeeper.stores.lots import LotStore
    from lotkeeper.stores.portfolios import PortfolioStore

logger = logging.getLogger(__name__)


def remaining_portfolios(
    portfolios: list[str],
    removed: str,
    fallback: str = DEFAULT_PORTFOLIO,
) -> list[str]:
    """
    Compute a lot's membership after a portfolio is removed.

    Args:
        portfolios: Current membership
        removed: Name of the portfolio being deleted
        fallback: Name used when nothing else remains

    Returns:
        Membership without ``removed`` or blank names, or ``[fallback]``
        if that is empty
    """
    updated = [
        name for name in portfolios
        if name != removed and name is not None and str(name).strip()
    ]
    if not updated:
        updated = [fallback]
    return updated


class MembershipReconciler:
    """
    Keeps every lot in at least one portfolio across portfolio deletion.

    Lot updates are issued sequentially and the portfolio is only deleted
    after all of them succeed. There is no rollback: if an update fails,
    lots already rewritten keep their new membership and the portfolio
    is left in place.
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

    async def delete_portfolio(self, portfolio_id: str, name: str) -> BatchReport:
        """
        Delete a portfolio and reassign its lots.

        Args:
            portfolio_id: Id of the portfolio record
            name: Portfolio name as referenced by lots

        Returns:
            BatchReport of the per-lot membership updates

        Raises:
            GuardError: If this is the last portfolio (nothing is changed)
            RemoteError: If listing lots or deleting the portfolio fails
            PartialBatchError: If some lot updates failed; the portfolio
                still exists
        """
        if len(self.portfolios) <= 1:
            raise GuardError(
                "Cannot delete the last portfolio. At least one portfolio must exist."
            )

        records = await self.lots.fetch_records()
        affected = [
            lot for lot in (Lot.from_record(r) for r in records if r is not None)
            if name in lot.portfolios
        ]

        report = BatchReport(operation=f"delete_portfolio:{name}")
        failure = None

        for lot in affected:
            if failure is not None:
                report.record(lot.id, OutcomeStatus.NOT_ATTEMPTED)
                continue
            updated = remaining_portfolios(lot.portfolios, name, self.default_portfolio)
            try:
                await self.lots.set_portfolios(lot.id, updated)
            except (RemoteError, ValidationError) as e:
                failure = e
                report.record(lot.id, OutcomeStatus.FAILED, str(e))
            else:
                report.record(lot.id, OutcomeStatus.SUCCEEDED)

        if failure is not None:
            logger.error(
                f"Portfolio {name!r} not deleted: reassigned {len(report.succeeded)} "
                f"of {len(affected)} lots before failing"
            )
            raise PartialBatchError(
                f"Failed to reassign lots from portfolio {name!r}", report
            ) from failure

        await self.portfolios.delete_record(portfolio_id)
        logger.info(f"Deleted portfolio {name!r}, reassigned {len(affected)} lots")

        if self.portfolios.audit:
            self.portfolios.audit.log_portfolio_deleted(portfolio_id, name, report)

        return report
