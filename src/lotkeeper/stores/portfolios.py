"""
Portfolio store.

Enforces name uniqueness against the cached snapshot and refuses to
delete the last remaining portfolio.
"""

import logging
from typing import Optional

from lotkeeper.data.collections.base import Collection, Record
from lotkeeper.errors import GuardError, ValidationError
from lotkeeper.logging.audit_log import AuditLogger
from lotkeeper.models import DEFAULT_PORTFOLIO, BatchReport, Portfolio
from lotkeeper.portfolio.membership import MembershipReconciler
from lotkeeper.stores.base import ObservableStore
from lotkeeper.stores.lots import LotStore

logger = logging.getLogger(__name__)


class PortfolioStore(ObservableStore[Portfolio]):
    """Cached view of portfolios."""

    entity_name = "portfolio"

    def __init__(
        self,
        collection: Collection,
        lots: LotStore,
        audit: Optional[AuditLogger] = None,
        default_portfolio: str = DEFAULT_PORTFOLIO,
    ):
        super().__init__(collection, audit)
        self.reconciler = MembershipReconciler(lots, self, default_portfolio)

    def normalize(self, record: Record) -> Portfolio:
        return Portfolio.from_record(record)

    def names(self) -> list[str]:
        return [p.name for p in self.items]

    def find_by_name(self, name: str) -> Optional[Portfolio]:
        for portfolio in self.items:
            if portfolio.name == name:
                return portfolio
        return None

    async def create(self, name: str, description: str = "") -> Portfolio:
        """
        Create a portfolio.

        Uniqueness is checked against the cached snapshot only; the
        collection does not enforce it.

        Raises:
            ValidationError: If the name is empty or already used
            RemoteError: If the collection rejects the write
        """
        name = (name or "").strip()
        description = (description or "").strip()
        if not name:
            raise ValidationError("Portfolio name cannot be empty")
        if self.find_by_name(name) is not None:
            raise ValidationError(f"A portfolio named {name!r} already exists")

        record = await self._remote(
            f"create portfolio {name!r}",
            self.collection.create({"name": name, "description": description}),
        )
        portfolio = Portfolio.from_record(record)
        logger.info(f"Created portfolio {name!r}")
        if self.audit:
            self.audit.log_portfolio_created(portfolio)
        return portfolio

    async def delete(self, portfolio_id: str, name: str) -> BatchReport:
        """
        Delete a portfolio, reassigning its lots first.

        Raises:
            GuardError: If it is the last portfolio; nothing is contacted
            PartialBatchError: If reassigning lots failed partway
            RemoteError: If a collection call fails
        """
        if len(self) <= 1:
            raise GuardError(
                "Cannot delete the last portfolio. At least one portfolio must exist."
            )
        return await self.reconciler.delete_portfolio(portfolio_id, name)

    async def delete_record(self, portfolio_id: str) -> None:
        """Delete the portfolio record only, without touching lots."""
        await self._remote(
            f"delete portfolio {portfolio_id}", self.collection.delete(portfolio_id)
        )
