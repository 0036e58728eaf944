"""
Lot store.

Validates lot fields before any remote write, persists the total cost at
write time, and runs batch deletes as sequential best-effort operations.
"""

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from lotkeeper.analytics.summary import filter_lots_by_portfolio, get_lots_for_symbol
from lotkeeper.data.collections.base import Record
from lotkeeper.errors import PartialBatchError, RemoteError, ValidationError
from lotkeeper.models import BatchReport, Lot, LotFields, OutcomeStatus
from lotkeeper.stores.base import ObservableStore

logger = logging.getLogger(__name__)


def _positive_decimal(value: Any, field_name: str) -> Decimal:
    try:
        decimal_value = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"Invalid number for {field_name}: {value}")

    if not decimal_value.is_finite() or decimal_value <= 0:
        raise ValidationError(f"{field_name} must be positive, got {value}")

    return decimal_value


def validate_portfolios(portfolios: list[str]) -> list[str]:
    """
    Validate a membership list.

    Returns:
        Names stripped of surrounding whitespace, duplicates removed

    Raises:
        ValidationError: If the list is empty or contains a blank name
    """
    names: list[str] = []
    for name in portfolios or []:
        name = str(name).strip() if name is not None else ""
        if not name:
            raise ValidationError("Portfolio names cannot be empty")
        if name not in names:
            names.append(name)
    if not names:
        raise ValidationError("A lot must belong to at least one portfolio")
    return names


def validate_lot_fields(fields: LotFields) -> LotFields:
    """
    Validate lot fields and return a normalized copy.

    Args:
        fields: User-supplied fields

    Returns:
        LotFields with Decimal quantities and a trimmed symbol

    Raises:
        ValidationError: If the symbol is empty, shares or cost per share
            are not positive, the date is not YYYY-MM-DD, or the lot has
            no portfolio
    """
    symbol = (fields.instrument_symbol or "").strip()
    if not symbol:
        raise ValidationError("Ticker symbol is required")

    shares = _positive_decimal(fields.shares, "shares")
    cost_per_share = _positive_decimal(fields.cost_per_share, "cost_per_share")

    purchase_date = str(fields.purchase_date or "").strip()
    try:
        datetime.strptime(purchase_date, "%Y-%m-%d")
    except ValueError:
        raise ValidationError(
            f"Invalid purchase date: {fields.purchase_date!r}. Expected YYYY-MM-DD"
        )

    return LotFields(
        instrument_symbol=symbol,
        shares=shares,
        cost_per_share=cost_per_share,
        purchase_date=purchase_date,
        portfolios=validate_portfolios(fields.portfolios),
        notes=fields.notes or "",
        calculate_accumulated_pnl=fields.calculate_accumulated_pnl,
    )


class LotStore(ObservableStore[Lot]):
    """
    Cached view of lots with validated mutators.

    Consumers should treat every notification as a full replacement of
    the lot list.
    """

    entity_name = "lot"

    def normalize(self, record: Record) -> Lot:
        return Lot.from_record(record)

    async def create(self, fields: LotFields) -> Lot:
        """
        Create a lot.

        Raises:
            ValidationError: If fields are invalid (no remote call is made)
            RemoteError: If the collection rejects the write
        """
        validated = validate_lot_fields(fields)
        record = await self._remote("create lot", self.collection.create(validated.to_record()))
        lot = Lot.from_record(record)
        logger.info(f"Created lot {lot.id} ({lot.instrument_symbol} x {lot.shares})")
        if self.audit:
            self.audit.log_lot_saved(lot, created=True)
        return lot

    async def update(self, lot_id: str, fields: LotFields) -> Lot:
        """
        Update a lot, recomputing its persisted total cost.

        Raises:
            ValidationError: If fields are invalid (no remote call is made)
            RemoteError: If the collection rejects the write
        """
        validated = validate_lot_fields(fields)
        payload = {"id": lot_id, **validated.to_record()}
        record = await self._remote(f"update lot {lot_id}", self.collection.update(payload))
        lot = Lot.from_record(record)
        logger.info(f"Updated lot {lot.id}")
        if self.audit:
            self.audit.log_lot_saved(lot, created=False)
        return lot

    async def save(self, fields: LotFields, lot_id: Optional[str] = None) -> Lot:
        """Create a new lot, or update ``lot_id`` when given."""
        if lot_id:
            return await self.update(lot_id, fields)
        return await self.create(fields)

    async def set_portfolios(self, lot_id: str, portfolios: list[str]) -> Lot:
        """
        Replace a lot's membership without touching its other fields.

        Raises:
            ValidationError: If the membership would be empty
            RemoteError: If the collection rejects the write
        """
        names = validate_portfolios(portfolios)
        record = await self._remote(
            f"update portfolios of lot {lot_id}",
            self.collection.update({"id": lot_id, "portfolios": names}),
        )
        return Lot.from_record(record)

    async def delete(self, lot_id: str) -> None:
        """
        Delete a single lot.

        Raises:
            RemoteError: If the collection rejects the delete
        """
        await self._remote(f"delete lot {lot_id}", self.collection.delete(lot_id))
        logger.info(f"Deleted lot {lot_id}")
        if self.audit:
            report = BatchReport(operation="delete_lot")
            report.record(lot_id, OutcomeStatus.SUCCEEDED)
            self.audit.log_lots_deleted(report)

    async def delete_many(self, lot_ids: list[str]) -> BatchReport:
        """
        Delete several lots, one at a time, in order.

        This is not atomic. On the first failure the remaining ids are not
        attempted and deletes that already succeeded stay in effect.

        Returns:
            BatchReport with every id marked succeeded

        Raises:
            PartialBatchError: If any delete failed; the report lists which
                ids succeeded, failed and were not attempted
        """
        report = BatchReport(operation="delete_lots")
        failure: Optional[RemoteError] = None

        for lot_id in lot_ids:
            if failure is not None:
                report.record(lot_id, OutcomeStatus.NOT_ATTEMPTED)
                continue
            try:
                await self._remote(f"delete lot {lot_id}", self.collection.delete(lot_id))
            except RemoteError as e:
                failure = e
                report.record(lot_id, OutcomeStatus.FAILED, str(e))
            else:
                report.record(lot_id, OutcomeStatus.SUCCEEDED)

        if self.audit:
            self.audit.log_lots_deleted(report)

        if failure is not None:
            logger.error(
                f"Batch delete stopped after {len(report.succeeded)} of "
                f"{len(lot_ids)} lots: {failure}"
            )
            raise PartialBatchError("Failed to delete selected lots", report) from failure

        logger.info(f"Deleted {len(report.succeeded)} lots")
        return report

    def lots_for_symbol(self, symbol: str) -> list[Lot]:
        """Cached lots for a symbol, most recent purchase first."""
        return get_lots_for_symbol(self.items, symbol)

    def lots_in_portfolio(self, portfolio_name: str) -> list[Lot]:
        """Cached lots whose membership contains the portfolio name."""
        return filter_lots_by_portfolio(self.items, portfolio_name)
