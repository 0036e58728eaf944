"""
Instrument (ticker metadata) store.

Instruments are upserted by symbol: look up by exact symbol, then update
the match or create a new record. The collection offers no conditional
create, so this is a check-then-act sequence. Upserts for the same symbol
are serialized within this process; two separate sessions can still race
and leave duplicate records.
"""

import asyncio
import logging
from collections import defaultdict
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from lotkeeper.data.collections.base import Collection, Record
from lotkeeper.errors import ValidationError
from lotkeeper.logging.audit_log import AuditLogger
from lotkeeper.models import Instrument
from lotkeeper.stores.base import ObservableStore

logger = logging.getLogger(__name__)


class InstrumentStore(ObservableStore[Instrument]):
    """Cached view of instrument metadata."""

    entity_name = "instrument"

    def __init__(self, collection: Collection, audit: Optional[AuditLogger] = None):
        super().__init__(collection, audit)
        self._symbol_locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def normalize(self, record: Record) -> Instrument:
        return Instrument.from_record(record)

    def get_by_symbol(self, symbol: str) -> Optional[Instrument]:
        """First cached instrument with this exact symbol."""
        for instrument in self.items:
            if instrument.symbol == symbol:
                return instrument
        return None

    async def upsert_by_symbol(
        self,
        symbol: str,
        company_name: str = "",
        base_yield: Any = Decimal("0"),
    ) -> Instrument:
        """
        Create or update the instrument for a symbol.

        Args:
            symbol: Exact ticker symbol
            company_name: Company name
            base_yield: Informational yield percentage

        Returns:
            The stored instrument

        Raises:
            ValidationError: If the symbol is empty or the yield is not a number
            RemoteError: If a collection call fails
        """
        symbol = (symbol or "").strip()
        if not symbol:
            raise ValidationError("Ticker symbol is required")
        try:
            yield_value = Decimal(str(base_yield if base_yield is not None else 0))
        except InvalidOperation:
            raise ValidationError(f"Invalid base yield: {base_yield}")

        async with self._symbol_locks[symbol]:
            existing = await self.fetch_records({"symbol": symbol})
            if existing:
                if len(existing) > 1:
                    logger.warning(
                        f"Found {len(existing)} instrument records for {symbol}; "
                        "updating the first"
                    )
                record = await self._remote(
                    f"update instrument {symbol}",
                    self.collection.update({
                        "id": existing[0]["id"],
                        "companyName": company_name or "",
                        "baseYield": yield_value,
                    }),
                )
                created = False
            else:
                record = await self._remote(
                    f"create instrument {symbol}",
                    self.collection.create({
                        "symbol": symbol,
                        "companyName": company_name or "",
                        "baseYield": yield_value,
                    }),
                )
                created = True

        instrument = Instrument.from_record(record)
        logger.info(f"{'Created' if created else 'Updated'} instrument {symbol}")
        if self.audit:
            self.audit.log_instrument_upserted(instrument, created)
        return instrument
