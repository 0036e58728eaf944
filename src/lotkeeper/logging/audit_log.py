"""
Append-only audit logging for lotkeeper.

Every mutation that changes lots, portfolios or instruments is recorded
with a timestamp so a session's changes can be reviewed afterwards.
"""

import json
import logging
from datetime import datetime, date
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

from lotkeeper.models import (
    ActionType,
    AuditLogEntry,
    BatchReport,
    Instrument,
    Lot,
    MigrationReport,
    Portfolio,
)


def configure_logging(level: str = "INFO", log_file: Optional[str | Path] = None) -> None:
    """
    Configure stdlib logging for command-line use.

    Args:
        level: Log level name
        log_file: Optional file to write alongside stderr
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )


class AuditLogger:
    """
    Append-only audit logger.

    Writes all entries to a JSONL file. Each line is a complete JSON
    object representing one action.
    """

    def __init__(self, log_path: str | Path):
        """
        Initialize the audit logger.

        Args:
            log_path: Path to the log file (will be created if not exists)
        """
        self.log_path = Path(log_path)
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def log(self, entry: AuditLogEntry) -> None:
        """
        Write an audit log entry.

        Args:
            entry: AuditLogEntry to write
        """
        record = {
            "timestamp": entry.timestamp.isoformat(),
            "action_type": entry.action_type.value,
            "subject": entry.subject,
            "details": entry.details,
        }

        with open(self.log_path, "a") as f:
            f.write(json.dumps(record, cls=DecimalEncoder) + "\n")

    def log_lot_saved(self, lot: Lot, created: bool) -> None:
        """Log a lot create or update."""
        details = {
            "created": created,
            "ticker": lot.instrument_symbol,
            "shares": str(lot.shares),
            "cost_per_share": str(lot.cost_per_share),
            "total_cost": str(lot.total_cost),
            "portfolios": list(lot.portfolios),
        }
        self.log(AuditLogEntry.create(ActionType.LOT_SAVED, lot.id, details))

    def log_lots_deleted(self, report: BatchReport) -> None:
        """Log a single or batch lot delete, including partial outcomes."""
        details = {
            "succeeded": report.succeeded,
            "failed": report.failed,
            "not_attempted": report.not_attempted,
        }
        self.log(AuditLogEntry.create(ActionType.LOTS_DELETED, None, details))

    def log_portfolio_created(self, portfolio: Portfolio) -> None:
        """Log portfolio creation."""
        details = {"id": portfolio.id, "description": portfolio.description}
        self.log(AuditLogEntry.create(ActionType.PORTFOLIO_CREATED, portfolio.name, details))

    def log_portfolio_deleted(self, portfolio_id: str, name: str, report: BatchReport) -> None:
        """
        Log portfolio deletion with the lot membership rewrites it caused.

        Args:
            portfolio_id: Deleted portfolio id
            name: Deleted portfolio name
            report: Per-lot membership updates
        """
        details = {
            "id": portfolio_id,
            "lots_reassigned": report.succeeded,
            "num_lots_reassigned": len(report.succeeded),
        }
        self.log(AuditLogEntry.create(ActionType.PORTFOLIO_DELETED, name, details))

    def log_instrument_upserted(self, instrument: Instrument, created: bool) -> None:
        """Log an instrument upsert."""
        details = {
            "created": created,
            "company_name": instrument.company_name,
            "base_yield": str(instrument.base_yield),
        }
        self.log(AuditLogEntry.create(ActionType.INSTRUMENT_UPSERTED, instrument.symbol, details))

    def log_migration_completed(self, report: MigrationReport) -> None:
        """Log a legacy migration pass."""
        details = {
            "default_created": report.default_created,
            "lots_backfilled": report.lot_updates.succeeded,
            "lots_failed": report.lot_updates.failed,
            "write_count": report.write_count,
        }
        self.log(AuditLogEntry.create(ActionType.MIGRATION_COMPLETED, None, details))

    def read_log(self) -> list[AuditLogEntry]:
        """
        Read all entries from the log file.

        Returns:
            List of AuditLogEntry objects
        """
        if not self.log_path.exists():
            return []

        entries = []
        with open(self.log_path, "r") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                record = json.loads(line)
                entries.append(
                    AuditLogEntry(
                        timestamp=datetime.fromisoformat(record["timestamp"]),
                        action_type=ActionType(record["action_type"]),
                        subject=record.get("subject"),
                        details=record.get("details", {}),
                    )
                )

        return entries

    def filter_by_action_type(
        self,
        action_type: ActionType,
    ) -> list[AuditLogEntry]:
        """
        Get log entries of a specific action type.

        Args:
            action_type: Action type to filter by

        Returns:
            Filtered list of entries
        """
        return [e for e in self.read_log() if e.action_type == action_type]


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder that handles Decimal types."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, (date, datetime)):
            return obj.isoformat()
        return super().default(obj)
