"""
Data loading and saving functions for CSV files.

Handles importing lots from a spreadsheet export and writing lot and
per-ticker summary reports.
"""

from decimal import InvalidOperation
from pathlib import Path

import pandas as pd

from lotkeeper.data.schemas import LOTS_SCHEMA, SUMMARY_SCHEMA, FileSchema
from lotkeeper.models import DEFAULT_PORTFOLIO, Lot, LotFields, TickerSummary, to_decimal

PORTFOLIO_SEPARATOR = ";"


class DataLoadError(Exception):
    """Raised when data cannot be loaded or is invalid."""
    pass


def load_lots_csv(
    file_path: str | Path,
    default_portfolio: str = DEFAULT_PORTFOLIO,
) -> list[LotFields]:
    """
    Load lots from a CSV file for import.

    The returned fields are not validated; pass each one through
    ``LotStore.create`` so invalid rows are rejected before any write.

    Args:
        file_path: Path to CSV file with columns ticker, shares,
            cost_per_share, purchase_date and optionally portfolios, notes
        default_portfolio: Membership for rows with no portfolios value

    Returns:
        List of LotFields, one per row

    Raises:
        DataLoadError: If file cannot be loaded, is missing columns, or
            has a non-numeric shares or cost_per_share value
    """
    file_path = Path(file_path)
    df = _load_csv(file_path, LOTS_SCHEMA)

    lots = []
    for index, row in df.iterrows():
        # Header is line 1
        line = index + 2
        portfolios = _split_portfolios(row.get("portfolios"))
        notes = row.get("notes")
        try:
            shares = to_decimal(row["shares"])
            cost_per_share = to_decimal(row["cost_per_share"])
        except InvalidOperation:
            raise DataLoadError(
                f"Invalid number in {file_path} line {line}: "
                f"shares={row['shares']!r}, cost_per_share={row['cost_per_share']!r}"
            )
        lots.append(
            LotFields(
                instrument_symbol=str(row["ticker"]).strip(),
                shares=shares,
                cost_per_share=cost_per_share,
                purchase_date=str(row["purchase_date"]).strip(),
                portfolios=portfolios or [default_portfolio],
                notes="" if pd.isna(notes) else str(notes),
            )
        )

    return lots


def save_lots_csv(
    lots: list[Lot],
    output_path: str | Path,
) -> Path:
    """
    Save lots to CSV file.

    Args:
        lots: List of Lot objects to save
        output_path: Path for output CSV file

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    records = []
    for lot in lots:
        records.append({
            "lot_id": lot.id,
            "ticker": lot.instrument_symbol,
            "shares": float(lot.shares),
            "cost_per_share": float(lot.cost_per_share),
            "purchase_date": lot.purchase_date,
            "portfolios": PORTFOLIO_SEPARATOR.join(lot.portfolios),
            "notes": lot.notes,
            "total_cost": float(lot.total_cost),
        })

    df = pd.DataFrame(records, columns=LOTS_SCHEMA.all_columns)
    df.to_csv(output_path, index=False)

    return output_path


def save_summaries_csv(
    summaries: list[TickerSummary],
    output_path: str | Path,
) -> Path:
    """
    Save per-ticker summaries to CSV file.

    Args:
        summaries: Summaries in display order
        output_path: Path for output CSV file

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    records = []
    for summary in summaries:
        records.append({
            "ticker": summary.instrument_symbol,
            "total_shares": float(summary.total_shares),
            "total_cost": float(summary.total_cost),
            "average_cost_per_share": round(float(summary.average_cost_per_share), 6),
            "lot_count": summary.lot_count,
            "earliest_purchase": summary.earliest_purchase,
            "latest_purchase": summary.latest_purchase,
        })

    df = pd.DataFrame(records, columns=SUMMARY_SCHEMA.all_columns)
    df.to_csv(output_path, index=False)

    return output_path


def _split_portfolios(value) -> list[str]:
    if value is None or pd.isna(value):
        return []
    names = [name.strip() for name in str(value).split(PORTFOLIO_SEPARATOR)]
    return [name for name in names if name]


def _load_csv(file_path: Path, schema: FileSchema) -> pd.DataFrame:
    """
    Load a CSV file and validate against schema.

    Args:
        file_path: Path to CSV file
        schema: Expected file schema

    Returns:
        Loaded DataFrame

    Raises:
        DataLoadError: If file cannot be loaded or has missing columns
    """
    if not file_path.exists():
        raise DataLoadError(f"File not found: {file_path}")

    try:
        # Keep tickers and dates as text
        df = pd.read_csv(
            file_path,
            dtype={"ticker": str, "purchase_date": str, "portfolios": str, "notes": str},
        )
    except Exception as e:
        raise DataLoadError(f"Failed to load CSV file {file_path}: {e}")

    is_valid, missing = schema.validate_columns(df.columns.tolist())
    if not is_valid:
        raise DataLoadError(
            f"File {file_path} is missing required columns: {missing}"
        )

    return df
