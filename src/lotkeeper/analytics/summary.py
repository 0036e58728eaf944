"""
Per-ticker summary aggregation.

Provides pure functions for grouping lots by ticker symbol and deriving
the summary view shown to callers. Nothing here touches a collection.
"""

from decimal import Decimal
from typing import Optional

from lotkeeper.models import Instrument, Lot, TickerSummary


def aggregate_lots_by_symbol(lots: list[Lot]) -> dict[str, list[Lot]]:
    """
    Group lots by exact ticker symbol.

    Symbols are compared case-sensitively, so "AAPL" and "aapl" form
    separate groups. The returned dict preserves first-seen symbol order.

    Args:
        lots: List of lots

    Returns:
        Dictionary mapping symbol to its lots, in input order
    """
    groups: dict[str, list[Lot]] = {}
    for lot in lots:
        groups.setdefault(lot.instrument_symbol, []).append(lot)
    return groups


def summarize_symbol(symbol: str, lots: list[Lot]) -> TickerSummary:
    """
    Build the summary for one non-empty group of lots.

    Total cost is the sum of each lot's persisted total cost, not a
    recomputation from its current shares and cost per share.
    """
    total_shares = sum((lot.shares for lot in lots), Decimal("0"))
    total_cost = sum((lot.total_cost for lot in lots), Decimal("0"))
    dates = [lot.purchase_date for lot in lots]

    return TickerSummary(
        instrument_symbol=symbol,
        total_shares=total_shares,
        total_cost=total_cost,
        average_cost_per_share=total_cost / total_shares,
        lot_count=len(lots),
        earliest_purchase=min(dates),
        latest_purchase=max(dates),
    )


def calculate_ticker_summaries(
    lots: list[Lot],
    instruments: Optional[list[Instrument]] = None,
) -> list[TickerSummary]:
    """
    Derive per-ticker summaries from the current lots.

    Args:
        lots: Current lot snapshot
        instruments: Current instrument snapshot. Accepted so callers can
            recompute on either input changing; it does not affect the
            arithmetic, and base yield is never applied to cost basis.

    Returns:
        Summaries sorted by total cost descending. Ties keep the order in
        which each symbol was first seen in ``lots``.
    """
    summaries = [
        summarize_symbol(symbol, group)
        for symbol, group in aggregate_lots_by_symbol(lots).items()
    ]

    # list.sort is stable, so equal totals keep first-seen order
    summaries.sort(key=lambda s: s.total_cost, reverse=True)

    return summaries


def filter_lots_by_portfolio(lots: list[Lot], portfolio_name: str) -> list[Lot]:
    """
    Filter lots to those belonging to a portfolio.

    Args:
        lots: List of lots
        portfolio_name: Portfolio name to filter by

    Returns:
        Lots whose membership contains the name
    """
    return [lot for lot in lots if portfolio_name in lot.portfolios]


def summaries_for_portfolio(
    lots: list[Lot],
    portfolio_name: str,
    instruments: Optional[list[Instrument]] = None,
) -> list[TickerSummary]:
    """Per-ticker summaries restricted to one portfolio's lots."""
    return calculate_ticker_summaries(
        filter_lots_by_portfolio(lots, portfolio_name), instruments
    )


def get_lots_for_symbol(lots: list[Lot], symbol: str) -> list[Lot]:
    """
    Get all lots for a ticker symbol, most recent purchase first.

    Args:
        lots: List of lots
        symbol: Exact symbol to filter by

    Returns:
        Matching lots sorted by purchase date descending
    """
    matching = [lot for lot in lots if lot.instrument_symbol == symbol]
    matching.sort(key=lambda lot: lot.purchase_date, reverse=True)
    return matching
