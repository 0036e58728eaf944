"""
Analytics module for lotkeeper.

Provides the per-ticker summary aggregation over lots.
"""

from lotkeeper.analytics.summary import (
    aggregate_lots_by_symbol,
    calculate_ticker_summaries,
    filter_lots_by_portfolio,
    get_lots_for_symbol,
    summaries_for_portfolio,
)

__all__ = [
    "aggregate_lots_by_symbol",
    "calculate_ticker_summaries",
    "filter_lots_by_portfolio",
    "get_lots_for_symbol",
    "summaries_for_portfolio",
]
