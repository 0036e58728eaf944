"""
Portfolio membership module for lotkeeper.

Provides the procedures that keep lot memberships consistent: reassigning
lots when a portfolio is deleted, and backfilling memberships on lots
stored under the older single-portfolio schema.
"""

from lotkeeper.portfolio.membership import MembershipReconciler, remaining_portfolios
from lotkeeper.portfolio.migration import LegacyMigrator, backfilled_portfolios

__all__ = [
    "MembershipReconciler",
    "remaining_portfolios",
    "LegacyMigrator",
    "backfilled_portfolios",
]
