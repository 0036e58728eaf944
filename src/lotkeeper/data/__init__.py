"""
Data module for lotkeeper.

Provides the collection backends behind the stores and CSV import/export
of lots and per-ticker summaries.
"""

from lotkeeper.data.loaders import (
    DataLoadError,
    load_lots_csv,
    save_lots_csv,
    save_summaries_csv,
)
from lotkeeper.data.schemas import (
    LOTS_SCHEMA,
    SUMMARY_SCHEMA,
)

__all__ = [
    "DataLoadError",
    "load_lots_csv",
    "save_lots_csv",
    "save_summaries_csv",
    "LOTS_SCHEMA",
    "SUMMARY_SCHEMA",
]
