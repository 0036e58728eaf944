"""
Entity stores for lotkeeper.

Each store is an independently instantiable, push-synchronized cache of
one collection with validated mutators.
"""

from lotkeeper.stores.base import ObservableStore
from lotkeeper.stores.lots import LotStore, validate_lot_fields
from lotkeeper.stores.portfolios import PortfolioStore
from lotkeeper.stores.instruments import InstrumentStore

__all__ = [
    "ObservableStore",
    "LotStore",
    "validate_lot_fields",
    "PortfolioStore",
    "InstrumentStore",
]
