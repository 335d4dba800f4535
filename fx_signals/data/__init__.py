"""
Data Module
===========
"""
from .market_data import (
    MarketRegime,
    MarketSnapshot,
    MockDataSource,
    OhlcvSeries,
    PriceBar,
    seed_snapshots,
    to_frame
)

__all__ = [
    'MarketRegime',
    'MarketSnapshot',
    'MockDataSource',
    'OhlcvSeries',
    'PriceBar',
    'seed_snapshots',
    'to_frame'
]
