import sys
from pathlib import Path

# Ensure project root on sys.path before importing the package
sys.path.append(str(Path(__file__).resolve().parents[1]))

from datetime import datetime

import numpy as np
import pandas as pd
import pytest

from fx_signals.data import MarketRegime, MarketSnapshot


def make_bars(closes, highs=None, lows=None, volumes=None, start="2024-01-01"):
    """OHLCV frame with hourly timestamps; high/low default to close."""
    n = len(closes)
    return pd.DataFrame({
        "timestamp": pd.date_range(start, periods=n, freq="h"),
        "open": closes,
        "high": highs if highs is not None else closes,
        "low": lows if lows is not None else closes,
        "close": closes,
        "volume": volumes if volumes is not None else [1000] * n,
    })


def random_bars(n, seed=0, base=1.0855):
    rng = np.random.default_rng(seed)
    closes = base + np.cumsum(rng.normal(0, 0.001, n))
    highs = closes + rng.random(n) * 0.001
    lows = closes - rng.random(n) * 0.001
    volumes = rng.integers(500, 1500, n)
    return make_bars(list(closes), list(highs), list(lows), list(volumes))


def make_snapshot(**overrides):
    values = dict(
        instrument="EUR/USD",
        price=1.0855,
        spread=1.1,
        atr=0.0085,
        vwap_slope=0.0003,
        rsi=52,
        adx=28,
        regime=MarketRegime.TRENDING,
        correlation=0.82,
        last_update=datetime(2024, 1, 1, 12, 0),
    )
    values.update(overrides)
    return MarketSnapshot(**values)


class FixedRng:
    """Stands in for a numpy Generator and always draws the same value."""

    def __init__(self, value):
        self.value = value

    def uniform(self, low, high):
        return self.value


@pytest.fixture
def example_snapshot():
    return make_snapshot()
