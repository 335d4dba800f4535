"""
Data Module
===========
Price bars, per-instrument market snapshots and a synthetic OHLCV source.

The core never owns live market state: snapshots and series are plain
values handed in by whoever drives the pipeline.
"""

import pandas as pd
import numpy as np
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional, Sequence, Union
import logging

logger = logging.getLogger(__name__)

OHLCV_COLUMNS = ['timestamp', 'open', 'high', 'low', 'close', 'volume']


class MarketRegime(Enum):
    """Qualitative market state."""
    TRENDING = "trending"
    RANGING = "ranging"
    VOLATILE = "volatile"


@dataclass(frozen=True)
class PriceBar:
    """Single OHLCV bar."""
    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float

    def to_dict(self) -> dict:
        return {
            'timestamp': self.timestamp,
            'open': self.open,
            'high': self.high,
            'low': self.low,
            'close': self.close,
            'volume': self.volume
        }


OhlcvSeries = Union[pd.DataFrame, Sequence[PriceBar]]


def to_frame(series: OhlcvSeries) -> pd.DataFrame:
    """
    Normalise an OHLCV series to a DataFrame with a fresh RangeIndex.

    Accepts a DataFrame (a DatetimeIndex is used as the timestamp when no
    timestamp column exists) or a sequence of PriceBar. The caller's
    object is never modified.
    """
    if isinstance(series, pd.DataFrame):
        df = series
        if 'timestamp' not in df.columns:
            if not isinstance(df.index, pd.DatetimeIndex):
                raise ValueError("OHLCV frame needs a 'timestamp' column or a DatetimeIndex")
            df = df.rename_axis('timestamp').reset_index()
        missing = [col for col in OHLCV_COLUMNS if col not in df.columns]
        if missing:
            raise ValueError(f"Missing columns: {missing}")
        return df[OHLCV_COLUMNS].reset_index(drop=True)

    return pd.DataFrame([bar.to_dict() for bar in series], columns=OHLCV_COLUMNS)


@dataclass(frozen=True)
class MarketSnapshot:
    """Current indicator state of one instrument."""
    instrument: str
    price: float
    spread: float  # pips
    atr: float
    vwap_slope: float
    rsi: float
    adx: float
    regime: MarketRegime
    correlation: float = 0.0
    last_update: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            'pair': self.instrument,
            'price': self.price,
            'spread': self.spread,
            'atr': self.atr,
            'vwapSlope': self.vwap_slope,
            'rsi': self.rsi,
            'adx': self.adx,
            'regime': self.regime.value,
            'correlation': self.correlation,
            'lastUpdate': self.last_update.isoformat()
        }

    @classmethod
    def from_dict(cls, instrument: str, data: dict) -> 'MarketSnapshot':
        """Build from a broadcast-style payload (camelCase keys)."""
        last_update = data.get('lastUpdate')
        if isinstance(last_update, str):
            last_update = datetime.fromisoformat(last_update)

        return cls(
            instrument=instrument,
            price=float(data['price']),
            spread=float(data['spread']),
            atr=float(data['atr']),
            vwap_slope=float(data['vwapSlope']),
            rsi=float(data['rsi']),
            adx=float(data['adx']),
            regime=MarketRegime(data['regime']),
            correlation=float(data.get('correlation', 0.0)),
            last_update=last_update or datetime.now()
        )


def seed_snapshots() -> Dict[str, MarketSnapshot]:
    """Initial market state the live driver starts from."""
    now = datetime.now()
    return {
        'EUR/USD': MarketSnapshot(
            instrument='EUR/USD',
            price=1.0855,
            spread=1.1,
            atr=0.0085,
            vwap_slope=0.0003,
            rsi=52,
            adx=28,
            regime=MarketRegime.TRENDING,
            correlation=0.82,
            last_update=now
        ),
        'GBP/USD': MarketSnapshot(
            instrument='GBP/USD',
            price=1.2645,
            spread=1.5,
            atr=0.0112,
            vwap_slope=-0.0001,
            rsi=48,
            adx=22,
            regime=MarketRegime.RANGING,
            correlation=0.82,
            last_update=now
        )
    }


class MockDataSource:
    """Synthetic hourly OHLCV data for demos and paper runs."""

    def __init__(self, rng: Optional[np.random.Generator] = None):
        self.rng = rng or np.random.default_rng()
        self.base_prices = {
            'EUR/USD': 1.0855
        }
        self.default_base_price = 1.2645

    def fetch_ohlcv(self, instrument: str, periods: int = 50,
                    end: Optional[datetime] = None) -> pd.DataFrame:
        """Generate a random-walk series of `periods` bars ending at `end`."""
        end = end or datetime.now()
        price = self.base_prices.get(instrument, self.default_base_price)

        data = []
        for i in range(periods, 0, -1):
            change = (self.rng.random() - 0.5) * 0.002
            price = max(0.0, price + change)

            data.append({
                'timestamp': end - timedelta(hours=i),
                'open': price,
                'high': price + self.rng.random() * 0.001,
                'low': price - self.rng.random() * 0.001,
                'close': price,
                'volume': int(self.rng.integers(500, 1500))
            })

        logger.debug(f"Generated {periods} mock bars for {instrument}")
        return pd.DataFrame(data, columns=OHLCV_COLUMNS)
