"""
Indicator Engine
================
Technical indicators computed from an OHLCV series: VWAP, RSI, ATR,
directional movement (DX with +DI/-DI) and floor-trader pivot levels.

All functions are pure. A series that is too short for an indicator
yields an empty list (``None`` for pivots) rather than an exception;
callers must read that as "not yet computable", never as zero.
"""

import pandas as pd
import numpy as np
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
import logging

from ..data.market_data import MarketSnapshot, OhlcvSeries, to_frame

logger = logging.getLogger(__name__)


class InsufficientDataError(ValueError):
    """Raised when a value is required but the series is too short to compute it."""


@dataclass(frozen=True)
class IndicatorSample:
    """Single indicator reading."""
    timestamp: datetime
    value: float

    def to_dict(self) -> dict:
        return {'timestamp': self.timestamp, 'value': self.value}


@dataclass(frozen=True)
class VwapSample(IndicatorSample):
    """VWAP reading with its change from the previous reading."""
    slope: float = 0.0

    def to_dict(self) -> dict:
        return {'timestamp': self.timestamp, 'value': self.value, 'slope': self.slope}


@dataclass(frozen=True)
class DirectionalSample(IndicatorSample):
    """DX reading with the directional indicators it was derived from."""
    plus_di: float = 0.0
    minus_di: float = 0.0

    def to_dict(self) -> dict:
        return {
            'timestamp': self.timestamp,
            'value': self.value,
            'plusDI': self.plus_di,
            'minusDI': self.minus_di
        }


@dataclass(frozen=True)
class PivotLevels:
    """Classic floor-trader pivots."""
    pivot: float
    r1: float
    r2: float
    r3: float
    s1: float
    s2: float
    s3: float

    def to_dict(self) -> dict:
        return {
            'pivot': self.pivot,
            'r1': self.r1,
            'r2': self.r2,
            'r3': self.r3,
            's1': self.s1,
            's2': self.s2,
            's3': self.s3
        }


class TechnicalIndicators:
    """Technical analysis indicators over a normalised OHLCV frame."""

    @staticmethod
    def true_range(df: pd.DataFrame) -> pd.Series:
        """True range for every bar after the first."""
        prev_close = df['close'].shift(1)

        tr1 = df['high'] - df['low']
        tr2 = abs(df['high'] - prev_close)
        tr3 = abs(df['low'] - prev_close)

        true_range = pd.concat([tr1, tr2, tr3], axis=1).max(axis=1)
        return true_range.iloc[1:]

    @staticmethod
    def vwap(df: pd.DataFrame) -> List[VwapSample]:
        """Running volume-weighted typical price, one sample per bar."""
        if df.empty:
            return []

        typical_price = (df['high'] + df['low'] + df['close']) / 3
        cum_volume = df['volume'].cumsum()
        vwap = (typical_price * df['volume']).cumsum() / cum_volume.replace(0, np.nan)

        # No volume traded yet: fall back to the typical price
        vwap = vwap.fillna(typical_price)
        slope = vwap.diff().fillna(0.0)

        return [
            VwapSample(timestamp=ts, value=float(value), slope=float(s))
            for ts, value, s in zip(df['timestamp'], vwap, slope)
        ]

    @staticmethod
    def rsi_value(avg_gain: float, avg_loss: float) -> float:
        """RSI from smoothed averages; flat markets read 50, loss-free ones 100."""
        if avg_loss == 0:
            return 100.0 if avg_gain > 0 else 50.0

        rs = avg_gain / avg_loss
        rsi = 100 - (100 / (1 + rs))
        return min(max(rsi, 0.0), 100.0)

    @staticmethod
    def rsi(df: pd.DataFrame, period: int = 14) -> List[IndicatorSample]:
        """Relative Strength Index with Wilder smoothing."""
        if len(df) < period + 1:
            return []

        changes = np.diff(df['close'].to_numpy(dtype=float))
        timestamps = df['timestamp'].tolist()

        seed = changes[:period]
        avg_gain = seed[seed > 0].sum() / period
        avg_loss = abs(seed[seed <= 0].sum()) / period

        samples = []
        for i in range(period, len(changes)):
            change = changes[i]
            gain = change if change > 0 else 0.0
            loss = abs(change) if change <= 0 else 0.0

            avg_gain = (avg_gain * (period - 1) + gain) / period
            avg_loss = (avg_loss * (period - 1) + loss) / period

            samples.append(IndicatorSample(
                timestamp=timestamps[i + 1],
                value=TechnicalIndicators.rsi_value(avg_gain, avg_loss)
            ))

        return samples

    @staticmethod
    def atr(df: pd.DataFrame, period: int = 14) -> List[IndicatorSample]:
        """Average True Range with Wilder smoothing."""
        if len(df) < period + 1:
            return []

        true_ranges = TechnicalIndicators.true_range(df).to_numpy(dtype=float)
        timestamps = df['timestamp'].tolist()

        atr = true_ranges[:period].mean()
        samples = [IndicatorSample(timestamp=timestamps[period], value=float(atr))]

        for i in range(period, len(true_ranges)):
            atr = (atr * (period - 1) + true_ranges[i]) / period
            samples.append(IndicatorSample(timestamp=timestamps[i + 1], value=float(atr)))

        return samples

    @staticmethod
    def adx(df: pd.DataFrame, period: int = 14) -> List[DirectionalSample]:
        """
        Directional movement strength.

        Each reading is a DX over a sliding window: +DM, -DM and true range
        are simple means of the trailing `period` bars, with no second
        smoothing pass. This is the DX line, not Wilder's double-smoothed
        ADX, although it is published under the ADX name.
        """
        if len(df) < period * 2:
            return []

        high_diff = df['high'].diff()
        low_diff = -df['low'].diff()

        plus_dm = high_diff.where((high_diff > low_diff) & (high_diff > 0), 0.0).iloc[1:]
        minus_dm = low_diff.where((low_diff > high_diff) & (low_diff > 0), 0.0).iloc[1:]
        true_range = TechnicalIndicators.true_range(df)

        avg_plus_dm = plus_dm.rolling(window=period).mean()
        avg_minus_dm = minus_dm.rolling(window=period).mean()
        avg_tr = true_range.rolling(window=period).mean()

        # Flat windows have no range to measure direction against
        avg_tr = avg_tr.replace(0, np.nan)
        plus_di = (100 * avg_plus_dm / avg_tr).fillna(0.0)
        minus_di = (100 * avg_minus_dm / avg_tr).fillna(0.0)

        di_sum = (plus_di + minus_di).replace(0, np.nan)
        dx = (100 * abs(plus_di - minus_di) / di_sum).fillna(0.0)

        # DM/TR index label i belongs to bar i, so the window ending there
        # is stamped with that bar
        timestamps = df['timestamp']
        samples = []
        for idx in dx.index[period - 1:]:
            samples.append(DirectionalSample(
                timestamp=timestamps[idx],
                value=float(dx[idx]),
                plus_di=float(plus_di[idx]),
                minus_di=float(minus_di[idx])
            ))

        return samples

    @staticmethod
    def pivot_points(df: pd.DataFrame) -> Optional[PivotLevels]:
        """Floor pivots from the most recent bar."""
        if df.empty:
            return None

        last = df.iloc[-1]
        high, low, close = float(last['high']), float(last['low']), float(last['close'])
        pivot = (high + low + close) / 3

        return PivotLevels(
            pivot=pivot,
            r1=2 * pivot - low,
            r2=pivot + (high - low),
            r3=high + 2 * (pivot - low),
            s1=2 * pivot - high,
            s2=pivot - (high - low),
            s3=low - 2 * (high - pivot)
        )


@dataclass
class IndicatorSet:
    """Container for computed indicators."""
    vwap: List[VwapSample] = field(default_factory=list)
    rsi: List[IndicatorSample] = field(default_factory=list)
    atr: List[IndicatorSample] = field(default_factory=list)
    adx: List[DirectionalSample] = field(default_factory=list)
    pivot_points: Optional[PivotLevels] = None

    @property
    def is_complete(self) -> bool:
        """Whether every indicator has at least one reading."""
        return all([self.vwap, self.rsi, self.atr, self.adx]) and self.pivot_points is not None

    def to_dict(self) -> dict:
        return {
            'vwap': [s.to_dict() for s in self.vwap],
            'rsi': [s.to_dict() for s in self.rsi],
            'atr': [s.to_dict() for s in self.atr],
            'adx': [s.to_dict() for s in self.adx],
            'pivotPoints': self.pivot_points.to_dict() if self.pivot_points else {}
        }


class IndicatorEngine:
    """
    Main indicator class.

    Computes every indicator for a series and condenses the latest readings
    into a MarketSnapshot for the opportunity pipeline.
    """

    def __init__(self, config=None, regime_config=None):
        from ..config import IndicatorConfig
        from ..alpha.regime import RegimeClassifier
        self.config = config or IndicatorConfig()
        self.classifier = RegimeClassifier(regime_config)

        self.technical = TechnicalIndicators()

    def compute_indicators(self, series: OhlcvSeries) -> IndicatorSet:
        """
        Compute all indicators for an OHLCV series.

        Args:
            series: DataFrame with timestamp, open, high, low, close, volume
                columns, or a sequence of PriceBar, in ascending time order

        Returns:
            IndicatorSet; indicators the series is too short for are empty
        """
        df = to_frame(series)

        indicators = IndicatorSet(
            vwap=self.technical.vwap(df),
            rsi=self.technical.rsi(df, self.config.rsi_period),
            atr=self.technical.atr(df, self.config.atr_period),
            adx=self.technical.adx(df, self.config.adx_period),
            pivot_points=self.technical.pivot_points(df)
        )

        logger.debug(
            f"Computed indicators over {len(df)} bars: "
            f"vwap={len(indicators.vwap)} rsi={len(indicators.rsi)} "
            f"atr={len(indicators.atr)} adx={len(indicators.adx)}"
        )
        return indicators

    def build_snapshot(self, instrument: str, series: OhlcvSeries, spread: float,
                       correlation: float = 0.0) -> MarketSnapshot:
        """
        Condense a series into the latest MarketSnapshot.

        Raises:
            InsufficientDataError: if any indicator has no reading yet
        """
        df = to_frame(series)
        indicators = self.compute_indicators(df)

        missing = [name for name in ('vwap', 'rsi', 'atr', 'adx')
                   if not getattr(indicators, name)]
        if missing:
            raise InsufficientDataError(
                f"{instrument}: {len(df)} bars is not enough for {', '.join(missing)}"
            )

        adx = indicators.adx[-1].value
        vwap_slope = indicators.vwap[-1].slope

        return MarketSnapshot(
            instrument=instrument,
            price=float(df['close'].iloc[-1]),
            spread=spread,
            atr=indicators.atr[-1].value,
            vwap_slope=vwap_slope,
            rsi=indicators.rsi[-1].value,
            adx=adx,
            regime=self.classifier.classify(adx, vwap_slope),
            correlation=correlation,
            last_update=datetime.now()
        )


def compute_indicators(series: OhlcvSeries, config=None) -> IndicatorSet:
    """Compute VWAP, RSI, ATR, ADX and pivot levels for a series."""
    return IndicatorEngine(config).compute_indicators(series)
