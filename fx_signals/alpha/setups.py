"""
Trade Setups
============
Setup types and the entry / stop-loss / take-profit rules attached to them.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional
import logging

from ..data.market_data import MarketRegime, MarketSnapshot

logger = logging.getLogger(__name__)


class TradeDirection(Enum):
    """Trade direction."""
    LONG = "long"
    SHORT = "short"

    @property
    def sign(self) -> int:
        return 1 if self is TradeDirection.LONG else -1


class SetupType(Enum):
    """Trade thesis."""
    TREND_CONTINUATION = "Trend Continuation"
    LIQUIDITY_REVERSAL = "Liquidity Reversal"

    @classmethod
    def for_regime(cls, regime: MarketRegime) -> 'SetupType':
        """Trending markets are traded with the trend, everything else against the sweep."""
        if regime == MarketRegime.TRENDING:
            return cls.TREND_CONTINUATION
        return cls.LIQUIDITY_REVERSAL

    @property
    def rule(self) -> 'SetupRule':
        return SETUP_RULES[self]


@dataclass(frozen=True)
class SetupRule:
    """ATR multiples and direction logic for a setup."""
    stop_multiplier: float
    target_multiplier: float
    direction: Callable[[MarketSnapshot], TradeDirection]


def _trend_direction(snapshot: MarketSnapshot) -> TradeDirection:
    return TradeDirection.LONG if snapshot.vwap_slope > 0 else TradeDirection.SHORT


def _reversal_direction(snapshot: MarketSnapshot) -> TradeDirection:
    # Overbought fades short; oversold or neutral fades long
    return TradeDirection.SHORT if snapshot.rsi > 70 else TradeDirection.LONG


SETUP_RULES = {
    SetupType.TREND_CONTINUATION: SetupRule(
        stop_multiplier=1.5,
        target_multiplier=2.0,
        direction=_trend_direction
    ),
    SetupType.LIQUIDITY_REVERSAL: SetupRule(
        stop_multiplier=1.0,
        target_multiplier=1.5,
        direction=_reversal_direction
    )
}


@dataclass(frozen=True)
class TradeLevels:
    """Entry, stop-loss and take-profit for a candidate trade."""
    entry: float
    stop_loss: float
    take_profit: float
    direction: TradeDirection

    @property
    def risk(self) -> float:
        return abs(self.entry - self.stop_loss)

    @property
    def reward(self) -> float:
        return abs(self.take_profit - self.entry)

    @property
    def risk_reward(self) -> float:
        return self.reward / self.risk


class TradeLevelCalculator:
    """Derives trade levels from a snapshot for a given setup."""

    def calculate(self, snapshot: MarketSnapshot, setup: SetupType) -> Optional[TradeLevels]:
        """
        Levels for `setup` at the snapshot's current price.

        Returns:
            TradeLevels, or None when ATR is zero, negative or not finite
            (the stop would sit on the entry)
        """
        atr = snapshot.atr
        if not math.isfinite(atr) or atr <= 0:
            logger.debug(f"{snapshot.instrument}: degenerate ATR {atr}, no levels")
            return None

        rule = setup.rule
        direction = rule.direction(snapshot)
        entry = snapshot.price

        stop_loss = entry - direction.sign * atr * rule.stop_multiplier
        take_profit = entry + direction.sign * atr * rule.target_multiplier

        if stop_loss == entry:
            logger.debug(f"{snapshot.instrument}: stop equals entry, no levels")
            return None

        return TradeLevels(
            entry=entry,
            stop_loss=stop_loss,
            take_profit=take_profit,
            direction=direction
        )
