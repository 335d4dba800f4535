"""
Opportunity Scoring
===================
Confidence score (0-100) for a market snapshot.

Starts from a base score and adds regime-aware contributions from VWAP
slope, RSI, ADX and spread, plus a bounded random term standing in for
market-structure confluence that is not modelled.
"""

import numpy as np
from typing import Dict, Optional
import logging

from ..data.market_data import MarketRegime, MarketSnapshot

logger = logging.getLogger(__name__)


class OpportunityScorer:
    """
    Scores a MarketSnapshot.

    The random market-structure term is drawn from the injected generator,
    uniform in [0, market_structure_max). Set market_structure_max to 0 (or
    pass a seeded generator) for reproducible scores.
    """

    def __init__(self, config=None, rng: Optional[np.random.Generator] = None):
        from ..config import ScoringConfig
        self.config = config or ScoringConfig()
        self.rng = rng or np.random.default_rng()

    def score_components(self, snapshot: MarketSnapshot) -> Dict[str, float]:
        """Individual score contributions, before the base score and clamping."""
        trending = snapshot.regime == MarketRegime.TRENDING

        return {
            'vwap_slope': self._vwap_slope_score(snapshot, trending),
            'rsi': self._rsi_score(snapshot.rsi, trending),
            'adx': self._adx_score(snapshot.adx),
            'spread': self._spread_score(snapshot),
            'market_structure': self._market_structure_score()
        }

    def score(self, snapshot: MarketSnapshot) -> int:
        """Total score, clamped to [0, 100] and rounded half to even. Acceptance gates on this integer."""
        components = self.score_components(snapshot)
        raw = self.config.base_score + sum(components.values())
        score = int(round(min(max(raw, 0), 100)))

        logger.debug(f"{snapshot.instrument} score {score} (raw {raw:.1f}): {components}")
        return score

    def _vwap_slope_score(self, snapshot: MarketSnapshot, trending: bool) -> float:
        if not trending:
            return 0

        slope = abs(snapshot.vwap_slope)
        score = 0
        if slope > self.config.trend_slope:
            score += 15
        if slope > self.config.strong_slope:
            score += 10  # Strong trend
        return score

    @staticmethod
    def _rsi_score(rsi: float, trending: bool) -> float:
        if trending:
            # Trends continue from moderate RSI
            if 45 <= rsi <= 65:
                return 12
            elif 40 <= rsi <= 70:
                return 6
            return 0

        # Ranging / volatile markets reward extremes
        if rsi > 70 or rsi < 30:
            return 15
        elif rsi > 65 or rsi < 35:
            return 8
        return 0

    @staticmethod
    def _adx_score(adx: float) -> float:
        if adx > 30:
            return 12
        elif adx > 25:
            return 8
        elif adx < 20:
            return 5  # Weak trend favours reversals
        return 0

    def _spread_score(self, snapshot: MarketSnapshot) -> float:
        normal_spread = self.config.normal_spread(snapshot.instrument)
        if snapshot.spread <= normal_spread:
            return 10
        elif snapshot.spread <= normal_spread * 1.2:
            return 5
        return -10

    def _market_structure_score(self) -> float:
        if self.config.market_structure_max <= 0:
            return 0.0
        return float(self.rng.uniform(0, self.config.market_structure_max))
