"""
Regime Detection
================
Classifies the market as trending, ranging or volatile from the latest
trend-strength (ADX) and VWAP slope readings.
"""

import logging

from ..data.market_data import MarketRegime

logger = logging.getLogger(__name__)


class RegimeClassifier:
    """
    Stateless regime classifier.

    Rules, first match wins:
        ADX > trend_adx and |VWAP slope| > min_vwap_slope -> TRENDING
        ADX < range_adx                                   -> RANGING
        otherwise                                         -> VOLATILE

    Every call is independent of the previous one, so a reading sitting on
    a threshold can flip the regime from one tick to the next.
    """

    def __init__(self, config=None):
        from ..config import RegimeConfig
        self.config = config or RegimeConfig()

    def classify(self, adx: float, vwap_slope: float) -> MarketRegime:
        if adx > self.config.trend_adx and abs(vwap_slope) > self.config.min_vwap_slope:
            return MarketRegime.TRENDING
        elif adx < self.config.range_adx:
            return MarketRegime.RANGING
        return MarketRegime.VOLATILE

    def classify_snapshot(self, snapshot) -> MarketRegime:
        """Classify from a MarketSnapshot's own ADX and VWAP slope."""
        return self.classify(snapshot.adx, snapshot.vwap_slope)
