"""
Opportunity Assembly
====================
Turns market snapshots into vetted trade opportunities.

Per instrument:
    score -> below threshold? drop
          -> setup from regime -> levels -> risk:reward below threshold? drop
          -> confidence + rationale -> Opportunity
"""

import uuid
import numpy as np
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional
import logging

from ..data.market_data import MarketRegime, MarketSnapshot
from .scoring import OpportunityScorer
from .setups import SetupType, TradeDirection, TradeLevelCalculator, TradeLevels

logger = logging.getLogger(__name__)


class Confidence(Enum):
    """Confidence bucket of an opportunity."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class Opportunity:
    """A vetted trade signal."""
    id: str
    instrument: str
    setup: SetupType
    direction: TradeDirection
    score: int
    entry: float
    stop_loss: float
    take_profit: float
    risk_reward: float
    confidence: Confidence
    timestamp: datetime
    regime: MarketRegime
    analysis: str

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'pair': self.instrument,
            'setup': self.setup.value,
            'direction': self.direction.value,
            'score': self.score,
            'entry': self.entry,
            'stopLoss': self.stop_loss,
            'takeProfit': self.take_profit,
            'riskReward': self.risk_reward,
            'confidence': self.confidence.value,
            'timestamp': self.timestamp.isoformat(),
            'regime': self.regime.value,
            'analysis': self.analysis
        }


@dataclass
class AssessmentReport:
    """Outcome of a batch assessment."""
    opportunities: List[Opportunity] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)
    assessed: List[str] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)


class OpportunityAssembler:
    """
    Main opportunity engine.

    Responsibilities:
    - Score each snapshot
    - Pick the setup for the regime and derive trade levels
    - Enforce minimum score and risk:reward
    - Isolate per-instrument failures in batch runs
    """

    def __init__(self, config=None, rng: Optional[np.random.Generator] = None,
                 scorer: Optional[OpportunityScorer] = None,
                 calculator: Optional[TradeLevelCalculator] = None):
        from ..config import ScoringConfig
        self.config = config or ScoringConfig()

        self.scorer = scorer or OpportunityScorer(self.config, rng=rng)
        self.calculator = calculator or TradeLevelCalculator()

    def assess_instrument(self, snapshot: MarketSnapshot,
                          min_score: Optional[float] = None) -> Optional[Opportunity]:
        """
        Assess a single instrument.

        Args:
            snapshot: Current market state of the instrument
            min_score: Acceptance score overriding the configured one

        Returns:
            Opportunity, or None if the snapshot does not qualify
        """
        min_score = self._resolve_min_score(min_score)
        instrument = snapshot.instrument

        score = self.scorer.score(snapshot)
        if score < min_score:
            logger.debug(f"{instrument}: score {score} below {min_score}")
            return None

        setup = SetupType.for_regime(snapshot.regime)
        levels = self.calculator.calculate(snapshot, setup)
        if levels is None:
            logger.info(f"{instrument}: no valid levels for {setup.value} (ATR {snapshot.atr})")
            return None

        # Gate on the ratio as reported
        risk_reward = round(levels.risk_reward, 2)
        if risk_reward < self.config.min_risk_reward:
            logger.debug(
                f"{instrument}: {setup.value} risk:reward {risk_reward} "
                f"below {self.config.min_risk_reward}"
            )
            return None

        confidence = self.confidence_for(score)
        opportunity = Opportunity(
            id=str(uuid.uuid4()),
            instrument=instrument,
            setup=setup,
            direction=levels.direction,
            score=score,
            entry=round(levels.entry, 5),
            stop_loss=round(levels.stop_loss, 5),
            take_profit=round(levels.take_profit, 5),
            risk_reward=risk_reward,
            confidence=confidence,
            timestamp=datetime.now(),
            regime=snapshot.regime,
            analysis=self.generate_analysis(snapshot, setup, confidence)
        )

        logger.info(
            f"Opportunity {instrument}: {setup.value} {levels.direction.value} "
            f"score={score} R:R={risk_reward} ({confidence.value})"
        )
        return opportunity

    def assess_report(self, snapshots: Mapping[str, MarketSnapshot],
                      instruments: Optional[Iterable[str]] = None,
                      min_score: Optional[float] = None) -> AssessmentReport:
        """
        Assess every instrument, collecting failures instead of raising.

        Args:
            snapshots: instrument -> MarketSnapshot
            instruments: Optional subset to assess; unknown names are failures
            min_score: Acceptance score override (50-100)
        """
        min_score = self._resolve_min_score(min_score)
        selected = list(instruments) if instruments is not None else list(snapshots)

        report = AssessmentReport()
        for instrument in selected:
            report.assessed.append(instrument)
            try:
                if instrument not in snapshots:
                    raise KeyError(f"no market snapshot for {instrument}")

                opportunity = self.assess_instrument(snapshots[instrument], min_score)
                if opportunity:
                    report.opportunities.append(opportunity)
            except Exception as e:
                logger.error(f"Error assessing {instrument}: {e}")
                report.failures[instrument] = str(e)

        return report

    def assess_all(self, snapshots: Mapping[str, MarketSnapshot],
                   instruments: Optional[Iterable[str]] = None,
                   min_score: Optional[float] = None) -> List[Opportunity]:
        """Assess every instrument and return the opportunities found, in input order."""
        return self.assess_report(snapshots, instruments, min_score).opportunities

    def confidence_for(self, score: float) -> Confidence:
        if score >= self.config.high_confidence:
            return Confidence.HIGH
        elif score >= self.config.medium_confidence:
            return Confidence.MEDIUM
        return Confidence.LOW

    @staticmethod
    def generate_analysis(snapshot: MarketSnapshot, setup: SetupType,
                          confidence: Confidence) -> str:
        """Short rationale citing regime, direction and the deciding indicator."""
        trend_direction = "bullish" if snapshot.vwap_slope > 0 else "bearish"
        if snapshot.rsi > 70:
            rsi_condition = "overbought"
        elif snapshot.rsi < 30:
            rsi_condition = "oversold"
        else:
            rsi_condition = "neutral"

        analysis = f"{setup.value} setup detected in {snapshot.regime.value} market conditions. "

        if setup == SetupType.TREND_CONTINUATION:
            analysis += (
                f"VWAP slope indicates {trend_direction} momentum with ADX at "
                f"{snapshot.adx:.1f} confirming trend strength. "
            )
        else:
            analysis += f"RSI shows {rsi_condition} conditions suggesting potential reversal. "

        analysis += (
            f"Entry at current market price with {confidence.value} confidence "
            f"based on technical confluence and risk management criteria."
        )
        return analysis

    def _resolve_min_score(self, min_score: Optional[float]) -> float:
        if min_score is None:
            return self.config.min_score
        if not 50 <= min_score <= 100:
            raise ValueError(f"min_score must be between 50 and 100, got {min_score}")
        return min_score


def assess_instrument(snapshot: MarketSnapshot, config=None,
                      rng: Optional[np.random.Generator] = None) -> Optional[Opportunity]:
    """Assess one snapshot with a fresh assembler."""
    return OpportunityAssembler(config, rng=rng).assess_instrument(snapshot)


def assess_all(snapshots: Mapping[str, MarketSnapshot], config=None,
               rng: Optional[np.random.Generator] = None) -> List[Opportunity]:
    """Assess every snapshot with a fresh assembler, isolating per-instrument failures."""
    return OpportunityAssembler(config, rng=rng).assess_all(snapshots)
