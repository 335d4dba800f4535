"""
Configuration Management
========================
Central configuration for the signal pipeline.
"""

from dataclasses import dataclass, field, asdict
from typing import List, Dict, Optional
import json
import os


@dataclass
class IndicatorConfig:
    """Indicator engine configuration."""
    rsi_period: int = 14
    atr_period: int = 14
    adx_period: int = 14

    # Bars generated / consumed per assessment
    lookback_bars: int = 50


@dataclass
class RegimeConfig:
    """Regime classifier thresholds."""
    trend_adx: float = 25.0  # ADX above this (with a sloping VWAP) = trending
    range_adx: float = 20.0  # ADX below this = ranging
    min_vwap_slope: float = 0.0001


@dataclass
class ScoringConfig:
    """Opportunity scoring and acceptance configuration."""
    base_score: float = 50

    # Acceptance gates
    min_score: float = 70
    min_risk_reward: float = 1.5

    # VWAP slope bonuses in trending markets
    trend_slope: float = 0.0001
    strong_slope: float = 0.0003

    # Normal spread (pips) per instrument
    normal_spreads: Dict[str, float] = field(default_factory=lambda: {"EUR/USD": 1.2})
    default_normal_spread: float = 1.8

    # Upper bound of the random market-structure contribution
    market_structure_max: float = 20.0

    # Confidence buckets
    high_confidence: float = 85
    medium_confidence: float = 75

    def normal_spread(self, instrument: str) -> float:
        return self.normal_spreads.get(instrument, self.default_normal_spread)


@dataclass
class RiskConfig:
    """Account risk policy."""
    # Policy bounds for account settings
    min_balance: float = 100
    max_balance: float = 1_000_000
    min_risk_per_trade: float = 0.1  # % of balance
    max_risk_per_trade: float = 5.0
    min_daily_loss_limit: float = 1.0  # % of balance
    max_daily_loss_limit: float = 10.0
    min_trades_per_day: int = 1
    max_trades_per_day: int = 20

    # Pip value per standard lot for a USD account
    pip_values: Dict[str, float] = field(default_factory=lambda: {
        "EUR/USD": 1,
        "GBP/USD": 1,
        "USD/JPY": 0.01,
        "USD/CHF": 1
    })
    default_pip_value: float = 1
    pip_multiplier: float = 10_000

    # Daily risk utilisation thresholds (%)
    warning_utilization: float = 50.0
    critical_utilization: float = 80.0

    def pip_value(self, instrument: str) -> float:
        return self.pip_values.get(instrument, self.default_pip_value)


@dataclass
class SimulationConfig:
    """Simulated market driver configuration."""
    instruments: List[str] = field(default_factory=lambda: ["EUR/USD", "GBP/USD"])
    update_interval_seconds: float = 3
    assessment_interval_seconds: float = 30

    # Previous opportunities kept alongside each new batch
    history_limit: int = 20

    seed: Optional[int] = None


@dataclass
class MonitoringConfig:
    """Logging configuration."""
    log_level: str = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class SystemConfig:
    """Master system configuration."""
    indicators: IndicatorConfig = field(default_factory=IndicatorConfig)
    regime: RegimeConfig = field(default_factory=RegimeConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    risk: RiskConfig = field(default_factory=RiskConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    def save(self, filepath: str):
        """Save configuration to JSON file."""
        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(filepath, 'w') as f:
            json.dump(self._to_dict(), f, indent=2)

    @classmethod
    def load(cls, filepath: str) -> 'SystemConfig':
        """Load configuration from JSON file."""
        with open(filepath, 'r') as f:
            data = json.load(f)
        return cls._from_dict(data)

    def _to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def _from_dict(cls, data: dict) -> 'SystemConfig':
        """Create from dictionary. Missing sections keep their defaults."""
        return cls(
            indicators=IndicatorConfig(**data.get('indicators', {})),
            regime=RegimeConfig(**data.get('regime', {})),
            scoring=ScoringConfig(**data.get('scoring', {})),
            risk=RiskConfig(**data.get('risk', {})),
            simulation=SimulationConfig(**data.get('simulation', {})),
            monitoring=MonitoringConfig(**data.get('monitoring', {}))
        )


# Default configuration instance
DEFAULT_CONFIG = SystemConfig()
