"""
FX Opportunity Signal System
============================

Turns price bars for a small set of currency pairs into ranked trading
opportunities with concrete entry, stop-loss and take-profit levels,
gated by account risk rules.

PIPELINE:
    ┌──────────────┐
    │  OHLCV BARS  │  ← per instrument, ascending time
    └──────┬───────┘
           ↓
    ┌──────────────┐
    │  INDICATORS  │  ← VWAP, RSI, ATR, ADX/DI, pivots
    └──────┬───────┘
           ↓
    ┌──────────────┐
    │   SNAPSHOT   │  ← price + indicators + regime
    └──────┬───────┘
           ↓
    ┌──────────────┐
    │    ALPHA     │  ← score → setup → levels → accept/reject
    └──────┬───────┘
           ↓
    ┌──────────────┐
    │     RISK     │  ← settings validation, position sizing
    └──────────────┘

USAGE:
    # Simulated signal loop
    python -m fx_signals.orchestrator --iterations 20 --seed 7

    # Programmatic usage
    from fx_signals import compute_indicators, assess_all, seed_snapshots

    indicators = compute_indicators(bars_df)
    opportunities = assess_all(seed_snapshots())

MODULES:
    - data: price bars, market snapshots, synthetic series
    - features: indicator engine
    - alpha: regime classifier, scorer, setups, opportunity assembler
    - risk: settings validation, position sizing, daily limits
    - orchestrator: simulated driver and CLI
"""

from .config import SystemConfig, DEFAULT_CONFIG
from .data import MarketRegime, MarketSnapshot, MockDataSource, PriceBar, seed_snapshots
from .features import (
    IndicatorEngine,
    IndicatorSample,
    IndicatorSet,
    InsufficientDataError,
    PivotLevels,
    VwapSample,
    compute_indicators
)
from .alpha import (
    AssessmentReport,
    Confidence,
    Opportunity,
    OpportunityAssembler,
    OpportunityScorer,
    RegimeClassifier,
    SetupType,
    TradeLevelCalculator,
    TradeLevels,
    assess_all,
    assess_instrument
)
from .risk import (
    AccountRiskProfile,
    PositionSizer,
    PositionSizing,
    RiskValidator,
    ValidationResult,
    size_position,
    validate_risk_profile
)
from .orchestrator import SignalSystem, main

__version__ = "1.0.0"
__all__ = [
    # Main
    'SignalSystem',
    'SystemConfig',
    'DEFAULT_CONFIG',
    'main',

    # Data
    'MarketRegime',
    'MarketSnapshot',
    'MockDataSource',
    'PriceBar',
    'seed_snapshots',

    # Indicators
    'IndicatorEngine',
    'IndicatorSample',
    'IndicatorSet',
    'InsufficientDataError',
    'PivotLevels',
    'VwapSample',
    'compute_indicators',

    # Alpha
    'AssessmentReport',
    'Confidence',
    'Opportunity',
    'OpportunityAssembler',
    'OpportunityScorer',
    'RegimeClassifier',
    'SetupType',
    'TradeLevelCalculator',
    'TradeLevels',
    'assess_all',
    'assess_instrument',

    # Risk
    'AccountRiskProfile',
    'PositionSizer',
    'PositionSizing',
    'RiskValidator',
    'ValidationResult',
    'size_position',
    'validate_risk_profile'
]
