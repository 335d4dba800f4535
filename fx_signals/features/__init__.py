"""
Indicator Module
================
"""
from .indicator_engine import (
    DirectionalSample,
    IndicatorEngine,
    IndicatorSample,
    IndicatorSet,
    InsufficientDataError,
    PivotLevels,
    TechnicalIndicators,
    VwapSample,
    compute_indicators
)

__all__ = [
    'DirectionalSample',
    'IndicatorEngine',
    'IndicatorSample',
    'IndicatorSet',
    'InsufficientDataError',
    'PivotLevels',
    'TechnicalIndicators',
    'VwapSample',
    'compute_indicators'
]
