"""
Alpha Module
============
"""
from .regime import RegimeClassifier
from .scoring import OpportunityScorer
from .setups import (
    SetupRule,
    SetupType,
    TradeDirection,
    TradeLevelCalculator,
    TradeLevels
)
from .opportunity import (
    AssessmentReport,
    Confidence,
    Opportunity,
    OpportunityAssembler,
    assess_all,
    assess_instrument
)

__all__ = [
    'RegimeClassifier',
    'OpportunityScorer',
    'SetupRule',
    'SetupType',
    'TradeDirection',
    'TradeLevelCalculator',
    'TradeLevels',
    'AssessmentReport',
    'Confidence',
    'Opportunity',
    'OpportunityAssembler',
    'assess_all',
    'assess_instrument'
]
