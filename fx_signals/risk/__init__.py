"""
Risk Engine Module
==================
"""
from .risk_engine import (
    AccountHealth,
    AccountRiskProfile,
    PositionSizer,
    PositionSizing,
    RiskLimits,
    RiskValidator,
    ValidationResult,
    size_position,
    validate_risk_profile
)

__all__ = [
    'AccountHealth',
    'AccountRiskProfile',
    'PositionSizer',
    'PositionSizing',
    'RiskLimits',
    'RiskValidator',
    'ValidationResult',
    'size_position',
    'validate_risk_profile'
]
