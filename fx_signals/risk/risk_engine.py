"""
Risk Engine Module
==================
Account settings validation, position sizing and daily risk limits.

Risk rules are enforced algorithmically: a settings change is accepted
only if it passes every policy bound, and a trade is sized so that a
stop-out costs exactly the configured share of the balance.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Union
from enum import Enum
import logging

logger = logging.getLogger(__name__)


class AccountHealth(Enum):
    """Health of the account against its daily loss budget."""
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass
class AccountRiskProfile:
    """Account risk settings and today's activity."""
    balance: float
    risk_per_trade_pct: float
    daily_loss_limit_pct: float
    max_trades_per_day: int
    current_pnl: float = 0.0
    trades_count_today: int = 0

    @classmethod
    def from_dict(cls, data: dict) -> 'AccountRiskProfile':
        """Build from a settings payload (riskPerTrade, dailyLossLimit, maxTrades, ...)."""
        return cls(
            balance=data['balance'],
            risk_per_trade_pct=data['riskPerTrade'],
            daily_loss_limit_pct=data['dailyLossLimit'],
            max_trades_per_day=data['maxTrades'],
            current_pnl=data.get('currentPnL', 0.0),
            trades_count_today=data.get('tradesCount', 0)
        )

    def to_dict(self) -> dict:
        return {
            'balance': self.balance,
            'riskPerTrade': self.risk_per_trade_pct,
            'dailyLossLimit': self.daily_loss_limit_pct,
            'maxTrades': self.max_trades_per_day,
            'currentPnL': self.current_pnl,
            'tradesCount': self.trades_count_today
        }


@dataclass
class ValidationResult:
    """Outcome of a settings validation."""
    valid: bool
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {'isValid': self.valid, 'errors': list(self.errors)}


@dataclass
class PositionSizing:
    """Position sizing result."""
    instrument: str
    position_size: float  # lots
    risk_amount: float  # account currency
    stop_distance: float  # pips
    pip_value: float

    def to_dict(self) -> dict:
        return {
            'positionSize': self.position_size,
            'riskAmount': self.risk_amount,
            'stopDistance': self.stop_distance,
            'pipValue': self.pip_value
        }


@dataclass
class RiskLimits:
    """Today's risk budget in account currency."""
    daily_loss_limit: float
    risk_per_trade: float
    max_trades_remaining: int
    daily_pnl_pct: float
    risk_utilization: float  # % of the daily loss limit already lost
    health: AccountHealth
    can_trade: bool
    notes: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'dailyLossLimit': self.daily_loss_limit,
            'riskPerTrade': self.risk_per_trade,
            'maxTradesRemaining': self.max_trades_remaining,
            'dailyPnLPercent': self.daily_pnl_pct,
            'riskUtilization': self.risk_utilization,
            'status': self.health.value,
            'canTrade': self.can_trade,
            'notes': list(self.notes)
        }


class RiskValidator:
    """Validates account risk settings against policy bounds."""

    def __init__(self, config=None):
        from ..config import RiskConfig
        self.config = config or RiskConfig()

    def validate(self, profile: Union[AccountRiskProfile, dict]) -> ValidationResult:
        """
        Check every policy bound and report all violations together.

        Returns:
            ValidationResult(valid, errors) with errors in check order
        """
        if isinstance(profile, dict):
            profile = AccountRiskProfile.from_dict(profile)

        cfg = self.config
        errors = []

        values = {
            'Account balance': profile.balance,
            'Risk per trade': profile.risk_per_trade_pct,
            'Daily loss limit': profile.daily_loss_limit_pct,
            'Maximum trades per day': profile.max_trades_per_day
        }
        finite = {name: math.isfinite(value) for name, value in values.items()}
        for name, ok in finite.items():
            if not ok:
                errors.append(f'{name} must be a finite number')

        # Range checks only apply to finite values, so each field reports once
        if finite['Account balance']:
            if profile.balance < cfg.min_balance:
                errors.append(f'Account balance must be at least ${cfg.min_balance:,.0f}')
            if profile.balance > cfg.max_balance:
                errors.append(f'Account balance cannot exceed ${cfg.max_balance:,.0f}')

        if finite['Risk per trade'] and not (
                cfg.min_risk_per_trade <= profile.risk_per_trade_pct <= cfg.max_risk_per_trade):
            errors.append(
                f'Risk per trade must be between {cfg.min_risk_per_trade:g}% '
                f'and {cfg.max_risk_per_trade:g}%'
            )

        if finite['Daily loss limit'] and not (
                cfg.min_daily_loss_limit <= profile.daily_loss_limit_pct <= cfg.max_daily_loss_limit):
            errors.append(
                f'Daily loss limit must be between {cfg.min_daily_loss_limit:g}% '
                f'and {cfg.max_daily_loss_limit:g}%'
            )

        if finite['Maximum trades per day']:
            if not cfg.min_trades_per_day <= profile.max_trades_per_day <= cfg.max_trades_per_day:
                errors.append(
                    f'Maximum trades per day must be between {cfg.min_trades_per_day} '
                    f'and {cfg.max_trades_per_day}'
                )
            elif profile.max_trades_per_day != int(profile.max_trades_per_day):
                errors.append('Maximum trades per day must be a whole number')

        if (finite['Risk per trade'] and finite['Daily loss limit']
                and profile.risk_per_trade_pct > profile.daily_loss_limit_pct):
            errors.append('Risk per trade cannot exceed daily loss limit')

        if errors:
            logger.warning(f"Risk settings rejected: {errors}")

        return ValidationResult(valid=not errors, errors=errors)

    def risk_limits(self, profile: AccountRiskProfile) -> RiskLimits:
        """Daily risk budget and account health for a validated profile."""
        notes = []

        daily_loss_limit = profile.balance * profile.daily_loss_limit_pct / 100
        risk_per_trade = profile.balance * profile.risk_per_trade_pct / 100
        trades_remaining = max(profile.max_trades_per_day - profile.trades_count_today, 0)

        loss_today = max(-profile.current_pnl, 0)
        daily_pnl_pct = profile.current_pnl / profile.balance * 100 if profile.balance > 0 else 0
        utilization = loss_today / daily_loss_limit * 100 if daily_loss_limit > 0 else 0

        if loss_today >= daily_loss_limit or utilization >= self.config.critical_utilization:
            health = AccountHealth.CRITICAL
            notes.append(f'Daily loss at {utilization:.1f}% of limit')
        elif utilization >= self.config.warning_utilization:
            health = AccountHealth.WARNING
            notes.append(f'Daily loss at {utilization:.1f}% of limit')
        else:
            health = AccountHealth.HEALTHY

        if trades_remaining == 0:
            notes.append('Maximum trades for today reached')

        budget_left = daily_loss_limit - loss_today
        if risk_per_trade > budget_left:
            notes.append('Next trade would exceed the daily loss limit')

        can_trade = (
            health != AccountHealth.CRITICAL
            and trades_remaining > 0
            and risk_per_trade <= budget_left
        )

        return RiskLimits(
            daily_loss_limit=daily_loss_limit,
            risk_per_trade=risk_per_trade,
            max_trades_remaining=trades_remaining,
            daily_pnl_pct=daily_pnl_pct,
            risk_utilization=utilization,
            health=health,
            can_trade=can_trade,
            notes=notes
        )


class PositionSizer:
    """Fixed-fractional position sizing in lots."""

    def __init__(self, config=None):
        from ..config import RiskConfig
        self.config = config or RiskConfig()

    def size(self, balance: float, risk_per_trade_pct: float, entry_price: float,
             stop_loss: float, instrument: str = 'EUR/USD') -> Optional[PositionSizing]:
        """
        Size a trade so that hitting the stop loses risk_per_trade_pct of balance.

        Returns:
            PositionSizing, or None when the stop distance is zero
        """
        risk_amount = balance * (risk_per_trade_pct / 100)
        pip_value = self.config.pip_value(instrument)
        stop_distance = abs(entry_price - stop_loss) * self.config.pip_multiplier

        if stop_distance == 0 or pip_value == 0:
            logger.warning(f"Cannot size {instrument}: zero stop distance")
            return None

        position_size = risk_amount / (stop_distance * pip_value)

        return PositionSizing(
            instrument=instrument,
            position_size=round(position_size, 2),
            risk_amount=risk_amount,
            stop_distance=round(stop_distance, 1),
            pip_value=pip_value
        )


def validate_risk_profile(profile: Union[AccountRiskProfile, dict], config=None) -> ValidationResult:
    """Validate account risk settings against the policy bounds."""
    return RiskValidator(config).validate(profile)


def size_position(balance: float, risk_per_trade_pct: float, entry: float, stop: float,
                  instrument: str = 'EUR/USD', config=None) -> Optional[PositionSizing]:
    """Position size for a trade; None when entry equals stop."""
    return PositionSizer(config).size(balance, risk_per_trade_pct, entry, stop, instrument)
