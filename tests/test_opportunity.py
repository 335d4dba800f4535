import numpy as np
import pytest

from conftest import FixedRng, make_snapshot
from fx_signals.alpha import (
    Confidence,
    OpportunityAssembler,
    SetupType,
    TradeDirection,
)
from fx_signals.config import ScoringConfig
from fx_signals.data import MarketRegime, seed_snapshots


@pytest.fixture
def assembler():
    return OpportunityAssembler(ScoringConfig(market_structure_max=0))


def oversold_snapshot(**overrides):
    values = dict(rsi=25, adx=15, spread=1.0, vwap_slope=-0.00005, regime=MarketRegime.RANGING)
    values.update(overrides)
    return make_snapshot(**values)


def test_liquidity_reversal_emitted(assembler):
    opportunity = assembler.assess_instrument(oversold_snapshot())

    assert opportunity is not None
    assert opportunity.instrument == "EUR/USD"
    assert opportunity.setup == SetupType.LIQUIDITY_REVERSAL
    assert opportunity.direction == TradeDirection.LONG
    # 50 + 15 (extreme RSI) + 5 (weak ADX) + 10 (tight spread)
    assert opportunity.score == 80
    assert opportunity.confidence == Confidence.MEDIUM
    assert opportunity.entry == 1.0855
    assert opportunity.stop_loss == pytest.approx(1.077)
    assert opportunity.take_profit == pytest.approx(1.09825)
    assert opportunity.risk_reward == 1.5
    assert opportunity.regime == MarketRegime.RANGING
    assert "Liquidity Reversal setup detected in ranging market conditions." in opportunity.analysis
    assert "RSI shows oversold conditions" in opportunity.analysis


def test_trend_continuation_falls_short_of_risk_reward(assembler, example_snapshot):
    # Scores 95, but a 2.0 ATR target over a 1.5 ATR stop is only 1.33:1
    assert assembler.scorer.score(example_snapshot) == 95
    assert assembler.assess_instrument(example_snapshot) is None


def test_trend_continuation_emitted_with_wider_target(example_snapshot, monkeypatch):
    from fx_signals.alpha import setups

    rule = setups.SETUP_RULES[SetupType.TREND_CONTINUATION]
    monkeypatch.setitem(
        setups.SETUP_RULES,
        SetupType.TREND_CONTINUATION,
        setups.SetupRule(1.5, 3.0, rule.direction),
    )
    opportunity = OpportunityAssembler(ScoringConfig(market_structure_max=0)).assess_instrument(example_snapshot)

    assert opportunity.setup == SetupType.TREND_CONTINUATION
    assert opportunity.direction == TradeDirection.LONG
    assert opportunity.score == 95
    assert opportunity.confidence == Confidence.HIGH
    assert opportunity.stop_loss == pytest.approx(1.07275)
    assert opportunity.risk_reward == 2.0
    assert "VWAP slope indicates bullish momentum with ADX at 28.0" in opportunity.analysis


def test_low_score_not_emitted(assembler):
    assert assembler.assess_instrument(seed_snapshots()["GBP/USD"]) is None


def test_min_score_override(assembler):
    opportunity = assembler.assess_instrument(seed_snapshots()["GBP/USD"], min_score=60)

    assert opportunity.score == 60
    assert opportunity.confidence == Confidence.LOW
    assert opportunity.setup == SetupType.LIQUIDITY_REVERSAL


@pytest.mark.parametrize("min_score", [49, 101])
def test_min_score_out_of_range(assembler, min_score):
    with pytest.raises(ValueError):
        assembler.assess_instrument(oversold_snapshot(), min_score=min_score)


def test_zero_atr_skipped(assembler):
    assert assembler.assess_instrument(oversold_snapshot(atr=0.0)) is None


def test_high_confidence_from_market_structure():
    assembler = OpportunityAssembler(rng=FixedRng(10.0))
    opportunity = assembler.assess_instrument(oversold_snapshot())

    assert opportunity.score == 90
    assert opportunity.confidence == Confidence.HIGH


@pytest.mark.parametrize("structure, expected", [
    (9.4, None),
    (9.5, 70),   # 69.5 rounds up to the even 70
    (9.6, 70),
    (10.5, 70),  # 70.5 rounds down to the even 70
])
def test_score_gate_uses_rounded_score(structure, expected):
    # GBP/USD seed scores 60 before the market-structure term
    assembler = OpportunityAssembler(rng=FixedRng(structure))
    opportunity = assembler.assess_instrument(seed_snapshots()["GBP/USD"])

    if expected is None:
        assert opportunity is None
    else:
        assert opportunity.score == expected


@pytest.mark.parametrize("score, expected", [
    (100, Confidence.HIGH),
    (85, Confidence.HIGH),
    (84, Confidence.MEDIUM),
    (75, Confidence.MEDIUM),
    (74, Confidence.LOW),
    (70, Confidence.LOW),
])
def test_confidence_buckets(assembler, score, expected):
    assert assembler.confidence_for(score) == expected


def test_deterministic_parts_are_idempotent(assembler):
    snapshot = oversold_snapshot(rsi=78, regime=MarketRegime.VOLATILE)
    first = assembler.assess_instrument(snapshot)
    second = assembler.assess_instrument(snapshot)

    assert first.id != second.id
    for attr in ("setup", "direction", "score", "entry", "stop_loss", "take_profit", "risk_reward"):
        assert getattr(first, attr) == getattr(second, attr)
    assert first.direction == TradeDirection.SHORT


def test_emitted_opportunities_respect_gates():
    rng = np.random.default_rng(11)
    assembler = OpportunityAssembler(rng=np.random.default_rng(12))
    emitted = 0

    for _ in range(300):
        regime = list(MarketRegime)[int(rng.integers(3))]
        snapshot = make_snapshot(
            price=float(rng.uniform(1.0, 1.5)),
            spread=float(rng.uniform(0.5, 2.5)),
            atr=float(rng.uniform(0.0, 0.02)),
            vwap_slope=float(rng.uniform(-0.0005, 0.0005)),
            rsi=float(rng.uniform(0, 100)),
            adx=float(rng.uniform(0, 60)),
            regime=regime,
        )
        opportunity = assembler.assess_instrument(snapshot)
        if opportunity:
            emitted += 1
            assert opportunity.score >= 70
            assert opportunity.risk_reward >= 1.5
            assert 0 <= opportunity.score <= 100

    assert emitted > 0


def test_assess_all_isolates_failures(assembler, caplog):
    snapshots = {
        "BROKEN": object(),
        "EUR/USD": oversold_snapshot(),
        "GBP/USD": seed_snapshots()["GBP/USD"],
    }
    report = assembler.assess_report(snapshots)

    assert [o.instrument for o in report.opportunities] == ["EUR/USD"]
    assert list(report.failures) == ["BROKEN"]
    assert report.assessed == ["BROKEN", "EUR/USD", "GBP/USD"]
    assert "Error assessing BROKEN" in caplog.text

    assert [o.instrument for o in assembler.assess_all(snapshots)] == ["EUR/USD"]


def test_assess_all_preserves_input_order(assembler):
    snapshots = {
        "GBP/USD": oversold_snapshot(instrument="GBP/USD", spread=1.5),
        "EUR/USD": oversold_snapshot(),
    }
    assert [o.instrument for o in assembler.assess_all(snapshots)] == ["GBP/USD", "EUR/USD"]


def test_assess_all_instrument_filter(assembler):
    snapshots = {"EUR/USD": oversold_snapshot()}
    report = assembler.assess_report(snapshots, instruments=["USD/JPY", "EUR/USD"])

    assert [o.instrument for o in report.opportunities] == ["EUR/USD"]
    assert "USD/JPY" in report.failures


def test_assess_all_rejects_invalid_min_score(assembler):
    with pytest.raises(ValueError):
        assembler.assess_all({"EUR/USD": oversold_snapshot()}, min_score=20)


def test_opportunity_to_dict(assembler):
    payload = assembler.assess_instrument(oversold_snapshot()).to_dict()

    assert payload["pair"] == "EUR/USD"
    assert payload["setup"] == "Liquidity Reversal"
    assert payload["confidence"] == "medium"
    assert payload["regime"] == "ranging"
    assert payload["riskReward"] == 1.5
    assert set(payload) >= {"id", "score", "entry", "stopLoss", "takeProfit", "timestamp", "analysis"}


def test_opportunity_is_immutable(assembler):
    opportunity = assembler.assess_instrument(oversold_snapshot())
    with pytest.raises(Exception):
        opportunity.score = 10
