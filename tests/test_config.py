from fx_signals.config import (
    RiskConfig,
    ScoringConfig,
    SimulationConfig,
    SystemConfig,
)


def test_defaults():
    config = SystemConfig()

    assert config.scoring.min_score == 70
    assert config.scoring.min_risk_reward == 1.5
    assert config.indicators.rsi_period == 14
    assert config.simulation.instruments == ["EUR/USD", "GBP/USD"]


def test_normal_spread_lookup():
    scoring = ScoringConfig()
    assert scoring.normal_spread("EUR/USD") == 1.2
    assert scoring.normal_spread("GBP/USD") == 1.8


def test_pip_value_lookup():
    risk = RiskConfig()
    assert risk.pip_value("USD/JPY") == 0.01
    assert risk.pip_value("EUR/GBP") == 1


def test_save_and_load(tmp_path):
    config = SystemConfig(simulation=SimulationConfig(instruments=["EUR/USD"], seed=9))
    config.scoring.min_score = 80
    path = tmp_path / "settings" / "config.json"

    config.save(str(path))
    loaded = SystemConfig.load(str(path))

    assert loaded == config


def test_partial_file_keeps_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text('{"regime": {"trend_adx": 30}}')

    loaded = SystemConfig.load(str(path))

    assert loaded.regime.trend_adx == 30
    assert loaded.regime.range_adx == 20
    assert loaded.scoring == ScoringConfig()
