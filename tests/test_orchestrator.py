import threading
import time

import numpy as np

from conftest import make_snapshot
from fx_signals.alpha import OpportunityAssembler, RegimeClassifier
from fx_signals.config import ScoringConfig, SystemConfig
from fx_signals.data import MarketRegime, seed_snapshots
from fx_signals.orchestrator import MarketSimulator, OpportunityHistory, SignalSystem, main


def fast_config(**simulation):
    config = SystemConfig()
    config.simulation.update_interval_seconds = 0
    config.simulation.assessment_interval_seconds = 0
    config.simulation.seed = 3
    for key, value in simulation.items():
        setattr(config.simulation, key, value)
    return config


def test_tick_returns_new_snapshot():
    simulator = MarketSimulator(rng=np.random.default_rng(0))
    snapshot = make_snapshot()
    updated = simulator.tick(snapshot)

    assert snapshot.price == 1.0855
    assert updated is not snapshot
    assert abs(updated.price - snapshot.price) <= 0.0005
    assert abs(updated.rsi - snapshot.rsi) <= 1
    assert abs(updated.adx - snapshot.adx) <= 0.5
    assert updated.regime == RegimeClassifier().classify(updated.adx, updated.vwap_slope)
    assert updated.spread == snapshot.spread
    assert updated.atr == snapshot.atr


def test_tick_keeps_indicators_in_range():
    simulator = MarketSimulator(rng=np.random.default_rng(1))
    snapshot = make_snapshot(rsi=99.9, adx=0.1)
    for _ in range(500):
        snapshot = simulator.tick(snapshot)
        assert 0 <= snapshot.rsi <= 100
        assert 0 <= snapshot.adx <= 100
        assert snapshot.price >= 0


def test_tick_history_is_capped():
    simulator = MarketSimulator(rng=np.random.default_rng(2))
    snapshot = make_snapshot()
    for _ in range(150):
        snapshot = simulator.tick(snapshot)

    points = simulator.history["EUR/USD"]
    assert len(points) == 100
    assert points[-1]["price"] == snapshot.price


def test_history_keeps_new_plus_limit():
    history = OpportunityHistory(limit=20)
    assembler = OpportunityAssembler(ScoringConfig(market_structure_max=0))
    snapshot = make_snapshot(rsi=25, adx=15, regime=MarketRegime.RANGING)

    def batch(n):
        return [assembler.assess_instrument(snapshot) for _ in range(n)]

    history.add(batch(25))
    assert len(history) == 25

    newest = batch(2)
    items = history.add(newest)
    assert len(items) == 22
    assert items[:2] == newest


def test_initialize_from_seeds():
    system = SignalSystem(fast_config())
    system.initialize()

    assert set(system.snapshots) == set(seed_snapshots())
    assert system.snapshots["EUR/USD"].price == 1.0855


def test_initialize_from_bars():
    system = SignalSystem(fast_config(instruments=["EUR/USD", "USD/JPY"]))
    system.initialize(from_bars=True)

    assert set(system.snapshots) == {"EUR/USD", "USD/JPY"}
    assert system.snapshots["USD/JPY"].spread == 1.8
    assert system.snapshots["EUR/USD"].spread == 1.2


def test_initialize_skips_instruments_without_enough_bars():
    config = fast_config(instruments=["EUR/USD"])
    config.indicators.lookback_bars = 10
    system = SignalSystem(config)
    system.initialize(from_bars=True)

    assert system.snapshots == {}


def test_run_ticks_and_assesses():
    system = SignalSystem(fast_config())
    system.initialize()
    system.run(iterations=5)

    assert system.iteration == 5
    assert not system.running
    assert system.last_assessment is not None
    for opportunity in system.history.items:
        assert opportunity.score >= 70
        assert opportunity.risk_reward >= 1.5


def test_iterations_count_per_run():
    system = SignalSystem(fast_config())
    system.initialize()

    system.run(iterations=3)
    system.run(iterations=3)

    assert system.iteration == 6
    assert system.get_status()["iteration"] == 6


def test_on_demand_assessment_records_history():
    system = SignalSystem(fast_config())
    system.initialize()
    system.assembler = OpportunityAssembler(ScoringConfig(market_structure_max=0))
    system.snapshots["GBP/USD"] = make_snapshot(
        instrument="GBP/USD", rsi=25, adx=15, spread=1.5, regime=MarketRegime.RANGING,
    )

    report = system.assess()

    assert [o.instrument for o in report.opportunities] == ["GBP/USD"]
    assert system.history.items == report.opportunities


def test_assessment_failure_reported():
    system = SignalSystem(fast_config())
    system.initialize()
    report = system.assess(instruments=["EUR/USD", "XAU/USD"])

    assert "XAU/USD" in report.failures
    assert report.assessed == ["EUR/USD", "XAU/USD"]


def test_stop_ends_loop():
    config = fast_config()
    config.simulation.update_interval_seconds = 0.01
    system = SignalSystem(config)
    system.initialize()

    worker = threading.Thread(target=system.run)
    worker.start()
    deadline = time.monotonic() + 5
    while system.iteration == 0 and time.monotonic() < deadline:
        time.sleep(0.01)
    system.stop()
    worker.join(timeout=5)

    assert not worker.is_alive()
    assert not system.running
    assert system.iteration > 0


def test_get_status():
    system = SignalSystem(fast_config())
    system.initialize()
    status = system.get_status()

    assert status["running"] is False
    assert set(status["marketData"]) == {"EUR/USD", "GBP/USD"}
    assert status["marketData"]["EUR/USD"]["regime"] == "trending"


def test_main_runs(capsys):
    assert main(["--iterations", "2", "--interval", "0", "--seed", "4"]) == 0
    assert "OPPORTUNITIES" in capsys.readouterr().out
