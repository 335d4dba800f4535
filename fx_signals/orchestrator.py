"""
Signal System Orchestrator
==========================
In-process driver for the signal pipeline:
    MARKET STATE → TICK/RECLASSIFY → ASSESS → OPPORTUNITY HISTORY

Owns the live snapshot table and the opportunity history; the pipeline
components themselves stay stateless and only see values handed to them.
"""

import numpy as np
from collections import deque
from dataclasses import replace
from datetime import datetime
from typing import Deque, Dict, List, Optional
import json
import logging
import threading
import time as time_module

from .config import SystemConfig
from .data import MarketSnapshot, MockDataSource, seed_snapshots
from .features import IndicatorEngine, InsufficientDataError
from .alpha import AssessmentReport, Opportunity, OpportunityAssembler, RegimeClassifier

logger = logging.getLogger(__name__)


class MarketSimulator:
    """
    Random-walk market ticks.

    Each tick nudges price, RSI, ADX and VWAP slope, re-derives the regime
    and returns a new snapshot; the input snapshot is left untouched.
    """

    def __init__(self, regime_config=None, rng: Optional[np.random.Generator] = None,
                 history_size: int = 100):
        self.rng = rng or np.random.default_rng()
        self.classifier = RegimeClassifier(regime_config)
        self.history_size = history_size
        self.history: Dict[str, Deque[dict]] = {}

    def tick(self, snapshot: MarketSnapshot) -> MarketSnapshot:
        price = max(0.0, snapshot.price + (self.rng.random() - 0.5) * 0.001)
        rsi = min(max(snapshot.rsi + (self.rng.random() - 0.5) * 2, 0.0), 100.0)
        adx = min(max(snapshot.adx + (self.rng.random() - 0.5) * 1, 0.0), 100.0)
        vwap_slope = snapshot.vwap_slope + (self.rng.random() - 0.5) * 0.0002
        now = datetime.now()

        updated = replace(
            snapshot,
            price=price,
            rsi=rsi,
            adx=adx,
            vwap_slope=vwap_slope,
            regime=self.classifier.classify(adx, vwap_slope),
            last_update=now
        )

        points = self.history.setdefault(snapshot.instrument, deque(maxlen=self.history_size))
        points.append({'timestamp': now, 'price': price, 'rsi': rsi, 'adx': adx})

        return updated


class OpportunityHistory:
    """Most recent opportunities, newest first."""

    def __init__(self, limit: int = 20):
        self.limit = limit
        self._items: List[Opportunity] = []
        self._lock = threading.Lock()

    def add(self, new: List[Opportunity]) -> List[Opportunity]:
        """Prepend a batch, keeping at most `limit` of the previous entries."""
        with self._lock:
            self._items = list(new) + self._items[:self.limit]
            return list(self._items)

    @property
    def items(self) -> List[Opportunity]:
        with self._lock:
            return list(self._items)

    def __len__(self) -> int:
        return len(self.items)


class SignalSystem:
    """
    Main orchestrator.

    Two triggers share one assessment entry point:
    1. Periodic loop: tick snapshots, reassess on the assessment interval
    2. On demand: assess() called by a client
    Only one assessment runs at a time.
    """

    def __init__(self, config: SystemConfig = None):
        self.config = config or SystemConfig()
        sim = self.config.simulation

        # Separate streams so ticks and assessments never share a generator
        scoring_seed, market_seed, bars_seed = np.random.SeedSequence(sim.seed).spawn(3)

        self.indicator_engine = IndicatorEngine(
            config=self.config.indicators,
            regime_config=self.config.regime
        )
        self.assembler = OpportunityAssembler(
            config=self.config.scoring,
            rng=np.random.default_rng(scoring_seed)
        )
        self.simulator = MarketSimulator(
            regime_config=self.config.regime,
            rng=np.random.default_rng(market_seed)
        )
        self.data_source = MockDataSource(rng=np.random.default_rng(bars_seed))
        self.history = OpportunityHistory(limit=sim.history_limit)

        self.snapshots: Dict[str, MarketSnapshot] = {}

        # System state
        self.running = False
        self.iteration = 0
        self.last_assessment: Optional[datetime] = None
        self._stop_event = threading.Event()
        self._state_lock = threading.Lock()
        self._assess_lock = threading.Lock()

        logger.info(f"SignalSystem created for {', '.join(sim.instruments)}")

    def initialize(self, from_bars: bool = False):
        """
        Load the starting snapshot for every configured instrument.

        Seeded instruments start from their seed values unless `from_bars`
        is set; everything else is derived from a synthetic bar series.
        """
        seeds = seed_snapshots()
        snapshots = {}

        for instrument in self.config.simulation.instruments:
            if instrument in seeds and not from_bars:
                snapshots[instrument] = seeds[instrument]
                continue

            try:
                snapshots[instrument] = self.snapshot_from_bars(instrument)
            except InsufficientDataError as e:
                logger.error(f"Cannot initialise {instrument}: {e}")

        with self._state_lock:
            self.snapshots = snapshots

        logger.info(f"Initialised {len(snapshots)} instruments")

    def snapshot_from_bars(self, instrument: str) -> MarketSnapshot:
        """Snapshot from a freshly generated bar series."""
        series = self.data_source.fetch_ohlcv(instrument, self.config.indicators.lookback_bars)
        return self.indicator_engine.build_snapshot(
            instrument,
            series,
            spread=self.config.scoring.normal_spread(instrument)
        )

    def refresh(self) -> Dict[str, MarketSnapshot]:
        """Tick every snapshot once."""
        with self._state_lock:
            self.snapshots = {
                instrument: self.simulator.tick(snapshot)
                for instrument, snapshot in self.snapshots.items()
            }
            return dict(self.snapshots)

    def assess(self, instruments: Optional[List[str]] = None,
               min_score: Optional[float] = None) -> AssessmentReport:
        """Assess the current snapshots and record any new opportunities."""
        with self._assess_lock:
            with self._state_lock:
                snapshots = dict(self.snapshots)

            report = self.assembler.assess_report(snapshots, instruments, min_score)
            self.last_assessment = datetime.now()

            if report.opportunities:
                self.history.add(report.opportunities)
                logger.info(f"{len(report.opportunities)} new trading opportunity detected")
            if report.has_failures:
                logger.warning(f"Assessment failures: {report.failures}")

            return report

    def run(self, iterations: Optional[int] = None):
        """
        Main loop.

        Ticks every update interval and reassesses every assessment interval
        until stopped or `iterations` ticks have run in this call.
        """
        sim = self.config.simulation
        self.running = True
        self._stop_event.clear()

        logger.info("Starting signal loop...")
        last_assessed = None
        ticks = 0

        while self.running and not self._stop_event.is_set():
            try:
                ticks += 1
                self.iteration += 1
                self.refresh()

                now = time_module.monotonic()
                if last_assessed is None or now - last_assessed >= sim.assessment_interval_seconds:
                    self.assess()
                    last_assessed = now

                if iterations is not None and ticks >= iterations:
                    break

                self._stop_event.wait(sim.update_interval_seconds)

            except KeyboardInterrupt:
                logger.info("Keyboard interrupt received")
                break
            except Exception as e:
                logger.error(f"Error in signal loop: {e}")
                self._stop_event.wait(sim.update_interval_seconds)

        self.running = False
        logger.info(f"Signal loop stopped after {self.iteration} iterations")

    def stop(self):
        """Stop the main loop."""
        self.running = False
        self._stop_event.set()

    def get_status(self) -> Dict:
        """Current market state and history summary."""
        with self._state_lock:
            snapshots = {k: v.to_dict() for k, v in self.snapshots.items()}

        return {
            'running': self.running,
            'iteration': self.iteration,
            'lastAssessment': self.last_assessment.isoformat() if self.last_assessment else None,
            'marketData': snapshots,
            'opportunities': len(self.history)
        }


def main(argv=None):
    """Command-line entry point: run the simulated signal loop."""
    import argparse

    parser = argparse.ArgumentParser(description='FX Opportunity Signal System')
    parser.add_argument('--iterations', type=int, default=10,
                        help='Number of market ticks to run')
    parser.add_argument('--seed', type=int, help='Random seed')
    parser.add_argument('--config', type=str, help='Path to config file')
    parser.add_argument('--log-level', type=str, help='Logging level')
    parser.add_argument('--from-bars', action='store_true',
                        help='Derive starting snapshots from synthetic bars')
    parser.add_argument('--interval', type=float,
                        help='Seconds between ticks (overrides config)')

    args = parser.parse_args(argv)

    config = SystemConfig.load(args.config) if args.config else SystemConfig()
    if args.seed is not None:
        config.simulation.seed = args.seed
    if args.interval is not None:
        config.simulation.update_interval_seconds = args.interval
    if args.log_level:
        config.monitoring.log_level = args.log_level.upper()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, config.monitoring.log_level, logging.INFO),
        format=config.monitoring.log_format
    )

    system = SignalSystem(config)
    system.initialize(from_bars=args.from_bars)

    try:
        system.run(iterations=args.iterations)
    except KeyboardInterrupt:
        print("\nShutting down...")
    finally:
        system.stop()

    opportunities = system.history.items
    print("\n" + "=" * 50)
    print(f"OPPORTUNITIES ({len(opportunities)})")
    print("=" * 50)
    for opportunity in opportunities:
        print(json.dumps(opportunity.to_dict(), indent=2))

    return 0


if __name__ == "__main__":
    main()
