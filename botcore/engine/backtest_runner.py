#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StrategyTemplateEngine - Backtest Runner

Replays a bar file through one configured engine against the paper broker.

Pipeline:
Config -> Strategy + EngineSettings -> Feed/Broker/Engine -> bar loop -> Result

Per bar:
1. Broker applies the bar range to open positions (stop loss / take profit)
2. Engine runs one decision cycle at the bar close
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from botcore.data.indicator_feed import DataFrameIndicatorFeed
from botcore.engine.balance_tracker import BalanceTrendTracker
from botcore.engine.broker import PaperBroker
from botcore.engine.position_policy import PositionPolicy
from botcore.engine.sizing import PipSizer
from botcore.engine.strategy_engine import StrategyEngine
from botcore.exceptions import ConfigurationError
from botcore.metrics.decision_logger import DecisionLogger
from botcore.metrics.fitness import FitnessEvaluator, FitnessResult
from botcore.processors.config_loader import EngineSettings, StrategyConfigLoader
from botcore.signals.registry import get_registry

logger = logging.getLogger(__name__)

PRICE_COLUMNS = ('high', 'low', 'close')


def load_bars(path: Union[str, Path]) -> pd.DataFrame:
    """
    Load a bar file (CSV or parquet) with price and indicator columns.

    Raises:
        ConfigurationError: when a price column is missing
    """
    path = Path(path)
    if path.suffix == '.parquet':
        bars = pd.read_parquet(path)
    else:
        bars = pd.read_csv(path)

    missing = [c for c in PRICE_COLUMNS if c not in bars.columns]
    if missing:
        raise ConfigurationError(f"Bar file {path} is missing columns: {missing}")
    return bars


@dataclass
class BacktestResult:
    """
    Replay output.

    Attributes:
        strategy: Registered strategy name
        label: Engine label
        balance_history: Balance after each closed trade, initial balance first
        trade_history: Closed trade records
        decisions: Per-cycle decision records
        decision_summary: Counts of signals, admissions and orders
        fitness: Fitness breakdown of the balance history
        final_balance: Realized balance at the end of the replay
        open_positions: Positions still open at the end
    """
    strategy: str
    label: str
    balance_history: pd.DataFrame
    trade_history: List[Dict] = field(default_factory=list)
    decisions: pd.DataFrame = None
    decision_summary: Dict = field(default_factory=dict)
    fitness: FitnessResult = None
    final_balance: float = 0.0
    open_positions: int = 0

    def summary(self) -> Dict[str, Any]:
        return {
            'strategy': self.strategy,
            'label': self.label,
            'trades': len(self.trade_history),
            'final_balance': self.final_balance,
            'open_positions': self.open_positions,
            'fitness': self.fitness.score if self.fitness else None,
            **self.decision_summary,
        }


class BacktestRunner:
    """
    Config-driven replay of one strategy.

    Usage:
        runner = BacktestRunner.from_config('config/default_strategy.yaml')
        result = runner.run(load_bars('data/eurusd_h1.csv'))
    """

    def __init__(self, loader: StrategyConfigLoader, warmup_bars: int = 1):
        """
        Args:
            loader: Loaded engine configuration
            warmup_bars: Bars skipped before the first decision cycle
        """
        if warmup_bars < 0:
            raise ConfigurationError("warmup_bars must be non-negative")
        self.loader = loader
        self.warmup_bars = warmup_bars
        self.settings: EngineSettings = loader.get_engine_settings()
        self.strategy_name = loader.get_strategy_name()

    @classmethod
    def from_config(cls, config_path: str, warmup_bars: int = None) -> 'BacktestRunner':
        loader = StrategyConfigLoader(config_path)
        loader.load()
        if warmup_bars is None:
            warmup_bars = int(loader.get('backtest.warmup_bars', 1))
        return cls(loader, warmup_bars=warmup_bars)

    def build_sizer(self) -> PipSizer:
        broker_cfg = self.loader.get_broker_config()
        return PipSizer(
            self.settings.instrument,
            pip_size=broker_cfg.get('pip_size'),
            volume_step=broker_cfg.get('volume_step', 1000),
            min_volume=broker_cfg.get('min_volume', 1000),
        )

    def build_broker(self, sizer: PipSizer) -> PaperBroker:
        broker_cfg = self.loader.get_broker_config()
        return PaperBroker(
            sizer,
            initial_balance=broker_cfg.get('initial_balance', 10000.0),
            commission_per_unit=broker_cfg.get('commission_per_unit', 0.0),
        )

    def build_engine(
        self,
        feed: DataFrameIndicatorFeed,
        broker: PaperBroker,
        sizer: PipSizer
    ) -> StrategyEngine:
        """Wire a fresh strategy instance into an engine for this configuration."""
        settings = self.settings
        behavior = self.loader.build_strategy()

        required = get_registry().get_metadata(self.strategy_name).get('series', [])
        missing = [s for s in required if not feed.has_series(s)]
        if missing:
            raise ConfigurationError(
                f"Strategy {self.strategy_name} needs series missing from the feed: {missing}"
            )

        return StrategyEngine(
            behavior=behavior,
            broker=broker,
            feed=feed,
            sizer=sizer,
            label=settings.label,
            policy=PositionPolicy(settings.position_mode, settings.max_open_positions),
            risk=settings.risk,
            tp_factor=settings.tp_factor,
            reverse=settings.reverse,
            risk_params=settings.risk_params,
            tracker=BalanceTrendTracker(max_samples=settings.balance_history_cap),
            decision_logger=DecisionLogger(self.loader.get_logging_config()),
        )

    def run(self, bars: pd.DataFrame) -> BacktestResult:
        """
        Replay every bar after the warmup.

        Args:
            bars: Price and indicator columns, optionally a 'time' column

        Returns:
            BacktestResult
        """
        feed = DataFrameIndicatorFeed(bars, cursor=0)
        sizer = self.build_sizer()
        broker = self.build_broker(sizer)
        engine = self.build_engine(feed, broker, sizer)

        logger.info("Replaying %d bars: %s on %s (%s)", len(feed.data), self.strategy_name,
                    sizer.instrument, self.settings.position_mode.value)

        engine.on_start()
        for position in feed.iter_bars():
            broker.process_bar(
                feed.value('high'), feed.value('low'), feed.value('close'), feed.current_time
            )
            if position >= self.warmup_bars:
                engine.on_bar()
        engine.on_stop(close_positions=self.settings.close_on_stop)

        history = broker.balance_history()
        result = BacktestResult(
            strategy=self.strategy_name,
            label=engine.label,
            balance_history=history,
            trade_history=broker.get_trade_history(),
            decisions=engine.decision_logger.to_dataframe(),
            decision_summary=engine.decision_logger.summary(),
            fitness=FitnessEvaluator().evaluate(history),
            final_balance=broker.balance,
            open_positions=len(broker.open_positions()),
        )
        logger.info("Replay finished: %d trades, balance %.2f, fitness %.4f",
                    len(result.trade_history), result.final_balance, result.fitness.score)
        return result

    def save_result(self, result: BacktestResult, output_dir: str) -> Path:
        """Write balance history, trades, decisions and summary under output_dir."""
        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)

        result.balance_history.to_csv(out / 'balance_history.csv', index=False)
        pd.DataFrame(result.trade_history).to_csv(out / 'trades.csv', index=False)
        if result.decisions is not None:
            result.decisions.to_csv(out / 'decisions.csv', index=False)
        pd.DataFrame([result.summary()]).to_csv(out / 'summary.csv', index=False)

        logger.info("Results saved to %s", out)
        return out


def run_backtest(
    config_path: str,
    bars: Union[str, pd.DataFrame],
    output_dir: Optional[str] = None
) -> BacktestResult:
    """Load config and bars, replay, and optionally save the outputs."""
    runner = BacktestRunner.from_config(config_path)
    if not isinstance(bars, pd.DataFrame):
        bars = load_bars(bars)
    result = runner.run(bars)
    if output_dir:
        runner.save_result(result, output_dir)
    return result
