#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StrategyTemplateEngine - Decision Cycle Regression Tests

Scenarios:
1. Buy signal, flat book, one-position policy -> order with sl=20, tp=20*tp_factor
2. Same inputs in reverse mode -> sell order with stop/target swapped
3. Policy refusals, policy-mandated closures, broker and sizing rejections
4. Balance tracker wiring (seeding, closures, risk scaling)
5. Config-driven replay over synthetic bars

Usage:
    python -m pytest tests/regression/test_engine_scenarios.py -v
"""

import sys
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from botcore.data.indicator_feed import DataFrameIndicatorFeed
from botcore.engine import (
    BalanceTrendTracker,
    PaperBroker,
    PipSizer,
    PositionMode,
    PositionPolicy,
    RiskParameters,
    StrategyEngine,
)
from botcore.engine.backtest_runner import BacktestRunner
from botcore.exceptions import BrokerError, ConfigurationError
from botcore.metrics.decision_logger import DecisionLogger
from botcore.processors.config_loader import StrategyConfigLoader
from botcore.signals.base import (
    Parameter,
    RunSignal,
    StrategyBehavior,
    TradeDirection,
)
from botcore.signals.registry import register

BUY = TradeDirection.BUY
SELL = TradeDirection.SELL
PRICE = 1.1000


class FixedSignalBehavior(StrategyBehavior):
    """Emits the configured signal with a fixed stop distance."""

    parameters = {
        'signal_value': Parameter('buy'),
        'stop': Parameter(20.0, min_value=0),
        'scale': Parameter(False),
    }

    def signal(self, context):
        return RunSignal(self.signal_value)

    def stop_loss_distance(self, context):
        return self.stop

    def filter(self, decision, context):
        if self.scale:
            return self.scale_risk(decision, context)
        return decision


@register('AlwaysBuyTest', metadata={'series': ['close']})
class AlwaysBuyBehavior(StrategyBehavior):
    """Buys every bar with a 10 pip stop."""

    def signal(self, context):
        return RunSignal.BUY

    def stop_loss_distance(self, context):
        return 10.0


class RejectingBroker(PaperBroker):
    def execute_market_order(self, *args, **kwargs):
        raise BrokerError("Market closed")


@pytest.fixture
def sizer() -> PipSizer:
    return PipSizer('EUR_USD')


@pytest.fixture
def broker(sizer) -> PaperBroker:
    broker = PaperBroker(sizer, initial_balance=10000.0)
    broker.update_price(PRICE)
    return broker


@pytest.fixture
def feed() -> DataFrameIndicatorFeed:
    return DataFrameIndicatorFeed(pd.DataFrame({'close': [PRICE]}))


def make_engine(broker, feed, sizer, behavior=None, **kwargs) -> StrategyEngine:
    engine = StrategyEngine(
        behavior=behavior or FixedSignalBehavior(),
        broker=broker,
        feed=feed,
        sizer=sizer,
        label='E2E',
        decision_logger=DecisionLogger({'enabled': True}),
        **kwargs
    )
    engine.on_start()
    return engine


class TestOrderScenarios:

    def test_buy_one_position(self, broker, feed, sizer):
        engine = make_engine(broker, feed, sizer, tp_factor=2.0)
        result = engine.on_bar()

        assert result.success
        assert result.direction is BUY
        assert result.stop_loss_distance == 20.0
        assert result.take_profit_distance == 40.0
        # 1% of 10000 over 20 pips of 0.0001
        assert result.volume == 50000
        assert engine.last_position_id == result.position_id

        position = broker.open_positions()[0]
        assert position.label == 'E2E'
        assert position.stop_loss == pytest.approx(PRICE - 0.0020)
        assert position.take_profit == pytest.approx(PRICE + 0.0040)

    def test_buy_reverse_swaps_stop_and_target(self, broker, feed, sizer):
        engine = make_engine(broker, feed, sizer, tp_factor=2.0, reverse=True)
        result = engine.on_bar()

        assert result.success
        assert result.direction is SELL
        assert result.stop_loss_distance == 40.0
        assert result.take_profit_distance == 20.0
        assert result.volume == 25000

        position = broker.open_positions()[0]
        assert position.direction is SELL
        assert position.stop_loss == pytest.approx(PRICE + 0.0040)
        assert position.take_profit == pytest.approx(PRICE - 0.0020)

    def test_no_signal_ends_cycle(self, broker, feed, sizer):
        engine = make_engine(broker, feed, sizer, behavior=FixedSignalBehavior(signal_value='no_signal'))
        assert engine.on_bar() is None
        assert broker.open_positions() == []
        cycles = engine.decision_logger.to_dataframe()
        assert cycles['signal'].tolist() == ['no_signal']
        assert cycles['allowed'].isna().all()

    def test_one_position_blocks_second_order(self, broker, feed, sizer):
        engine = make_engine(broker, feed, sizer)
        assert engine.on_bar().success
        assert engine.on_bar() is None
        assert len(broker.open_positions()) == 1

    def test_other_labels_are_ignored(self, broker, feed, sizer):
        broker.execute_market_order(BUY, 'EUR_USD', 1000, 'OTHER', None, None)
        engine = make_engine(broker, feed, sizer)
        assert engine.on_bar().success
        assert len(broker.open_positions()) == 2

    def test_multi_position_cap_is_inclusive(self, broker, feed, sizer):
        policy = PositionPolicy(PositionMode.MULTI_POSITION, max_open_positions=2)
        engine = make_engine(broker, feed, sizer, policy=policy)
        results = [engine.on_bar() for _ in range(4)]
        assert [r is not None for r in results] == [True, True, True, False]
        assert len(broker.open_positions()) == 3

    def test_close_existing_closes_even_when_refused(self, broker, feed, sizer):
        broker.execute_market_order(BUY, 'EUR_USD', 1000, 'E2E', None, None)
        policy = PositionPolicy(PositionMode.CLOSE_EXISTING_ON_SIGNAL)
        engine = make_engine(broker, feed, sizer, policy=policy,
                             behavior=FixedSignalBehavior(signal_value='sell'))

        assert engine.on_bar() is None
        assert broker.open_positions() == []
        assert len(broker.closed_history()) == 1
        # The closure reached the tracker through the closed-position stream
        assert engine.tracker.samples == [10000.0]

        cycle = engine.decision_logger.cycles[-1]
        assert cycle.allowed is False
        assert cycle.closed_positions == [1]

    def test_close_existing_admits_with_same_side_open(self, broker, feed, sizer):
        broker.execute_market_order(SELL, 'EUR_USD', 1000, 'E2E', None, None)
        broker.execute_market_order(BUY, 'EUR_USD', 1000, 'E2E', None, None)
        policy = PositionPolicy(PositionMode.CLOSE_EXISTING_ON_SIGNAL)
        engine = make_engine(broker, feed, sizer, policy=policy,
                             behavior=FixedSignalBehavior(signal_value='sell'))

        result = engine.on_bar()
        assert result.success
        assert [p.direction for p in broker.open_positions()] == [SELL, SELL]


class TestRejections:

    def test_broker_rejection_surfaces_without_position(self, sizer, feed):
        broker = RejectingBroker(sizer)
        broker.update_price(PRICE)
        engine = make_engine(broker, feed, sizer)

        result = engine.on_bar()
        assert not result.success
        assert result.position_id is None
        assert 'Market closed' in result.error
        assert engine.last_position_id is None
        assert engine.decision_logger.summary()['rejected'] == 1

    def test_zero_stop_is_not_sized(self, broker, feed, sizer):
        engine = make_engine(broker, feed, sizer, behavior=FixedSignalBehavior(stop=0.0))
        result = engine.on_bar()
        assert not result.success
        assert result.volume == 0.0
        assert broker.open_positions() == []


class TestBalanceTracking:

    def test_on_start_seeds_from_history(self, broker, feed, sizer):
        times = pd.date_range('2024-01-01', periods=3, freq='h')
        for time, exit_price in zip(times, [1.1010, 1.0990, 1.1020]):
            broker.update_price(PRICE, time)
            position = broker.execute_market_order(BUY, 'EUR_USD', 10000, 'E2E', None, None)
            broker.update_price(exit_price, time)
            broker.close(position)
        broker.update_price(PRICE, times[-1])
        broker.execute_market_order(BUY, 'EUR_USD', 10000, 'OTHER', None, None)
        broker.close(broker.open_positions()[0])

        engine = StrategyEngine(FixedSignalBehavior(), broker, feed, sizer, label='E2E')
        engine.on_start(start_time=times[-1])

        # Only trades entered strictly before the start time
        assert engine.tracker.samples == pytest.approx([10010.0, 10000.0])

    def test_on_start_seeds_from_whole_account(self, broker, feed, sizer):
        times = pd.date_range('2024-01-01', periods=3, freq='h')
        for time, label, exit_price in zip(times, ['OTHER', 'E2E', 'OTHER'],
                                           [1.1010, 1.1020, 1.0990]):
            broker.update_price(PRICE, time)
            position = broker.execute_market_order(BUY, 'EUR_USD', 10000, label, None, None)
            broker.update_price(exit_price, time)
            broker.close(position)

        engine = StrategyEngine(FixedSignalBehavior(), broker, feed, sizer, label='E2E')
        engine.on_start()

        # Account balances of every label, in entry order
        assert engine.tracker.samples == pytest.approx([10010.0, 10030.0, 10020.0])

    def test_risk_scaled_by_tracker(self, broker, feed, sizer):
        tracker = BalanceTrendTracker()
        tracker.seed(np.linspace(11000, 10000, 10))
        engine = make_engine(
            broker, feed, sizer,
            behavior=FixedSignalBehavior(scale=True),
            tracker=tracker,
            risk_params=RiskParameters(),
        )
        result = engine.on_bar()
        # Declining balances -> min_risk 0.1 -> 0.1% of 10000 over 20 pips
        assert result.volume == 5000

    def test_on_stop_closes_own_positions(self, broker, feed, sizer):
        broker.execute_market_order(SELL, 'EUR_USD', 1000, 'OTHER', None, None)
        policy = PositionPolicy(PositionMode.MULTI_POSITION)
        engine = make_engine(broker, feed, sizer, policy=policy)
        engine.on_bar()
        engine.on_bar()

        closed = engine.on_stop(close_positions=True)
        assert len(closed) == 2
        assert [p.label for p in broker.open_positions()] == ['OTHER']
        assert len(engine.tracker) == 2


class TestReplay:

    @pytest.fixture
    def bars(self) -> pd.DataFrame:
        n = 30
        close = PRICE + 0.0010 * np.arange(n)
        return pd.DataFrame({
            'time': pd.date_range('2024-01-01', periods=n, freq='h'),
            'high': close + 0.0005,
            'low': close - 0.0005,
            'close': close,
        })

    @pytest.fixture
    def loader(self) -> StrategyConfigLoader:
        return StrategyConfigLoader.from_dict({
            'strategy': {'name': 'AlwaysBuyTest'},
            'engine': {'label': 'REPLAY', 'instrument': 'EUR_USD'},
            'broker': {'initial_balance': 10000},
        })

    def test_rising_market(self, loader, bars):
        result = BacktestRunner(loader, warmup_bars=1).run(bars)

        # Entries on bars 1..29, each take profit hit on the following bar
        assert result.decision_summary['orders'] == 29
        assert len(result.trade_history) == 28
        assert all(t['reason'] == 'take_profit' for t in result.trade_history)
        assert result.open_positions == 1
        assert result.final_balance > 10000
        assert result.fitness.accepted
        assert result.fitness.score > 0
        assert result.balance_history['balance'].is_monotonic_increasing

    def test_close_on_stop(self, bars):
        loader = StrategyConfigLoader.from_dict({
            'strategy': {'name': 'AlwaysBuyTest'},
            'engine': {'label': 'REPLAY', 'instrument': 'EUR_USD', 'close_on_stop': True},
        })
        result = BacktestRunner(loader).run(bars)
        assert result.open_positions == 0
        assert len(result.trade_history) == 29

    def test_missing_series(self, bars):
        loader = StrategyConfigLoader.from_dict({
            'strategy': {'name': 'PsarMacd'},
            'engine': {'instrument': 'EUR_USD'},
        })
        with pytest.raises(ConfigurationError):
            BacktestRunner(loader).run(bars)

    def test_save_result(self, loader, bars, tmp_path):
        runner = BacktestRunner(loader)
        result = runner.run(bars)
        out = runner.save_result(result, tmp_path / 'replay')
        for name in ('balance_history.csv', 'trades.csv', 'decisions.csv', 'summary.csv'):
            assert (out / name).exists()
        summary = pd.read_csv(out / 'summary.csv')
        assert summary['trades'].iloc[0] == 28
