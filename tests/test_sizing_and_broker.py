#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
PipSizer and PaperBroker tests

Usage:
    python -m pytest tests/test_sizing_and_broker.py -v
"""

import math
import sys
from pathlib import Path

import pandas as pd
import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from botcore.engine.broker import PaperBroker
from botcore.engine.sizing import PipSizer, get_pip_size, normalize_instrument
from botcore.exceptions import BrokerError
from botcore.signals.base import TradeDirection

BUY = TradeDirection.BUY
SELL = TradeDirection.SELL


@pytest.fixture
def sizer() -> PipSizer:
    return PipSizer('EUR_USD')


@pytest.fixture
def broker(sizer) -> PaperBroker:
    broker = PaperBroker(sizer, initial_balance=10000.0)
    broker.update_price(1.1000, pd.Timestamp('2024-01-01 00:00'))
    return broker


class TestInstruments:

    @pytest.mark.parametrize('raw, expected', [
        ('eurusd', 'EUR_USD'),
        ('EUR/USD', 'EUR_USD'),
        ('usd-jpy', 'USD_JPY'),
        ('XAU_USD', 'XAU_USD'),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_instrument(raw) == expected

    def test_invalid(self):
        with pytest.raises(ValueError):
            normalize_instrument('')
        with pytest.raises(ValueError):
            normalize_instrument('EU')

    @pytest.mark.parametrize('instrument, pip', [
        ('EUR_USD', 0.0001),
        ('USD_JPY', 0.01),
        ('XAU_USD', 0.01),
        ('GBP_CHF', 0.0001),
    ])
    def test_pip_size(self, instrument, pip):
        assert get_pip_size(instrument) == pip


class TestPipSizer:

    def test_conversions(self, sizer):
        assert sizer.to_pips(0.0020) == pytest.approx(20.0)
        assert sizer.to_price(15) == pytest.approx(0.0015)

    def test_explicit_pip_size(self):
        assert PipSizer('EUR_USD', pip_size=0.00001).to_pips(0.0001) == pytest.approx(10.0)

    def test_volume_exact(self, sizer):
        # 1% of 10000 = 100 over 20 pips * 0.0001 = 0.002 -> 50000 units
        assert sizer.volume(1.0, 10000.0, 20.0) == 50000

    def test_volume_floored_to_step(self, sizer):
        # 100 / 0.003 = 33333.3 -> 33000
        assert sizer.volume(1.0, 10000.0, 30.0) == 33000

    def test_volume_minimum(self, sizer):
        assert sizer.volume(0.01, 1000.0, 100.0) == 1000

    @pytest.mark.parametrize('risk, balance, stop', [
        (1.0, 10000.0, 0.0),
        (1.0, 10000.0, -5.0),
        (1.0, 10000.0, math.nan),
        (1.0, 0.0, 20.0),
        (-1.0, 10000.0, 20.0),
    ])
    def test_volume_invalid_inputs(self, sizer, risk, balance, stop):
        with pytest.raises(ValueError):
            sizer.volume(risk, balance, stop)


class TestPaperBroker:

    def test_order_levels(self, broker):
        position = broker.execute_market_order(BUY, 'EUR_USD', 10000, 'TEST', 20, 40)
        assert position.entry_price == pytest.approx(1.1000)
        assert position.stop_loss == pytest.approx(1.0980)
        assert position.take_profit == pytest.approx(1.1040)

        short = broker.execute_market_order(SELL, 'eurusd', 10000, 'TEST', 20, 40)
        assert short.instrument == 'EUR_USD'
        assert short.stop_loss == pytest.approx(1.1020)
        assert short.take_profit == pytest.approx(1.0960)

    def test_take_profit_closes(self, broker):
        broker.execute_market_order(BUY, 'EUR_USD', 10000, 'TEST', 20, 40)
        closed = broker.process_bar(high=1.1050, low=1.0990, close=1.1045)
        assert len(closed) == 1
        assert closed[0].reason == 'take_profit'
        assert closed[0].pnl == pytest.approx(40.0)
        assert broker.balance == pytest.approx(10040.0)
        assert broker.open_positions() == []

    def test_stop_loss_wins_inside_one_bar(self, broker):
        broker.execute_market_order(SELL, 'EUR_USD', 10000, 'TEST', 20, 20)
        closed = broker.process_bar(high=1.1030, low=1.0970, close=1.1000)
        assert closed[0].reason == 'stop_loss'
        assert broker.balance == pytest.approx(9980.0)

    def test_untouched_position_stays_open(self, broker):
        broker.execute_market_order(BUY, 'EUR_USD', 10000, 'TEST', 20, 40)
        assert broker.process_bar(high=1.1010, low=1.0990, close=1.1005) == []
        assert broker.equity == pytest.approx(10005.0)

    def test_manual_close_at_current_price(self, broker):
        position = broker.execute_market_order(SELL, 'EUR_USD', 20000, 'TEST', None, None)
        broker.update_price(1.0990)
        trade = broker.close(position)
        assert trade.reason == 'manual'
        assert trade.pnl == pytest.approx(20.0)
        with pytest.raises(BrokerError):
            broker.close(position)

    def test_commission(self, sizer):
        broker = PaperBroker(sizer, initial_balance=10000.0, commission_per_unit=0.0001)
        broker.update_price(1.1000)
        position = broker.execute_market_order(BUY, 'EUR_USD', 10000, 'TEST', None, None)
        trade = broker.close(position)
        assert trade.pnl == pytest.approx(-1.0)

    def test_find_positions(self, broker):
        broker.execute_market_order(BUY, 'EUR_USD', 1000, 'A', None, None)
        broker.execute_market_order(BUY, 'EUR_USD', 1000, 'B', None, None)
        broker.execute_market_order(SELL, 'EUR_USD', 1000, 'A', None, None)

        longs = broker.find_positions('A', 'eurusd', BUY)
        assert [p.label for p in longs] == ['A']
        assert len(broker.find_positions('A', 'EUR_USD', SELL)) == 1
        assert broker.find_positions('C', 'EUR_USD', BUY) == []

    def test_rejections(self, sizer, broker):
        with pytest.raises(BrokerError):
            broker.execute_market_order(BUY, 'GBP_USD', 1000, 'TEST', 20, 20)
        with pytest.raises(BrokerError):
            broker.execute_market_order(BUY, 'EUR_USD', 0, 'TEST', 20, 20)
        with pytest.raises(BrokerError):
            PaperBroker(sizer).execute_market_order(BUY, 'EUR_USD', 1000, 'TEST', 20, 20)

    def test_closed_callbacks_see_new_balance(self, broker):
        seen = []
        broker.subscribe_closed(lambda trade: seen.append((trade.position_id, broker.balance)))
        position = broker.execute_market_order(BUY, 'EUR_USD', 10000, 'TEST', None, None)
        broker.update_price(1.1010)
        broker.close(position)
        assert seen == [(position.id, pytest.approx(10010.0))]

    def test_balance_history(self, broker):
        broker.execute_market_order(BUY, 'EUR_USD', 10000, 'TEST', 20, 40)
        broker.process_bar(high=1.1050, low=1.0990, close=1.1045,
                           time=pd.Timestamp('2024-01-01 01:00'))
        history = broker.balance_history()
        assert list(history.columns) == ['time', 'balance']
        assert history['balance'].tolist() == pytest.approx([10000.0, 10040.0])
        assert broker.closed_history()[0].exit_time == pd.Timestamp('2024-01-01 01:00')

    def test_invalid_initial_balance(self, sizer):
        with pytest.raises(ValueError):
            PaperBroker(sizer, initial_balance=0)
