#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
PositionPolicy tests

Usage:
    python -m pytest tests/test_position_policy.py -v
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from botcore.engine.models import Position, PositionMode
from botcore.engine.position_policy import PositionPolicy, admit
from botcore.exceptions import ConfigurationError
from botcore.signals.base import TradeDirection

BUY = TradeDirection.BUY
SELL = TradeDirection.SELL


def make_positions(direction, count, start_id=1):
    return [
        Position(
            id=start_id + i,
            direction=direction,
            label='TEST',
            instrument='EUR_USD',
            volume=1000,
            entry_price=1.1,
        )
        for i in range(count)
    ]


class TestOnePosition:

    def test_flat_admits(self):
        result = admit(PositionMode.ONE_POSITION, BUY, [], [])
        assert result.allowed
        assert result.to_close == []

    @pytest.mark.parametrize('longs, shorts', [(1, 0), (0, 1), (2, 3)])
    def test_any_open_position_blocks(self, longs, shorts):
        result = admit(
            PositionMode.ONE_POSITION, SELL,
            make_positions(BUY, longs), make_positions(SELL, shorts, start_id=10)
        )
        assert not result.allowed
        assert result.to_close == []


class TestMultiPosition:

    @pytest.mark.parametrize('existing, allowed', [(0, True), (1, True), (2, True), (3, False)])
    def test_cap(self, existing, allowed):
        longs = make_positions(BUY, existing)
        result = admit(PositionMode.MULTI_POSITION, BUY, longs, [], max_open_positions=2)
        assert result.allowed is allowed
        assert result.to_close == []

    def test_counts_both_sides(self):
        result = admit(
            PositionMode.MULTI_POSITION, BUY,
            make_positions(BUY, 2), make_positions(SELL, 1, start_id=10),
            max_open_positions=2
        )
        assert not result.allowed

    def test_unlimited_by_default(self):
        policy = PositionPolicy(PositionMode.MULTI_POSITION)
        assert policy.admit(BUY, make_positions(BUY, 50), []).allowed


class TestCloseExistingOnSignal:

    def test_sell_closes_longs(self):
        longs = make_positions(BUY, 2)
        result = admit(PositionMode.CLOSE_EXISTING_ON_SIGNAL, SELL, longs, [])
        assert [p.id for p in result.to_close] == [1, 2]
        # No short was open, so the sell is not admitted
        assert not result.allowed

    def test_sell_admitted_when_shorts_open(self):
        longs = make_positions(BUY, 1)
        shorts = make_positions(SELL, 1, start_id=5)
        result = admit(PositionMode.CLOSE_EXISTING_ON_SIGNAL, SELL, longs, shorts)
        assert [p.id for p in result.to_close] == [1]
        assert result.allowed

    def test_buy_closes_shorts(self):
        shorts = make_positions(SELL, 3, start_id=7)
        result = admit(PositionMode.CLOSE_EXISTING_ON_SIGNAL, BUY, [], shorts)
        assert [p.id for p in result.to_close] == [7, 8, 9]
        assert not result.allowed

    def test_buy_admitted_when_longs_open(self):
        longs = make_positions(BUY, 1)
        result = admit(PositionMode.CLOSE_EXISTING_ON_SIGNAL, BUY, longs, [])
        assert result.to_close == []
        assert result.allowed

    def test_flat_is_not_admitted(self):
        for direction in (BUY, SELL):
            result = admit(PositionMode.CLOSE_EXISTING_ON_SIGNAL, direction, [], [])
            assert not result.allowed
            assert result.to_close == []

    def test_invalid_direction(self):
        with pytest.raises(ConfigurationError):
            admit(PositionMode.CLOSE_EXISTING_ON_SIGNAL, 'long', [], [])


class TestPolicyConfiguration:

    def test_unknown_mode(self):
        with pytest.raises(ConfigurationError):
            admit('hedged', BUY, [], [])

    def test_unknown_mode_string(self):
        with pytest.raises(ConfigurationError):
            PositionPolicy('hedged')

    def test_mode_from_string(self):
        policy = PositionPolicy('Multi_Position', max_open_positions=4)
        assert policy.mode is PositionMode.MULTI_POSITION
        assert policy.max_open_positions == 4

    def test_negative_cap(self):
        with pytest.raises(ConfigurationError):
            PositionPolicy(PositionMode.MULTI_POSITION, max_open_positions=-1)
