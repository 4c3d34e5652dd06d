#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StrategyTemplateEngine - Broker Interface

Order execution boundary used by the engine:
- Broker: abstract backend (find / close / execute / balance / closed stream)
- PaperBroker: in-memory backend filling at the current close, with
  per-bar stop-loss / take-profit processing

Order distances are expressed in pips; the paper broker converts them to
prices through the instrument's PipSizer.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional

import pandas as pd

from botcore.engine.models import ClosedTrade, Position
from botcore.engine.sizing import PipSizer, normalize_instrument
from botcore.exceptions import BrokerError
from botcore.signals.base import TradeDirection

logger = logging.getLogger(__name__)

ClosedCallback = Callable[[ClosedTrade], None]


class Broker(ABC):
    """Abstract broker backend."""

    @property
    @abstractmethod
    def balance(self) -> float:
        """Current account balance (realized)."""

    @abstractmethod
    def find_positions(
        self,
        label: str,
        instrument: str,
        direction: TradeDirection
    ) -> List[Position]:
        """Open positions matching label, instrument and direction."""

    @abstractmethod
    def close(self, position: Position) -> ClosedTrade:
        """Close an open position. Raises BrokerError on failure."""

    @abstractmethod
    def execute_market_order(
        self,
        direction: TradeDirection,
        instrument: str,
        volume: float,
        label: str,
        stop_loss_pips: Optional[float],
        take_profit_pips: Optional[float]
    ) -> Position:
        """Submit a market order. Raises BrokerError when rejected."""

    @abstractmethod
    def closed_history(self) -> List[ClosedTrade]:
        """Closed trades, oldest first."""

    @abstractmethod
    def subscribe_closed(self, callback: ClosedCallback) -> None:
        """Register a callback fired after every position closure."""


class PaperBroker(Broker):
    """
    In-memory broker for replays and tests.

    Positions fill at the last known close. ``process_bar`` checks every open
    position against the bar range; when both stop loss and take profit lie
    inside the same bar the stop loss is assumed to fill first.

    Attributes:
        initial_balance: Starting account balance
        sizer: Pip conversion of the single traded instrument
        commission_per_unit: Round-trip cost charged on close, per unit
    """

    def __init__(
        self,
        sizer: PipSizer,
        initial_balance: float = 10000.0,
        commission_per_unit: float = 0.0
    ):
        if initial_balance <= 0:
            raise ValueError("initial_balance must be positive")
        self.sizer = sizer
        self.initial_balance = float(initial_balance)
        self.commission_per_unit = commission_per_unit

        self._balance = float(initial_balance)
        self._positions: Dict[int, Position] = {}
        self._closed: List[ClosedTrade] = []
        self._listeners: List[ClosedCallback] = []
        self._next_id = 1
        self._price: Optional[float] = None
        self._time: Optional[pd.Timestamp] = None

    # ========== Market state ==========

    def update_price(self, price: float, time: Optional[pd.Timestamp] = None) -> None:
        self._price = float(price)
        self._time = time

    def process_bar(
        self,
        high: float,
        low: float,
        close: float,
        time: Optional[pd.Timestamp] = None
    ) -> List[ClosedTrade]:
        """
        Apply a completed bar: fire stops/targets hit inside it, then mark to close.

        Returns:
            Trades closed by stop loss or take profit on this bar
        """
        self._time = time
        closed = []

        for position in list(self._positions.values()):
            exit_price, reason = self._check_exit(position, high, low)
            if exit_price is not None:
                closed.append(self._close_at(position, exit_price, reason))

        self._price = float(close)
        return closed

    def _check_exit(self, position: Position, high: float, low: float):
        if position.direction is TradeDirection.BUY:
            if position.stop_loss is not None and low <= position.stop_loss:
                return position.stop_loss, 'stop_loss'
            if position.take_profit is not None and high >= position.take_profit:
                return position.take_profit, 'take_profit'
        else:
            if position.stop_loss is not None and high >= position.stop_loss:
                return position.stop_loss, 'stop_loss'
            if position.take_profit is not None and low <= position.take_profit:
                return position.take_profit, 'take_profit'
        return None, None

    # ========== Broker interface ==========

    @property
    def balance(self) -> float:
        return self._balance

    @property
    def equity(self) -> float:
        if self._price is None:
            return self._balance
        unrealized = sum(self._pnl(p, self._price) for p in self._positions.values())
        return self._balance + unrealized

    def open_positions(self) -> List[Position]:
        return list(self._positions.values())

    def find_positions(
        self,
        label: str,
        instrument: str,
        direction: TradeDirection
    ) -> List[Position]:
        instrument = normalize_instrument(instrument)
        return [
            p for p in self._positions.values()
            if p.label == label and p.instrument == instrument and p.direction is direction
        ]

    def close(self, position: Position) -> ClosedTrade:
        if position.id not in self._positions:
            raise BrokerError(f"Position {position.id} is not open")
        if self._price is None:
            raise BrokerError("No market price available")
        return self._close_at(position, self._price, 'manual')

    def execute_market_order(
        self,
        direction: TradeDirection,
        instrument: str,
        volume: float,
        label: str,
        stop_loss_pips: Optional[float],
        take_profit_pips: Optional[float]
    ) -> Position:
        instrument = normalize_instrument(instrument)
        if instrument != self.sizer.instrument:
            raise BrokerError(f"Instrument {instrument} not tradable on this account")
        if self._price is None:
            raise BrokerError("No market price available")
        if volume is None or volume <= 0:
            raise BrokerError(f"Invalid volume: {volume}")

        entry = self._price
        sign = 1 if direction is TradeDirection.BUY else -1
        stop_loss = None
        take_profit = None
        if stop_loss_pips:
            stop_loss = entry - sign * self.sizer.to_price(stop_loss_pips)
        if take_profit_pips:
            take_profit = entry + sign * self.sizer.to_price(take_profit_pips)

        position = Position(
            id=self._next_id,
            direction=direction,
            label=label,
            instrument=instrument,
            volume=float(volume),
            entry_price=entry,
            stop_loss=stop_loss,
            take_profit=take_profit,
            entry_time=self._time,
        )
        self._next_id += 1
        self._positions[position.id] = position

        logger.debug(
            "Opened #%d %s %.0f %s @ %.5f (sl=%s, tp=%s)",
            position.id, direction.value, volume, instrument, entry, stop_loss, take_profit
        )
        return position

    def closed_history(self) -> List[ClosedTrade]:
        return list(self._closed)

    def subscribe_closed(self, callback: ClosedCallback) -> None:
        self._listeners.append(callback)

    # ========== Accounting ==========

    def _pnl(self, position: Position, price: float) -> float:
        sign = 1 if position.direction is TradeDirection.BUY else -1
        return sign * (price - position.entry_price) * position.volume

    def _close_at(self, position: Position, price: float, reason: str) -> ClosedTrade:
        pnl = self._pnl(position, price) - self.commission_per_unit * position.volume
        self._balance += pnl
        del self._positions[position.id]

        trade = ClosedTrade(
            position_id=position.id,
            direction=position.direction,
            label=position.label,
            instrument=position.instrument,
            volume=position.volume,
            entry_price=position.entry_price,
            exit_price=price,
            pnl=pnl,
            balance=self._balance,
            entry_time=position.entry_time,
            exit_time=self._time,
            reason=reason,
        )
        self._closed.append(trade)
        logger.debug("Closed #%d (%s) pnl=%.2f balance=%.2f", position.id, reason, pnl, self._balance)

        for callback in self._listeners:
            callback(trade)
        return trade

    def balance_history(self) -> pd.DataFrame:
        """Balance after each closed trade, starting with the initial balance."""
        rows = [{'time': None, 'balance': self.initial_balance}]
        rows.extend({'time': t.exit_time, 'balance': t.balance} for t in self._closed)
        return pd.DataFrame(rows, columns=['time', 'balance'])

    def get_trade_history(self) -> List[Dict]:
        return [t.to_dict() for t in self._closed]

    def __repr__(self) -> str:
        return (f"PaperBroker(balance={self._balance:.2f}, open={len(self._positions)}, "
                f"closed={len(self._closed)})")
