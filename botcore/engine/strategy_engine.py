#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StrategyTemplateEngine - Strategy Engine

Shared per-bar control flow every strategy behaviour plugs into:

    signal -> stop distance -> filter -> position policy -> reverse -> size -> submit

Event hooks:
- on_start: seed the balance tracker from closed-trade history, subscribe to closures
- on_bar: run one decision cycle
- on_position_closed: record the account balance
- on_stop: optionally close every position of this engine

One engine manages exactly one instrument under one label. The only state kept
between cycles is the balance history held by the tracker.
"""

import logging
import threading
from typing import List, Optional

import pandas as pd

from botcore.data.indicator_feed import IndicatorFeed
from botcore.engine.balance_tracker import BalanceTrendTracker
from botcore.engine.broker import Broker
from botcore.engine.models import ClosedTrade, OrderResult, Position, RiskParameters
from botcore.engine.position_policy import PositionPolicy
from botcore.engine.sizing import PipSizer
from botcore.exceptions import BrokerError
from botcore.metrics.decision_logger import DecisionLogger
from botcore.signals.base import (
    RunSignal,
    StrategyBehavior,
    StrategyContext,
    TradeDecision,
    TradeDirection,
)

logger = logging.getLogger(__name__)


class StrategyEngine:
    """
    Template decision engine for one instrument/strategy pair.

    Attributes:
        behavior: Concrete strategy providing signal, stop distance and filter
        broker: Order execution backend
        feed: Price/indicator feed positioned on the current bar
        sizer: Pip conversion and volume sizing for the instrument
        label: Tag attached to every order, used to find this engine's positions
        policy: Position-management policy
        risk: Base risk per trade in percent of balance
        tp_factor: Take-profit distance as a multiple of the stop distance
        reverse: Fade mode, swaps direction and stop/target distances
        risk_params: Adaptive risk parameters, None disables risk scaling
        tracker: Balance history used for adaptive risk
        decision_logger: Per-cycle record keeper
    """

    def __init__(
        self,
        behavior: StrategyBehavior,
        broker: Broker,
        feed: IndicatorFeed,
        sizer: PipSizer,
        label: Optional[str] = None,
        policy: Optional[PositionPolicy] = None,
        risk: float = 1.0,
        tp_factor: float = 1.0,
        reverse: bool = False,
        risk_params: Optional[RiskParameters] = None,
        tracker: Optional[BalanceTrendTracker] = None,
        decision_logger: Optional[DecisionLogger] = None
    ):
        self.behavior = behavior
        self.broker = broker
        self.feed = feed
        self.sizer = sizer
        self.label = label or behavior.name
        self.policy = policy or PositionPolicy()
        self.risk = risk
        self.tp_factor = tp_factor
        self.reverse = reverse
        self.risk_params = risk_params
        self.tracker = tracker if tracker is not None else BalanceTrendTracker()
        self.decision_logger = decision_logger or DecisionLogger({'enabled': False})

        self.last_position_id: Optional[int] = None
        self._bar_index = 0
        self._started = False
        # Closures fire callbacks from inside a cycle, hence re-entrant
        self._lock = threading.RLock()

    @property
    def instrument(self) -> str:
        return self.sizer.instrument

    @property
    def context(self) -> StrategyContext:
        return StrategyContext(
            feed=self.feed,
            sizer=self.sizer,
            tracker=self.tracker,
            risk_params=self.risk_params,
        )

    # ========== Lifecycle hooks ==========

    def on_start(self, start_time: Optional[pd.Timestamp] = None) -> None:
        """
        Seed the balance history and subscribe to position closures.

        Args:
            start_time: Only trades entered before this time seed the history;
                None seeds from every closed trade on the account
        """
        if self._started:
            return

        history = [
            t for t in self.broker.closed_history()
            if start_time is None or (t.entry_time is not None and t.entry_time < start_time)
        ]
        if all(t.entry_time is not None for t in history):
            history.sort(key=lambda t: t.entry_time)
        if history:
            self.tracker.seed(t.balance for t in history)
            logger.info("Seeded %d account balances for %s", len(history), self.label)

        self.broker.subscribe_closed(self.on_position_closed)
        self._started = True

    def on_position_closed(self, trade: ClosedTrade) -> None:
        """Record the account balance after a closure."""
        with self._lock:
            self.tracker.record_balance(self.broker.balance)
        logger.debug("Position #%d closed, balance=%.2f", trade.position_id, self.broker.balance)

    def on_bar(self) -> Optional[OrderResult]:
        """
        Run one decision cycle on the current bar.

        Returns:
            OrderResult when an order was submitted (position None on rejection),
            None when there was no signal or the position policy refused
        """
        with self._lock:
            self._bar_index += 1
            return self._run_cycle()

    def on_stop(self, close_positions: bool = False) -> List[ClosedTrade]:
        """Stop the engine, optionally closing every position it owns."""
        closed = []
        if close_positions:
            with self._lock:
                for direction in (TradeDirection.BUY, TradeDirection.SELL):
                    for position in self.broker.find_positions(self.label, self.instrument, direction):
                        closed.append(self.broker.close(position))
            logger.info("Closed %d positions on stop for %s", len(closed), self.label)
        return closed

    # ========== Decision cycle ==========

    def _run_cycle(self) -> Optional[OrderResult]:
        context = self.context
        time = getattr(self.feed, 'current_time', None)
        cycle = self.decision_logger.start_cycle(self._bar_index, time)

        # 1. Signal
        signal = self.behavior.signal(context)
        cycle.signal = signal.value
        if signal is RunSignal.NO_SIGNAL:
            self.decision_logger.commit(cycle)
            return None

        # 2. Stop distance, before filtering
        stop_loss = self.behavior.stop_loss_distance(context)

        # 3. Strategy filter
        decision = TradeDecision(
            direction=signal.direction,
            stop_loss_distance=stop_loss,
            risk_fraction=self.risk,
            take_profit_factor=self.tp_factor,
        )
        decision = self.behavior.filter(decision, context)
        cycle.direction = decision.direction.value
        cycle.risk_fraction = decision.risk_fraction

        # 4. Position policy; closures stand even when admission fails
        open_longs = self.broker.find_positions(self.label, self.instrument, TradeDirection.BUY)
        open_shorts = self.broker.find_positions(self.label, self.instrument, TradeDirection.SELL)
        admission = self.policy.admit(decision.direction, open_longs, open_shorts)
        for position in admission.to_close:
            self._close(position)
            cycle.closed_positions.append(position.id)

        cycle.allowed = admission.allowed
        if not admission.allowed:
            logger.debug("Bar %d: %s refused by %s", self._bar_index, decision.direction.value, self.policy)
            self.decision_logger.commit(cycle)
            return None

        # 5-7. Reverse, size, submit
        result = self._execute(decision)
        cycle.direction = result.direction.value
        cycle.stop_loss_distance = result.stop_loss_distance
        cycle.take_profit_distance = result.take_profit_distance
        cycle.volume = result.volume
        cycle.position_id = result.position_id
        cycle.error = result.error
        self.decision_logger.commit(cycle)
        return result

    def _close(self, position: Position) -> None:
        self.broker.close(position)
        logger.info("Closed opposing position #%d (%s)", position.id, position.direction.value)

    def _execute(self, decision: TradeDecision) -> OrderResult:
        direction = decision.direction
        stop_loss = decision.stop_loss_distance
        take_profit = decision.take_profit_distance

        if self.reverse:
            direction = direction.opposite()
            stop_loss, take_profit = take_profit, stop_loss

        result = OrderResult(
            direction=direction,
            volume=0.0,
            stop_loss_distance=stop_loss,
            take_profit_distance=take_profit,
        )
        try:
            volume = self.sizer.volume(decision.risk_fraction, self.broker.balance, stop_loss)
        except ValueError as exc:
            result.error = str(exc)
            logger.warning("Order not sized for %s: %s", self.label, exc)
            return result

        result.volume = volume
        try:
            result.position = self.broker.execute_market_order(
                direction, self.instrument, volume, self.label, stop_loss, take_profit
            )
        except BrokerError as exc:
            result.error = str(exc)
            logger.warning("Order rejected for %s: %s", self.label, exc)
            return result

        self.last_position_id = result.position.id
        logger.info(
            "Bar %d: %s %.0f %s sl=%.1f tp=%.1f -> #%d",
            self._bar_index, direction.value, volume, self.instrument,
            stop_loss, take_profit, result.position.id
        )
        return result

    def __repr__(self) -> str:
        return (f"StrategyEngine(label={self.label}, instrument={self.instrument}, "
                f"policy={self.policy.mode.value}, reverse={self.reverse})")
