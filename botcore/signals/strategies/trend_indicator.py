#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Trend indicator strategy

Entry:
- Only while the trend series is rising
- A standard deviation spike above std_dev_risk_threshold latches the strategy
  off until the trend series stops rising
- Direction follows the slope of the long EMA

Stop loss: ATR in pips times atr_multiplier.
Filter: optionally fade trades when close sits outside EMA +/- k * std dev,
tightening the stop; risk follows the balance trend multiplier.

Required series: close, ema, std_dev, atr, trend
"""

from botcore.signals.base import (
    Parameter,
    RunSignal,
    StrategyBehavior,
    StrategyContext,
    TradeDecision,
    trade_type_from_value,
)
from botcore.signals.registry import register


@register('TrendIndicator', metadata={
    'engine_defaults': {
        'risk': 1.0,
        'tp_factor': 5.0,
        'risk_params': {
            'min_risk': 0.1,
            'max_risk': 1.0,
            'risk_factor': 2.0,
            'balance_avg_window': 10,
            'balance_check_window': 5,
        },
    },
    'series': ['close', 'ema', 'std_dev', 'atr', 'trend'],
})
class TrendIndicatorStrategy(StrategyBehavior):
    """EMA slope follower gated by a trend series and a volatility latch."""

    parameters = {
        'atr_multiplier': Parameter(8.0, min_value=0.001, group='Money'),
        'std_dev_factor': Parameter(2.0, min_value=0, group='StdDev'),
        'std_dev_sl_factor': Parameter(0.5, min_value=0, group='StdDev'),
        'std_dev_risk_threshold': Parameter(0.002, group='Money'),
        'check_ema_std_dev': Parameter(False, group='Money'),
    }

    def __init__(self, name: str = None, **params):
        super().__init__(name=name, **params)
        # Set by a volatility spike, cleared once the trend stops rising
        self._volatility_latch = False

    def signal(self, context: StrategyContext) -> RunSignal:
        feed = context.feed

        if not feed.is_rising('trend'):
            self._volatility_latch = False
            return RunSignal.NO_SIGNAL

        if feed.value('std_dev') > self.std_dev_risk_threshold:
            self._volatility_latch = True
            return RunSignal.NO_SIGNAL

        if self._volatility_latch:
            return RunSignal.NO_SIGNAL

        buy = feed.is_rising('ema')
        sell = feed.is_falling('ema')
        return trade_type_from_value((1 if buy else 0) + (-1 if sell else 0))

    def stop_loss_distance(self, context: StrategyContext) -> float:
        return context.sizer.to_pips(context.feed.value('atr')) * self.atr_multiplier

    def filter(self, decision: TradeDecision, context: StrategyContext) -> TradeDecision:
        if self.check_ema_std_dev:
            feed = context.feed
            close = feed.value('close')
            ema = feed.value('ema')
            band = feed.value('std_dev') * self.std_dev_factor
            if close < ema - band or close > ema + band:
                decision = decision.flipped().with_changes(
                    stop_loss_distance=decision.stop_loss_distance * self.std_dev_sl_factor
                )
        return self.scale_risk(decision, context)
