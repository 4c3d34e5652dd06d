#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
RSI divergence + stochastic cross strategy

- Buy: close above the 200 EMA, a "down" RSI divergence in the scan window and
  stochastic %K crossing above %D on the last bar
- Sell: close at or below the EMA, an "up" divergence and %K crossing below %D

Divergence events are supplied by the feed as 0/1 series; the scan window and
minimum distance are applied by the provider.

Required series: close, ema, divergence_up, divergence_down, stoch_k, stoch_d, atr
"""

from botcore.signals.base import (
    Parameter,
    RunSignal,
    StrategyBehavior,
    StrategyContext,
    trade_type_from_value,
)
from botcore.signals.registry import register


@register('RsiStochasticDivergence', metadata={
    'engine_defaults': {
        'risk': 1.0,
        'tp_factor': 2.0,
    },
    'tp_factor_max': 2.5,
    'series': ['close', 'ema', 'divergence_up', 'divergence_down', 'stoch_k', 'stoch_d', 'atr'],
})
class RsiStochasticDivergenceStrategy(StrategyBehavior):
    """Divergence reversal entries confirmed by a stochastic cross."""

    parameters = {
        'atr_multiplier': Parameter(2.0, min_value=1, max_value=10, group='Money'),
        'cross_period': Parameter(1, min_value=1, max_value=10, group='Stochastic'),
    }

    def signal(self, context: StrategyContext) -> RunSignal:
        feed = context.feed
        close = feed.value('close')
        ema = feed.value('ema')

        buy = (
            ema < close
            and feed.value('divergence_down') > 0
            and feed.has_crossed_above('stoch_k', 'stoch_d', self.cross_period)
        )
        sell = (
            ema >= close
            and feed.value('divergence_up') > 0
            and feed.has_crossed_below('stoch_k', 'stoch_d', self.cross_period)
        )
        return trade_type_from_value((1 if buy else 0) + (-1 if sell else 0))

    def stop_loss_distance(self, context: StrategyContext) -> float:
        return context.sizer.to_pips(context.feed.value('atr')) * self.atr_multiplier
