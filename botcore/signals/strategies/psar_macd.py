#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
PSAR + MACD trend strategy

Entry (on the last closed bar):
- Skip when close is nearer than min_pips to the parabolic SAR
- Buy: high >= EMA, MACD histogram turned positive and close moved above the
  SAR within max_check_back bars (single clean transition each)
- Sell: mirror image

Stop loss: distance from close to the SAR.
Filter: when that distance exceeds max_pips the trade is faded; risk follows
the balance trend multiplier.

Required series: close, high, low, ema, macd_hist, psar
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
from botcore.signals.run_detector import classify


@register('PsarMacd', metadata={
    'engine_defaults': {
        'risk': 1.0,
        'tp_factor': 1.0,
        'risk_params': {
            'min_risk': 0.1,
            'max_risk': 1.0,
            'risk_factor': 2.0,
            'balance_avg_window': 10,
            'balance_check_window': 5,
        },
    },
    'series': ['close', 'high', 'low', 'ema', 'macd_hist', 'psar'],
})
class PsarMacdStrategy(StrategyBehavior):
    """Parabolic SAR / MACD histogram trend follower with a fade filter."""

    parameters = {
        'max_check_back': Parameter(5, min_value=1, group='Check'),
        'min_pips': Parameter(15, min_value=0, group='Check'),
        'max_pips': Parameter(100, min_value=0, group='Check'),
    }

    def _sar_distance(self, context: StrategyContext) -> float:
        feed = context.feed
        return context.sizer.to_pips(abs(feed.value('close') - feed.value('psar')))

    def signal(self, context: StrategyContext) -> RunSignal:
        if self._sar_distance(context) < self.min_pips:
            return RunSignal.NO_SIGNAL

        feed = context.feed
        buy = (
            feed.value('high') >= feed.value('ema')
            and classify(lambda i: feed.value('macd_hist', i) > 0, self.max_check_back)
            and classify(lambda i: feed.value('close', i) > feed.value('psar', i), self.max_check_back)
        )
        sell = (
            feed.value('low') <= feed.value('ema')
            and classify(lambda i: feed.value('macd_hist', i) < 0, self.max_check_back)
            and classify(lambda i: feed.value('close', i) < feed.value('psar', i), self.max_check_back)
        )

        return trade_type_from_value((1 if buy else 0) + (-1 if sell else 0))

    def stop_loss_distance(self, context: StrategyContext) -> float:
        return self._sar_distance(context)

    def filter(self, decision: TradeDecision, context: StrategyContext) -> TradeDecision:
        if self._sar_distance(context) > self.max_pips:
            decision = decision.flipped()
        return self.scale_risk(decision, context)
