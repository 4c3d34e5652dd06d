#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StrategyTemplateEngine - Concrete Strategies

Importing this package registers every strategy with the global registry.
"""

from botcore.signals.strategies.psar_macd import PsarMacdStrategy
from botcore.signals.strategies.trend_indicator import TrendIndicatorStrategy
from botcore.signals.strategies.rsi_stochastic_divergence import RsiStochasticDivergenceStrategy

__all__ = [
    'PsarMacdStrategy',
    'TrendIndicatorStrategy',
    'RsiStochasticDivergenceStrategy',
]
