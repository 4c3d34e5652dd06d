#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StrategyTemplateEngine - Data Module

Bars-back access to externally computed price and indicator series.
"""

from botcore.data.indicator_feed import (
    IndicatorFeed,
    DataFrameIndicatorFeed,
)

__all__ = [
    'IndicatorFeed',
    'DataFrameIndicatorFeed',
]
