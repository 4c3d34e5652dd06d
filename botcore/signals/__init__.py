#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StrategyTemplateEngine - Signals Module

Signal primitives and strategy behaviours (decoupled from the engine).
"""

from botcore.signals.base import (
    RunSignal,
    TradeDirection,
    TradeDecision,
    Parameter,
    StrategyContext,
    StrategyBehavior,
    trade_type_from_value,
)

from botcore.signals.run_detector import (
    RunDetector,
    classify,
)

from botcore.signals.registry import (
    StrategyRegistry,
    get_registry,
    create_strategy,
    register,
)

from botcore.signals.strategies import (
    PsarMacdStrategy,
    TrendIndicatorStrategy,
    RsiStochasticDivergenceStrategy,
)

__all__ = [
    # Base
    'RunSignal',
    'TradeDirection',
    'TradeDecision',
    'Parameter',
    'StrategyContext',
    'StrategyBehavior',
    'trade_type_from_value',
    # Run detection
    'RunDetector',
    'classify',
    # Registry
    'StrategyRegistry',
    'get_registry',
    'create_strategy',
    'register',
    # Strategies
    'PsarMacdStrategy',
    'TrendIndicatorStrategy',
    'RsiStochasticDivergenceStrategy',
]
