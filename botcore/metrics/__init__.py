#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StrategyTemplateEngine - Metrics Module

Fitness scoring and decision logging:
- FitnessEvaluator: regression-based equity curve score
- DecisionLogger: per-cycle decision records
- FitnessVisualizer: balance curve and fitted line chart
"""

from botcore.metrics.fitness import (
    FitnessEvaluator,
    FitnessResult,
    RegressionFit,
    least_squares_regression,
    extract_balances,
    fitness,
)

from botcore.metrics.decision_logger import (
    DecisionLogger,
    CycleLog,
)

__all__ = [
    # Fitness
    'FitnessEvaluator',
    'FitnessResult',
    'RegressionFit',
    'least_squares_regression',
    'extract_balances',
    'fitness',
    # Logging
    'DecisionLogger',
    'CycleLog',
]
