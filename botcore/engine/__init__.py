#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StrategyTemplateEngine - Engine Module

Decision cycle and its collaborators:
- StrategyEngine: per-bar signal -> filter -> policy -> size -> submit
- BalanceTrendTracker: balance history and adaptive risk multiplier
- PositionPolicy: admission of new orders against open positions
- PipSizer: pip conversion and risk-based volume
- Broker / PaperBroker: order execution boundary

The replay harness lives in botcore.engine.backtest_runner and is imported
from there directly.
"""

# Models
from botcore.engine.models import (
    PositionMode,
    RiskParameters,
    Position,
    ClosedTrade,
    Admission,
    OrderResult,
)

# Collaborators
from botcore.engine.balance_tracker import BalanceTrendTracker
from botcore.engine.position_policy import (
    PositionPolicy,
    admit,
    UNLIMITED_POSITIONS,
)
from botcore.engine.sizing import (
    PipSizer,
    get_pip_size,
    normalize_instrument,
)
from botcore.engine.broker import Broker, PaperBroker

# Engine
from botcore.engine.strategy_engine import StrategyEngine

__all__ = [
    # Models
    'PositionMode',
    'RiskParameters',
    'Position',
    'ClosedTrade',
    'Admission',
    'OrderResult',
    # Collaborators
    'BalanceTrendTracker',
    'PositionPolicy',
    'admit',
    'UNLIMITED_POSITIONS',
    'PipSizer',
    'get_pip_size',
    'normalize_instrument',
    'Broker',
    'PaperBroker',
    # Engine
    'StrategyEngine',
]
