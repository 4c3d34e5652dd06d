#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StrategyTemplateEngine - Processors Module

Configuration parsing:
- StrategyConfigLoader: YAML engine/strategy/broker configuration
- EngineSettings: validated engine settings
"""

from botcore.processors.config_loader import (
    StrategyConfigLoader,
    EngineSettings,
    load_config,
)

__all__ = [
    'StrategyConfigLoader',
    'EngineSettings',
    'load_config',
]
