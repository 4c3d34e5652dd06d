#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StrategyTemplateEngine - Core Module

Main components:
- signals: Signal primitives and concrete strategy behaviours
- engine: Per-bar decision engine, position policy, balance trend tracking
- data: Indicator feed access
- processors: Configuration loading
- metrics: Fitness scoring and decision logging
"""

__version__ = "1.0.0"
