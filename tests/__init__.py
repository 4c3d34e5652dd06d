#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StrategyTemplateEngine - Test Suite

Test categories:
- unit: run detector, balance tracker, position policy, sizing, broker,
  fitness, strategies, configuration
- regression: end-to-end decision cycles and replays
"""
