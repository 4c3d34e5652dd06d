#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StrategyTemplateEngine - Exceptions
"""


class ConfigurationError(ValueError):
    """Unrecoverable configuration problem (bad mode, out-of-range parameter)."""


class BrokerError(RuntimeError):
    """Raised by a broker backend when an order or closure is rejected."""
