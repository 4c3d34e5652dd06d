#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StrategyTemplateEngine - Price Distance and Order Sizing

- Pip size resolution per instrument
- Raw price delta <-> pip distance conversion
- Risk-based order volume: balance * risk% / (stop pips * pip value per unit)

Assumes the account currency equals the quote currency of the instrument.
"""

import math
import re
from typing import Optional

# Instruments quoted with two decimals of precision per pip
TWO_DECIMAL_PIP_PREFIXES = ('XAU', 'XAG', 'WTICO', 'BRENT')

_PAIR_RE = re.compile(r'^([A-Z0-9]{3,})[_/]?([A-Z0-9]{3})$')


def normalize_instrument(raw: str) -> str:
    """
    Normalize an instrument code to BASE_QUOTE form.

    Examples:
    - eurusd -> EUR_USD
    - eur/usd -> EUR_USD
    - XAU_USD -> XAU_USD
    """
    if not raw or not raw.strip():
        raise ValueError("Instrument is required.")

    normalized = raw.strip().upper().replace('-', '_').replace(' ', '')
    match = _PAIR_RE.match(normalized)
    if not match:
        raise ValueError(f"Invalid instrument format: {raw}")
    return f"{match.group(1)}_{match.group(2)}"


def get_pip_size(instrument: str) -> float:
    """Pip size of an instrument: 0.01 for JPY quotes and metals/energy, else 0.0001."""
    inst = normalize_instrument(instrument)
    if inst.endswith('_JPY') or inst.startswith(TWO_DECIMAL_PIP_PREFIXES):
        return 0.01
    return 0.0001


class PipSizer:
    """
    Price-distance conversion and risk sizing for one instrument.

    Attributes:
        instrument: Normalized instrument code
        pip_size: Price change of one pip
        volume_step: Order volume granularity in units
        min_volume: Smallest order volume in units
    """

    def __init__(
        self,
        instrument: str,
        pip_size: Optional[float] = None,
        volume_step: float = 1000,
        min_volume: float = 1000
    ):
        self.instrument = normalize_instrument(instrument)
        self.pip_size = float(pip_size) if pip_size is not None else get_pip_size(self.instrument)
        if self.pip_size <= 0:
            raise ValueError("pip_size must be positive")
        if volume_step <= 0 or min_volume <= 0:
            raise ValueError("volume_step and min_volume must be positive")
        self.volume_step = float(volume_step)
        self.min_volume = float(min_volume)

    def to_pips(self, price_delta: float) -> float:
        """Convert a raw price delta to pips."""
        return price_delta / self.pip_size

    def to_price(self, pips: float) -> float:
        """Convert a pip distance to a raw price delta."""
        return pips * self.pip_size

    def volume(self, risk_percent: float, balance: float, stop_loss_pips: float) -> float:
        """
        Order volume risking ``risk_percent`` of ``balance`` over the stop distance.

        Args:
            risk_percent: Risk per trade in percent (1.0 = 1% of balance)
            balance: Current account balance
            stop_loss_pips: Stop-loss distance in pips

        Returns:
            Volume in units, floored to volume_step and at least min_volume

        Raises:
            ValueError: non-positive stop distance or balance, negative risk
        """
        if stop_loss_pips is None or not math.isfinite(stop_loss_pips) or stop_loss_pips <= 0:
            raise ValueError(f"Stop-loss distance must be positive, got {stop_loss_pips}")
        if balance <= 0:
            raise ValueError(f"Balance must be positive, got {balance}")
        if risk_percent < 0:
            raise ValueError(f"Risk must be non-negative, got {risk_percent}")

        risk_amount = balance * risk_percent / 100.0
        raw_units = risk_amount / (stop_loss_pips * self.pip_size)
        units = math.floor(raw_units / self.volume_step + 1e-9) * self.volume_step
        return max(units, self.min_volume)

    def __repr__(self) -> str:
        return f"PipSizer(instrument={self.instrument}, pip_size={self.pip_size})"
