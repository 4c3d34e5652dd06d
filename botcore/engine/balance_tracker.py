#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StrategyTemplateEngine - Balance Trend Tracker

Equity-curve momentum based risk scaling:
- Append-only history of account balances, one sample per closed position
- Trailing average over a long window as the reference baseline
- Share of recent samples at or above that baseline drives the risk multiplier
"""

import logging
from typing import Iterable, List, Optional

import numpy as np

from botcore.engine.models import RiskParameters

logger = logging.getLogger(__name__)


class BalanceTrendTracker:
    """
    Trailing balance history and adaptive risk multiplier.

    A strategy whose recent balances sit at or above their own trailing mean is
    allowed proportionally larger risk, up to max_risk; one trending below is
    throttled down to min_risk. Until enough samples exist the multiplier is 1.0.
    """

    def __init__(self, max_samples: Optional[int] = None):
        """
        Args:
            max_samples: Optional cap on stored samples. Only the last N samples
                are ever read, so a cap at least as large as the largest
                configured window does not change any result. None = unbounded.
        """
        if max_samples is not None and (
            isinstance(max_samples, bool) or not isinstance(max_samples, int) or max_samples < 1
        ):
            raise ValueError("max_samples must be a positive integer")
        self.max_samples = max_samples
        self._samples: List[float] = []

    def record_balance(self, value: float) -> None:
        """Append one balance sample."""
        self._samples.append(float(value))

        if self.max_samples is not None and len(self._samples) > self.max_samples:
            del self._samples[:-self.max_samples]

    def seed(self, balances: Iterable[float]) -> None:
        """Preload samples, e.g. balances of trades closed before start."""
        for value in balances:
            self.record_balance(value)

    @property
    def samples(self) -> List[float]:
        return list(self._samples)

    def __len__(self) -> int:
        return len(self._samples)

    def average_over_window(self, n: int) -> Optional[float]:
        """
        Mean of the last ``n`` samples.

        Returns:
            None when fewer than ``n`` samples have been recorded
        """
        if n < 1 or len(self._samples) < n:
            return None
        return float(np.mean(self._samples[-n:]))

    def count_above_average(self, n_check: int, n_avg: int) -> Optional[int]:
        """
        Count of the last ``n_check`` samples at or above the ``n_avg`` average.

        Returns:
            int in [0, n_check], or None when the average is unavailable
        """
        avg = self.average_over_window(n_avg)
        if avg is None:
            return None
        recent = self._samples[-n_check:] if n_check > 0 else []
        return sum(1 for value in recent if value >= avg)

    def risk_multiplier(self, params: RiskParameters) -> float:
        """
        Risk multiplier for the next order.

        Returns:
            1.0 while history is insufficient, otherwise
            clamp(risk_factor * over / n_check, min_risk, max_risk)
        """
        over = self.count_above_average(params.balance_check_window, params.balance_avg_window)
        if over is None:
            return 1.0

        raw = params.risk_factor * over / params.balance_check_window
        multiplier = max(params.min_risk, min(raw, params.max_risk))
        logger.debug(
            "Risk multiplier %.4f (over=%d/%d, raw=%.4f)",
            multiplier, over, params.balance_check_window, raw
        )
        return multiplier

    def __repr__(self) -> str:
        return f"BalanceTrendTracker(samples={len(self._samples)}, max_samples={self.max_samples})"
