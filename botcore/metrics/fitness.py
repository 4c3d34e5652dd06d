"""
Fitness Evaluation Module

Scores a run's balance history for parameter optimization:
- Normalization to returns relative to the first balance
- Closed-form least-squares line over the normalized curve
- Extrapolated growth, inverse residual dispersion, log sample count
"""

import math
from dataclasses import dataclass
from typing import Any, Iterable, List, Sequence

import numpy as np
import pandas as pd

# Scores below this many samples are rejected outright
MIN_HISTORY = 10
INSUFFICIENT_HISTORY_SCORE = -100.0

# Residual below which a curve is treated as perfectly linear
DEV_EPSILON = 1e-9
# Cap on the inverse-deviation reward
MAX_INVERSE_DEV = 1e7


@dataclass
class RegressionFit:
    """
    Least-squares line y = slope * x + intercept.

    Attributes:
        slope: Fitted slope
        intercept: Fitted intercept
    """
    slope: float
    intercept: float

    def predict(self, x: float) -> float:
        return self.slope * x + self.intercept


@dataclass
class FitnessResult:
    """
    Fitness breakdown.

    Attributes:
        score: Final fitness value
        n: Number of balance samples
        fit: Regression over the normalized curve (None when rejected)
        extrapolated: Fitted line evaluated at 2n
        dev: Root-mean-square residual
        dev_term: Inverse-deviation factor after clamping
    """
    score: float
    n: int
    fit: RegressionFit = None
    extrapolated: float = 0.0
    dev: float = 0.0
    dev_term: float = 0.0

    @property
    def accepted(self) -> bool:
        return self.fit is not None


def least_squares_regression(data: Sequence[float]) -> RegressionFit:
    """
    Closed-form ordinary least squares of ``data`` against its indices 0..n-1.

    slope = (n * sum(xy) - sum(x) * sum(y)) / (n * sum(x^2) - sum(x)^2)
    intercept = (sum(y) - slope * sum(x)) / n

    Args:
        data: y values, at least two

    Returns:
        RegressionFit
    """
    y = np.asarray(data, dtype=float)
    n = len(y)
    if n < 2:
        raise ValueError("Regression requires at least two points")

    x = np.arange(n, dtype=float)
    x_sum = x.sum()
    y_sum = y.sum()
    x_squared_sum = (x * x).sum()
    xy_sum = (x * y).sum()

    slope = (n * xy_sum - x_sum * y_sum) / (n * x_squared_sum - x_sum ** 2)
    intercept = (y_sum - slope * x_sum) / n
    return RegressionFit(slope=float(slope), intercept=float(intercept))


def extract_balances(history: Any) -> List[float]:
    """
    Pull balance values out of the supported history shapes.

    Accepts a DataFrame with a 'balance' column, a Series, or an iterable of
    numbers, mappings with a 'balance' key, or objects with a ``balance``
    attribute.
    """
    if isinstance(history, pd.DataFrame):
        if 'balance' not in history.columns:
            raise ValueError("History DataFrame requires a 'balance' column")
        return history['balance'].astype(float).tolist()
    if isinstance(history, pd.Series):
        return history.astype(float).tolist()

    balances = []
    for item in history:
        if isinstance(item, dict):
            balances.append(float(item['balance']))
        elif hasattr(item, 'balance'):
            balances.append(float(item.balance))
        else:
            balances.append(float(item))
    return balances


class FitnessEvaluator:
    """
    Equity-curve fitness function.

    score = (2n * slope + intercept) * devTerm * ln(n)

    Rewards extrapolated growth, a tight fit to a straight line and longer
    track records. Histories shorter than ``min_history``, or starting from a
    non-positive balance, score -100.
    """

    def __init__(
        self,
        min_history: int = MIN_HISTORY,
        insufficient_score: float = INSUFFICIENT_HISTORY_SCORE
    ):
        self.min_history = min_history
        self.insufficient_score = insufficient_score

    def evaluate(self, history: Any) -> FitnessResult:
        """Full fitness breakdown for a balance history."""
        balances = extract_balances(history)
        n = len(balances)
        if n < self.min_history:
            return FitnessResult(score=self.insufficient_score, n=n)

        balance0 = balances[0]
        if not np.isfinite(balance0) or balance0 <= 0:
            # No return can be measured against a non-positive starting balance
            return FitnessResult(score=self.insufficient_score, n=n)

        normalized = np.asarray(balances, dtype=float) / balance0 - 1

        fit = least_squares_regression(normalized)
        extrapolated = n * 2 * fit.slope + fit.intercept

        fitted = fit.slope * np.arange(n, dtype=float) + fit.intercept
        dev = float(np.sqrt(np.mean((fitted - normalized) ** 2)))

        dev_term = dev
        if abs(dev_term) < DEV_EPSILON:
            dev_term = 1.0
        dev_term = 1.0 / dev_term
        if dev_term > MAX_INVERSE_DEV:
            dev_term = 1.0

        score = extrapolated * dev_term * math.log(n)
        return FitnessResult(
            score=float(score),
            n=n,
            fit=fit,
            extrapolated=float(extrapolated),
            dev=dev,
            dev_term=dev_term,
        )

    def __call__(self, history: Any) -> float:
        return self.evaluate(history).score


def fitness(history: Iterable[Any]) -> float:
    """Fitness score of a balance history ([{time, balance}, ...])."""
    return FitnessEvaluator().evaluate(history).score
