#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StrategyTemplateEngine - Indicator Feed

Read access to precomputed price and indicator series, addressed by a
non-negative "bars back" offset from the current bar.

Indicator values are produced by an external analytics provider; this module
only defines how strategies read them.

Input format (DataFrameIndicatorFeed):
    DataFrame with one row per bar and columns:
    - time: bar open time (optional, used as index when present)
    - open / high / low / close: prices
    - any number of named indicator columns (ema, psar, macd_hist, atr, ...)
"""

import math
from abc import ABC, abstractmethod
from typing import Iterator, Optional

import numpy as np
import pandas as pd


class IndicatorFeed(ABC):
    """Abstract bars-back addressable series access."""

    @abstractmethod
    def value(self, name: str, bars_back: int = 0) -> float:
        """
        Value of series ``name`` ``bars_back`` bars before the current bar.

        Offsets reaching before the first bar return NaN, so comparisons
        against missing history evaluate to False.
        """

    @abstractmethod
    def has_series(self, name: str) -> bool:
        """Whether the feed carries a series with this name."""

    @property
    @abstractmethod
    def bar_count(self) -> int:
        """Number of bars available up to and including the current one."""

    def is_rising(self, name: str) -> bool:
        return self.value(name, 0) > self.value(name, 1)

    def is_falling(self, name: str) -> bool:
        return self.value(name, 0) < self.value(name, 1)

    def has_crossed_above(self, name: str, other: str, period: int = 1) -> bool:
        """``name`` crossed above ``other`` within the last ``period`` bars."""
        for i in range(period):
            if (self.value(name, i) > self.value(other, i)
                    and self.value(name, i + 1) <= self.value(other, i + 1)):
                return True
        return False

    def has_crossed_below(self, name: str, other: str, period: int = 1) -> bool:
        """``name`` crossed below ``other`` within the last ``period`` bars."""
        for i in range(period):
            if (self.value(name, i) < self.value(other, i)
                    and self.value(name, i + 1) >= self.value(other, i + 1)):
                return True
        return False


class DataFrameIndicatorFeed(IndicatorFeed):
    """
    Feed backed by a pandas DataFrame with a movable cursor.

    The cursor marks the current (most recent closed) bar; rows after it are
    invisible to strategies.
    """

    def __init__(self, data: pd.DataFrame, cursor: Optional[int] = None):
        if data is None or data.empty:
            raise ValueError("Indicator feed requires a non-empty DataFrame")

        df = data.copy()
        if 'time' in df.columns:
            df['time'] = pd.to_datetime(df['time'])
            df = df.sort_values('time').set_index('time')

        self._data = df
        self._values = {
            col: pd.to_numeric(df[col], errors='coerce').to_numpy(dtype=float)
            for col in df.columns
        }
        self._cursor = len(df) - 1 if cursor is None else cursor
        self._check_cursor(self._cursor)

    def _check_cursor(self, cursor: int) -> None:
        if cursor < 0 or cursor >= len(self._data):
            raise IndexError(f"Cursor {cursor} outside [0, {len(self._data)})")

    @property
    def data(self) -> pd.DataFrame:
        return self._data

    @property
    def cursor(self) -> int:
        return self._cursor

    def set_cursor(self, cursor: int) -> None:
        self._check_cursor(cursor)
        self._cursor = cursor

    def iter_bars(self, start: int = 0) -> Iterator[int]:
        """Move the cursor through every bar from ``start``, yielding the position."""
        for position in range(start, len(self._data)):
            self._cursor = position
            yield position

    @property
    def bar_count(self) -> int:
        return self._cursor + 1

    @property
    def current_time(self) -> Optional[pd.Timestamp]:
        index_value = self._data.index[self._cursor]
        return index_value if isinstance(index_value, pd.Timestamp) else None

    def has_series(self, name: str) -> bool:
        return name in self._values

    def value(self, name: str, bars_back: int = 0) -> float:
        if name not in self._values:
            raise KeyError(f"Series '{name}' not in feed. Available: {sorted(self._values)}")
        if bars_back < 0:
            raise ValueError("bars_back must be non-negative")

        position = self._cursor - bars_back
        if position < 0:
            return math.nan
        return float(self._values[name][position])

    def series(self, name: str, length: int) -> np.ndarray:
        """Last ``length`` values of a series, oldest first, NaN-padded."""
        values = np.array([self.value(name, i) for i in range(length)])
        return values[::-1]

    def __repr__(self) -> str:
        return f"DataFrameIndicatorFeed(bars={len(self._data)}, cursor={self._cursor})"
