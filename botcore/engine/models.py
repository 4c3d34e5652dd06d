#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StrategyTemplateEngine - Engine Data Models

- PositionMode: position-management policy selector
- RiskParameters: adaptive risk sizing configuration
- Position / ClosedTrade: broker-side records referenced by the engine
- Admission: outcome of the position policy
- OrderResult: outcome of one decision cycle that reached order submission
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import pandas as pd

from botcore.exceptions import ConfigurationError
from botcore.signals.base import TradeDirection


def is_integer(value: Any) -> bool:
    """True for int values; bool is rejected even though it subclasses int."""
    return isinstance(value, int) and not isinstance(value, bool)


class PositionMode(Enum):
    """
    Position-management policy, fixed for the life of an engine.

    - ONE_POSITION: open only when flat
    - MULTI_POSITION: open while the open count stays within max_open_positions
    - CLOSE_EXISTING_ON_SIGNAL: close the opposing side on every signal
    """
    ONE_POSITION = 'one_position'
    MULTI_POSITION = 'multi_position'
    CLOSE_EXISTING_ON_SIGNAL = 'close_existing_on_signal'

    @classmethod
    def from_string(cls, mode_str: str) -> 'PositionMode':
        """Parse mode from string."""
        mode_map = {m.value: m for m in cls}
        key = str(mode_str).strip().lower()
        if key in mode_map:
            return mode_map[key]
        raise ConfigurationError(
            f"Unknown position mode: {mode_str}. Valid modes: {list(mode_map.keys())}"
        )


@dataclass(frozen=True)
class RiskParameters:
    """
    Adaptive risk sizing parameters.

    Attributes:
        min_risk: Lower clamp of the risk multiplier
        max_risk: Upper clamp of the risk multiplier
        risk_factor: Scale applied to the above-average share
        balance_avg_window: Trailing window of the reference balance average
        balance_check_window: Trailing window counted against that average
    """
    min_risk: float = 0.1
    max_risk: float = 1.0
    risk_factor: float = 2.0
    balance_avg_window: int = 10
    balance_check_window: int = 5

    def __post_init__(self):
        if self.min_risk <= 0 or self.max_risk <= 0 or self.risk_factor <= 0:
            raise ConfigurationError("min_risk, max_risk and risk_factor must be positive")
        if self.min_risk > self.max_risk:
            raise ConfigurationError(
                f"min_risk ({self.min_risk}) must not exceed max_risk ({self.max_risk})"
            )
        for name in ('balance_avg_window', 'balance_check_window'):
            value = getattr(self, name)
            if not is_integer(value):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        if self.balance_avg_window < 1 or self.balance_check_window < 1:
            raise ConfigurationError("Balance windows must be positive integers")
        if self.balance_check_window > self.balance_avg_window:
            raise ConfigurationError(
                f"balance_check_window ({self.balance_check_window}) must not exceed "
                f"balance_avg_window ({self.balance_avg_window})"
            )

    @property
    def largest_window(self) -> int:
        return max(self.balance_avg_window, self.balance_check_window)

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'RiskParameters':
        known = cls.__dataclass_fields__.keys()
        unknown = sorted(set(config) - set(known))
        if unknown:
            raise ConfigurationError(f"Unknown risk parameters: {unknown}")
        return cls(**config)


@dataclass
class Position:
    """Open position as reported by the broker."""
    id: int
    direction: TradeDirection
    label: str
    instrument: str
    volume: float
    entry_price: float
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    entry_time: Optional[pd.Timestamp] = None


@dataclass
class ClosedTrade:
    """Closed position with the account balance right after closure."""
    position_id: int
    direction: TradeDirection
    label: str
    instrument: str
    volume: float
    entry_price: float
    exit_price: float
    pnl: float
    balance: float
    entry_time: Optional[pd.Timestamp] = None
    exit_time: Optional[pd.Timestamp] = None
    reason: str = 'manual'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'position_id': self.position_id,
            'direction': self.direction.value,
            'label': self.label,
            'instrument': self.instrument,
            'volume': self.volume,
            'entry_price': self.entry_price,
            'exit_price': self.exit_price,
            'pnl': self.pnl,
            'balance': self.balance,
            'entry_time': self.entry_time,
            'exit_time': self.exit_time,
            'reason': self.reason,
        }


@dataclass
class Admission:
    """Position policy outcome: whether to open, and what to close first."""
    allowed: bool
    to_close: List[Position] = field(default_factory=list)


@dataclass
class OrderResult:
    """
    Outcome of a cycle that reached order submission.

    ``position`` is None when the broker rejected the order; ``error`` then
    carries the rejection reason.
    """
    direction: TradeDirection
    volume: float
    stop_loss_distance: float
    take_profit_distance: float
    position: Optional[Position] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.position is not None

    @property
    def position_id(self) -> Optional[int]:
        return self.position.id if self.position is not None else None
