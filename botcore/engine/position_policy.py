#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StrategyTemplateEngine - Position Policy

Decides, from the current direction and the strategy's open positions, whether
a new order may be opened and which positions must be closed first:
- ONE_POSITION: open only when flat
- MULTI_POSITION: open while long + short count <= max_open_positions
- CLOSE_EXISTING_ON_SIGNAL: close the opposing side, then open only when the
  same side already holds a position
"""

import sys
from typing import Sequence

from botcore.engine.models import Admission, Position, PositionMode
from botcore.exceptions import ConfigurationError
from botcore.signals.base import TradeDirection

UNLIMITED_POSITIONS = sys.maxsize


def admit(
    mode: PositionMode,
    direction: TradeDirection,
    open_longs: Sequence[Position],
    open_shorts: Sequence[Position],
    max_open_positions: int = UNLIMITED_POSITIONS
) -> Admission:
    """
    Run the position policy.

    Args:
        mode: Position-management mode
        direction: Direction of the order about to be placed
        open_longs: Open long positions of this strategy/instrument
        open_shorts: Open short positions of this strategy/instrument
        max_open_positions: Cap used by MULTI_POSITION

    Returns:
        Admission(allowed, to_close)

    Raises:
        ConfigurationError: unknown mode or direction
    """
    if mode is PositionMode.ONE_POSITION:
        return Admission(allowed=not open_longs and not open_shorts)

    if mode is PositionMode.MULTI_POSITION:
        return Admission(allowed=len(open_longs) + len(open_shorts) <= max_open_positions)

    if mode is PositionMode.CLOSE_EXISTING_ON_SIGNAL:
        # Same-side non-empty admits the order; kept as in the production bots
        if direction is TradeDirection.SELL:
            return Admission(allowed=len(open_shorts) > 0, to_close=list(open_longs))
        if direction is TradeDirection.BUY:
            return Admission(allowed=len(open_longs) > 0, to_close=list(open_shorts))
        raise ConfigurationError(f"Invalid direction for position policy: {direction!r}")

    raise ConfigurationError(f"Invalid position mode: {mode!r}")


class PositionPolicy:
    """Position policy bound to an engine's fixed mode and cap."""

    def __init__(
        self,
        mode: PositionMode = PositionMode.ONE_POSITION,
        max_open_positions: int = UNLIMITED_POSITIONS
    ):
        if not isinstance(mode, PositionMode):
            mode = PositionMode.from_string(mode)
        if max_open_positions < 0:
            raise ConfigurationError("max_open_positions must be non-negative")
        self.mode = mode
        self.max_open_positions = max_open_positions

    def admit(
        self,
        direction: TradeDirection,
        open_longs: Sequence[Position],
        open_shorts: Sequence[Position]
    ) -> Admission:
        return admit(self.mode, direction, open_longs, open_shorts, self.max_open_positions)

    def __repr__(self) -> str:
        return f"PositionPolicy(mode={self.mode.value}, max_open_positions={self.max_open_positions})"
