#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StrategyTemplateEngine - Strategy Behaviour Base Classes

Provides the shared vocabulary of a decision cycle:
- RunSignal: per-bar outcome (BUY / SELL / NO_SIGNAL)
- TradeDirection: direction of a position or order
- TradeDecision: value threaded through one cycle (direction, stop, risk, tp factor)
- Parameter: bounded, typed configuration parameter
- StrategyBehavior: abstract capability set {signal, stop_loss_distance, filter}

Design Goals:
1. Concrete strategies never touch the broker, they only describe intent
2. The engine owns the control flow, behaviours only fill in the hooks
3. Parameters are validated once, at construction, and never mutated
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional, TYPE_CHECKING

from botcore.exceptions import ConfigurationError

if TYPE_CHECKING:
    from botcore.data.indicator_feed import IndicatorFeed
    from botcore.engine.balance_tracker import BalanceTrendTracker
    from botcore.engine.models import RiskParameters
    from botcore.engine.sizing import PipSizer


class TradeDirection(Enum):
    """Direction of an order or an open position."""
    BUY = 'buy'
    SELL = 'sell'

    def opposite(self) -> 'TradeDirection':
        return TradeDirection.SELL if self is TradeDirection.BUY else TradeDirection.BUY


class RunSignal(Enum):
    """Three-valued per-bar signal."""
    BUY = 'buy'
    SELL = 'sell'
    NO_SIGNAL = 'no_signal'

    @property
    def direction(self) -> Optional[TradeDirection]:
        """TradeDirection for BUY/SELL, None for NO_SIGNAL."""
        if self is RunSignal.BUY:
            return TradeDirection.BUY
        if self is RunSignal.SELL:
            return TradeDirection.SELL
        return None


def trade_type_from_value(signal: float) -> RunSignal:
    """
    Map a numeric vote to a RunSignal.

    Strategies combine their buy/sell conditions as (+1 if buy) + (-1 if sell),
    so simultaneous buy and sell cancel out to NO_SIGNAL.
    """
    if signal > 0:
        return RunSignal.BUY
    if signal < 0:
        return RunSignal.SELL
    return RunSignal.NO_SIGNAL


@dataclass(frozen=True)
class TradeDecision:
    """
    Transient decision threaded through a single cycle.

    Attributes:
        direction: Direction of the order about to be placed
        stop_loss_distance: Stop distance in pips
        risk_fraction: Risk per trade, in percent of balance
        take_profit_factor: Take profit distance as a multiple of the stop distance
    """
    direction: TradeDirection
    stop_loss_distance: float
    risk_fraction: float
    take_profit_factor: float = 1.0

    @property
    def take_profit_distance(self) -> float:
        return self.stop_loss_distance * self.take_profit_factor

    def flipped(self) -> 'TradeDecision':
        return replace(self, direction=self.direction.opposite())

    def with_changes(self, **changes: Any) -> 'TradeDecision':
        return replace(self, **changes)


@dataclass(frozen=True)
class Parameter:
    """
    Typed, bounded strategy parameter.

    The type of ``default`` is the parameter type; incoming values are cast to it
    and checked against the optional bounds.
    """
    default: Any
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    group: str = ''
    description: str = ''

    def validate(self, name: str, value: Any) -> Any:
        """Cast and bound-check a value, raising ConfigurationError when invalid."""
        kind = type(self.default)
        try:
            if kind is bool:
                if isinstance(value, str):
                    lowered = value.strip().lower()
                    if lowered not in ('true', 'false', '1', '0', 'yes', 'no'):
                        raise ValueError(value)
                    cast = lowered in ('true', '1', 'yes')
                else:
                    cast = bool(value)
            elif kind is int:
                if isinstance(value, float) and not value.is_integer():
                    raise ValueError(value)
                cast = int(value)
            else:
                cast = kind(value)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(
                f"Parameter '{name}' expects {kind.__name__}, got {value!r}"
            ) from exc

        if kind is not bool:
            if self.min_value is not None and cast < self.min_value:
                raise ConfigurationError(
                    f"Parameter '{name}'={cast} is below minimum {self.min_value}"
                )
            if self.max_value is not None and cast > self.max_value:
                raise ConfigurationError(
                    f"Parameter '{name}'={cast} is above maximum {self.max_value}"
                )
        return cast


@dataclass
class StrategyContext:
    """
    Collaborators a behaviour may read during a cycle.

    Attributes:
        feed: Indicator/price feed addressed by bars-back offset
        sizer: Price-distance conversion for the traded instrument
        tracker: Balance trend tracker of the owning engine
        risk_params: Adaptive risk parameters, None disables risk scaling
    """
    feed: 'IndicatorFeed'
    sizer: 'PipSizer'
    tracker: Optional['BalanceTrendTracker'] = None
    risk_params: Optional['RiskParameters'] = None


class StrategyBehavior(ABC):
    """
    Abstract base class for every concrete strategy.

    Subclasses declare ``parameters`` (name -> Parameter) and implement the three
    hooks. The engine holds a reference to a behaviour instance and drives it once
    per bar.

    Attributes:
        name (str): Strategy name, also used as the default order label
        parameters (Dict[str, Parameter]): Declared parameter set
        _params (Dict): Resolved parameter values
    """

    parameters: Dict[str, Parameter] = {}

    def __init__(self, name: Optional[str] = None, **params: Any):
        self.name = name or self.__class__.__name__
        self._params = self.resolve_params(params)
        for key, value in self._params.items():
            setattr(self, key, value)

    @classmethod
    def resolve_params(cls, overrides: Dict[str, Any]) -> Dict[str, Any]:
        """Merge overrides onto declared defaults, validating every value."""
        unknown = sorted(set(overrides) - set(cls.parameters))
        if unknown:
            raise ConfigurationError(
                f"Unknown parameters for {cls.__name__}: {unknown}"
            )

        resolved = {}
        for key, spec in cls.parameters.items():
            value = overrides.get(key, spec.default)
            resolved[key] = spec.validate(key, value)
        return resolved

    @abstractmethod
    def signal(self, context: StrategyContext) -> RunSignal:
        """Evaluate the entry rule on the most recent closed bar."""

    @abstractmethod
    def stop_loss_distance(self, context: StrategyContext) -> float:
        """Stop-loss distance in pips for an order placed on this bar."""

    def filter(self, decision: TradeDecision, context: StrategyContext) -> TradeDecision:
        """Strategy-specific adjustment hook. Pass-through by default."""
        return decision

    def scale_risk(self, decision: TradeDecision, context: StrategyContext) -> TradeDecision:
        """Multiply the decision risk by the balance-trend multiplier, if configured."""
        if context.tracker is None or context.risk_params is None:
            return decision
        multiplier = context.tracker.risk_multiplier(context.risk_params)
        return decision.with_changes(risk_fraction=decision.risk_fraction * multiplier)

    def get_params(self) -> Dict[str, Any]:
        return self._params.copy()

    def __repr__(self) -> str:
        params_str = ', '.join(f'{k}={v}' for k, v in self._params.items())
        return f"{self.__class__.__name__}({params_str})"
