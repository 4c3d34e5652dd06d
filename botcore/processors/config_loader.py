#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StrategyTemplateEngine - Configuration Loader

YAML configuration for one engine instance:
- strategy: registered strategy name and parameter overrides
- engine: label, instrument, position mode, reverse flag, risk settings
- broker: paper broker settings used by replays
- logging: decision log settings

Resolution priority: file `engine` section > strategy engine defaults > built-in defaults.
Every value is validated once at load time; configuration is immutable afterwards.
"""

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from botcore.engine.models import PositionMode, RiskParameters, is_integer
from botcore.engine.position_policy import UNLIMITED_POSITIONS
from botcore.exceptions import ConfigurationError
from botcore.signals.base import StrategyBehavior
from botcore.signals.registry import get_registry

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "default_strategy.yaml"

# Take profit never sits closer than the stop loss
MIN_TP_FACTOR = 1.0

ENGINE_KEYS = {
    'label', 'instrument', 'position_mode', 'max_open_positions', 'reverse',
    'risk', 'tp_factor', 'risk_params', 'balance_history_cap', 'close_on_stop',
}


@dataclass(frozen=True)
class EngineSettings:
    """Validated engine configuration."""
    label: str
    instrument: str
    position_mode: PositionMode = PositionMode.ONE_POSITION
    max_open_positions: int = UNLIMITED_POSITIONS
    reverse: bool = False
    risk: float = 1.0
    tp_factor: float = 1.0
    risk_params: Optional[RiskParameters] = None
    balance_history_cap: Optional[int] = None
    close_on_stop: bool = False

    def __post_init__(self):
        if self.risk < 0:
            raise ConfigurationError(f"risk must be non-negative, got {self.risk}")
        if self.tp_factor < MIN_TP_FACTOR:
            raise ConfigurationError(
                f"tp_factor must be at least {MIN_TP_FACTOR}, got {self.tp_factor}"
            )
        if self.max_open_positions < 0:
            raise ConfigurationError("max_open_positions must be non-negative")
        if self.balance_history_cap is not None:
            if not is_integer(self.balance_history_cap):
                raise ConfigurationError(
                    f"balance_history_cap must be an integer, got {self.balance_history_cap!r}"
                )
            largest = self.risk_params.largest_window if self.risk_params else 1
            if self.balance_history_cap < largest:
                raise ConfigurationError(
                    f"balance_history_cap ({self.balance_history_cap}) is smaller than "
                    f"the largest balance window ({largest})"
                )

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'EngineSettings':
        unknown = sorted(set(config) - ENGINE_KEYS)
        if unknown:
            raise ConfigurationError(f"Unknown engine settings: {unknown}")

        if not config.get('label'):
            raise ConfigurationError("engine.label is required")
        if not config.get('instrument'):
            raise ConfigurationError("engine.instrument is required")

        risk_params = config.get('risk_params')
        max_open = config.get('max_open_positions')
        try:
            return cls(
                label=str(config['label']),
                instrument=str(config['instrument']),
                position_mode=PositionMode.from_string(config.get('position_mode', 'one_position')),
                max_open_positions=UNLIMITED_POSITIONS if max_open is None else int(max_open),
                reverse=bool(config.get('reverse', False)),
                risk=float(config.get('risk', 1.0)),
                tp_factor=float(config.get('tp_factor', 1.0)),
                risk_params=RiskParameters.from_dict(risk_params) if risk_params else None,
                balance_history_cap=config.get('balance_history_cap'),
                close_on_stop=bool(config.get('close_on_stop', False)),
            )
        except (TypeError, ValueError) as exc:
            if isinstance(exc, ConfigurationError):
                raise
            raise ConfigurationError(f"Invalid engine settings: {exc}") from exc


class StrategyConfigLoader:
    """
    Engine configuration loader.

    Usage:
        loader = StrategyConfigLoader('config/psar_macd.yaml')
        strategy = loader.build_strategy()
        settings = loader.get_engine_settings()
    """

    def __init__(self, config_path: str = None):
        """
        Args:
            config_path: YAML file path, defaults to config/default_strategy.yaml
        """
        self.config_path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
        self._config: Dict = {}
        self._loaded = False

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> 'StrategyConfigLoader':
        """Loader over an in-memory configuration."""
        loader = cls.__new__(cls)
        loader.config_path = None
        loader._config = copy.deepcopy(config)
        loader._loaded = True
        return loader

    def load(self) -> Dict:
        if self._loaded:
            return self._config

        if not self.config_path.exists():
            self._config = self._get_default_config()
            self._loaded = True
            return self._config

        with open(self.config_path, 'r', encoding='utf-8') as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"Config root must be a mapping: {self.config_path}")

        self._config = loaded
        self._loaded = True
        return self._config

    def reload(self) -> Dict:
        self._loaded = False
        return self.load()

    def get(self, key: str, default: Any = None) -> Any:
        """
        Configuration value by dot path (e.g. 'engine.risk_params.min_risk').
        """
        self.load()
        value = self._config
        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    # ========== Strategy ==========

    def get_strategy_name(self) -> str:
        name = self.get('strategy.name')
        if not name:
            raise ConfigurationError("strategy.name is required")
        return name

    def get_strategy_params(self) -> Dict[str, Any]:
        return copy.deepcopy(self.get('strategy.params', {}) or {})

    def set_strategy(self, name: str, params: Dict[str, Any] = None) -> None:
        """Replace the configured strategy; file params are kept only for the same name."""
        self.load()
        current = self._config.get('strategy') or {}
        if params is None:
            params = current.get('params') or {} if current.get('name') == name else {}
        self._config['strategy'] = {'name': name, 'params': copy.deepcopy(params)}

    def build_strategy(self) -> StrategyBehavior:
        return get_registry().create(self.get_strategy_name(), **self.get_strategy_params())

    # ========== Engine ==========

    def get_engine_settings(self) -> EngineSettings:
        """Strategy engine defaults overlaid with the file's engine section."""
        name = self.get_strategy_name()
        metadata = get_registry().get_metadata(name)
        merged = self._merge_params(metadata.get('engine_defaults', {}), self.get('engine', {}) or {})
        merged.setdefault('label', name)
        settings = EngineSettings.from_dict(merged)

        tp_max = metadata.get('tp_factor_max')
        if tp_max is not None and settings.tp_factor > tp_max:
            raise ConfigurationError(
                f"tp_factor for {name} must not exceed {tp_max}, got {settings.tp_factor}"
            )
        return settings

    # ========== Broker / logging ==========

    def get_broker_config(self) -> Dict[str, Any]:
        return copy.deepcopy(self.get('broker', {}) or {})

    def get_logging_config(self) -> Dict[str, Any]:
        return copy.deepcopy(self.get('logging', {}) or {})

    def _merge_params(self, base: Dict, override: Dict) -> Dict:
        """Merge override onto base; 'risk_params' merges one level deep."""
        result = copy.deepcopy(base)
        for key, value in override.items():
            if key == 'risk_params' and isinstance(value, dict) and isinstance(result.get(key), dict):
                result[key] = {**result[key], **value}
            else:
                result[key] = copy.deepcopy(value)
        return result

    def _get_default_config(self) -> Dict:
        return {
            'strategy': {
                'name': 'PsarMacd',
                'params': {},
            },
            'engine': {
                'instrument': 'EUR_USD',
                'position_mode': 'one_position',
                'reverse': False,
            },
            'broker': {
                'initial_balance': 10000,
                'volume_step': 1000,
                'min_volume': 1000,
            },
            'logging': {
                'enabled': True,
            },
        }

    def __repr__(self) -> str:
        return f"StrategyConfigLoader(path={self.config_path}, loaded={self._loaded})"


def load_config(config_path: str = None) -> StrategyConfigLoader:
    """Create and load a StrategyConfigLoader."""
    loader = StrategyConfigLoader(config_path)
    loader.load()
    return loader
