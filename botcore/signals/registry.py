#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StrategyTemplateEngine - Strategy Registry

Name-based lookup and instantiation of strategy behaviours:
- StrategyRegistry: singleton registry of behaviour classes
- Lazy class loading from a dotted module path
- @register decorator for concrete strategies
"""

import importlib
import logging
from typing import Any, Dict, List, Optional, Type

from botcore.exceptions import ConfigurationError
from botcore.signals.base import StrategyBehavior

logger = logging.getLogger(__name__)


class StrategyRegistry:
    """
    Strategy registry.

    Usage:
        registry = StrategyRegistry()
        registry.register('PsarMacd', PsarMacdStrategy)
        strategy = registry.create('PsarMacd', max_pips=80)
    """

    _instance: Optional['StrategyRegistry'] = None
    _initialized: bool = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        # {name: class}
        self._classes: Dict[str, Type[StrategyBehavior]] = {}
        # {name: 'package.module.ClassName'} for lazy loading
        self._class_paths: Dict[str, str] = {}
        # {name: metadata}
        self._metadata: Dict[str, Dict] = {}

        self._initialized = True

    def register(
        self,
        name: str,
        strategy_class: Type[StrategyBehavior],
        metadata: Dict = None
    ) -> None:
        self._classes[name] = strategy_class
        self._metadata[name] = metadata or {}

    def register_from_path(self, name: str, class_path: str, metadata: Dict = None) -> None:
        """Register a strategy by dotted class path, loaded on first use."""
        self._class_paths[name] = class_path
        self._metadata[name] = metadata or {}

    def get_class(self, name: str) -> Optional[Type[StrategyBehavior]]:
        if name in self._classes:
            return self._classes[name]

        if name in self._class_paths:
            strategy_class = self._load_class(self._class_paths[name])
            self._classes[name] = strategy_class
            return strategy_class

        return None

    def _load_class(self, class_path: str) -> Type[StrategyBehavior]:
        module_path, _, class_name = class_path.rpartition('.')
        if not module_path:
            raise ConfigurationError(f"Invalid strategy class path: '{class_path}'")

        try:
            module = importlib.import_module(module_path)
            return getattr(module, class_name)
        except (ImportError, AttributeError) as exc:
            raise ConfigurationError(
                f"Failed to load strategy class '{class_path}': {exc}"
            ) from exc

    def create(self, name: str, **params: Any) -> StrategyBehavior:
        """
        Instantiate a registered strategy.

        Args:
            name: Registered strategy name
            **params: Parameter overrides, validated against the declared bounds

        Returns:
            StrategyBehavior instance

        Raises:
            ConfigurationError: unknown strategy or invalid parameters
        """
        strategy_class = self.get_class(name)
        if strategy_class is None:
            raise ConfigurationError(
                f"Strategy '{name}' not found. Available: {self.list_strategies()}"
            )

        logger.debug("Creating strategy %s with %s", name, params)
        return strategy_class(name=name, **params)

    def get_metadata(self, name: str) -> Dict:
        return self._metadata.get(name, {}).copy()

    def list_strategies(self) -> List[str]:
        return sorted(set(self._classes) | set(self._class_paths))

    def reset(self) -> None:
        self._classes.clear()
        self._class_paths.clear()
        self._metadata.clear()

    def __contains__(self, name: str) -> bool:
        return name in self._classes or name in self._class_paths

    def __len__(self) -> int:
        return len(set(self._classes) | set(self._class_paths))

    def __repr__(self) -> str:
        return f"StrategyRegistry(strategies={len(self)})"


def get_registry() -> StrategyRegistry:
    """Return the process-wide registry."""
    return StrategyRegistry()


def create_strategy(name: str, **params: Any) -> StrategyBehavior:
    """Instantiate a strategy from the global registry."""
    return get_registry().create(name, **params)


def register(name: str = None, metadata: Dict = None):
    """
    Decorator: register a strategy class.

    Usage:
        @register('PsarMacd')
        class PsarMacdStrategy(StrategyBehavior):
            ...
    """
    def decorator(cls: Type[StrategyBehavior]):
        get_registry().register(name or cls.__name__, cls, metadata)
        return cls
    return decorator
