from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Type

from ..config import ControlConfig
from ..errors import ValidationError
from ..models import ControlContext, ControlDecision


class ControlStrategy(ABC):
    """Interface for pluggable control strategies."""

    name: str = "base"
    description: str = ""

    def __init__(self, config: ControlConfig):
        self.config = config

    @abstractmethod
    def decide(self, context: ControlContext) -> ControlDecision:
        """Return the MV delta (+ reason) for the cycle just observed."""


STRATEGY_REGISTRY: Dict[str, Type[ControlStrategy]] = {}


def register_strategy(strategy_cls: Type[ControlStrategy]) -> None:
    STRATEGY_REGISTRY[strategy_cls.name] = strategy_cls


def available_strategies() -> List[str]:
    return sorted(STRATEGY_REGISTRY)


def build_strategy(name: str, config: ControlConfig) -> ControlStrategy:
    try:
        strategy_cls = STRATEGY_REGISTRY[name]
    except KeyError as exc:
        raise ValidationError(
            f"Unknown strategy '{name}'. Available: {available_strategies()}"
        ) from exc
    return strategy_cls(config)
