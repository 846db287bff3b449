from .base import ControlStrategy, available_strategies, build_strategy, register_strategy
from .proportional import ProportionalStrategy

DEFAULT_STRATEGY = ProportionalStrategy.name

__all__ = [
    "ControlStrategy",
    "available_strategies",
    "build_strategy",
    "register_strategy",
    "ProportionalStrategy",
    "DEFAULT_STRATEGY",
]
