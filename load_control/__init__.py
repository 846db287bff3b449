__version__ = "0.1.0"

from .config import ControlConfig, LoadCommand
from .data import StateRecorder, format_state, states_to_frame, summarize_cycles
from .engine import ControlEngine, Ticker, average_pv
from .errors import ControlError, ProcessError, ProtocolError, TransportError, ValidationError
from .macro import apply_macro, resolve_macro
from .models import ControlContext, ControlDecision, ControlState
from .process import LoadProcess, ProcessDriver
from .request import clone_request
from .sampler import Sampler, parse_pv
from .strategies import (
    DEFAULT_STRATEGY,
    ProportionalStrategy,
    available_strategies,
    build_strategy,
    register_strategy,
)

__all__ = [
    "ControlConfig",
    "ControlContext",
    "ControlDecision",
    "ControlEngine",
    "ControlError",
    "ControlState",
    "DEFAULT_STRATEGY",
    "LoadCommand",
    "LoadProcess",
    "ProcessDriver",
    "ProcessError",
    "ProportionalStrategy",
    "ProtocolError",
    "Sampler",
    "StateRecorder",
    "Ticker",
    "TransportError",
    "ValidationError",
    "apply_macro",
    "available_strategies",
    "average_pv",
    "build_strategy",
    "clone_request",
    "format_state",
    "parse_pv",
    "register_strategy",
    "resolve_macro",
    "states_to_frame",
    "summarize_cycles",
]
