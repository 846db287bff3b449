from __future__ import annotations

from dataclasses import dataclass
from typing import List

from .config import ControlConfig


@dataclass(frozen=True)
class ControlState:
    """One observed sample: the MV in force and the PV the reporter returned."""

    cycle: int
    sample: int
    mv: int
    pv: int


@dataclass
class ControlContext:
    """Context passed to a strategy at the end of a cycle."""

    cycle: int
    mv: int
    samples: List[int]
    average_pv: int
    config: ControlConfig

    @property
    def error(self) -> int:
        return self.config.sv - self.average_pv


@dataclass
class ControlDecision:
    """Strategy output describing how to move the MV."""

    delta: int
    reason: str
