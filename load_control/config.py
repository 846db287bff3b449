from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from .errors import ValidationError

PV_MIN = 0
PV_MAX = 100


@dataclass
class ControlConfig:
    """Tunable control parameters shared by all strategies."""

    kp: int = 10000
    sv: int = 50
    initial_mv: int = 1000
    interval_ms: int = 1000
    buffer_length: int = 5
    macro: str = "%"

    @property
    def interval(self) -> float:
        return self.interval_ms / 1000.0

    def validate(self) -> None:
        if not PV_MIN <= self.sv <= PV_MAX:
            raise ValidationError(f"SV must be in {PV_MIN} to {PV_MAX}, got {self.sv}")
        if self.interval_ms <= 0:
            raise ValidationError(f"interval must be > 0 ms, got {self.interval_ms}")
        if self.buffer_length < 1:
            raise ValidationError(f"buffer length must be >= 1, got {self.buffer_length}")
        if not self.macro:
            raise ValidationError("macro string must not be empty")


@dataclass
class LoadCommand:
    """External load-generating command whose arguments carry the macro token."""

    executable: str
    args: List[str] = field(default_factory=list)

    @classmethod
    def parse(cls, command: str) -> "LoadCommand":
        # Single-space split; quoting is not interpreted.
        parts = command.split(" ")
        if not parts[0]:
            raise ValidationError("external command must not be empty")
        return cls(executable=parts[0], args=parts[1:])

    def argv(self) -> List[str]:
        return [self.executable, *self.args]
