from __future__ import annotations


class ControlError(Exception):
    """Base class for failures that end a control run."""

    def __init__(self, message: str, stage: str):
        super().__init__(message)
        self.stage = stage

    def __str__(self) -> str:
        return f"[{self.stage}] {super().__str__()}"


class ValidationError(ControlError):
    """Configuration rejected before the loop starts."""

    def __init__(self, message: str, stage: str = "validate"):
        super().__init__(message, stage)


class TransportError(ControlError):
    """The reporter request could not be sent or its body could not be read."""


class ProtocolError(ControlError):
    """The reporter answered with something other than an integer in [0, 100]."""


class ProcessError(ControlError):
    """The external command could not be started or its process group killed."""
