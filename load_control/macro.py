from __future__ import annotations

from typing import List, Sequence

from .errors import ValidationError


def resolve_macro(args: Sequence[str], macro: str) -> int:
    """Return the index of the first argument equal to ``macro``."""
    for idx, value in enumerate(args):
        if value == macro:
            return idx
    raise ValidationError(f"macro string {macro!r} not found in command arguments {list(args)}")


def apply_macro(args: List[str], index: int, mv: int) -> None:
    args[index] = str(mv)
