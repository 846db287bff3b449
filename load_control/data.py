from __future__ import annotations

from typing import Iterable, List

import pandas as pd

from .engine import average_pv
from .models import ControlState

STATE_COLUMNS = ["cycle", "sample", "mv", "pv"]


class StateRecorder:
    """Observer that keeps the active run's samples in memory."""

    def __init__(self) -> None:
        self.states: List[ControlState] = []

    def __call__(self, state: ControlState) -> None:
        self.states.append(state)

    def frame(self) -> pd.DataFrame:
        return states_to_frame(self.states)


def states_to_frame(states: Iterable[ControlState]) -> pd.DataFrame:
    states = list(states)
    return pd.DataFrame(
        {
            "cycle": [s.cycle for s in states],
            "sample": [s.sample for s in states],
            "mv": [s.mv for s in states],
            "pv": [s.pv for s in states],
        },
        columns=STATE_COLUMNS,
    )


def summarize_cycles(frame: pd.DataFrame) -> pd.DataFrame:
    """One row per cycle: the MV in force, the truncated PV average the controller
    acted on, the exact mean and how many samples were taken."""
    if frame.empty:
        return pd.DataFrame(columns=["cycle", "mv", "average_pv", "mean_pv", "samples"])
    grouped = frame.groupby("cycle", sort=True)
    summary = grouped.agg(
        mv=("mv", "first"),
        average_pv=("pv", lambda pv: average_pv(pv.tolist())),
        mean_pv=("pv", "mean"),
        samples=("pv", "size"),
    )
    return summary.reset_index()


def format_state(state: ControlState) -> str:
    return f"cycle {state.cycle} sample {state.sample} | mv {state.mv} | pv {state.pv}"


def format_summary(summary: pd.DataFrame) -> str:
    lines = []
    for row in summary.itertuples(index=False):
        lines.append(
            f"cycle {row.cycle} | mv {row.mv} | average pv {row.average_pv} "
            f"(mean {row.mean_pv:.2f}) over {row.samples} sample(s)"
        )
    return "\n".join(lines)
