from __future__ import annotations

from ..models import ControlContext, ControlDecision
from .base import ControlStrategy, register_strategy


class ProportionalStrategy(ControlStrategy):
    """Pure proportional law: MV moves by Kp times (SV - averagePV).

    MV is deliberately left unbounded; it may go negative or grow past
    anything the load generator accepts.
    """

    name = "proportional"
    description = "MV += Kp * (SV - average PV), no clamping, no integral or derivative term"

    def decide(self, context: ControlContext) -> ControlDecision:
        error = context.error
        delta = self.config.kp * error
        if error > 0:
            reason = f"PV {context.average_pv} below SV {self.config.sv}, raise load"
        elif error < 0:
            reason = f"PV {context.average_pv} above SV {self.config.sv}, reduce load"
        else:
            reason = f"PV {context.average_pv} at SV, hold"
        return ControlDecision(delta=delta, reason=reason)


register_strategy(ProportionalStrategy)
