from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Optional, Sequence

from requests import PreparedRequest

from .config import ControlConfig, LoadCommand
from .errors import ValidationError
from .macro import apply_macro, resolve_macro
from .models import ControlContext, ControlState
from .process import ProcessDriver
from .request import clone_request
from .sampler import Sampler
from .strategies import ControlStrategy

LOGGER = logging.getLogger("load_control.engine")

Observer = Callable[[ControlState], None]


class Ticker:
    """Fixed-rate clock that can be interrupted by a cancellation event.

    Ticks sit on a fixed grid starting one interval after creation. A
    caller that falls behind gets one tick immediately and the other
    missed ticks are dropped.
    """

    def __init__(self, interval: float, cancel: threading.Event):
        self._interval = interval
        self._cancel = cancel
        self._next = time.monotonic() + interval

    def wait(self) -> bool:
        """Block until the next tick. Returns False if cancelled first."""
        remaining = self._next - time.monotonic()
        if remaining > 0 and self._cancel.wait(remaining):
            return False
        if self._cancel.is_set():
            return False
        missed = max(0, int((time.monotonic() - self._next) // self._interval))
        self._next += (missed + 1) * self._interval
        return True


def average_pv(samples: Sequence[int]) -> int:
    """Arithmetic mean of the samples, truncated toward zero."""
    return int(sum(samples) / len(samples))


class ControlEngine:
    """Core runtime: drives the load generator and feeds each cycle to the strategy.

    One engine owns one run and the command's argument vector; the macro
    slot is rewritten in place at the start of every cycle.

    ``observer`` is called synchronously with every sample. A slow
    observer stalls the loop.
    """

    def __init__(
        self,
        config: ControlConfig,
        strategy: ControlStrategy,
        command: LoadCommand,
        request: Optional[PreparedRequest],
        sampler: Optional[Sampler],
        request_body: bytes = b"",
        driver: Optional[ProcessDriver] = None,
        observer: Optional[Observer] = None,
    ):
        self.config = config
        self.strategy = strategy
        self.command = LoadCommand(command.executable, list(command.args))
        self.request = request
        self.request_body = request_body
        self.sampler = sampler
        self.driver = driver or ProcessDriver()
        self.observer = observer
        self.mv = config.initial_mv
        self.cycles = 0
        self._macro_index: Optional[int] = None

    @property
    def macro_index(self) -> Optional[int]:
        return self._macro_index

    def init(self) -> None:
        """Resolve the macro slot. Done once; later calls are no-ops."""
        if self._macro_index is None:
            self._macro_index = resolve_macro(self.command.args, self.config.macro)

    def validate(self) -> None:
        if self.request is None:
            raise ValidationError("request is not set")
        if self.sampler is None:
            raise ValidationError("HTTP client is not set")
        self.config.validate()

    def run(self, cancel: Optional[threading.Event] = None) -> None:
        """Run control cycles until ``cancel`` is set.

        Returns normally on cancellation; every other way out is a
        ``ControlError``. The cycle's process group is killed on all paths.
        """
        self.validate()
        self.init()
        cancel = cancel or threading.Event()
        ticker = Ticker(self.config.interval, cancel)
        LOGGER.info(
            "control loop starting: kp=%d sv=%d mv=%d interval=%dms buffer=%d",
            self.config.kp,
            self.config.sv,
            self.mv,
            self.config.interval_ms,
            self.config.buffer_length,
        )

        while not cancel.is_set():
            samples = self._run_cycle(ticker, cancel)
            if samples is None:
                break
            self._update(samples)

        LOGGER.info("control loop cancelled after %d cycle(s), mv=%d", self.cycles, self.mv)

    def _run_cycle(self, ticker: Ticker, cancel: threading.Event) -> Optional[List[int]]:
        buffer = [0] * self.config.buffer_length
        apply_macro(self.command.args, self._macro_index, self.mv)
        LOGGER.info("cycle %d: mv=%d", self.cycles, self.mv)

        with self.driver.start(self.command.executable, self.command.args):
            for i in range(self.config.buffer_length):
                if not ticker.wait():
                    return None
                request = clone_request(self.request, self.request_body)
                pv = self.sampler.sample(request, cancel)
                if pv is None or cancel.is_set():
                    # Interrupted tick: the sample is not emitted.
                    return None
                buffer[i] = pv
                self._emit(ControlState(cycle=self.cycles, sample=i, mv=self.mv, pv=pv))
        return buffer

    def _update(self, samples: List[int]) -> None:
        average = average_pv(samples)
        context = ControlContext(
            cycle=self.cycles,
            mv=self.mv,
            samples=samples,
            average_pv=average,
            config=self.config,
        )
        decision = self.strategy.decide(context)
        LOGGER.info(
            "cycle %d: average pv=%d error=%d -> mv %d%+d (%s)",
            self.cycles,
            average,
            context.error,
            self.mv,
            decision.delta,
            decision.reason,
        )
        self.mv += decision.delta
        self.cycles += 1

    def _emit(self, state: ControlState) -> None:
        LOGGER.debug("state cycle=%d sample=%d mv=%d pv=%d", state.cycle, state.sample, state.mv, state.pv)
        if self.observer is not None:
            self.observer(state)
