from __future__ import annotations

import contextlib
import logging
import os
import signal
import subprocess
from typing import List, Sequence

from .errors import ProcessError

LOGGER = logging.getLogger("load_control.process")

_POSIX = os.name == "posix"


class LoadProcess(contextlib.AbstractContextManager["LoadProcess"]):
    """A running external command that owns its own process group.

    Leaving the ``with`` block kills the whole group. If the block is
    already unwinding with an error, a kill failure is logged and the
    original error wins.
    """

    def __init__(self, driver: "ProcessDriver", popen: subprocess.Popen, argv: List[str]) -> None:
        self._driver = driver
        self.popen = popen
        self.argv = argv
        self.killed = False

    @property
    def pid(self) -> int:
        return self.popen.pid

    def kill_group(self) -> None:
        self._driver.kill_group(self)

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self.kill_group()
            return False
        try:
            self.kill_group()
        except ProcessError as kill_exc:
            LOGGER.error("cleanup of pid %d failed while handling %s: %s", self.pid, exc_type.__name__, kill_exc)
        return False


class ProcessDriver:
    """Spawns the load generator in a fresh process group and kills the group."""

    def start(self, executable: str, args: Sequence[str]) -> LoadProcess:
        argv = [executable, *args]
        try:
            if _POSIX:
                popen = subprocess.Popen(argv, start_new_session=True)
            else:
                popen = subprocess.Popen(argv, creationflags=subprocess.CREATE_NEW_PROCESS_GROUP)
        except OSError as exc:
            raise ProcessError(f"failed to exec external command {argv}: {exc}", "spawn") from exc
        LOGGER.info("started pid %d: %s", popen.pid, " ".join(argv))
        return LoadProcess(self, popen, argv)

    def kill_group(self, process: LoadProcess) -> None:
        if process.killed:
            return
        if _POSIX:
            self._killpg(process)
        else:
            self._taskkill(process)
        process.popen.wait()
        process.killed = True
        LOGGER.info("killed process group of pid %d (exit %s)", process.pid, process.popen.returncode)

    def _killpg(self, process: LoadProcess) -> None:
        # start_new_session makes the child its own group leader, so pgid == pid.
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            LOGGER.debug("process group %d already gone", process.pid)
        except OSError as exc:
            raise ProcessError(f"failed to kill external command group {process.pid}: {exc}", "kill") from exc

    def _taskkill(self, process: LoadProcess) -> None:
        if process.popen.poll() is not None:
            return
        result = subprocess.run(
            ["taskkill", "/T", "/F", "/PID", str(process.pid)],
            capture_output=True,
            text=True,
        )
        if result.returncode != 0 and process.popen.poll() is None:
            raise ProcessError(
                f"failed to kill external command tree {process.pid}: {result.stderr.strip()}", "kill"
            )
