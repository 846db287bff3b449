from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

import requests
from requests import PreparedRequest

from .config import PV_MAX, PV_MIN
from .errors import ProtocolError, TransportError

LOGGER = logging.getLogger("load_control.sampler")


class Sampler:
    """Reads one PV from the reporter per call. Nothing is retried."""

    def __init__(
        self,
        session: requests.Session,
        timeout: float | None = 20.0,
        allow_redirects: bool = True,
        poll_interval: float = 0.01,
    ) -> None:
        self.session = session
        self.timeout = timeout
        self.allow_redirects = allow_redirects
        self.poll_interval = poll_interval

    def sample(self, request: PreparedRequest, cancel: Optional[threading.Event] = None) -> Optional[int]:
        """Return the PV, or None if ``cancel`` was set while the request was in flight.

        With ``cancel`` the request runs on a daemon thread; an abandoned
        request finishes or times out in the background and its result is
        discarded.
        """
        if cancel is None:
            return self._fetch(request)

        outcome: Dict[str, Any] = {}
        done = threading.Event()

        def runner() -> None:
            try:
                outcome["pv"] = self._fetch(request)
            except Exception as exc:
                outcome["error"] = exc
            finally:
                done.set()

        thread = threading.Thread(target=runner, name="reporter-sample", daemon=True)
        thread.start()
        while not done.wait(self.poll_interval):
            if cancel.is_set():
                LOGGER.info("abandoning in-flight request to %s on cancellation", request.url)
                return None
        if "error" in outcome:
            raise outcome["error"]
        return outcome["pv"]

    def _fetch(self, request: PreparedRequest) -> int:
        try:
            response = self.session.send(
                request,
                timeout=self.timeout,
                allow_redirects=self.allow_redirects,
                stream=True,
            )
        except requests.RequestException as exc:
            raise TransportError(f"failed to send request to {request.url}: {exc}", "send") from exc

        try:
            raw = response.content
        except requests.RequestException as exc:
            raise TransportError(f"failed to read response body from {request.url}: {exc}", "read") from exc
        finally:
            response.close()

        pv = parse_pv(raw)
        LOGGER.debug("sampled pv=%d from %s (status %d)", pv, request.url, response.status_code)
        return pv


def parse_pv(raw: bytes) -> int:
    # bytes.isdigit() only accepts ASCII digits: no sign, whitespace or separators.
    if not raw.isdigit():
        raise ProtocolError(f"failed to convert response body {raw[:64]!r} to an unsigned integer", "parse")
    # Leading zeros aside, anything longer than three digits is above PV_MAX;
    # rejected before int() so huge bodies never reach the conversion limit.
    if len(raw.lstrip(b"0")) > len(str(PV_MAX)):
        raise ProtocolError(
            f"process variable must be in {PV_MIN} to {PV_MAX}, got a {len(raw)}-digit value",
            "range",
        )
    pv = int(raw.lstrip(b"0") or b"0")
    if not PV_MIN <= pv <= PV_MAX:
        raise ProtocolError(f"process variable must be in {PV_MIN} to {PV_MAX}, got {pv}", "range")
    return pv
