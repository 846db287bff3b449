from __future__ import annotations

import argparse
import http.server
import logging
import threading
import time
from typing import Callable, Iterable, Optional

import psutil

LOGGER = logging.getLogger("load_control.reporter")


def system_cpu_percent() -> float:
    """Busy percent across all CPUs since the previous call."""
    return psutil.cpu_percent(interval=None)


class CpuMeter:
    """CPU percent as the integer the controller expects.

    psutil measures since its previous call, so the first reading is
    primed over ``warmup`` seconds.
    """

    def __init__(self, reader: Callable[[], float] = system_cpu_percent, warmup: float = 0.1):
        self._reader = reader
        self._warmup = warmup
        self._primed = False
        self._lock = threading.Lock()

    def percent(self) -> int:
        with self._lock:
            if not self._primed:
                self._reader()
                time.sleep(self._warmup)
                self._primed = True
            value = self._reader()
        return max(0, min(100, int(value)))


class ReporterHandler(http.server.BaseHTTPRequestHandler):
    meter: CpuMeter = CpuMeter()

    def _text(self, body: str, code: int = 200) -> None:
        payload = body.encode()
        self.send_response(code)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def do_GET(self):
        if self.path == "/cpu":
            try:
                self._text(str(self.meter.percent()))
            except (OSError, psutil.Error) as exc:
                LOGGER.error("failed to read cpu usage: %s", exc)
                self._text("Internal Server Error", 500)
        elif self.path == "/ping":
            self._text("pong")
        else:
            self._text("Not Found", 404)

    def log_message(self, format, *args):
        LOGGER.debug("%s - %s", self.address_string(), format % args)


def build_server(port: int, meter: Optional[CpuMeter] = None, host: str = "") -> http.server.ThreadingHTTPServer:
    handler = type("BoundReporterHandler", (ReporterHandler,), {"meter": meter or CpuMeter()})
    return http.server.ThreadingHTTPServer((host, port), handler)


def main(argv: Optional[Iterable[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        description="CPU percent reporter for load-control",
        epilog="GET /cpu answers the CPU busy percent as plain integer text; GET /ping answers pong.",
    )
    parser.add_argument("--port", type=int, default=6000)
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    server = build_server(args.port)
    LOGGER.info("cpu reporter is listening on port :%d", args.port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        LOGGER.info("stopping")
    finally:
        server.server_close()


if __name__ == "__main__":
    main()
