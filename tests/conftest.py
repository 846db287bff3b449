"""Shared test fixtures for the load_control engine tests."""

import http.server
import sys
import threading
import time
from pathlib import Path

# Ensure load_control is importable from a source checkout
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest
import requests

from load_control.config import ControlConfig, LoadCommand
from load_control.process import LoadProcess, ProcessDriver


class FakeResponse:
    def __init__(self, body, status_code=200, read_error=None):
        self._body = body
        self._read_error = read_error
        self.status_code = status_code
        self.closed = False

    @property
    def content(self):
        if self._read_error is not None:
            raise self._read_error
        return self._body

    def close(self):
        self.closed = True


class FakeSession:
    """Stands in for requests.Session; answers sends from a list of bodies."""

    def __init__(self, bodies, send_error=None):
        self.bodies = list(bodies)
        self.send_error = send_error
        self.sent = []
        self.responses = []

    def send(self, request, **kwargs):
        self.sent.append((request, kwargs))
        if self.send_error is not None:
            raise self.send_error
        body = self.bodies.pop(0) if len(self.bodies) > 1 else self.bodies[0]
        response = body if isinstance(body, FakeResponse) else FakeResponse(body)
        self.responses.append(response)
        return response


class FakePopen:
    def __init__(self, pid):
        self.pid = pid
        self.returncode = None

    def wait(self, timeout=None):
        self.returncode = -9
        return self.returncode

    def poll(self):
        return self.returncode


class RecordingDriver(ProcessDriver):
    """ProcessDriver that records argv per start and kills without real processes."""

    def __init__(self, kill_error=None):
        self.started = []
        self.killed = []
        self.kill_error = kill_error
        self.events = []

    def start(self, executable, args):
        argv = [executable, *args]
        self.started.append(argv)
        self.events.append(("start", list(argv)))
        return LoadProcess(self, FakePopen(1000 + len(self.started)), argv)

    def kill_group(self, process):
        self.events.append(("kill", process.pid))
        if self.kill_error is not None:
            raise self.kill_error
        process.killed = True
        self.killed.append(process.pid)


@pytest.fixture
def template():
    return requests.Request(
        "GET",
        "http://reporter.test/cpu",
        headers={"Content-Type": "text/plain", "X-Probe": "a"},
    ).prepare()


@pytest.fixture
def fast_config():
    return ControlConfig(kp=10000, sv=50, initial_mv=1000, interval_ms=10, buffer_length=3, macro="%")


@pytest.fixture
def command():
    return LoadCommand("hey", ["-c", "%", "-z", "10s", "http://example.com"])


@pytest.fixture
def driver():
    return RecordingDriver()


@pytest.fixture
def reporter_server():
    """Loopback HTTP server answering ``server.body`` after ``server.delay`` seconds."""

    class Handler(http.server.BaseHTTPRequestHandler):
        def do_GET(self):
            time.sleep(self.server.delay)
            payload = self.server.body
            self.send_response(200)
            self.send_header("Content-Length", str(len(payload)))
            self.end_headers()
            self.wfile.write(payload)

        def log_message(self, format, *args):
            pass

    server = http.server.ThreadingHTTPServer(("127.0.0.1", 0), Handler)
    server.body = b"40"
    server.delay = 0.0
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield server
    server.shutdown()
    server.server_close()
