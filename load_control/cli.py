from __future__ import annotations

import argparse
import dataclasses
import logging
import os
import signal
import sys
import threading
from typing import Callable, Iterable, List, Optional

from .config import ControlConfig, LoadCommand
from .data import StateRecorder, format_state, format_summary, summarize_cycles
from .engine import ControlEngine
from .errors import ControlError
from .models import ControlState
from .sampler import Sampler
from .strategies import DEFAULT_STRATEGY, available_strategies, build_strategy
from .transport import RequestOptions, build_request, build_session, load_body

LOGGER = logging.getLogger("load_control.cli")

EXAMPLE = "load-control --kp 10000 -i 1000 -l 5 http://target:6000/cpu \"hey -c 10 -n 100000 -q % http://example.com\""


def run_controller(
    reporter_url: str,
    command: str,
    config: ControlConfig | None = None,
    options: RequestOptions | None = None,
    strategy_name: str = DEFAULT_STRATEGY,
    cancel: threading.Event | None = None,
    observers: Iterable[Callable[[ControlState], None]] = (),
    recorder: StateRecorder | None = None,
) -> List[ControlState]:
    """Run one control loop against ``reporter_url`` until ``cancel`` is set."""
    config = config or ControlConfig()
    if options is None:
        options = RequestOptions(url=reporter_url)
    else:
        options = dataclasses.replace(options, url=reporter_url)

    recorder = recorder if recorder is not None else StateRecorder()
    sinks = [recorder, *observers]

    def observe(state: ControlState) -> None:
        for sink in sinks:
            sink(state)

    session = build_session(options)
    try:
        request = build_request(options, session)
        body = load_body(options)
        engine = ControlEngine(
            config,
            build_strategy(strategy_name, config),
            LoadCommand.parse(command),
            request,
            Sampler(session, timeout=options.timeout, allow_redirects=not options.disable_redirects),
            request_body=body,
            observer=observe,
        )
        engine.run(cancel)
    finally:
        session.close()
    return recorder.states


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Closed-loop load calibrator: tunes a load generator's argument until the reporter reads SV.",
        epilog=f"example: {EXAMPLE}",
    )
    parser.add_argument("reporter_url", nargs="?", help="URL answering with the process variable (0-100 plain text)")
    parser.add_argument("command", nargs="?", help="External command; the macro token is replaced by MV each cycle")

    control = parser.add_argument_group("control")
    control.add_argument("--kp", type=int, default=10000, help="Proportional control gain")
    control.add_argument("--sv", type=int, default=50, help="Set variable (0-100)")
    control.add_argument("--mv", type=int, default=1000, help="Initial manipulative variable")
    control.add_argument("-i", "--interval", type=int, default=1000, help="Sampling interval [ms]")
    control.add_argument("-l", "--buffer-length", type=int, default=5, help="Samples averaged per cycle")
    control.add_argument("--macro", default="%", help="Placeholder replaced by MV in the command")
    control.add_argument(
        "--strategy",
        default=DEFAULT_STRATEGY,
        choices=available_strategies(),
        help="Control strategy to execute",
    )
    control.add_argument(
        "--list-strategies",
        action="store_true",
        help="List available strategies and exit",
    )

    http = parser.add_argument_group("reporter request")
    http.add_argument("-m", dest="method", default="GET", help="HTTP method")
    http.add_argument("-d", dest="body", default="", help="HTTP request body")
    http.add_argument("-D", dest="body_file", help="HTTP request body from file")
    http.add_argument("-A", dest="accept", default="", help="HTTP Accept header")
    http.add_argument("-T", dest="content_type", default="text/plain", help="Content-type")
    http.add_argument("-H", dest="headers", action="append", default=[], help="Custom header 'Name: value', repeatable")
    http.add_argument("-a", dest="auth", default="", help="Basic authentication, user:password")
    http.add_argument("--host", default="", help="HTTP Host header")
    http.add_argument("-U", dest="user_agent", default="", help="User-Agent")
    http.add_argument("-t", dest="timeout", type=float, default=20, help="Request timeout in seconds")
    http.add_argument("--disable-compression", action="store_true")
    http.add_argument("--disable-keepalive", action="store_true")
    http.add_argument("--disable-redirects", action="store_true")
    http.add_argument("-x", dest="proxy", default="", help="HTTP proxy address as scheme://host:port")

    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOAD_CONTROL_LOG_LEVEL", "INFO"),
        help="Logging level",
    )
    parser.add_argument("--quiet", action="store_true", help="Do not print every sample")
    return parser


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def options_from_args(args: argparse.Namespace) -> RequestOptions:
    return RequestOptions(
        url=args.reporter_url,
        method=args.method,
        body=args.body,
        body_file=args.body_file,
        accept=args.accept,
        content_type=args.content_type,
        headers=list(args.headers),
        auth=args.auth,
        host=args.host,
        user_agent=args.user_agent,
        timeout=args.timeout,
        disable_compression=args.disable_compression,
        disable_keepalive=args.disable_keepalive,
        disable_redirects=args.disable_redirects,
        proxy=args.proxy,
    )


def install_interrupt(cancel: threading.Event) -> None:
    def handler(signum, frame):
        LOGGER.info("interrupt received, stopping")
        cancel.set()
        # A second Ctrl+C falls back to the default KeyboardInterrupt.
        signal.signal(signal.SIGINT, signal.default_int_handler)

    signal.signal(signal.SIGINT, handler)


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.list_strategies:
        print("Available strategies:")
        for name in available_strategies():
            from .strategies import base

            print(f"- {name}: {base.STRATEGY_REGISTRY[name].description}")
        return 0

    if not args.reporter_url or not args.command:
        parser.print_usage(sys.stderr)
        print("error: reporter_url and command are required", file=sys.stderr)
        return 1

    setup_logging(args.log_level)
    config = ControlConfig(
        kp=args.kp,
        sv=args.sv,
        initial_mv=args.mv,
        interval_ms=args.interval,
        buffer_length=args.buffer_length,
        macro=args.macro,
    )
    cancel = threading.Event()
    install_interrupt(cancel)
    observers = [] if args.quiet else [lambda state: print(format_state(state), flush=True)]

    recorder = StateRecorder()
    try:
        run_controller(
            args.reporter_url,
            args.command,
            config=config,
            options=options_from_args(args),
            strategy_name=args.strategy,
            cancel=cancel,
            observers=observers,
            recorder=recorder,
        )
    except ControlError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        summary = summarize_cycles(recorder.frame())
        if not summary.empty:
            print(format_summary(summary))

    return 0


__all__ = ["main", "run_controller", "build_arg_parser"]
