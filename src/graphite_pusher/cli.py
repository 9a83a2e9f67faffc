"""CLI interface for graphite_pusher."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import time
from pathlib import Path

from . import __version__
from .config import GraphitePusherConfig, load_config
from .pusher import Pusher


def _load(args: argparse.Namespace) -> GraphitePusherConfig:
    cfg = load_config(args.config)
    if not args.verbose:
        logging.getLogger().setLevel(cfg.log_level)
    if args.host is not None:
        cfg.pusher.host = args.host
    if args.port is not None:
        cfg.pusher.port = args.port
    cfg.pusher.validate()
    return cfg


def _cmd_send(args: argparse.Namespace) -> int:
    """Submit one sample and wait for it to be flushed."""
    cfg = _load(args)
    pusher = Pusher.from_config(cfg.pusher)
    pusher.start()
    if args.timestamp is None:
        pusher.submit(args.path, args.value)
    else:
        pusher.submit(args.path, args.timestamp, args.value)

    if not pusher.flush_and_stop(timeout=args.timeout):
        print(f"Sample not delivered to {cfg.pusher.host}:{cfg.pusher.port}", file=sys.stderr)
        return 1
    print(f"Sent {args.path}={args.value} → {cfg.pusher.host}:{cfg.pusher.port}")
    return 0


def _cmd_collect(args: argparse.Namespace) -> int:
    """Run system resource collection into the pusher."""
    cfg = _load(args)

    from .collector.manager import CollectorManager

    pusher = Pusher.from_config(cfg.pusher)
    manager = CollectorManager(cfg.collector, pusher)

    stop = False

    def _handle_signal(_sig: int, _frame: object) -> None:
        nonlocal stop
        stop = True

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    pusher.start()
    manager.start()
    print(
        f"graphite-pusher collecting → {cfg.pusher.host}:{cfg.pusher.port} "
        f"(interval={cfg.collector.interval_seconds}s, prefix={cfg.collector.prefix})"
    )
    print("Press Ctrl+C to stop.\n")
    try:
        while not stop:
            time.sleep(0.5)
    finally:
        manager.stop()
        flushed = pusher.flush_and_stop(timeout=args.flush_timeout)
    print("\nCollection stopped.")
    return 0 if flushed else 1


def _cmd_decode(args: argparse.Namespace) -> int:
    """Decode a captured byte stream of pickle frames."""
    from rich.console import Console
    from rich.table import Table

    from .wire import iter_frames

    data = Path(args.file).read_bytes()
    console = Console()

    table = Table(title=f"Frames in {args.file}", show_lines=False)
    table.add_column("Frame", justify="right", style="cyan", width=6)
    table.add_column("Path", style="green")
    table.add_column("Timestamp", justify="right", width=12)
    table.add_column("Value", justify="right", width=18)

    count = 0
    try:
        for index, samples in enumerate(iter_frames(data)):
            for sample in samples:
                table.add_row(str(index), sample.path, str(sample.timestamp), repr(sample.value))
                count += 1
    except ValueError as exc:
        console.print(table)
        console.print(f"[red]Decode error:[/red] {exc}")
        return 1

    console.print(table)
    console.print(f"  {count} samples")
    return 0


def _cmd_version(_args: argparse.Namespace) -> int:
    print(f"graphite_pusher {__version__}")
    return 0


def main(argv: list[str] | None = None) -> None:
    """Entry point for the graphite-pusher CLI."""
    parser = argparse.ArgumentParser(
        prog="graphite-pusher",
        description="Forward metric samples to a Graphite carbon pickle receiver",
    )
    parser.add_argument("--config", "-c", default=None, help="Path to graphite_pusher.yaml")
    parser.add_argument("--host", default=None, help="Carbon host (overrides config)")
    parser.add_argument("--port", type=int, default=None, help="Carbon pickle port (overrides config)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    # send
    send_p = sub.add_parser("send", help="Send a single sample")
    send_p.add_argument("path", help="Metric path, e.g. app.requests.count")
    send_p.add_argument("value", type=float, help="Sample value")
    send_p.add_argument("--timestamp", "-t", type=int, default=None, help="Epoch seconds (default: now)")
    send_p.add_argument("--timeout", type=float, default=30.0, help="Seconds to wait for delivery")
    send_p.set_defaults(func=_cmd_send)

    # collect
    collect_p = sub.add_parser("collect", help="Push system resource metrics until interrupted")
    collect_p.add_argument("--flush-timeout", type=float, default=30.0, help="Seconds to wait for the final flush")
    collect_p.set_defaults(func=_cmd_collect)

    # decode
    decode_p = sub.add_parser("decode", help="Decode a captured pickle stream")
    decode_p.add_argument("file", help="File holding raw frames")
    decode_p.set_defaults(func=_cmd_decode)

    # version
    ver_p = sub.add_parser("version", help="Print version")
    ver_p.set_defaults(func=_cmd_version)

    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
