# rgbclient/cli/args.py
from __future__ import annotations

import argparse
from typing import Optional


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rgbclient")
    sub = parser.add_subparsers(dest="cmd", required=True)

    pw = sub.add_parser("watch", help="Connect to the server and print received color commands.")
    pw.add_argument("--config", default=None, help="YAML config file (server/client sections).")
    pw.add_argument("--host", default=None, help="Server host name or IP address.")
    pw.add_argument("--port", type=int, default=None, help="Server TCP port.")
    pw.add_argument("--timeout", type=float, default=None, help="Connect timeout in seconds.")
    pw.add_argument(
        "--retry-secs",
        type=float,
        default=5.0,
        help="Reconnect interval after a dropped connection (0 = never reconnect).",
    )
    pw.add_argument("--secs", type=float, default=None, help="Stop after this many seconds.")
    pw.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    pw.add_argument("--log-file", default=None, help="Also write the application log to this file.")

    return parser


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)
