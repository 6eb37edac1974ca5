# rgbclient/cli/commands.py
from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from threading import Lock
from typing import Optional

from rgbclient.app.binding import ConsumerBinding
from rgbclient.app.config import RgbClientConfig, load_config
from rgbclient.core.errors import ServerNotConfiguredError
from rgbclient.model import ColorState, Command
from rgbclient.runtime.state import ConnectionErrorKind
from rgbclient.runtime.supervisor import ConnectionSupervisor

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# ---------------- Command consumer ----------------

class PrintingConsumer:
    """Print connection events and the running effective color to stdout."""

    def __init__(self, *, history_size: int = 1000):
        self._colors = ColorState(history_size=history_size)
        self._lock = Lock()

    def on_connection_state_changed(self, connected: bool) -> None:
        print("CONNECTED" if connected else "DISCONNECTED")

    def on_connection_error(self, kind: ConnectionErrorKind, message: str) -> None:
        print(f"ERROR {kind.value}: {message}")

    def on_command_received(self, command: Command) -> None:
        with self._lock:
            self._colors.add(command)
            color = self._colors.effective_color()
        shown = color.hex() if color is not None else "-"
        print(f"COMMAND {command} -> {shown}")


# ---------------- Logging ----------------

def configure_logging(level: str, log_file: Optional[Path] = None) -> None:
    """
    Configure the root logger (idempotent). Kept in CLI (presentation-layer concern).
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))

    if not any(type(h) is logging.StreamHandler for h in root.handlers):
        sh = logging.StreamHandler()
        sh.setFormatter(logging.Formatter(_LOG_FORMAT))
        root.addHandler(sh)

    if log_file is None:
        return

    log_file.parent.mkdir(parents=True, exist_ok=True)
    target = str(log_file.resolve())
    for h in root.handlers:
        if isinstance(h, logging.FileHandler) and getattr(h, "baseFilename", None) == target:
            return

    fh = logging.FileHandler(log_file, encoding="utf-8", delay=True)
    fh.setFormatter(logging.Formatter(_LOG_FORMAT))
    root.addHandler(fh)


# ---------------- Commands ----------------

def resolve_config(args: argparse.Namespace) -> RgbClientConfig:
    cfg = load_config(args.config) if args.config else RgbClientConfig()
    cfg = cfg.with_overrides(host=args.host, port=args.port, connect_timeout_s=args.timeout)
    if not cfg.has_target:
        raise ServerNotConfiguredError(
            "Server host/port not set.",
            hint="Pass --host and --port, or a --config file with a 'server' section.",
        )
    return cfg


def cmd_watch(args: argparse.Namespace) -> int:
    configure_logging(args.log_level, Path(args.log_file) if args.log_file else None)
    cfg = resolve_config(args)
    log = logging.getLogger(__name__)

    supervisor = ConnectionSupervisor(
        history_size=cfg.history_size,
        connect_timeout_s=cfg.connect_timeout_s,
    )
    binding = ConsumerBinding(supervisor, PrintingConsumer(history_size=cfg.history_size))
    binding.attach()

    assert cfg.host is not None and cfg.port is not None
    supervisor.set_target(cfg.host, cfg.port)
    supervisor.notify_ready()

    t_end = (time.monotonic() + args.secs) if args.secs else None
    next_retry = time.monotonic() + args.retry_secs
    try:
        while t_end is None or time.monotonic() < t_end:
            time.sleep(0.2)
            # the supervisor never retries on its own; re-trigger it while disconnected
            if args.retry_secs > 0 and time.monotonic() >= next_retry:
                next_retry = time.monotonic() + args.retry_secs
                if supervisor.connection is None:
                    supervisor.reconcile()
    except KeyboardInterrupt:
        log.info("WATCH_INTERRUPTED")
    finally:
        binding.detach()
        supervisor.shutdown()

    st = supervisor.status()
    if st.last_error:
        print(f"Last error: {st.last_error}")
    return 0
