# rgbclient/app/config.py
from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from rgbclient.core.command_log import DEFAULT_CAPACITY
from rgbclient.core.errors import ConfigError


@dataclass(frozen=True)
class RgbClientConfig:
    host: Optional[str] = None
    port: Optional[int] = None
    connect_timeout_s: float = 10.0
    history_size: int = DEFAULT_CAPACITY

    @property
    def has_target(self) -> bool:
        return bool(self.host) and self.port is not None

    def with_overrides(self, **overrides: Any) -> "RgbClientConfig":
        """Return a copy with every non-None override applied and validated."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        cfg = replace(self, **changes)
        validate_config(cfg)
        return cfg


def validate_config(cfg: RgbClientConfig) -> None:
    if cfg.port is not None and not (1 <= int(cfg.port) <= 65535):
        raise ConfigError(
            f"Invalid server port {cfg.port}.",
            hint="Use a TCP port between 1 and 65535.",
            details={"port": cfg.port},
        )
    if cfg.connect_timeout_s <= 0:
        raise ConfigError(
            f"Invalid connect timeout {cfg.connect_timeout_s}.",
            hint="connect_timeout_s must be greater than 0.",
        )
    if cfg.history_size <= 0:
        raise ConfigError(
            f"Invalid history size {cfg.history_size}.",
            hint="history_size must be greater than 0.",
        )


def _section(data: Mapping[str, Any], name: str, path: Path) -> Mapping[str, Any]:
    node = data.get(name) or {}
    if not isinstance(node, dict):
        raise ConfigError(
            f"'{name}' in {path} must be a mapping.",
            details={"path": str(path)},
        )
    return node


def load_config(path: str | Path) -> RgbClientConfig:
    """
    Load client settings from YAML:

        server:
          host: 192.168.1.20
          port: 4444
        client:
          connect_timeout_s: 5
          history_size: 1000
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Missing config file: {path}", hint="Pass --config with an existing file.")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Config file {path} is not valid YAML.", hint=str(e)) from None

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the root.")

    server = _section(data, "server", path)
    client = _section(data, "client", path)

    try:
        cfg = RgbClientConfig(
            host=str(server["host"]) if server.get("host") else None,
            port=int(server["port"]) if server.get("port") is not None else None,
            connect_timeout_s=float(client.get("connect_timeout_s", 10.0)),
            history_size=int(client.get("history_size", DEFAULT_CAPACITY)),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Config file {path} has a malformed value.", hint=str(e)) from None

    validate_config(cfg)
    return cfg
