# rgbclient/core/errors.py
from __future__ import annotations


class RgbClientError(Exception):
    """
    Base class for all expected operational errors in rgbclient.
    """

    #: Stable machine-readable identifier (for CLI exit mapping, logs, etc.)
    code: str = "unknown"

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class ConfigError(RgbClientError):
    """
    Configuration file or flags are invalid.

    Examples:
      - config file missing or not valid YAML
      - port outside 1..65535
      - non-positive history size or connect timeout
    """
    code = "config_error"


class ServerNotConfiguredError(RgbClientError):
    """No server host/port was given by config file or flags."""
    code = "server_not_configured"
