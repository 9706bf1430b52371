"""Transport configuration: retry and reconnect policies.

Policies are plain frozen dataclasses passed to the executors. They can also
be loaded from a YAML file::

    http:
      base_url: https://webexapis.com/v1
      request_timeout: 30
    retry:
      max_attempts: 5
      max_total_wait: 120
    reconnect:
      max_attempts: null   # unbounded
      max_delay: 300
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

DEFAULT_BASE_URL = "https://webexapis.com/v1"
DEFAULT_WS_URL = "wss://mercury-connection-a.wbx2.com/v1/apps/wx2/registrations"


class ConfigError(ValueError):
    """Invalid transport configuration."""


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget policy for rate-limited HTTP calls.

    Attributes:
        max_attempts: Total attempts per operation, including the first.
        base_delay: Backoff delay after the first throttled attempt (seconds).
        backoff_factor: Multiplier applied per additional attempt.
        max_delay: Cap on a computed backoff delay (seconds).
        max_total_wait: Cap on the total time spent waiting for one operation.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    backoff_factor: float = 2.0
    max_delay: float = 30.0
    max_total_wait: float = 60.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ConfigError("max_attempts must be at least 1")
        if self.base_delay < 0 or self.max_delay < 0 or self.max_total_wait < 0:
            raise ConfigError("delays must not be negative")
        if self.backoff_factor < 1:
            raise ConfigError("backoff_factor must be at least 1")

    def backoff(self, attempt: int) -> float:
        """Computed delay after the given (1-based) attempt."""
        return min(self.base_delay * self.backoff_factor ** (attempt - 1), self.max_delay)


@dataclass(frozen=True)
class ReconnectPolicy:
    """Reconnect policy for the event stream.

    ``max_attempts`` counts consecutive failed reconnects; ``None`` keeps
    retrying forever with the delay capped at ``max_delay``.
    """

    max_attempts: int | None = 10
    base_delay: float = 1.0
    backoff_factor: float = 2.0
    max_delay: float = 60.0

    def __post_init__(self) -> None:
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ConfigError("max_attempts must be at least 1 or None")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ConfigError("delays must not be negative")
        if self.backoff_factor < 1:
            raise ConfigError("backoff_factor must be at least 1")

    def delay_for(self, attempt: int) -> float:
        """Delay before the given (1-based) reconnect attempt."""
        return min(self.base_delay * self.backoff_factor ** (attempt - 1), self.max_delay)

    def allows(self, attempt: int) -> bool:
        """Whether the given (1-based) reconnect attempt may be made."""
        return self.max_attempts is None or attempt <= self.max_attempts


@dataclass(frozen=True)
class TransportConfig:
    """Endpoints, timeouts and policies shared by both executors."""

    base_url: str = DEFAULT_BASE_URL
    ws_url: str = DEFAULT_WS_URL
    request_timeout: float = 30.0
    connect_timeout: float = 15.0
    ping_interval: int | None = 20
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    reconnect: ReconnectPolicy = field(default_factory=ReconnectPolicy)


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load YAML file with error handling."""
    if not path.exists():
        raise ConfigError(f"File not found: {path}")
    with path.open() as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as err:
            raise ConfigError(f"Invalid YAML in {path}: {err}") from err
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping at top level of {path}")
    return data


def _build(cls: type, section: str, data: Any) -> Any:
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigError(f"Section '{section}' must be a mapping")
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"Unknown keys in '{section}': {', '.join(sorted(unknown))}")
    try:
        return cls(**data)
    except TypeError as err:
        raise ConfigError(f"Invalid values in '{section}': {err}") from err


def load_config(path: Path) -> TransportConfig:
    """Load transport configuration from a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed TransportConfig; omitted sections keep their defaults.

    Raises:
        ConfigError: If the file is missing or holds invalid settings.
    """
    data = _load_yaml(path)

    unknown = set(data) - {"http", "retry", "reconnect"}
    if unknown:
        raise ConfigError(f"Unknown sections: {', '.join(sorted(unknown))}")

    http = data.get("http") or {}
    if not isinstance(http, dict):
        raise ConfigError("Section 'http' must be a mapping")
    http_keys = {"base_url", "ws_url", "request_timeout", "connect_timeout", "ping_interval"}
    unknown = set(http) - http_keys
    if unknown:
        raise ConfigError(f"Unknown keys in 'http': {', '.join(sorted(unknown))}")

    return TransportConfig(
        **http,
        retry=_build(RetryPolicy, "retry", data.get("retry")),
        reconnect=_build(ReconnectPolicy, "reconnect", data.get("reconnect")),
    )
