"""Configuration loader.

The execution service reads its configuration from environment variables so
the same container image can run in several contexts (docker‑compose, a
bare VM, CI).  Reasonable defaults are provided so that local development
works out of the box as long as the Go toolchain is on ``PATH``.

Environment variables:

``GOEXEC_API_KEY``
    Shared secret used to authenticate incoming requests.  When set, each
    client must include this value in the ``x‑api‑key`` header.  Empty
    disables the check.

``GOEXEC_GO_BINARY``
    Go toolchain driver used for ``go run``.  Defaults to ``go``.

``GOEXEC_GOFMT_BINARY``
    Formatter binary.  Defaults to ``gofmt``.

``GOEXEC_WORKSPACE_ROOT``
    Parent directory for per-request workspaces.  Defaults to the system
    temporary directory.

``GOEXEC_MAX_EXECUTION_SECONDS``
    Wall‑clock deadline (in seconds) for a single ``go run``.  Default is 30.

``GOEXEC_FORMAT_TIMEOUT_SECONDS``
    Wall‑clock deadline (in seconds) for a single formatter run.  Default 10.

``GOEXEC_MAX_CONCURRENT_RUNS``
    Number of child processes allowed at once across both endpoints.
    Default is 4.

``GOEXEC_QUEUE_TIMEOUT_SECONDS``
    How long a request waits for a free slot before being rejected.
    Default is 5.

``GOEXEC_LOG_LEVEL``
    Logging level name.  Defaults to ``INFO``.

``GOEXEC_HOST`` / ``PORT``
    Bind address and port for the API server.  Default ``0.0.0.0:8080``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _int_var(name: str, default: int, minimum: int) -> int:
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    try:
        number = int(val)
    except ValueError:
        raise ValueError(f"Invalid integer for {name}: {val}")
    if number < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {number}")
    return number


@dataclass
class Config:
    """Centralised configuration object."""

    api_key: str
    go_binary: str
    gofmt_binary: str
    workspace_root: Optional[str]
    max_execution_seconds: int
    format_timeout_seconds: int
    max_concurrent_runs: int
    queue_timeout_seconds: int
    log_level: str
    host: str
    port: int

    @classmethod
    def load(cls) -> "Config":
        # API key may be empty in local development but should be set in production.
        api_key = os.getenv("GOEXEC_API_KEY", "")

        go_binary = os.getenv("GOEXEC_GO_BINARY", "go").strip() or "go"
        gofmt_binary = os.getenv("GOEXEC_GOFMT_BINARY", "gofmt").strip() or "gofmt"
        workspace_root = os.getenv("GOEXEC_WORKSPACE_ROOT") or None

        log_level = os.getenv("GOEXEC_LOG_LEVEL", "INFO").strip().upper()
        if log_level not in _LOG_LEVELS:
            raise ValueError(f"Invalid GOEXEC_LOG_LEVEL: {log_level}")

        return cls(
            api_key=api_key,
            go_binary=go_binary,
            gofmt_binary=gofmt_binary,
            workspace_root=workspace_root,
            max_execution_seconds=_int_var("GOEXEC_MAX_EXECUTION_SECONDS", 30, 1),
            format_timeout_seconds=_int_var("GOEXEC_FORMAT_TIMEOUT_SECONDS", 10, 1),
            max_concurrent_runs=_int_var("GOEXEC_MAX_CONCURRENT_RUNS", 4, 1),
            queue_timeout_seconds=_int_var("GOEXEC_QUEUE_TIMEOUT_SECONDS", 5, 0),
            log_level=log_level,
            host=os.getenv("GOEXEC_HOST", "0.0.0.0"),
            port=_int_var("PORT", 8080, 1),
        )

    @classmethod
    def from_env(cls) -> "Config":
        """
        Alternate constructor used by the API to load configuration.

        This wrapper calls :meth:`load` to construct the configuration.
        It exists to provide a more intuitive name when consumed in
        application code.
        """
        return cls.load()
