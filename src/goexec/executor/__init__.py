"""
Execution backends for the Go execution API.

Each executor binds one external command to one response shape on top of
the shared machinery in ``base.py``: admission control, per-request
workspaces, a deadline-bounded child process and result normalization.

* :class:`GoRunExecutor` – ``go run main.go`` → ``ExecutionResult``.
* :class:`GofmtExecutor` – ``gofmt -s main.go`` → ``FormatResult``.
"""

from .base import (
    CapacityExceeded,
    CodeExecutor,
    ConcurrencyLimiter,
    ExecutionTimeout,
    ExitStatusError,
    LaunchError,
    ProcessError,
    ProcessOutcome,
    SignalError,
    run_process,
)
from .go_executor import GoRunExecutor
from .gofmt_executor import GofmtExecutor

__all__ = [
    "CapacityExceeded",
    "CodeExecutor",
    "ConcurrencyLimiter",
    "ExecutionTimeout",
    "ExitStatusError",
    "LaunchError",
    "ProcessError",
    "ProcessOutcome",
    "SignalError",
    "run_process",
    "GoRunExecutor",
    "GofmtExecutor",
]
