"""
Executor for formatting Go source.

Runs ``gofmt -s`` (canonical layout plus simplifications) on the
materialized ``main.go``.  ``gofmt`` without ``-w`` prints the result and
leaves the file alone; a formatter configured to rewrite in place is
handled by reading the file back.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional, Sequence

from ..models import FormatResult
from ..workspace import WorkspaceProvisioner
from .base import CodeExecutor, ConcurrencyLimiter, ProcessOutcome
from .normalize import format_failure, normalize_format


logger = logging.getLogger(__name__)


class GofmtExecutor(CodeExecutor):
    """Format Go source with ``gofmt`` in an isolated directory."""

    def __init__(
        self,
        provisioner: WorkspaceProvisioner,
        command: Sequence[str] = ("gofmt", "-s"),
        timeout: int = 10,
        limiter: Optional[ConcurrencyLimiter] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        super().__init__(command, provisioner, timeout, limiter, env)

    def normalize(self, outcome: ProcessOutcome, source_path: Path) -> FormatResult:
        result = normalize_format(outcome, source_path)
        logger.info("Format finished: success=%s, error=%s", result.success, result.error)
        return result

    def failure(self, message: str) -> FormatResult:
        return format_failure(message)
