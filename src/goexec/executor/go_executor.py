"""
Executor for running Go programs.

The submitted source is written to ``main.go`` in a fresh workspace and
run with ``go run``, which compiles to a throwaway binary and executes it.
Compile errors and runtime panics both surface as a non-zero exit status
with the diagnostics on stderr.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping, Optional, Sequence

from ..models import ExecutionResult
from ..workspace import Workspace, WorkspaceProvisioner
from .base import CodeExecutor, ConcurrencyLimiter, ProcessOutcome
from .normalize import execution_failure, normalize_execution


logger = logging.getLogger(__name__)

GO_TMP_DIRNAME = ".gotmp"


class GoRunExecutor(CodeExecutor):
    """Execute a Go program with ``go run`` in an isolated directory."""

    def __init__(
        self,
        provisioner: WorkspaceProvisioner,
        command: Sequence[str] = ("go", "run"),
        timeout: int = 30,
        limiter: Optional[ConcurrencyLimiter] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        super().__init__(command, provisioner, timeout, limiter, env)

    def child_env(self, workspace: Workspace) -> dict[str, str]:
        # go run keeps its build directory (compiled binary included) under
        # GOTMPDIR and only removes it on a clean exit
        env = dict(os.environ if self.env is None else self.env)
        env["GOTMPDIR"] = str(self.provisioner.scratch_dir(workspace, GO_TMP_DIRNAME))
        return env

    def normalize(self, outcome: ProcessOutcome, source_path: Path) -> ExecutionResult:
        result = normalize_execution(outcome)
        logger.info(
            "Execution finished: success=%s, error=%s, execution_ms=%s",
            result.success,
            result.error,
            result.execution_ms,
        )
        return result

    def failure(self, message: str) -> ExecutionResult:
        return execution_failure(message)
