"""
Base interfaces and helpers for the execution backends.

All concrete executors inherit from :class:`CodeExecutor`, which owns the
per-request lifecycle: wait for an admission slot, provision a workspace,
write the submitted source, launch one child process against it, turn the
raw outcome into a response model and remove the workspace again.

The child process itself is started by :func:`run_process`.  It captures
stdout and stderr separately, measures wall-clock time and enforces a
deadline by killing the child's whole process group.  Failures of the
child are *returned* as :class:`ProcessError` values on the outcome rather
than raised, so a misbehaving program can never take down the request
thread.

No privilege or resource isolation happens here.  Processes run with the
same user and limits as the service; an isolation layer would wrap
:func:`run_process` without changing its contract.
"""

from __future__ import annotations

import abc
import contextlib
import logging
import os
import signal
import subprocess
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Mapping, Optional, Sequence

from pydantic import BaseModel

from ..workspace import ProvisioningError, Workspace, WorkspaceProvisioner


logger = logging.getLogger(__name__)


class ProcessError(Exception):
    """Base class for the ways a child process can fail."""


class LaunchError(ProcessError):
    """The executable could not be started at all."""

    def __init__(self, command: str, cause: OSError) -> None:
        self.command = command
        self.cause = cause
        super().__init__(f"failed to start {command!r}: {cause.strerror or cause}")


class ExitStatusError(ProcessError):
    def __init__(self, returncode: int) -> None:
        self.returncode = returncode
        super().__init__(f"exit status {returncode}")


class SignalError(ProcessError):
    def __init__(self, signum: int) -> None:
        self.signum = signum
        try:
            name = signal.Signals(signum).name
        except ValueError:
            name = str(signum)
        super().__init__(f"signal: {name}")


class ExecutionTimeout(ProcessError):
    """The deadline expired and the process group was killed."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"timed out after {timeout:g}s")


class CapacityExceeded(Exception):
    """No execution slot became free within the queue timeout."""


@dataclass
class ProcessOutcome:
    """Raw result of one child process.

    Attributes
    ----------
    stdout: bytes
        Everything the process wrote to standard output.
    stderr: bytes
        Everything the process wrote to standard error.
    elapsed: float
        Wall‑clock seconds from just before launch to termination.
    error: ProcessError, optional
        ``None`` when the process exited with status zero.
    """

    stdout: bytes
    stderr: bytes
    elapsed: float
    error: Optional[ProcessError] = None


# Once the group is killed, wait at most this long for the pipes to close.
KILL_GRACE_SECONDS = 1.0


def _kill_group(process: subprocess.Popen) -> None:
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        # group already gone
        pass


def _drain_after_kill(
    process: subprocess.Popen, partial: subprocess.TimeoutExpired
) -> tuple[bytes, bytes]:
    """Collect what is left on the pipes without waiting on escaped processes.

    A descendant that moved to its own session survives the group kill and
    may hold the pipes open forever, so reading stops after a short grace
    period and the pipes are closed on our side.
    """
    try:
        return process.communicate(timeout=KILL_GRACE_SECONDS)
    except subprocess.TimeoutExpired as exc:
        logger.warning("Output pipes of %s still open after kill; abandoning them", process.args[0])
        stdout, stderr = exc.output or partial.output, exc.stderr or partial.stderr
    for pipe in (process.stdout, process.stderr):
        if pipe is not None:
            pipe.close()
    process.wait()
    return stdout or b"", stderr or b""


def run_process(
    args: Sequence[str],
    cwd: Path,
    timeout: float,
    env: Optional[Mapping[str, str]] = None,
) -> ProcessOutcome:
    """
    Run one command in ``cwd`` and capture its output.

    The child gets its own session so that, when the deadline expires, the
    kill reaches everything it spawned (``go run`` builds and then execs a
    separate binary).  Output captured before the kill is kept, and the
    call returns shortly after the deadline even if some descendant
    escaped the kill and still holds the output pipes.

    Parameters
    ----------
    args: Sequence[str]
        Command and arguments to execute.
    cwd: Path
        Working directory for the subprocess.
    timeout: float
        Wall‑clock deadline in seconds.
    env: Mapping[str, str], optional
        Environment for the child.  Inherits the service's when omitted.

    Returns
    -------
    ProcessOutcome
        Captured streams, elapsed time and the failure, if any.
    """
    start_time = time.perf_counter()
    try:
        process = subprocess.Popen(
            list(args),
            cwd=str(cwd),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=dict(env) if env is not None else None,
            start_new_session=True,
        )
    except OSError as exc:
        elapsed = time.perf_counter() - start_time
        logger.warning("Could not start %s: %s", args[0], exc)
        return ProcessOutcome(b"", b"", elapsed, LaunchError(args[0], exc))

    timed_out = False
    try:
        stdout, stderr = process.communicate(timeout=timeout)
    except subprocess.TimeoutExpired as exc:
        # the child is not reaped yet, so its pid still names the group
        timed_out = True
        _kill_group(process)
        stdout, stderr = _drain_after_kill(process, exc)
    finally:
        elapsed = time.perf_counter() - start_time
        if process.poll() is None:
            _kill_group(process)
            process.wait()

    error: Optional[ProcessError] = None
    if timed_out:
        logger.warning("Process %s killed after %ss deadline", args[0], timeout)
        error = ExecutionTimeout(timeout)
    elif process.returncode < 0:
        error = SignalError(-process.returncode)
    elif process.returncode > 0:
        error = ExitStatusError(process.returncode)
    return ProcessOutcome(stdout or b"", stderr or b"", elapsed, error)


class ConcurrencyLimiter:
    """Bound the number of child processes running at the same time.

    A request waits up to ``acquire_timeout`` seconds for a free slot and
    is rejected with :class:`CapacityExceeded` otherwise.
    """

    def __init__(self, max_concurrent: int, acquire_timeout: float) -> None:
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self.max_concurrent = max_concurrent
        self.acquire_timeout = acquire_timeout
        self._slots = threading.BoundedSemaphore(max_concurrent)

    @contextlib.contextmanager
    def slot(self) -> Iterator[None]:
        if not self._slots.acquire(timeout=self.acquire_timeout):
            logger.warning(
                "Rejecting request: %d execution slots busy for %ss",
                self.max_concurrent,
                self.acquire_timeout,
            )
            raise CapacityExceeded(
                f"All {self.max_concurrent} execution slots are busy; try again later"
            )
        try:
            yield
        finally:
            self._slots.release()


class CodeExecutor(abc.ABC):
    """
    Abstract base class binding one command line to one result shape.

    Subclasses provide the command prefix (the source file name is
    appended) and override :meth:`normalize` and :meth:`failure` to build
    their response model.
    """

    def __init__(
        self,
        command: Sequence[str],
        provisioner: WorkspaceProvisioner,
        timeout: int = 30,
        limiter: Optional[ConcurrencyLimiter] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        """
        Parameters
        ----------
        command: Sequence[str]
            Executable and leading arguments, e.g. ``("go", "run")``.
        provisioner: WorkspaceProvisioner
            Source of per-request workspaces.
        timeout: int, optional
            Wall‑clock deadline (in seconds) for the child process.
        limiter: ConcurrencyLimiter, optional
            Admission control shared between executors.  ``None`` admits
            every request.
        env: Mapping[str, str], optional
            Environment for the child process.
        """
        if not command:
            raise ValueError("command must name an executable")
        self.command = tuple(command)
        self.provisioner = provisioner
        self.timeout = timeout
        self.limiter = limiter
        self.env = env

    def build_command(self, source_path: Path) -> list[str]:
        # the child runs inside the workspace, so the bare file name keeps
        # temp paths out of compiler diagnostics
        return [*self.command, source_path.name]

    @abc.abstractmethod
    def normalize(self, outcome: ProcessOutcome, source_path: Path) -> BaseModel:
        """Convert the raw outcome into the response model.

        Called while the workspace still exists, so ``source_path`` may be
        read back.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def failure(self, message: str) -> BaseModel:
        """Build a failed response for a request that never ran."""
        raise NotImplementedError

    def child_env(self, workspace: Workspace) -> Optional[dict[str, str]]:
        """Environment for the child of this request.  ``None`` inherits ours."""
        return dict(self.env) if self.env is not None else None

    def handle(self, code: str) -> BaseModel:
        """Run ``code`` through the bound command and return the result.

        Raises
        ------
        CapacityExceeded
            When no execution slot frees up in time.  No workspace is
            created in that case.
        """
        with self._admission():
            try:
                with self.provisioner.workspace() as workspace:
                    source_path = self.provisioner.materialize(workspace, code)
                    outcome = self._run_subprocess(
                        self.build_command(source_path),
                        workspace.path,
                        self.child_env(workspace),
                    )
                    return self.normalize(outcome, source_path)
            except ProvisioningError as exc:
                logger.error("%s: %s", type(self).__name__, exc)
                return self.failure(str(exc))

    def _admission(self) -> contextlib.AbstractContextManager:
        if self.limiter is None:
            return contextlib.nullcontext()
        return self.limiter.slot()

    def _run_subprocess(
        self,
        args: list[str],
        session_dir: Path,
        env: Optional[Mapping[str, str]] = None,
    ) -> ProcessOutcome:
        return run_process(args, session_dir, self.timeout, env=env)
