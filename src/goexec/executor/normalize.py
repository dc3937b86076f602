"""Turn raw process outcomes into response models.

These are pure functions apart from :func:`normalize_format`, which may
read the materialized source file back.  Every path produces a model that
satisfies ``error is not None`` exactly when ``success`` is false.
"""

from __future__ import annotations

from pathlib import Path

from ..models import ExecutionResult, FormatResult
from .base import ProcessOutcome


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def normalize_execution(outcome: ProcessOutcome) -> ExecutionResult:
    """Map a ``go run`` outcome onto an :class:`ExecutionResult`.

    Streams are passed through untouched (no truncation, no ANSI
    stripping).  ``error`` is the failure description, never the stderr
    text, which is reported separately.
    """
    return ExecutionResult(
        stdout=_decode(outcome.stdout),
        stderr=_decode(outcome.stderr),
        execution_ms=max(0, round(outcome.elapsed * 1000)),
        error=str(outcome.error) if outcome.error is not None else None,
        success=outcome.error is None,
    )


def execution_failure(message: str) -> ExecutionResult:
    return ExecutionResult(error=message, success=False)


def normalize_format(outcome: ProcessOutcome, source_path: Path) -> FormatResult:
    """Map a formatter outcome onto a :class:`FormatResult`.

    A formatter that rewrites the file in place prints nothing, so empty
    stdout falls back to the file contents.  This has to run before the
    workspace is released.
    """
    if outcome.error is not None:
        message = f"Failed to format code: {outcome.error}"
        diagnostic = _decode(outcome.stderr).strip()
        if diagnostic:
            message = f"{message}\n{diagnostic}"
        return format_failure(message)

    formatted = _decode(outcome.stdout)
    if not formatted:
        try:
            formatted = source_path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            return format_failure(f"Failed to read formatted file: {exc}")
    if not formatted:
        return format_failure("Failed to format code: formatter produced no output")
    return FormatResult(formatted_code=formatted, success=True)


def format_failure(message: str) -> FormatResult:
    return FormatResult(error=message, success=False)
