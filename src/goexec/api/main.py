"""
FastAPI application for the Go execution service.

This module configures the FastAPI application, registers the execute and
format endpoints, and enforces optional authentication via an API key.
Handlers are plain ``def`` functions: FastAPI runs them in its worker
thread pool, so each request blocks only its own thread while the child
process runs.
"""

from __future__ import annotations

import logging
from typing import Dict

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..config import Config
from ..executor import CapacityExceeded, ConcurrencyLimiter, GofmtExecutor, GoRunExecutor
from ..models import CodeRequest, ExecutionResult, FormatResult
from ..workspace import WorkspaceProvisioner


logger = logging.getLogger("goexec")

if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter("[goexec] %(levelname)s - %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)


config = Config.from_env()

logger.setLevel(config.log_level)

logger.info(
    "Loaded config: go=%s, gofmt=%s, workspace_root=%s, max_exec=%s, max_concurrent=%s",
    config.go_binary,
    config.gofmt_binary,
    config.workspace_root or "<system temp>",
    config.max_execution_seconds,
    config.max_concurrent_runs,
)

provisioner = WorkspaceProvisioner(root=config.workspace_root)

# One limiter for both endpoints: it bounds child processes, not requests per route
limiter = ConcurrencyLimiter(config.max_concurrent_runs, config.queue_timeout_seconds)

EXECUTORS = {
    "execute": GoRunExecutor(
        provisioner,
        command=(config.go_binary, "run"),
        timeout=config.max_execution_seconds,
        limiter=limiter,
    ),
    "format": GofmtExecutor(
        provisioner,
        command=(config.gofmt_binary, "-s"),
        timeout=config.format_timeout_seconds,
        limiter=limiter,
    ),
}


app = FastAPI(title="Go Code Execution Service", version="0.1.0")


@app.middleware("http")
async def authenticate(request: Request, call_next):
    """Middleware to enforce API key authentication on all requests."""
    path = request.url.path
    method = request.method
    client = getattr(request.client, "host", "unknown")

    logger.info("Incoming request: %s %s from %s", method, path, client)

    if config.api_key and request.headers.get("x-api-key") != config.api_key:
        logger.warning("Invalid API key for %s %s from %s", method, path, client)
        return JSONResponse(status_code=401, content={"detail": "Invalid API key"})

    response = await call_next(request)
    logger.info("Response: %s %s -> %s", method, path, response.status_code)
    return response


@app.exception_handler(RequestValidationError)
async def invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Reject malformed bodies before they reach an executor."""
    logger.warning("Invalid request body for %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"detail": "Invalid request body"})


@app.get("/health")
def health() -> Dict[str, str]:
    """Return a simple health check response."""
    return {"status": "ok"}


def _handle(name: str, req: CodeRequest):
    try:
        return EXECUTORS[name].handle(req.code)
    except CapacityExceeded as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    except Exception as exc:
        logger.exception("[/api/%s] Unhandled error: %s", name, exc)
        raise HTTPException(status_code=500, detail="Execution error")


@app.post("/api/execute", response_model=ExecutionResult, response_model_exclude_none=True)
def execute_code(req: CodeRequest) -> ExecutionResult:
    """Compile and run a complete Go program."""
    return _handle("execute", req)


@app.post("/api/format", response_model=FormatResult, response_model_exclude_none=True)
def format_code(req: CodeRequest) -> FormatResult:
    """Format Go source with gofmt."""
    return _handle("format", req)
