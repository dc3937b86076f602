"""Go code execution service package.

This package runs untrusted Go snippets and formats Go source on behalf of
a browser editor.  Each request gets its own temporary workspace, one
child process with a wall-clock deadline, and a structured JSON result.

The top‑level modules include:

* ``config`` – configuration handling for environment variables.
* ``models`` – Pydantic models defining request and response schemas.
* ``workspace`` – per-request temporary directories.
* ``executor`` – process runner, admission control and the ``go run`` /
  ``gofmt`` executors.
* ``api`` – FastAPI application exposing HTTP endpoints.
"""
