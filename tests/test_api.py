"""
API tests for the Go execution service.

These tests exercise the HTTP endpoints using FastAPI's TestClient.  The
executors are swapped for interpreter-backed ones pointing at a temporary
workspace root, so the tests verify the HTTP contract (status codes, JSON
field names, omitted fields) without needing the Go toolchain.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from goexec.api import main
from goexec.api.main import app
from goexec.executor import ConcurrencyLimiter, GofmtExecutor, GoRunExecutor

from .conftest import FORMATTER, PYTHON


@pytest.fixture(autouse=True)
def isolate_executors(provisioner, monkeypatch):
    """Point both endpoints at interpreter-backed executors and disable auth."""
    monkeypatch.setattr(main.config, "api_key", "")
    monkeypatch.setitem(main.EXECUTORS, "execute", GoRunExecutor(provisioner, command=PYTHON))
    monkeypatch.setitem(main.EXECUTORS, "format", GofmtExecutor(provisioner, command=FORMATTER))
    yield


@pytest.fixture
def client():
    return TestClient(app)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_execute_success(client, workspace_root):
    res = client.post("/api/execute", json={"code": "print('hello')"})
    assert res.status_code == 200
    data = res.json()
    assert data["success"] is True
    assert data["stdout"] == "hello\n"
    assert data["stderr"] == ""
    assert isinstance(data["executionMs"], int)
    assert data["executionMs"] >= 0
    assert "error" not in data
    assert list(workspace_root.iterdir()) == []


def test_execute_failure(client):
    res = client.post("/api/execute", json={"code": "raise SystemExit(2)"})
    assert res.status_code == 200
    data = res.json()
    assert data["success"] is False
    assert data["error"] == "exit status 2"
    assert data["stdout"] == ""
    assert data["stderr"] == ""


def test_execute_ignores_unknown_fields(client):
    res = client.post("/api/execute", json={"code": "print(1)", "language": "go"})
    assert res.status_code == 200
    assert res.json()["stdout"] == "1\n"


def test_format_success(client):
    res = client.post("/api/format", json={"code": "x = 1   \n\n\n"})
    assert res.status_code == 200
    assert res.json() == {"formattedCode": "x = 1\n", "success": True}


def test_format_failure(client):
    res = client.post("/api/format", json={"code": "def broken(:"})
    assert res.status_code == 200
    data = res.json()
    assert data["success"] is False
    assert "formattedCode" not in data
    assert data["error"].startswith("Failed to format code")


@pytest.mark.parametrize("path", ["/api/execute", "/api/format"])
@pytest.mark.parametrize(
    "kwargs",
    [
        {"content": b"not json", "headers": {"content-type": "application/json"}},
        {"json": {}},
        {"json": {"code": 5}},
        {"json": ["print(1)"]},
    ],
)
def test_malformed_body_is_rejected(client, workspace_root, monkeypatch, path, kwargs):
    def refuse(code):
        raise AssertionError("executor must not be reached")

    for executor in main.EXECUTORS.values():
        monkeypatch.setattr(executor, "handle", refuse)
    res = client.post(path, **kwargs)
    assert res.status_code == 400
    assert res.json() == {"detail": "Invalid request body"}
    assert list(workspace_root.iterdir()) == []


def test_api_key_required_when_configured(client, monkeypatch):
    monkeypatch.setattr(main.config, "api_key", "secret")
    res = client.post("/api/execute", json={"code": "print(1)"})
    assert res.status_code == 401
    assert res.json() == {"detail": "Invalid API key"}

    res = client.post("/api/execute", json={"code": "print(1)"}, headers={"x-api-key": "secret"})
    assert res.status_code == 200
    assert res.json()["stdout"] == "1\n"


def test_saturated_service_returns_503(client, provisioner, monkeypatch):
    limiter = ConcurrencyLimiter(max_concurrent=1, acquire_timeout=0)
    monkeypatch.setitem(
        main.EXECUTORS, "execute", GoRunExecutor(provisioner, command=PYTHON, limiter=limiter)
    )
    with limiter.slot():
        res = client.post("/api/execute", json={"code": "print(1)"})
    assert res.status_code == 503
    assert "busy" in res.json()["detail"]


def test_unexpected_error_returns_500(client, monkeypatch):
    def explode(code):
        raise RuntimeError("bug")

    monkeypatch.setattr(main.EXECUTORS["execute"], "handle", explode)
    res = client.post("/api/execute", json={"code": "print(1)"})
    assert res.status_code == 500
    assert res.json() == {"detail": "Execution error"}
