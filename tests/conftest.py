"""Shared fixtures.

The executors are pointed at the Python interpreter instead of the Go
toolchain so the suite runs on machines without Go.  ``python main.go``
happily executes the materialized file as a script.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

from goexec.executor import GofmtExecutor, GoRunExecutor
from goexec.workspace import WorkspaceProvisioner


PYTHON = (sys.executable,)

# Stand-in formatter: rejects invalid Python, strips trailing whitespace and
# blank lines at both ends.  Output is a fixed point of the transformation.
FORMATTER = (
    sys.executable,
    "-c",
    "import sys\n"
    "src = open(sys.argv[1], encoding='utf-8').read()\n"
    "compile(src, sys.argv[1], 'exec')\n"
    "lines = [line.rstrip() for line in src.splitlines()]\n"
    "sys.stdout.write('\\n'.join(lines).strip('\\n') + '\\n')\n",
)

# Stand-in for a formatter that rewrites the file and prints nothing.
IN_PLACE_FORMATTER = (
    sys.executable,
    "-c",
    "import sys\n"
    "path = sys.argv[1]\n"
    "src = open(path, encoding='utf-8').read()\n"
    "open(path, 'w', encoding='utf-8').write(src.replace('\\t', '    '))\n",
)


@pytest.fixture
def workspace_root(tmp_path) -> Path:
    root = tmp_path / "workspaces"
    root.mkdir()
    return root


@pytest.fixture
def provisioner(workspace_root) -> WorkspaceProvisioner:
    return WorkspaceProvisioner(root=str(workspace_root))


@pytest.fixture
def run_executor(provisioner) -> GoRunExecutor:
    return GoRunExecutor(provisioner, command=PYTHON, timeout=10)


@pytest.fixture
def format_executor(provisioner) -> GofmtExecutor:
    return GofmtExecutor(provisioner, command=FORMATTER, timeout=10)
