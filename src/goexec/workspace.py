"""Per-request workspaces.

Every request gets its own freshly created directory holding a single
``main.go``.  Directories are created with :func:`tempfile.mkdtemp`, which
creates the directory exclusively and retries on a name clash, so
concurrent requests never land in the same place.  Removal is best effort:
a failure is logged and never turned into a request error.
"""

from __future__ import annotations

import contextlib
import logging
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional


logger = logging.getLogger(__name__)

SOURCE_FILENAME = "main.go"


class ProvisioningError(Exception):
    """The workspace could not be created or populated."""


@dataclass
class Workspace:
    path: Path
    released: bool = False


class WorkspaceProvisioner:
    """Create, populate and remove per-request workspaces.

    Parameters
    ----------
    root: str, optional
        Parent directory for workspaces.  ``None`` uses the system
        temporary directory.
    prefix: str
        Directory name prefix, handy when looking for leftovers.
    filename: str
        Name of the single source file written into each workspace.
    """

    def __init__(
        self,
        root: Optional[str] = None,
        prefix: str = "goexec",
        filename: str = SOURCE_FILENAME,
    ) -> None:
        self.root = root
        self.prefix = prefix
        self.filename = filename

    def acquire(self) -> Workspace:
        try:
            path = tempfile.mkdtemp(prefix=self.prefix, dir=self.root)
        except OSError as exc:
            raise ProvisioningError(f"Failed to create temp directory: {exc}") from exc
        logger.debug("Acquired workspace %s", path)
        return Workspace(Path(path))

    def materialize(self, workspace: Workspace, code: str) -> Path:
        """Write ``code`` verbatim into the workspace and return its path."""
        source_path = workspace.path / self.filename
        try:
            # newline="" keeps the submitted line endings untouched
            with open(source_path, "w", encoding="utf-8", newline="") as fh:
                fh.write(code)
        except (OSError, UnicodeEncodeError) as exc:
            raise ProvisioningError(f"Failed to write temp file: {exc}") from exc
        return source_path

    def scratch_dir(self, workspace: Workspace, name: str) -> Path:
        """Create a directory inside the workspace for a tool's temporary files.

        It goes away with the workspace, so files the tool would have
        cleaned up itself (had it not been killed) do not outlive the request.
        """
        path = workspace.path / name
        try:
            path.mkdir()
        except OSError as exc:
            raise ProvisioningError(f"Failed to create scratch directory: {exc}") from exc
        return path

    def release(self, workspace: Workspace) -> None:
        if workspace.released:
            return
        workspace.released = True
        try:
            shutil.rmtree(workspace.path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Failed to remove workspace %s: %s", workspace.path, exc)
        else:
            logger.debug("Released workspace %s", workspace.path)

    @contextlib.contextmanager
    def workspace(self) -> Iterator[Workspace]:
        """Yield a fresh workspace and release it on every exit path."""
        ws = self.acquire()
        try:
            yield ws
        finally:
            self.release(ws)
