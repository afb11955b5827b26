"""
Filesystem safety helpers for run workspaces.

Run workspaces are throwaway directories. ``remove_workdir`` deletes one
recursively, but only when it sits inside the workspace root, unless the
caller explicitly forces it.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)

PathLike = str | os.PathLike[str]

__all__ = [
    "UnsafeWorkdirError",
    "is_within_workspace_root",
    "remove_workdir",
]


class UnsafeWorkdirError(Exception):
    """Raised when deleting a directory outside the workspace root without force."""

    def __init__(self, workdir: PathLike, workspace_root: PathLike):
        self.workdir = Path(workdir)
        self.workspace_root = Path(workspace_root)
        super().__init__(
            f"Refusing to delete {self.workdir}: it is not inside {self.workspace_root} "
            "(use --force to override)"
        )


def _normalize(path: PathLike) -> Path:
    # Lexical only: "..", "." and relative segments collapse, symlinks are not followed
    return Path(os.path.abspath(os.fspath(path)))


def _is_relative_to(path: Path, parent: Path) -> bool:
    try:
        path.relative_to(parent)
    except ValueError:
        return False
    return True


def is_within_workspace_root(workdir: PathLike, workspace_root: PathLike) -> bool:
    """
    Return True if ``workdir`` is strictly inside ``workspace_root``.

    The root itself is not considered inside. Containment is decided on
    normalized paths without touching the filesystem.
    """
    child = _normalize(workdir)
    root = _normalize(workspace_root)
    return child != root and _is_relative_to(child, root)


def remove_workdir(workdir: PathLike, workspace_root: PathLike, force: bool = False) -> bool:
    """
    Recursively delete a run workspace.

    Args:
        workdir: Directory to delete
        workspace_root: Root that run workspaces live under
        force: Delete even when ``workdir`` is outside ``workspace_root``

    Returns:
        True if something was deleted, False if ``workdir`` did not exist

    Raises:
        UnsafeWorkdirError: If ``workdir`` is outside the root and force is off
    """
    target = _normalize(workdir)
    if not target.exists():
        return False

    if not is_within_workspace_root(target, workspace_root):
        if not force:
            raise UnsafeWorkdirError(target, workspace_root)
        logger.warning("Deleting %s outside workspace root %s (forced)", target, workspace_root)

    if target.is_symlink() or not target.is_dir():
        target.unlink()
    else:
        shutil.rmtree(target)
    logger.info("Deleted workdir %s", target)
    return True
