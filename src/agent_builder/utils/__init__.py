"""
Utility functions for agent-builder.

Provides helpers for:
- Guarded deletion of run workspaces
- Logging setup
"""

from .fs import UnsafeWorkdirError, is_within_workspace_root, remove_workdir
from .log_helpers import setup_logging

__all__ = [
    "UnsafeWorkdirError",
    "is_within_workspace_root",
    "remove_workdir",
    "setup_logging",
]
