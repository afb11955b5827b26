"""CLI module for agent-builder runs.

Provides command-line interface for:
- Creating run workspaces
- Validating blueprints
- Planning and applying scaffolds
- Approving stages and cleaning up
"""

from agent_builder.cli.main import cli

__all__ = ["cli"]
