"""Main CLI entry point for agent-builder.

Usage:
    agent-builder --help
    agent-builder start
    agent-builder validate-blueprint --workdir <dir>
    agent-builder apply --workdir <dir> --repo-root . --apply
"""

import click

from agent_builder.cli.commands import (
    apply,
    approve,
    finish,
    plan,
    start,
    status,
    validate_blueprint_cmd,
)
from agent_builder.config import get_config
from agent_builder.utils.log_helpers import setup_logging


@click.group()
@click.version_option(package_name="agent-builder")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Blueprint-driven agent scaffolding with staged approvals.

    A run moves through five stages, each signed off with approve:
    A interview, B blueprint, C scaffold, D implementation, E verification.

    Commands:
        start               - Create a run workspace
        status              - Show stage progress
        approve             - Approve the current stage
        validate-blueprint  - Validate the blueprint draft
        plan                - Dry-run the scaffold
        apply               - Write the scaffold into a repository
        finish              - Delete the run workspace
    """
    config = get_config()
    setup_logging("DEBUG" if verbose else config.effective_log_level)


cli.add_command(start)
cli.add_command(status)
cli.add_command(approve)
cli.add_command(validate_blueprint_cmd, name="validate-blueprint")
cli.add_command(plan)
cli.add_command(apply)
cli.add_command(finish)


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
