"""Staged workflow commands for the CLI.

Commands for driving an agent-builder run:
- start: Create a run workspace with Stage A/B material
- status: Show stage progress and the suggested next action
- approve: Record approval of the current stage
- validate-blueprint: Validate the draft blueprint
- plan: Dry-run the scaffold
- apply: Write the scaffold into a repository
- finish: Delete the run workspace

Exit codes: 0 success, 1 invalid blueprint or partially applied scaffold,
2 precondition failure (missing state, gating refusal, unsafe delete).
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import NoReturn

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from agent_builder.blueprints import (
    BlueprintLoadError,
    BlueprintValidationError,
    ValidationResult,
    load_blueprint_data,
    refine_blueprint,
    validate_blueprint,
)
from agent_builder.config import Config, get_config
from agent_builder.scaffold import TemplateCorpus, apply_scaffold, plan_scaffold
from agent_builder.utils.fs import UnsafeWorkdirError
from agent_builder.workflow import (
    STAGES,
    ApprovalError,
    RunWorkspace,
    WorkflowState,
    WorkflowStateError,
    approve_stage,
    ensure_apply_allowed,
    finish_run,
    next_action,
    record_apply,
    record_validation,
    resolve_blueprint_path,
    start_run,
    unapproved_stages,
)

console = Console()
err_console = Console(stderr=True)

EXIT_INVALID = 1
EXIT_PRECONDITION = 2

STATUS_STYLES = {
    "approved": "green",
    "applied": "green",
    "ready_for_review": "cyan",
    "in_progress": "yellow",
    "partially_applied": "red",
}

OUTCOME_STYLES = {
    "created": "green",
    "written": "green",
    "updated": "green",
    "failed": "red",
}


def _fail(message: str, code: int = EXIT_PRECONDITION) -> NoReturn:
    err_console.print(f"[red]Error:[/red] {escape(message)}", soft_wrap=True)
    sys.exit(code)


def _workspace(workdir: str, config: Config) -> RunWorkspace:
    return RunWorkspace(workdir, config.state_file)


def _load_state(workspace: RunWorkspace) -> WorkflowState:
    try:
        return workspace.load()
    except WorkflowStateError as e:
        _fail(e.message)


def _print_validation(result: ValidationResult, output_format: str = "text") -> None:
    if output_format == "json":
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if result.ok:
        console.print("[green]Blueprint is valid.[/green]")
    else:
        console.print(f"[red]Blueprint is invalid ({len(result.errors)} error(s)):[/red]")
        for error in result.errors:
            console.print(f"  - {escape(error)}", soft_wrap=True)
    if result.warnings:
        console.print(f"[yellow]Warnings ({len(result.warnings)}):[/yellow]")
        for warning in result.warnings:
            console.print(f"  - {escape(warning)}", soft_wrap=True)


def _load_and_validate(blueprint_path: Path) -> tuple[object, ValidationResult]:
    try:
        data = load_blueprint_data(blueprint_path)
    except BlueprintLoadError as e:
        _fail(e.message)
    return data, validate_blueprint(data)


def _refine_or_fail(data, result: ValidationResult, action: str):
    if not result.ok:
        err_console.print(f"[red]Blueprint is invalid. Fix errors before {action}.[/red]")
        _print_validation(result)
        sys.exit(EXIT_INVALID)
    try:
        return refine_blueprint(data, result)
    except BlueprintValidationError as e:
        for error in e.errors:
            err_console.print(f"  - {escape(error)}", soft_wrap=True)
        _fail(e.message, EXIT_INVALID)


def _scan_corpus(config: Config) -> TemplateCorpus:
    try:
        return TemplateCorpus.scan(config.templates_dir)
    except FileNotFoundError as e:
        _fail(str(e))


@click.command()
@click.option(
    "--workdir", "-w",
    default=None,
    type=click.Path(file_okay=False),
    help="Run workspace (default: <workspace_root>/<run_id>)",
)
def start(workdir: str | None) -> None:
    """Create a run workspace and seed the blueprint draft.

    Example:
        agent-builder start
    """
    config = get_config()
    try:
        workspace, state = start_run(config, workdir)
    except OSError as e:
        _fail(f"Could not create run workspace: {e}")

    console.print("[bold green]agent-builder run created[/bold green]")
    console.print(f"  Run ID:  {state.run_id}")
    console.print(f"  Workdir: {workspace.workdir}", soft_wrap=True)
    console.print()
    console.print("Next steps:")
    console.print(f"  1) Fill Stage A notes: {workspace.stage_dir('A')}", soft_wrap=True)
    console.print("  2) Draft blueprint: stageB/agent-blueprint.json")
    console.print("  3) Validate: agent-builder validate-blueprint --workdir <workdir>")
    console.print("  4) Plan/apply scaffold into repo: plan/apply --repo-root <repo>")
    console.print()
    console.print("[dim]Stage A material is temporary; do not commit this workdir.[/dim]")


@click.command()
@click.option("--workdir", "-w", required=True, type=click.Path(file_okay=False), help="Run workspace")
def status(workdir: str) -> None:
    """Show stage progress and the suggested next action.

    Example:
        agent-builder status --workdir /tmp/agent_builder/ab_...
    """
    config = get_config()
    state = _load_state(_workspace(workdir, config))

    console.print(f"[bold]Run: {state.run_id}[/bold]")
    console.print(f"  Current stage: {state.current_stage}")
    console.print()

    table = Table(show_header=True)
    table.add_column("Stage", style="cyan")
    table.add_column("Status")
    table.add_column("Approved")
    for name in STAGES:
        record = state.stages.get(name)
        stage_status = record.status if record else "n/a"
        style = STATUS_STYLES.get(stage_status, "dim")
        approved = "yes" if state.is_approved(name) else "no"
        table.add_row(name, f"[{style}]{stage_status}[/{style}]", approved)
    console.print(table)

    console.print()
    console.print("Suggested next action:")
    console.print(f"  {next_action(state)}")


@click.command()
@click.option("--workdir", "-w", required=True, type=click.Path(file_okay=False), help="Run workspace")
@click.option(
    "--stage", "-s",
    required=True,
    type=click.Choice(list(STAGES)),
    help="Stage to approve",
)
def approve(workdir: str, stage: str) -> None:
    """Record approval of the current stage.

    Stages are approved in order; stage B needs a passing
    validate-blueprint first.

    Example:
        agent-builder approve --workdir <dir> --stage A
    """
    config = get_config()
    workspace = _workspace(workdir, config)
    state = _load_state(workspace)

    try:
        outcome = approve_stage(state, stage)
    except ApprovalError as e:
        err_console.print(f"  {next_action(state)}")
        _fail(e.message)

    if not outcome.changed:
        console.print(f"[yellow]Stage {stage} is already approved.[/yellow] Current stage: {state.current_stage}")
        return

    workspace.save(state)
    console.print(f"[green]Approved stage {stage}.[/green] Current stage is now {outcome.current_stage}.")


@click.command(name="validate-blueprint")
@click.option("--workdir", "-w", required=True, type=click.Path(file_okay=False), help="Run workspace")
@click.option("--blueprint", "-b", default=None, type=click.Path(dir_okay=False), help="Blueprint file override")
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
    help="Output format",
)
def validate_blueprint_cmd(workdir: str, blueprint: str | None, output_format: str) -> None:
    """Validate the run's blueprint draft.

    Examples:
        agent-builder validate-blueprint --workdir <dir>
        agent-builder validate-blueprint --workdir <dir> --format json
    """
    config = get_config()
    workspace = _workspace(workdir, config)
    try:
        state = workspace.load_optional()
    except WorkflowStateError as e:
        _fail(e.message)

    blueprint_path = resolve_blueprint_path(workspace, state, blueprint)
    _, result = _load_and_validate(blueprint_path)
    _print_validation(result, output_format)

    if state is not None and record_validation(state, result, blueprint_path):
        workspace.save(state)

    if not result.ok:
        sys.exit(EXIT_INVALID)


@click.command()
@click.option("--workdir", "-w", required=True, type=click.Path(file_okay=False), help="Run workspace")
@click.option("--repo-root", "-r", required=True, type=click.Path(file_okay=False), help="Target repository root")
@click.option("--blueprint", "-b", default=None, type=click.Path(dir_okay=False), help="Blueprint file override")
def plan(workdir: str, repo_root: str, blueprint: str | None) -> None:
    """Show the scaffold operations without writing anything.

    Example:
        agent-builder plan --workdir <dir> --repo-root .
    """
    config = get_config()
    workspace = _workspace(workdir, config)
    try:
        state = workspace.load_optional()
    except WorkflowStateError as e:
        _fail(e.message)

    data, result = _load_and_validate(resolve_blueprint_path(workspace, state, blueprint))
    refined = _refine_or_fail(data, result, "planning")

    corpus = _scan_corpus(config)
    scaffold_plan = plan_scaffold(refined, repo_root, corpus, config.default_prompt_tier)

    console.print(f"[bold]Planned operations (dry-run), prompt tier {scaffold_plan.prompt_tier}:[/bold]")
    for op in scaffold_plan:
        console.print(f"  - {escape(op.describe(scaffold_plan.repo_root))}", soft_wrap=True)
    console.print()
    console.print(f"{len(scaffold_plan)} operation(s). Run apply --apply to write them.")


@click.command()
@click.option("--workdir", "-w", required=True, type=click.Path(file_okay=False), help="Run workspace")
@click.option("--repo-root", "-r", required=True, type=click.Path(file_okay=False), help="Target repository root")
@click.option("--blueprint", "-b", default=None, type=click.Path(dir_okay=False), help="Blueprint file override")
@click.option("--apply", "do_apply", is_flag=True, help="Actually write files (required)")
@click.option("--overwrite", is_flag=True, help="Replace existing files instead of skipping them")
def apply(workdir: str, repo_root: str, blueprint: str | None, do_apply: bool, overwrite: bool) -> None:
    """Write the scaffold into the repository.

    Existing files are skipped unless --overwrite is given.

    Example:
        agent-builder apply --workdir <dir> --repo-root . --apply
    """
    if not do_apply:
        _fail("Refusing to write without --apply. (Run `plan` first.)")

    config = get_config()
    workspace = _workspace(workdir, config)
    state = _load_state(workspace)

    try:
        ensure_apply_allowed(state)
    except ApprovalError as e:
        _fail(e.message)

    data, result = _load_and_validate(resolve_blueprint_path(workspace, state, blueprint))
    refined = _refine_or_fail(data, result, "apply")

    corpus = _scan_corpus(config)
    scaffold_plan = plan_scaffold(refined, repo_root, corpus, config.default_prompt_tier)
    with console.status("[bold blue]Applying scaffold..."):
        report = apply_scaffold(scaffold_plan, refined, corpus, commit=True, overwrite=overwrite)

    table = Table(show_header=True)
    table.add_column("Action", style="cyan")
    table.add_column("Status")
    table.add_column("Path", overflow="fold")
    for outcome in report:
        status_text = outcome.status if not outcome.reason else f"{outcome.status} ({outcome.reason})"
        style = OUTCOME_STYLES.get(outcome.status, "dim")
        try:
            shown = outcome.path.relative_to(scaffold_plan.repo_root).as_posix()
        except ValueError:
            shown = str(outcome.path)
        table.add_row(outcome.action, f"[{style}]{escape(status_text)}[/{style}]", escape(shown))
    console.print(table)

    stage_c_status = record_apply(state, report, scaffold_plan.repo_root, refined.agent_id)
    workspace.save(state)

    summary = ", ".join(f"{name}={count}" for name, count in sorted(report.counts.items()))
    console.print(f"Summary: {summary}")
    console.print(f"  Agent module: {scaffold_plan.module_root}", soft_wrap=True)
    console.print(f"  Docs:         {scaffold_plan.docs_root}", soft_wrap=True)
    console.print(f"  Registry:     {scaffold_plan.registry_path}", soft_wrap=True)

    if stage_c_status == "partially_applied":
        _fail(f"{len(report.failed)} operation(s) failed; scaffold partially applied.", EXIT_INVALID)
    console.print("[bold green]Scaffold applied.[/bold green]")


@click.command()
@click.option("--workdir", "-w", required=True, type=click.Path(file_okay=False), help="Run workspace")
@click.option("--force", is_flag=True, help="Delete even outside the workspace root")
def finish(workdir: str, force: bool) -> None:
    """Delete the run workspace.

    Only workspaces under the configured workspace root are deleted
    unless --force is given.

    Example:
        agent-builder finish --workdir /tmp/agent_builder/ab_...
    """
    config = get_config()
    workspace = _workspace(workdir, config)

    if not workspace.workdir.exists():
        console.print(f"Workdir does not exist: {workspace.workdir}", soft_wrap=True)
        return

    try:
        state = workspace.load_optional()
    except WorkflowStateError as e:
        err_console.print(f"[yellow]Warning:[/yellow] {escape(e.message)}", soft_wrap=True)
        state = None

    pending = unapproved_stages(state)
    if pending:
        err_console.print(
            f"[yellow]Warning:[/yellow] stages not approved: {', '.join(pending)}"
        )

    try:
        finish_run(workspace, config.workspace_root, force=force)
    except UnsafeWorkdirError as e:
        _fail(str(e))
    except OSError as e:
        _fail(f"Failed to delete {workspace.workdir}: {e}")

    console.print(f"[green]Deleted workdir:[/green] {workspace.workdir}", soft_wrap=True)
