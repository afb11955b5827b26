"""
Stage orchestration for agent-builder runs.

Every operation takes the ``WorkflowState`` it works on explicitly; the
CLI loads state at the start of a command and saves it at the end.
Approval gating lives here:

- only the current stage can be approved, so stages are signed off in order
- stage B can only be approved after a successful blueprint validation
- an approval, once recorded, is never reset
"""

from __future__ import annotations

import json
import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from ..blueprints.schema import AgentBlueprint
from ..blueprints.validators import ValidationResult
from ..config import Config
from ..scaffold.applier import ApplyReport
from ..scaffold.templates import STAGE_A_ROOT, STAGE_B_ROOT, TemplateCorpus
from ..utils.fs import remove_workdir
from .state import (
    DEFAULT_BLUEPRINT_PATH,
    STAGES,
    RunWorkspace,
    WorkflowState,
    next_stage,
)

logger = logging.getLogger(__name__)

SEED_EXAMPLE = "agent-blueprint.example.api-worker.json"
BLUEPRINT_SCHEMA_NAME = "agent-blueprint.schema.json"
RUN_ID_ALPHABET = string.ascii_lowercase + string.digits

NEXT_ACTIONS = {
    "A": "Complete Stage A and run: approve --stage A",
    "B": "Draft/validate blueprint and run: approve --stage B",
    "C": "Plan/apply scaffold and run: approve --stage C",
    "D": "Implement core logic/tools and run: approve --stage D",
    "E": "Verify + docs + cleanup and run: approve --stage E, then finish",
}
ALL_APPROVED_ACTION = "All stages approved. Run finish to cleanup."


class ApprovalError(Exception):
    """Raised when a stage cannot be approved yet."""

    def __init__(self, message: str, stage: str):
        self.message = message
        self.stage = stage
        super().__init__(message)


@dataclass(frozen=True)
class ApprovalOutcome:
    stage: str
    changed: bool
    current_stage: str


def new_run_id(now: datetime | None = None) -> str:
    """``ab_<UTC timestamp>_<5 random chars>``, safe to use as a directory name."""
    now = now or datetime.now(timezone.utc)
    stamp = now.strftime("%Y-%m-%dT%H-%M-%S-") + f"{now.microsecond // 1000:03d}Z"
    suffix = "".join(secrets.choice(RUN_ID_ALPHABET) for _ in range(5))
    return f"ab_{stamp}_{suffix}"


def _stage_a_destination(rel: str) -> str:
    # interview-notes.template.md -> interview-notes.md
    return rel.replace(".template.", ".").removesuffix(".template")


def blueprint_json_schema() -> str:
    """JSON Schema for blueprint documents, generated from ``AgentBlueprint``."""
    return json.dumps(AgentBlueprint.model_json_schema(), indent=2) + "\n"


def start_run(config: Config, workdir: str | Path | None = None) -> tuple[RunWorkspace, WorkflowState]:
    """
    Create a run workspace and its initial state.

    Reference material (Stage A templates, Stage B examples and the
    blueprint JSON Schema) is refreshed on every start; the draft
    blueprint is only seeded when it does not exist yet.

    Args:
        config: Application configuration
        workdir: Workspace directory; defaults to ``<workspace_root>/<run_id>``

    Returns:
        (workspace, state) with the state already saved
    """
    run_id = new_run_id()
    workspace = RunWorkspace(workdir or Path(config.workspace_root) / run_id, config.state_file)
    corpus = TemplateCorpus.scan(config.templates_dir)

    for name in STAGES:
        workspace.stage_dir(name).mkdir(parents=True, exist_ok=True)

    for template in corpus.under(STAGE_A_ROOT):
        dest = workspace.stage_dir("A") / _stage_a_destination(template.relative_to(STAGE_A_ROOT))
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(corpus.read_bytes(template.path))

    stage_b = workspace.stage_dir("B")
    for template in corpus.under(STAGE_B_ROOT):
        dest = stage_b / template.relative_to(STAGE_B_ROOT)
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(corpus.read_bytes(template.path))

    (stage_b / BLUEPRINT_SCHEMA_NAME).write_text(blueprint_json_schema(), encoding="utf-8")

    draft = workspace.workdir / DEFAULT_BLUEPRINT_PATH
    if not draft.exists():
        draft.write_bytes(corpus.read_bytes(f"{STAGE_B_ROOT}/{SEED_EXAMPLE}"))

    state = WorkflowState(run_id=run_id, workdir=str(workspace.workdir))
    state.record_event("start", {"workdir": str(workspace.workdir)})
    workspace.save(state)

    logger.info("Started run %s in %s", run_id, workspace.workdir)
    return workspace, state


def approve_stage(state: WorkflowState, stage: str) -> ApprovalOutcome:
    """
    Record user approval of ``stage`` and advance the current stage.

    Re-approving an already approved stage changes nothing.

    Raises:
        ApprovalError: If ``stage`` is not the current stage, or stage B
            has no successful validation recorded
    """
    if stage not in STAGES:
        raise ApprovalError(f"Unknown stage: {stage} (expected one of {', '.join(STAGES)})", stage)

    if state.is_approved(stage):
        return ApprovalOutcome(stage, False, state.current_stage)

    if stage != state.current_stage:
        required = state.first_unapproved() or state.current_stage
        raise ApprovalError(
            f"Cannot approve stage {stage}: current stage is {state.current_stage}. "
            f"Approve stage {required} first.",
            stage,
        )

    record = state.stage_record(stage)
    if stage == "B" and record.status != "ready_for_review":
        raise ApprovalError(
            "Cannot approve stage B: the blueprint has not passed validation. "
            "Run validate-blueprint first.",
            stage,
        )

    record.user_approved = True
    record.status = "approved"
    state.current_stage = next_stage(stage)
    if state.current_stage != "DONE":
        following = state.stage_record(state.current_stage)
        if following.status == "not_started":
            following.status = "in_progress"

    state.record_event("approve", {"stage": stage})
    logger.info("Approved stage %s; current stage is %s", stage, state.current_stage)
    return ApprovalOutcome(stage, True, state.current_stage)


def next_action(state: WorkflowState) -> str:
    """Suggested next step, from the first stage without recorded approval."""
    stage = state.first_unapproved()
    return NEXT_ACTIONS[stage] if stage else ALL_APPROVED_ACTION


def resolve_blueprint_path(
    workspace: RunWorkspace,
    state: WorkflowState | None = None,
    override: str | Path | None = None,
) -> Path:
    """
    Blueprint location for a command.

    ``override`` (from ``--blueprint``) wins; then the state's
    ``blueprint_path``; then the default draft location. Relative state
    paths are resolved against the workdir.
    """
    if override:
        return Path(override).resolve()
    rel = state.blueprint_path if state and state.blueprint_path else DEFAULT_BLUEPRINT_PATH
    path = Path(rel)
    return path if path.is_absolute() else workspace.workdir / path


def record_validation(state: WorkflowState, result: ValidationResult, blueprint_path: Path) -> bool:
    """
    Record a validation run. Success marks stage B ready for review.

    Returns:
        True if the state changed
    """
    if not result.ok:
        return False
    record = state.stage_record("B")
    if not record.user_approved:
        record.status = "ready_for_review"
    state.record_event("validate_blueprint", {"ok": True, "blueprint_path": str(blueprint_path)})
    return True


def ensure_apply_allowed(state: WorkflowState):
    """
    Raises:
        ApprovalError: If stage B has not been approved
    """
    if not state.is_approved("B"):
        raise ApprovalError(
            "Cannot apply scaffold: stage B (blueprint) has not been approved. "
            "Run approve --stage B first.",
            "C",
        )


def record_apply(state: WorkflowState, report: ApplyReport, repo_root: Path, agent_id: str) -> str:
    """
    Record a scaffold apply on stage C.

    Returns:
        The new stage C status (``applied`` or ``partially_applied``)
    """
    record = state.stage_record("C")
    status = "applied" if report.ok else "partially_applied"
    if not record.user_approved:
        record.status = status
    state.record_event(
        "apply",
        {
            "repo_root": str(repo_root),
            "agent_id": agent_id,
            "counts": report.counts,
        },
    )
    return status


def unapproved_stages(state: WorkflowState | None) -> list[str]:
    if state is None:
        return []
    return [name for name in STAGES if not state.is_approved(name)]


def finish_run(workspace: RunWorkspace, workspace_root: str | Path, force: bool = False) -> bool:
    """
    Delete a run workspace through the path safety guard.

    Returns:
        True if the workspace was deleted, False if it did not exist

    Raises:
        UnsafeWorkdirError: If the workspace is outside ``workspace_root``
            and ``force`` is off
    """
    return remove_workdir(workspace.workdir, workspace_root, force=force)
