"""
Staged workflow: persisted run state and the approval-gated orchestrator.
"""

from .orchestrator import (
    ALL_APPROVED_ACTION,
    NEXT_ACTIONS,
    ApprovalError,
    ApprovalOutcome,
    approve_stage,
    blueprint_json_schema,
    ensure_apply_allowed,
    finish_run,
    new_run_id,
    next_action,
    record_apply,
    record_validation,
    resolve_blueprint_path,
    start_run,
    unapproved_stages,
)
from .state import (
    STAGES,
    HistoryEntry,
    RunWorkspace,
    StageRecord,
    WorkflowState,
    WorkflowStateError,
    next_stage,
)

__all__ = [
    "ALL_APPROVED_ACTION",
    "NEXT_ACTIONS",
    "ApprovalError",
    "ApprovalOutcome",
    "approve_stage",
    "blueprint_json_schema",
    "ensure_apply_allowed",
    "finish_run",
    "new_run_id",
    "next_action",
    "record_apply",
    "record_validation",
    "resolve_blueprint_path",
    "start_run",
    "unapproved_stages",
    "STAGES",
    "HistoryEntry",
    "RunWorkspace",
    "StageRecord",
    "WorkflowState",
    "WorkflowStateError",
    "next_stage",
]
