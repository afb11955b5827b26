"""Workflow state for staged agent-builder runs.

Each run workspace holds one JSON state file. Every CLI invocation loads
it, mutates an explicit ``WorkflowState`` object, and saves it back; there
is no state shared between invocations other than that file.

Usage:
    from agent_builder.workflow.state import RunWorkspace

    workspace = RunWorkspace("/tmp/agent_builder/ab_...")
    state = workspace.load()
    state.record_event("approve", {"stage": "A"})
    workspace.save(state)
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from ..config import DEFAULT_STATE_FILE

StageName = Literal["A", "B", "C", "D", "E"]
CurrentStage = Literal["A", "B", "C", "D", "E", "DONE"]

STAGES: tuple[str, ...] = ("A", "B", "C", "D", "E")
STATE_VERSION = 1
DEFAULT_BLUEPRINT_PATH = "stageB/agent-blueprint.json"


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string with a ``Z`` suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def next_stage(stage: str) -> str:
    """Stage that follows ``stage``; ``DONE`` after E."""
    idx = STAGES.index(stage)
    return STAGES[idx + 1] if idx + 1 < len(STAGES) else "DONE"


class WorkflowStateError(Exception):
    """Raised when a run workspace has no state file or it cannot be read."""

    def __init__(self, message: str, workdir: str | Path | None = None):
        self.message = message
        self.workdir = Path(workdir) if workdir is not None else None
        super().__init__(message)


class StageRecord(BaseModel):
    """Status and approval of one stage."""

    model_config = ConfigDict(extra="allow")

    status: str = "not_started"
    user_approved: bool = False
    artifacts: list[str] = Field(default_factory=list)


class HistoryEntry(BaseModel):
    timestamp: str
    event: str
    details: dict[str, Any] = Field(default_factory=dict)


def _default_stages() -> dict[str, StageRecord]:
    return {
        "A": StageRecord(
            status="in_progress",
            artifacts=["stageA/interview-notes.md", "stageA/integration-decision.md"],
        ),
        "B": StageRecord(artifacts=[DEFAULT_BLUEPRINT_PATH]),
        "C": StageRecord(),
        "D": StageRecord(),
        "E": StageRecord(),
    }


class WorkflowState(BaseModel):
    """
    Persisted state of one run.

    ``current_stage`` only moves forward, through approvals; ``history``
    is append-only.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    version: int = STATE_VERSION
    run_id: str
    created_at: str = Field(default_factory=utc_now)
    workdir: str
    current_stage: CurrentStage = Field(
        default="A", validation_alias=AliasChoices("current_stage", "stage")
    )
    blueprint_path: str = DEFAULT_BLUEPRINT_PATH
    stages: dict[str, StageRecord] = Field(default_factory=_default_stages)
    history: list[HistoryEntry] = Field(default_factory=list)

    def stage_record(self, name: str) -> StageRecord:
        """Record for ``name``, created empty if the file lacks it."""
        if name not in self.stages:
            self.stages[name] = StageRecord()
        return self.stages[name]

    def is_approved(self, name: str) -> bool:
        return name in self.stages and self.stages[name].user_approved

    def first_unapproved(self) -> str | None:
        """First stage whose approval is not recorded, or None when all are."""
        for name in STAGES:
            if not self.is_approved(name):
                return name
        return None

    def record_event(self, event: str, details: dict[str, Any] | None = None) -> HistoryEntry:
        """Append a history entry."""
        entry = HistoryEntry(timestamp=utc_now(), event=event, details=details or {})
        self.history.append(entry)
        return entry

    def to_json(self) -> str:
        return json.dumps(self.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n"


class RunWorkspace:
    """A run workspace directory and its state file.

    Example:
        workspace = RunWorkspace(workdir)
        if workspace.exists():
            state = workspace.load()
    """

    def __init__(self, workdir: str | Path, state_file: str = DEFAULT_STATE_FILE):
        self.workdir = Path(workdir).resolve()
        self.state_file = state_file

    @property
    def state_path(self) -> Path:
        return self.workdir / self.state_file

    def stage_dir(self, name: str) -> Path:
        return self.workdir / f"stage{name}"

    def exists(self) -> bool:
        """Check whether the state file is present."""
        return self.state_path.is_file()

    def load(self) -> WorkflowState:
        """Load the state file.

        Raises:
            WorkflowStateError: If the file is missing, unparseable or malformed.
        """
        if not self.exists():
            raise WorkflowStateError(f"No state file found in workdir: {self.workdir}", self.workdir)
        try:
            raw = json.loads(self.state_path.read_text(encoding="utf-8"))
            return WorkflowState.model_validate(raw)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
            raise WorkflowStateError(f"Failed to read state file {self.state_path}: {e}", self.workdir) from e

    def load_optional(self) -> WorkflowState | None:
        """Load the state file if it exists, else return None."""
        return self.load() if self.exists() else None

    def save(self, state: WorkflowState) -> Path:
        """Write the state file, creating the workdir if needed."""
        self.workdir.mkdir(parents=True, exist_ok=True)
        self.state_path.write_text(state.to_json(), encoding="utf-8")
        return self.state_path
