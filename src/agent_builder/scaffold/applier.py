"""
Scaffold application.

``apply_scaffold`` executes a ``ScaffoldPlan`` against the filesystem.
Without ``commit`` it only reports what would happen. Writes are
copy-if-missing unless ``overwrite`` is requested explicitly, and every
operation is independent: a failure is recorded on that operation and
the rest of the plan still runs.
"""

from __future__ import annotations

import json
import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from ..blueprints.schema import AgentBlueprint
from ..registry import RegistryError, merge_registry
from .docs import DocumentRenderer
from .planner import PlannedOperation, ScaffoldPlan
from .templates import TemplateCorpus

logger = logging.getLogger(__name__)

Status = Literal["planned", "created", "exists", "written", "skipped", "updated", "failed"]


@dataclass(frozen=True)
class OperationOutcome:
    """What happened to one planned operation."""

    action: str
    path: Path
    status: Status
    reason: str | None = None

    def to_dict(self) -> dict:
        data = {"action": self.action, "path": self.path.as_posix(), "status": self.status}
        if self.reason:
            data["reason"] = self.reason
        return data


@dataclass
class ApplyReport:
    """Per-operation outcomes in plan order."""

    committed: bool
    outcomes: list[OperationOutcome] = field(default_factory=list)

    @property
    def counts(self) -> dict[str, int]:
        return dict(Counter(outcome.status for outcome in self.outcomes))

    @property
    def failed(self) -> list[OperationOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status == "failed"]

    @property
    def ok(self) -> bool:
        return not self.failed

    def __iter__(self):
        return iter(self.outcomes)

    def __len__(self):
        return len(self.outcomes)


def build_replacements(blueprint: AgentBlueprint) -> dict[str, str]:
    """Placeholder tokens and the blueprint values they stand for."""
    agent_id = blueprint.agent.id
    base_path = blueprint.api.base_path or f"/agent/{agent_id}"
    package_name = blueprint.sdk.package.name if blueprint.sdk else f"agent-{agent_id}"
    return {
        "__AGENT_ID__": agent_id,
        "__AGENT_NAME__": blueprint.agent.name,
        "__AGENT_SUMMARY__": blueprint.agent.summary,
        "__AGENT_BASE_PATH__": base_path,
        "__LLM_MODEL__": blueprint.model.primary.model,
        "__LLM_REASONING_PROFILE__": blueprint.model.primary.reasoning_profile,
        "__AGENT_PKG_NAME__": package_name,
    }


def substitute(text: str, replacements: dict[str, str]) -> str:
    """Literal token replacement; substituted values are not rescanned."""
    if not replacements:
        return text
    tokens = sorted(replacements, key=len, reverse=True)
    pattern = re.compile("|".join(re.escape(token) for token in tokens))
    return pattern.sub(lambda match: replacements[match.group(0)], text)


def render_schema(blueprint: AgentBlueprint, name: str) -> str:
    """Pretty-printed JSON of one ``schemas`` entry."""
    return json.dumps(blueprint.schemas[name], indent=2, ensure_ascii=False) + "\n"


def apply_scaffold(
    plan: ScaffoldPlan,
    blueprint: AgentBlueprint,
    corpus: TemplateCorpus,
    *,
    commit: bool = False,
    overwrite: bool = False,
    renderer: DocumentRenderer | None = None,
) -> ApplyReport:
    """
    Execute (or, without ``commit``, preview) a scaffold plan.

    Args:
        plan: Output of ``plan_scaffold`` for the same blueprint
        blueprint: Validated blueprint
        corpus: Template corpus the plan was built from
        commit: Actually touch the filesystem
        overwrite: Replace existing files instead of skipping them
        renderer: Document renderer (defaults to the packaged templates)

    Returns:
        ApplyReport with one outcome per planned operation
    """
    report = ApplyReport(committed=commit)
    replacements = build_replacements(blueprint)
    renderer = renderer or DocumentRenderer()

    for op in plan:
        if not commit:
            report.outcomes.append(OperationOutcome(op.action, op.target, "planned"))
            continue
        try:
            outcome = _execute(op, blueprint, corpus, replacements, renderer, overwrite)
        except (OSError, UnicodeDecodeError, RegistryError) as e:
            logger.error("Failed to %s %s: %s", op.action, op.target, e)
            outcome = OperationOutcome(op.action, op.target, "failed", str(e))
        report.outcomes.append(outcome)

    if commit:
        logger.info("Applied scaffold for %s: %s", blueprint.agent_id, report.counts)
    return report


def _execute(
    op: PlannedOperation,
    blueprint: AgentBlueprint,
    corpus: TemplateCorpus,
    replacements: dict[str, str],
    renderer: DocumentRenderer,
    overwrite: bool,
) -> OperationOutcome:
    if op.action == "mkdir":
        if op.target.is_dir():
            return OperationOutcome(op.action, op.target, "exists")
        op.target.mkdir(parents=True, exist_ok=True)
        return OperationOutcome(op.action, op.target, "created")

    if op.action == "update":
        merge_registry(op.target, blueprint, commit=True)
        return OperationOutcome(op.action, op.target, "updated")

    if op.target.exists() and not overwrite:
        return OperationOutcome(op.action, op.target, "skipped", "exists")

    op.target.parent.mkdir(parents=True, exist_ok=True)

    if op.origin == "template":
        template = corpus.get(op.source_template)
        if template is None:
            raise FileNotFoundError(f"Template not in corpus: {op.source_template}")
        if template.is_text:
            text = substitute(corpus.read_text(template.path), replacements)
            op.target.write_text(text, encoding="utf-8")
        else:
            op.target.write_bytes(corpus.read_bytes(template.path))
    elif op.origin == "schema":
        op.target.write_text(render_schema(blueprint, op.key), encoding="utf-8")
    elif op.origin == "doc":
        op.target.write_text(renderer.render(op.key, blueprint), encoding="utf-8")
    else:
        raise ValueError(f"Unsupported write origin: {op.origin}")

    return OperationOutcome(op.action, op.target, "written")
