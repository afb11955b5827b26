"""
Scaffold planning.

``plan_scaffold`` turns a validated blueprint and a template corpus
listing into an ordered list of file-system operations. Planning never
touches the repository: the same inputs always produce the same plan, so
it can be shown as a dry run and tested without a filesystem.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from ..blueprints.schema import (
    ATTACH_KINDS,
    DEFAULT_PROMPT_TIER,
    REQUIRED_SCHEMAS,
    AgentBlueprint,
)
from .templates import AGENT_KIT_ROOT, PROMPT_PACK_ROOT, TemplateCorpus

logger = logging.getLogger(__name__)

Action = Literal["mkdir", "write", "update"]
Origin = Literal["directory", "template", "schema", "doc", "registry"]

DOC_NAMES = (
    "overview",
    "integration",
    "configuration",
    "dataflow",
    "runbook",
    "evaluation",
)

ADAPTERS_PREFIX = "src/adapters"


@dataclass(frozen=True)
class PlannedOperation:
    """
    One intended file-system change.

    ``source_template`` is set for corpus copies; ``key`` names the schema
    or document a generated write is derived from.
    """

    action: Action
    target: Path
    origin: Origin
    source_template: str | None = None
    key: str | None = None

    def describe(self, root: Path | None = None) -> str:
        """``WRITE path`` style label, relative to ``root`` when given."""
        target = self.target
        if root is not None:
            try:
                target = target.relative_to(root)
            except ValueError:
                pass
        return f"{self.action.upper()} {target.as_posix()}"


@dataclass(frozen=True)
class ScaffoldPlan:
    """Ordered operations plus the resolved roots they write into."""

    repo_root: Path
    module_root: Path
    docs_root: Path
    registry_path: Path
    prompt_tier: str
    operations: tuple[PlannedOperation, ...] = field(default_factory=tuple)

    def __iter__(self):
        return iter(self.operations)

    def __len__(self):
        return len(self.operations)

    def writes(self) -> list[PlannedOperation]:
        return [op for op in self.operations if op.action == "write"]


def adapter_kind(rel_path: str) -> str | None:
    """Attach kind owning an agent-kit file, or None for core files."""
    for kind in ATTACH_KINDS:
        prefix = f"{ADAPTERS_PREFIX}/{kind}"
        if rel_path == prefix or rel_path.startswith(prefix + "/"):
            return kind
    return None


def plan_scaffold(
    blueprint: AgentBlueprint,
    repo_root: str | Path,
    corpus: TemplateCorpus,
    default_tier: str = DEFAULT_PROMPT_TIER,
) -> ScaffoldPlan:
    """
    Plan the scaffold for a validated blueprint.

    Operation order:
    1. mkdir module root, mkdir docs root
    2. registry update
    3. agent-kit files (adapters only for active attach kinds)
    4. prompt pack for the selected complexity tier
    5. schema documents (RunRequest, RunResponse, AgentError)
    6. generated documentation (six fixed documents)

    Args:
        blueprint: Validated blueprint
        repo_root: Repository the scaffold is written into
        corpus: Template corpus listing
        default_tier: Prompt tier used when the blueprint declares none

    Returns:
        ScaffoldPlan with the ordered operations
    """
    repo_root = Path(repo_root).resolve()
    deliverables = blueprint.deliverables
    module_root = repo_root / deliverables.agent_module_path
    docs_root = repo_root / deliverables.docs_path
    registry_path = repo_root / deliverables.registry_path

    ops: list[PlannedOperation] = [
        PlannedOperation("mkdir", module_root, "directory"),
        PlannedOperation("mkdir", docs_root, "directory"),
        PlannedOperation("update", registry_path, "registry", key=blueprint.agent_id),
    ]

    # Agent kit: core files always, adapter subtrees only when attached
    for template in corpus.under(AGENT_KIT_ROOT):
        rel = template.relative_to(AGENT_KIT_ROOT)
        kind = adapter_kind(rel)
        if kind is not None and not blueprint.has_attach(kind):
            continue
        dest = rel[: -len(".template")] if rel.endswith(".template") else rel
        ops.append(
            PlannedOperation("write", module_root / dest, "template", source_template=template.path)
        )

    tier = blueprint.prompt_tier(default_tier)
    tier_root = f"{PROMPT_PACK_ROOT}/{tier}"
    for template in corpus.under(tier_root):
        rel = template.relative_to(tier_root)
        ops.append(
            PlannedOperation(
                "write", module_root / "prompts" / rel, "template", source_template=template.path
            )
        )

    for name in REQUIRED_SCHEMAS:
        ops.append(
            PlannedOperation("write", module_root / "schemas" / f"{name}.schema.json", "schema", key=name)
        )

    for name in DOC_NAMES:
        ops.append(PlannedOperation("write", docs_root / "doc" / f"{name}.md", "doc", key=name))

    logger.debug(
        "Planned %d operations for agent %s (tier=%s, attach=%s)",
        len(ops), blueprint.agent_id, tier, sorted(blueprint.attach_kinds),
    )

    return ScaffoldPlan(
        repo_root=repo_root,
        module_root=module_root,
        docs_root=docs_root,
        registry_path=registry_path,
        prompt_tier=tier,
        operations=tuple(ops),
    )
