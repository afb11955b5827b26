"""
agent-builder: Blueprint-driven scaffolding for production agents.

Validate a blueprint:
    from agent_builder import load_blueprint_data, validate_blueprint

    result = validate_blueprint(load_blueprint_data("agent-blueprint.json"))
    print(result.ok, result.errors)

Plan and apply a scaffold:
    from agent_builder import TemplateCorpus, apply_scaffold, load_blueprint, plan_scaffold

    blueprint = load_blueprint("agent-blueprint.json")
    corpus = TemplateCorpus.scan(get_config().templates_dir)
    plan = plan_scaffold(blueprint, "/path/to/repo", corpus)
    report = apply_scaffold(plan, blueprint, corpus, commit=True)

Staged workflow (CLI):
    agent-builder start
    agent-builder validate-blueprint --workdir <dir>
    agent-builder approve --workdir <dir> --stage B
    agent-builder apply --workdir <dir> --repo-root . --apply
    agent-builder finish --workdir <dir>
"""

__version__ = "0.1.0"

from .blueprints import (
    AgentBlueprint,
    BlueprintLoadError,
    BlueprintValidationError,
    ValidationResult,
    load_blueprint,
    load_blueprint_data,
    validate_blueprint,
)
from .config import Config, get_config
from .registry import RegistryDocument, RegistryError, merge_registry
from .scaffold import (
    ApplyReport,
    PlannedOperation,
    ScaffoldPlan,
    TemplateCorpus,
    apply_scaffold,
    plan_scaffold,
)
from .utils.fs import UnsafeWorkdirError
from .workflow import ApprovalError, RunWorkspace, WorkflowState, WorkflowStateError

__all__ = [
    "__version__",
    # Configuration
    "Config",
    "get_config",
    # Blueprints
    "AgentBlueprint",
    "BlueprintLoadError",
    "BlueprintValidationError",
    "ValidationResult",
    "load_blueprint",
    "load_blueprint_data",
    "validate_blueprint",
    # Scaffold
    "ApplyReport",
    "PlannedOperation",
    "ScaffoldPlan",
    "TemplateCorpus",
    "apply_scaffold",
    "plan_scaffold",
    # Registry
    "RegistryDocument",
    "RegistryError",
    "merge_registry",
    # Workflow
    "ApprovalError",
    "RunWorkspace",
    "WorkflowState",
    "WorkflowStateError",
    "UnsafeWorkdirError",
]
