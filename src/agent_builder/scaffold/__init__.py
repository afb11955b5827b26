"""
Scaffold generation: template corpus, planning, application and docs.

Usage:
    from agent_builder.scaffold import TemplateCorpus, apply_scaffold, plan_scaffold

    corpus = TemplateCorpus.scan(config.templates_dir)
    plan = plan_scaffold(blueprint, repo_root, corpus)
    report = apply_scaffold(plan, blueprint, corpus, commit=True)
"""

from .applier import (
    ApplyReport,
    OperationOutcome,
    apply_scaffold,
    build_replacements,
    render_schema,
    substitute,
)
from .docs import DocumentRenderer
from .planner import DOC_NAMES, PlannedOperation, ScaffoldPlan, plan_scaffold
from .templates import TemplateCorpus, TemplateFile, is_text_template

__all__ = [
    "ApplyReport",
    "OperationOutcome",
    "apply_scaffold",
    "build_replacements",
    "render_schema",
    "substitute",
    "DocumentRenderer",
    "DOC_NAMES",
    "PlannedOperation",
    "ScaffoldPlan",
    "plan_scaffold",
    "TemplateCorpus",
    "TemplateFile",
    "is_text_template",
]
