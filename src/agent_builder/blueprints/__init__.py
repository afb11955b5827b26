"""
Blueprint system for agent-builder.

This module defines the agent blueprint contract: the pydantic model of a
validated blueprint and the semantic validator that guards it.

Usage:
    from agent_builder.blueprints import load_blueprint_data, validate_blueprint

    data = load_blueprint_data("stageB/agent-blueprint.json")
    result = validate_blueprint(data)
    if not result.ok:
        for error in result.errors:
            print(error)

    # Or load + validate + refine in one step
    from agent_builder.blueprints import load_blueprint

    blueprint = load_blueprint("stageB/agent-blueprint.json")
"""

# Schema models
from .schema import (
    ATTACH_KINDS,
    KILL_SWITCH_ENV_VAR,
    PROMPT_TIERS,
    REQUIRED_SCHEMAS,
    AgentBlueprint,
    ApiSpec,
    ConfigurationSpec,
    CronSpec,
    DeliverablesSpec,
    InterfaceSpec,
    IntegrationSpec,
    PipelineSpec,
    SdkSpec,
    WorkerSpec,
)

# Validators
from .validators import (
    ATTACH_BLOCK_VALIDATORS,
    BlueprintLoadError,
    BlueprintValidationError,
    ValidationResult,
    load_blueprint,
    load_blueprint_data,
    parse_blueprint_text,
    refine_blueprint,
    schema_ref_key,
    validate_blueprint,
)

__all__ = [
    # Schema models
    "ATTACH_KINDS",
    "KILL_SWITCH_ENV_VAR",
    "PROMPT_TIERS",
    "REQUIRED_SCHEMAS",
    "AgentBlueprint",
    "ApiSpec",
    "ConfigurationSpec",
    "CronSpec",
    "DeliverablesSpec",
    "InterfaceSpec",
    "IntegrationSpec",
    "PipelineSpec",
    "SdkSpec",
    "WorkerSpec",
    # Validators
    "ATTACH_BLOCK_VALIDATORS",
    "BlueprintLoadError",
    "BlueprintValidationError",
    "ValidationResult",
    "load_blueprint",
    "load_blueprint_data",
    "parse_blueprint_text",
    "refine_blueprint",
    "schema_ref_key",
    "validate_blueprint",
]
