"""
Pydantic models for validated agent blueprints.

A blueprint starts life as a loosely-typed tree (parsed JSON/YAML). The
semantic validator in ``validators.py`` walks that tree and reports every
defect; only a tree that passes is refined into ``AgentBlueprint``, the
trusted type that the planner, applier and registry operate on.

The enumerations below are declared once as ``Literal`` types. The
validator derives its allow-lists from them with ``typing.get_args`` so
the two can never drift apart.
"""

from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field


BLUEPRINT_KIND = "agent_blueprint"

AttachKind = Literal["worker", "sdk", "cron", "pipeline"]
InterfaceType = Literal["http", "worker", "sdk", "cron", "pipeline", "cli"]
OwnerType = Literal["person", "team", "service"]
TriggerKind = Literal["sync_request", "async_event", "scheduled", "manual", "batch"]
TargetKind = Literal[
    "service", "repo_module", "pipeline_step", "queue", "topic", "job", "function", "other"
]
FailureMode = Literal["propagate_error", "return_fallback", "enqueue_retry"]
RollbackMethod = Literal["feature_flag", "config_toggle", "route_switch", "deployment_rollback"]
ApiProtocol = Literal["http", "grpc"]
RouteName = Literal["run", "health"]
HttpMethod = Literal["get", "post", "put", "patch", "delete"]
AuthKind = Literal["none", "api_key", "bearer_token", "oauth2", "mtls", "internal_gateway"]
DegradationMode = Literal["none", "return_fallback", "return_unavailable", "route_to_worker"]
WorkerSourceKind = Literal["queue", "topic", "task_table", "cron", "webhook"]
BackoffStrategy = Literal["fixed", "exponential", "exponential_jitter"]
IdempotencyStrategy = Literal["none", "header", "payload_field", "hash_payload", "external_key"]
DeadLetterKind = Literal["none", "queue", "topic", "table"]
AlertOn = Literal["always", "after_retries", "never"]
SdkLanguage = Literal["typescript", "python", "go", "java", "dotnet"]
SemverPolicy = Literal["strict", "relaxed"]
CronInputMode = Literal["static_json", "file", "generate"]
CronOutputMode = Literal["stdout", "file", "http_callback"]
PipelineKind = Literal["ci", "data_pipeline", "etl", "other"]
PipelineInputMode = Literal["stdin_json", "file_json"]
PipelineOutputMode = Literal["stdout_json", "file_json"]
Priority = Literal["P0", "P1", "P2"]
ProviderType = Literal["openai", "openai_compatible", "azure_openai", "internal_gateway", "local"]
Sensitivity = Literal["public", "internal", "secret"]
PromptTier = Literal["tier1", "tier2", "tier3"]

# Explicitly forbidden even if FailureMode is ever widened
FORBIDDEN_FAILURE_MODE = "suppress_and_alert"

REQUIRED_SCHEMAS = ("RunRequest", "RunResponse", "AgentError")
KILL_SWITCH_ENV_VAR = "AGENT_ENABLED"
RECOMMENDED_ENV_VARS = ("LLM_API_KEY", "LLM_MODEL")
DEFAULT_PROMPT_TIER: PromptTier = "tier2"


def allowed(literal_type) -> tuple[str, ...]:
    """Return the allowed values of a Literal type, in declaration order."""
    return get_args(literal_type)


ATTACH_KINDS: tuple[str, ...] = allowed(AttachKind)
PROMPT_TIERS: tuple[str, ...] = allowed(PromptTier)


class BlueprintModel(BaseModel):
    """Base for blueprint sections; unknown keys are carried through untouched."""

    model_config = ConfigDict(extra="allow")


class BlueprintMeta(BlueprintModel):
    generated_at: str


class AgentOwner(BlueprintModel):
    type: OwnerType
    id: str
    contact: str | None = None


class AgentIdentity(BlueprintModel):
    """Who the agent is and who owns it."""

    id: str
    name: str
    summary: str
    owners: list[AgentOwner] = Field(..., min_length=1)


class ScopeSpec(BlueprintModel):
    in_scope: list[str]
    out_of_scope: list[str]
    definition_of_done: str


class TriggerSpec(BlueprintModel):
    kind: TriggerKind


class TargetSpec(BlueprintModel):
    kind: TargetKind
    name: str


class FailureContract(BlueprintModel):
    mode: FailureMode


class RollbackSpec(BlueprintModel):
    method: RollbackMethod
    key: str | None = None


class IntegrationSpec(BlueprintModel):
    """Embedding decisions: primary API plus optional attach kinds."""

    primary: Literal["api"]
    attach: list[AttachKind] = Field(default_factory=list)
    trigger: TriggerSpec
    target: TargetSpec
    failure_contract: FailureContract
    rollback_or_disable: RollbackSpec
    upstream_contract_ref: str
    downstream_contract_ref: str


class InterfaceSpec(BlueprintModel):
    type: InterfaceType
    entrypoint: str
    input_schema_ref: str
    output_schema_ref: str
    error_schema_ref: str | None = None
    examples_min: int


class ApiRoute(BlueprintModel):
    name: RouteName
    method: HttpMethod
    path: str
    request_schema_ref: str
    response_schema_ref: str
    error_schema_ref: str | None = None


class ApiAuth(BlueprintModel):
    kind: AuthKind
    env_var: str | None = None


class ApiDegradation(BlueprintModel):
    mode: DegradationMode


class ApiSpec(BlueprintModel):
    protocol: ApiProtocol
    base_path: str
    timeout_budget_ms: int
    routes: list[ApiRoute]
    auth: ApiAuth
    degradation: ApiDegradation


# =============================================================================
# Attach blocks (present only when the kind is listed in integration.attach)
# =============================================================================


class WorkerSource(BlueprintModel):
    kind: WorkerSourceKind
    name: str


class WorkerExecution(BlueprintModel):
    max_concurrency: int
    timeout_ms: int


class RetryBackoff(BlueprintModel):
    strategy: BackoffStrategy
    base_delay_ms: int | None = None


class WorkerRetry(BlueprintModel):
    max_attempts: int
    backoff: RetryBackoff


class WorkerIdempotency(BlueprintModel):
    strategy: IdempotencyStrategy
    key_ref: str | None = None


class DeadLetter(BlueprintModel):
    kind: DeadLetterKind


class WorkerFailure(BlueprintModel):
    dead_letter: DeadLetter
    alert_on: AlertOn


class WorkerSpec(BlueprintModel):
    source: WorkerSource
    execution: WorkerExecution
    retry: WorkerRetry
    idempotency: WorkerIdempotency
    failure: WorkerFailure


class SdkPackage(BlueprintModel):
    name: str
    version: str


class SdkExport(BlueprintModel):
    name: str
    input_schema_ref: str
    output_schema_ref: str
    error_schema_ref: str | None = None


class SdkCompatibility(BlueprintModel):
    semver: SemverPolicy
    breaking_change_policy: str


class SdkSpec(BlueprintModel):
    language: SdkLanguage
    package: SdkPackage
    exports: list[SdkExport]
    compatibility: SdkCompatibility


class CronInput(BlueprintModel):
    mode: CronInputMode
    env_var: str | None = None
    path: str | None = None


class CronOutput(BlueprintModel):
    mode: CronOutputMode
    path: str | None = None


class CronSpec(BlueprintModel):
    schedule: str
    timezone: str
    input: CronInput
    output: CronOutput


class PipelineIO(BlueprintModel):
    input_mode: PipelineInputMode
    output_mode: PipelineOutputMode


class PipelineSpec(BlueprintModel):
    kind: PipelineKind
    io: PipelineIO


# =============================================================================
# Deliverables, acceptance, model, configuration
# =============================================================================


class DeliverablesSpec(BlueprintModel):
    agent_module_path: str
    docs_path: str
    registry_path: str
    core_adapter_separation: Literal["required"]
    non_goals: list[str] = Field(default_factory=list)


class AcceptanceScenario(BlueprintModel):
    title: str
    given: str
    when: str
    then: str
    expected_output_checks: list[str]
    priority: Priority


class AcceptanceSpec(BlueprintModel):
    scenarios: list[AcceptanceScenario] = Field(..., min_length=2)


class ModelProvider(BlueprintModel):
    type: ProviderType


class PrimaryModel(BlueprintModel):
    model: str
    reasoning_profile: str
    provider: ModelProvider | None = None


class ModelSpec(BlueprintModel):
    primary: PrimaryModel


class EnvVarSpec(BlueprintModel):
    name: str
    description: str
    required: bool
    sensitivity: Sensitivity
    example_placeholder: str


class ConfigFileSpec(BlueprintModel):
    path: str
    purpose: str


class ConfigurationSpec(BlueprintModel):
    env_vars: list[EnvVarSpec]
    config_files: list[ConfigFileSpec] = Field(default_factory=list)


class PromptingSpec(BlueprintModel):
    complexity_tier: PromptTier | None = None
    prompt_modules: list[str] = Field(default_factory=list)
    examples_strategy: str | None = None


class DataFlowSpec(BlueprintModel):
    summary: str | None = None
    data_classes: list[str] = Field(default_factory=list)
    retention: str | None = None
    redaction: str | None = None
    storage: str | None = None
    diagram_mermaid: str | None = None


class AgentBlueprint(BlueprintModel):
    """
    Complete, validated agent blueprint.

    Never construct this from untrusted input directly; use
    ``validators.refine_blueprint`` (or ``load_blueprint``) so the full
    semantic contract is enforced first.

    Example:
        from agent_builder.blueprints import load_blueprint

        blueprint = load_blueprint("stageB/agent-blueprint.json")
        print(blueprint.agent_id, blueprint.attach_kinds)
    """

    kind: Literal["agent_blueprint"]
    version: int
    meta: BlueprintMeta
    agent: AgentIdentity
    scope: ScopeSpec
    integration: IntegrationSpec
    schemas: dict[str, Any]
    interfaces: list[InterfaceSpec]
    api: ApiSpec
    worker: WorkerSpec | None = None
    sdk: SdkSpec | None = None
    cron: CronSpec | None = None
    pipeline: PipelineSpec | None = None
    deliverables: DeliverablesSpec
    acceptance: AcceptanceSpec
    model: ModelSpec
    configuration: ConfigurationSpec
    prompting: PromptingSpec | None = None
    data_flow: DataFlowSpec | None = None
    tools: dict[str, Any] | None = None
    observability: dict[str, Any] | None = None
    operations: dict[str, Any] | None = None
    security: dict[str, Any] | None = None
    lifecycle: dict[str, Any] | None = None

    @property
    def agent_id(self) -> str:
        """Registry key for this agent."""
        return self.agent.id

    @property
    def attach_kinds(self) -> frozenset[str]:
        """Active attach kinds."""
        return frozenset(self.integration.attach)

    def has_attach(self, kind: str) -> bool:
        """Check if an attach kind is active."""
        return kind in self.attach_kinds

    def prompt_tier(self, default: str = DEFAULT_PROMPT_TIER) -> str:
        """Prompt pack tier declared by the blueprint, or ``default``."""
        if self.prompting and self.prompting.complexity_tier:
            return self.prompting.complexity_tier
        return default
