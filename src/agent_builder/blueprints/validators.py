"""
Blueprint validation utilities.

``validate_blueprint`` checks a parsed (untrusted) blueprint tree against
the full semantic contract: required sections, primitive types, enum
membership, schema references, attach-conditional blocks and
cross-section rules. It never raises; every defect in the document is
collected into a single ``ValidationResult``.

``refine_blueprint`` turns a passing tree into the trusted
``AgentBlueprint`` model, and ``load_blueprint`` does load + validate +
refine in one call.
"""

import json
import re
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Any, Callable, Iterable, List

import pydantic
import yaml

from .schema import (
    ATTACH_KINDS,
    BLUEPRINT_KIND,
    FORBIDDEN_FAILURE_MODE,
    KILL_SWITCH_ENV_VAR,
    RECOMMENDED_ENV_VARS,
    REQUIRED_SCHEMAS,
    AgentBlueprint,
    AlertOn,
    ApiProtocol,
    AuthKind,
    BackoffStrategy,
    CronInputMode,
    CronOutputMode,
    DeadLetterKind,
    DegradationMode,
    FailureMode,
    HttpMethod,
    IdempotencyStrategy,
    InterfaceType,
    OwnerType,
    PipelineInputMode,
    PipelineKind,
    PipelineOutputMode,
    Priority,
    PromptTier,
    ProviderType,
    RollbackMethod,
    RouteName,
    SdkLanguage,
    SemverPolicy,
    Sensitivity,
    TargetKind,
    TriggerKind,
    WorkerSourceKind,
    allowed,
)


SCHEMA_REF_PATTERN = re.compile(r"^#/schemas/([A-Za-z0-9_]+)$")
ENV_VAR_PATTERN = re.compile(r"^[A-Z][A-Z0-9_]*$")


class BlueprintLoadError(Exception):
    """Raised when a blueprint file is missing or cannot be parsed."""

    def __init__(self, message: str, path: str | Path | None = None):
        self.message = message
        self.path = Path(path) if path is not None else None
        super().__init__(message)


class BlueprintValidationError(Exception):
    """Raised when a blueprint fails semantic validation."""

    def __init__(self, message: str, errors: List[str] = None):
        self.message = message
        self.errors = errors or []
        super().__init__(message)


class ValidationResult:
    """Result of blueprint validation."""

    def __init__(self):
        self.valid = True
        self.errors: List[str] = []
        self.warnings: List[str] = []

    @property
    def ok(self) -> bool:
        return self.valid

    def add_error(self, error: str):
        """Add an error and mark as invalid."""
        self.errors.append(error)
        self.valid = False

    def add_warning(self, warning: str):
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(warning)

    def require(self, condition: bool, error: str) -> bool:
        """Record ``error`` unless ``condition`` holds. Returns the condition."""
        if not condition:
            self.add_error(error)
        return bool(condition)

    def to_dict(self) -> dict[str, Any]:
        """Machine-readable form used by ``validate-blueprint --format json``."""
        return {"ok": self.valid, "errors": list(self.errors), "warnings": list(self.warnings)}

    def __bool__(self):
        return self.valid

    def __repr__(self):
        return f"ValidationResult(valid={self.valid}, errors={len(self.errors)}, warnings={len(self.warnings)})"


# =============================================================================
# Loading
# =============================================================================


def parse_blueprint_text(text: str, suffix: str = ".json") -> Any:
    """
    Parse blueprint source text into a loosely-typed tree.

    YAML is used for ``.yaml``/``.yml`` suffixes, JSON otherwise.

    Raises:
        ValueError: If the text does not parse
    """
    if suffix.lower() in (".yaml", ".yml"):
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ValueError(f"invalid YAML: {e}") from e
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"invalid JSON at line {e.lineno}: {e.msg}") from e


def load_blueprint_data(path: str | Path) -> Any:
    """
    Read and parse a blueprint file without validating it.

    Args:
        path: Path to a .json, .yaml or .yml blueprint

    Returns:
        The parsed tree (any JSON-compatible value)

    Raises:
        BlueprintLoadError: If the file doesn't exist or doesn't parse
    """
    path = Path(path)

    if not path.is_file():
        raise BlueprintLoadError(f"Blueprint not found: {path}", path)

    try:
        text = path.read_text(encoding="utf-8")
        return parse_blueprint_text(text, path.suffix)
    except (OSError, UnicodeDecodeError, ValueError) as e:
        raise BlueprintLoadError(f"Failed to parse blueprint {path}: {e}", path) from e


def refine_blueprint(data: Any, result: ValidationResult | None = None) -> AgentBlueprint:
    """
    Refine a validated tree into the trusted ``AgentBlueprint`` model.

    Args:
        data: Parsed blueprint tree
        result: Validation result for ``data``; computed when omitted

    Returns:
        AgentBlueprint instance

    Raises:
        BlueprintValidationError: If the tree does not pass validation
    """
    if result is None:
        result = validate_blueprint(data)
    if not result.ok:
        raise BlueprintValidationError(
            f"Invalid blueprint: {len(result.errors)} error(s)", result.errors
        )

    # Blocks for inactive attach kinds were never validated; don't trust them.
    active = set(data["integration"]["attach"])
    trimmed = {k: v for k, v in data.items() if k not in ATTACH_KINDS or k in active}

    try:
        return AgentBlueprint.model_validate(trimmed)
    except pydantic.ValidationError as e:
        errors = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        ]
        raise BlueprintValidationError("Invalid blueprint", errors) from e


def load_blueprint(path: str | Path) -> AgentBlueprint:
    """
    Load, validate and refine a blueprint file.

    Raises:
        BlueprintLoadError: If the file is missing or unparseable
        BlueprintValidationError: If the blueprint is invalid
    """
    return refine_blueprint(load_blueprint_data(path))


# =============================================================================
# Primitive checks
# =============================================================================


def _is_object(value: Any) -> bool:
    return isinstance(value, dict)


def _is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _is_int(value: Any) -> bool:
    # bool is a subclass of int; JSON true is not a count
    return isinstance(value, int) and not isinstance(value, bool)


def _is_positive_int(value: Any) -> bool:
    return _is_int(value) and value > 0


def _is_non_negative_int(value: Any) -> bool:
    return _is_int(value) and value >= 0


def _is_non_empty_list(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0


def _is_datetime(value: str) -> bool:
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return False
    return True


def schema_ref_key(ref: Any) -> str | None:
    """Return ``Name`` for a ``#/schemas/Name`` reference, else None."""
    if not isinstance(ref, str):
        return None
    match = SCHEMA_REF_PATTERN.match(ref)
    return match.group(1) if match else None


def _require_enum(result: ValidationResult, value: Any, literal_type, label: str) -> bool:
    choices = allowed(literal_type)
    return result.require(
        value in choices, f"{label} must be one of: {', '.join(choices)}"
    )


def _require_string(result: ValidationResult, block: dict, key: str, prefix: str) -> bool:
    return result.require(
        _is_non_empty_string(block.get(key)), f"{prefix}.{key} is required (string)."
    )


def _require_object(result: ValidationResult, block: dict, key: str, prefix: str) -> dict | None:
    """Return ``block[key]`` when it is an object, else record an error."""
    value = block.get(key)
    label = f"{prefix}.{key}" if prefix else key
    if result.require(_is_object(value), f"{label} is required (object)."):
        return value
    return None


def _require_schema_ref(
    result: ValidationResult,
    ref: Any,
    label: str,
    schemas: dict,
) -> str | None:
    key = schema_ref_key(ref)
    result.require(key is not None, f'{label} must match "#/schemas/<Name>".')
    if key is not None:
        result.require(key in schemas, f"{label} references missing schema: {key}")
    return key


def _optional_schema_ref(result: ValidationResult, block: dict, key: str, prefix: str, schemas: dict):
    if key in block:
        _require_schema_ref(result, block[key], f"{prefix}.{key}", schemas)


def _optional_strings(result: ValidationResult, block: dict, prefix: str, keys: Iterable[str]):
    for key in keys:
        if key in block:
            result.require(
                _is_non_empty_string(block[key]),
                f"{prefix}.{key} must be a non-empty string.",
            )


def _optional_string_list(result: ValidationResult, block: dict, key: str, prefix: str):
    if key not in block:
        return
    values = block[key]
    if not result.require(
        isinstance(values, list), f"{prefix}.{key} must be an array when provided."
    ):
        return
    for idx, item in enumerate(values):
        result.require(
            _is_non_empty_string(item), f"{prefix}.{key}[{idx}] must be a non-empty string."
        )


def _string_list(result: ValidationResult, block: dict, key: str, prefix: str):
    values = block.get(key)
    if not result.require(
        _is_non_empty_list(values), f"{prefix}.{key} is required (non-empty array)."
    ):
        return
    for idx, item in enumerate(values):
        result.require(
            _is_non_empty_string(item), f"{prefix}.{key}[{idx}] must be a non-empty string."
        )


def _objects(result: ValidationResult, items: list, label: str):
    """Yield ``(idx, item)`` for object items; record an error for the rest."""
    for idx, item in enumerate(items):
        if _is_object(item):
            yield idx, item
        else:
            result.add_error(f"{label}[{idx}] must be an object.")


# =============================================================================
# Validation entry point
# =============================================================================


def validate_blueprint(data: Any) -> ValidationResult:
    """
    Perform comprehensive validation on a parsed blueprint tree.

    Sections are checked in document order and errors accumulate; the
    whole document is always traversed so one call reports every defect.

    Checks:
    - Identity, metadata, ownership and scope
    - Integration descriptor (enums, attach kinds, failure/rollback contracts)
    - Schema definitions and every ``#/schemas/<Name>`` reference
    - Interfaces, including attach/interface cross-checks
    - API block (routes ``run`` and ``health``, auth, degradation)
    - Attach-conditional blocks (worker, sdk, cron, pipeline)
    - Deliverables, acceptance scenarios, model and configuration
    - Optional blocks (tools, data_flow, observability, ...)

    Args:
        data: Parsed blueprint (any value; may be malformed)

    Returns:
        ValidationResult with errors and warnings
    """
    result = ValidationResult()

    if not result.require(_is_object(data), "Blueprint must be a JSON object."):
        return result

    _validate_identity(data, result)
    _validate_agent(data, result)
    _validate_scope(data, result)

    schemas = data.get("schemas") if _is_object(data.get("schemas")) else {}
    attach = _validate_integration(data, schemas, result)
    _validate_schemas(data, result)
    _validate_interfaces(data, attach, schemas, result)
    _validate_api(data, schemas, result)
    _validate_attach_blocks(data, attach, schemas, result)
    _validate_deliverables(data, result)
    _validate_acceptance(data, result)
    _validate_model(data, result)
    _validate_configuration(data, result)
    _validate_optional_blocks(data, schemas, result)

    return result


def _validate_identity(data: dict, result: ValidationResult):
    """Validate kind, version and meta."""
    result.require(data.get("kind") == BLUEPRINT_KIND, f'kind must be "{BLUEPRINT_KIND}".')
    version = data.get("version")
    result.require(_is_int(version) and version >= 1, "version must be an integer >= 1.")

    meta = _require_object(result, data, "meta", "")
    if meta is None:
        return
    if _require_string(result, meta, "generated_at", "meta"):
        result.require(
            _is_datetime(meta["generated_at"]),
            "meta.generated_at must be a valid date-time.",
        )


def _validate_agent(data: dict, result: ValidationResult):
    """Validate agent identity and ownership."""
    agent = _require_object(result, data, "agent", "")
    if agent is None:
        return

    for key in ("id", "name", "summary"):
        _require_string(result, agent, key, "agent")

    owners = agent.get("owners")
    if not result.require(
        _is_non_empty_list(owners), "agent.owners is required (non-empty array)."
    ):
        return
    for idx, owner in _objects(result, owners, "agent.owners"):
        label = f"agent.owners[{idx}]"
        _require_enum(result, owner.get("type"), OwnerType, f"{label}.type")
        _require_string(result, owner, "id", label)
        _optional_strings(result, owner, label, ["contact"])


def _validate_scope(data: dict, result: ValidationResult):
    scope = _require_object(result, data, "scope", "")
    if scope is None:
        return
    _string_list(result, scope, "in_scope", "scope")
    _string_list(result, scope, "out_of_scope", "scope")
    _require_string(result, scope, "definition_of_done", "scope")


def _validate_integration(data: dict, schemas: dict, result: ValidationResult) -> list[str]:
    """
    Validate the integration descriptor.

    Returns:
        Active attach kinds (supported, de-duplicated, in declared order)
    """
    integration = _require_object(result, data, "integration", "")
    if integration is None:
        return []

    result.require(
        integration.get("primary") == "api", 'integration.primary must be "api" in v1.'
    )

    attach: list[str] = []
    raw_attach = integration.get("attach")
    if result.require(
        isinstance(raw_attach, list), "integration.attach is required (array)."
    ):
        for kind in raw_attach:
            if kind not in ATTACH_KINDS:
                result.add_error(f"integration.attach contains unsupported value: {kind}")
            elif kind in attach:
                result.add_error(f"integration.attach contains duplicate value: {kind}")
            else:
                attach.append(kind)

    trigger = _require_object(result, integration, "trigger", "integration")
    if trigger is not None:
        _require_enum(result, trigger.get("kind"), TriggerKind, "integration.trigger.kind")

    target = _require_object(result, integration, "target", "integration")
    if target is not None:
        _require_enum(result, target.get("kind"), TargetKind, "integration.target.kind")
        _require_string(result, target, "name", "integration.target")

    failure = _require_object(result, integration, "failure_contract", "integration")
    if failure is not None:
        mode = failure.get("mode")
        _require_enum(result, mode, FailureMode, "integration.failure_contract.mode")
        # Enforced on its own so a wider FailureMode can never admit silent suppression
        result.require(
            mode != FORBIDDEN_FAILURE_MODE,
            f'integration.failure_contract.mode must not be "{FORBIDDEN_FAILURE_MODE}".',
        )

    rollback = _require_object(result, integration, "rollback_or_disable", "integration")
    if rollback is not None:
        _require_enum(
            result, rollback.get("method"), RollbackMethod, "integration.rollback_or_disable.method"
        )
        _optional_strings(result, rollback, "integration.rollback_or_disable", ["key"])

    for key in ("upstream_contract_ref", "downstream_contract_ref"):
        _require_schema_ref(result, integration.get(key), f"integration.{key}", schemas)

    return attach


def _validate_schemas(data: dict, result: ValidationResult):
    schemas = _require_object(result, data, "schemas", "")
    if schemas is None:
        return
    for name in REQUIRED_SCHEMAS:
        result.require(_is_object(schemas.get(name)), f"schemas.{name} is required.")


def _validate_interfaces(data: dict, attach: list[str], schemas: dict, result: ValidationResult):
    """Validate interface descriptors and the attach/interface cross-check."""
    interfaces = data.get("interfaces")
    if not isinstance(interfaces, list):
        interfaces = []
    result.require(len(interfaces) > 0, "interfaces is required (non-empty array).")

    for idx, iface in _objects(result, interfaces, "interfaces"):
        label = f"interfaces[{idx}]"
        _require_enum(result, iface.get("type"), InterfaceType, f"{label}.type")
        _require_string(result, iface, "entrypoint", label)
        _require_schema_ref(result, iface.get("input_schema_ref"), f"{label}.input_schema_ref", schemas)
        _require_schema_ref(result, iface.get("output_schema_ref"), f"{label}.output_schema_ref", schemas)
        _optional_schema_ref(result, iface, "error_schema_ref", label, schemas)
        result.require(
            _is_positive_int(iface.get("examples_min")),
            f"{label}.examples_min must be an integer >= 1.",
        )

    # only string values; anything else was already reported as an enum error
    declared = {
        kind for iface in interfaces if _is_object(iface) and isinstance(kind := iface.get("type"), str)
    }
    result.require("http" in declared, 'interfaces must include type "http" when primary=api.')
    for kind in attach:
        result.require(
            kind in declared,
            f'interfaces must include type "{kind}" because it is included in integration.attach.',
        )


def _validate_api(data: dict, schemas: dict, result: ValidationResult):
    """Validate the API block: protocol, routes, auth and degradation."""
    api = data.get("api")
    if not result.require(_is_object(api), "api config block is required when primary=api."):
        return

    _require_enum(result, api.get("protocol"), ApiProtocol, "api.protocol")
    _require_string(result, api, "base_path", "api")
    result.require(
        _is_positive_int(api.get("timeout_budget_ms")),
        "api.timeout_budget_ms must be an integer >= 1.",
    )

    routes = api.get("routes")
    result.require(
        isinstance(routes, list) and len(routes) >= 2,
        "api.routes must be an array with at least 2 routes.",
    )
    if not isinstance(routes, list):
        routes = []
    names = {
        name for route in routes if _is_object(route) and isinstance(name := route.get("name"), str)
    }
    result.require("run" in names, 'api.routes must include name="run".')
    result.require("health" in names, 'api.routes must include name="health".')

    for idx, route in _objects(result, routes, "api.routes"):
        label = f"api.routes[{idx}]"
        _require_enum(result, route.get("name"), RouteName, f"{label}.name")
        _require_enum(result, route.get("method"), HttpMethod, f"{label}.method")
        _require_string(result, route, "path", label)
        _require_schema_ref(result, route.get("request_schema_ref"), f"{label}.request_schema_ref", schemas)
        _require_schema_ref(result, route.get("response_schema_ref"), f"{label}.response_schema_ref", schemas)
        _optional_schema_ref(result, route, "error_schema_ref", label, schemas)

    auth = _require_object(result, api, "auth", "api")
    if auth is not None:
        _require_enum(result, auth.get("kind"), AuthKind, "api.auth.kind")
        _optional_strings(result, auth, "api.auth", ["env_var"])

    degradation = _require_object(result, api, "degradation", "api")
    if degradation is not None:
        _require_enum(result, degradation.get("mode"), DegradationMode, "api.degradation.mode")


# =============================================================================
# Attach-conditional blocks
# =============================================================================


def _validate_worker(worker: dict, schemas: dict, result: ValidationResult):
    source = _require_object(result, worker, "source", "worker")
    if source is not None:
        _require_enum(result, source.get("kind"), WorkerSourceKind, "worker.source.kind")
        _require_string(result, source, "name", "worker.source")

    execution = _require_object(result, worker, "execution", "worker")
    if execution is not None:
        for key in ("max_concurrency", "timeout_ms"):
            result.require(
                _is_positive_int(execution.get(key)),
                f"worker.execution.{key} must be an integer >= 1.",
            )

    retry = _require_object(result, worker, "retry", "worker")
    if retry is not None:
        result.require(
            _is_positive_int(retry.get("max_attempts")),
            "worker.retry.max_attempts must be an integer >= 1.",
        )
        backoff = _require_object(result, retry, "backoff", "worker.retry")
        if backoff is not None:
            _require_enum(result, backoff.get("strategy"), BackoffStrategy, "worker.retry.backoff.strategy")
            if "base_delay_ms" in backoff:
                result.require(
                    _is_non_negative_int(backoff["base_delay_ms"]),
                    "worker.retry.backoff.base_delay_ms must be an integer >= 0.",
                )

    idempotency = _require_object(result, worker, "idempotency", "worker")
    if idempotency is not None:
        _require_enum(
            result, idempotency.get("strategy"), IdempotencyStrategy, "worker.idempotency.strategy"
        )
        _optional_strings(result, idempotency, "worker.idempotency", ["key_ref"])

    failure = _require_object(result, worker, "failure", "worker")
    if failure is not None:
        dead_letter = _require_object(result, failure, "dead_letter", "worker.failure")
        if dead_letter is not None:
            _require_enum(
                result, dead_letter.get("kind"), DeadLetterKind, "worker.failure.dead_letter.kind"
            )
        _require_enum(result, failure.get("alert_on"), AlertOn, "worker.failure.alert_on")


def _validate_sdk(sdk: dict, schemas: dict, result: ValidationResult):
    _require_enum(result, sdk.get("language"), SdkLanguage, "sdk.language")

    package = _require_object(result, sdk, "package", "sdk")
    if package is not None:
        _require_string(result, package, "name", "sdk.package")
        _require_string(result, package, "version", "sdk.package")

    exports = sdk.get("exports")
    if result.require(_is_non_empty_list(exports), "sdk.exports must be a non-empty array."):
        for idx, export in _objects(result, exports, "sdk.exports"):
            label = f"sdk.exports[{idx}]"
            _require_string(result, export, "name", label)
            _require_schema_ref(result, export.get("input_schema_ref"), f"{label}.input_schema_ref", schemas)
            _require_schema_ref(result, export.get("output_schema_ref"), f"{label}.output_schema_ref", schemas)
            _optional_schema_ref(result, export, "error_schema_ref", label, schemas)

    compat = _require_object(result, sdk, "compatibility", "sdk")
    if compat is not None:
        _require_enum(result, compat.get("semver"), SemverPolicy, "sdk.compatibility.semver")
        _require_string(result, compat, "breaking_change_policy", "sdk.compatibility")


def _validate_cron(cron: dict, schemas: dict, result: ValidationResult):
    _require_string(result, cron, "schedule", "cron")
    _require_string(result, cron, "timezone", "cron")

    cron_input = _require_object(result, cron, "input", "cron")
    if cron_input is not None:
        _require_enum(result, cron_input.get("mode"), CronInputMode, "cron.input.mode")
        _optional_strings(result, cron_input, "cron.input", ["env_var", "path"])

    cron_output = _require_object(result, cron, "output", "cron")
    if cron_output is not None:
        _require_enum(result, cron_output.get("mode"), CronOutputMode, "cron.output.mode")
        _optional_strings(result, cron_output, "cron.output", ["path"])


def _validate_pipeline(pipeline: dict, schemas: dict, result: ValidationResult):
    _require_enum(result, pipeline.get("kind"), PipelineKind, "pipeline.kind")

    io = _require_object(result, pipeline, "io", "pipeline")
    if io is not None:
        _require_enum(result, io.get("input_mode"), PipelineInputMode, "pipeline.io.input_mode")
        _require_enum(result, io.get("output_mode"), PipelineOutputMode, "pipeline.io.output_mode")


# Capability table: each attach kind names the block it requires and how to check it
ATTACH_BLOCK_VALIDATORS: dict[str, Callable[[dict, dict, ValidationResult], None]] = {
    "worker": _validate_worker,
    "sdk": _validate_sdk,
    "cron": _validate_cron,
    "pipeline": _validate_pipeline,
}


def _validate_attach_blocks(data: dict, attach: list[str], schemas: dict, result: ValidationResult):
    """Validate the companion block of every active attach kind."""
    for kind, validate in ATTACH_BLOCK_VALIDATORS.items():
        block = data.get(kind)
        if kind not in attach:
            if block is not None:
                result.add_warning(
                    f'{kind} block is present but integration.attach does not include "{kind}"; '
                    "it will be ignored."
                )
            continue
        if result.require(
            _is_object(block),
            f'{kind} block is required because attach includes "{kind}".',
        ):
            validate(block, schemas, result)


# =============================================================================
# Deliverables, acceptance, model, configuration
# =============================================================================


def _is_confined_path(value: str) -> bool:
    """Relative path that cannot climb out of the repository root."""
    path = PurePosixPath(value.replace("\\", "/"))
    return not path.is_absolute() and ".." not in path.parts and not re.match(r"^[A-Za-z]:", value)


def _validate_deliverables(data: dict, result: ValidationResult):
    deliverables = _require_object(result, data, "deliverables", "")
    if deliverables is None:
        return

    for key in ("agent_module_path", "docs_path", "registry_path"):
        if _require_string(result, deliverables, key, "deliverables"):
            result.require(
                _is_confined_path(deliverables[key]),
                f"deliverables.{key} must be a relative path inside the repository.",
            )
    result.require(
        deliverables.get("core_adapter_separation") == "required",
        'deliverables.core_adapter_separation must be "required".',
    )
    _optional_string_list(result, deliverables, "non_goals", "deliverables")


def _validate_acceptance(data: dict, result: ValidationResult):
    acceptance = _require_object(result, data, "acceptance", "")
    scenarios = acceptance.get("scenarios") if acceptance is not None else None
    if not result.require(
        isinstance(scenarios, list) and len(scenarios) >= 2,
        "acceptance.scenarios must be an array with at least 2 scenarios.",
    ):
        if not isinstance(scenarios, list):
            return

    for idx, scenario in _objects(result, scenarios, "acceptance.scenarios"):
        label = f"acceptance.scenarios[{idx}]"
        for key in ("title", "given", "when", "then"):
            _require_string(result, scenario, key, label)
        checks = scenario.get("expected_output_checks")
        if result.require(
            _is_non_empty_list(checks),
            f"{label}.expected_output_checks must be a non-empty array.",
        ):
            for c_idx, check in enumerate(checks):
                result.require(
                    _is_non_empty_string(check),
                    f"{label}.expected_output_checks[{c_idx}] must be a non-empty string.",
                )
        _require_enum(result, scenario.get("priority"), Priority, f"{label}.priority")


def _validate_model(data: dict, result: ValidationResult):
    model = _require_object(result, data, "model", "")
    if model is None:
        return
    primary = _require_object(result, model, "primary", "model")
    if primary is None:
        return

    _require_string(result, primary, "model", "model.primary")
    _require_string(result, primary, "reasoning_profile", "model.primary")
    if "provider" in primary:
        provider = primary["provider"]
        if result.require(
            _is_object(provider), "model.primary.provider must be an object when provided."
        ):
            _require_enum(result, provider.get("type"), ProviderType, "model.primary.provider.type")


def _validate_configuration(data: dict, result: ValidationResult):
    """Validate environment variable declarations and the kill switch."""
    configuration = _require_object(result, data, "configuration", "")
    if configuration is None:
        result.add_error(
            f"configuration.env_vars must include {KILL_SWITCH_ENV_VAR} for the kill switch."
        )
        return

    env_vars = configuration.get("env_vars")
    if not isinstance(env_vars, list):
        env_vars = []
    result.require(len(env_vars) > 0, "configuration.env_vars must be a non-empty array.")

    declared: dict[str, dict] = {}
    for idx, env in _objects(result, env_vars, "configuration.env_vars"):
        label = f"configuration.env_vars[{idx}]"
        name = env.get("name")
        result.require(
            _is_non_empty_string(name) and bool(ENV_VAR_PATTERN.match(name)),
            f"{label}.name must match {ENV_VAR_PATTERN.pattern}.",
        )
        _require_string(result, env, "description", label)
        result.require(isinstance(env.get("required"), bool), f"{label}.required must be boolean.")
        _require_enum(result, env.get("sensitivity"), Sensitivity, f"{label}.sensitivity")
        _require_string(result, env, "example_placeholder", label)
        if isinstance(name, str) and name:
            if name in declared:
                result.add_error(f"configuration.env_vars has duplicate name: {name}")
            else:
                declared[name] = env

    kill_switch = declared.get(KILL_SWITCH_ENV_VAR)
    if result.require(
        kill_switch is not None,
        f"configuration.env_vars must include {KILL_SWITCH_ENV_VAR} for the kill switch.",
    ):
        result.require(
            kill_switch.get("required") is True,
            f"configuration.env_vars {KILL_SWITCH_ENV_VAR} must be required=true for the kill switch.",
        )
    for name in RECOMMENDED_ENV_VARS:
        if name not in declared:
            result.add_warning(f"Recommended env var {name} not present.")

    if "config_files" in configuration:
        files = configuration["config_files"]
        if result.require(
            isinstance(files, list), "configuration.config_files must be an array when provided."
        ):
            for idx, entry in _objects(result, files, "configuration.config_files"):
                _require_string(result, entry, "path", f"configuration.config_files[{idx}]")
                _require_string(result, entry, "purpose", f"configuration.config_files[{idx}]")


# =============================================================================
# Optional blocks
# =============================================================================


def _optional_block(data: dict, key: str, result: ValidationResult) -> dict | None:
    """Return the block when present and an object; absent blocks are fine."""
    if key not in data:
        return None
    block = data[key]
    if result.require(_is_object(block), f"{key} must be an object when provided."):
        return block
    return None


def _validate_tools(tools: dict, schemas: dict, result: ValidationResult):
    if "tools" not in tools:
        return
    entries = tools["tools"]
    if not result.require(isinstance(entries, list), "tools.tools must be an array when provided."):
        return
    for idx, tool in _objects(result, entries, "tools.tools"):
        label = f"tools.tools[{idx}]"
        _require_string(result, tool, "name", label)
        _require_string(result, tool, "description", label)
        _optional_schema_ref(result, tool, "input_schema_ref", label, schemas)
        _optional_schema_ref(result, tool, "output_schema_ref", label, schemas)
        if "timeout_ms" in tool:
            result.require(
                _is_positive_int(tool["timeout_ms"]), f"{label}.timeout_ms must be an integer >= 1."
            )
        if "retries" in tool:
            result.require(
                _is_non_negative_int(tool["retries"]), f"{label}.retries must be an integer >= 0."
            )


def _validate_optional_blocks(data: dict, schemas: dict, result: ValidationResult):
    tools = _optional_block(data, "tools", result)
    if tools is not None:
        _validate_tools(tools, schemas, result)

    data_flow = _optional_block(data, "data_flow", result)
    if data_flow is not None:
        _optional_string_list(result, data_flow, "data_classes", "data_flow")
        _optional_strings(
            result, data_flow, "data_flow",
            ["summary", "retention", "redaction", "storage", "diagram_mermaid"],
        )

    observability = _optional_block(data, "observability", result)
    if observability is not None:
        _optional_strings(
            result, observability, "observability", ["logging", "metrics", "tracing", "alerts"]
        )

    operations = _optional_block(data, "operations", result)
    if operations is not None:
        _optional_strings(result, operations, "operations", ["runbook_notes", "slo_sla", "oncall"])

    prompting = _optional_block(data, "prompting", result)
    if prompting is not None:
        if "complexity_tier" in prompting:
            _require_enum(
                result, prompting["complexity_tier"], PromptTier, "prompting.complexity_tier"
            )
        _optional_string_list(result, prompting, "prompt_modules", "prompting")
        _optional_strings(result, prompting, "prompting", ["examples_strategy"])

    security = _optional_block(data, "security", result)
    if security is not None:
        _optional_string_list(result, security, "approval_points", "security")
        _optional_strings(result, security, "security", ["permissions", "threats"])

    lifecycle = _optional_block(data, "lifecycle", result)
    if lifecycle is not None:
        _optional_strings(
            result, lifecycle, "lifecycle", ["versioning", "migration_notes", "deprecation"]
        )
