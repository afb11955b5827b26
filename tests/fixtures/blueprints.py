"""
Shared blueprint and template corpus fixtures.

``valid_blueprint()`` returns a fresh minimal blueprint with
``integration.attach == ["worker"]``; tests mutate their own copy.
"""

import json
from pathlib import Path

# 1x1 transparent PNG
PNG_BYTES = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c63000100000500010d0a2db40000000049454e44ae426082"
)


def _schema(*required):
    return {
        "type": "object",
        "required": list(required),
        "properties": {name: {"type": "string"} for name in required},
    }


def _interface(kind, entrypoint):
    return {
        "type": kind,
        "entrypoint": entrypoint,
        "input_schema_ref": "#/schemas/RunRequest",
        "output_schema_ref": "#/schemas/RunResponse",
        "error_schema_ref": "#/schemas/AgentError",
        "examples_min": 1,
    }


def _env(name, required, sensitivity="internal"):
    return {
        "name": name,
        "description": f"{name} setting",
        "required": required,
        "sensitivity": sensitivity,
        "example_placeholder": "value",
    }


def valid_blueprint(agent_id="demo-agent"):
    """Minimal blueprint that passes validation with zero errors and zero warnings."""
    return {
        "kind": "agent_blueprint",
        "version": 1,
        "meta": {"generated_at": "2025-01-01T00:00:00Z"},
        "agent": {
            "id": agent_id,
            "name": "Demo Agent",
            "summary": "Answers demo questions.",
            "owners": [{"type": "team", "id": "platform"}],
        },
        "scope": {
            "in_scope": ["Answer questions"],
            "out_of_scope": ["Anything else"],
            "definition_of_done": "Questions are answered.",
        },
        "integration": {
            "primary": "api",
            "attach": ["worker"],
            "trigger": {"kind": "sync_request"},
            "target": {"kind": "service", "name": "demo-service"},
            "failure_contract": {"mode": "propagate_error"},
            "rollback_or_disable": {"method": "config_toggle", "key": "AGENT_ENABLED"},
            "upstream_contract_ref": "#/schemas/RunRequest",
            "downstream_contract_ref": "#/schemas/RunResponse",
        },
        "schemas": {
            "RunRequest": _schema("question"),
            "RunResponse": _schema("answer"),
            "AgentError": _schema("code", "message"),
        },
        "interfaces": [
            _interface("http", "src/adapters/http/server.py"),
            _interface("worker", "src/adapters/worker/worker.py"),
        ],
        "api": {
            "protocol": "http",
            "base_path": f"/agent/{agent_id}",
            "timeout_budget_ms": 10000,
            "routes": [
                {
                    "name": "run",
                    "method": "post",
                    "path": "/run",
                    "request_schema_ref": "#/schemas/RunRequest",
                    "response_schema_ref": "#/schemas/RunResponse",
                },
                {
                    "name": "health",
                    "method": "get",
                    "path": "/health",
                    "request_schema_ref": "#/schemas/RunRequest",
                    "response_schema_ref": "#/schemas/RunResponse",
                },
            ],
            "auth": {"kind": "none"},
            "degradation": {"mode": "none"},
        },
        "worker": {
            "source": {"kind": "queue", "name": "demo.jobs"},
            "execution": {"max_concurrency": 2, "timeout_ms": 5000},
            "retry": {"max_attempts": 3, "backoff": {"strategy": "fixed", "base_delay_ms": 0}},
            "idempotency": {"strategy": "none"},
            "failure": {"dead_letter": {"kind": "none"}, "alert_on": "never"},
        },
        "deliverables": {
            "agent_module_path": f"agents/{agent_id}",
            "docs_path": f"agents/{agent_id}",
            "registry_path": "agents/registry.json",
            "core_adapter_separation": "required",
        },
        "acceptance": {
            "scenarios": [
                {
                    "title": "Happy path",
                    "given": "A question",
                    "when": "It is posted to /run",
                    "then": "An answer is returned",
                    "expected_output_checks": ["answer is non-empty"],
                    "priority": "P0",
                },
                {
                    "title": "Kill switch",
                    "given": "AGENT_ENABLED=false",
                    "when": "A question is posted",
                    "then": "An AgentError is returned",
                    "expected_output_checks": ["code == agent_disabled"],
                    "priority": "P1",
                },
            ]
        },
        "model": {"primary": {"model": "demo-model", "reasoning_profile": "fast"}},
        "configuration": {
            "env_vars": [
                _env("AGENT_ENABLED", True),
                _env("LLM_API_KEY", True, "secret"),
                _env("LLM_MODEL", False, "public"),
            ]
        },
    }


CORPUS_FILES = {
    "agent-kit/layout/README.md.template": "# __AGENT_NAME__\n\n__AGENT_SUMMARY__\nid=__AGENT_ID__\n",
    "agent-kit/layout/.env.example.template": "AGENT_ENABLED=true\nLLM_MODEL=__LLM_MODEL__\n",
    "agent-kit/layout/pyproject.toml.template": 'name = "__AGENT_PKG_NAME__"\n',
    "agent-kit/layout/src/core/agent.py.template": 'BASE_PATH = "__AGENT_BASE_PATH__"\nPROFILE = "__LLM_REASONING_PROFILE__"\n',
    "agent-kit/layout/src/adapters/http/server.py.template": "# http adapter for __AGENT_ID__\n",
    "agent-kit/layout/src/adapters/worker/worker.py.template": "# worker adapter for __AGENT_ID__\n",
    "agent-kit/layout/src/adapters/sdk/client.py.template": "# sdk adapter for __AGENT_ID__\n",
    "agent-kit/layout/src/adapters/cron/run_cron.py.template": "# cron adapter\n",
    "agent-kit/layout/src/adapters/pipeline/run_step.py.template": "# pipeline adapter\n",
    "prompt-pack/tier1/system.md": "tier1 __AGENT_NAME__\n",
    "prompt-pack/tier2/system.md": "tier2 __AGENT_NAME__\n",
    "prompt-pack/tier2/examples.md": "examples for __AGENT_ID__\n",
    "prompt-pack/tier3/system.md": "tier3 __AGENT_NAME__\n",
    "stage-a/conversation-prompts.md": "# prompts\n",
    "stage-a/interview-notes.template.md": "# notes\n",
    "stage-b/agent-blueprint.example.api-worker.json": json.dumps(valid_blueprint(), indent=2),
}

BINARY_TEMPLATE = "agent-kit/layout/assets/logo.png"


def build_corpus(root: Path) -> Path:
    """Write the test corpus under ``root`` and return it."""
    for rel, content in CORPUS_FILES.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    binary = root / BINARY_TEMPLATE
    binary.parent.mkdir(parents=True, exist_ok=True)
    binary.write_bytes(PNG_BYTES)
    return root


def write_blueprint(path: Path, data) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path
