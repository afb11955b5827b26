"""
Unit tests for scaffold application.

Tests cover dry runs, copy-if-missing idempotence, placeholder
substitution, binary copies, overwrite mode and per-operation failures.
"""

import json

import pytest

from agent_builder.blueprints import refine_blueprint
from agent_builder.scaffold import (
    TemplateCorpus,
    apply_scaffold,
    build_replacements,
    plan_scaffold,
    substitute,
)

from fixtures.blueprints import PNG_BYTES


@pytest.fixture
def corpus(corpus_root):
    return TemplateCorpus.scan(corpus_root)


@pytest.fixture
def blueprint(blueprint_data):
    return refine_blueprint(blueprint_data)


@pytest.fixture
def plan(blueprint, corpus, repo_root):
    return plan_scaffold(blueprint, repo_root, corpus)


class TestReplacements:
    def test_build_replacements(self, blueprint):
        replacements = build_replacements(blueprint)

        assert replacements["__AGENT_ID__"] == "demo-agent"
        assert replacements["__AGENT_NAME__"] == "Demo Agent"
        assert replacements["__AGENT_BASE_PATH__"] == "/agent/demo-agent"
        assert replacements["__LLM_MODEL__"] == "demo-model"
        assert replacements["__LLM_REASONING_PROFILE__"] == "fast"
        assert replacements["__AGENT_PKG_NAME__"] == "agent-demo-agent"

    def test_package_name_from_sdk(self, blueprint_data):
        blueprint_data["integration"]["attach"].append("sdk")
        blueprint_data["interfaces"].append(dict(blueprint_data["interfaces"][0], type="sdk"))
        blueprint_data["sdk"] = {
            "language": "python",
            "package": {"name": "demo-sdk", "version": "0.1.0"},
            "exports": [
                {
                    "name": "run",
                    "input_schema_ref": "#/schemas/RunRequest",
                    "output_schema_ref": "#/schemas/RunResponse",
                }
            ],
            "compatibility": {"semver": "strict", "breaking_change_policy": "major bump"},
        }

        replacements = build_replacements(refine_blueprint(blueprint_data))
        assert replacements["__AGENT_PKG_NAME__"] == "demo-sdk"

    def test_substitution_is_not_recursive(self):
        text = substitute("__A__ and __B__", {"__A__": "__B__", "__B__": "b"})

        assert text == "__B__ and b"


class TestDryRun:
    def test_dry_run_touches_nothing(self, plan, blueprint, corpus, repo_root):
        report = apply_scaffold(plan, blueprint, corpus, commit=False)

        assert len(report) == len(plan)
        assert {outcome.status for outcome in report} == {"planned"}
        assert list(repo_root.iterdir()) == []


class TestCommit:
    def test_first_apply_writes_everything(self, plan, blueprint, corpus):
        report = apply_scaffold(plan, blueprint, corpus, commit=True)

        assert report.ok
        # module and docs roots are the same directory in the fixture
        assert [o.status for o in report if o.action == "mkdir"] == ["created", "exists"]
        assert report.counts["updated"] == 1
        assert report.counts["written"] == len(plan.writes())
        assert (plan.module_root / "README.md").is_file()
        assert (plan.docs_root / "doc" / "runbook.md").is_file()

    def test_text_templates_are_substituted(self, plan, blueprint, corpus):
        apply_scaffold(plan, blueprint, corpus, commit=True)

        readme = (plan.module_root / "README.md").read_text()
        assert readme == "# Demo Agent\n\nAnswers demo questions.\nid=demo-agent\n"
        agent = (plan.module_root / "src/core/agent.py").read_text()
        assert 'BASE_PATH = "/agent/demo-agent"' in agent
        assert "__" not in (plan.module_root / "prompts" / "system.md").read_text()

    def test_binary_copied_byte_for_byte(self, plan, blueprint, corpus):
        apply_scaffold(plan, blueprint, corpus, commit=True)

        assert (plan.module_root / "assets" / "logo.png").read_bytes() == PNG_BYTES

    def test_schema_files_are_pretty_json(self, plan, blueprint, corpus, blueprint_data):
        apply_scaffold(plan, blueprint, corpus, commit=True)

        text = (plan.module_root / "schemas" / "RunRequest.schema.json").read_text()
        assert text.endswith("\n")
        assert text == json.dumps(blueprint_data["schemas"]["RunRequest"], indent=2) + "\n"

    def test_docs_rendered(self, plan, blueprint, corpus):
        apply_scaffold(plan, blueprint, corpus, commit=True)

        overview = (plan.docs_root / "doc" / "overview.md").read_text()
        integration = (plan.docs_root / "doc" / "integration.md").read_text()
        assert overview.startswith("# Demo Agent (demo-agent)")
        assert "## Worker (attach)" in integration
        assert "## SDK (attach)" not in integration
        assert "  - run: POST /agent/demo-agent/run" in integration
        assert "  - health: GET /agent/demo-agent/health" in integration

    def test_second_apply_is_idempotent(self, plan, blueprint, corpus):
        apply_scaffold(plan, blueprint, corpus, commit=True)
        readme = plan.module_root / "README.md"
        readme.write_text("edited by hand\n")

        report = apply_scaffold(plan, blueprint, corpus, commit=True)

        writes = [o for o in report if o.action == "write"]
        assert writes and all(o.status == "skipped" and o.reason == "exists" for o in writes)
        assert {o.status for o in report if o.action == "mkdir"} == {"exists"}
        assert readme.read_text() == "edited by hand\n"

        registry = json.loads(plan.registry_path.read_text())
        assert [entry["id"] for entry in registry["agents"]] == ["demo-agent"]

    def test_overwrite_mode(self, plan, blueprint, corpus):
        apply_scaffold(plan, blueprint, corpus, commit=True)
        readme = plan.module_root / "README.md"
        readme.write_text("edited by hand\n")

        report = apply_scaffold(plan, blueprint, corpus, commit=True, overwrite=True)

        assert "skipped" not in report.counts
        assert readme.read_text().startswith("# Demo Agent")


class TestPartialFailure:
    def test_failed_operation_does_not_stop_the_rest(self, plan, blueprint, corpus):
        # A directory where a file should go makes that one write fail
        blocker = plan.module_root / "README.md"
        blocker.mkdir(parents=True)
        (blocker / "keep").write_text("x")

        report = apply_scaffold(plan, blueprint, corpus, commit=True, overwrite=True)

        assert not report.ok
        assert [o.path for o in report.failed] == [blocker]
        assert report.failed[0].reason
        assert (plan.docs_root / "doc" / "evaluation.md").is_file()

    def test_unparseable_registry_fails_update_only(self, plan, blueprint, corpus):
        plan.registry_path.parent.mkdir(parents=True)
        plan.registry_path.write_text("{broken")

        report = apply_scaffold(plan, blueprint, corpus, commit=True)

        update = next(o for o in report if o.action == "update")
        assert update.status == "failed"
        assert plan.registry_path.read_text() == "{broken"
        assert report.counts["written"] == len(plan.writes())

    def test_registry_with_odd_entries_still_updates(self, plan, blueprint, corpus):
        plan.registry_path.parent.mkdir(parents=True)
        plan.registry_path.write_text('{"version": 1, "agents": [null, "legacy"]}')

        report = apply_scaffold(plan, blueprint, corpus, commit=True)

        assert report.ok
        agents = json.loads(plan.registry_path.read_text())["agents"]
        assert [a["id"] for a in agents if isinstance(a, dict)] == ["demo-agent"]
