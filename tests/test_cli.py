"""
Tests for the agent-builder CLI.

Drives the staged workflow end to end through click's CliRunner against
the packaged templates, with the workspace root pointed at tmp_path.
"""

import json

import pytest
from click.testing import CliRunner

from agent_builder.cli import cli
from agent_builder.workflow import NEXT_ACTIONS, RunWorkspace


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def invoke(runner):
    def _invoke(*args):
        return runner.invoke(cli, [str(arg) for arg in args])

    return _invoke


@pytest.fixture
def workdir(workspace_root, invoke):
    """A started run inside the workspace root."""
    path = workspace_root / "run"
    result = invoke("start", "--workdir", path)
    assert result.exit_code == 0, result.output
    return path


@pytest.fixture
def approved_workdir(workdir, invoke):
    """A run with stages A and B approved."""
    assert invoke("validate-blueprint", "--workdir", workdir).exit_code == 0
    assert invoke("approve", "--workdir", workdir, "--stage", "A").exit_code == 0
    assert invoke("approve", "--workdir", workdir, "--stage", "B").exit_code == 0
    return workdir


def _draft(workdir):
    return workdir / "stageB" / "agent-blueprint.json"


# =============================================================================
# Full workflow
# =============================================================================


class TestWorkflow:
    def test_start_seeds_workspace(self, workdir):
        assert (workdir / ".agent-builder-state.json").is_file()
        assert _draft(workdir).is_file()
        assert (workdir / "stageA" / "interview-notes.md").is_file()

    def test_status(self, workdir, invoke):
        result = invoke("status", "--workdir", workdir)

        assert result.exit_code == 0
        assert "Current stage: A" in result.output
        assert NEXT_ACTIONS["A"] in result.output

    def test_end_to_end(self, approved_workdir, invoke, repo_root):
        plan = invoke("plan", "--workdir", approved_workdir, "--repo-root", repo_root)
        assert plan.exit_code == 0, plan.output
        assert "MKDIR agents/ticket-triage" in plan.output
        assert "UPDATE agents/registry.json" in plan.output
        assert list(repo_root.iterdir()) == []

        applied = invoke("apply", "--workdir", approved_workdir, "--repo-root", repo_root, "--apply")
        assert applied.exit_code == 0, applied.output
        module = repo_root / "agents" / "ticket-triage"
        assert (module / "README.md").is_file()
        assert (module / "src" / "adapters" / "worker" / "worker.py").is_file()
        assert not (module / "src" / "adapters" / "sdk").exists()
        assert (module / "doc" / "overview.md").is_file()
        registry = json.loads((repo_root / "agents" / "registry.json").read_text())
        assert [a["id"] for a in registry["agents"]] == ["ticket-triage"]

        state = RunWorkspace(approved_workdir).load()
        assert state.stages["C"].status == "applied"
        assert state.history[-1].event == "apply"

        again = invoke("apply", "--workdir", approved_workdir, "--repo-root", repo_root, "--apply")
        assert again.exit_code == 0, again.output
        assert "skipped=" in again.output
        assert "written=" not in again.output

        for stage in "CDE":
            assert invoke("approve", "--workdir", approved_workdir, "--stage", stage).exit_code == 0
        status = invoke("status", "--workdir", approved_workdir)
        assert "Current stage: DONE" in status.output

        finished = invoke("finish", "--workdir", approved_workdir)
        assert finished.exit_code == 0, finished.output
        assert not approved_workdir.exists()
        assert (module / "README.md").is_file()


# =============================================================================
# Validation
# =============================================================================


class TestValidateBlueprint:
    def test_valid_marks_stage_b_ready(self, workdir, invoke):
        result = invoke("validate-blueprint", "--workdir", workdir)

        assert result.exit_code == 0
        assert "Blueprint is valid." in result.output
        assert RunWorkspace(workdir).load().stages["B"].status == "ready_for_review"

    def test_json_format(self, workdir, invoke):
        result = invoke("validate-blueprint", "--workdir", workdir, "--format", "json")

        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["ok"] is True
        assert payload["errors"] == []

    def test_invalid_blueprint_exits_1(self, workdir, invoke):
        _draft(workdir).write_text(json.dumps({"agent": {"name": "No id"}}))

        result = invoke("validate-blueprint", "--workdir", workdir)

        assert result.exit_code == 1
        assert "agent.id is required (string)." in result.output
        assert RunWorkspace(workdir).load().stages["B"].status == "not_started"

    def test_unparseable_blueprint(self, workdir, invoke):
        _draft(workdir).write_text("{not json")

        result = invoke("validate-blueprint", "--workdir", workdir)

        assert result.exit_code != 0

    def test_blueprint_override_without_state(self, tmp_path, invoke, blueprint_data):
        path = tmp_path / "bp.json"
        path.write_text(json.dumps(blueprint_data))

        result = invoke("validate-blueprint", "--workdir", tmp_path / "nowhere", "--blueprint", path)

        assert result.exit_code == 0

    def test_plan_refuses_invalid_blueprint(self, workdir, invoke, repo_root):
        _draft(workdir).write_text("[]")

        result = invoke("plan", "--workdir", workdir, "--repo-root", repo_root)

        assert result.exit_code == 1


# =============================================================================
# Gating
# =============================================================================


class TestGating:
    def test_approve_out_of_order(self, workdir, invoke):
        result = invoke("approve", "--workdir", workdir, "--stage", "C")

        assert result.exit_code == 2
        state = RunWorkspace(workdir).load()
        assert state.current_stage == "A"
        assert not state.is_approved("C")

    def test_approve_b_before_validation(self, workdir, invoke):
        invoke("approve", "--workdir", workdir, "--stage", "A")

        result = invoke("approve", "--workdir", workdir, "--stage", "B")

        assert result.exit_code == 2
        assert not RunWorkspace(workdir).load().is_approved("B")

    def test_reapprove_is_noop(self, workdir, invoke):
        invoke("approve", "--workdir", workdir, "--stage", "A")

        result = invoke("approve", "--workdir", workdir, "--stage", "A")

        assert result.exit_code == 0
        assert "already approved" in result.output
        assert RunWorkspace(workdir).load().current_stage == "B"

    def test_status_without_state(self, tmp_path, invoke):
        result = invoke("status", "--workdir", tmp_path / "missing")

        assert result.exit_code == 2

    def test_apply_requires_flag(self, approved_workdir, invoke, repo_root):
        result = invoke("apply", "--workdir", approved_workdir, "--repo-root", repo_root)

        assert result.exit_code == 2
        assert list(repo_root.iterdir()) == []

    def test_apply_requires_stage_b(self, workdir, invoke, repo_root):
        invoke("validate-blueprint", "--workdir", workdir)

        result = invoke("apply", "--workdir", workdir, "--repo-root", repo_root, "--apply")

        assert result.exit_code == 2
        assert list(repo_root.iterdir()) == []


# =============================================================================
# Finish
# =============================================================================


class TestFinish:
    def test_refuses_outside_root(self, workspace_root, tmp_path, invoke):
        outside = tmp_path / "outside"
        assert invoke("start", "--workdir", outside).exit_code == 0

        result = invoke("finish", "--workdir", outside)

        assert result.exit_code != 0
        assert outside.is_dir()

    def test_force_outside_root(self, workspace_root, tmp_path, invoke):
        outside = tmp_path / "outside"
        invoke("start", "--workdir", outside)

        result = invoke("finish", "--workdir", outside, "--force")

        assert result.exit_code == 0
        assert not outside.exists()

    def test_missing_workdir(self, workspace_root, invoke):
        result = invoke("finish", "--workdir", workspace_root / "gone")

        assert result.exit_code == 0
        assert "does not exist" in result.output

    def test_warns_about_unapproved_stages(self, workdir, invoke):
        result = invoke("finish", "--workdir", workdir)

        assert result.exit_code == 0
        assert "stages not approved" in result.output
        assert not workdir.exists()
