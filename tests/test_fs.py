"""
Unit tests for the workspace path safety guard.
"""

import pytest

from agent_builder.utils.fs import UnsafeWorkdirError, is_within_workspace_root, remove_workdir


class TestIsWithinWorkspaceRoot:
    def test_child_is_within(self, tmp_path):
        assert is_within_workspace_root(tmp_path / "root" / "run", tmp_path / "root")

    def test_root_itself_is_not_within(self, tmp_path):
        assert not is_within_workspace_root(tmp_path / "root", tmp_path / "root")

    def test_sibling_with_common_prefix(self, tmp_path):
        assert not is_within_workspace_root(tmp_path / "root-other" / "run", tmp_path / "root")

    def test_dotdot_is_normalized(self, tmp_path):
        assert not is_within_workspace_root(tmp_path / "root" / ".." / "elsewhere", tmp_path / "root")
        assert is_within_workspace_root(tmp_path / "root" / "a" / ".." / "b", tmp_path / "root")


class TestRemoveWorkdir:
    def test_removes_inside_root(self, tmp_path):
        workdir = tmp_path / "root" / "run"
        (workdir / "stageA").mkdir(parents=True)
        (workdir / "stageA" / "notes.md").write_text("x")

        assert remove_workdir(workdir, tmp_path / "root") is True
        assert not workdir.exists()

    def test_refuses_outside_root(self, tmp_path):
        workdir = tmp_path / "precious"
        workdir.mkdir()
        (workdir / "data.txt").write_text("keep me")

        with pytest.raises(UnsafeWorkdirError):
            remove_workdir(workdir, tmp_path / "root")

        assert (workdir / "data.txt").read_text() == "keep me"

    def test_force_outside_root(self, tmp_path):
        workdir = tmp_path / "precious"
        workdir.mkdir()

        assert remove_workdir(workdir, tmp_path / "root", force=True) is True
        assert not workdir.exists()

    def test_missing_workdir(self, tmp_path):
        assert remove_workdir(tmp_path / "root" / "gone", tmp_path / "root") is False
