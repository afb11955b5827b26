"""
Pytest configuration for agent-builder tests.
"""

import os
import sys
from pathlib import Path

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from agent_builder.config import get_config  # noqa: E402

from fixtures.blueprints import build_corpus, valid_blueprint  # noqa: E402


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """
    Isolate environment variables and the cached config for each test.

    This prevents tests from affecting each other through env vars.
    """
    original_env = dict(os.environ)
    get_config.cache_clear()

    yield

    os.environ.clear()
    os.environ.update(original_env)
    get_config.cache_clear()


@pytest.fixture
def clean_env(monkeypatch):
    """
    Provide a clean environment with no AGENT_BUILDER_ vars.

    Use this fixture when you want to start with a completely clean slate.
    """
    for var in list(os.environ):
        if var.startswith("AGENT_BUILDER_"):
            monkeypatch.delenv(var, raising=False)
    get_config.cache_clear()
    return monkeypatch


@pytest.fixture
def workspace_root(tmp_path, clean_env):
    """Point the configured workspace root at a temporary directory."""
    root = tmp_path / "workspaces"
    root.mkdir()
    clean_env.setenv("AGENT_BUILDER_WORKSPACE_ROOT", str(root))
    get_config.cache_clear()
    return root


@pytest.fixture
def blueprint_data():
    """A fresh minimal valid blueprint tree (api + worker)."""
    return valid_blueprint()


@pytest.fixture
def corpus_root(tmp_path):
    """A small template corpus on disk, including one binary file."""
    return build_corpus(tmp_path / "corpus")


@pytest.fixture
def repo_root(tmp_path):
    root = tmp_path / "repo"
    root.mkdir()
    return root
