"""
Configuration system for agent-builder.

Handles environment-based configuration with Pydantic Settings.
Every setting can be overridden with an ``AGENT_BUILDER_`` prefixed
environment variable or a ``.env`` file in the working directory.
"""

import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Template corpus shipped with the package
DEFAULT_TEMPLATES_DIR = Path(__file__).parent / "templates"

DEFAULT_STATE_FILE = ".agent-builder-state.json"


def default_workspace_root() -> Path:
    """Root directory under which run workspaces are created by default."""
    return Path(tempfile.gettempdir()) / "agent_builder"


class Config(BaseSettings):
    """
    Application configuration with environment-based settings.

    Configuration priority:
    1. Environment variables
    2. Variables from .env file
    3. Default field values

    Example .env file:
        AGENT_BUILDER_WORKSPACE_ROOT=/tmp/agent_builder
        AGENT_BUILDER_DEFAULT_PROMPT_TIER=tier3
        AGENT_BUILDER_LOG_LEVEL=INFO
    """

    model_config = SettingsConfigDict(
        env_prefix="AGENT_BUILDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Run workspaces
    workspace_root: Path = Field(
        default_factory=default_workspace_root,
        description="Temporary root that run workspaces live under; finish only deletes inside it",
    )
    state_file: str = Field(
        default=DEFAULT_STATE_FILE,
        description="Name of the workflow state file inside a run workspace",
    )

    # Scaffolding
    templates_dir: Path = Field(
        default=DEFAULT_TEMPLATES_DIR,
        description="Template corpus root",
    )
    default_prompt_tier: Literal["tier1", "tier2", "tier3"] = Field(
        default="tier2",
        description="Prompt pack used when the blueprint does not declare a complexity tier",
    )

    # General settings
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging level",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value):
        """Accept lowercase level names from the environment."""
        if isinstance(value, str):
            return value.upper()
        return value

    @property
    def effective_log_level(self) -> str:
        """Debug mode always wins over the configured level."""
        return "DEBUG" if self.debug else self.log_level


@lru_cache
def get_config() -> Config:
    """
    Get cached configuration instance.

    Uses lru_cache to avoid repeated .env file reads.
    Clear cache with get_config.cache_clear() if needed.

    Returns:
        Cached Config instance
    """
    return Config()
