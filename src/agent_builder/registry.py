"""
Agent registry merging.

The registry is a JSON document listing every scaffolded agent, keyed by
agent id. ``merge_registry`` is a last-write-wins upsert: an existing
entry for the same id is replaced in place (keeping its list position),
otherwise a new entry is appended.

Usage:
    from agent_builder.registry import merge_registry

    registry = merge_registry("agents/registry.json", blueprint, commit=True)
    print(len(registry.agents))
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .blueprints.schema import AgentBlueprint

logger = logging.getLogger(__name__)

REGISTRY_VERSION = 1


class RegistryError(Exception):
    """Raised when an existing registry file cannot be read or parsed."""

    def __init__(self, message: str, path: str | Path | None = None):
        self.message = message
        self.path = Path(path) if path is not None else None
        super().__init__(message)


class RegistryDocument(BaseModel):
    """Registry contents. Unknown top-level keys are preserved on write."""

    model_config = ConfigDict(extra="allow")

    version: int = REGISTRY_VERSION
    # entries written by other tools are kept as-is, whatever their shape
    agents: List[Any] = Field(default_factory=list)

    def find(self, agent_id: str) -> int | None:
        """Index of the entry for ``agent_id``, or None."""
        for idx, entry in enumerate(self.agents):
            if isinstance(entry, dict) and entry.get("id") == agent_id:
                return idx
        return None

    def upsert(self, entry: Dict[str, Any]) -> bool:
        """
        Replace the entry with the same id, or append it.

        Returns:
            True if an existing entry was replaced
        """
        idx = self.find(entry["id"])
        if idx is None:
            self.agents.append(entry)
            return False
        self.agents[idx] = entry
        return True

    def to_json(self) -> str:
        return json.dumps(self.model_dump(), indent=2, ensure_ascii=False) + "\n"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def build_registry_entry(blueprint: AgentBlueprint, generated_at: str | None = None) -> Dict[str, Any]:
    """Registry entry for a blueprint, stamped with a generation time and ``active`` status."""
    return {
        "id": blueprint.agent.id,
        "name": blueprint.agent.name,
        "summary": blueprint.agent.summary,
        "owners": [owner.model_dump(exclude_none=True) for owner in blueprint.agent.owners],
        "primary": blueprint.integration.primary,
        "attach": list(blueprint.integration.attach),
        "module_path": blueprint.deliverables.agent_module_path,
        "docs_path": blueprint.deliverables.docs_path,
        "interfaces": [
            {"type": iface.type, "entrypoint": iface.entrypoint} for iface in blueprint.interfaces
        ],
        "last_generated_at": generated_at or _utc_now(),
        "status": "active",
    }


def load_registry(registry_path: str | Path) -> RegistryDocument:
    """
    Load a registry, or start an empty one when the file doesn't exist.

    A root that isn't an object is re-initialised and a non-list ``agents``
    is reset; anything else in the file is kept.

    Raises:
        RegistryError: If the file exists but is not valid JSON or not a registry
    """
    path = Path(registry_path)
    if not path.exists():
        return RegistryDocument()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise RegistryError(f"Failed to parse registry {path}: {e}", path) from e

    if not isinstance(raw, dict):
        logger.warning("Registry %s is not a JSON object; re-initialising", path)
        return RegistryDocument()
    if not isinstance(raw.get("agents"), list):
        raw["agents"] = []
    if not isinstance(raw.get("version"), int) or isinstance(raw.get("version"), bool):
        raw["version"] = REGISTRY_VERSION
    try:
        return RegistryDocument.model_validate(raw)
    except ValidationError as e:
        raise RegistryError(f"Malformed registry {path}: {e}", path) from e


def merge_registry(
    registry_path: str | Path,
    blueprint: AgentBlueprint,
    commit: bool = False,
) -> RegistryDocument:
    """
    Upsert the blueprint's entry into the registry.

    Args:
        registry_path: Registry JSON file
        blueprint: Validated blueprint
        commit: Write the result back to disk

    Returns:
        The updated registry document

    Raises:
        RegistryError: If the existing registry cannot be parsed
    """
    path = Path(registry_path)
    registry = load_registry(path)
    replaced = registry.upsert(build_registry_entry(blueprint))

    logger.info(
        "%s registry entry %s in %s",
        "Replaced" if replaced else "Added", blueprint.agent_id, path,
    )

    if commit:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(registry.to_json(), encoding="utf-8")

    return registry
