"""
Documentation rendering from blueprints using Jinja2 templates.

Each scaffold gets six generated documents (see ``planner.DOC_NAMES``);
their bodies come from ``templates/docs/<name>.md.jinja2``.
"""

from pathlib import Path
from typing import Dict, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from ..blueprints.schema import AgentBlueprint
from ..config import DEFAULT_TEMPLATES_DIR
from .planner import DOC_NAMES
from .templates import DOCS_ROOT


DEFAULT_DOCS_TEMPLATE_DIR = DEFAULT_TEMPLATES_DIR / DOCS_ROOT


class DocumentRenderer:
    """
    Renders the generated documentation set for a blueprint.

    Example:
        renderer = DocumentRenderer()
        docs = renderer.render_all(blueprint)
        print(docs["overview"])

        # Or with a custom template directory
        renderer = DocumentRenderer(template_dir="my_templates/docs")
    """

    def __init__(self, template_dir: Optional[str | Path] = None):
        """
        Initialize the renderer.

        Args:
            template_dir: Directory containing ``<name>.md.jinja2`` templates.
                         Defaults to the packaged templates/docs/
        """
        self.template_dir = Path(template_dir) if template_dir else DEFAULT_DOCS_TEMPLATE_DIR
        self._env = None

    @property
    def env(self) -> Environment:
        """Lazy-load Jinja2 environment."""
        if self._env is None:
            self._env = Environment(
                loader=FileSystemLoader(str(self.template_dir)),
                autoescape=select_autoescape(default=False),
                undefined=StrictUndefined,
                trim_blocks=True,
                lstrip_blocks=True,
                keep_trailing_newline=True,
            )
        return self._env

    def render(self, name: str, blueprint: AgentBlueprint) -> str:
        """
        Render one document.

        Args:
            name: Document name (one of DOC_NAMES)
            blueprint: Validated blueprint

        Returns:
            Markdown text ending in a newline

        Raises:
            ValueError: If the document name is unknown
        """
        if name not in DOC_NAMES:
            raise ValueError(f"Unknown document: {name}")

        template = self.env.get_template(f"{name}.md.jinja2")
        text = template.render(
            bp=blueprint,
            agent=blueprint.agent,
            integration=blueprint.integration,
            deliverables=blueprint.deliverables,
            api=blueprint.api,
            attach=list(blueprint.integration.attach),
        )
        return text if text.endswith("\n") else text + "\n"

    def render_all(self, blueprint: AgentBlueprint) -> Dict[str, str]:
        """Render every document, keyed by name."""
        return {name: self.render(name, blueprint) for name in DOC_NAMES}
