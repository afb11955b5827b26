"""Template corpus enumeration and text/binary classification."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath

TEMPLATE_SUFFIX = ".template"

TEXT_EXTENSIONS = frozenset({
    ".md", ".txt", ".json", ".js", ".ts", ".py", ".toml",
    ".yml", ".yaml", ".env", ".cfg", ".ini", ".jinja2",
})

# Dotfiles have no suffix as far as pathlib is concerned
TEXT_DOTFILE_PREFIXES = (".gitignore", ".env")

# Corpus subtrees the planner draws from
AGENT_KIT_ROOT = "agent-kit/layout"
PROMPT_PACK_ROOT = "prompt-pack"
DOCS_ROOT = "docs"
STAGE_A_ROOT = "stage-a"
STAGE_B_ROOT = "stage-b"


def is_text_template(name: str) -> bool:
    """Return True if a corpus file should go through placeholder substitution."""
    name = PurePosixPath(name).name
    if name.endswith(TEMPLATE_SUFFIX):
        return True
    if name.startswith(TEXT_DOTFILE_PREFIXES):
        return True
    return PurePosixPath(name).suffix.lower() in TEXT_EXTENSIONS


@dataclass(frozen=True)
class TemplateFile:
    """One file in the template corpus."""

    path: str  # posix path relative to the corpus root
    is_text: bool

    @property
    def destination_name(self) -> str:
        """Relative path with any ``.template`` suffix removed."""
        if self.path.endswith(TEMPLATE_SUFFIX):
            return self.path[: -len(TEMPLATE_SUFFIX)]
        return self.path

    def relative_to(self, prefix: str) -> str | None:
        """Path below ``prefix`` (a corpus subtree), or None if outside it."""
        prefix = prefix.rstrip("/") + "/"
        if self.path.startswith(prefix):
            return self.path[len(prefix):]
        return None


@dataclass(frozen=True)
class TemplateCorpus:
    """
    A read-only listing of the template corpus.

    The listing is taken once and sorted, so everything planned from it
    is deterministic for an unchanged corpus.

    Example:
        corpus = TemplateCorpus.scan(config.templates_dir)
        for template in corpus.under("prompt-pack/tier2"):
            print(template.path, template.is_text)
    """

    root: Path
    files: tuple[TemplateFile, ...]

    @classmethod
    def scan(cls, root: str | Path) -> TemplateCorpus:
        """Enumerate every file below ``root``."""
        root = Path(root)
        if not root.is_dir():
            raise FileNotFoundError(f"Template corpus not found: {root}")

        files = []
        for path in root.rglob("*"):
            if not path.is_file() or "__pycache__" in path.parts:
                continue
            rel = path.relative_to(root).as_posix()
            files.append(TemplateFile(path=rel, is_text=is_text_template(rel)))
        files.sort(key=lambda f: f.path)
        return cls(root=root, files=tuple(files))

    def under(self, prefix: str) -> list[TemplateFile]:
        """Files inside a corpus subtree, in corpus order."""
        return [f for f in self.files if f.relative_to(prefix) is not None]

    def source_path(self, rel_path: str) -> Path:
        """Absolute filesystem path of a corpus file."""
        return self.root / PurePosixPath(rel_path)

    def read_text(self, rel_path: str) -> str:
        return self.source_path(rel_path).read_text(encoding="utf-8")

    def read_bytes(self, rel_path: str) -> bytes:
        return self.source_path(rel_path).read_bytes()

    def get(self, rel_path: str) -> TemplateFile | None:
        return next((f for f in self.files if f.path == rel_path), None)
