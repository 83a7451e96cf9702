"""Site conventions (YAML) and the JSON variable tree."""

from __future__ import annotations

import copy
import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Iterator, Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "pageforge.yaml"


def _env_str(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v.strip()


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    return default if v is None else int(v)


@dataclass(frozen=True)
class SiteConfig:
    """Directory and file conventions of a project.

    All relative paths are resolved against ``root``.
    """

    root: Path = field(default_factory=Path.cwd)
    pages_dir: str = "src/app"
    page_filename: str = "page.html"
    page_script_filename: str = "main.ts"
    home_page: str = "home"
    root_route: str = "index"
    layout_path: str = "src/app/layout.html"
    components_root: str = "src"
    component_namespace: str = "common"
    component_markup: str = "index.html"
    component_stylesheet: str = "style.scss"
    component_script: str = "script.ts"
    variables_path: str = "src/constants/index.json"
    tmp_dir: str = "pages"
    out_dir: str = "dist"
    public_dir: str = "public"
    global_stylesheet: str = "src/styles/global.scss"
    global_style_name: str = "global-style"
    static_dirs: tuple[str, ...] = ("assets", "imgs", "fonts")
    reload_extensions: tuple[str, ...] = (".html", ".scss", ".ts")
    base_url: str = ""
    bundler: str = "copy"
    bundle_command: Optional[str] = None
    dev_host: str = "127.0.0.1"
    dev_port: int = 3000

    @property
    def pages_root(self) -> Path:
        return self.root / self.pages_dir

    @property
    def layout_file(self) -> Path:
        return self.root / self.layout_path

    @property
    def variables_file(self) -> Path:
        return self.root / self.variables_path

    @property
    def tmp_root(self) -> Path:
        return self.root / self.tmp_dir

    @property
    def out_root(self) -> Path:
        return self.root / self.out_dir

    @property
    def bundled_pages_root(self) -> Path:
        """Where the bundler leaves the pages it was fed from ``tmp_root``."""
        return self.out_root / self.tmp_dir

    @property
    def global_style_file(self) -> str:
        return f"{self.global_style_name}.css"

    def component_dir(self, token: str) -> Path:
        return self.root / self.components_root / token

    def component_url(self, token: str, filename: str) -> str:
        return f"/{self.components_root}/{token}/{filename}"

    def page_url_prefix(self, page_name: str) -> str:
        return f"/{self.pages_dir}/{page_name}/"

    def with_overrides(self, **overrides: Any) -> "SiteConfig":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


_SITE_KEYS = frozenset(f.name for f in fields(SiteConfig)) - {"root"}
_TUPLE_KEYS = frozenset({"static_dirs", "reload_extensions"})


def load_site_config(root: Path | str, path: Path | str | None = None) -> SiteConfig:
    """Build a SiteConfig: defaults <- YAML file <- environment.

    ``path`` defaults to ``pageforge.yaml`` under ``root``; a missing default
    file is not an error. Unknown keys raise ``ValueError`` so typos are
    caught early.
    """
    root = Path(root).resolve()
    raw: dict = {}
    config_path = Path(path) if path else root / CONFIG_FILENAME
    if path or config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ValueError(
                f"Site config YAML must be a mapping, got {type(raw).__name__}"
            )
        unknown = set(raw) - _SITE_KEYS
        if unknown:
            raise ValueError(
                f"Unknown keys in {config_path.name}: {sorted(unknown)}. "
                f"Allowed: {sorted(_SITE_KEYS)}"
            )
        for key in _TUPLE_KEYS & set(raw):
            raw[key] = tuple(raw[key])
        logger.debug("Loaded site config from %s", config_path)

    site = SiteConfig(root=root, **raw)
    return site.with_overrides(
        base_url=_env_str("PROD_URL") or None,
        dev_port=_env_int("PAGEFORGE_PORT", site.dev_port),
    )


class ConfigTree(Mapping):
    """Read-only nested mapping that backs ``{{SITE.title}}`` variables."""

    def __init__(self, data: Optional[Mapping] = None) -> None:
        self._data = copy.deepcopy(dict(data or {}))

    @classmethod
    def from_file(cls, path: Path | str) -> "ConfigTree":
        """Load a tree from JSON. A missing file yields an empty tree."""
        path = Path(path)
        if not path.exists():
            logger.warning("Variables file %s not found; variables resolve to ''", path)
            return cls()
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"{path} must contain a JSON object, got {type(data).__name__}")
        return cls(data)

    def lookup(self, path: str) -> tuple[bool, Any]:
        """Walk a dotted path. Returns ``(found, value)``."""
        node: Any = self._data
        for part in path.split("."):
            if isinstance(node, Mapping) and part in node:
                node = node[part]
            elif isinstance(node, list) and part.isdigit() and int(part) < len(node):
                node = node[int(part)]
            else:
                return False, None
        return True, node

    def __getitem__(self, key: str) -> Any:
        return copy.deepcopy(self._data[key])

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"ConfigTree(keys={sorted(self._data)})"
