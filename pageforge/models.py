"""Data models for the page assembly and build pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class Page:
    """A routable page discovered under the pages root."""

    route: str  # "index" for the home page, otherwise the directory name
    name: str  # directory name, e.g. "home", "about"
    fragment_path: Path
    script_entry: Optional[Path] = None  # per-page entry regenerated at build time


@dataclass(frozen=True)
class ComponentAssets:
    """Files backing one ``{{common/<path>}}`` reference."""

    token: str  # "common/navbar"
    markup_path: Path
    stylesheet_path: Optional[Path] = None
    script_path: Optional[Path] = None


@dataclass
class BuildArtifactSet:
    """Everything materialization produced, handed to the bundler by value."""

    page_inputs: dict[str, Path] = field(default_factory=dict)  # route -> tmp html
    script_entries: dict[str, Path] = field(default_factory=dict)  # route -> entry
    tmp_roots: list[Path] = field(default_factory=list)

    @property
    def routes(self) -> list[str]:
        return list(self.page_inputs)


@dataclass
class BundleResult:
    """Outcome of a single bundler run."""

    bundler: str
    pages: dict[str, Path] = field(default_factory=dict)  # route -> bundled html
    assets: list[Path] = field(default_factory=list)


@dataclass
class BuildResult:
    """Combined result returned to the CLI."""

    routes: list[str] = field(default_factory=list)
    outputs: list[Path] = field(default_factory=list)
    bundler: str = ""
    base_url: str = ""
    elapsed_s: float = 0.0
