"""Bundlers: turn materialized pages into deployable output.

Each bundler implements ``bundle(artifacts, site)`` and must leave one HTML
file per page input under ``<out_dir>/<tmp_dir>/<route>.html``; the
post-build rewriter takes it from there.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import re
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

from pageforge.config import SiteConfig
from pageforge.models import BuildArtifactSet, BundleResult

logger = logging.getLogger(__name__)


class Bundler(ABC):
    """Base class for bundlers."""

    @abstractmethod
    def name(self) -> str:
        """Bundler identifier: 'copy', 'command'."""
        ...

    @abstractmethod
    def bundle(self, artifacts: BuildArtifactSet, site: SiteConfig) -> BundleResult:
        """Consume the page inputs and write bundled pages and assets."""
        ...


# ---------------------------------------------------------------------------
# Copy bundler
# ---------------------------------------------------------------------------

_ROOTED_REF = re.compile(r'(src|href)="(/[^"/][^"]*)"')
_BUNDLED_SUFFIXES = (".js", ".mjs", ".css", ".ts", ".scss")


def content_hash(data: bytes, length: int = 8) -> str:
    return hashlib.sha256(data).hexdigest()[:length]


class CopyBundler(Bundler):
    """Dependency-free bundler for plain JS/CSS sites.

    Copies the public directory, the global stylesheet and every script or
    stylesheet a page references by root-absolute URL into ``assets/`` under
    a content-hashed name. Nothing is compiled; ``.ts``/``.scss`` sources are
    copied as they are.
    """

    def name(self) -> str:
        return "copy"

    def bundle(self, artifacts: BuildArtifactSet, site: SiteConfig) -> BundleResult:
        result = BundleResult(bundler=self.name())
        out = site.out_root
        assets_dir = out / "assets"
        pages_dir = site.bundled_pages_root
        assets_dir.mkdir(parents=True, exist_ok=True)
        pages_dir.mkdir(parents=True, exist_ok=True)

        public = site.root / site.public_dir
        if public.is_dir():
            shutil.copytree(public, out, dirs_exist_ok=True)

        global_style = site.root / site.global_stylesheet
        if global_style.suffix == ".css" and global_style.is_file():
            target = assets_dir / site.global_style_file
            shutil.copyfile(global_style, target)
            result.assets.append(target)
        elif global_style.exists():
            logger.warning(
                "Global stylesheet %s needs a preprocessor; not copied", global_style
            )

        copied: dict[Path, str] = {}

        def _replacer(m: re.Match) -> str:
            attr, url = m.group(1), m.group(2)
            source = site.root / url.lstrip("/")
            if source.suffix not in _BUNDLED_SUFFIXES or not source.is_file():
                return m.group(0)
            if source not in copied:
                data = source.read_bytes()
                hashed = f"{source.stem}-{content_hash(data)}{source.suffix}"
                (assets_dir / hashed).write_bytes(data)
                result.assets.append(assets_dir / hashed)
                copied[source] = hashed
            return f'{attr}="./assets/{copied[source]}"'

        for route, tmp_file in artifacts.page_inputs.items():
            html = _ROOTED_REF.sub(_replacer, tmp_file.read_text(encoding="utf-8"))
            target = pages_dir / f"{route}.html"
            target.write_text(html, encoding="utf-8")
            result.pages[route] = target
        return result


# ---------------------------------------------------------------------------
# External command bundler
# ---------------------------------------------------------------------------

class CommandBundler(Bundler):
    """Delegate to an external bundler command (e.g. ``npx vite build``).

    Page inputs are exported as a JSON object in ``PAGEFORGE_INPUTS``.
    """

    def __init__(self, command: str | None = None) -> None:
        self.command = command

    def name(self) -> str:
        return "command"

    def bundle(self, artifacts: BuildArtifactSet, site: SiteConfig) -> BundleResult:
        command = self.command or site.bundle_command
        if not command:
            raise ValueError("The 'command' bundler needs bundle_command to be set")

        env = os.environ.copy()
        env["PAGEFORGE_INPUTS"] = json.dumps(
            {route: str(path) for route, path in artifacts.page_inputs.items()}
        )
        env["PAGEFORGE_OUT_DIR"] = str(site.out_root)
        logger.info("Running bundler: %s", command)
        proc = subprocess.run(
            command, shell=True, cwd=site.root, env=env,
            capture_output=True, text=True,
        )
        if proc.returncode != 0:
            raise RuntimeError(
                f"Bundler command failed ({proc.returncode}): {proc.stderr.strip()}"
            )

        result = BundleResult(bundler=self.name())
        for route in artifacts.page_inputs:
            bundled = site.bundled_pages_root / f"{route}.html"
            if bundled.exists():
                result.pages[route] = bundled
            else:
                logger.warning("Bundler produced no output for %s", route)
        return result


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_BUNDLERS: dict[str, type[Bundler]] = {
    "copy": CopyBundler,
    "command": CommandBundler,
}


def register(name: str, cls: type[Bundler]) -> None:
    """Register a bundler class under a name."""
    _BUNDLERS[name] = cls


def get_bundler(name: str) -> Bundler:
    """Instantiate and return a bundler by name."""
    cls = _BUNDLERS.get(name)
    if not cls:
        raise ValueError(f"Unknown bundler: {name!r}. Available: {list(_BUNDLERS)}")
    return cls()


def list_bundlers() -> list[str]:
    return list(_BUNDLERS)
