"""Component injection: ``{{common/<path>}}`` placeholders.

A component lives in ``<components_root>/common/<path>/`` and owns an
``index.html`` plus optional ``style.scss`` / ``script.ts`` siblings. Each
distinct component used on a page adds its stylesheet and module script to
the document head exactly once.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from pageforge.config import ConfigTree, SiteConfig
from pageforge.models import ComponentAssets
from pageforge.template_engine import render_variables

logger = logging.getLogger(__name__)


class ComponentCycleError(ValueError):
    """A component includes itself, directly or through other components."""


def component_pattern(site: SiteConfig) -> re.Pattern:
    return re.compile(r"\{\{(" + re.escape(site.component_namespace) + r"/[^}]+)\}\}")


def load_component(token: str, site: SiteConfig) -> Optional[ComponentAssets]:
    """Locate a component's files, or None when its markup does not exist."""
    comp_dir = site.component_dir(token)
    markup = comp_dir / site.component_markup
    if not markup.is_file():
        return None
    stylesheet = comp_dir / site.component_stylesheet
    script = comp_dir / site.component_script
    return ComponentAssets(
        token=token,
        markup_path=markup,
        stylesheet_path=stylesheet if stylesheet.is_file() else None,
        script_path=script if script.is_file() else None,
    )


def stylesheet_tag(site: SiteConfig, token: str) -> str:
    href = site.component_url(token, site.component_stylesheet)
    return f'<link rel="stylesheet" href="{href}">'


def script_tag(site: SiteConfig, token: str) -> str:
    src = site.component_url(token, site.component_script)
    return f'<script type="module" src="{src}"></script>'


def append_to_head(html: str, tag: str) -> str:
    """Insert ``tag`` before the first ``</head>`` unless it is already present."""
    if tag in html or "</head>" not in html:
        return html
    return html.replace("</head>", f"    {tag}\n</head>", 1)


class _Injection:
    """State for one ``inject_components`` call."""

    def __init__(self, site: SiteConfig, tree: ConfigTree) -> None:
        self.site = site
        self.tree = tree
        self.pattern = component_pattern(site)
        self.used: dict[str, ComponentAssets] = {}
        self._markup: dict[str, Optional[str]] = {}

    def _read(self, token: str) -> Optional[str]:
        if token in self._markup:
            return self._markup[token]
        assets = load_component(token, self.site)
        text = None
        if assets is None:
            logger.warning("Component %s not found, dropping placeholder", token)
        else:
            try:
                text = assets.markup_path.read_text(encoding="utf-8")
            except OSError as e:
                logger.warning("Could not read component %s: %s", token, e)
            else:
                self.used.setdefault(token, assets)
        self._markup[token] = text
        return text

    def expand(self, content: str, stack: tuple[str, ...] = ()) -> str:
        def _replacer(m: re.Match) -> str:
            token = m.group(1).strip()
            if token in stack:
                raise ComponentCycleError(
                    f"Component cycle: {' -> '.join([*stack, token])}"
                )
            markup = self._read(token)
            if markup is None:
                return ""
            markup = self.expand(markup, stack + (token,))
            return render_variables(markup, self.tree).strip()

        return self.pattern.sub(_replacer, content)


def inject_components(html: str, site: SiteConfig, tree: ConfigTree) -> str:
    """Splice every component into ``html`` and register its head assets.

    Nested component references are expanded too. Missing components are
    dropped with a warning; a component cycle raises ``ComponentCycleError``.
    """
    injection = _Injection(site, tree)
    html = injection.expand(html)
    for token, assets in injection.used.items():
        if assets.stylesheet_path is not None:
            html = append_to_head(html, stylesheet_tag(site, token))
        if assets.script_path is not None:
            html = append_to_head(html, script_tag(site, token))
    return html


def collect_components(html: str, site: SiteConfig) -> list[ComponentAssets]:
    """Distinct existing components referenced by ``html``, nested ones included.

    Returned in first-reference order (depth first).
    """
    pattern = component_pattern(site)
    seen: set[str] = set()
    found: list[ComponentAssets] = []

    def _walk(content: str) -> None:
        for m in pattern.finditer(content):
            token = m.group(1).strip()
            if token in seen:
                continue
            seen.add(token)
            assets = load_component(token, site)
            if assets is None:
                continue
            found.append(assets)
            try:
                _walk(assets.markup_path.read_text(encoding="utf-8"))
            except OSError as e:
                logger.warning("Could not read component %s: %s", token, e)

    _walk(html)
    return found
