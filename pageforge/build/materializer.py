"""Pre-render every page to a temporary file before bundling.

Unlike assembly, which degrades softly, anything that goes wrong here is a
project configuration error and propagates: a missing page fragment, a
missing layout shell, a component cycle or a failed write.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional

from pageforge.assembler import assemble_page
from pageforge.components import collect_components
from pageforge.config import ConfigTree, SiteConfig
from pageforge.models import BuildArtifactSet, Page
from pageforge.registry import discover_pages

logger = logging.getLogger(__name__)

READY_WRAPPER_PATTERN = re.compile(
    r"document\.addEventListener\([\"']DOMContentLoaded[\"'],\s*\(\)\s*=>\s*\{([\s\S]*?)\}\s*\);?",
    re.MULTILINE,
)


def unwrap_ready_handler(script: str) -> str:
    """Strip ``DOMContentLoaded`` wrappers so the statements run unwrapped."""
    return READY_WRAPPER_PATTERN.sub(lambda m: m.group(1), script)


def build_entry_script(fragment: str, site: SiteConfig) -> str:
    """Concatenate the unwrapped scripts of every component the page uses."""
    chunks = []
    for assets in collect_components(fragment, site):
        if assets.script_path is None:
            continue
        body = unwrap_ready_handler(assets.script_path.read_text(encoding="utf-8"))
        chunks.append(f"\n{body.strip()}\n")
    combined = "".join(chunks).strip()
    return f'document.addEventListener("DOMContentLoaded", () => {{\n{combined}\n}});\n'


def materialize_page(
    page: Page,
    site: SiteConfig,
    tree: ConfigTree,
) -> tuple[Path, Optional[Path]]:
    """Render one page into the temporary directory.

    Returns ``(tmp_html, script_entry)``; the entry is None when the page has
    no script entry file to regenerate.
    """
    fragment = page.fragment_path.read_text(encoding="utf-8")

    entry = None
    if page.script_entry is not None and page.script_entry.exists():
        page.script_entry.write_text(build_entry_script(fragment, site), encoding="utf-8")
        entry = page.script_entry

    html = assemble_page(fragment, page.name, site, tree, strict_layout=True)
    out_file = site.tmp_root / f"{page.route}.html"
    out_file.write_text(html, encoding="utf-8")
    return out_file, entry


def materialize_pages(
    site: SiteConfig,
    tree: ConfigTree,
    pages: Optional[dict[str, Page]] = None,
) -> BuildArtifactSet:
    """Pre-render every registered page and return the artifact set."""
    if pages is None:
        pages = discover_pages(site)

    artifacts = BuildArtifactSet(tmp_roots=[site.tmp_root])
    if not pages:
        logger.warning("No pages found under %s", site.pages_root)
        return artifacts

    site.tmp_root.mkdir(parents=True, exist_ok=True)
    for route, page in pages.items():
        logger.info("Materializing %s -> %s.html", page.fragment_path, route)
        out_file, entry = materialize_page(page, site, tree)
        artifacts.page_inputs[route] = out_file
        if entry is not None:
            artifacts.script_entries[route] = entry
    return artifacts
