"""Page assembly: run the directive passes in their required order."""

from __future__ import annotations

import logging

from pageforge.components import inject_components
from pageforge.config import ConfigTree, SiteConfig
from pageforge.layout import compose_layout
from pageforge.models import Page
from pageforge.template_engine import expand_repeats, render_variables

logger = logging.getLogger(__name__)


def assemble_page(
    fragment: str,
    page_name: str,
    site: SiteConfig,
    tree: ConfigTree,
    *,
    strict_layout: bool = False,
) -> str:
    """Turn a raw page fragment into a complete HTML document.

    Order matters:
      1. repeats in the fragment
      2. layout (head merge, main slot)
      3. components (may bring new repeats, head assets and variables)
      4. repeats again, for markers that arrived with components
      5. variables, for those introduced by the layout or components
    """
    html = expand_repeats(fragment)
    html = compose_layout(html, page_name, site, strict=strict_layout)
    html = inject_components(html, site, tree)
    html = expand_repeats(html)
    html = render_variables(html, tree)
    logger.debug("Assembled page %s (%d bytes)", page_name, len(html))
    return html


def assemble_page_file(
    page: Page,
    site: SiteConfig,
    tree: ConfigTree,
    *,
    strict_layout: bool = False,
) -> str:
    """Read a page's fragment from disk and assemble it."""
    fragment = page.fragment_path.read_text(encoding="utf-8")
    return assemble_page(fragment, page.name, site, tree, strict_layout=strict_layout)
