"""Page registry: discover routable pages from the directory convention."""

from __future__ import annotations

import logging

from pageforge.config import SiteConfig
from pageforge.models import Page

logger = logging.getLogger(__name__)


def route_for_dir(name: str, site: SiteConfig) -> str:
    """Directory name -> route key (``home`` -> ``index``)."""
    return site.root_route if name == site.home_page else name


def page_name_for_route(route: str, site: SiteConfig) -> str:
    """Route key -> directory name (``index`` -> ``home``)."""
    return site.home_page if route == site.root_route else route


def route_path(route: str, site: SiteConfig) -> str:
    """Public URL path of a route: ``/`` for the root route, ``/<route>`` otherwise."""
    return "/" if route == site.root_route else f"/{route}"


def make_page(name: str, site: SiteConfig) -> Page:
    page_dir = site.pages_root / name
    script = page_dir / site.page_script_filename
    return Page(
        route=route_for_dir(name, site),
        name=name,
        fragment_path=page_dir / site.page_filename,
        script_entry=script if script.is_file() else None,
    )


def discover_pages(site: SiteConfig) -> dict[str, Page]:
    """Map route key -> Page for every subdirectory holding a page fragment."""
    root = site.pages_root
    if not root.is_dir():
        logger.warning("Pages root %s does not exist", root)
        return {}

    pages: dict[str, Page] = {}
    for entry in sorted(root.iterdir()):
        if not entry.is_dir():
            continue
        if not (entry / site.page_filename).is_file():
            logger.debug("Skipping %s: no %s", entry.name, site.page_filename)
            continue
        page = make_page(entry.name, site)
        pages[page.route] = page
    return pages
