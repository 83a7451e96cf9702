"""Post-build rewrite of asset URLs, plus temporary artifact cleanup."""

from __future__ import annotations

import logging
import re
import shutil
from pathlib import Path
from typing import Optional

from pageforge.components import append_to_head
from pageforge.config import SiteConfig
from pageforge.models import BuildArtifactSet

logger = logging.getLogger(__name__)


def normalize_base(base_url: str) -> str:
    return base_url[:-1] if base_url.endswith("/") else base_url


def rewrite_asset_urls(html: str, base_url: str, static_dirs: tuple[str, ...]) -> str:
    """Root ``./<dir>/`` and ``<dir>/`` references at ``base_url``.

    With no base the references stay relative.
    """
    base = normalize_base(base_url)
    if not base:
        return html
    for d in static_dirs:
        pattern = re.compile(r"""(href|src)\s*=\s*(["'])(?:\./)?""" + re.escape(d) + "/")
        html = pattern.sub(lambda m: f"{m.group(1)}={m.group(2)}{base}/{d}/", html)
    return html


def ensure_global_stylesheet(html: str, base_url: str, site: SiteConfig) -> str:
    if site.global_style_file in html:
        return html
    base = normalize_base(base_url) or "."
    link = f'<link rel="stylesheet" crossorigin href="{base}/assets/{site.global_style_file}">'
    return append_to_head(html, link)


def rewrite_build_output(site: SiteConfig, base_url: Optional[str] = None) -> list[Path]:
    """Rewrite every bundled page and move it to the top of the output directory."""
    base_url = site.base_url if base_url is None else base_url
    src_dir = site.bundled_pages_root
    if not src_dir.is_dir():
        logger.warning("No bundled pages under %s", src_dir)
        return []

    written = []
    for src in sorted(src_dir.glob("*.html")):
        html = src.read_text(encoding="utf-8")
        html = rewrite_asset_urls(html, base_url, site.static_dirs)
        html = ensure_global_stylesheet(html, base_url, site)
        dst = site.out_root / src.name
        dst.write_text(html, encoding="utf-8")
        written.append(dst)
        logger.info("Wrote %s", dst)
    return written


def _remove_tree(path: Path) -> None:
    if not path.exists():
        return
    try:
        shutil.rmtree(path)
        logger.debug("Removed %s", path)
    except OSError as e:
        logger.warning("Could not remove %s: %s", path, e)


def empty_out_dir(site: SiteConfig) -> None:
    """Remove the previous build so stale pages and hashed assets do not survive.

    Refuses to touch an output directory that is the project root or one of
    its ancestors.
    """
    out_root = site.out_root.resolve()
    root = site.root.resolve()
    if out_root == root or out_root in root.parents:
        raise ValueError(f"Refusing to empty output directory {out_root}: it contains the project")
    if out_root.exists():
        shutil.rmtree(out_root)
        logger.info("Emptied %s", out_root)


def cleanup_artifacts(site: SiteConfig, artifacts: Optional[BuildArtifactSet] = None) -> None:
    """Remove every temporary root, best effort. Never raises."""
    roots = [site.bundled_pages_root, site.tmp_root]
    if artifacts is not None:
        roots.extend(r for r in artifacts.tmp_roots if r not in roots)
    for root in roots:
        _remove_tree(root)
