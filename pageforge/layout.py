"""Merge a page fragment into the shared layout shell."""

from __future__ import annotations

import logging
import re

from pageforge.config import SiteConfig

logger = logging.getLogger(__name__)

HEAD_PATTERN = re.compile(r"<head[^>]*>([\s\S]*?)</head>", re.IGNORECASE)
MAIN_PATTERN = re.compile(r"<main[^>]*>[\s\S]*?</main>", re.IGNORECASE)
CLOSE_HEAD_PATTERN = re.compile(r"</head>", re.IGNORECASE)
_LOCAL_REF = re.compile(r'(src|href)="\./([^"]+)"')


class LayoutNotFoundError(FileNotFoundError):
    """The layout shell could not be read while composing in strict mode."""


def split_fragment(fragment: str) -> tuple[str, str]:
    """Return ``(head_inner, body)`` for a page fragment."""
    m = HEAD_PATTERN.search(fragment)
    head = m.group(1).strip() if m else ""
    body = HEAD_PATTERN.sub("", fragment, count=1).strip()
    return head, body


def rebase_head(head: str, page_name: str, site: SiteConfig) -> str:
    """Root ``./`` references at the page's own source directory."""
    prefix = site.page_url_prefix(page_name)
    return _LOCAL_REF.sub(lambda m: f'{m.group(1)}="{prefix}{m.group(2)}"', head)


def merge_into_shell(shell: str, head: str, body: str) -> str:
    if head:
        shell = CLOSE_HEAD_PATTERN.sub(lambda _: f"    {head}\n</head>", shell, count=1)
    return MAIN_PATTERN.sub(
        lambda _: f"<main>\n        {body}\n    </main>", shell, count=1
    )


def compose_layout(
    fragment: str,
    page_name: str,
    site: SiteConfig,
    *,
    strict: bool = False,
) -> str:
    """Merge ``fragment`` into the layout shell.

    If the shell cannot be read the fragment is returned unchanged, unless
    ``strict`` is set, in which case ``LayoutNotFoundError`` is raised.
    """
    try:
        shell = site.layout_file.read_text(encoding="utf-8")
    except OSError as e:
        if strict:
            raise LayoutNotFoundError(f"Layout shell not readable: {site.layout_file}") from e
        logger.warning("Layout %s unavailable (%s); using raw fragment", site.layout_file, e)
        return fragment

    head, body = split_fragment(fragment)
    return merge_into_shell(shell, rebase_head(head, page_name, site), body)
