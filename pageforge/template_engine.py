"""Directive engine — repeat blocks and ``{{SITE.path}}`` variables.

Only two of the four page directives live here; components and the layout
slot need the filesystem and are handled in ``components`` and ``layout``.

Repeat blocks are parsed into a small node tree so that nested blocks
expand correctly::

    {{repeat 2}}<ul>{{repeat 3}}<li></li>{{/repeat}}</ul>{{/repeat}}

Only repeat markers are tokenized. Any other ``{{...}}`` text, including a
lone literal ``{{``, is kept verbatim, which lets
the expander run before and after component injection without disturbing
placeholders meant for later passes.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Iterator, Union

from pageforge.config import ConfigTree

REPEAT_MARKER_PATTERN = re.compile(r"\{\{\s*(?:repeat\s+(\S+?)|(/repeat))\s*\}\}")
VARIABLE_PATTERN = re.compile(r"\{\{([A-Z]+(?:\.[A-Za-z0-9_]+)+)\}\}")


# ---------------------------------------------------------------------------
# Variables
# ---------------------------------------------------------------------------

def _to_text(value) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))  # 1.0 renders as "1"
    return str(value)


def resolve_variable(path: str, tree: ConfigTree) -> str:
    """Return the text at a dotted path, or ``""`` if any segment is missing."""
    found, value = tree.lookup(path)
    return _to_text(value) if found else ""


def render_variables(content: str, tree: ConfigTree) -> str:
    """Replace every ``{{UPPER.path}}`` placeholder in a single pass."""

    def _replacer(m: re.Match) -> str:
        return resolve_variable(m.group(1), tree)

    return VARIABLE_PATTERN.sub(_replacer, content)


# ---------------------------------------------------------------------------
# Repeat blocks
# ---------------------------------------------------------------------------

@dataclass
class Text:
    text: str


@dataclass
class RepeatBlock:
    count: str
    open_tag: str
    children: list[Node] = field(default_factory=list)


Node = Union[Text, RepeatBlock]


def repeat_count(raw: str) -> int:
    """Non-numeric and non-positive counts mean zero repetitions."""
    try:
        return max(0, int(raw))
    except ValueError:
        return 0


def _tokenize(content: str) -> Iterator[tuple[str, str, str]]:
    """Yield ``(kind, source, arg)`` with kind in text/open/close."""
    pos = 0
    for m in REPEAT_MARKER_PATTERN.finditer(content):
        if m.start() > pos:
            yield "text", content[pos:m.start()], ""
        if m.group(1) is not None:
            yield "open", m.group(0), m.group(1)
        else:
            yield "close", m.group(0), ""
        pos = m.end()
    if pos < len(content):
        yield "text", content[pos:], ""


def parse(content: str) -> list[Node]:
    """Parse text into literal runs and (possibly nested) repeat blocks.

    An unclosed ``{{repeat N}}`` and a stray ``{{/repeat}}`` both stay
    literal text.
    """
    root: list[Node] = []
    current = root
    stack: list[tuple[RepeatBlock, list[Node]]] = []

    for kind, source, arg in _tokenize(content):
        if kind == "open":
            block = RepeatBlock(count=arg, open_tag=source)
            current.append(block)
            stack.append((block, current))
            current = block.children
        elif kind == "close" and stack:
            _, current = stack.pop()
        else:
            current.append(Text(source))

    # Innermost first, so each unclosed block is still the last child of its parent
    while stack:
        block, parent = stack.pop()
        parent[-1:] = [Text(block.open_tag), *block.children]
    return root


def _render(nodes: list[Node]) -> str:
    out = []
    for node in nodes:
        if isinstance(node, RepeatBlock):
            out.append(_render(node.children) * repeat_count(node.count))
        else:
            out.append(node.text)
    return "".join(out)


def expand_repeats(content: str) -> str:
    """Expand every ``{{repeat N}}...{{/repeat}}`` block, innermost included."""
    if "{{" not in content:
        return content
    return _render(parse(content))
