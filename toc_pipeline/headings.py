"""Anchor assignment for headings in markdown and rendered trees."""

from __future__ import annotations

import logging
from collections.abc import Callable

from .constants import CUSTOM_ID_PATTERN, HEADING_TAGS
from .models import SyntaxNode
from .slugify import SlugRegistry

logger = logging.getLogger(__name__)


def is_markdown_heading(node: SyntaxNode) -> bool:
    return node.type == "heading"


def is_heading_element(node: SyntaxNode) -> bool:
    return node.is_element() and node.tag_name in HEADING_TAGS


def iter_headings(
    tree: SyntaxNode, is_heading: Callable[[SyntaxNode], bool] = is_markdown_heading
) -> list[SyntaxNode]:
    """Collect headings depth-first, in document order."""
    return [node for node in tree.walk() if is_heading(node)]


def extract_custom_id(heading: SyntaxNode) -> str | None:
    """Strip a trailing ``{#custom-id}`` from a heading and return the id.

    The marker must sit at the end of the heading's trailing text nodes,
    which are merged into one when it is stripped. A heading without a marker
    is left untouched.
    """
    start = len(heading.children)
    while start > 0 and heading.children[start - 1].type == "text":
        start -= 1
    if start == len(heading.children):
        return None

    tail = "".join(node.value or "" for node in heading.children[start:])
    match = CUSTOM_ID_PATTERN.search(tail)
    if match is None:
        return None

    remainder = tail[: match.start()]
    del heading.children[start:]
    if remainder:
        heading.children.append(SyntaxNode("text", value=remainder))
    return match.group(1)


def assign_heading_ids(
    tree: SyntaxNode,
    preserve_unicode: bool = False,
    is_heading: Callable[[SyntaxNode], bool] = is_markdown_heading,
) -> list[str]:
    """Give every heading a unique ``properties["id"]``.

    Identifiers the source already supplies, either on the node or as a
    trailing ``{#id}`` marker, are kept verbatim and reserved before anything
    is derived, so derived anchors never collide with them. Running the pass
    again over the same tree changes nothing.

    Args:
        tree: Tree modified in place.
        preserve_unicode: Keep non-ASCII characters in derived anchors.
        is_heading: Selects heading nodes; markdown ``heading`` nodes by
            default, `is_heading_element` for rendered trees.

    Returns:
        list[str]: The anchor of each heading, in document order.

    Examples:
        tree = parse_markdown("# Intro\\n## Intro\\n## Setup {#install}")
        assign_heading_ids(tree)  # ["intro", "intro-1", "install"]
    """
    headings = iter_headings(tree, is_heading)
    registry = SlugRegistry(preserve_unicode=preserve_unicode)

    for heading in headings:
        if not heading.properties.get("id"):
            custom_id = extract_custom_id(heading)
            if custom_id is not None:
                heading.properties["id"] = custom_id
        if heading.properties.get("id"):
            registry.reserve(heading.properties["id"])

    for heading in headings:
        if not heading.properties.get("id"):
            heading.properties["id"] = registry.slug(heading.text_content().strip())
            logger.debug("Derived anchor %r for heading", heading.properties["id"])

    return [heading.properties["id"] for heading in headings]
