"""Outline (table of contents) extraction from markdown documents."""

from __future__ import annotations

import logging
import re

from .config import PipelineConfig, normalize_config, validate_config
from .exceptions import TooManyHeadingsError
from .headings import assign_heading_ids, is_markdown_heading
from .models import HeadingEntry, SyntaxNode
from .parser import parse_markdown
from .writer import to_markdown

logger = logging.getLogger(__name__)


def build_heading_forest(
    tree: SyntaxNode, config: PipelineConfig | None = None
) -> list[HeadingEntry]:
    """Build the nested heading forest of an annotated tree.

    Only headings that are direct children of the root take part; headings
    inside block quotes, list items and other containers keep their anchors
    but are left out of the outline. An entry nests under the nearest
    preceding entry of a smaller level; when there is none it becomes a root.
    A stack of open ancestors keeps this a single pass over the headings.

    Args:
        tree: Tree whose headings already carry ``properties["id"]``.
        config: Depth bounds and skip pattern. Defaults to `PipelineConfig()`.

    Returns:
        list[HeadingEntry]: Root entries in document order.

    Examples:
        # levels [1, 2, 2, 3, 1] -> two roots, the first with two children
        build_heading_forest(tree)
    """
    config = config or PipelineConfig()
    skip = re.compile(config.skip) if config.skip else None

    roots: list[HeadingEntry] = []
    open_entries: list[HeadingEntry] = []

    for heading in _top_level_headings(tree):
        level = heading.depth or 1
        if not config.min_depth <= level <= config.max_depth:
            continue
        text = heading.text_content().strip()
        if skip is not None and skip.search(text):
            logger.debug("Skipping heading %r", text)
            continue

        entry = HeadingEntry(level=level, text=text, anchor_id=heading.properties["id"])
        while open_entries and open_entries[-1].level >= level:
            open_entries.pop()
        if open_entries:
            open_entries[-1].children.append(entry)
        else:
            roots.append(entry)
        open_entries.append(entry)

    return roots


def _top_level_headings(tree: SyntaxNode) -> list[SyntaxNode]:
    return [child for child in tree.children if is_markdown_heading(child)]


def outline_tree(
    forest: list[HeadingEntry], config: PipelineConfig | None = None
) -> SyntaxNode | None:
    """Render a heading forest as a nested ``list`` of links.

    Returns:
        SyntaxNode | None: The outer list, or None for an empty forest.
    """
    if not forest:
        return None
    config = normalize_config(config or PipelineConfig())
    return _render_list(forest, config)


def _render_list(entries: list[HeadingEntry], config: PipelineConfig) -> SyntaxNode:
    ordered = config.list_style == "1."
    properties: dict[str, object] = {"ordered": ordered, "spread": not config.tight}
    if ordered:
        properties["start"] = 1

    items = []
    for entry in entries:
        link = SyntaxNode(
            "link",
            children=[SyntaxNode("text", value=entry.text)],
            properties={"url": f"#{config.prefix}{entry.anchor_id}"},
        )
        item = SyntaxNode(
            "listItem",
            children=[SyntaxNode("paragraph", children=[link])],
            properties={"spread": not config.tight and bool(entry.children)},
        )
        if entry.children:
            item.children.append(_render_list(entry.children, config))
        items.append(item)

    return SyntaxNode("list", children=items, properties=properties)


def extract_outline(markdown_text: str, config: PipelineConfig | None = None) -> str:
    """Extract the outline of a markdown document as markdown text.

    Parses the document, assigns heading anchors, builds the heading forest,
    and serializes it as a nested list of ``[text](#anchor)`` links. The
    function is pure: the same input and configuration always give the same
    output.

    Args:
        markdown_text: Source document.
        config: Extraction options. Defaults to `PipelineConfig()`.

    Returns:
        str: Outline markdown, or ``""`` when the document has no headings in
        range.

    Raises:
        ConfigError: If the configuration fails validation.
        TooManyHeadingsError: If the document exceeds ``config.max_headings``.

    Examples:
        extract_outline("# Title\\n## Usage\\n")
    """
    config = normalize_config(config or PipelineConfig())
    validate_config(config)

    tree = parse_markdown(markdown_text)
    anchors = assign_heading_ids(tree, preserve_unicode=config.preserve_unicode)
    if len(anchors) > config.max_headings:
        raise TooManyHeadingsError(config.max_headings)

    outline = outline_tree(build_heading_forest(tree, config), config)
    if outline is None:
        return ""
    bullet = "*" if config.list_style == "*" else "-"
    return to_markdown(outline, bullet=bullet)
