"""Markdown parsing into `SyntaxNode` trees.

Tokenizing is delegated to markdown-it-py; this module only maps its token
tree onto mdast-style nodes. markdown-it never rejects input, and token kinds
without a mapping degrade to plain ``text`` nodes carrying their source, so
parsing cannot fail on markdown syntax.
"""

from __future__ import annotations

from markdown_it import MarkdownIt
from markdown_it.common.normalize_url import normalizeLinkText
from markdown_it.tree import SyntaxTreeNode

from .models import Position, SyntaxNode

# markdown-it node type -> mdast type, for nodes that need no extra fields
_CONTAINER_TYPES = {
    "paragraph": "paragraph",
    "blockquote": "blockquote",
    "em": "emphasis",
    "strong": "strong",
    "s": "delete",
    "list_item": "listItem",
    "table": "table",
    "tr": "tableRow",
    "th": "tableCell",
    "td": "tableCell",
}

# Wrapper nodes whose children are spliced into the parent
_TRANSPARENT_TYPES = frozenset({"inline", "thead", "tbody"})


def create_parser() -> MarkdownIt:
    """Return the markdown-it instance used for every parse and render.

    CommonMark with tables and strikethrough enabled.
    """
    return MarkdownIt("commonmark").enable(["table", "strikethrough"])


def parse_markdown(text: str, parser: MarkdownIt | None = None) -> SyntaxNode:
    """Parse markdown text into a ``root`` SyntaxNode.

    Args:
        text: Markdown source.
        parser: Optional preconfigured markdown-it instance.

    Returns:
        SyntaxNode: Root of the document tree.

    Examples:
        tree = parse_markdown("# Title\\n\\nBody")
        tree.children[0].depth  # 1
    """
    parser = parser or create_parser()
    token_tree = SyntaxTreeNode(parser.parse(text))
    root = SyntaxNode("root", children=_convert_children(token_tree))
    line_count = text.count("\n") + (0 if text.endswith("\n") or not text else 1)
    if line_count:
        root.position = Position(1, line_count)
    return root


def _convert_children(node: SyntaxTreeNode) -> list[SyntaxNode]:
    converted: list[SyntaxNode] = []
    for child in node.children:
        converted.extend(_convert(child))
    return converted


def _convert(node: SyntaxTreeNode) -> list[SyntaxNode]:
    kind = node.type

    if kind in _TRANSPARENT_TYPES:
        return _convert_children(node)

    if kind in _CONTAINER_TYPES:
        result = SyntaxNode(_CONTAINER_TYPES[kind], children=_convert_children(node))
        if kind in ("th", "td"):
            align = _cell_alignment(node)
            if align:
                result.properties["align"] = align
        elif kind == "list_item":
            result.properties["spread"] = False
    elif kind == "heading":
        result = SyntaxNode("heading", depth=int(node.tag[1:]), children=_convert_children(node))
    elif kind in ("bullet_list", "ordered_list"):
        result = _convert_list(node)
    elif kind == "link":
        result = SyntaxNode(
            "link",
            children=_convert_children(node),
            properties=_link_properties(node, "href"),
        )
    elif kind == "image":
        properties = _link_properties(node, "src")
        properties["alt"] = node.content
        result = SyntaxNode("image", properties=properties)
    elif kind == "text":
        result = SyntaxNode("text", value=node.content)
    elif kind == "softbreak":
        result = SyntaxNode("text", value="\n")
    elif kind == "hardbreak":
        result = SyntaxNode("break")
    elif kind == "code_inline":
        result = SyntaxNode("inlineCode", value=node.content)
    elif kind in ("fence", "code_block"):
        result = _convert_code(node)
    elif kind == "hr":
        result = SyntaxNode("thematicBreak")
    elif kind in ("html_block", "html_inline"):
        result = SyntaxNode("html", value=node.content.rstrip("\n"))
    else:
        # Unknown constructs keep their source as literal text.
        result = SyntaxNode("text", value=node.content or "")

    if node.map:
        start, end = node.map
        result.position = Position(start + 1, max(end, start + 1))
    return [result]


def _convert_list(node: SyntaxTreeNode) -> SyntaxNode:
    ordered = node.type == "ordered_list"
    result = SyntaxNode(
        "list",
        children=_convert_children(node),
        properties={"ordered": ordered, "spread": not _is_tight(node)},
    )
    if ordered:
        result.properties["start"] = int(node.attrs.get("start", 1))
    return result


def _is_tight(list_node: SyntaxTreeNode) -> bool:
    # markdown-it hides the paragraphs of tight lists
    for item in list_node.children:
        for child in item.children:
            if child.type == "paragraph" and not child.hidden:
                return False
    return True


def _convert_code(node: SyntaxTreeNode) -> SyntaxNode:
    content = node.content
    if content.endswith("\n"):
        content = content[:-1]
    result = SyntaxNode("code", value=content)
    info = (node.info or "").strip()
    if info:
        lang, _, meta = info.partition(" ")
        result.properties["lang"] = lang
        if meta.strip():
            result.properties["meta"] = meta.strip()
    return result


def _link_properties(node: SyntaxTreeNode, url_attr: str) -> dict[str, object]:
    # markdown-it percent-encodes destinations; decode them to readable text.
    url = normalizeLinkText(str(node.attrs.get(url_attr, "")))
    properties: dict[str, object] = {"url": url}
    title = node.attrs.get("title")
    if title:
        properties["title"] = str(title)
    return properties


def _cell_alignment(node: SyntaxTreeNode) -> str | None:
    style = str(node.attrs.get("style", ""))
    if style.startswith("text-align:"):
        return style.split(":", 1)[1]
    return None
