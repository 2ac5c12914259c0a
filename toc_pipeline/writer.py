"""Serialization of markdown syntax trees back to markdown text."""

from __future__ import annotations

import re

from .models import SyntaxNode

# Characters that would otherwise start inline syntax
_ESCAPE_PATTERN = re.compile(r"([\\`*_\[\]<>&~])")
_URL_NEEDS_BRACKETS = re.compile(r"[\s()<>]")


_BLOCK_START_PATTERN = re.compile(r"^(\d*)([#>+.)-])")


def escape_text(value: str) -> str:
    """Backslash-escape characters that markdown would treat as inline syntax."""
    return _ESCAPE_PATTERN.sub(r"\\\1", value)


def _escape_line_start(text: str) -> str:
    # A paragraph must not reparse as a heading, quote, or list.
    return _BLOCK_START_PATTERN.sub(r"\1\\\2", text, count=1)


def to_markdown(node: SyntaxNode, bullet: str = "-") -> str:
    """Serialize a markdown tree (or any block/inline node) to text.

    Blocks are separated by a blank line and the result ends with a single
    newline. List items are indented by the width of their marker; spread
    lists put blank lines between items.

    Args:
        node: Node to serialize.
        bullet: Marker for unordered lists (``"-"`` or ``"*"``).

    Returns:
        str: Markdown text, or ``""`` for an empty tree.

    Examples:
        to_markdown(parse_markdown("* a\\n* b"))  # "- a\\n- b\\n"
    """
    writer = _Writer(bullet)
    if node.type == "root":
        text = writer.blocks(node.children)
    elif _is_block(node):
        text = writer.block(node)
    else:
        text = writer.inline([node])
    return f"{text}\n" if text else ""


_BLOCK_TYPES = frozenset(
    {
        "root",
        "heading",
        "paragraph",
        "list",
        "listItem",
        "blockquote",
        "code",
        "thematicBreak",
        "table",
        "html",
    }
)


def _is_block(node: SyntaxNode) -> bool:
    return node.type in _BLOCK_TYPES


class _Writer:
    def __init__(self, bullet: str):
        self.bullet = bullet

    def blocks(self, nodes: list[SyntaxNode], separator: str = "\n\n") -> str:
        return separator.join(self.block(node) for node in nodes)

    def block(self, node: SyntaxNode) -> str:
        kind = node.type
        if kind == "heading":
            return f"{'#' * (node.depth or 1)} {self.inline(node.children)}".rstrip()
        if kind == "paragraph":
            return _escape_line_start(self.inline(node.children))
        if kind == "list":
            return self.list_block(node)
        if kind == "blockquote":
            inner = self.blocks(node.children)
            return "\n".join(f"> {line}".rstrip() for line in inner.split("\n"))
        if kind == "code":
            return self.code(node)
        if kind == "thematicBreak":
            return "***"
        if kind == "html":
            return node.value or ""
        if kind == "table":
            return self.table(node)
        if kind == "listItem":
            return self.list_item(node, f"{self.bullet} ", spread=False)
        return self.inline([node])

    def list_block(self, node: SyntaxNode) -> str:
        ordered = bool(node.properties.get("ordered"))
        start = int(node.properties.get("start", 1))
        spread = bool(node.properties.get("spread")) or any(
            item.properties.get("spread") for item in node.children
        )
        items = []
        for offset, item in enumerate(node.children):
            marker = f"{start + offset}. " if ordered else f"{self.bullet} "
            items.append(self.list_item(item, marker, spread))
        return ("\n\n" if spread else "\n").join(items)

    def list_item(self, node: SyntaxNode, marker: str, spread: bool) -> str:
        inner = self.blocks(node.children, "\n\n" if spread else "\n")
        indent = " " * len(marker)
        lines = inner.split("\n")
        rendered = [f"{marker}{lines[0]}".rstrip()]
        rendered.extend(f"{indent}{line}" if line else "" for line in lines[1:])
        return "\n".join(rendered)

    def code(self, node: SyntaxNode) -> str:
        value = node.value or ""
        fence = "```"
        while fence in value:
            fence += "`"
        info = str(node.properties.get("lang", ""))
        if node.properties.get("meta"):
            info = f"{info} {node.properties['meta']}"
        return f"{fence}{info}\n{value}\n{fence}" if value else f"{fence}{info}\n{fence}"

    def table(self, node: SyntaxNode) -> str:
        rows = [
            [self.inline(cell.children).replace("|", "\\|") for cell in row.children]
            for row in node.children
        ]
        if not rows:
            return ""
        aligns = [cell.properties.get("align") for cell in node.children[0].children]
        delimiter = []
        for align in aligns:
            left = ":" if align in ("left", "center") else "-"
            right = ":" if align in ("right", "center") else "-"
            delimiter.append(f"{left}-{right}")
        lines = [_table_row(rows[0]), _table_row(delimiter)]
        lines.extend(_table_row(row) for row in rows[1:])
        return "\n".join(lines)

    def inline(self, nodes: list[SyntaxNode]) -> str:
        return "".join(self.phrasing(node) for node in nodes)

    def phrasing(self, node: SyntaxNode) -> str:
        kind = node.type
        if kind == "text":
            return escape_text(node.value or "")
        if kind == "emphasis":
            return f"*{self.inline(node.children)}*"
        if kind == "strong":
            return f"**{self.inline(node.children)}**"
        if kind == "delete":
            return f"~~{self.inline(node.children)}~~"
        if kind == "inlineCode":
            return _inline_code(node.value or "")
        if kind == "break":
            return "\\\n"
        if kind == "html":
            return node.value or ""
        if kind == "link":
            return f"[{self.inline(node.children)}]({_destination(node)})"
        if kind == "image":
            alt = escape_text(str(node.properties.get("alt", "")))
            return f"![{alt}]({_destination(node)})"
        if node.children:
            return self.inline(node.children)
        return escape_text(node.value or "")


def _table_row(cells: list[str]) -> str:
    return "| " + " | ".join(cells) + " |"


def _inline_code(value: str) -> str:
    ticks = "`"
    while ticks in value:
        ticks += "`"
    if value.startswith("`") or value.endswith("`"):
        return f"{ticks} {value} {ticks}"
    return f"{ticks}{value}{ticks}"


def _destination(node: SyntaxNode) -> str:
    url = str(node.properties.get("url", ""))
    if not url or _URL_NEEDS_BRACKETS.search(url):
        url = "<" + url.replace("<", "\\<").replace(">", "\\>") + ">"
    title = node.properties.get("title")
    if title:
        escaped = str(title).replace("\\", "\\\\").replace('"', '\\"')
        return f'{url} "{escaped}"'
    return url
