"""Rendered (HTML) document trees.

HTML is parsed with BeautifulSoup and copied into `SyntaxNode` elements so
that the rewrite stages work on one tree model for both markdown and HTML.
"""

from __future__ import annotations

from html import escape

from bs4 import BeautifulSoup
from bs4.element import (
    Comment,
    Declaration,
    Doctype,
    NavigableString,
    PreformattedString,
    Tag,
)
from markdown_it import MarkdownIt

from .models import SyntaxNode
from .parser import create_parser

VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "source",
        "track",
        "wbr",
    }
)
RAW_TEXT_ELEMENTS = frozenset({"script", "style"})


def from_html(html: str) -> SyntaxNode:
    """Parse an HTML fragment or document into a ``root`` SyntaxNode.

    Examples:
        tree = from_html('<div><svg id="mermaid-0"></svg></div>')
        tree.children[0].tag_name  # "div"
    """
    soup = BeautifulSoup(html, "html.parser")
    return SyntaxNode("root", children=_convert_contents(soup))


def _convert_contents(tag: Tag) -> list[SyntaxNode]:
    children: list[SyntaxNode] = []
    for child in tag.contents:
        if isinstance(child, Tag):
            children.append(
                SyntaxNode(
                    "element",
                    tag_name=child.name,
                    properties=dict(child.attrs),
                    children=_convert_contents(child),
                )
            )
        elif isinstance(child, Comment):
            children.append(SyntaxNode("comment", value=str(child)))
        elif isinstance(child, Doctype):
            children.append(SyntaxNode("doctype", value=_doctype_name(str(child))))
        elif isinstance(child, Declaration):
            children.append(SyntaxNode("raw", value=f"<!{child}>"))
        elif isinstance(child, PreformattedString):
            # CDATA sections and processing instructions
            children.append(SyntaxNode("raw", value=f"{child.PREFIX}{child}{child.SUFFIX}"))
        elif isinstance(child, NavigableString):
            children.append(SyntaxNode("text", value=str(child)))
    return children


def _doctype_name(value: str) -> str:
    # html.parser only strips an upper-case "DOCTYPE " keyword.
    if value[:8].lower() == "doctype ":
        return value[8:]
    return value


def render_markdown(markdown_text: str, parser: MarkdownIt | None = None) -> SyntaxNode:
    """Render markdown to HTML with markdown-it and return the element tree."""
    parser = parser or create_parser()
    return from_html(parser.render(markdown_text))


def to_html(node: SyntaxNode) -> str:
    """Serialize an element tree back to HTML text."""
    return "".join(_serialize(node, raw=False))


def _serialize(node: SyntaxNode, raw: bool) -> list[str]:
    kind = node.type
    if kind == "root":
        return [part for child in node.children for part in _serialize(child, raw)]
    if kind == "text":
        value = node.value or ""
        return [value if raw else escape(value, quote=False)]
    if kind == "comment":
        return [f"<!--{node.value or ''}-->"]
    if kind == "doctype":
        return [f"<!DOCTYPE {node.value or 'html'}>"]
    if kind == "raw":
        return [node.value or ""]
    if kind != "element":
        return [escape(node.text_content(), quote=False)]

    tag_name = node.tag_name or "div"
    parts = [f"<{tag_name}{_attributes(node.properties)}>"]
    if tag_name in VOID_ELEMENTS:
        return parts
    inner_raw = tag_name in RAW_TEXT_ELEMENTS
    for child in node.children:
        parts.extend(_serialize(child, inner_raw))
    parts.append(f"</{tag_name}>")
    return parts


def _attributes(properties: dict[str, object]) -> str:
    rendered = []
    for name, value in properties.items():
        if value is None or value is False:
            continue
        if isinstance(value, (list, tuple)):
            value = " ".join(str(item) for item in value)
        rendered.append(f' {name}="{escape(str(value), quote=True)}"')
    return "".join(rendered)
