"""Data models for toc-pipeline."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Position:
    """Source span of a node, advisory only.

    Attributes:
        start_line: One-based line where the node starts.
        end_line: One-based line where the node ends (inclusive).
    """

    start_line: int
    end_line: int


@dataclass
class SyntaxNode:
    """A node in a document syntax tree.

    Markdown trees use mdast-style types (``root``, ``heading``, ``paragraph``,
    ``text``, ``list``, ``listItem``, ``link``, ...). Rendered HTML trees use
    ``root``, ``element``, ``text``, ``comment`` and ``doctype``.

    Attributes:
        type: Node kind.
        children: Ordered child nodes, in document order, owned by this node.
        value: Text payload for leaf nodes.
        depth: Heading level (1-6) for ``heading`` nodes.
        tag_name: Lowercase tag for ``element`` nodes.
        properties: Node attributes. Element nodes keep HTML attributes here,
            with ``class`` stored as a list of class names.
        position: Optional source span.

    Examples:
        SyntaxNode("heading", depth=2, children=[SyntaxNode("text", value="Usage")])
    """

    type: str
    children: list[SyntaxNode] = field(default_factory=list)
    value: str | None = None
    depth: int | None = None
    tag_name: str | None = None
    properties: dict[str, Any] = field(default_factory=dict)
    position: Position | None = None

    def walk(self) -> Iterator[SyntaxNode]:
        """Traverse the tree depth-first, yielding self then descendants."""
        yield self
        for child in self.children:
            yield from child.walk()

    def walk_with_parents(self) -> Iterator[tuple[SyntaxNode, SyntaxNode | None, int | None]]:
        """Traverse depth-first, yielding ``(node, parent, index)`` triples.

        The root is yielded with ``parent`` and ``index`` set to None. Parents
        are tracked on an explicit stack, never stored on the nodes.
        """
        yield self, None, None
        stack: list[tuple[SyntaxNode, Iterator[tuple[int, SyntaxNode]]]] = [
            (self, iter(enumerate(self.children)))
        ]
        while stack:
            parent, children = stack[-1]
            step = next(children, None)
            if step is None:
                stack.pop()
                continue
            index, child = step
            yield child, parent, index
            if child.children:
                stack.append((child, iter(enumerate(child.children))))

    def text_content(self) -> str:
        """Return the concatenated plain text of this node and its descendants.

        Image alt text is not included, so a heading reads the same whether it
        comes from markdown or from rendered HTML.
        """
        if self.value is not None and not self.children:
            if self.type in ("text", "inlineCode"):
                return self.value
            return ""
        return "".join(child.text_content() for child in self.children)

    def is_element(self, tag_name: str | None = None) -> bool:
        """Check whether this is an HTML element, optionally of a given tag."""
        if self.type != "element":
            return False
        return tag_name is None or self.tag_name == tag_name

    def class_names(self) -> list[str]:
        """Return the element's class list (empty for non-elements)."""
        classes = self.properties.get("class", [])
        if isinstance(classes, str):
            return classes.split()
        return list(classes)


@dataclass
class HeadingEntry:
    """A heading in the outline forest.

    Attributes:
        level: Heading level (1-6).
        text: Plain text of the heading.
        anchor_id: Unique anchor identifier of the heading.
        children: Entries nested under this heading.
    """

    level: int
    text: str
    anchor_id: str
    children: list[HeadingEntry] = field(default_factory=list)
