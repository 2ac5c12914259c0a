"""Wrap patterns: CSS-like selectors and predicates over element trees.

Supported syntax is a comma-separated list of compound selectors, each made
of an optional tag name (or ``*``) followed by any number of ``#id``,
``.class`` and attribute conditions (``[attr]``, ``[attr=v]``, ``[attr^=v]``,
``[attr$=v]``, ``[attr*=v]``, ``[attr~=v]``). Combinators are not supported.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field

from .exceptions import SelectorError
from .models import SyntaxNode

_IDENT = r"-?[A-Za-z_][\w-]*"
_TAG_PATTERN = re.compile(rf"\*|{_IDENT}")
_ID_OR_CLASS_PATTERN = re.compile(rf"([#.])({_IDENT})")
_ATTRIBUTE_PATTERN = re.compile(
    rf"""\[\s*(?P<name>{_IDENT}(?::{_IDENT})?)\s*
    (?:(?P<operator>[\^$*~]?=)\s*
       (?:'(?P<single>[^']*)'|"(?P<double>[^"]*)"|(?P<bare>[^\s\]'"]+))\s*)?
    \]""",
    re.VERBOSE,
)
_OPERATORS = ("=", "^=", "$=", "*=", "~=")


@dataclass(frozen=True)
class AttributeCondition:
    """A single ``[name op value]`` test against element properties."""

    name: str
    operator: str | None = None
    value: str = ""

    def test(self, properties: dict[str, object]) -> bool:
        if self.name not in properties:
            return False
        raw = properties[self.name]
        if self.operator is None:
            return True
        actual = " ".join(raw) if isinstance(raw, (list, tuple)) else str(raw)
        if self.operator == "=":
            return actual == self.value
        if self.operator == "^=":
            return bool(self.value) and actual.startswith(self.value)
        if self.operator == "$=":
            return bool(self.value) and actual.endswith(self.value)
        if self.operator == "*=":
            return bool(self.value) and self.value in actual
        return self.value in actual.split()


@dataclass(frozen=True)
class CompoundSelector:
    """Tag, id, class and attribute tests that must all hold for one element."""

    tag_name: str | None = None
    ids: tuple[str, ...] = ()
    classes: tuple[str, ...] = ()
    attributes: tuple[AttributeCondition, ...] = ()

    def matches(self, node: SyntaxNode) -> bool:
        if not node.is_element():
            return False
        if self.tag_name is not None and node.tag_name != self.tag_name:
            return False
        if any(node.properties.get("id") != element_id for element_id in self.ids):
            return False
        class_names = node.class_names()
        if any(name not in class_names for name in self.classes):
            return False
        return all(condition.test(node.properties) for condition in self.attributes)


@dataclass(frozen=True)
class WrapPattern:
    """Selects the nodes a rewrite pass wraps.

    A node matches when any of `selectors` matches it, or when `predicate`
    returns True for it.

    Attributes:
        selectors: Alternative compound selectors.
        predicate: Optional structural test applied to any node.
        source: Selector text the pattern was compiled from, for messages.

    Examples:
        WrapPattern.from_selector("svg[id^='mermaid-']")
        WrapPattern.from_predicate(lambda node: node.type == "table")
    """

    selectors: tuple[CompoundSelector, ...] = ()
    predicate: Callable[[SyntaxNode], bool] | None = field(default=None, compare=False)
    source: str = ""

    @classmethod
    def from_selector(cls, selector: str) -> WrapPattern:
        return cls(selectors=compile_selector(selector), source=selector)

    @classmethod
    def from_tag(cls, tag_name: str) -> WrapPattern:
        return cls(selectors=(CompoundSelector(tag_name=tag_name.lower()),), source=tag_name)

    @classmethod
    def from_predicate(cls, predicate: Callable[[SyntaxNode], bool], source: str = "") -> WrapPattern:
        return cls(predicate=predicate, source=source or getattr(predicate, "__name__", ""))

    def matches(self, node: SyntaxNode) -> bool:
        if any(selector.matches(node) for selector in self.selectors):
            return True
        return self.predicate is not None and bool(self.predicate(node))


def compile_selector(selector: str) -> tuple[CompoundSelector, ...]:
    """Compile selector text into compound selectors.

    Args:
        selector: Selector list such as ``"svg[id^='mermaid-'], pre.diagram"``.

    Returns:
        tuple[CompoundSelector, ...]: One entry per comma-separated part.

    Raises:
        SelectorError: If the text is empty or uses unsupported syntax.

    Examples:
        compile_selector("div.note#intro")
    """
    if not selector or not selector.strip():
        raise SelectorError(selector, "selector is empty")
    return tuple(_compile_compound(selector, part.strip()) for part in _split_list(selector))


def _split_list(selector: str) -> list[str]:
    parts, current, quote = [], [], None
    for char in selector:
        if quote:
            if char == quote:
                quote = None
        elif char in "'\"":
            quote = char
        elif char == ",":
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    if quote:
        raise SelectorError(selector, "unterminated string")
    parts.append("".join(current))
    return parts


def _compile_compound(selector: str, part: str) -> CompoundSelector:
    if not part:
        raise SelectorError(selector, "empty selector in list")

    tag_name = None
    ids: list[str] = []
    classes: list[str] = []
    attributes: list[AttributeCondition] = []

    position = 0
    tag_match = _TAG_PATTERN.match(part)
    if tag_match:
        if tag_match.group(0) != "*":
            tag_name = tag_match.group(0).lower()
        position = tag_match.end()

    while position < len(part):
        char = part[position]
        if char in "#.":
            match = _ID_OR_CLASS_PATTERN.match(part, position)
            if match is None:
                raise SelectorError(selector, f"expected a name after {char!r}")
            (ids if match.group(1) == "#" else classes).append(match.group(2))
        elif char == "[":
            match = _ATTRIBUTE_PATTERN.match(part, position)
            if match is None:
                raise SelectorError(selector, "malformed attribute condition")
            attributes.append(_attribute_condition(match))
        elif char.isspace() or char in ">+~":
            raise SelectorError(selector, "combinators are not supported")
        else:
            raise SelectorError(selector, f"unexpected character {char!r}")
        position = match.end()

    return CompoundSelector(
        tag_name=tag_name,
        ids=tuple(ids),
        classes=tuple(classes),
        attributes=tuple(attributes),
    )


def _attribute_condition(match: re.Match[str]) -> AttributeCondition:
    operator = match.group("operator")
    if operator is None:
        return AttributeCondition(name=match.group("name").lower())
    value = next(
        group for group in (match.group("single"), match.group("double"), match.group("bare"))
        if group is not None
    )
    return AttributeCondition(name=match.group("name").lower(), operator=operator, value=value)


def parse_selector(selector: str) -> SyntaxNode:
    """Create a fresh element described by a simple selector.

    Only a tag name, ``#id`` and ``.class`` parts are used; the tag defaults
    to ``div``.

    Args:
        selector: Selector such as ``"div.mermaid-container"``.

    Returns:
        SyntaxNode: New childless element.

    Raises:
        SelectorError: If the selector is a list or carries attribute
            conditions.

    Examples:
        parse_selector("section#intro.note")
    """
    compiled = compile_selector(selector)
    if len(compiled) != 1 or compiled[0].attributes or len(compiled[0].ids) > 1:
        raise SelectorError(selector, "only `tag#id.class` selectors describe an element")
    compound = compiled[0]

    properties: dict[str, object] = {}
    if compound.ids:
        properties["id"] = compound.ids[0]
    if compound.classes:
        properties["class"] = list(compound.classes)
    return SyntaxNode("element", tag_name=compound.tag_name or "div", properties=properties)
