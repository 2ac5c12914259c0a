"""Structural rewrites that wrap matching nodes in container elements."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from .constants import DEFAULT_WRAP_SELECTOR, DEFAULT_WRAPPER_SELECTOR
from .exceptions import WrapperError
from .models import SyntaxNode
from .selector import WrapPattern, parse_selector

logger = logging.getLogger(__name__)


@dataclass
class Match:
    """A node selected for wrapping, with where it sat when it was found."""

    node: SyntaxNode
    parent: SyntaxNode
    index: int


def find_matches(tree: SyntaxNode, pattern: WrapPattern) -> list[Match]:
    """Snapshot every non-root node matching `pattern`, in document order.

    The root has no parent to splice a wrapper into and is never returned.
    """
    matches = []
    for node, parent, index in tree.walk_with_parents():
        if parent is None:
            if pattern.matches(node):
                logger.debug("Pattern %r matches the root; leaving it in place", pattern.source)
            continue
        if pattern.matches(node):
            matches.append(Match(node=node, parent=parent, index=index))
    return matches


def wrap_matches(
    tree: SyntaxNode,
    pattern: WrapPattern,
    make_wrapper: Callable[[], SyntaxNode],
) -> int:
    """Wrap every node matching `pattern` in a fresh container node.

    Matches are collected in one traversal before anything changes, then
    applied back to front within each parent, so wrappers inserted by this
    call are never visited and no splice shifts a pending index. A match whose
    recorded slot no longer holds it is skipped. Every wrapper is built and
    checked before the first splice, so a failing factory leaves the tree as
    it was. Unmatched nodes keep their identity and position.

    Args:
        tree: Tree to rewrite in place.
        pattern: Selects the nodes to wrap.
        make_wrapper: Returns a new childless node for each match.

    Returns:
        int: Number of wrappers inserted.

    Raises:
        WrapperError: If `make_wrapper` returns a node that already has children.
            The tree is not modified in that case.

    Examples:
        wrap_matches(tree, WrapPattern.from_selector("svg"), lambda: parse_selector("div.box"))
    """
    matches = find_matches(tree, pattern)

    by_parent: dict[int, list[Match]] = {}
    for match in matches:
        by_parent.setdefault(id(match.parent), []).append(match)

    planned: list[tuple[Match, SyntaxNode]] = []
    for group in by_parent.values():
        for match in sorted(group, key=lambda item: item.index, reverse=True):
            siblings = match.parent.children
            if match.index >= len(siblings) or siblings[match.index] is not match.node:
                logger.debug("Stale position %d for %r; skipping", match.index, match.node.type)
                continue

            wrapper = make_wrapper()
            if wrapper.children:
                raise WrapperError(
                    f"Wrapper factory returned a {wrapper.type!r} node that already has "
                    f"{len(wrapper.children)} children"
                )
            if any(wrapper is other for _, other in planned):
                raise WrapperError("Wrapper factory returned the same node for two matches")
            planned.append((match, wrapper))

    for match, wrapper in planned:
        wrapper.children = [match.node]
        match.parent.children[match.index] = wrapper

    logger.debug("Wrapped %d of %d matches for %r", len(planned), len(matches), pattern.source)
    return len(planned)


def wrap_selector(
    tree: SyntaxNode,
    selector: str = DEFAULT_WRAP_SELECTOR,
    wrapper_selector: str = DEFAULT_WRAPPER_SELECTOR,
) -> int:
    """Wrap elements matching `selector` in elements built from `wrapper_selector`.

    Raises:
        SelectorError: If either selector is invalid.

    Examples:
        wrap_selector(tree, "svg[id^='mermaid-']", "div.mermaid-container")
    """
    pattern = WrapPattern.from_selector(selector)
    # Validate the wrapper selector before touching the tree.
    parse_selector(wrapper_selector)
    return wrap_matches(tree, pattern, lambda: parse_selector(wrapper_selector))


def make_wrap_stage(
    selector: str = DEFAULT_WRAP_SELECTOR,
    wrapper_selector: str = DEFAULT_WRAPPER_SELECTOR,
) -> Callable[[SyntaxNode], None]:
    """Build a transform stage that wraps `selector` matches.

    Both selectors are compiled once, when the stage is built.
    """
    pattern = WrapPattern.from_selector(selector)
    parse_selector(wrapper_selector)

    def stage(tree: SyntaxNode) -> None:
        wrap_matches(tree, pattern, lambda: parse_selector(wrapper_selector))

    return stage
