"""Anchor identifier derivation for headings."""

from __future__ import annotations

import re
import string
import unicodedata

# Hyphens and underscores survive; all other ASCII punctuation is dropped.
_PUNCTUATION_TABLE = str.maketrans("", "", string.punctuation.replace("-", "").replace("_", ""))


def generate_slug(title: str, preserve_unicode: bool = False) -> str:
    """Derive a URL-fragment-safe anchor from heading text.

    The text is normalized (and transliterated to ASCII unless
    `preserve_unicode` is set), case-folded, stripped of punctuation other than
    ``-`` and ``_``, and whitespace runs become single hyphens.

    Args:
        title: Plain text of the heading.
        preserve_unicode: Keep non-ASCII characters instead of dropping them.

    Returns:
        str: The anchor, or ``"untitled"`` when nothing usable remains.

    Examples:
        generate_slug("Getting Started")  # "getting-started"
        generate_slug("What's New?")  # "whats-new"
        generate_slug("Café", preserve_unicode=True)  # "café"
    """
    form = "NFKC" if preserve_unicode else "NFKD"
    slug = unicodedata.normalize(form, title)
    if not preserve_unicode:
        slug = slug.encode("ascii", "ignore").decode("ascii")

    slug = slug.casefold().translate(_PUNCTUATION_TABLE)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-{2,}", "-", slug).strip("-")

    return slug or "untitled"


class SlugRegistry:
    """Hands out unique anchors within one document.

    Follows the GitHub numbering convention: the first occurrence of a base
    anchor is used as is, later ones get ``-1``, ``-2`` and so on. Cascading
    collisions are resolved too, so ``"Header"``, ``"Header"``, ``"Header 1"``
    yields ``header``, ``header-1``, ``header-1-1``.

    Examples:
        registry = SlugRegistry()
        registry.slug("Intro")  # "intro"
        registry.slug("Intro")  # "intro-1"
    """

    def __init__(self, preserve_unicode: bool = False):
        self.preserve_unicode = preserve_unicode
        # Next counter per base anchor, plus every anchor actually handed out.
        self._counters: dict[str, int] = {}
        self._used: set[str] = set()

    def __contains__(self, anchor: str) -> bool:
        return anchor in self._used

    def reserve(self, anchor: str) -> None:
        """Mark an explicit anchor as taken without renaming it."""
        self._used.add(anchor)

    def slug(self, title: str) -> str:
        """Derive the next free anchor for `title`."""
        base = generate_slug(title, preserve_unicode=self.preserve_unicode)
        count = self._counters.get(base, 0)
        anchor = base if count == 0 else f"{base}-{count}"

        while anchor in self._used:
            count += 1
            anchor = f"{base}-{count}"

        self._counters[base] = count + 1
        self._used.add(anchor)
        return anchor
