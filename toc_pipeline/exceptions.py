"""Package-specific exception types."""

from __future__ import annotations

from .config import ConfigError


class ParseError(ValueError):
    """Base class for errors raised while processing markdown content.

    Markdown syntax itself never raises; only configured limits do.
    """


class TooManyHeadingsError(ParseError):
    """Raised when a document contains more headings than allowed.

    Args:
        limit: Maximum number of headings permitted.
    """

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Too many headings (limit: {self.limit})")


class SelectorError(ConfigError):
    """Raised when a selector string cannot be parsed.

    Args:
        selector: The offending selector.
        reason: Short description of what went wrong.
    """

    def __init__(self, selector: str, reason: str):
        self.selector = selector
        self.reason = reason
        super().__init__(f"Invalid selector {selector!r}: {reason}")


class WrapperError(ValueError):
    """Raised when a wrapper factory returns a node that already has children."""
