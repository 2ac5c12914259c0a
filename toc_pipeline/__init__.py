"""
toc-pipeline: build-time outline extraction and tree rewriting for docs sites.

The package can be used both as a CLI tool and as a library.

CLI Usage:
    toc-pipeline outline --root site
    toc-pipeline wrap build/home.html

Library Usage:
    from toc_pipeline import extract_outline, from_html, to_html, wrap_selector

    outline_md = extract_outline(Path("src/home.mdx").read_text())

    tree = from_html(rendered_html)
    wrap_selector(tree, "svg[id^='mermaid-']", "div.mermaid-container")
    html = to_html(tree)
"""

from .config import ConfigError, PipelineConfig
from .exceptions import ParseError, SelectorError, TooManyHeadingsError, WrapperError
from .headings import assign_heading_ids
from .html_tree import from_html, render_markdown, to_html
from .models import HeadingEntry, Position, SyntaxNode
from .outline import build_heading_forest, extract_outline, outline_tree
from .parser import parse_markdown
from .pipeline import (
    Stage,
    TransformPipeline,
    build_outline_artifact,
    compile_document,
    default_transform_pipeline,
)
from .rewrite import wrap_matches, wrap_selector
from .selector import WrapPattern, parse_selector
from .slugify import SlugRegistry, generate_slug
from .writer import to_markdown

__version__ = "0.1.0"

__all__ = [
    # Outline extraction
    "parse_markdown",
    "assign_heading_ids",
    "build_heading_forest",
    "outline_tree",
    "extract_outline",
    "to_markdown",
    "generate_slug",
    "SlugRegistry",
    # Tree rewriting
    "WrapPattern",
    "parse_selector",
    "wrap_matches",
    "wrap_selector",
    "from_html",
    "render_markdown",
    "to_html",
    # Pipeline glue
    "Stage",
    "TransformPipeline",
    "build_outline_artifact",
    "compile_document",
    "default_transform_pipeline",
    # Data models
    "SyntaxNode",
    "HeadingEntry",
    "Position",
    "PipelineConfig",
    # Exceptions
    "ConfigError",
    "ParseError",
    "SelectorError",
    "TooManyHeadingsError",
    "WrapperError",
    # Version
    "__version__",
]
