"""Build-time glue: the outline artifact step and the transform stage list."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from functools import partial
from pathlib import Path

from markdown_it import MarkdownIt

from .config import PipelineConfig, normalize_config, validate_config
from .constants import AUTOLINK_CLASS
from .filesystem import (
    collect_file_stat,
    enforce_file_size,
    get_max_file_size,
    read_text,
    resolve_build_path,
    write_text_atomic,
)
from .headings import assign_heading_ids, is_heading_element, iter_headings
from .html_tree import render_markdown, to_html
from .models import SyntaxNode
from .outline import extract_outline
from .rewrite import make_wrap_stage

logger = logging.getLogger(__name__)

StageFunction = Callable[[SyntaxNode], None]


def build_outline_artifact(root: Path, config: PipelineConfig | None = None) -> Path:
    """Extract the outline of the source document and persist it.

    Reads ``config.source_path`` below `root`, extracts its outline and writes
    it to ``config.artifact_path``. The artifact is replaced atomically, so it
    is either fully written or left as it was; a document without headings
    produces an empty artifact.

    Args:
        root: Build root that both paths are relative to.
        config: Pipeline configuration. Defaults to `PipelineConfig()`.

    Returns:
        Path: Absolute path of the written artifact.

    Raises:
        ConfigError: If the configuration is invalid.
        ValueError: If a configured path escapes `root`, or the size limit
            environment override is malformed.
        IOError: If the source cannot be read or the artifact cannot be written.

    Examples:
        build_outline_artifact(Path("."), PipelineConfig(max_depth=3))
    """
    config = normalize_config(config or PipelineConfig())
    validate_config(config)

    source = resolve_build_path(root, config.source_path)
    artifact = resolve_build_path(root, config.artifact_path)

    enforce_file_size(
        collect_file_stat(source), get_max_file_size(default=config.max_file_size), source
    )
    outline = extract_outline(read_text(source), config)
    write_text_atomic(artifact, outline)

    logger.info("Wrote outline of %s to %s (%d bytes)", source, artifact, len(outline))
    return artifact


@dataclass(frozen=True)
class Stage:
    """A named tree transform."""

    name: str
    func: StageFunction


class TransformPipeline:
    """Ordered, named tree transforms applied to every compiled document.

    Examples:
        pipeline = TransformPipeline()
        pipeline.add_stage("diagram-wrapper", make_wrap_stage())
        pipeline.insert_before("diagram-wrapper", "diagrams", render_diagrams)
        pipeline.run(tree)
    """

    def __init__(self, stages: Iterable[Stage] = ()):
        self._stages: list[Stage] = []
        for stage in stages:
            self.add_stage(stage.name, stage.func)

    def __len__(self) -> int:
        return len(self._stages)

    @property
    def names(self) -> list[str]:
        return [stage.name for stage in self._stages]

    def add_stage(self, name: str, func: StageFunction) -> None:
        self._insert(len(self._stages), name, func)

    def insert_before(self, anchor: str, name: str, func: StageFunction) -> None:
        self._insert(self._index(anchor), name, func)

    def insert_after(self, anchor: str, name: str, func: StageFunction) -> None:
        self._insert(self._index(anchor) + 1, name, func)

    def remove_stage(self, name: str) -> None:
        del self._stages[self._index(name)]

    def run(self, tree: SyntaxNode) -> SyntaxNode:
        """Apply every stage to `tree` in order and return it."""
        for stage in self._stages:
            logger.debug("Running transform stage %r", stage.name)
            stage.func(tree)
        return tree

    def _insert(self, position: int, name: str, func: StageFunction) -> None:
        if name in self.names:
            raise ValueError(f"Duplicate transform stage: {name}")
        self._stages.insert(position, Stage(name, func))

    def _index(self, name: str) -> int:
        for index, stage in enumerate(self._stages):
            if stage.name == name:
                return index
        raise ValueError(f"Unknown transform stage: {name}")


def heading_slugs(tree: SyntaxNode, preserve_unicode: bool = False) -> None:
    """Give every ``h1``-``h6`` element an ``id`` if it has none.

    Anchors are derived exactly as `extract_outline` derives them, so outline
    links resolve on the compiled page.
    """
    assign_heading_ids(tree, preserve_unicode=preserve_unicode, is_heading=is_heading_element)


def autolink_headings(tree: SyntaxNode) -> None:
    """Wrap the contents of every identified heading in a link to itself."""
    for heading in iter_headings(tree, is_heading_element):
        anchor_id = heading.properties.get("id")
        if not anchor_id:
            continue
        if len(heading.children) == 1 and AUTOLINK_CLASS in heading.children[0].class_names():
            continue
        link = SyntaxNode(
            "element",
            tag_name="a",
            properties={"class": [AUTOLINK_CLASS], "href": f"#{anchor_id}"},
            children=heading.children,
        )
        heading.children = [link]


def default_transform_pipeline(
    config: PipelineConfig | None = None,
    extra_stages: Iterable[Stage] = (),
) -> TransformPipeline:
    """Assemble the standard stage list for compiled documents.

    Heading anchors and autolinks come first, then `extra_stages` (syntax
    highlighting, diagram rendering and the like, owned by the caller), and
    the diagram wrapper last so it sees rendered diagrams rather than their
    source.

    Raises:
        ConfigError: If the configuration or its selectors are invalid.
    """
    config = normalize_config(config or PipelineConfig())
    validate_config(config)

    pipeline = TransformPipeline()
    pipeline.add_stage(
        "heading-slugs", partial(heading_slugs, preserve_unicode=config.preserve_unicode)
    )
    pipeline.add_stage("autolink-headings", autolink_headings)
    for stage in extra_stages:
        pipeline.add_stage(stage.name, stage.func)
    pipeline.add_stage(
        "diagram-wrapper", make_wrap_stage(config.wrap_selector, config.wrapper_selector)
    )
    return pipeline


def compile_document(
    markdown_text: str,
    pipeline: TransformPipeline | None = None,
    parser: MarkdownIt | None = None,
) -> str:
    """Render markdown to HTML and run it through the transform pipeline.

    Examples:
        html = compile_document("# Title\\n", default_transform_pipeline())
    """
    tree = render_markdown(markdown_text, parser)
    (pipeline or default_transform_pipeline()).run(tree)
    return to_html(tree)
