from __future__ import annotations

import os
import textwrap
from pathlib import Path

import pytest

from toc_pipeline.config import ConfigError, PipelineConfig
from toc_pipeline.html_tree import from_html, to_html
from toc_pipeline.models import SyntaxNode
from toc_pipeline.outline import extract_outline
from toc_pipeline.parser import parse_markdown
from toc_pipeline.pipeline import (
    Stage,
    TransformPipeline,
    autolink_headings,
    build_outline_artifact,
    compile_document,
    default_transform_pipeline,
    heading_slugs,
)


def _write_source(root: Path, content: str, relative: str = "src/home.mdx") -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content).lstrip(), encoding="utf-8")
    return path


def test_build_outline_artifact_writes_outline(tmp_path: Path):
    _write_source(
        tmp_path,
        """
        # Home
        ## Install
        """,
    )

    artifact = build_outline_artifact(tmp_path, PipelineConfig(tight=True))

    assert artifact == (tmp_path / "build" / "home.toc.md").resolve()
    assert artifact.read_text(encoding="utf-8") == "- [Home](#home)\n  - [Install](#install)\n"
    assert list(artifact.parent.iterdir()) == [artifact]


def test_build_outline_artifact_writes_empty_file_without_headings(tmp_path: Path):
    _write_source(tmp_path, "No headings here.\n")

    artifact = build_outline_artifact(tmp_path)

    assert artifact.read_text(encoding="utf-8") == ""


def test_build_outline_artifact_overwrites_previous_artifact(tmp_path: Path):
    _write_source(tmp_path, "# New\n")
    old = tmp_path / "build" / "home.toc.md"
    old.parent.mkdir()
    old.write_text("- [Old](#old)\n", encoding="utf-8")

    build_outline_artifact(tmp_path, PipelineConfig(tight=True))

    assert old.read_text(encoding="utf-8") == "- [New](#new)\n"


def test_build_outline_artifact_missing_source(tmp_path: Path):
    with pytest.raises(IOError):
        build_outline_artifact(tmp_path)

    assert not (tmp_path / "build").exists()


def test_build_outline_artifact_enforces_size_limit(tmp_path: Path, monkeypatch):
    _write_source(tmp_path, "# Big\n" + "x" * 100)
    monkeypatch.setenv("TOC_PIPELINE_MAX_FILE_SIZE", "10")

    with pytest.raises(IOError, match="maximum allowed size"):
        build_outline_artifact(tmp_path)


def test_build_outline_artifact_rejects_paths_outside_root(tmp_path: Path):
    with pytest.raises(ValueError, match="outside"):
        build_outline_artifact(tmp_path, PipelineConfig(artifact_path="../escape.md"))


def test_build_outline_artifact_rejects_invalid_config(tmp_path: Path):
    _write_source(tmp_path, "# A\n")

    with pytest.raises(ConfigError):
        build_outline_artifact(tmp_path, PipelineConfig(min_depth=-1))


def test_build_outline_artifact_cleans_up_on_write_failure(tmp_path: Path, monkeypatch):
    _write_source(tmp_path, "# A\n")

    def failing_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", failing_replace)

    with pytest.raises(IOError, match="disk full"):
        build_outline_artifact(tmp_path)

    assert list((tmp_path / "build").iterdir()) == []


def test_transform_pipeline_orders_stages():
    calls: list[str] = []
    pipeline = TransformPipeline()
    pipeline.add_stage("a", lambda tree: calls.append("a"))
    pipeline.add_stage("c", lambda tree: calls.append("c"))
    pipeline.insert_before("c", "b", lambda tree: calls.append("b"))
    pipeline.insert_after("c", "d", lambda tree: calls.append("d"))
    pipeline.remove_stage("a")

    tree = SyntaxNode("root")
    assert pipeline.run(tree) is tree
    assert pipeline.names == ["b", "c", "d"]
    assert calls == ["b", "c", "d"]
    assert len(pipeline) == 3


def test_transform_pipeline_rejects_duplicates_and_unknown_names():
    pipeline = TransformPipeline([Stage("a", lambda tree: None)])

    with pytest.raises(ValueError, match="Duplicate"):
        pipeline.add_stage("a", lambda tree: None)
    with pytest.raises(ValueError, match="Unknown"):
        pipeline.insert_before("missing", "b", lambda tree: None)


def test_default_pipeline_runs_extra_stages_before_wrapper():
    extra = Stage("diagrams", lambda tree: None)

    pipeline = default_transform_pipeline(extra_stages=[extra])

    assert pipeline.names == ["heading-slugs", "autolink-headings", "diagrams", "diagram-wrapper"]


def test_default_pipeline_rejects_invalid_selectors():
    with pytest.raises(ConfigError):
        default_transform_pipeline(PipelineConfig(wrap_selector="div p"))


def test_heading_slugs_and_autolinks():
    tree = from_html("<h1>Intro</h1><h2>Intro</h2><h2 id=\"keep\">Kept</h2><p>Intro</p>")

    heading_slugs(tree)
    autolink_headings(tree)
    autolink_headings(tree)

    assert to_html(tree) == (
        '<h1 id="intro"><a class="toc-link" href="#intro">Intro</a></h1>'
        '<h2 id="intro-1"><a class="toc-link" href="#intro-1">Intro</a></h2>'
        '<h2 id="keep"><a class="toc-link" href="#keep">Kept</a></h2>'
        "<p>Intro</p>"
    )


def test_compile_document_wraps_rendered_diagrams():
    def render_diagrams(tree: SyntaxNode) -> None:
        for node, parent, index in list(tree.walk_with_parents()):
            if node.is_element("pre") and "language-mermaid" in node.children[0].class_names():
                parent.children[index] = SyntaxNode(
                    "element", tag_name="svg", properties={"id": f"mermaid-{index}"}
                )

    pipeline = default_transform_pipeline(extra_stages=[Stage("diagrams", render_diagrams)])

    html = compile_document("# Flow {#flow}\n\n```mermaid\ngraph TD\n```\n", pipeline)

    assert html == (
        '<h1 id="flow"><a class="toc-link" href="#flow">Flow</a></h1>\n'
        '<div class="mermaid-container"><svg id="mermaid-2"></svg></div>\n'
    )


def test_outline_anchors_match_compiled_heading_ids():
    config = PipelineConfig(preserve_unicode=True, tight=True)
    text = "# Café\n\n> ## Café\n\n## Logo ![robot](r.png)\n\n## Setup {#install}\n"

    outline = extract_outline(text, config)
    compiled = from_html(compile_document(text, default_transform_pipeline(config)))

    anchors = [
        node.properties["url"] for node in parse_markdown(outline).walk() if node.type == "link"
    ]
    heading_ids = [
        f"#{node.properties['id']}"
        for node in compiled.walk()
        if node.is_element() and node.tag_name in ("h1", "h2")
    ]
    assert anchors == ["#café", "#logo", "#install"]
    assert heading_ids == ["#café", "#café-1", "#logo", "#install"]


def test_heading_slugs_preserve_unicode_when_asked():
    tree = from_html("<h1>Café</h1>")

    heading_slugs(tree, preserve_unicode=True)

    assert tree.children[0].properties["id"] == "café"
