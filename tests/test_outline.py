from __future__ import annotations

import textwrap

import pytest

from toc_pipeline.config import ConfigError, PipelineConfig
from toc_pipeline.exceptions import TooManyHeadingsError
from toc_pipeline.headings import assign_heading_ids
from toc_pipeline.outline import build_heading_forest, extract_outline, outline_tree
from toc_pipeline.parser import parse_markdown


def _forest(text: str, config: PipelineConfig | None = None):
    tree = parse_markdown(textwrap.dedent(text).lstrip())
    assign_heading_ids(tree)
    return build_heading_forest(tree, config)


def test_nesting_follows_heading_levels():
    forest = _forest(
        """
        # One
        ## Two
        ## Three
        ### Four
        # Five
        """
    )

    assert [entry.text for entry in forest] == ["One", "Five"]
    first, second = forest
    assert [entry.level for entry in first.children] == [2, 2]
    assert [entry.text for entry in first.children[0].children] == []
    assert [entry.text for entry in first.children[1].children] == ["Four"]
    assert second.children == []


def test_first_level_two_child_has_the_level_three_entry():
    forest = _forest(
        """
        # A
        ## B
        ### C
        ## D
        # E
        """
    )

    first = forest[0]
    assert [entry.anchor_id for entry in first.children] == ["b", "d"]
    assert [entry.anchor_id for entry in first.children[0].children] == ["c"]
    assert forest[1].children == []


def test_shallower_heading_after_deeper_start_becomes_root():
    forest = _forest(
        """
        ### Deep
        ## Shallow
        ### Child
        """
    )

    assert [entry.text for entry in forest] == ["Deep", "Shallow"]
    assert [entry.text for entry in forest[1].children] == ["Child"]


def test_depth_bounds_and_skip_filter_headings():
    config = PipelineConfig(min_depth=2, max_depth=3, skip="^Changelog$")
    forest = _forest(
        """
        # Title
        ## Usage
        #### Too deep
        ## Changelog
        ### Options
        """,
        config,
    )

    assert [entry.text for entry in forest] == ["Usage"]
    assert [entry.text for entry in forest[0].children] == ["Options"]


def test_outline_tree_is_none_for_empty_forest():
    assert outline_tree([]) is None


def test_outline_tree_links_to_anchors():
    forest = _forest("# A\n## B\n")
    outline = outline_tree(forest, PipelineConfig(prefix="doc-"))

    assert outline.type == "list"
    item = outline.children[0]
    link = item.children[0].children[0]
    assert link.type == "link"
    assert link.properties["url"] == "#doc-a"
    assert item.children[1].type == "list"
    assert item.children[1].children[0].children[0].children[0].properties["url"] == "#doc-b"


def test_extract_outline_returns_empty_string_without_headings():
    assert extract_outline("Just a paragraph.\n\n- and a list\n") == ""
    assert extract_outline("") == ""


def test_extract_outline_loose_by_default():
    text = extract_outline("# One\n## Two\n## Three\n# Four\n")

    assert text == (
        "- [One](#one)\n"
        "\n"
        "  - [Two](#two)\n"
        "\n"
        "  - [Three](#three)\n"
        "\n"
        "- [Four](#four)\n"
    )


def test_extract_outline_tight_ordered():
    config = PipelineConfig(tight=True, list_style="1.")

    text = extract_outline("# One\n## Two\n# Three\n", config)

    assert text == "1. [One](#one)\n   1. [Two](#two)\n2. [Three](#three)\n"


def test_extract_outline_tight_star_bullets():
    config = PipelineConfig(tight=True, list_style="*")

    assert extract_outline("## A\n### B\n", config) == "* [A](#a)\n  * [B](#b)\n"


def test_extract_outline_escapes_link_text():
    config = PipelineConfig(tight=True)

    text = extract_outline("## Use `[x]` and a_b\n", config)

    assert text == "- [Use \\[x\\] and a\\_b](#use-x-and-a_b)\n"


def test_extract_outline_uses_custom_ids():
    config = PipelineConfig(tight=True)

    assert extract_outline("## Install {#setup}\n", config) == "- [Install](#setup)\n"


def test_extract_outline_is_pure():
    text = "# A\n## A\n## B\n"

    assert extract_outline(text) == extract_outline(text)


def test_extract_outline_rejects_invalid_config():
    with pytest.raises(ConfigError):
        extract_outline("# A\n", PipelineConfig(max_depth=-1))


def test_extract_outline_enforces_heading_limit():
    with pytest.raises(TooManyHeadingsError):
        extract_outline("# A\n# B\n# C\n", PipelineConfig(max_headings=2))


def test_extract_outline_leaves_out_headings_inside_containers():
    config = PipelineConfig(tight=True)
    text = "# Top\n\n> ## Top\n\n- ## In list\n\n## Top\n"

    tree = parse_markdown(text)

    assert assign_heading_ids(tree) == ["top", "top-1", "in-list", "top-2"]
    assert extract_outline(text, config) == "- [Top](#top)\n  - [Top](#top-2)\n"


def test_extract_outline_ignores_image_alt_text():
    config = PipelineConfig(tight=True)

    assert extract_outline("# Logo ![robot](r.png)\n", config) == "- [Logo](#logo)\n"


def test_extract_outline_keeps_non_ascii_anchors_through_reparse():
    config = PipelineConfig(tight=True, preserve_unicode=True)

    text = extract_outline("# Café\n## Über {#über-uns}\n", config)

    assert text == "- [Café](#café)\n  - [Über](#über-uns)\n"
    urls = [node.properties["url"] for node in parse_markdown(text).walk() if node.type == "link"]
    assert urls == ["#café", "#über-uns"]
