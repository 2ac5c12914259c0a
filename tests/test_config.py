from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from toc_pipeline.config import (
    ConfigError,
    PipelineConfig,
    apply_overrides,
    build_config,
    load_config,
    normalize_config,
    validate_config,
)


def _write_pyproject(base: Path, body: str) -> Path:
    path = base / "pyproject.toml"
    path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
    return path


def _write_dotfile(base: Path, body: str) -> Path:
    path = base / ".toc-pipeline.toml"
    path.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
    return path


def test_loads_config_from_pyproject(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.toc-pipeline]
        source_path = "docs/index.md"
        artifact_path = "out/index.toc.md"
        min_depth = 2
        max_depth = 4
        list_style = "*"
        tight = true
        skip = "^Changelog$"
        prefix = "user-content-"
        max_file_size = 1
        max_headings = 3
        wrap_selector = "figure.diagram"
        wrapper_selector = "section.diagram-box"
        """,
    )

    config = load_config(tmp_path)

    assert config == PipelineConfig(
        source_path="docs/index.md",
        artifact_path="out/index.toc.md",
        min_depth=2,
        max_depth=4,
        list_style="*",
        tight=True,
        skip="^Changelog$",
        prefix="user-content-",
        max_file_size=1,
        max_headings=3,
        wrap_selector="figure.diagram",
        wrapper_selector="section.diagram-box",
    )


def test_loads_kebab_case_keys(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.toc-pipeline]
        max-depth = 3
        """,
    )

    assert load_config(tmp_path).max_depth == 3


def test_loads_config_from_dotfile_in_parent(tmp_path: Path):
    _write_dotfile(
        tmp_path,
        """
        [toc-pipeline]
        list_style = "ordered"
        """,
    )
    nested = tmp_path / "child"
    nested.mkdir()

    config = load_config(nested)

    assert config.list_style == "1."


def test_defaults_when_no_config(tmp_path: Path):
    assert load_config(tmp_path) == PipelineConfig()


def test_pyproject_without_table_is_ignored(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.other]
        value = 1
        """,
    )

    assert load_config(tmp_path) == PipelineConfig()


def test_unknown_keys_raise(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.toc-pipeline]
        unknown = 1
        """,
    )

    with pytest.raises(ConfigError, match="Invalid"):
        load_config(tmp_path)


def test_non_table_raises(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool]
        toc-pipeline = "nope"
        """,
    )

    with pytest.raises(ConfigError):
        load_config(tmp_path)


@pytest.mark.parametrize(
    ("overrides", "message"),
    [
        ({"min_depth": -1}, "min_depth"),
        ({"min_depth": 0}, "min_depth"),
        ({"max_depth": 7}, "max_depth"),
        ({"min_depth": 4, "max_depth": 2}, "max_depth"),
        ({"min_depth": "2"}, "integer"),
        ({"list_style": "+"}, "list_style"),
        ({"tight": "yes"}, "tight"),
        ({"skip": "("}, "skip"),
        ({"artifact_path": " "}, "artifact_path"),
        ({"wrap_selector": ""}, "wrap_selector"),
        ({"max_headings": 0}, "max_headings"),
    ],
)
def test_validate_config_rejects_invalid_values(overrides: dict, message: str):
    with pytest.raises(ConfigError, match=message):
        validate_config(PipelineConfig(**overrides))


def test_normalize_config_maps_aliases():
    assert normalize_config(PipelineConfig(list_style="unordered")).list_style == "-"
    assert normalize_config(PipelineConfig(list_style="ordered")).list_style == "1."


def test_apply_overrides_ignores_none():
    config = PipelineConfig()

    assert apply_overrides(config, max_depth=None) is config
    assert apply_overrides(config, max_depth=2).max_depth == 2


def test_build_config_applies_overrides_over_file(tmp_path: Path):
    _write_pyproject(
        tmp_path,
        """
        [tool.toc-pipeline]
        max_depth = 4
        """,
    )

    config = build_config(tmp_path, max_depth=2, list_style=None)

    assert config.max_depth == 2


def test_build_config_validates(tmp_path: Path):
    with pytest.raises(ConfigError):
        build_config(tmp_path, min_depth=-3)
