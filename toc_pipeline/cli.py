"""
Command-line entry points for the build-time document pipeline.

`outline` extracts the table of contents of the site's source document and
writes it to the outline artifact; `wrap` applies the tree rewriter to an
HTML file and prints the result.
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from .config import ConfigError, build_config
from .exceptions import ParseError
from .filesystem import (
    collect_file_stat,
    enforce_file_size,
    get_max_file_size,
    read_text,
    resolve_build_path,
)
from .html_tree import from_html, to_html
from .outline import extract_outline
from .pipeline import build_outline_artifact
from .rewrite import wrap_selector

__all__ = ["cli"]


@click.group()
@click.version_option()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool = False):
    """Build-time outline extraction and tree rewriting."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Build root directory",
)
@click.option("--source", "source_path", help="Source document, relative to the root")
@click.option("--output", "artifact_path", help="Outline artifact, relative to the root")
@click.option("--min-depth", type=int, help="Minimum heading level")
@click.option("--max-depth", type=int, help="Maximum heading level")
@click.option("--list-style", type=click.Choice(["1.", "*", "-"]), help="List style (1. or * or -)")
@click.option("--tight/--loose", default=None, help="Render a tight or loose list")
@click.option("--stdout", "to_stdout", is_flag=True, help="Print the outline instead of writing it")
def outline(
    root: Path,
    source_path: str | None = None,
    artifact_path: str | None = None,
    min_depth: int | None = None,
    max_depth: int | None = None,
    list_style: str | None = None,
    tight: bool | None = None,
    to_stdout: bool = False,
):
    """
    Extract the outline of the source document.

    Raises:
        click.BadParameter: If the configuration is invalid.
        click.ClickException: If reading or writing fails, or the document
            exceeds the heading limit.

    Examples:
        toc-pipeline outline --root site --max-depth 3
    """
    try:
        config = build_config(
            root,
            source_path=source_path,
            artifact_path=artifact_path,
            min_depth=min_depth,
            max_depth=max_depth,
            list_style=list_style,
            tight=tight,
        )
    except ConfigError as error:
        raise click.BadParameter(str(error)) from error

    try:
        if to_stdout:
            source = resolve_build_path(root, config.source_path)
            enforce_file_size(
                collect_file_stat(source), get_max_file_size(default=config.max_file_size), source
            )
            text = read_text(source)
            click.echo(extract_outline(text, config), nl=False)
            return
        artifact = build_outline_artifact(root, config)
    except (IOError, ValueError, ParseError) as error:
        raise click.ClickException(str(error)) from error

    click.echo(f"Wrote {artifact}", err=True)


@cli.command()
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--selector", help="Selector of the elements to wrap")
@click.option("--wrapper", "wrapper", help="Selector describing the wrapper element")
def wrap(filepath: Path, selector: str | None = None, wrapper: str | None = None):
    """
    Wrap matching elements of an HTML file and print the result.

    Examples:
        toc-pipeline wrap build/home.html --selector "svg[id^='mermaid-']"
    """
    try:
        config = build_config(filepath.parent, wrap_selector=selector, wrapper_selector=wrapper)
    except ConfigError as error:
        raise click.BadParameter(str(error)) from error

    try:
        enforce_file_size(
            collect_file_stat(filepath), get_max_file_size(default=config.max_file_size), filepath
        )
        tree = from_html(read_text(filepath))
    except (IOError, ValueError) as error:
        raise click.ClickException(str(error)) from error

    try:
        count = wrap_selector(tree, config.wrap_selector, config.wrapper_selector)
    except ConfigError as error:
        raise click.BadParameter(str(error)) from error

    click.echo(to_html(tree), nl=False)
    click.echo(f"Wrapped {count} element(s)", err=True)


if __name__ == "__main__":
    cli()
