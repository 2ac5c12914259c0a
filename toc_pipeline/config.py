"""Configuration loading and management."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from pathlib import Path
import tomllib

CONFIG_TABLE = "toc-pipeline"


@dataclass
class PipelineConfig:
    """Configuration for outline extraction and tree rewriting.

    Attributes:
        source_path: Build-relative path of the document the outline is read from.
        artifact_path: Build-relative path the serialized outline is written to.
        min_depth: Smallest heading level included in the outline.
        max_depth: Largest heading level included in the outline.
        list_style: Marker for outline items (``"1."``, ``"*"``, ``"-"``, or
            schema aliases ``"ordered"``/``"unordered"``).
        tight: Whether the outline is rendered as a tight list (no blank lines
            between items).
        skip: Optional regular expression; headings whose text matches it are
            left out of the outline.
        prefix: String inserted between ``#`` and the anchor identifier in
            outline links.
        preserve_unicode: Whether to keep Unicode characters in derived anchors.
        max_file_size: Maximum source size in bytes that will be processed.
        max_headings: Maximum number of headings a document may contain.
        wrap_selector: Selector of rendered nodes wrapped by the rewriter.
        wrapper_selector: Selector describing the wrapper element.

    Examples:
        PipelineConfig(min_depth=2, max_depth=3, list_style="*")
    """

    # Artifact locations
    source_path: str = "src/home.mdx"
    artifact_path: str = "build/home.toc.md"

    # Heading levels
    min_depth: int = 1
    max_depth: int = 6

    # Formatting
    list_style: str = "-"
    tight: bool = False
    skip: str | None = None
    prefix: str = ""
    preserve_unicode: bool = False

    # Limits
    max_file_size: int = 10 * 1024 * 1024
    max_headings: int = 10_000

    # Tree rewriting
    wrap_selector: str = "svg[id^='mermaid-']"
    wrapper_selector: str = "div.mermaid-container"


class ConfigError(ValueError):
    """Exception raised when configuration values are invalid.

    Examples:
        raise ConfigError("`max_depth` must be >= `min_depth`")
    """


def load_config(search_path: Path) -> PipelineConfig:
    """Load configuration from the nearest config file.

    Walks parent directories from `search_path` to the filesystem root, reading
    the ``[tool.toc-pipeline]`` table from `pyproject.toml` and the
    ``[toc-pipeline]`` or ``[tool.toc-pipeline]`` table from
    `.toc-pipeline.toml` when present. Returns default values when no
    configuration is found. TOML files that cannot be read or decoded are
    skipped.

    Args:
        search_path: Directory used as the starting point for configuration lookup.

    Returns:
        PipelineConfig: Loaded configuration with defaults applied when necessary.

    Raises:
        ConfigError: If the table is present but not a mapping or contains
            unsupported keys.

    Examples:
        load_config(Path("docs"))
    """
    current = search_path.resolve()

    while True:
        pyproject_config = _load_from_file(
            current / "pyproject.toml", table_paths=[("tool", CONFIG_TABLE)]
        )
        if pyproject_config is not None:
            return normalize_config(pyproject_config)

        dotfile_config = _load_from_file(
            current / f".{CONFIG_TABLE}.toml",
            table_paths=[(CONFIG_TABLE,), ("tool", CONFIG_TABLE)],
        )
        if dotfile_config is not None:
            return normalize_config(dotfile_config)

        parent = current.parent
        if parent == current:
            break
        current = parent

    return PipelineConfig()


_MISSING = object()


def _load_from_file(
    config_file: Path, table_paths: list[tuple[str, ...]]
) -> PipelineConfig | None:
    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as stream:
            data = tomllib.load(stream)
    except (OSError, tomllib.TOMLDecodeError):
        return None

    for table_path in table_paths:
        raw_config = _extract_table(data, table_path)
        if raw_config is _MISSING:
            continue
        return _build_config_from_raw(raw_config, config_file, table_path)

    return None


def _extract_table(data: object, table_path: tuple[str, ...]) -> object:
    current = data
    for key in table_path:
        if not isinstance(current, dict) or key not in current:
            return _MISSING
        current = current[key]
    return current


def _build_config_from_raw(
    raw_config: object, config_file: Path, table_path: tuple[str, ...]
) -> PipelineConfig:
    table_display = ".".join(table_path)

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}")

    if not raw_config:
        return PipelineConfig()

    # TOML keys are conventionally kebab-case; dataclass fields are not.
    fields = {key.replace("-", "_"): value for key, value in raw_config.items()}
    try:
        return PipelineConfig(**fields)
    except TypeError as error:
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}") from error


def normalize_config(config: PipelineConfig) -> PipelineConfig:
    list_style = config.list_style
    if list_style == "ordered":
        list_style = "1."
    elif list_style == "unordered":
        list_style = "-"

    if list_style == config.list_style:
        return config
    return replace(config, list_style=list_style)


def validate_config(config: PipelineConfig) -> None:
    """Validate a `PipelineConfig` instance.

    Args:
        config: Configuration to validate.

    Returns:
        None.

    Raises:
        ConfigError: If depths are out of range or inconsistent, the list style
            is unsupported, the skip pattern does not compile, paths or
            selectors are empty, or numeric limits are non-positive.

    Examples:
        validate_config(PipelineConfig(min_depth=2, max_depth=3))
    """
    config = normalize_config(config)

    _ensure_integers(
        {
            "min_depth": config.min_depth,
            "max_depth": config.max_depth,
            "max_file_size": config.max_file_size,
            "max_headings": config.max_headings,
        }
    )

    if config.min_depth < 1:
        raise ConfigError("`min_depth` must be >= 1")
    if config.max_depth > 6:
        raise ConfigError("`max_depth` must be <= 6")
    if config.max_depth < config.min_depth:
        raise ConfigError("`max_depth` must be >= `min_depth`")

    if config.list_style not in ("1.", "*", "-"):
        raise ConfigError("`list_style` must be one of: 1., *, -, ordered, unordered")
    for flag in ("tight", "preserve_unicode"):
        if not isinstance(getattr(config, flag), bool):
            raise ConfigError(f"`{flag}` must be a boolean")

    if config.skip is not None:
        if not isinstance(config.skip, str):
            raise ConfigError("`skip` must be a regular expression string")
        try:
            re.compile(config.skip)
        except re.error as error:
            raise ConfigError(f"`skip` is not a valid regular expression: {error}") from error
    if not isinstance(config.prefix, str):
        raise ConfigError("`prefix` must be a string")

    for name in ("source_path", "artifact_path", "wrap_selector", "wrapper_selector"):
        value = getattr(config, name)
        if not isinstance(value, str) or not value.strip():
            raise ConfigError(f"`{name}` must not be empty")

    _ensure_positive(
        {
            "max_file_size": config.max_file_size,
            "max_headings": config.max_headings,
        }
    )


def apply_overrides(config: PipelineConfig, **overrides: object) -> PipelineConfig:
    """Apply override values to a `PipelineConfig`.

    Args:
        config: Base configuration to update.
        overrides: Override values keyed by configuration field name; values set to
            None are ignored.

    Returns:
        PipelineConfig: New configuration with the provided overrides applied. The
        original configuration is returned when no changes are supplied.

    Raises:
        TypeError: If an override name is not defined on `PipelineConfig`.

    Examples:
        updated = apply_overrides(config, max_depth=3, list_style="*")
    """
    changes = {key: value for key, value in overrides.items() if value is not None}
    if not changes:
        return config
    return replace(config, **changes)


def build_config(search_path: Path, **overrides: object) -> PipelineConfig:
    """Load, override, and validate configuration.

    Args:
        search_path: Directory where configuration files are resolved.
        overrides: Override values keyed by configuration attributes; None values
            are ignored.

    Returns:
        PipelineConfig: Validated configuration.

    Raises:
        ConfigError: If configuration loading or validation fails.

    Examples:
        config = build_config(Path.cwd(), max_depth=3, list_style="*")
    """
    config = load_config(search_path)
    config = apply_overrides(config, **overrides)
    config = normalize_config(config)
    validate_config(config)
    return config


def _ensure_positive(values: dict[str, int]) -> None:
    for key, value in values.items():
        if value <= 0:
            raise ConfigError(f"`{key}` must be a positive integer")


def _ensure_integers(values: dict[str, object]) -> None:
    for key, value in values.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"`{key}` must be an integer")
