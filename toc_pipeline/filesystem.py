"""Filesystem helpers for toc-pipeline."""

from __future__ import annotations

import os
import stat
import tempfile
from pathlib import Path

from .constants import DEFAULT_MAX_FILE_SIZE

MAX_FILE_SIZE_ENV_VAR = "TOC_PIPELINE_MAX_FILE_SIZE"


def get_max_file_size(default: int = DEFAULT_MAX_FILE_SIZE) -> int:
    """Resolve the maximum allowed source size.

    Args:
        default: Fallback value in bytes when the environment variable is unset.

    Returns:
        int: Maximum allowed file size in bytes.

    Raises:
        ValueError: If the environment value is not a positive integer.

    Examples:
        os.environ["TOC_PIPELINE_MAX_FILE_SIZE"] = "204800"
        limit = get_max_file_size(default=102400)
    """
    env_value = os.environ.get(MAX_FILE_SIZE_ENV_VAR)
    if env_value is None:
        return default

    try:
        max_size = int(env_value)
    except ValueError as error:
        error_message = (
            f"Invalid value for {MAX_FILE_SIZE_ENV_VAR}: {env_value} (expected positive integer)"
        )
        raise ValueError(error_message) from error

    if max_size <= 0:
        error_message = f"{MAX_FILE_SIZE_ENV_VAR} must be a positive integer, got {max_size}."
        raise ValueError(error_message)

    return max_size


def resolve_build_path(root: Path, relative: str) -> Path:
    """Resolve a build-relative path, refusing anything outside `root`.

    Args:
        root: Build root directory.
        relative: Path relative to `root`.

    Returns:
        Path: Absolute path below `root`. The file need not exist.

    Raises:
        ValueError: If the path escapes `root`.

    Examples:
        resolve_build_path(Path("site"), "build/home.toc.md")
    """
    base = root.resolve()
    resolved = (base / relative).resolve()
    try:
        resolved.relative_to(base)
    except ValueError as error:
        error_message = f"{relative} resolves outside of the build root {base}."
        raise ValueError(error_message) from error
    return resolved


def collect_file_stat(filepath: Path) -> os.stat_result:
    """Return stat information for a regular file.

    Raises:
        IOError: If the path is inaccessible or not a regular file.
    """
    try:
        stat_result = os.stat(filepath)
    except OSError as error:
        error_message = f"Error accessing {filepath}: {error}"
        raise IOError(error_message) from error

    if not stat.S_ISREG(stat_result.st_mode):
        error_message = f"{filepath} is not a regular file."
        raise IOError(error_message)

    return stat_result


def enforce_file_size(stat_result: os.stat_result, max_size: int, filepath: Path):
    """Guard against sources that exceed the configured maximum size.

    Raises:
        IOError: If `stat_result.st_size` exceeds `max_size`.
    """
    if stat_result.st_size > max_size:
        error_message = f"{filepath} exceeds the maximum allowed size of {max_size} bytes."
        raise IOError(error_message)


def read_text(filepath: Path) -> str:
    """Read a UTF-8 file with consistent error handling.

    Raises:
        IOError: If the path is missing, inaccessible, not a file, or not UTF-8.
    """
    try:
        with open(filepath, "r", encoding="UTF-8") as handle:
            return handle.read()
    except (
        FileNotFoundError,
        PermissionError,
        IsADirectoryError,
        NotADirectoryError,
        UnicodeDecodeError,
    ) as error:
        error_message = f"Error reading {filepath}: {error}"
        raise IOError(error_message) from error


def write_text_atomic(filepath: Path, content: str) -> None:
    """Write `content` to `filepath` so readers see all of it or none of it.

    The text goes to a temporary file in the target directory, which is
    flushed, synced, and then moved over the destination. The temporary file
    is removed on every exit path. Missing parent directories are created.

    Raises:
        IOError: If the directory cannot be created or the file cannot be written.

    Examples:
        write_text_atomic(Path("build/home.toc.md"), "- [Intro](#intro)\\n")
    """
    try:
        filepath.parent.mkdir(parents=True, exist_ok=True)
    except OSError as error:
        error_message = f"Error creating {filepath.parent}: {error}"
        raise IOError(error_message) from error

    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w", encoding="UTF-8", delete=False, dir=filepath.parent, suffix=".tmp"
        ) as tmp_file:
            temp_path = Path(tmp_file.name)
            tmp_file.write(content)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())

        os.replace(temp_path, filepath)
        temp_path = None
    except OSError as error:
        error_message = f"Error writing {filepath}: {error}"
        raise IOError(error_message) from error
    finally:
        if temp_path is not None:
            try:
                temp_path.unlink(missing_ok=True)
            except OSError:
                pass
