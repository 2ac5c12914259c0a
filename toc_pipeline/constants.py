"""Constants used across the toc-pipeline package."""

from __future__ import annotations

import re

from .config import PipelineConfig

DEFAULT_CONFIG = PipelineConfig()

# Trailing `{#custom-id}` in heading text
CUSTOM_ID_PATTERN = re.compile(r"\s*\{#([^\s{}]+)\}\s*$")

HEADING_TAGS = frozenset(f"h{level}" for level in range(1, 7))

DEFAULT_WRAP_SELECTOR = DEFAULT_CONFIG.wrap_selector
DEFAULT_WRAPPER_SELECTOR = DEFAULT_CONFIG.wrapper_selector
AUTOLINK_CLASS = "toc-link"

DEFAULT_MAX_FILE_SIZE = DEFAULT_CONFIG.max_file_size
