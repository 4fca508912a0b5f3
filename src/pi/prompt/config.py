"""Configuration for pi-prompt. Read from ~/.pi/prompt.json (or $PI_CONFIG_DIR)."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from pi.prompt.editor import EditorOptions
from pi.prompt.file_search import FileSearcher, FindFileSearcher, WalkFileSearcher

logger = logging.getLogger(__name__)

SEARCHERS = ("find", "walk")


@dataclass
class PromptConfig:
    """Editor and file-search settings."""

    paste_line_threshold: int = 1
    paste_char_threshold: int = 200
    max_candidates: int = 7
    summary_line_limit: int = 5
    escape_timeout: float = 0.05
    expand_file_references: bool = True
    echo_summary: bool = True
    search_max_depth: int = 2
    search_timeout: float = 0.5
    searcher: str = "find"

    def editor_options(self) -> EditorOptions:
        return EditorOptions(
            paste_line_threshold=self.paste_line_threshold,
            paste_char_threshold=self.paste_char_threshold,
            max_candidates=self.max_candidates,
            summary_line_limit=self.summary_line_limit,
            escape_timeout=self.escape_timeout,
            expand_file_references=self.expand_file_references,
            echo_summary=self.echo_summary,
        )

    def file_searcher(self, search_path: str | None = None) -> FileSearcher:
        """Build the configured searcher rooted at *search_path* (default: cwd)."""
        if self.searcher == "walk":
            return WalkFileSearcher(
                search_path,
                max_depth=self.search_max_depth,
                timeout=self.search_timeout,
                max_results=self.max_candidates,
            )
        return FindFileSearcher(
            search_path,
            max_depth=self.search_max_depth,
            timeout=self.search_timeout,
            max_results=self.max_candidates,
        )


def config_from_dict(data: dict[str, Any]) -> PromptConfig:
    """Build a config from parsed JSON, ignoring unknown or mistyped keys."""
    defaults = PromptConfig()
    values: dict[str, Any] = {}
    for f in fields(PromptConfig):
        if f.name not in data:
            continue
        value = data[f.name]
        default = getattr(defaults, f.name)
        if isinstance(default, bool):
            ok = isinstance(value, bool)
        elif isinstance(default, float):
            ok = isinstance(value, (int, float)) and not isinstance(value, bool)
        elif isinstance(default, int):
            ok = isinstance(value, int) and not isinstance(value, bool)
        else:
            ok = isinstance(value, str)
        if not ok:
            logger.warning("Ignoring config key %r: unexpected value %r", f.name, value)
            continue
        values[f.name] = value

    config = PromptConfig(**values)
    if config.searcher not in SEARCHERS:
        logger.warning("Unknown searcher %r, using 'find'", config.searcher)
        config.searcher = "find"
    return config


def _get_config_dir() -> Path:
    return Path(os.environ.get("PI_CONFIG_DIR", Path.home() / ".pi"))


def get_config_path() -> Path:
    return _get_config_dir() / "prompt.json"


def load_config(path: Path | None = None) -> PromptConfig:
    config_path = path if path is not None else get_config_path()
    if not config_path.exists():
        return PromptConfig()
    try:
        data = json.loads(config_path.read_text())
    except (OSError, ValueError) as e:
        logger.warning("Error reading config %s: %s", config_path, e)
        return PromptConfig()
    if not isinstance(data, dict):
        logger.warning("Error reading config %s: expected a JSON object", config_path)
        return PromptConfig()
    return config_from_dict(data)
