"""File search collaborators used by ``@`` autocomplete.

A searcher takes a filename fragment and an optional search root and returns
a short, ranked list of display paths. Searchers bound their own wall-clock
time and never raise: every failure is an empty result.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 2
DEFAULT_TIMEOUT = 0.5
DEFAULT_MAX_RESULTS = 7

# Directory names that never produce useful suggestions.
EXCLUDED_DIRS = frozenset(
    {
        "node_modules",
        ".git",
        ".build",
        "build",
        "dist",
        "target",
        "vendor",
        "__pycache__",
        "venv",
        ".venv",
        "Library",
        "DerivedData",
    }
)


class FileSearcher(Protocol):
    """Protocol for file search implementations."""

    def search(self, query: str, search_path: str | None = None) -> list[str]:
        """Return display paths of files matching *query*.

        *search_path* overrides the searcher's default root. Must return
        within the searcher's own time budget and must not raise.
        """
        ...


def display_path(path: str, cwd: str | None = None, home: str | None = None) -> str:
    """Shorten *path* for display: ``~/...`` under home, relative under cwd."""
    home_dir = home if home is not None else str(Path.home())
    if path == home_dir:
        return "~"
    if path.startswith(home_dir + "/"):
        return "~/" + path[len(home_dir) + 1 :]

    current_dir = cwd if cwd is not None else os.getcwd()
    if path.startswith(current_dir + "/"):
        return path[len(current_dir) + 1 :]
    if path.startswith("./"):
        return path[2:]
    return path


def rank_paths(paths: list[str], limit: int) -> list[str]:
    """Order *paths* shortest first (stable) and keep at most *limit*."""
    return sorted(paths, key=len)[: max(0, limit)]


def _complete_lines(output: str | bytes | None) -> list[str]:
    """Split partial *output* into lines, dropping a trailing unterminated one."""
    if not output:
        return []
    if isinstance(output, bytes):
        output = output.decode("utf-8", errors="replace")
    return [line for line in output.split("\n")[:-1] if line]


class FindFileSearcher:
    """File searcher shelling out to ``find``.

    The child process is killed once *timeout* seconds elapse; the complete
    lines it printed before that are still ranked.
    """

    def __init__(
        self,
        search_path: str | None = None,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
        timeout: float = DEFAULT_TIMEOUT,
        max_results: int = DEFAULT_MAX_RESULTS,
        find_path: str = "find",
    ) -> None:
        self._search_path = search_path
        self._max_depth = max_depth
        self._timeout = timeout
        self._max_results = max_results
        self._find_path = find_path

    def build_args(self, query: str, root: str) -> list[str]:
        args = [self._find_path, root, "-maxdepth", str(self._max_depth), "-type", "f"]
        if query:
            args.extend(["-name", f"*{query}*"])
        args.extend(["-not", "-path", "*/.*"])
        for name in sorted(EXCLUDED_DIRS):
            args.extend(["-not", "-path", f"*/{name}/*"])
        return args

    def search(self, query: str, search_path: str | None = None) -> list[str]:
        root = search_path or self._search_path or os.getcwd()
        try:
            result = subprocess.run(
                self.build_args(query, root),
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired as exc:
            logger.debug("find timed out after %ss (query=%r, root=%s)", self._timeout, query, root)
            return self._rank(_complete_lines(exc.stdout))
        except OSError:
            logger.debug("find could not be started", exc_info=True)
            return []

        files = [line for line in result.stdout.split("\n") if line]
        logger.debug("find %r in %s: %d hits", query, root, len(files))
        return self._rank(files)

    def _rank(self, files: list[str]) -> list[str]:
        return rank_paths([display_path(f) for f in files], self._max_results)


class WalkFileSearcher:
    """In-process file searcher built on :func:`os.walk`.

    Same contract as :class:`FindFileSearcher`; stops walking at the
    deadline and ranks whatever it collected so far.
    """

    def __init__(
        self,
        search_path: str | None = None,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
        timeout: float = DEFAULT_TIMEOUT,
        max_results: int = DEFAULT_MAX_RESULTS,
    ) -> None:
        self._search_path = search_path
        self._max_depth = max_depth
        self._timeout = timeout
        self._max_results = max_results

    def search(self, query: str, search_path: str | None = None) -> list[str]:
        root = search_path or self._search_path or os.getcwd()
        deadline = time.monotonic() + self._timeout
        root_depth = root.rstrip(os.sep).count(os.sep)
        found: list[str] = []

        try:
            for dirpath, dirnames, filenames in os.walk(root):
                if time.monotonic() > deadline:
                    logger.debug("walk search hit its deadline (query=%r, root=%s)", query, root)
                    break

                # find's -maxdepth counts the root as depth 0 and its files as 1
                depth = dirpath.rstrip(os.sep).count(os.sep) - root_depth + 1
                if depth >= self._max_depth:
                    dirnames[:] = []
                else:
                    dirnames[:] = [
                        d for d in dirnames if not d.startswith(".") and d not in EXCLUDED_DIRS
                    ]

                for name in filenames:
                    if name.startswith("."):
                        continue
                    if query and query not in name:
                        continue
                    found.append(os.path.join(dirpath, name))
        except OSError:
            logger.debug("walk search failed", exc_info=True)
            return []

        return rank_paths([display_path(f) for f in found], self._max_results)
