"""``@`` file reference autocomplete.

Watches the active line for an unterminated ``@`` token, turns it into a
search root and filename fragment, and keeps the candidate list returned by
the file searcher. Searches are synchronous; the searcher bounds its own
running time.
"""

from __future__ import annotations

import logging
import os
import posixpath
from dataclasses import dataclass, field

from pi.prompt.document import Document
from pi.prompt.file_search import DEFAULT_MAX_RESULTS, FileSearcher

logger = logging.getLogger(__name__)

TRIGGER = "@"
ESCAPE = "\\"


def find_trigger(line: str) -> int | None:
    """Return the index of the last ``@`` not escaped by a backslash."""
    index = line.rfind(TRIGGER)
    while index != -1:
        if index == 0 or line[index - 1] != ESCAPE:
            return index
        index = line.rfind(TRIGGER, 0, index)
    return None


def live_query(line: str) -> str | None:
    """Return the text after the trigger while the ``@`` token is still open.

    ``None`` means there is no trigger, or the token was already ended by a
    space.
    """
    index = find_trigger(line)
    if index is None:
        return None
    query = line[index + 1 :]
    if " " in query:
        return None
    return query


def extract_path_and_query(text: str) -> tuple[str | None, str]:
    """Split the text after ``@`` into ``(search_root, filename_fragment)``.

    Without a ``/`` the whole text is the fragment and the root is the
    searcher's default (``None``). Otherwise a leading ``~`` is expanded,
    ``.``/``..`` segments are collapsed (relative paths stay relative to the
    working directory), and the path is split into directory and filename.
    """
    if "/" not in text:
        return None, text

    expanded = os.path.expanduser(text)
    trailing_slash = expanded.endswith("/")
    normalized = posixpath.normpath(expanded)

    if trailing_slash:
        return normalized, ""

    directory, filename = posixpath.split(normalized)
    return directory or ".", filename


@dataclass
class AutocompleteState:
    """Candidate list for the ``@`` token on the active line.

    ``candidates`` is only non-empty while an ``@`` token is open, and
    ``selected_index`` always points into it when it is.
    """

    candidates: list[str] = field(default_factory=list)
    selected_index: int = 0
    last_query: str | None = None
    search_in_flight: bool = False

    @property
    def is_active(self) -> bool:
        return bool(self.candidates)

    @property
    def selected(self) -> str | None:
        if not self.candidates:
            return None
        return self.candidates[self.selected_index]

    def clear(self) -> None:
        self.candidates = []
        self.selected_index = 0


class AutocompleteCoordinator:
    """Drives a :class:`FileSearcher` from the active line."""

    def __init__(
        self,
        searcher: FileSearcher,
        max_candidates: int = DEFAULT_MAX_RESULTS,
    ) -> None:
        self._searcher = searcher
        self._max_candidates = max_candidates

    def update(self, line: str, state: AutocompleteState) -> None:
        """Refresh *state* for the current contents of the active line."""
        query = live_query(line)
        if query is None:
            state.clear()
            state.last_query = None
            return

        if state.search_in_flight or query == state.last_query:
            return

        if not query:
            state.clear()
            state.last_query = None
            return

        state.last_query = query
        state.search_in_flight = True
        try:
            search_root, fragment = extract_path_and_query(query)
            candidates = self._search(fragment, search_root)
        finally:
            state.search_in_flight = False

        state.candidates = candidates[: self._max_candidates]
        state.selected_index = 0

    def select_next(self, state: AutocompleteState) -> None:
        if state.candidates:
            state.selected_index = (state.selected_index + 1) % len(state.candidates)

    def select_previous(self, state: AutocompleteState) -> None:
        if state.candidates:
            state.selected_index = (state.selected_index - 1) % len(state.candidates)

    def accept(self, document: Document, state: AutocompleteState) -> bool:
        """Complete the open ``@`` token with the selected candidate.

        Returns ``False`` (and changes nothing) when there is nothing to
        accept.
        """
        candidate = state.selected
        if candidate is None:
            return False
        index = find_trigger(document.active_line)
        if index is None:
            state.clear()
            return False
        document.replace_from(index, TRIGGER + candidate)
        state.clear()
        return True

    def _search(self, query: str, search_root: str | None) -> list[str]:
        try:
            return list(self._searcher.search(query, search_root))
        except Exception:
            logger.debug("File search failed for %r", query, exc_info=True)
            return []
