"""Interactive multi-line prompt editor.

:class:`MultiLineEditor` owns one blocking editing session: it puts the
terminal into raw mode, reads input a byte at a time, dispatches each key to
the document, paste and autocomplete components, and redraws the frame after
every handled key. The session ends on Ctrl+D (submit) or ESC / double Ctrl+C
(cancel).
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Literal

from pi.prompt.autocomplete import AutocompleteCoordinator, AutocompleteState
from pi.prompt.document import Document
from pi.prompt.file_search import DEFAULT_MAX_RESULTS, FileSearcher, FindFileSearcher
from pi.prompt.keys import (
    BACKSPACE_BYTES,
    CTRL_C,
    CTRL_D,
    ENTER_BYTES,
    ESC,
    SPACE,
    TAB,
    classify_escape,
    is_printable,
    utf8_sequence_length,
)
from pi.prompt.paste import (
    DEFAULT_CHAR_THRESHOLD,
    DEFAULT_LINE_THRESHOLD,
    PasteRegistry,
    is_large_paste,
    normalize_pasted_text,
)
from pi.prompt.render import EditorView, Renderer, highlight_file_references
from pi.prompt.terminal import RawTerminal, Terminal
from pi.prompt.theme import PromptTheme, default_theme

logger = logging.getLogger(__name__)

Outcome = Literal["finish", "cancel"]

_FILE_REFERENCE_RE = re.compile(r"@(\S+)")


# ---------------------------------------------------------------------------
# Options and state
# ---------------------------------------------------------------------------


@dataclass
class EditorOptions:
    paste_line_threshold: int = DEFAULT_LINE_THRESHOLD
    paste_char_threshold: int = DEFAULT_CHAR_THRESHOLD
    max_candidates: int = DEFAULT_MAX_RESULTS
    summary_line_limit: int = 5
    escape_timeout: float = 0.05
    expand_file_references: bool = True
    echo_summary: bool = True


@dataclass
class EditorState:
    """Everything one editing session mutates."""

    message: str = ""
    placeholder: str | None = None
    document: Document = field(default_factory=Document)
    pastes: PasteRegistry = field(default_factory=PasteRegistry)
    autocomplete: AutocompleteState = field(default_factory=AutocompleteState)
    cancel_armed: bool = False
    last_paste_summary: str | None = None

    def view(self) -> EditorView:
        return EditorView(
            message=self.message,
            placeholder=self.placeholder,
            lines=self.document.lines(),
            cursor_row=self.document.cursor_row,
            cursor_column=self.document.cursor_column,
            candidates=list(self.autocomplete.candidates),
            selected_index=self.autocomplete.selected_index,
            paste_summary=self.last_paste_summary,
        )


# ---------------------------------------------------------------------------
# Submission helpers
# ---------------------------------------------------------------------------


def expand_file_references(line: str) -> str:
    """Replace each ``@path`` in *line* with the contents of that file.

    ``~`` is expanded. References that cannot be read as UTF-8 text are left
    as typed.
    """

    def _replace(match: re.Match[str]) -> str:
        path = os.path.expanduser(match.group(1))
        try:
            with open(path, encoding="utf-8") as f:
                return f.read()
        except (OSError, UnicodeDecodeError):
            return match.group(0)

    return _FILE_REFERENCE_RE.sub(_replace, line)


def _plural_lines(count: int) -> str:
    return "line" if count == 1 else "lines"


# ---------------------------------------------------------------------------
# MultiLineEditor
# ---------------------------------------------------------------------------


class MultiLineEditor:
    """Raw-mode multi-line editor with paste placeholders and ``@`` file completion.

    Usage::

        editor = MultiLineEditor()
        text = editor.edit("Describe the change:", placeholder="one paragraph")

    ``edit`` returns the submitted text, or ``""`` when the user cancelled.
    """

    def __init__(
        self,
        terminal: Terminal | None = None,
        file_searcher: FileSearcher | None = None,
        theme: PromptTheme | None = None,
        options: EditorOptions | None = None,
    ) -> None:
        self._terminal: Terminal = terminal if terminal is not None else RawTerminal()
        self._theme = theme if theme is not None else default_theme()
        self._options = options if options is not None else EditorOptions()
        searcher = file_searcher if file_searcher is not None else FindFileSearcher()
        self._autocomplete = AutocompleteCoordinator(searcher, self._options.max_candidates)
        self._renderer = Renderer(self._terminal, self._theme)

    @property
    def options(self) -> EditorOptions:
        return self._options

    # -- session -------------------------------------------------------------

    def edit(self, message: str, placeholder: str | None = None) -> str:
        """Run one blocking editing session and return the submitted text."""
        state = EditorState(message=message, placeholder=placeholder)
        self._renderer.reset()

        with self._terminal.raw_mode():
            self._renderer.render(state.view())

            outcome: Outcome | None = None
            while outcome is None:
                outcome = self._step(state)

            self._renderer.clear(include_header=True)
            if outcome == "cancel":
                logger.debug("Prompt cancelled")
                return ""

            lines = state.document.output_lines()
            if self._options.echo_summary:
                self._echo_summary(message, lines)

        return self.submitted_text(state, lines)

    def submitted_text(self, state: EditorState, lines: list[str]) -> str:
        """Resolve paste placeholders and file references in *lines*."""
        resolved = state.pastes.resolve_lines(lines)
        if self._options.expand_file_references:
            resolved = [expand_file_references(line) for line in resolved]
        return "\n".join(resolved)

    def _step(self, state: EditorState) -> Outcome | None:
        # A SIGINT during a search or redraw is handled before the next read.
        if self._terminal.take_interrupt():
            byte: int | None = CTRL_C
        else:
            try:
                byte = self._terminal.read_byte()
            except KeyboardInterrupt:
                byte = CTRL_C

        if byte is None:
            # Input closed: submit what was typed.
            return "finish"

        outcome = self._handle_byte(state, byte)
        if outcome is None:
            self._renderer.render(state.view())
        return outcome

    def _echo_summary(self, message: str, lines: list[str]) -> None:
        out: list[str] = []
        if lines:
            out.append(message)
            limit = self._options.summary_line_limit
            for line in lines[:limit]:
                out.append("  " + highlight_file_references(line, self._theme.reference))
            if len(lines) > limit:
                remaining = len(lines) - limit
                out.append("  " + self._theme.hint(f"... +{remaining} more {_plural_lines(remaining)}"))
        out.append("")
        self._terminal.write("".join(f"{line}\n" for line in out))

    # -- dispatch ------------------------------------------------------------

    def _handle_byte(self, state: EditorState, byte: int) -> Outcome | None:  # noqa: C901
        doc = state.document

        if byte == ESC:
            return self._handle_escape(state)

        if byte == CTRL_C:
            if state.cancel_armed or doc.is_empty():
                return "cancel"
            state.cancel_armed = True
            return None

        if byte == CTRL_D:
            return "finish"

        if byte == TAB:
            self._autocomplete.accept(doc, state.autocomplete)
        elif byte in ENTER_BYTES:
            if state.autocomplete.is_active:
                self._autocomplete.accept(doc, state.autocomplete)
            else:
                state.last_paste_summary = None
                doc.split_line()
                self._refresh_candidates(state)
        elif byte == SPACE:
            state.last_paste_summary = None
            line = doc.active_line
            if line.startswith("@") and " " not in line and len(line) > 1:
                # A lone "@path" line is finished by moving to a fresh line.
                doc.split_line()
            else:
                doc.insert_character(" ")
            self._refresh_candidates(state)
        elif byte in BACKSPACE_BYTES:
            state.last_paste_summary = None
            doc.delete_backward()
            self._refresh_candidates(state)
        elif is_printable(byte):
            self._insert_typed(state, chr(byte))
        elif utf8_sequence_length(byte):
            char = self._terminal.read_utf8_char(byte)
            if char.isprintable() and "\ufffd" not in char:
                self._insert_typed(state, char)
        else:
            logger.debug("Ignoring control byte 0x%02x", byte)
        return None

    def _handle_escape(self, state: EditorState) -> Outcome | None:
        if not self._terminal.has_pending_input(self._options.escape_timeout):
            return "cancel"
        seq = self._terminal.read_escape_sequence()
        if not seq:
            return "cancel"

        doc = state.document
        completion = state.autocomplete
        name = classify_escape(seq)
        if name == "paste":
            self._handle_paste(state)
        elif name == "up":
            if completion.is_active:
                self._autocomplete.select_previous(completion)
            else:
                doc.move_line_up()
                self._refresh_candidates(state)
        elif name == "down":
            if completion.is_active:
                self._autocomplete.select_next(completion)
            else:
                doc.move_line_down()
                self._refresh_candidates(state)
        elif name == "right":
            doc.move_right()
        elif name == "left":
            doc.move_left()
        else:
            logger.debug("Discarding escape sequence %r", seq)
        return None

    def _handle_paste(self, state: EditorState) -> None:
        text = normalize_pasted_text(self._terminal.read_bracketed_paste())
        if not text:
            return
        state.cancel_armed = False

        opts = self._options
        if is_large_paste(text, opts.paste_line_threshold, opts.paste_char_threshold):
            token = state.pastes.register(text)
            state.document.insert_text(token)
            state.last_paste_summary = token
        else:
            state.document.insert_text(text)
            state.last_paste_summary = None
        self._refresh_candidates(state)

    def _insert_typed(self, state: EditorState, char: str) -> None:
        state.last_paste_summary = None
        state.cancel_armed = False
        state.document.insert_character(char)
        self._refresh_candidates(state)

    def _refresh_candidates(self, state: EditorState) -> None:
        self._autocomplete.update(state.document.active_line, state.autocomplete)
