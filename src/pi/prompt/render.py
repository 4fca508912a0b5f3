"""In-place frame rendering for the multi-line editor.

The frame is a one-time header followed by a dynamic body that is redrawn
after every keystroke. The renderer remembers exactly how many terminal rows
the previous frame occupied and where it left the cursor, so each redraw
erases precisely the old body and nothing above it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from pi.prompt.terminal import Terminal
from pi.prompt.theme import PromptTheme, default_theme
from pi.prompt.utils import visible_width

RULE_CHAR = "─"
SELECTED_MARKER = "→"
FOOTER_HINT = (
    "Ctrl+D: finish │ Enter: new line │ ESC: cancel │ "
    "@: insert file │ Tab: autocomplete"
)

_FILE_REFERENCE_RE = re.compile(r"@\S+")


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class EditorView:
    """Read-only snapshot of everything a frame shows."""

    message: str
    placeholder: str | None = None
    lines: list[str] = field(default_factory=lambda: [""])
    cursor_row: int = 0
    cursor_column: int = 0
    candidates: list[str] = field(default_factory=list)
    selected_index: int = 0
    paste_summary: str | None = None


@dataclass
class Frame:
    """Rendered lines of one frame and where the cursor belongs in it."""

    header: list[str]
    body: list[str]
    cursor_body_line: int
    cursor_offset: int


@dataclass
class RenderState:
    """Row bookkeeping carried from one frame to the next.

    ``previous_total_rows`` is the exact number of terminal rows the last
    frame occupied (header included) and ``cursor_row_offset_from_top`` is
    the row the cursor was left on, counted from the first header row.
    """

    previous_total_rows: int = 0
    previous_dynamic_rows: int = 0
    cursor_row_offset_from_top: int = 0
    is_first_frame: bool = True
    header_rows: int = 0


# ---------------------------------------------------------------------------
# Frame construction
# ---------------------------------------------------------------------------


def highlight_file_references(line: str, style) -> str:
    """Apply *style* to every ``@reference`` run in *line*."""
    return _FILE_REFERENCE_RE.sub(lambda m: style(m.group(0)), line)


def physical_rows(text: str, width: int) -> int:
    """Number of terminal rows *text* occupies once the terminal wraps it."""
    if width <= 0:
        return 1
    text_width = visible_width(text)
    return max(1, -(-text_width // width))


def build_header(view: EditorView, theme: PromptTheme) -> list[str]:
    header = [view.message]
    if view.placeholder is not None:
        header.append("  " + theme.placeholder(view.placeholder))
    header.append("")
    return header


def build_frame(view: EditorView, width: int, theme: PromptTheme) -> Frame:
    """Lay out the header and dynamic body for *view*.

    Body: rule, one row per document line (prefixed by a space), rule,
    autocomplete candidates, the paste summary if any, and the key hint.
    """
    rule = theme.border(RULE_CHAR * max(1, width))

    body = [rule]
    for line in view.lines:
        body.append(" " + highlight_file_references(line, theme.reference))
    body.append(rule)

    for index, candidate in enumerate(view.candidates):
        if index == view.selected_index:
            body.append(f"  {theme.marker(SELECTED_MARKER)} {theme.selected(candidate)}")
        else:
            body.append(f"    {theme.candidate(candidate)}")

    if view.paste_summary is not None:
        body.append(theme.summary(f"  {view.paste_summary}"))

    body.append(theme.hint(FOOTER_HINT))

    active = view.lines[view.cursor_row] if view.cursor_row < len(view.lines) else ""
    column = max(0, min(view.cursor_column, len(active)))
    return Frame(
        header=build_header(view, theme),
        body=body,
        cursor_body_line=1 + view.cursor_row,
        cursor_offset=1 + visible_width(active[:column]),
    )


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------


class Renderer:
    """Draws frames in place below the current terminal position.

    The first frame prints the header and body; later frames move back to
    the top of the body, clear to the end of the screen and draw the new
    body. Call :meth:`clear` with ``include_header=True`` to erase the whole
    frame at the end of a session.
    """

    def __init__(self, terminal: Terminal, theme: PromptTheme | None = None) -> None:
        self._terminal = terminal
        self._theme = theme if theme is not None else default_theme()
        self.state = RenderState()
        self._rendering = False

    def reset(self) -> None:
        self.state = RenderState()

    def render(self, view: EditorView) -> None:
        """Draw *view* in place of the previous frame."""
        if self._rendering:
            return
        self._rendering = True
        try:
            width = max(1, self._terminal.columns)
            frame = build_frame(view, width, self._theme)

            self._terminal.hide_cursor()
            try:
                if self.state.is_first_frame:
                    self.state.is_first_frame = False
                    self._terminal.write("".join(f"{line}\n" for line in frame.header))
                    self.state.header_rows = sum(physical_rows(line, width) for line in frame.header)
                else:
                    self._move_to_top(include_header=False)
                    self._terminal.clear_to_screen_end()

                self._draw_body(frame, width)
            finally:
                self._terminal.show_cursor()
        finally:
            self._rendering = False

    def clear(self, include_header: bool = False) -> None:
        """Erase the previous frame's body (and header) and park the cursor there."""
        if self.state.is_first_frame or self.state.previous_total_rows == 0:
            return
        self._move_to_top(include_header=include_header)
        self._terminal.clear_to_screen_end()
        if include_header:
            self.reset()
        else:
            self.state.previous_total_rows = self.state.header_rows
            self.state.previous_dynamic_rows = 0
            self.state.cursor_row_offset_from_top = self.state.header_rows

    def _move_to_top(self, include_header: bool) -> None:
        offset = self.state.cursor_row_offset_from_top
        if not include_header:
            offset -= self.state.header_rows
        self._terminal.move_to_line_start()
        self._terminal.move_up(offset)

    def _draw_body(self, frame: Frame, width: int) -> None:
        self._terminal.write("\n".join(frame.body))

        row_counts = [physical_rows(line, width) for line in frame.body]
        dynamic_rows = sum(row_counts)
        header_rows = self.state.header_rows
        last_row = header_rows + dynamic_rows - 1

        line_rows = row_counts[frame.cursor_body_line]
        row_in_line = min(frame.cursor_offset // width, line_rows - 1)
        target_row = header_rows + sum(row_counts[: frame.cursor_body_line]) + row_in_line
        # After a line that exactly fills its last row the cursor has no cell of
        # its own; it stays on the last column, the terminal's pending-wrap spot.
        column = min(frame.cursor_offset - row_in_line * width + 1, width)

        self._terminal.move_up(last_row - target_row)
        self._terminal.move_to_column(column)

        self.state.previous_dynamic_rows = dynamic_rows
        self.state.previous_total_rows = header_rows + dynamic_rows
        self.state.cursor_row_offset_from_top = target_row
