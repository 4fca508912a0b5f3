"""Three-segment line buffer with an intra-row cursor.

The document is split around the cursor row: committed lines above it, the
active line being edited, and lines below it that are reachable by moving
down. ``lines_before + [active_line] + lines_after`` is the whole document.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pi.prompt.utils import graphemes


@dataclass
class Document:
    """Editable multi-line text with the cursor on ``active_line``.

    ``cursor_column`` is an index into ``active_line`` and always satisfies
    ``0 <= cursor_column <= len(active_line)``. Every operation is total:
    operations that cannot apply (moving above the first line, deleting at
    the very start) leave the document unchanged.
    """

    lines_before: list[str] = field(default_factory=list)
    active_line: str = ""
    lines_after: list[str] = field(default_factory=list)
    cursor_column: int = 0

    # -- views ---------------------------------------------------------------

    def lines(self) -> list[str]:
        """Return every line of the document, top to bottom."""
        return [*self.lines_before, self.active_line, *self.lines_after]

    def output_lines(self) -> list[str]:
        """Return the lines that make up the submitted text.

        A trailing empty active line (Enter pressed on the last line) is not
        part of the result, so an untouched document has no lines at all.
        """
        result = list(self.lines_before)
        if self.lines_after or self.active_line:
            result.append(self.active_line)
        result.extend(self.lines_after)
        return result

    def text(self) -> str:
        return "\n".join(self.lines())

    @property
    def cursor_row(self) -> int:
        """Index of the active line within :meth:`lines`."""
        return len(self.lines_before)

    def is_empty(self) -> bool:
        return not self.lines_before and not self.lines_after and not self.active_line

    # -- editing -------------------------------------------------------------

    def insert_character(self, char: str) -> None:
        """Insert *char* at the cursor and move the cursor past it."""
        if not char:
            return
        col = self._clamped_column()
        self.active_line = self.active_line[:col] + char + self.active_line[col:]
        self.cursor_column = col + len(char)

    def insert_text(self, text: str) -> None:
        """Insert *text* as if typed: characters in order, ``\\n`` splits."""
        for ch in text:
            if ch == "\n":
                self.split_line()
            else:
                self.insert_character(ch)

    def split_line(self) -> None:
        """Break the active line at the cursor.

        Text before the cursor is committed to ``lines_before``; the rest
        becomes the new active line with the cursor at column 0.
        """
        col = self._clamped_column()
        self.lines_before.append(self.active_line[:col])
        self.active_line = self.active_line[col:]
        self.cursor_column = 0

    def delete_backward(self) -> None:
        """Delete the grapheme before the cursor, or join with the line above.

        At column 0 the active line is appended to the previous line and the
        cursor lands on the former line boundary. At the very start of the
        document this is a no-op.
        """
        col = self._clamped_column()
        if col > 0:
            before = self.active_line[:col]
            clusters = graphemes(before)
            length = len(clusters[-1]) if clusters else 1
            self.active_line = before[:-length] + self.active_line[col:]
            self.cursor_column = col - length
        elif self.lines_before:
            previous = self.lines_before.pop()
            self.active_line = previous + self.active_line
            self.cursor_column = len(previous)

    def replace_from(self, index: int, text: str) -> None:
        """Replace ``active_line[index:]`` with *text*; cursor goes to the end."""
        index = max(0, min(index, len(self.active_line)))
        self.active_line = self.active_line[:index] + text
        self.cursor_column = len(self.active_line)

    # -- navigation ----------------------------------------------------------

    def move_line_up(self) -> None:
        if not self.lines_before:
            return
        self.lines_after.insert(0, self.active_line)
        self.active_line = self.lines_before.pop()
        self.cursor_column = self._clamped_column()

    def move_line_down(self) -> None:
        if not self.lines_after:
            return
        self.lines_before.append(self.active_line)
        self.active_line = self.lines_after.pop(0)
        self.cursor_column = self._clamped_column()

    def move_left(self) -> None:
        col = self._clamped_column()
        if col == 0:
            return
        clusters = graphemes(self.active_line[:col])
        self.cursor_column = col - len(clusters[-1])

    def move_right(self) -> None:
        col = self._clamped_column()
        if col >= len(self.active_line):
            return
        clusters = graphemes(self.active_line[col:])
        self.cursor_column = col + len(clusters[0])

    def _clamped_column(self) -> int:
        return max(0, min(self.cursor_column, len(self.active_line)))
