"""Virtual terminal for testing -- a pipe-fed ``RawTerminal`` plus a screen model.

``VirtualTerminal`` is a real :class:`pi.prompt.terminal.RawTerminal` whose
input is an ``os.pipe()`` pre-loaded with scripted bytes and whose output is
captured in memory. ``VirtualScreen`` replays the captured output (text,
``\\r``/``\\n``, cursor movement and erase sequences, autowrap) into a
character grid so tests can assert on what a user would actually see.
"""

from __future__ import annotations

import io
import os
import re

from pi.prompt.terminal import RawTerminal

_CSI_RE = re.compile(r"\x1b\[([0-9;?]*)([A-Za-z])")


class VirtualScreen:
    """Character grid with an unbounded number of rows.

    Row 0 is the row the cursor was on when output started. Supported:
    printable text with deferred autowrap, ``\\r``, ``\\n`` (as CR+LF, the
    way a tty with output post-processing treats it), ``CSI n A/B/G``,
    ``CSI 2 K``, ``CSI J``. SGR and private-mode sequences are ignored.
    """

    def __init__(self, columns: int = 80) -> None:
        self.columns = columns
        self.grid: list[list[str]] = [[]]
        self.row = 0
        self.col = 0
        self._pending_wrap = False

    # -- feeding -------------------------------------------------------------

    def feed(self, data: str) -> None:
        i = 0
        while i < len(data):
            ch = data[i]
            if ch == "\x1b":
                match = _CSI_RE.match(data, i)
                if match is None:
                    i += 1
                    continue
                self._apply_csi(match.group(1), match.group(2))
                i = match.end()
                continue
            if ch == "\n":
                self._pending_wrap = False
                self.row += 1
                self.col = 0
            elif ch == "\r":
                self._pending_wrap = False
                self.col = 0
            elif ch >= " ":
                self._put(ch)
            i += 1

    def _put(self, ch: str) -> None:
        if self._pending_wrap:
            self._pending_wrap = False
            self.row += 1
            self.col = 0
        line = self._line(self.row)
        while len(line) <= self.col:
            line.append(" ")
        line[self.col] = ch
        if self.col == self.columns - 1:
            self._pending_wrap = True
        else:
            self.col += 1

    def _apply_csi(self, params: str, final: str) -> None:
        if params.startswith("?") or final == "m":
            return
        n = int(params) if params.isdigit() else None
        self._pending_wrap = False
        if final == "A":
            self.row = max(0, self.row - (n or 1))
        elif final == "B":
            self.row += n or 1
        elif final == "G":
            self.col = min(max(1, n or 1), self.columns) - 1
        elif final == "K" and n == 2:
            self._line(self.row).clear()
        elif final == "J" and n is None:
            del self._line(self.row)[self.col :]
            del self.grid[self.row + 1 :]

    def _line(self, row: int) -> list[str]:
        while len(self.grid) <= row:
            self.grid.append([])
        return self.grid[row]

    # -- inspection ----------------------------------------------------------

    def lines(self) -> list[str]:
        """Visible rows with trailing spaces and trailing empty rows removed."""
        rows = ["".join(cells).rstrip() for cells in self.grid]
        while rows and not rows[-1]:
            rows.pop()
        return rows

    @property
    def cursor(self) -> tuple[int, int]:
        return self.row, self.col


class VirtualTerminal(RawTerminal):
    """``RawTerminal`` reading scripted bytes and writing to memory.

    Parameters
    ----------
    data:
        Bytes available on the input; the input reports EOF after them.
    columns:
        Reported terminal width.
    """

    def __init__(self, data: bytes = b"", columns: int = 100) -> None:
        read_fd, write_fd = os.pipe()
        try:
            os.write(write_fd, data)
        finally:
            os.close(write_fd)
        self._read_fd = read_fd
        self.output = io.StringIO()
        self._columns = columns
        super().__init__(input_fd=read_fd, output=self.output)

    @property
    def columns(self) -> int:
        return self._columns

    @columns.setter
    def columns(self, value: int) -> None:
        self._columns = value

    def get_output(self) -> str:
        return self.output.getvalue()

    def clear_output(self) -> None:
        self.output.seek(0)
        self.output.truncate()

    def screen(self) -> VirtualScreen:
        """Replay everything written so far onto a fresh screen."""
        screen = VirtualScreen(self._columns)
        screen.feed(self.get_output())
        return screen

    def close(self) -> None:
        if self._read_fd is not None:
            os.close(self._read_fd)
            self._read_fd = None
