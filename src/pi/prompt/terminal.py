"""Raw-mode terminal driver for byte-at-a-time input and in-place drawing.

Provides a ``Terminal`` protocol and a concrete ``RawTerminal`` that manages
canonical mode, echo and signal keys, bracketed paste, blocking byte reads,
escape sequence tokenization, and cursor movement via ANSI escape sequences.
"""

from __future__ import annotations

import contextlib
import logging
import os
import select
import signal
import sys
import termios
from typing import Iterator, Protocol, TextIO

from pi.prompt.keys import ARROW_LETTERS, BRACKETED_PASTE_END, ESC, utf8_sequence_length

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

_BRACKETED_PASTE_ENABLE = "\x1b[?2004h"
_BRACKETED_PASTE_DISABLE = "\x1b[?2004l"

_HIDE_CURSOR = "\x1b[?25l"
_SHOW_CURSOR = "\x1b[?25h"
_CLEAR_LINE = "\x1b[2K"
_CLEAR_TO_SCREEN_END = "\x1b[J"
_CURSOR_UP_FMT = "\x1b[{}A"
_CURSOR_DOWN_FMT = "\x1b[{}B"
_CURSOR_COLUMN_FMT = "\x1b[{}G"

_TILDE = ord("~")
_OPEN_BRACKET = ord("[")

# Signals that would otherwise kill the process with the terminal still raw.
_RESTORE_SIGNALS = tuple(
    sig for sig in (getattr(signal, "SIGTERM", None), getattr(signal, "SIGHUP", None)) if sig
)


# ---------------------------------------------------------------------------
# Terminal protocol
# ---------------------------------------------------------------------------


class Terminal(Protocol):
    """Interface for the terminal operations the editor needs."""

    def enter(self) -> None: ...

    def exit(self) -> None: ...

    def raw_mode(self) -> contextlib.AbstractContextManager[Terminal]: ...

    def read_byte(self) -> int | None: ...

    def has_pending_input(self, timeout: float = 0.0) -> bool: ...

    def read_escape_sequence(self) -> bytes: ...

    def read_bracketed_paste(self) -> str: ...

    def read_utf8_char(self, lead: int) -> str: ...

    def take_interrupt(self) -> bool: ...

    def write(self, data: str) -> None: ...

    @property
    def columns(self) -> int: ...

    @property
    def rows(self) -> int: ...

    def move_up(self, lines: int) -> None: ...

    def move_down(self, lines: int) -> None: ...

    def move_to_column(self, column: int) -> None: ...

    def move_to_line_start(self) -> None: ...

    def hide_cursor(self) -> None: ...

    def show_cursor(self) -> None: ...

    def clear_line(self) -> None: ...

    def clear_to_screen_end(self) -> None: ...


# ---------------------------------------------------------------------------
# RawTerminal implementation
# ---------------------------------------------------------------------------


class RawTerminal:
    """Terminal driver backed by a file descriptor and a text stream.

    Only one mode transition is active at a time: :meth:`enter` is a no-op
    while already entered and :meth:`exit` is a no-op while not entered.
    Use :meth:`raw_mode` (or the instance itself) as a context manager so
    the terminal is restored on every exit path.
    """

    def __init__(self, input_fd: int | None = None, output: TextIO | None = None) -> None:
        self._input_fd = input_fd
        self._output = output if output is not None else sys.stdout
        self._active: bool = False
        self._original_termios: list | None = None
        self._prev_signal_handlers: dict[int, object] = {}
        self._interrupt_pending: bool = False
        self._write_log_path: str = os.environ.get("PI_PROMPT_WRITE_LOG", "")

    # -- properties ---------------------------------------------------------

    @property
    def input_fd(self) -> int:
        """Input descriptor; defaults to stdin, resolved on first use."""
        if self._input_fd is None:
            self._input_fd = sys.stdin.fileno()
        return self._input_fd

    @property
    def active(self) -> bool:
        return self._active

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size(self._output.fileno()).columns or 80
        except (AttributeError, ValueError, OSError):
            return 80

    @property
    def rows(self) -> int:
        try:
            return os.get_terminal_size(self._output.fileno()).lines or 24
        except (AttributeError, ValueError, OSError):
            return 24

    # -- enter / exit -------------------------------------------------------

    def enter(self) -> None:
        """Disable canonical mode, echo and signal keys, and enable bracketed paste.

        With ``ISIG`` cleared Ctrl+C arrives as byte 3. A SIGINT from elsewhere
        is recorded and reported by :meth:`take_interrupt`.
        """
        if self._active:
            return

        if os.isatty(self.input_fd):
            self._original_termios = termios.tcgetattr(self.input_fd)
            attrs = termios.tcgetattr(self.input_fd)
            attrs[3] &= ~(termios.ICANON | termios.ECHO | termios.ISIG)  # c_lflag
            termios.tcsetattr(self.input_fd, termios.TCSAFLUSH, attrs)

        self._interrupt_pending = False
        self._install_signal_handlers()
        self._active = True
        self._raw_write(_BRACKETED_PASTE_ENABLE)

    def exit(self) -> None:
        """Restore the captured terminal attributes and disable bracketed paste."""
        if not self._active:
            return
        self._active = False

        try:
            self._raw_write(_BRACKETED_PASTE_DISABLE)
        finally:
            if self._original_termios is not None:
                termios.tcsetattr(self.input_fd, termios.TCSAFLUSH, self._original_termios)
                self._original_termios = None
            self._restore_signal_handlers()

    @contextlib.contextmanager
    def raw_mode(self) -> Iterator[RawTerminal]:
        self.enter()
        try:
            yield self
        finally:
            self.exit()

    def __enter__(self) -> RawTerminal:
        self.enter()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.exit()

    # -- input --------------------------------------------------------------

    def read_byte(self) -> int | None:
        """Block until one byte arrives; ``None`` once the input is closed."""
        try:
            data = os.read(self.input_fd, 1)
        except OSError:
            logger.debug("Reading terminal input failed", exc_info=True)
            return None
        if not data:
            return None
        return data[0]

    def has_pending_input(self, timeout: float = 0.0) -> bool:
        """Return ``True`` if a read would not block within *timeout* seconds."""
        try:
            readable, _, _ = select.select([self.input_fd], [], [], timeout)
        except (OSError, ValueError):
            return False
        return bool(readable)

    def read_escape_sequence(self) -> bytes:
        """Read the bytes of an escape sequence whose ESC was already consumed.

        A first byte other than ``[`` is a sequence on its own. ``[`` followed
        by an arrow letter ends after the letter; any sequence ends at ``~``;
        otherwise reading stops once no more input is immediately available.
        Returns ``b""`` if the input closed first.
        """
        seq = bytearray()
        while True:
            byte = self.read_byte()
            if byte is None:
                break
            seq.append(byte)

            if len(seq) == 1 and byte != _OPEN_BRACKET:
                break
            if len(seq) == 2 and byte in ARROW_LETTERS:
                break
            if byte == _TILDE:
                break
            if not self.has_pending_input():
                break
        return bytes(seq)

    def read_bracketed_paste(self) -> str:
        """Read a paste body up to the closing ``ESC[201~`` marker.

        Escape sequences inside the body that are not the end marker are
        kept as literal content.
        """
        data = bytearray()
        while True:
            byte = self.read_byte()
            if byte is None:
                break
            if byte == ESC:
                seq = self.read_escape_sequence()
                if seq == BRACKETED_PASTE_END:
                    break
                data.append(ESC)
                data.extend(seq)
            else:
                data.append(byte)
        return data.decode("utf-8", errors="replace")

    def read_utf8_char(self, lead: int) -> str:
        """Complete the UTF-8 character whose lead byte *lead* was already read."""
        raw = bytearray([lead])
        for _ in range(utf8_sequence_length(lead) - 1):
            byte = self.read_byte()
            if byte is None:
                break
            raw.append(byte)
        return raw.decode("utf-8", errors="replace")

    def take_interrupt(self) -> bool:
        """Return ``True`` if a SIGINT arrived since the last call."""
        pending = self._interrupt_pending
        self._interrupt_pending = False
        return pending

    # -- output -------------------------------------------------------------

    def write(self, data: str) -> None:
        """Write *data* and flush, mirroring it to the write log if configured."""
        self._raw_write(data)

        if self._write_log_path:
            try:
                with open(self._write_log_path, "a") as f:
                    f.write(data)
            except OSError:
                pass

    # -- cursor / screen manipulation --------------------------------------

    def move_up(self, lines: int) -> None:
        if lines > 0:
            self.write(_CURSOR_UP_FMT.format(lines))

    def move_down(self, lines: int) -> None:
        if lines > 0:
            self.write(_CURSOR_DOWN_FMT.format(lines))

    def move_to_column(self, column: int) -> None:
        """Move to the 1-based *column* of the current row."""
        self.write(_CURSOR_COLUMN_FMT.format(max(1, column)))

    def move_to_line_start(self) -> None:
        self.write("\r")

    def hide_cursor(self) -> None:
        self.write(_HIDE_CURSOR)

    def show_cursor(self) -> None:
        self.write(_SHOW_CURSOR)

    def clear_line(self) -> None:
        self.write(_CLEAR_LINE)

    def clear_to_screen_end(self) -> None:
        self.write(_CLEAR_TO_SCREEN_END)

    # -- private: signals ---------------------------------------------------

    def _install_signal_handlers(self) -> None:
        try:
            for sig in _RESTORE_SIGNALS:
                self._prev_signal_handlers[sig] = signal.signal(sig, self._on_terminate)
            self._prev_signal_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, self._on_interrupt)
        except ValueError:
            # signal.signal only works from the main thread
            self._restore_signal_handlers()

    def _restore_signal_handlers(self) -> None:
        for sig, handler in self._prev_signal_handlers.items():
            signal.signal(sig, handler if handler is not None else signal.SIG_DFL)
        self._prev_signal_handlers.clear()

    def _on_terminate(self, signum: int, frame: object) -> None:
        raise SystemExit(128 + signum)

    def _on_interrupt(self, signum: int, frame: object) -> None:
        self._interrupt_pending = True

    # -- private: raw write ------------------------------------------------

    def _raw_write(self, data: str) -> None:
        """Write directly to the output stream and flush."""
        try:
            self._output.write(data)
            self._output.flush()
        except (OSError, ValueError):
            pass
