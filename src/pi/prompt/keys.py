"""Byte-level key vocabulary for the editor input loop.

Raw mode delivers single bytes; everything past ESC is tokenized by
:meth:`pi.prompt.terminal.RawTerminal.read_escape_sequence` and named here.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Control bytes
# ---------------------------------------------------------------------------

CTRL_C = 0x03
CTRL_D = 0x04
CTRL_H = 0x08
TAB = 0x09
LF = 0x0A
CR = 0x0D
ESC = 0x1B
SPACE = 0x20
BACKSPACE = 0x7F

ENTER_BYTES = frozenset({LF, CR})
BACKSPACE_BYTES = frozenset({BACKSPACE, CTRL_H})

# ---------------------------------------------------------------------------
# Escape sequences (without the leading ESC)
# ---------------------------------------------------------------------------

BRACKETED_PASTE_START = b"[200~"
BRACKETED_PASTE_END = b"[201~"

ARROW_LETTERS = frozenset(b"ABCD")

_SEQUENCE_NAMES: dict[bytes, str] = {
    b"[A": "up",
    b"[B": "down",
    b"[C": "right",
    b"[D": "left",
    BRACKETED_PASTE_START: "paste",
}


def classify_escape(seq: bytes) -> str | None:
    """Name the escape sequence *seq* (bytes after ESC), or ``None`` if unknown."""
    return _SEQUENCE_NAMES.get(bytes(seq))


def is_printable(byte: int) -> bool:
    """Return ``True`` for printable ASCII (space through tilde)."""
    return SPACE <= byte < BACKSPACE


def utf8_sequence_length(lead: int) -> int:
    """Return the total length of the UTF-8 sequence starting with *lead*.

    Returns 0 for bytes that cannot start a multi-byte sequence.
    """
    if 0xC2 <= lead <= 0xDF:
        return 2
    if 0xE0 <= lead <= 0xEF:
        return 3
    if 0xF0 <= lead <= 0xF4:
        return 4
    return 0
