"""Styling hooks for the editor frame.

Colour is applied through plain ``str -> str`` callables so the render engine
never deals with escape codes for styling directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

_RESET = "\x1b[0m"


def _sgr(*codes: int) -> Callable[[str], str]:
    prefix = "".join(f"\x1b[{code}m" for code in codes)

    def style(text: str) -> str:
        return f"{prefix}{text}{_RESET}" if text else text

    return style


def _identity(text: str) -> str:
    return text


@dataclass
class PromptTheme:
    """Styling functions for each part of the frame."""

    border: Callable[[str], str] = _identity
    placeholder: Callable[[str], str] = _identity
    reference: Callable[[str], str] = _identity
    marker: Callable[[str], str] = _identity
    selected: Callable[[str], str] = _identity
    candidate: Callable[[str], str] = _identity
    summary: Callable[[str], str] = _identity
    hint: Callable[[str], str] = _identity


def default_theme() -> PromptTheme:
    """Dim chrome, cyan references and a bold cyan selection."""
    dim = _sgr(2)
    cyan = _sgr(36)
    return PromptTheme(
        border=dim,
        placeholder=dim,
        reference=cyan,
        marker=cyan,
        selected=_sgr(36, 1),
        candidate=dim,
        summary=dim,
        hint=dim,
    )


def plain_theme() -> PromptTheme:
    """Theme that applies no styling at all."""
    return PromptTheme()
