from __future__ import annotations

from collections.abc import Callable, Iterator

import pytest

from .virtual_terminal import VirtualTerminal


@pytest.fixture
def make_terminal() -> Iterator[Callable[..., VirtualTerminal]]:
    """Factory for pipe-backed terminals; every pipe is closed at teardown."""
    created: list[VirtualTerminal] = []

    def factory(data: bytes = b"", columns: int = 100) -> VirtualTerminal:
        term = VirtualTerminal(data, columns=columns)
        created.append(term)
        return term

    yield factory
    for term in created:
        term.close()
