"""
Output buffer stack.

Every render frame writes into the top buffer; sections and nested
renders push their own level and pop it when done. One stack is created
per top-level render and handed to nested renders explicitly.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, List


@dataclass
class Captured:
    """Result holder filled when a ``capture()`` scope exits normally."""
    value: str = ""


class BufferStack:
    """Stack of string buffers with explicit unwinding."""

    def __init__(self):
        self._buffers: List[List[str]] = []

    @property
    def level(self) -> int:
        """Number of open buffers."""
        return len(self._buffers)

    def push(self) -> int:
        """Open a new buffer; returns the level it lives at."""
        self._buffers.append([])
        return len(self._buffers)

    def pop(self) -> str:
        """Close the top buffer and return its contents."""
        if not self._buffers:
            raise IndexError("pop from an empty buffer stack")
        return "".join(self._buffers.pop())

    def write(self, value: Any) -> None:
        """Append to the top buffer. ``None`` writes nothing."""
        if value is None:
            return
        if not self._buffers:
            raise IndexError("write to an empty buffer stack")
        self._buffers[-1].append(value if isinstance(value, str) else str(value))

    def unwind(self, level: int) -> int:
        """
        Discard every buffer above ``level``.

        Returns:
            Number of discarded buffers
        """
        discarded = 0
        while len(self._buffers) > level:
            self._buffers.pop()
            discarded += 1
        return discarded

    @contextmanager
    def capture(self) -> Iterator[Captured]:
        """
        Collect everything written inside the block.

        On an exception all levels opened inside the block are discarded
        before the exception propagates.
        """
        level = self.level
        captured = Captured()
        self.push()
        try:
            yield captured
        except BaseException:
            self.unwind(level)
            raise
        # nested scopes that were left open belong to this capture
        while self.level > level + 1:
            self.pop()
        captured.value = self.pop()


__all__ = ["BufferStack", "Captured"]
