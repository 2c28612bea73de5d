"""
Loop context exposed to templates as ``loop``.
"""

from __future__ import annotations

from typing import Optional


class Loop:
    """
    Iteration state of one loop.

    ``index`` starts at 0 and is advanced by ``increment()`` once per
    iteration, after the body. Loops without a known length (``@while``,
    C-style ``@for``) have ``count == 0`` and report ``remaining`` and
    ``last`` as None.
    """

    def __init__(self, count: int = 0, parent: Optional[Loop] = None, *, sized: bool = True):
        if count < 0:
            raise ValueError(f"loop count must be >= 0, got {count}")
        self.count = count
        self.index = 0
        self._parent = parent
        self._sized = sized

    def increment(self) -> None:
        self.index += 1

    def parent(self) -> Optional[Loop]:
        """Enclosing loop context, or None at the outermost loop."""
        return self._parent

    @property
    def iteration(self) -> int:
        return self.index + 1

    @property
    def remaining(self) -> Optional[int]:
        if not self._sized:
            return None
        return max(self.count - self.iteration, 0)

    @property
    def first(self) -> bool:
        return self.index == 0

    @property
    def last(self) -> Optional[bool]:
        if not self._sized:
            return None
        return self.iteration == self.count

    @property
    def even(self) -> bool:
        return self.iteration % 2 == 0

    @property
    def odd(self) -> bool:
        return self.iteration % 2 == 1

    @property
    def depth(self) -> int:
        return 1 if self._parent is None else self._parent.depth + 1

    def __repr__(self) -> str:
        return f"Loop(index={self.index}, count={self.count}, depth={self.depth})"


__all__ = ["Loop"]
