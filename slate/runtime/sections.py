"""
Section stack of a render frame.

Holds completed sections in insertion order plus at most one open section.
State machine: idle -> open (start/push/unshift) -> idle (stop).
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

from ..errors import NestedSectionError, NoOpenSectionError, ReservedNameError, UnclosedSectionError
from .buffers import BufferStack

logger = logging.getLogger(__name__)

RESERVED_SECTION = "content"


class SectionMode(enum.Enum):
    """How a finished section merges with an existing one of the same name."""
    REWRITE = "rewrite"
    APPEND = "append"
    PREPEND = "prepend"


@dataclass
class SectionEntry:
    name: str
    content: str
    mode: SectionMode = SectionMode.REWRITE


class SectionStack:
    """
    Named section buffers of one frame.

    Capturing goes through the shared buffer stack: opening a section pushes
    a level, stopping pops it and merges the text into the entry.
    """

    def __init__(self, buffers: BufferStack):
        self._buffers = buffers
        self._entries: Dict[str, SectionEntry] = {}
        self._open: Optional[Tuple[str, SectionMode]] = None

    @property
    def open_section(self) -> Optional[str]:
        return self._open[0] if self._open else None

    def start(self, name: str, mode: SectionMode = SectionMode.REWRITE) -> None:
        """
        Open a section and start capturing output.

        Raises:
            ReservedNameError: For the reserved name ``content``
            NestedSectionError: If another section is open
        """
        if name == RESERVED_SECTION:
            raise ReservedNameError(name)
        if self._open is not None:
            raise NestedSectionError(name, self._open[0])

        self._entries.setdefault(name, SectionEntry(name, "", mode))
        self._buffers.push()
        self._open = (name, mode)

    def stop(self) -> str:
        """
        Close the open section and merge what it captured.

        Returns:
            The section's merged content

        Raises:
            NoOpenSectionError: If no section is open
        """
        if self._open is None:
            raise NoOpenSectionError()

        name, mode = self._open
        captured = self._buffers.pop()
        self._open = None

        entry = self._entries[name]
        if mode is SectionMode.APPEND:
            entry.content = entry.content + captured
        elif mode is SectionMode.PREPEND:
            entry.content = captured + entry.content
        else:
            entry.content = captured
        entry.mode = mode
        logger.debug(f"Section '{name}' closed ({mode.value}, {len(entry.content)} chars)")
        return entry.content

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        entry = self._entries.get(name)
        return default if entry is None else entry.content

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def seed(self, sections: Mapping[str, str]) -> None:
        """Preload completed sections (layout frames receive the child's)."""
        for name, content in sections.items():
            self._entries[name] = SectionEntry(name, content)

    def completed(self) -> Dict[str, str]:
        return {name: entry.content for name, entry in self._entries.items()}

    def ensure_closed(self) -> None:
        if self._open is not None:
            raise UnclosedSectionError(self._open[0])

    def clear(self) -> None:
        self._entries.clear()
        self._open = None


__all__ = ["RESERVED_SECTION", "SectionMode", "SectionEntry", "SectionStack"]
