"""
Render-time support used by compiled templates.
"""

from .buffers import BufferStack, Captured
from .escape import Markup, batch, escape, escape_html
from .loop import Loop
from .sections import RESERVED_SECTION, SectionEntry, SectionMode, SectionStack

__all__ = [
    "BufferStack",
    "Captured",
    "Markup",
    "batch",
    "escape",
    "escape_html",
    "Loop",
    "RESERVED_SECTION",
    "SectionEntry",
    "SectionMode",
    "SectionStack",
]
