"""
File helpers for tests.
"""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Dict


def write(p: Path, text: str) -> Path:
    """
    Write text to a file, creating parent directories as needed.

    Args:
        p: File path
        text: Content

    Returns:
        The written path
    """
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(text, encoding="utf-8")
    return p


def write_templates(root: Path, files: Dict[str, str], extension: str = "html") -> Path:
    """
    Lay out a template directory.

    Keys are template names (``"pages/home"``), values the source; sources
    are dedented so tests can use indented triple-quoted strings.

    Returns:
        ``root``
    """
    for name, source in files.items():
        filename = f"{name}.{extension}" if extension else name
        write(root / filename, textwrap.dedent(source))
    return root


__all__ = ["write", "write_templates"]
