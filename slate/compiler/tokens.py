"""
Lexical types for the directive compiler.

Defines token kinds produced by the directive lexer. Which kind a piece of
source becomes is decided by the Rule Table (see rules.py); this module only
describes the shapes.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional, Tuple


class TokenType(enum.Enum):
    """Kinds of tokens in a directive template."""

    # Plain markup copied to the output
    TEXT = "TEXT"

    # Interpolation
    ECHO = "ECHO"                        # {{ expr }}
    ECHO_DEFAULT = "ECHO_DEFAULT"        # {{ expr or default }}
    RAW_ECHO = "RAW_ECHO"                # {!! expr !!}
    ESCAPED_ECHO = "ESCAPED_ECHO"        # @{{ expr }}

    # Removed from the output
    COMMENT = "COMMENT"                  # {{-- ... --}}

    # @word / @word(args)
    DIRECTIVE = "DIRECTIVE"

    # Multi-line units matched as one token
    ERROR_BLOCK = "ERROR_BLOCK"          # @error(f) ... @enderror
    PYTHON_BLOCK = "PYTHON_BLOCK"        # @python ... @endpython

    EOF = "EOF"


@dataclass(frozen=True)
class Token:
    """
    Token with positional information for precise diagnostics.

    ``name`` is the Rule Table entry that produced the token (the directive
    keyword for DIRECTIVE tokens), ``args`` the raw argument text between the
    outer parentheses (None when the directive was written bare), and
    ``parts`` any extra captured fragments (e.g. the body of an error block).
    """
    type: TokenType
    value: str
    position: int        # Offset in the source text
    line: int            # 1-based
    column: int          # 1-based
    name: str = ""
    args: Optional[str] = None
    parts: Tuple[str, ...] = field(default_factory=tuple)

    def __repr__(self) -> str:
        label = f"{self.type.name}:{self.name}" if self.name else self.type.name
        return f"Token({label}, {self.value!r}, {self.line}:{self.column})"


__all__ = ["TokenType", "Token"]
