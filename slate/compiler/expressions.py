"""
Helpers for the expression fragments embedded in directives.

Directive arguments are Python expressions. Authors coming from Blade may
write variables with a ``$`` sigil and use ``->`` for member access; both
are normalised here. All scanning is aware of string literals and bracket
nesting, so commas, semicolons or keywords inside strings and nested calls
are never mistaken for separators.
"""

from __future__ import annotations

import ast
import re
from typing import Iterator, List, Optional, Tuple

_OPEN = "([{"
_CLOSE = ")]}"
_QUOTES = "'\""

_SIGIL_RE = re.compile(r"\$(?=[A-Za-z_])")
_INCREMENT_RE = re.compile(r"^\s*(?:\+\+\s*([A-Za-z_]\w*)|([A-Za-z_]\w*)\s*\+\+)\s*$")
_DECREMENT_RE = re.compile(r"^\s*(?:--\s*([A-Za-z_]\w*)|([A-Za-z_]\w*)\s*--)\s*$")
_IDENT_RE = re.compile(r"^[A-Za-z_]\w*$")


def _skip_string(text: str, pos: int) -> int:
    """
    Return the index just past the string literal starting at ``pos``.

    Handles single, double and triple quotes with backslash escapes.
    Returns ``len(text)`` for an unterminated literal.
    """
    quote = text[pos]
    if text.startswith(quote * 3, pos):
        end = text.find(quote * 3, pos + 3)
        return len(text) if end < 0 else end + 3
    i = pos + 1
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote or ch == "\n":
            return i + 1
        i += 1
    return len(text)


def iter_top_level(text: str) -> Iterator[Tuple[int, str]]:
    """
    Yield ``(index, char)`` for characters at bracket depth zero outside
    string literals. Brackets themselves are not yielded.
    """
    depth = 0
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch in _QUOTES:
            i = _skip_string(text, i)
            continue
        if ch in _OPEN:
            depth += 1
        elif ch in _CLOSE:
            depth = max(depth - 1, 0)
        elif depth == 0:
            yield i, ch
        i += 1


def find_closing_paren(text: str, pos: int) -> int:
    """
    Find the parenthesis matching the one at ``text[pos]``.

    Args:
        text: Source text
        pos: Index of an opening ``(``

    Returns:
        Index of the matching ``)``, or -1 when the list is unterminated
    """
    depth = 0
    i = pos
    n = len(text)
    while i < n:
        ch = text[i]
        if ch in _QUOTES:
            i = _skip_string(text, i)
            continue
        if ch in _OPEN:
            depth += 1
        elif ch in _CLOSE:
            depth -= 1
            if depth == 0:
                return i if ch == ")" else -1
        i += 1
    return -1


def find_delimiter(text: str, pos: int, delimiter: str) -> int:
    """
    Index of the first ``delimiter`` at or after ``pos`` that sits at bracket
    depth zero outside string literals, or -1.

    ``{{ '}}' }}`` and ``{{ {'a': {'b': 1}} }}`` both close at the last ``}}``.
    """
    depth = 0
    i = pos
    n = len(text)
    while i < n:
        ch = text[i]
        if ch in _QUOTES:
            i = _skip_string(text, i)
            continue
        if depth == 0 and text.startswith(delimiter, i):
            return i
        if ch in _OPEN:
            depth += 1
        elif ch in _CLOSE:
            depth = max(depth - 1, 0)
        i += 1
    return -1


def split_top_level(text: str, separator: str) -> List[str]:
    """Split on a one-character separator that appears at depth zero."""
    parts: List[str] = []
    start = 0
    for i, ch in iter_top_level(text):
        if ch == separator:
            parts.append(text[start:i])
            start = i + 1
    parts.append(text[start:])
    return parts


def split_args(text: Optional[str]) -> List[str]:
    """
    Split a directive argument list into stripped argument expressions.

    An empty or missing list yields no arguments.
    """
    if text is None or not text.strip():
        return []
    return [part.strip() for part in split_top_level(text, ",")]


def _find_keyword(text: str, pattern: re.Pattern) -> Optional[re.Match]:
    """First match of ``pattern`` that starts at depth zero outside strings."""
    top_level = {i for i, _ in iter_top_level(text)}
    for match in pattern.finditer(text):
        if all(i in top_level for i in range(match.start(), match.end())):
            return match
    return None


def normalize(expr: str) -> str:
    """
    Turn a Blade-flavoured expression into a Python expression.

    ``$name`` becomes ``name`` and ``a->b`` becomes ``a.b``; string literal
    contents are left untouched.
    """
    out: List[str] = []
    i = 0
    n = len(expr)
    while i < n:
        ch = expr[i]
        if ch in _QUOTES:
            end = _skip_string(expr, i)
            out.append(expr[i:end])
            i = end
            continue
        if ch == "$" and _SIGIL_RE.match(expr, i):
            i += 1
            continue
        if expr.startswith("->", i):
            out.append(".")
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out).strip()


_OR_RE = re.compile(r"\s+or\s+")
_AS_RE = re.compile(r"\s+as\s+")
_ARROW_RE = re.compile(r"\s*=>\s*")


def split_default(expr: str) -> Optional[Tuple[str, str]]:
    """
    Split ``value or default`` at the first top-level ``or``.

    Returns:
        ``(value, default)`` or None when there is no top-level ``or``
    """
    match = _find_keyword(expr, _OR_RE)
    if match is None:
        return None
    value, default = expr[:match.start()].strip(), expr[match.end():].strip()
    if not value or not default:
        return None
    return value, default


def parse_foreach(header: str) -> Optional[Tuple[str, str, Optional[str]]]:
    """
    Parse ``items as item`` / ``items as key => value``.

    Returns:
        ``(iterable, target, key)`` with normalised expressions, ``key`` being
        None for the single-target form; None if there is no ``as``
    """
    match = _find_keyword(header, _AS_RE)
    if match is None:
        return None
    iterable = normalize(header[:match.start()])
    rest = header[match.end():]
    arrow = _find_keyword(rest, _ARROW_RE)
    if arrow is None:
        return iterable, normalize(rest), None
    return iterable, normalize(rest[arrow.end():]), normalize(rest[:arrow.start()])


def _c_statement(stmt: str) -> str:
    """Translate the C-like increment forms used in ``@for`` headers."""
    inc = _INCREMENT_RE.match(stmt)
    if inc:
        return f"{inc.group(1) or inc.group(2)} += 1"
    dec = _DECREMENT_RE.match(stmt)
    if dec:
        return f"{dec.group(1) or dec.group(2)} -= 1"
    return stmt.strip()


def parse_c_for(header: str) -> Optional[Tuple[List[str], str, List[str]]]:
    """
    Parse ``init; condition; step`` into Python statements.

    Comma-separated init and step clauses become separate statements.

    Returns:
        ``(init_statements, condition, step_statements)`` or None when the
        header is not a three-clause loop
    """
    clauses = split_top_level(normalize(header), ";")
    if len(clauses) != 3:
        return None
    init, cond, step = clauses
    init_stmts = [_c_statement(s) for s in split_top_level(init, ",") if s.strip()]
    step_stmts = [_c_statement(s) for s in split_top_level(step, ",") if s.strip()]
    return init_stmts, cond.strip() or "True", step_stmts


def parse_python_for(header: str) -> Optional[Tuple[str, str]]:
    """Parse ``target in iterable``; returns None if there is no top-level ``in``."""
    normalized = normalize(header)
    match = _find_keyword(normalized, re.compile(r"\s+in\s+"))
    if match is None:
        return None
    return normalized[:match.start()].strip(), normalized[match.end():].strip()


def literal_string(expr: str) -> Optional[str]:
    """Value of ``expr`` if it is a plain string literal, else None."""
    try:
        value = ast.literal_eval(expr.strip())
    except (ValueError, SyntaxError):
        return None
    return value if isinstance(value, str) else None


def literal_int(expr: str) -> Optional[int]:
    """Value of ``expr`` if it is a plain integer literal, else None."""
    try:
        value = ast.literal_eval(expr.strip())
    except (ValueError, SyntaxError):
        return None
    return value if isinstance(value, int) and not isinstance(value, bool) else None


def is_identifier(name: str) -> bool:
    return bool(_IDENT_RE.match(name))


__all__ = [
    "iter_top_level",
    "find_closing_paren",
    "find_delimiter",
    "split_top_level",
    "split_args",
    "normalize",
    "split_default",
    "parse_foreach",
    "parse_c_for",
    "parse_python_for",
    "literal_string",
    "literal_int",
    "is_identifier",
]
