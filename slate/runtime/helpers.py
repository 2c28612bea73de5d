"""
Output helpers behind the attribute and text directives.

Functions returning markup return ``Markup`` so that the escaping step of
the echo path leaves them alone; plain text transforms return ``str`` and
are escaped by the caller.
"""

from __future__ import annotations

import json
import re
from typing import Any, Iterable, List, Mapping, Optional

from markupsafe import Markup

DEFAULT_CSRF_FIELD = "_csrf_token"
DEFAULT_METHOD_FIELD = "_METHOD"
DEFAULT_WRAP_WIDTH = 75

_WORD_START_RE = re.compile(r"(^|[ \t\r\n\f\v])(\S)")

# characters that could end a <script> block or an attribute value
_JSON_HTML_SAFE = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("'", "\\u0027"),
)


# -- attribute helpers -------------------------------------------------------

def _collect(spec: Any) -> List[str]:
    """
    Flatten a conditional list: a string is used as is, a mapping keeps the
    keys whose value is truthy, a sequence is flattened recursively.
    """
    if spec is None:
        return []
    if isinstance(spec, str):
        return [spec] if spec.strip() else []
    if isinstance(spec, Mapping):
        return [str(key) for key, enabled in spec.items() if enabled]
    collected: List[str] = []
    for item in spec:
        collected.extend(_collect(item))
    return collected


def class_attr(spec: Any) -> Markup:
    """``{'btn': True, 'active': False}`` -> ``class="btn"``."""
    names = " ".join(" ".join(_collect(spec)).split())
    return Markup('class="{}"').format(names)


def style_attr(spec: Any) -> Markup:
    """``['color: red', {'font-weight: bold': True}]`` -> ``style="color: red; font-weight: bold;"``."""
    declarations = [d.strip().rstrip(";").strip() for d in _collect(spec)]
    return Markup('style="{}"').format(" ".join(f"{d};" for d in declarations if d))


def _flag(attribute: str, condition: Any, with_value: bool) -> Markup:
    if not condition:
        return Markup("")
    if with_value:
        return Markup(f'{attribute}="{attribute}"')
    return Markup(attribute)


def checked(condition: Any) -> Markup:
    return _flag("checked", condition, with_value=True)


def disabled(condition: Any) -> Markup:
    return _flag("disabled", condition, with_value=True)


def selected(condition: Any) -> Markup:
    return _flag("selected", condition, with_value=False)


def readonly(condition: Any) -> Markup:
    return _flag("readonly", condition, with_value=False)


def required(condition: Any) -> Markup:
    return _flag("required", condition, with_value=False)


def hidden_input(name: str, value: Any) -> Markup:
    return Markup('<input type="hidden" name="{}" value="{}">').format(name, value)


def csrf_field(token: Any, name: Optional[str] = None) -> Markup:
    return hidden_input(name or DEFAULT_CSRF_FIELD, token)


def method_field(verb: str, name: Optional[str] = None) -> Markup:
    return hidden_input(name or DEFAULT_METHOD_FIELD, verb)


# -- JSON --------------------------------------------------------------------

def to_json(value: Any, indent: Optional[int] = None, sort_keys: bool = False) -> Markup:
    """
    Serialize to JSON that is safe inside ``<script>`` blocks and
    single-quoted attributes.

    Args:
        value: JSON-serializable value
        indent: Pretty-print indentation, compact when None
        sort_keys: Sort object keys

    Returns:
        JSON text with ``<``, ``>``, ``&`` and ``'`` written as unicode escapes
    """
    text = json.dumps(value, indent=indent, sort_keys=sort_keys, ensure_ascii=False)
    for char, replacement in _JSON_HTML_SAFE:
        text = text.replace(char, replacement)
    return Markup(text)


def to_js(value: Any, indent: Optional[int] = None, sort_keys: bool = False) -> Markup:
    """
    JavaScript expression for ``value``.

    Scalars are emitted as literals; objects and arrays go through
    ``JSON.parse`` so that large payloads parse faster than object literals.
    ``indent`` is ignored for those: the payload must stay on one line.
    """
    if value is None or isinstance(value, (str, int, float, bool)):
        return to_json(value)
    encoded = to_json(value, sort_keys=sort_keys)
    quoted = str(encoded).replace("\\", "\\\\")
    return Markup(f"JSON.parse('{quoted}')")


# -- text transforms ---------------------------------------------------------

def lower(value: Any) -> str:
    return str(value).lower()


def upper(value: Any) -> str:
    return str(value).upper()


def ucfirst(value: Any) -> str:
    """Lowercase, then uppercase the first character."""
    text = str(value).lower()
    return text[:1].upper() + text[1:]


def ucwords(value: Any) -> str:
    """Lowercase, then uppercase the first character of every word; whitespace is kept."""
    return _WORD_START_RE.sub(lambda m: m.group(1) + m.group(2).upper(), str(value).lower())


def sprintf(fmt: Any, *args: Any) -> str:
    """``%``-style formatting; without arguments the format is returned as is."""
    if not args:
        return str(fmt)
    return str(fmt) % args


def wordwrap(value: Any, width: int = DEFAULT_WRAP_WIDTH, break_: str = "\n", cut: bool = False) -> str:
    """
    Wrap text at spaces so that lines do not exceed ``width``.

    Existing ``break_`` sequences start a new line. Words longer than
    ``width`` are left intact unless ``cut`` is set.
    """
    text = str(value)
    if width < 1 and cut:
        raise ValueError("cannot force a cut when width is less than 1")

    out: List[str] = []
    for paragraph in text.split(break_):
        out.extend(_wrap_paragraph(paragraph, width, cut))
    return break_.join(out)


def _wrap_paragraph(paragraph: str, width: int, cut: bool) -> Iterable[str]:
    lines: List[str] = []
    current: Optional[str] = None
    for word in paragraph.split(" "):
        pieces = [word]
        if cut and len(word) > width:
            pieces = [word[i:i + width] for i in range(0, len(word), width)]
        for piece in pieces:
            if current is None:
                current = piece
            elif len(current) + 1 + len(piece) <= width:
                current = f"{current} {piece}"
            else:
                lines.append(current)
                current = piece
    lines.append(current or "")
    return lines


__all__ = [
    "DEFAULT_CSRF_FIELD",
    "DEFAULT_METHOD_FIELD",
    "DEFAULT_WRAP_WIDTH",
    "class_attr",
    "style_attr",
    "checked",
    "disabled",
    "selected",
    "readonly",
    "required",
    "hidden_input",
    "csrf_field",
    "method_field",
    "to_json",
    "to_js",
    "lower",
    "upper",
    "ucfirst",
    "ucwords",
    "sprintf",
    "wordwrap",
]
