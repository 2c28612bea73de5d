"""
Block tree produced by the directive parser.

Immutable node classes. Bodies are tuples of nodes; every node remembers
the source line it came from so generated code can point back at it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class TemplateNode:
    """Base class for all block-tree nodes."""
    line: int


Body = Tuple[TemplateNode, ...]


@dataclass(frozen=True)
class TextNode(TemplateNode):
    """Literal markup, copied to the output as is."""
    text: str


@dataclass(frozen=True)
class EchoNode(TemplateNode):
    """
    Interpolation of an expression.

    ``escaped`` is False for ``{!! !!}``; ``default`` is set for the
    ``{{ value or default }}`` form.
    """
    expr: str
    escaped: bool = True
    default: Optional[str] = None


@dataclass(frozen=True)
class CallNode(TemplateNode):
    """Single-tag directive without a body (@include, @csrf, @json, ...)."""
    keyword: str
    args: Tuple[str, ...]


@dataclass(frozen=True)
class SetNode(TemplateNode):
    """@set / @unset; ``value`` is None for @unset."""
    name: str
    value: Optional[str]
    dynamic: bool = False


@dataclass(frozen=True)
class PythonNode(TemplateNode):
    """Raw Python: a single statement or a dedented block."""
    code: str
    block: bool = False


@dataclass(frozen=True)
class SectionNode(TemplateNode):
    """@section / @push / @prepend block."""
    keyword: str
    name: str
    body: Body


@dataclass(frozen=True)
class Branch:
    """One test of a conditional chain: ``kind`` is if/unless/isset/has/empty."""
    kind: str
    expr: str
    body: Body
    line: int


@dataclass(frozen=True)
class IfNode(TemplateNode):
    branches: Tuple[Branch, ...]
    orelse: Optional[Body] = None


@dataclass(frozen=True)
class ErrorNode(TemplateNode):
    """@error(field) ... [@else ...] @enderror."""
    field: str
    body: Body
    orelse: Optional[Body] = None


@dataclass(frozen=True)
class CaseNode:
    """A @case (``expr`` set) or the @default branch (``expr`` None)."""
    expr: Optional[str]
    body: Body
    line: int


@dataclass(frozen=True)
class SwitchNode(TemplateNode):
    subject: str
    cases: Tuple[CaseNode, ...]


@dataclass(frozen=True)
class LoopControlNode(TemplateNode):
    """@break / @continue, optionally guarded by a condition."""
    keyword: str
    condition: Optional[str] = None


@dataclass(frozen=True)
class ForeachNode(TemplateNode):
    """
    @foreach / @forelse / python-style @for.

    ``empty`` holds the @forelse branch rendered for an empty iterable.
    """
    iterable: str
    target: str
    key: Optional[str]
    body: Body
    empty: Optional[Body] = None


@dataclass(frozen=True)
class ForNode(TemplateNode):
    """C-style @for(init; condition; step)."""
    init: Tuple[str, ...]
    condition: str
    step: Tuple[str, ...]
    body: Body


@dataclass(frozen=True)
class WhileNode(TemplateNode):
    condition: str
    body: Body


@dataclass(frozen=True)
class EachNode(TemplateNode):
    """@each(partial, items, var[, empty_partial])."""
    partial: str
    items: str
    var: str
    empty_partial: Optional[str] = None


__all__ = [
    "TemplateNode",
    "Body",
    "TextNode",
    "EchoNode",
    "CallNode",
    "SetNode",
    "PythonNode",
    "SectionNode",
    "Branch",
    "IfNode",
    "ErrorNode",
    "CaseNode",
    "SwitchNode",
    "LoopControlNode",
    "ForeachNode",
    "ForNode",
    "WhileNode",
    "EachNode",
]
