"""
HTML escaping and transform pipelines.

Escaping is done by markupsafe: ``&``, ``<``, ``>`` and both quote kinds
are replaced, objects implementing ``__html__`` (``Markup``) pass through.
"""

from __future__ import annotations

import builtins
from typing import Any, Callable, List, Optional, Sequence, Union

from markupsafe import Markup, escape as _markup_escape

from ..errors import UnknownBatchFunctionError

PipelineStep = Union[str, Callable[[Any], Any]]
Pipeline = Union[str, Sequence[PipelineStep]]

# returns None when the name is unknown
FunctionLookup = Callable[[str], Optional[Callable[..., Any]]]


def escape_html(value: Any) -> Markup:
    """
    Escape a value for HTML text and attribute contexts.

    None becomes an empty string; bytes are decoded as UTF-8 with
    replacement characters for invalid sequences.
    """
    if value is None:
        return Markup("")
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("utf-8", errors="replace")
    return _markup_escape(value)


def parse_pipeline(functions: Optional[Pipeline]) -> List[PipelineStep]:
    """``"strip|upper"`` or a sequence of names/callables -> list of steps."""
    if functions is None:
        return []
    if isinstance(functions, str):
        return [name.strip() for name in functions.split("|") if name.strip()]
    return list(functions)


def _str_method(name: str) -> Callable[[Any], Any]:
    method = getattr(str, name)

    def call(value: Any) -> Any:
        return method(value if isinstance(value, str) else str(value))

    call.__name__ = name
    return call


def resolve_batch_function(step: PipelineStep, lookup: Optional[FunctionLookup] = None) -> Callable[[Any], Any]:
    """
    Resolve one pipeline step.

    Order: registered extension function, callable value, builtin, then
    ``str`` method.

    Raises:
        UnknownBatchFunctionError: If the step cannot be resolved
    """
    if not isinstance(step, str):
        if callable(step):
            return step
        raise UnknownBatchFunctionError(repr(step))

    if lookup is not None:
        found = lookup(step)
        if found is not None:
            return found

    candidate = getattr(builtins, step, None)
    is_exception = isinstance(candidate, type) and issubclass(candidate, BaseException)
    if callable(candidate) and not step.startswith("_") and not is_exception:
        return candidate

    if not step.startswith("_") and callable(getattr(str, step, None)):
        return _str_method(step)

    raise UnknownBatchFunctionError(step)


def batch(value: Any, functions: Optional[Pipeline], lookup: Optional[FunctionLookup] = None) -> Any:
    """Apply the pipeline to ``value``, left to right."""
    for step in parse_pipeline(functions):
        value = resolve_batch_function(step, lookup)(value)
    return value


def escape(value: Any, functions: Optional[Pipeline] = None, lookup: Optional[FunctionLookup] = None) -> Markup:
    """Apply the optional pipeline, then HTML-escape."""
    if functions:
        value = batch(value, functions, lookup)
    return escape_html(value)


__all__ = [
    "Markup",
    "escape_html",
    "parse_pipeline",
    "resolve_batch_function",
    "batch",
    "escape",
]
