"""
slate: Blade-style directive templates compiled to Python.

    from slate import Engine

    engine = Engine("templates")
    html = engine.render("pages/home", {"user": user})
"""

from .compiler import compile_template
from .engine import Engine
from .errors import (
    ConfigLoadError,
    CsrfTokenUnavailableError,
    ExecutionFault,
    NestedSectionError,
    NoOpenSectionError,
    ReservedNameError,
    SlateError,
    SlateUserError,
    TemplateNotFoundError,
    TemplateSyntaxError,
    UnclosedSectionError,
    UnknownBatchFunctionError,
    UnknownFunctionError,
)
from .runtime import BufferStack, Loop, Markup
from .template import Template

__all__ = [
    "Engine",
    "Template",
    "compile_template",
    "BufferStack",
    "Loop",
    "Markup",
    "SlateError",
    "SlateUserError",
    "TemplateSyntaxError",
    "ReservedNameError",
    "NestedSectionError",
    "NoOpenSectionError",
    "UnclosedSectionError",
    "UnknownBatchFunctionError",
    "UnknownFunctionError",
    "TemplateNotFoundError",
    "CsrfTokenUnavailableError",
    "ExecutionFault",
    "ConfigLoadError",
]
