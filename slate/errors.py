"""
Exception hierarchy for slate.

All expected errors that should be displayed to the user as clean
messages (without stack traces) inherit from SlateUserError.

Programming errors and bugs should NOT inherit from SlateUserError —
they propagate with full tracebacks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional


class SlateError(Exception):
    """Base class for every error raised by slate."""
    pass


class SlateUserError(SlateError):
    """
    Base class for user-facing errors.

    These errors indicate problems that the template author can fix:
    malformed directives, missing templates, misuse of sections, etc.
    """
    pass


class TemplateSyntaxError(SlateUserError):
    """Structural fault detected while compiling directive source."""

    def __init__(self, message: str, line: int = 0, column: int = 0, template: str = ""):
        self.message = message
        self.line = line
        self.column = column
        self.template = template
        super().__init__(self._format())

    def _format(self) -> str:
        where = f" at {self.line}:{self.column}" if self.line else ""
        name = f" in '{self.template}'" if self.template else ""
        return f"{self.message}{where}{name}"

    def with_template(self, template: str) -> "TemplateSyntaxError":
        """Attach the template name once it is known (compiler works on bare text)."""
        self.template = template
        self.args = (self._format(),)
        return self


@dataclass
class ReservedNameError(SlateUserError):
    """Section declared with the reserved name 'content'."""
    name: str = "content"

    def __str__(self) -> str:
        return f'The section name "{self.name}" is reserved.'


@dataclass
class NestedSectionError(SlateUserError):
    """A section was started while another one is still open."""
    name: str
    open_section: str

    def __str__(self) -> str:
        return (
            f"You cannot nest sections within other sections "
            f"('{self.name}' started inside '{self.open_section}')."
        )


class NoOpenSectionError(SlateUserError):
    """stop() was called without a preceding start()."""

    def __str__(self) -> str:
        return "You must start a section before you can stop it."


@dataclass
class UnclosedSectionError(SlateUserError):
    """A render frame finished while a section was still open."""
    name: str

    def __str__(self) -> str:
        return f"Section '{self.name}' was started but never stopped."


@dataclass
class UnknownBatchFunctionError(SlateUserError):
    """A transform pipeline references a name that cannot be resolved."""
    function: str

    def __str__(self) -> str:
        return f'The batch function could not find the "{self.function}" function.'


@dataclass
class UnknownFunctionError(SlateUserError):
    """Lookup of an unregistered extension function."""
    name: str
    available: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        msg = f'The template function "{self.name}" was not found.'
        if self.available:
            msg += f" Available: {', '.join(sorted(self.available))}"
        return msg


class TemplateNotFoundError(SlateUserError):
    """The resolver could not locate a template."""

    def __init__(self, name: str, searched: Optional[List[str]] = None):
        self.name = name
        self.searched = list(searched or [])
        msg = f"The template '{name}' could not be found"
        if self.searched:
            msg += f". Searched: {', '.join(self.searched)}"
        super().__init__(msg)

    def paths(self) -> List[str]:
        """Candidate paths that were tried, most specific first."""
        return list(self.searched)


class CsrfTokenUnavailableError(SlateUserError):
    """@csrf was used without a token provider or a 'csrf' binding."""

    def __str__(self) -> str:
        return "No CSRF token available: configure a token provider or bind 'csrf'."


class ExecutionFault(SlateError):
    """
    Fault raised while executing a compiled template.

    Wraps the underlying host exception (available as ``cause`` and as
    ``__cause__``) together with the template name and, when it can be
    recovered from the compiled text, the source line of the directive
    that produced the failing code.
    """

    def __init__(self, template: str, cause: BaseException, line: Optional[int] = None):
        self.template = template
        self.cause = cause
        self.line = line
        where = f" (line {line})" if line else ""
        super().__init__(
            f"Error rendering '{template}'{where}: {type(cause).__name__}: {cause}"
        )


class ConfigLoadError(SlateUserError, ValueError):
    """Invalid configuration, with the path of the offending field."""
    pass


__all__ = [
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
