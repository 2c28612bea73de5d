"""
Registry of extension functions.

Templates reach extension functions explicitly, through ``this.call(name)``
or a transform pipeline (``this.escape(value, "name|other")``). Functions
registered with ``pass_frame=True`` receive the calling render frame as
their first argument.
"""

from __future__ import annotations

import functools
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .errors import UnknownFunctionError

logger = logging.getLogger(__name__)

_NAME_RE = re.compile(r"^[A-Za-z_]\w*$")


@dataclass(frozen=True)
class TemplateFunction:
    name: str
    callback: Callable[..., Any]
    pass_frame: bool = False

    def bind(self, frame: Any) -> Callable[..., Any]:
        if self.pass_frame:
            return functools.partial(self.callback, frame)
        return self.callback


class FunctionRegistry:
    """Name -> function mapping with validation."""

    def __init__(self):
        self._functions: Dict[str, TemplateFunction] = {}

    def register(self, name: str, callback: Callable[..., Any], *, pass_frame: bool = False) -> TemplateFunction:
        """
        Register ``callback`` under ``name``.

        Raises:
            ValueError: If the name is not an identifier, is taken, or the
                callback is not callable
        """
        if not _NAME_RE.match(name or ""):
            raise ValueError(f'The template function name "{name}" is not valid.')
        if name in self._functions:
            raise ValueError(f'The template function name "{name}" is already registered.')
        if not callable(callback):
            raise ValueError(f'The template function "{name}" must be callable.')

        function = TemplateFunction(name, callback, pass_frame)
        self._functions[name] = function
        logger.debug(f"Registered template function '{name}' (pass_frame={pass_frame})")
        return function

    def function(self, name: Optional[str] = None, *, pass_frame: bool = False):
        """Decorator form of ``register``."""
        def decorator(callback: Callable[..., Any]) -> Callable[..., Any]:
            self.register(name or callback.__name__, callback, pass_frame=pass_frame)
            return callback
        return decorator

    def drop(self, name: str) -> None:
        """
        Raises:
            UnknownFunctionError: If ``name`` is not registered
        """
        if name not in self._functions:
            raise UnknownFunctionError(name, self.names())
        del self._functions[name]

    def lookup(self, name: str) -> TemplateFunction:
        function = self._functions.get(name)
        if function is None:
            raise UnknownFunctionError(name, self.names())
        return function

    def get(self, name: str) -> Callable[..., Any]:
        return self.lookup(name).callback

    def bind(self, name: str, frame: Any) -> Callable[..., Any]:
        return self.lookup(name).bind(frame)

    def exists(self, name: str) -> bool:
        return name in self._functions

    def names(self) -> List[str]:
        return sorted(self._functions)

    def __contains__(self, name: str) -> bool:
        return self.exists(name)

    def __len__(self) -> int:
        return len(self._functions)


__all__ = ["TemplateFunction", "FunctionRegistry"]
