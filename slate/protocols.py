"""
Collaborator interfaces of the render engine.

The engine only talks to these protocols; default implementations live in
resolver.py, cache/, functions.py and data.py.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol, runtime_checkable


@runtime_checkable
class TemplateResolver(Protocol):
    """Maps template names to source files."""

    def resolve(self, name: str) -> Path:
        """
        Locate the source file of a template.

        Raises:
            TemplateNotFoundError: If no candidate path exists
        """
        ...

    def exists(self, name: str) -> bool:
        ...


@runtime_checkable
class CompiledCache(Protocol):
    """Stores compiled Python text under an opaque identity string."""

    def get(self, identity: str) -> Optional[str]:
        ...

    def put(self, identity: str, compiled: str) -> None:
        ...

    def invalidate(self, identity: str) -> None:
        ...


@runtime_checkable
class FunctionProvider(Protocol):
    """Registry of extension functions callable from templates."""

    def get(self, name: str) -> Callable[..., Any]:
        """
        Raises:
            UnknownFunctionError: If nothing is registered under ``name``
        """
        ...

    def exists(self, name: str) -> bool:
        ...

    def bind(self, name: str, frame: Any) -> Callable[..., Any]:
        """Function ready to be called from ``frame``."""
        ...


@runtime_checkable
class DataProvider(Protocol):
    """Bindings the engine pre-loads into every frame of a template."""

    def get_data(self, name: Optional[str] = None) -> Dict[str, Any]:
        ...


# zero-argument callable returning the current token (or None)
CsrfTokenProvider = Callable[[], Optional[str]]


@runtime_checkable
class Extension(Protocol):
    """Bundle of functions and data installed with ``Engine.load_extension``."""

    def register(self, engine: Any) -> None:
        ...


__all__ = [
    "Extension",
    "TemplateResolver",
    "CompiledCache",
    "FunctionProvider",
    "DataProvider",
    "CsrfTokenProvider",
]
