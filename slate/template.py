"""
Render frame.

A ``Template`` is created by the engine for every render invocation and
is what compiled code sees as ``this``. It owns the frame state: merged
data bindings, the section stack, the layout binding and the loop chain.
The output buffer stack is not owned: it is handed in by whoever started
the top-level render.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sized
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional

from markupsafe import Markup

from .errors import (
    CsrfTokenUnavailableError,
    ExecutionFault,
    NoOpenSectionError,
    ReservedNameError,
    SlateError,
    TemplateNotFoundError,
)
from .runtime import helpers
from .runtime.buffers import BufferStack
from .runtime.escape import Pipeline, batch as _batch, escape as _escape
from .runtime.loop import Loop
from .runtime.sections import RESERVED_SECTION, SectionMode, SectionStack

if TYPE_CHECKING:
    from .engine import Engine

logger = logging.getLogger(__name__)

# lookups that make isset() report "not set" instead of failing
_UNSET_ERRORS = (NameError, AttributeError, LookupError, TypeError)


class Template:
    """
    One render activation of a named template.

    Frames are never shared: nested includes and layouts get frames of
    their own and receive this frame's buffer stack explicitly.
    """

    def __init__(self, engine: Engine, name: str):
        self.engine = engine
        self.name = name
        self._data: Dict[str, Any] = {}
        self._layout_name: Optional[str] = None
        self._layout_data: Dict[str, Any] = {}
        self._seeded: Dict[str, str] = {}
        self._buffers: Optional[BufferStack] = None
        self._sections: Optional[SectionStack] = None
        self._loop: Optional[Loop] = None

        self.data(engine.get_data(name))

    def __repr__(self) -> str:
        return f"Template({self.name!r})"

    # -- data ----------------------------------------------------------------

    def data(self, data: Optional[Mapping] = None) -> Dict[str, Any]:
        """
        Merge bindings into the frame (existing keys are overwritten).

        Returns:
            The merged bindings
        """
        if data:
            self._data.update(data)
        return self._data

    def exists(self) -> bool:
        return self.engine.exists(self.name)

    def path(self) -> Path:
        return self.engine.path(self.name)

    # -- rendering -----------------------------------------------------------

    def render(self, data: Optional[Mapping] = None, *, buffers: Optional[BufferStack] = None) -> str:
        """
        Execute the compiled template and return its output.

        When the template bound a layout, the layout is rendered with this
        frame's sections plus ``content`` and its output is returned instead.

        Args:
            data: Extra bindings, merged into the frame
            buffers: Buffer stack of the enclosing render; a new one is
                created for a top-level render

        Raises:
            SlateError: Raised by the template or a nested render, unchanged
            ExecutionFault: For any other exception raised by template code
        """
        self.data(data)
        self._buffers = buffers if buffers is not None else BufferStack()
        self._sections = SectionStack(self._buffers)
        self._sections.seed(self._seeded)
        self._loop = self._data.get("loop") if isinstance(self._data.get("loop"), Loop) else None

        logger.debug(f"Rendering '{self.name}' at buffer level {self._buffers.level}")
        try:
            content = self._execute()
            if self._layout_name is None:
                return content

            layout = self.engine.make(self._layout_name)
            layout.seed_sections({**self._sections.completed(), "content": content})
            logger.debug(f"'{self.name}' delegates to layout '{self._layout_name}'")
            return layout.render(self._layout_data, buffers=self._buffers)
        finally:
            self._sections.clear()

    def _execute(self) -> str:
        compiled = None
        try:
            compiled = self.engine.load(self.name)
            namespace = dict(self._data)
            namespace["this"] = self
            with self._buffers.capture() as output:
                exec(compiled.code, namespace)
                self._sections.ensure_closed()
        except SlateError:
            raise
        except Exception as e:
            line = compiled.source_line(e) if compiled is not None else None
            raise ExecutionFault(self.name, e, line) from e
        return output.value

    def seed_sections(self, sections: Mapping[str, str]) -> None:
        """Preload completed sections; used when this frame renders as a layout."""
        self._seeded = dict(sections)

    def layout(self, name: str, data: Optional[Mapping] = None) -> None:
        """Delegate the final output to layout ``name`` after this frame finishes."""
        self._layout_name = name
        self._layout_data = dict(data or {})

    def write(self, value: Any) -> None:
        self._require_buffers().write(value)

    def _require_buffers(self) -> BufferStack:
        if self._buffers is None:
            raise RuntimeError(f"Template '{self.name}' is not rendering")
        return self._buffers

    def _require_sections(self) -> SectionStack:
        if self._sections is None:
            raise RuntimeError(f"Template '{self.name}' is not rendering")
        return self._sections

    # -- sections ------------------------------------------------------------

    def _open_section(self, name: str, mode: SectionMode) -> None:
        if name == RESERVED_SECTION:
            raise ReservedNameError(name)
        self._require_sections().start(name, mode)

    def start(self, name: str) -> None:
        self._open_section(name, SectionMode.REWRITE)

    def push(self, name: str) -> None:
        self._open_section(name, SectionMode.APPEND)

    def unshift(self, name: str) -> None:
        self._open_section(name, SectionMode.PREPEND)

    def stop(self) -> None:
        if self._sections is None:
            raise NoOpenSectionError()
        self._sections.stop()

    def end(self) -> None:
        """Alias of ``stop()``."""
        self.stop()

    def section(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Content of a completed section, or ``default``."""
        if self._sections is None:
            return self._seeded.get(name, default)
        return self._sections.get(name, default)

    # -- includes ------------------------------------------------------------

    def fetch(self, name: str, data: Optional[Mapping] = None) -> str:
        """Render another template into a string, sharing this frame's buffers."""
        return self.engine.make(name).render(data, buffers=self._buffers)

    def insert(self, name: str, data: Optional[Mapping] = None) -> None:
        self.write(self.fetch(name, data))

    def insert_if(self, name: str, data: Optional[Mapping] = None) -> None:
        if self.engine.exists(name):
            self.insert(name, data)

    def insert_when(self, condition: Any, name: str, data: Optional[Mapping] = None) -> None:
        if condition:
            self.insert(name, data)

    def insert_unless(self, condition: Any, name: str, data: Optional[Mapping] = None) -> None:
        if not condition:
            self.insert(name, data)

    def insert_first(self, names: Iterable[str], data: Optional[Mapping] = None) -> None:
        """
        Insert the first template of ``names`` that exists.

        Raises:
            TemplateNotFoundError: If none of them exists
        """
        candidates: List[str] = [names] if isinstance(names, str) else list(names)
        for name in candidates:
            if self.engine.exists(name):
                self.insert(name, data)
                return
        raise TemplateNotFoundError(", ".join(candidates))

    # -- escaping and functions ---------------------------------------------

    def _lookup(self, name: str) -> Optional[Callable[..., Any]]:
        functions = self.engine.functions
        if not functions.exists(name):
            return None
        return functions.bind(name, self)

    def escape(self, value: Any, functions: Optional[Pipeline] = None) -> Markup:
        """Apply the optional pipeline, then HTML-escape."""
        return _escape(value, functions, self._lookup)

    def e(self, value: Any, functions: Optional[Pipeline] = None) -> Markup:
        """Alias of ``escape()``."""
        return self.escape(value, functions)

    def batch(self, value: Any, functions: Pipeline) -> Any:
        """Apply a transform pipeline without escaping."""
        return _batch(value, functions, self._lookup)

    def call(self, name: str, *args: Any, **kwargs: Any) -> Any:
        """Call a registered extension function."""
        return self.engine.functions.bind(name, self)(*args, **kwargs)

    # -- conditionals --------------------------------------------------------

    @staticmethod
    def isset(getter: Callable[[], Any]) -> bool:
        """True if the expression evaluates without a lookup error and is not None."""
        try:
            return getter() is not None
        except _UNSET_ERRORS:
            return False

    def has(self, getter: Callable[[], Any]) -> bool:
        """Set and truthy."""
        if not self.isset(getter):
            return False
        return bool(getter())

    def empty(self, getter: Callable[[], Any]) -> bool:
        """Unset or falsy."""
        return not self.has(getter)

    def _errors(self) -> Mapping:
        errors = self._data.get("errors")
        return errors if isinstance(errors, Mapping) else {}

    def error(self, field: str) -> bool:
        """True if the ``errors`` binding holds a message for ``field``."""
        return self._errors().get(field) is not None

    def error_message(self, field: str) -> str:
        """First message recorded for ``field``."""
        message = self._errors().get(field)
        if isinstance(message, (list, tuple)):
            return str(message[0]) if message else ""
        return "" if message is None else str(message)

    # -- loops ---------------------------------------------------------------

    @staticmethod
    def loop(count: int, parent: Optional[Loop] = None) -> Loop:
        return Loop(count, parent)

    @property
    def current_loop(self) -> Optional[Loop]:
        return self._loop

    def enter_loop(self, count: Optional[int] = None) -> Loop:
        """Push a loop context; ``count`` None marks a loop of unknown length."""
        self._loop = Loop(count or 0, self._loop, sized=count is not None)
        return self._loop

    def exit_loop(self) -> Optional[Loop]:
        """Pop the current loop context and return the enclosing one."""
        if self._loop is not None:
            self._loop = self._loop.parent()
        return self._loop

    @staticmethod
    def loop_source(items: Any) -> Any:
        """Iterable with a known length; one-shot iterators are materialized."""
        if isinstance(items, Sized):
            return items
        return list(items)

    @staticmethod
    def pairs(items: Any) -> Iterable:
        """``(key, value)`` pairs: mapping items, otherwise positions."""
        if isinstance(items, Mapping):
            return items.items()
        return enumerate(items)

    # -- output helpers ------------------------------------------------------

    def csrf_field(self, value: Any = None, name: Optional[str] = None) -> Markup:
        """
        Hidden CSRF token input.

        The token is taken from ``value``, then the engine's token provider,
        then the ``csrf`` binding.

        Raises:
            CsrfTokenUnavailableError: If no token is available
        """
        if value is None:
            value = self.engine.csrf_token()
        if value is None:
            value = self._data.get("csrf")
        if value is None:
            raise CsrfTokenUnavailableError()
        return helpers.csrf_field(value, name or self.engine.csrf_field)

    @staticmethod
    def method_field(verb: str, name: Optional[str] = None) -> Markup:
        return helpers.method_field(verb, name)

    @staticmethod
    def json(value: Any, indent: Optional[int] = None, sort_keys: bool = False) -> Markup:
        return helpers.to_json(value, indent, sort_keys)

    @staticmethod
    def js(value: Any, indent: Optional[int] = None, sort_keys: bool = False) -> Markup:
        return helpers.to_js(value, indent, sort_keys)

    class_attr = staticmethod(helpers.class_attr)
    style_attr = staticmethod(helpers.style_attr)
    checked = staticmethod(helpers.checked)
    selected = staticmethod(helpers.selected)
    disabled = staticmethod(helpers.disabled)
    readonly = staticmethod(helpers.readonly)
    required = staticmethod(helpers.required)
    lower = staticmethod(helpers.lower)
    upper = staticmethod(helpers.upper)
    ucfirst = staticmethod(helpers.ucfirst)
    ucwords = staticmethod(helpers.ucwords)
    sprintf = staticmethod(helpers.sprintf)
    wordwrap = staticmethod(helpers.wordwrap)


__all__ = ["Template"]
