"""
Render engine.

Holds the collaborators (resolver, compiled cache, function registry, data
provider, CSRF token provider) and creates a fresh render frame for every
render. The engine keeps no per-render state.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from types import CodeType
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple, Union

from .cache.fs_cache import FileCache, MemoryCache, cache_enabled_from_env, template_identity
from .compiler import COMPILER_VERSION, DirectiveCompiler
from .compiler.codegen import source_line
from .config import EngineConfig
from .data import TemplateData
from .errors import ConfigLoadError, ExecutionFault
from .functions import FunctionRegistry
from .protocols import CompiledCache, CsrfTokenProvider, DataProvider, Extension, TemplateResolver
from .resolver import FileSystemResolver
from .runtime.helpers import DEFAULT_CSRF_FIELD
from .template import Template

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompiledTemplate:
    """Compiled Python text of a template together with its code object."""
    name: str
    identity: str
    text: str
    code: CodeType
    filename: str

    def source_line(self, exc: BaseException) -> Optional[int]:
        """Template line of the innermost traceback entry inside this template."""
        lineno: Optional[int] = None
        if isinstance(exc, SyntaxError) and exc.filename == self.filename:
            lineno = exc.lineno
        tb = exc.__traceback__
        while tb is not None:
            if tb.tb_frame.f_code.co_filename == self.filename:
                lineno = tb.tb_lineno
            tb = tb.tb_next
        return source_line(self.text, lineno) if lineno else None


class Engine:
    """
    Template engine.

    Args:
        directory: Default template directory (used by the default resolver)
        extension: File extension appended to template names; None for none
        resolver: Custom template resolver
        cache: Compiled-text cache; in-memory by default
        functions: Extension function registry
        data: Preassigned data provider
        csrf_token: Zero-argument callable returning the current CSRF token
        csrf_field: Default name of the hidden CSRF input
    """

    def __init__(
        self,
        directory: Optional[Union[str, os.PathLike]] = None,
        extension: Optional[str] = "html",
        *,
        resolver: Optional[TemplateResolver] = None,
        cache: Optional[CompiledCache] = None,
        functions: Optional[FunctionRegistry] = None,
        data: Optional[DataProvider] = None,
        csrf_token: Optional[CsrfTokenProvider] = None,
        csrf_field: str = DEFAULT_CSRF_FIELD,
    ):
        self.resolver: TemplateResolver = resolver if resolver is not None else FileSystemResolver(directory, extension)
        self.cache: CompiledCache = cache if cache is not None else MemoryCache()
        self.functions = functions if functions is not None else FunctionRegistry()
        self.data_provider: DataProvider = data if data is not None else TemplateData()
        self.csrf_provider = csrf_token
        self.csrf_field = csrf_field
        self.compiler = DirectiveCompiler()

    @classmethod
    def from_config(cls, config: EngineConfig, **kwargs: Any) -> Engine:
        """
        Build an engine from ``slate.yaml`` settings.

        Raises:
            ConfigLoadError: If a configured folder does not exist
        """
        tc = config.templates
        resolver = FileSystemResolver(config.resolve(tc.directory), tc.extension, exclude=tc.exclude)
        for name, folder in tc.folders.items():
            try:
                resolver.add_folder(name, config.resolve(folder.path), folder.fallback)
            except ValueError as e:
                raise ConfigLoadError(f"templates.folders.{name}: {e}") from e

        if cache_enabled_from_env(config.cache.enabled):
            cache: CompiledCache = FileCache(config.resolve(config.cache.directory), enabled=True)
        else:
            cache = MemoryCache()

        engine = cls(resolver=resolver, cache=cache, csrf_field=config.csrf.field, **kwargs)
        if config.data:
            engine.add_data(config.data)
        return engine

    # -- configuration -------------------------------------------------------

    def _fs_resolver(self) -> FileSystemResolver:
        if not isinstance(self.resolver, FileSystemResolver):
            raise TypeError(f"{type(self.resolver).__name__} does not support folders")
        return self.resolver

    def add_folder(self, name: str, directory: Union[str, os.PathLike], fallback: bool = False) -> Engine:
        self._fs_resolver().add_folder(name, directory, fallback)
        return self

    def set_file_extension(self, extension: Optional[str]) -> Engine:
        self._fs_resolver().set_file_extension(extension)
        return self

    def register_function(self, name: str, callback: Callable[..., Any], *, pass_frame: bool = False) -> Engine:
        self.functions.register(name, callback, pass_frame=pass_frame)
        return self

    def drop_function(self, name: str) -> Engine:
        self.functions.drop(name)
        return self

    def get_function(self, name: str) -> Callable[..., Any]:
        return self.functions.get(name)

    def does_function_exist(self, name: str) -> bool:
        return self.functions.exists(name)

    def add_data(self, data: Mapping[str, Any], templates: Optional[Union[str, Iterable[str]]] = None) -> Engine:
        if not isinstance(self.data_provider, TemplateData):
            raise TypeError(f"{type(self.data_provider).__name__} does not accept data")
        self.data_provider.add(data, templates)
        return self

    def get_data(self, name: Optional[str] = None) -> Dict[str, Any]:
        return self.data_provider.get_data(name)

    def load_extension(self, extension: Extension) -> Engine:
        extension.register(self)
        return self

    def load_extensions(self, extensions: Iterable[Extension]) -> Engine:
        for extension in extensions:
            self.load_extension(extension)
        return self

    def csrf_token(self) -> Optional[str]:
        return self.csrf_provider() if self.csrf_provider is not None else None

    # -- templates -----------------------------------------------------------

    def path(self, name: str) -> Path:
        return self.resolver.resolve(name)

    def exists(self, name: str) -> bool:
        return self.resolver.exists(name)

    def make(self, name: str, data: Optional[Mapping[str, Any]] = None) -> Template:
        """New render frame for ``name``, preloaded with engine data."""
        template = Template(self, name)
        template.data(data)
        return template

    def render(self, name: str, data: Optional[Mapping[str, Any]] = None) -> str:
        return self.make(name).render(data)

    # -- compilation ---------------------------------------------------------

    def compile_source(self, text: str, name: str = "") -> str:
        """Compile template source without touching resolver or cache."""
        return self.compiler.compile(text, name)

    def compile(self, name: str) -> str:
        """
        Compiled Python text of template ``name``, via the compiled cache.

        Raises:
            TemplateNotFoundError: If the template cannot be resolved
            TemplateSyntaxError: On structural faults in the source
        """
        path, identity = self._locate(name)
        return self._compiled_text(name, path, identity)

    def _locate(self, name: str) -> Tuple[Path, str]:
        path = self.resolver.resolve(name)
        return path, template_identity(path, COMPILER_VERSION)

    def _compiled_text(self, name: str, path: Path, identity: str) -> str:
        text = self.cache.get(identity)
        if text is not None:
            logger.debug(f"Compiled cache hit for '{name}'")
            return text
        source = path.read_text(encoding="utf-8")
        text = self.compiler.compile(source, name)
        self.cache.put(identity, text)
        return text

    def load(self, name: str) -> CompiledTemplate:
        """
        Compiled template ready for execution.

        The compiled cache is consulted on every call; the engine itself
        remembers nothing between renders.

        Raises:
            ExecutionFault: If the generated code is not valid Python (a
                malformed expression inside a directive)
        """
        path, identity = self._locate(name)
        text = self._compiled_text(name, path, identity)
        filename = f"<slate:{name}>"
        try:
            code = compile(text, filename, "exec")
        except SyntaxError as e:
            raise ExecutionFault(name, e, source_line(text, e.lineno or 0)) from e
        return CompiledTemplate(name, identity, text, code, filename)


__all__ = ["CompiledTemplate", "Engine"]
