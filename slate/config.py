"""
Engine configuration (``slate.yaml``).

Example::

    templates:
      directory: templates
      extension: html
      folders:
        emails: {path: mail, fallback: true}
      exclude: ["drafts/", "*.bak.html"]
    cache:
      enabled: true
      directory: .slate-cache
    csrf:
      field: _csrf_token
    data:
      site_name: Example

Keys that are not given keep their defaults. Relative paths are resolved
against the directory that holds the file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .errors import ConfigLoadError

logger = logging.getLogger(__name__)

CONFIG_FILE = "slate.yaml"

_yaml = YAML(typ="safe")


def _err(path: str, msg: str) -> ConfigLoadError:
    logger.debug(f"Config error at {path}: {msg}")
    return ConfigLoadError(f"{path}: {msg}")


def _mapping(raw: Any, path: str) -> Dict[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise _err(path, f"expected mapping, got {type(raw).__name__}")
    return raw


def _string(raw: Any, path: str, default: Optional[str]) -> Optional[str]:
    if raw is None:
        return default
    if not isinstance(raw, str):
        raise _err(path, f"expected string, got {type(raw).__name__}")
    return raw


def _bool(raw: Any, path: str, default: bool) -> bool:
    if raw is None:
        return default
    if not isinstance(raw, bool):
        raise _err(path, f"expected boolean, got {raw!r}")
    return raw


@dataclass(frozen=True)
class FolderConfig:
    path: str
    fallback: bool = False


@dataclass(frozen=True)
class TemplatesConfig:
    directory: str = "templates"
    extension: Optional[str] = "html"
    folders: Dict[str, FolderConfig] = field(default_factory=dict)
    exclude: Tuple[str, ...] = ()

    @staticmethod
    def from_dict(raw: Any, path: str = "templates") -> TemplatesConfig:
        d = _mapping(raw, path)
        folders: Dict[str, FolderConfig] = {}
        for name, value in _mapping(d.get("folders"), f"{path}.folders").items():
            fpath = f"{path}.folders.{name}"
            if isinstance(value, str):
                folders[str(name)] = FolderConfig(value)
                continue
            fd = _mapping(value, fpath)
            folder_dir = _string(fd.get("path"), f"{fpath}.path", None)
            if not folder_dir:
                raise _err(f"{fpath}.path", "is required")
            folders[str(name)] = FolderConfig(folder_dir, _bool(fd.get("fallback"), f"{fpath}.fallback", False))

        exclude = d.get("exclude") or []
        if not isinstance(exclude, list) or not all(isinstance(p, str) for p in exclude):
            raise _err(f"{path}.exclude", "expected a list of patterns")

        extension = d.get("extension", "html")
        if extension is not None and not isinstance(extension, str):
            raise _err(f"{path}.extension", f"expected string or null, got {extension!r}")

        return TemplatesConfig(
            directory=_string(d.get("directory"), f"{path}.directory", "templates"),
            extension=extension.lstrip(".") if extension else None,
            folders=folders,
            exclude=tuple(exclude),
        )


@dataclass(frozen=True)
class CacheConfig:
    enabled: bool = False
    directory: str = ".slate-cache"

    @staticmethod
    def from_dict(raw: Any, path: str = "cache") -> CacheConfig:
        d = _mapping(raw, path)
        return CacheConfig(
            enabled=_bool(d.get("enabled"), f"{path}.enabled", False),
            directory=_string(d.get("directory"), f"{path}.directory", ".slate-cache"),
        )


@dataclass(frozen=True)
class CsrfConfig:
    field: str = "_csrf_token"

    @staticmethod
    def from_dict(raw: Any, path: str = "csrf") -> CsrfConfig:
        d = _mapping(raw, path)
        return CsrfConfig(field=_string(d.get("field"), f"{path}.field", "_csrf_token"))


@dataclass(frozen=True)
class EngineConfig:
    root: Path = Path(".")
    templates: TemplatesConfig = field(default_factory=TemplatesConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    csrf: CsrfConfig = field(default_factory=CsrfConfig)
    data: Dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def from_dict(raw: Any, root: Path = Path(".")) -> EngineConfig:
        d = _mapping(raw, "<root>")
        unknown = set(d) - {"templates", "cache", "csrf", "data"}
        if unknown:
            raise _err("<root>", f"unknown keys: {', '.join(sorted(unknown))}")
        return EngineConfig(
            root=root,
            templates=TemplatesConfig.from_dict(d.get("templates")),
            cache=CacheConfig.from_dict(d.get("cache")),
            csrf=CsrfConfig.from_dict(d.get("csrf")),
            data=dict(_mapping(d.get("data"), "data")),
        )

    def resolve(self, relative: str) -> Path:
        p = Path(relative)
        return p if p.is_absolute() else (self.root / p)


def load_config(path: Optional[Path] = None, root: Optional[Path] = None) -> EngineConfig:
    """
    Read ``slate.yaml``.

    Args:
        path: Config file; defaults to ``<root>/slate.yaml``
        root: Base directory for relative paths; defaults to the file's directory

    Returns:
        Loaded config, or defaults when the file does not exist

    Raises:
        ConfigLoadError: On malformed YAML or invalid values
    """
    if path is None:
        path = (root or Path.cwd()) / CONFIG_FILE
    base = root if root is not None else path.parent

    if not path.is_file():
        logger.debug(f"No config at {path}, using defaults")
        return EngineConfig(root=base)

    try:
        raw = _yaml.load(path.read_text(encoding="utf-8"))
    except YAMLError as e:
        raise ConfigLoadError(f"{path}: invalid YAML: {e}") from e
    return EngineConfig.from_dict(raw, base)


__all__ = [
    "CONFIG_FILE",
    "FolderConfig",
    "TemplatesConfig",
    "CacheConfig",
    "CsrfConfig",
    "EngineConfig",
    "load_config",
]
