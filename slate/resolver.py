"""
Filesystem template resolver.

Names are ``"path/inside/dir"`` for the default directory or
``"folder::path"`` for a named folder. The file extension is appended by
the resolver. A folder created with ``fallback=True`` falls back to the
default directory for templates it does not contain.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

import pathspec

from .errors import TemplateNotFoundError

logger = logging.getLogger(__name__)

FOLDER_SEPARATOR = "::"


@dataclass(frozen=True)
class Folder:
    name: str
    path: Path
    fallback: bool = False


class FileSystemResolver:
    """Resolves template names against a default directory and named folders."""

    def __init__(
        self,
        directory: Optional[os.PathLike | str] = None,
        extension: Optional[str] = "html",
        *,
        folders: Optional[Dict[str, Tuple[os.PathLike | str, bool]]] = None,
        exclude: Iterable[str] = (),
    ):
        self.directory: Optional[Path] = Path(directory) if directory is not None else None
        self.extension = extension
        self.folders: Dict[str, Folder] = {}
        self._exclude = list(exclude)
        self._exclude_spec = pathspec.PathSpec.from_lines("gitwildmatch", self._exclude) if self._exclude else None
        for name, (path, fallback) in (folders or {}).items():
            self.add_folder(name, path, fallback)

    def set_directory(self, directory: Optional[os.PathLike | str]) -> None:
        if directory is not None and not Path(directory).is_dir():
            raise ValueError(f'The specified directory "{directory}" does not exist.')
        self.directory = Path(directory) if directory is not None else None

    def set_file_extension(self, extension: Optional[str]) -> None:
        self.extension = extension

    def add_folder(self, name: str, path: os.PathLike | str, fallback: bool = False) -> None:
        """
        Register a named folder.

        Raises:
            ValueError: If the name is taken or the directory does not exist
        """
        if name in self.folders:
            raise ValueError(f'The template folder "{name}" is already being used.')
        folder_path = Path(path)
        if not folder_path.is_dir():
            raise ValueError(f'The specified directory path "{folder_path}" does not exist.')
        self.folders[name] = Folder(name, folder_path, fallback)
        logger.debug(f"Registered template folder '{name}' -> {folder_path}")

    def remove_folder(self, name: str) -> None:
        self.folders.pop(name, None)

    # -- resolution ------------------------------------------------------------

    def _filename(self, name: str) -> str:
        if self.extension:
            return f"{name}.{self.extension}"
        return name

    def parse_name(self, name: str) -> Tuple[Optional[str], str]:
        """Split ``folder::file``; the folder part is None for plain names."""
        parts = name.split(FOLDER_SEPARATOR)
        if len(parts) == 1:
            return None, name
        if len(parts) > 2:
            raise ValueError(
                f'Do not use the folder namespace separator "{FOLDER_SEPARATOR}" more than once: {name!r}'
            )
        folder, file = parts
        if not folder or not file:
            raise ValueError(f"The template name {name!r} is not valid.")
        return folder, file

    def candidates(self, name: str) -> List[Path]:
        """Paths tried for ``name``, most specific first."""
        folder_name, file = self.parse_name(name)
        filename = self._filename(file)

        if folder_name is None:
            if self.directory is None:
                raise TemplateNotFoundError(name, [])
            return [self.directory / filename]

        folder = self.folders.get(folder_name)
        if folder is None:
            raise TemplateNotFoundError(name, [f'<folder "{folder_name}" is not defined>'])
        paths = [folder.path / filename]
        if folder.fallback and self.directory is not None:
            paths.append(self.directory / filename)
        return paths

    def resolve(self, name: str) -> Path:
        """
        Locate the source file of ``name``.

        Raises:
            TemplateNotFoundError: With every path that was tried
        """
        paths = self.candidates(name)
        for path in paths:
            if path.is_file():
                return path
        raise TemplateNotFoundError(name, [str(p) for p in paths])

    def exists(self, name: str) -> bool:
        try:
            self.resolve(name)
        except TemplateNotFoundError:
            return False
        return True

    # -- listing ---------------------------------------------------------------

    def _iter_dir(self, root: Path) -> Iterator[str]:
        suffix = f".{self.extension}" if self.extension else ""
        root = root.resolve()
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(
                d for d in dirnames
                if not d.startswith(".") and not self._excluded(Path(dirpath, d), root, is_dir=True)
            )
            for fn in sorted(filenames):
                if suffix and not fn.endswith(suffix):
                    continue
                p = Path(dirpath, fn)
                if self._excluded(p, root):
                    continue
                rel = p.relative_to(root).as_posix()
                yield rel[: len(rel) - len(suffix)] if suffix else rel

    def _excluded(self, path: Path, root: Path, *, is_dir: bool = False) -> bool:
        if self._exclude_spec is None:
            return False
        rel = path.relative_to(root).as_posix()
        return self._exclude_spec.match_file(rel + "/" if is_dir else rel)

    def iter_names(self) -> Iterator[str]:
        """
        Every template name this resolver can see.

        Default-directory templates come first, then folder templates as
        ``folder::name``. Paths matching the exclude patterns (gitignore
        syntax) are skipped.
        """
        if self.directory is not None and self.directory.is_dir():
            yield from self._iter_dir(self.directory)
        for folder in self.folders.values():
            for name in self._iter_dir(folder.path):
                yield f"{folder.name}{FOLDER_SEPARATOR}{name}"


__all__ = ["FOLDER_SEPARATOR", "Folder", "FileSystemResolver"]
