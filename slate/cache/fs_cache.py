from __future__ import annotations

import hashlib
import json
import logging
import os
import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, Optional

logger = logging.getLogger(__name__)

# Bumped whenever the on-disk entry layout changes.
CACHE_VERSION = 1

CACHE_DIR_NAME = ".slate-cache"

_ENTRY_SUBDIR = "compiled"

_FALSY_ENV = frozenset({"0", "false", "no", "off", ""})


def _digest(payload: dict) -> str:
    blob = json.dumps(payload, ensure_ascii=False, sort_keys=True)
    return hashlib.sha1(blob.encode("utf-8")).hexdigest()


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _fingerprint(path: Path) -> dict:
    try:
        st = path.stat()
    except OSError:
        return {"path": str(path), "mtime_ns": 0, "size": 0}
    return {
        "path": str(path.resolve()),
        "mtime_ns": int(st.st_mtime_ns),
        "size": int(st.st_size),
    }


def template_identity(path: Path, compiler_version: str) -> str:
    """
    Cache identity of a template source file.

    Built from the resolved path, mtime_ns and size of the file together with
    the compiler version: touching the file or upgrading the compiler both
    produce a new identity.
    """
    return _digest({"v": CACHE_VERSION, "file": _fingerprint(path), "compiler": compiler_version})


def cache_enabled_from_env(default: bool) -> bool:
    """``SLATE_CACHE`` overrides the configured switch when set."""
    raw = os.environ.get("SLATE_CACHE")
    if raw is None:
        return default
    return raw.strip().lower() not in _FALSY_ENV


@dataclass(frozen=True)
class CacheSnapshot:
    enabled: bool
    path: Optional[Path]
    entries: int
    size_bytes: int


class MemoryCache:
    """In-process compiled cache; lives as long as the engine."""

    def __init__(self):
        self._texts: Dict[str, str] = {}

    def get(self, identity: str) -> Optional[str]:
        return self._texts.get(identity)

    def put(self, identity: str, compiled: str) -> None:
        self._texts[identity] = compiled

    def invalidate(self, identity: str) -> None:
        self._texts.pop(identity, None)

    def purge_all(self) -> bool:
        self._texts.clear()
        return True

    def snapshot(self) -> CacheSnapshot:
        total = sum(len(text.encode("utf-8")) for text in self._texts.values())
        return CacheSnapshot(enabled=True, path=None, entries=len(self._texts), size_bytes=total)


class FileCache:
    """
    Compiled cache on disk.

    Each entry is a small JSON document stored under
    ``<dir>/compiled/<id[:2]>/<id[2:4]>/<id>.json``. Failures are logged and
    treated as misses, so a broken cache directory never breaks rendering.
    """

    def __init__(self, directory: Path, *, enabled: Optional[bool] = None, fresh: bool = False):
        self.dir = Path(directory)
        self.fresh = bool(fresh)
        self.enabled = cache_enabled_from_env(True if enabled is None else bool(enabled))
        if self.enabled:
            try:
                self.dir.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                logger.debug(f"Cache directory {self.dir} unavailable ({exc}); caching disabled")
                self.enabled = False

    @classmethod
    def for_root(cls, root: Path, **kwargs) -> FileCache:
        return cls(Path(root) / CACHE_DIR_NAME, **kwargs)

    def entry_path(self, identity: str) -> Path:
        return self.dir / _ENTRY_SUBDIR / identity[:2] / identity[2:4] / f"{identity}.json"

    def get(self, identity: str) -> Optional[str]:
        if not self.enabled or self.fresh:
            return None
        target = self.entry_path(identity)
        try:
            doc = json.loads(target.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            logger.debug(f"Unreadable cache entry {target.name}: {exc}")
            return None
        if not isinstance(doc, dict) or doc.get("v") != CACHE_VERSION:
            return None
        text = doc.get("compiled")
        return text if isinstance(text, str) else None

    def put(self, identity: str, compiled: str) -> None:
        if not self.enabled:
            return
        target = self.entry_path(identity)
        doc = {"v": CACHE_VERSION, "identity": identity, "compiled": compiled, "created_at": _timestamp()}
        partial = target.with_suffix(".tmp")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            partial.write_text(json.dumps(doc, ensure_ascii=False), encoding="utf-8")
            # rename is atomic on the same filesystem
            partial.replace(target)
        except OSError as exc:
            logger.debug(f"Cache write for {identity[:12]} failed: {exc}")

    def invalidate(self, identity: str) -> None:
        if not self.enabled:
            return
        try:
            self.entry_path(identity).unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.debug(f"Cache invalidate for {identity[:12]} failed: {exc}")

    def purge_all(self) -> bool:
        """Drop the whole cache directory and recreate it empty."""
        shutil.rmtree(self.dir, ignore_errors=True)
        try:
            self.dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.debug(f"Cache purge of {self.dir} failed: {exc}")
            return False
        return True

    def _iter_entries(self) -> Iterator[Path]:
        root = self.dir / _ENTRY_SUBDIR
        if not root.is_dir():
            return
        for p in root.rglob("*.json"):
            if p.is_file():
                yield p

    def snapshot(self) -> CacheSnapshot:
        """Entry count and total size on disk; unreadable files are skipped."""
        count = 0
        total = 0
        try:
            for p in self._iter_entries():
                try:
                    total += p.stat().st_size
                except OSError:
                    continue
                count += 1
        except OSError as exc:
            logger.debug(f"Cache scan of {self.dir} stopped early: {exc}")
        return CacheSnapshot(enabled=self.enabled, path=self.dir, entries=count, size_bytes=total)


__all__ = [
    "CACHE_VERSION",
    "CACHE_DIR_NAME",
    "CacheSnapshot",
    "MemoryCache",
    "FileCache",
    "template_identity",
    "cache_enabled_from_env",
]
