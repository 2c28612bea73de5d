"""
Compiled cache: identity, in-memory and on-disk stores, env toggle.
"""

import os
from pathlib import Path

from slate import Engine
from slate.cache.fs_cache import (
    CACHE_DIR_NAME,
    FileCache,
    MemoryCache,
    cache_enabled_from_env,
    template_identity,
)
from slate.config import load_config
from tests.infrastructure.file_utils import write


def _bump_mtime(path: Path) -> None:
    st = path.stat()
    os.utime(path, ns=(st.st_atime_ns, st.st_mtime_ns + 5_000_000_000))


class TestIdentity:

    def test_stable(self, tmp_path):
        p = write(tmp_path / "a.html", "x")
        assert template_identity(p, "1") == template_identity(p, "1")

    def test_changes_with_compiler_version(self, tmp_path):
        p = write(tmp_path / "a.html", "x")
        assert template_identity(p, "1") != template_identity(p, "2")

    def test_changes_with_mtime(self, tmp_path):
        p = write(tmp_path / "a.html", "x")
        before = template_identity(p, "1")
        _bump_mtime(p)
        assert template_identity(p, "1") != before

    def test_changes_with_path(self, tmp_path):
        a = write(tmp_path / "a.html", "x")
        b = write(tmp_path / "b.html", "x")
        os.utime(b, ns=(a.stat().st_atime_ns, a.stat().st_mtime_ns))
        assert template_identity(a, "1") != template_identity(b, "1")


class TestMemoryCache:

    def test_get_put_invalidate(self):
        cache = MemoryCache()
        assert cache.get("k") is None

        cache.put("k", "code")
        assert cache.get("k") == "code"
        assert cache.snapshot().entries == 1

        cache.invalidate("k")
        cache.invalidate("k")
        assert cache.get("k") is None

    def test_purge(self):
        cache = MemoryCache()
        cache.put("a", "1")
        assert cache.purge_all()
        assert cache.snapshot().entries == 0


class TestFileCache:

    def test_roundtrip_and_layout(self, tmp_path):
        cache = FileCache(tmp_path / "c", enabled=True)
        key = "abcdef0123"
        cache.put(key, "print(1)\n")

        assert cache.get(key) == "print(1)\n"
        assert (tmp_path / "c" / "compiled" / "ab" / "cd" / f"{key}.json").is_file()
        assert cache.snapshot().entries == 1

    def test_disabled_cache_is_inert(self, tmp_path):
        cache = FileCache(tmp_path / "c", enabled=False)
        cache.put("abcd", "x")

        assert cache.get("abcd") is None
        assert not (tmp_path / "c").exists()

    def test_fresh_ignores_reads(self, tmp_path):
        FileCache(tmp_path / "c", enabled=True).put("abcd", "x")
        assert FileCache(tmp_path / "c", enabled=True, fresh=True).get("abcd") is None

    def test_corrupt_entry_is_a_miss(self, tmp_path):
        cache = FileCache(tmp_path / "c", enabled=True)
        cache.put("abcd", "x")
        write(tmp_path / "c" / "compiled" / "ab" / "cd" / "abcd.json", "{not json")

        assert cache.get("abcd") is None

    def test_invalidate_and_purge(self, tmp_path):
        cache = FileCache.for_root(tmp_path, enabled=True)
        assert cache.dir == tmp_path / CACHE_DIR_NAME

        cache.put("abcd", "x")
        cache.put("efgh", "y")
        cache.invalidate("abcd")
        assert cache.get("abcd") is None
        assert cache.get("efgh") == "y"

        assert cache.purge_all()
        assert cache.snapshot().entries == 0

    def test_env_disables(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SLATE_CACHE", "0")
        assert FileCache(tmp_path / "c", enabled=True).enabled is False


class TestEnvToggle:

    def test_default_when_unset(self):
        assert cache_enabled_from_env(True) is True
        assert cache_enabled_from_env(False) is False

    def test_values(self, monkeypatch):
        for value, expected in [("1", True), ("yes", True), ("off", False), ("False", False), ("", False)]:
            monkeypatch.setenv("SLATE_CACHE", value)
            assert cache_enabled_from_env(False) is expected


class TestEngineWithFileCache:

    def test_compiled_text_survives_engines(self, tmp_path):
        write(tmp_path / "slate.yaml", "cache:\n  enabled: true\n")
        write(tmp_path / "templates" / "a.html", "{{ $x }}")

        first = Engine.from_config(load_config(root=tmp_path))
        assert first.render("a", {"x": 1}) == "1"
        assert first.cache.snapshot().entries == 1

        second = Engine.from_config(load_config(root=tmp_path))
        assert second.render("a", {"x": 2}) == "2"
        assert second.cache.snapshot().entries == 1

    def test_edit_produces_new_entry(self, tmp_path):
        write(tmp_path / "slate.yaml", "cache:\n  enabled: true\n")
        path = write(tmp_path / "templates" / "a.html", "v1")
        engine = Engine.from_config(load_config(root=tmp_path))
        assert engine.render("a") == "v1"

        path.write_text("v2!", encoding="utf-8")
        _bump_mtime(path)

        assert engine.render("a") == "v2!"
        assert engine.cache.snapshot().entries == 2

    def test_env_overrides_config(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SLATE_CACHE", "1")
        write(tmp_path / "templates" / "a.html", "x")

        engine = Engine.from_config(load_config(root=tmp_path))
        assert isinstance(engine.cache, FileCache)
        assert engine.render("a") == "x"
        assert (tmp_path / ".slate-cache").is_dir()
