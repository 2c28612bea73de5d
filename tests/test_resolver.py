"""Tests for FileSystemResolver: names, folders, fallback, listing."""

from pathlib import Path

import pytest

from slate import Engine
from slate.errors import TemplateNotFoundError
from slate.resolver import FileSystemResolver
from tests.infrastructure.file_utils import write_templates


@pytest.fixture
def layout(tmp_path: Path) -> Path:
    write_templates(tmp_path / "templates", {
        "home": "home",
        "partials/row": "row",
        "shared": "shared-default",
        ".hidden/skip": "x",
        "drafts/wip": "x",
    })
    write_templates(tmp_path / "emails", {
        "welcome": "welcome",
        "shared": "shared-email",
    })
    (tmp_path / "templates" / "notes.txt").write_text("not a template", encoding="utf-8")
    return tmp_path


class TestResolution:

    def test_default_directory(self, layout):
        resolver = FileSystemResolver(layout / "templates")

        assert resolver.resolve("partials/row") == layout / "templates" / "partials" / "row.html"
        assert resolver.exists("home")
        assert not resolver.exists("nope")

    def test_no_extension(self, layout):
        resolver = FileSystemResolver(layout / "templates", extension=None)

        assert resolver.exists("notes.txt")
        assert not resolver.exists("home")

    def test_folder(self, layout):
        resolver = FileSystemResolver(layout / "templates")
        resolver.add_folder("emails", layout / "emails")

        assert resolver.resolve("emails::welcome") == layout / "emails" / "welcome.html"
        assert resolver.resolve("emails::shared").read_text(encoding="utf-8") == "shared-email"

    def test_folder_without_fallback(self, layout):
        resolver = FileSystemResolver(layout / "templates")
        resolver.add_folder("emails", layout / "emails")

        with pytest.raises(TemplateNotFoundError) as exc:
            resolver.resolve("emails::home")
        assert exc.value.paths() == [str(layout / "emails" / "home.html")]

    def test_folder_fallback(self, layout):
        resolver = FileSystemResolver(layout / "templates")
        resolver.add_folder("emails", layout / "emails", fallback=True)

        assert resolver.resolve("emails::home") == layout / "templates" / "home.html"
        assert resolver.resolve("emails::shared") == layout / "emails" / "shared.html"

    def test_unknown_folder(self, layout):
        resolver = FileSystemResolver(layout / "templates")

        with pytest.raises(TemplateNotFoundError, match="is not defined"):
            resolver.resolve("nowhere::home")

    def test_no_default_directory(self):
        with pytest.raises(TemplateNotFoundError):
            FileSystemResolver().resolve("home")

    @pytest.mark.parametrize("name", ["a::b::c", "::b", "a::"])
    def test_invalid_names(self, layout, name):
        resolver = FileSystemResolver(layout / "templates")
        with pytest.raises(ValueError):
            resolver.resolve(name)

    def test_duplicate_folder(self, layout):
        resolver = FileSystemResolver(layout / "templates")
        resolver.add_folder("emails", layout / "emails")

        with pytest.raises(ValueError, match="already being used"):
            resolver.add_folder("emails", layout / "emails")

    def test_missing_folder_directory(self, layout):
        with pytest.raises(ValueError, match="does not exist"):
            FileSystemResolver(layout / "templates").add_folder("x", layout / "missing")

    def test_remove_folder(self, layout):
        resolver = FileSystemResolver(layout / "templates", folders={"emails": (layout / "emails", False)})
        resolver.remove_folder("emails")

        assert not resolver.exists("emails::welcome")

    def test_set_directory(self, layout):
        resolver = FileSystemResolver()
        resolver.set_directory(layout / "emails")
        assert resolver.exists("welcome")

        with pytest.raises(ValueError):
            resolver.set_directory(layout / "missing")


class TestListing:

    def test_iter_names(self, layout):
        resolver = FileSystemResolver(layout / "templates", exclude=["drafts/"])
        resolver.add_folder("emails", layout / "emails")

        assert list(resolver.iter_names()) == [
            "home",
            "shared",
            "partials/row",
            "emails::shared",
            "emails::welcome",
        ]

    def test_exclude_file_pattern(self, layout):
        resolver = FileSystemResolver(layout / "templates", exclude=["row.html", "drafts/"])

        assert "partials/row" not in list(resolver.iter_names())


class TestEngineFolders:

    def test_render_from_folder(self, layout):
        engine = Engine(layout / "templates").add_folder("emails", layout / "emails", fallback=True)
        (layout / "emails" / "page.html").write_text("@include('emails::home')", encoding="utf-8")

        assert engine.render("emails::page") == "home"
