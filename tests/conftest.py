from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Callable, Dict

import pytest

from slate import Engine
from tests.infrastructure.file_utils import write


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    # environment toggles must not leak in from the developer's shell
    monkeypatch.delenv("SLATE_CACHE", raising=False)
    monkeypatch.delenv("SLATE_DEBUG", raising=False)


@pytest.fixture
def templates_dir(tmp_path: Path) -> Path:
    d = tmp_path / "templates"
    d.mkdir()
    return d


@pytest.fixture
def engine(templates_dir: Path) -> Engine:
    return Engine(templates_dir)


@pytest.fixture
def add_template(templates_dir: Path) -> Callable[[str, str], Path]:
    """Write ``<templates>/<name>.html`` from a dedented source."""
    def _add(name: str, source: str) -> Path:
        return write(templates_dir / f"{name}.html", textwrap.dedent(source))
    return _add


@pytest.fixture
def render(engine: Engine, add_template) -> Callable[..., str]:
    """Render a one-off template source through the full engine."""
    counter = {"n": 0}

    def _render(source: str, data: Dict | None = None, /, **kwargs) -> str:
        counter["n"] += 1
        name = f"inline_{counter['n']}"
        add_template(name, source)
        return engine.render(name, {**(data or {}), **kwargs})
    return _render
