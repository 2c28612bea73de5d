from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .config import CONFIG_FILE, load_config
from .engine import Engine
from .errors import SlateError, SlateUserError
from .resolver import FileSystemResolver
from .version import tool_version

_yaml = YAML(typ="safe")


def _setup_logging() -> None:
    level = logging.DEBUG if os.environ.get("SLATE_DEBUG") else logging.WARNING
    log = logging.getLogger("slate")
    log.setLevel(level)
    if not log.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        log.addHandler(h)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="slate",
        description="Blade-style directive templates: compile, render, list",
        add_help=True,
    )
    p.add_argument("-v", "--version", action="version", version=f"%(prog)s {tool_version()}")
    p.add_argument("--root", type=Path, default=None, help="project directory (default: current directory)")
    p.add_argument("--config", type=Path, default=None, help=f"config file (default: <root>/{CONFIG_FILE})")
    sub = p.add_subparsers(dest="cmd", required=True)

    sp_compile = sub.add_parser("compile", help="print the compiled Python text of a template")
    sp_compile.add_argument("name", nargs="?", help="template name, e.g. pages/home or emails::welcome")
    sp_compile.add_argument("--all", action="store_true", help="compile every listed template (JSON summary)")

    sp_render = sub.add_parser("render", help="render a template to stdout")
    sp_render.add_argument("name", help="template name")
    sp_render.add_argument("--data", type=Path, default=None, metavar="FILE.yaml", help="bindings (YAML mapping)")

    sub.add_parser("list", help="list discoverable template names (JSON)")
    return p


def _load_data(path: Optional[Path]) -> Dict[str, Any]:
    if path is None:
        return {}
    try:
        raw = _yaml.load(path.read_text(encoding="utf-8"))
    except (OSError, YAMLError) as e:
        raise ValueError(f"Cannot read data file {path}: {e}") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"Data file must contain a mapping: {path}")
    return raw


def _list_names(engine: Engine) -> List[str]:
    if not isinstance(engine.resolver, FileSystemResolver):
        return []
    return list(engine.resolver.iter_names())


def _dumps(data: Any) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2) + "\n"


def main(argv: list[str] | None = None) -> int:
    _setup_logging()
    ns = _build_parser().parse_args(argv)

    try:
        root = (ns.root or Path.cwd()).resolve()
        engine = Engine.from_config(load_config(ns.config, root))

        if ns.cmd == "compile":
            if ns.all:
                names = _list_names(engine)
                for name in names:
                    engine.compile(name)
                sys.stdout.write(_dumps({"compiled": names}))
                return 0
            if not ns.name:
                raise ValueError("compile: a template name or --all is required")
            sys.stdout.write(engine.compile(ns.name))
            return 0

        if ns.cmd == "render":
            sys.stdout.write(engine.render(ns.name, _load_data(ns.data)))
            return 0

        if ns.cmd == "list":
            sys.stdout.write(_dumps({"templates": _list_names(engine)}))
            return 0

    except SlateUserError as e:
        sys.stderr.write(str(e).rstrip() + "\n")
        return 2
    except SlateError as e:
        sys.stderr.write(str(e).rstrip() + "\n")
        return 1
    except ValueError as e:
        sys.stderr.write(str(e).rstrip() + "\n")
        return 2

    return 2


if __name__ == "__main__":
    raise SystemExit(main())
