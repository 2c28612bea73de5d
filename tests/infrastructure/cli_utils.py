"""
Running the command-line entry point in a subprocess.
"""

from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path
from typing import Any

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def run_cli(root: Path, *args: str, env: dict | None = None) -> subprocess.CompletedProcess:
    """
    Run ``python -m slate.cli`` with ``root`` as the working directory.

    The project root is put on PYTHONPATH so the package is importable
    without installation.
    """
    full_env = os.environ.copy()
    full_env["PYTHONPATH"] = os.pathsep.join(
        p for p in (str(PROJECT_ROOT), full_env.get("PYTHONPATH", "")) if p
    )
    full_env.pop("SLATE_CACHE", None)
    full_env.pop("SLATE_DEBUG", None)
    if env:
        full_env.update(env)
    return subprocess.run(
        [sys.executable, "-m", "slate.cli", *args],
        cwd=root, env=full_env, capture_output=True, text=True, encoding="utf-8",
    )


def jload(s: str) -> Any:
    return json.loads(s)


__all__ = ["PROJECT_ROOT", "run_cli", "jload"]
