"""
Shared test helpers.

    from tests.infrastructure import write, write_templates, run_cli
"""

from .cli_utils import run_cli, jload
from .file_utils import write, write_templates

__all__ = ["write", "write_templates", "run_cli", "jload"]
