"""
Directive compiler: source text -> executable Python text.

Pure and deterministic: the output depends only on the input text and the
fixed Rule Table, so it can be cached by anything that can identify the
source.
"""

from __future__ import annotations

import logging

from ..errors import TemplateSyntaxError
from .codegen import PythonGenerator
from .lexer import DirectiveLexer
from .parser import BlockParser

logger = logging.getLogger(__name__)

# Bumped whenever generated code changes shape; part of the cache identity
COMPILER_VERSION = "3"

HEADER = f"compiled by slate (compiler {COMPILER_VERSION})"


class DirectiveCompiler:
    """Runs lexer, parser and code generator over a template source."""

    def __init__(self):
        self.lexer = DirectiveLexer()
        self.parser = BlockParser()

    def compile(self, source: str, name: str = "") -> str:
        """
        Compile directive source into Python text.

        Args:
            source: Template source
            name: Template name, only used to decorate syntax errors

        Returns:
            Python module text; no directive syntax remains in it

        Raises:
            TemplateSyntaxError: On structural faults
            ReservedNameError: On a literal ``content`` section
            NestedSectionError: On literally nested sections
        """
        try:
            tokens = self.lexer.tokenize(source)
            body = self.parser.parse(tokens)
        except TemplateSyntaxError as e:
            if name:
                raise e.with_template(name)
            raise

        compiled = PythonGenerator().generate(body, header=HEADER)
        logger.debug(f"Compiled {name or '<string>'}: {len(source)} -> {len(compiled)} chars")
        return compiled


def compile_template(source: str, name: str = "") -> str:
    """Compile with a fresh compiler instance."""
    return DirectiveCompiler().compile(source, name)


__all__ = ["COMPILER_VERSION", "DirectiveCompiler", "compile_template"]
