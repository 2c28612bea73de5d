"""
Directive compiler.

Lexer (Rule Table) -> block parser -> Python code generator.
"""

from .compiler import COMPILER_VERSION, DirectiveCompiler, compile_template
from .lexer import DirectiveLexer, tokenize
from .parser import BlockParser, parse
from .rules import RULE_TABLE, ArgPolicy, DirectiveRule
from .tokens import Token, TokenType

__all__ = [
    "COMPILER_VERSION",
    "DirectiveCompiler",
    "compile_template",
    "DirectiveLexer",
    "tokenize",
    "BlockParser",
    "parse",
    "RULE_TABLE",
    "ArgPolicy",
    "DirectiveRule",
    "Token",
    "TokenType",
]
