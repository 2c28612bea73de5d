"""
Recursive-descent block parser.

Turns the token stream of the directive lexer into a block tree. All
structural validation happens here: every block must be closed by its own
terminator, intermediate tags (@else, @case, bare @empty) are only legal
inside their construct, and literal section names are checked against the
section rules. Expressions themselves are not inspected; they are Python
and fail when the compiled template is executed.

Grammar (informal):
body       → node*
node       → TEXT | echo | directive | block
block      → opener body (intermediate body)* terminator
switch     → @switch (ws)* (@case body)* [@default body] @endswitch
"""

from __future__ import annotations

import logging
import textwrap
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple

from ..errors import NestedSectionError, ReservedNameError, TemplateSyntaxError
from .expressions import (
    is_identifier,
    literal_int,
    literal_string,
    normalize,
    parse_c_for,
    parse_foreach,
    parse_python_for,
    split_args,
    split_default,
)
from .lexer import DirectiveLexer
from .nodes import (
    Body,
    Branch,
    CallNode,
    CaseNode,
    EachNode,
    EchoNode,
    ErrorNode,
    ForeachNode,
    ForNode,
    IfNode,
    LoopControlNode,
    PythonNode,
    SectionNode,
    SetNode,
    SwitchNode,
    TemplateNode,
    TextNode,
    WhileNode,
)
from .tokens import Token, TokenType

logger = logging.getLogger(__name__)

RESERVED_SECTION = "content"

# Directives compiled to a single call, without a body
CALL_DIRECTIVES: FrozenSet[str] = frozenset({
    "extends", "yield", "stack",
    "include", "includeIf", "includeWhen", "includeUnless", "includeFirst",
    "csrf", "json", "js", "method",
    "lower", "upper", "ucfirst", "ucwords", "format", "sprintf", "wrap",
    "class", "style", "checked", "selected", "disabled", "readonly", "required",
})

# Simple conditionals: opener -> terminator
CONDITIONALS: Dict[str, str] = {
    "unless": "endunless",
    "isset": "endisset",
    "has": "endhas",
    "empty_if": "endempty",
}

SECTION_TERMINATORS: Dict[str, FrozenSet[str]] = {
    "section": frozenset({"endsection", "stop"}),
    "push": frozenset({"endpush"}),
    "prepend": frozenset({"endprepend"}),
}

# Tags that are only meaningful inside an enclosing construct
DEPENDENT_TAGS: FrozenSet[str] = frozenset({
    "elseif", "else", "endif",
    "endunless", "endisset", "endhas", "endempty",
    "case", "default", "endswitch",
    "endforeach", "empty", "endforelse", "endfor", "endwhile",
    "endsection", "stop", "endpush", "endprepend",
})

_ENDERROR = "@enderror"


def directive_key(token: Token) -> str:
    """
    Key a directive token is dispatched on.

    ``@empty(expr)`` and bare ``@empty`` share a keyword; the conditional
    form is keyed as ``empty_if``.
    """
    if token.name == "empty" and token.args is not None:
        return "empty_if"
    return token.name


class BlockParser:
    """
    Block parser for directive templates.

    One instance may be reused; every ``parse`` call starts from a clean
    state.
    """

    def __init__(self):
        self._tokens: List[Token] = []
        self._position = 0
        self._open_sections: List[str] = []
        self._breakable = 0
        self._handlers: Dict[str, Callable[[Token], Optional[TemplateNode]]] = {
            "if": self._parse_if,
            "switch": self._parse_switch,
            "foreach": self._parse_foreach,
            "forelse": self._parse_forelse,
            "for": self._parse_for,
            "while": self._parse_while,
            "each": self._parse_each,
            "break": self._parse_loop_control,
            "continue": self._parse_loop_control,
            "section": self._parse_section,
            "push": self._parse_section,
            "prepend": self._parse_section,
            "set": self._parse_set,
            "unset": self._parse_unset,
            "python": self._parse_python_inline,
        }
        for keyword in CONDITIONALS:
            self._handlers[keyword] = self._parse_conditional

    def parse(self, tokens: List[Token]) -> Body:
        """
        Build the block tree for a token stream.

        Args:
            tokens: Output of the directive lexer (ending with EOF)

        Returns:
            Top-level body

        Raises:
            TemplateSyntaxError: On unbalanced or misplaced directives
            ReservedNameError: On a literal ``content`` section
            NestedSectionError: On a literal section inside another section
        """
        self._tokens = tokens
        self._position = 0
        self._open_sections = []
        self._breakable = 0

        body, _ = self._parse_block(frozenset(), opener=None)
        logger.debug(f"Parsed {len(tokens)} tokens into {len(body)} top-level nodes")
        return body

    # -- token stream --------------------------------------------------------

    def _current(self) -> Token:
        return self._tokens[self._position]

    def _advance(self) -> Token:
        token = self._tokens[self._position]
        if token.type is not TokenType.EOF:
            self._position += 1
        return token

    # -- blocks --------------------------------------------------------------

    def _parse_block(self, terminators: FrozenSet[str], opener: Optional[Token]) -> Tuple[Body, Token]:
        """
        Parse nodes until one of ``terminators`` (consumed and returned).

        With ``opener`` None the block may also end at EOF; otherwise EOF
        means the opener was never closed.
        """
        nodes: List[TemplateNode] = []
        while True:
            token = self._current()
            if token.type is TokenType.EOF:
                if opener is not None:
                    raise TemplateSyntaxError(
                        f"Unclosed @{opener.name} (expected {self._describe(terminators)})",
                        opener.line, opener.column,
                    )
                return tuple(nodes), token
            if token.type is TokenType.DIRECTIVE and directive_key(token) in terminators:
                self._advance()
                return tuple(nodes), token
            node = self._parse_node()
            if node is not None:
                nodes.append(node)

    @staticmethod
    def _describe(terminators: FrozenSet[str]) -> str:
        return " or ".join(f"@{t}" for t in sorted(terminators))

    def _parse_node(self) -> Optional[TemplateNode]:
        token = self._advance()
        kind = token.type

        if kind is TokenType.TEXT:
            return TextNode(token.line, token.value) if token.value else None
        if kind is TokenType.COMMENT:
            return None
        if kind is TokenType.ESCAPED_ECHO:
            return TextNode(token.line, token.value)
        if kind in (TokenType.ECHO, TokenType.RAW_ECHO):
            expr = normalize(token.value)
            if not expr:
                raise TemplateSyntaxError("Empty echo", token.line, token.column)
            return EchoNode(token.line, expr, escaped=kind is TokenType.ECHO)
        if kind is TokenType.ECHO_DEFAULT:
            value, default = split_default(token.value)
            return EchoNode(token.line, normalize(value), default=normalize(default))
        if kind is TokenType.PYTHON_BLOCK:
            code = textwrap.dedent(token.value.strip("\n")).rstrip()
            return PythonNode(token.line, code, block=True) if code else None
        if kind is TokenType.ERROR_BLOCK:
            return self._parse_error_block(token)

        key = directive_key(token)
        if key in DEPENDENT_TAGS:
            raise TemplateSyntaxError(f"Unexpected @{token.name}", token.line, token.column)
        if key in CALL_DIRECTIVES:
            return CallNode(token.line, key, self._args(token))
        handler = self._handlers.get(key)
        if handler is None:
            raise TemplateSyntaxError(f"Unsupported directive @{token.name}", token.line, token.column)
        return handler(token)

    @staticmethod
    def _args(token: Token) -> Tuple[str, ...]:
        return tuple(normalize(arg) for arg in split_args(token.args))

    # -- conditionals --------------------------------------------------------

    def _parse_if(self, token: Token) -> IfNode:
        branches: List[Branch] = []
        marker = token
        while True:
            body, end = self._parse_block(frozenset({"elseif", "else", "endif"}), token)
            kind = "if" if marker is token else "elif"
            branches.append(Branch(kind, self._args(marker)[0], body, marker.line))
            if end.name == "elseif":
                marker = end
                continue
            orelse = None
            if end.name == "else":
                orelse, _ = self._parse_block(frozenset({"endif"}), token)
            return IfNode(token.line, tuple(branches), orelse)

    def _parse_conditional(self, token: Token) -> IfNode:
        key = directive_key(token)
        closer = CONDITIONALS[key]
        body, end = self._parse_block(frozenset({"else", closer}), token)
        orelse = None
        if end.name == "else":
            orelse, _ = self._parse_block(frozenset({closer}), token)
        branch = Branch(key, self._args(token)[0], body, token.line)
        return IfNode(token.line, (branch,), orelse)

    def _parse_error_block(self, token: Token) -> ErrorNode:
        """
        Parse the captured body of ``@error(field) ... @enderror``.

        The body is tokenized separately, with positions relative to the
        enclosing source; a top-level @else splits it into two branches.
        """
        field = self._args(token)[0]
        text = token.parts[0]
        start = len(token.value) - len(_ENDERROR) - len(text)
        prefix = token.value[:start]
        line = token.line + prefix.count("\n")
        column = start - prefix.rfind("\n") if "\n" in prefix else token.column + start

        sub_tokens = DirectiveLexer().tokenize(
            text, offset=token.position + start, line=line, column=column
        )
        saved = self._tokens, self._position
        self._tokens, self._position = sub_tokens, 0
        try:
            body, end = self._parse_block(frozenset({"else"}), opener=None)
            orelse = None
            if end.type is not TokenType.EOF:
                orelse, _ = self._parse_block(frozenset(), opener=None)
        finally:
            self._tokens, self._position = saved

        return ErrorNode(token.line, field, body, orelse)

    def _parse_switch(self, token: Token) -> SwitchNode:
        subject = self._args(token)[0]

        # only whitespace and comments may precede the first branch
        while True:
            current = self._current()
            if current.type is TokenType.TEXT and not current.value.strip():
                self._advance()
            elif current.type is TokenType.COMMENT:
                self._advance()
            else:
                break
        marker = self._current()
        if marker.type is TokenType.EOF:
            raise TemplateSyntaxError("Unclosed @switch (expected @endswitch)", token.line, token.column)
        if marker.type is not TokenType.DIRECTIVE or marker.name not in ("case", "default", "endswitch"):
            raise TemplateSyntaxError(
                "Only @case or @default may follow @switch", marker.line, marker.column
            )
        self._advance()
        if marker.name == "endswitch":
            return SwitchNode(token.line, subject, ())

        cases: List[CaseNode] = []
        self._breakable += 1
        try:
            while True:
                body, end = self._parse_block(frozenset({"case", "default", "endswitch"}), token)
                expr = self._args(marker)[0] if marker.name == "case" else None
                cases.append(CaseNode(expr, body, marker.line))
                if marker.name == "default" and end.name != "endswitch":
                    raise TemplateSyntaxError(
                        "@default must be the last branch of @switch", end.line, end.column
                    )
                if end.name == "endswitch":
                    break
                marker = end
        finally:
            self._breakable -= 1

        return SwitchNode(token.line, subject, tuple(cases))

    # -- loops ---------------------------------------------------------------

    def _loop_body(self, terminators: FrozenSet[str], token: Token) -> Tuple[Body, Token]:
        self._breakable += 1
        try:
            return self._parse_block(terminators, token)
        finally:
            self._breakable -= 1

    def _foreach_header(self, token: Token) -> Tuple[str, str, Optional[str]]:
        header = parse_foreach(token.args or "")
        if header is None or not all(header[:2]):
            raise TemplateSyntaxError(
                f"@{token.name} expects 'items as item' or 'items as key => value'",
                token.line, token.column,
            )
        return header

    def _parse_foreach(self, token: Token) -> ForeachNode:
        iterable, target, key = self._foreach_header(token)
        body, _ = self._loop_body(frozenset({"endforeach"}), token)
        return ForeachNode(token.line, iterable, target, key, body)

    def _parse_forelse(self, token: Token) -> ForeachNode:
        iterable, target, key = self._foreach_header(token)
        body, end = self._loop_body(frozenset({"empty", "endforelse"}), token)
        empty: Body = ()
        if end.name == "empty":
            empty, _ = self._parse_block(frozenset({"endforelse"}), token)
        return ForeachNode(token.line, iterable, target, key, body, empty=empty)

    def _parse_for(self, token: Token) -> TemplateNode:
        header = token.args or ""
        c_style = parse_c_for(header)
        if c_style is not None:
            init, condition, step = c_style
            body, _ = self._loop_body(frozenset({"endfor"}), token)
            return ForNode(token.line, tuple(init), condition, tuple(step), body)

        python_style = parse_python_for(header)
        if python_style is None:
            raise TemplateSyntaxError(
                "@for expects 'init; condition; step' or 'target in iterable'",
                token.line, token.column,
            )
        target, iterable = python_style
        body, _ = self._loop_body(frozenset({"endfor"}), token)
        return ForeachNode(token.line, iterable, target, None, body)

    def _parse_while(self, token: Token) -> WhileNode:
        condition = self._args(token)[0]
        body, _ = self._loop_body(frozenset({"endwhile"}), token)
        return WhileNode(token.line, condition, body)

    def _parse_each(self, token: Token) -> EachNode:
        args = self._args(token)
        empty = args[3] if len(args) > 3 else None
        return EachNode(token.line, args[0], args[1], args[2], empty)

    def _parse_loop_control(self, token: Token) -> LoopControlNode:
        if not self._breakable:
            raise TemplateSyntaxError(
                f"@{token.name} outside of a loop or @switch", token.line, token.column
            )
        args = self._args(token)
        if not args:
            return LoopControlNode(token.line, token.name)

        levels = literal_int(args[0])
        if levels is None:
            return LoopControlNode(token.line, token.name, condition=args[0])
        if levels != 1:
            raise TemplateSyntaxError(
                f"@{token.name}({levels}): only single-level loop control is supported",
                token.line, token.column,
            )
        return LoopControlNode(token.line, token.name)

    # -- sections ------------------------------------------------------------

    def _parse_section(self, token: Token) -> SectionNode:
        args = self._args(token)
        name = args[0]
        literal = literal_string(name)
        if literal == RESERVED_SECTION:
            raise ReservedNameError(RESERVED_SECTION)
        if self._open_sections:
            raise NestedSectionError(literal or name, self._open_sections[-1])

        # inline form: @section('title', value)
        if len(args) == 2:
            if token.name != "section":
                raise TemplateSyntaxError(
                    f"@{token.name} takes a single argument", token.line, token.column
                )
            return SectionNode(token.line, token.name, name, (EchoNode(token.line, args[1]),))

        self._open_sections.append(literal or name)
        try:
            body, _ = self._parse_block(SECTION_TERMINATORS[token.name], token)
        finally:
            self._open_sections.pop()
        return SectionNode(token.line, token.name, name, body)

    # -- variables and raw code ---------------------------------------------

    @staticmethod
    def _target_name(expr: str) -> Tuple[str, bool]:
        """Resolve a @set/@unset target to ``(name, dynamic)``."""
        literal = literal_string(expr)
        if literal is not None and is_identifier(literal):
            return literal, False
        if is_identifier(expr):
            return expr, False
        return expr, True

    def _parse_set(self, token: Token) -> SetNode:
        target, value = self._args(token)
        name, dynamic = self._target_name(target)
        return SetNode(token.line, name, value, dynamic)

    def _parse_unset(self, token: Token) -> SetNode:
        name, dynamic = self._target_name(self._args(token)[0])
        return SetNode(token.line, name, None, dynamic)

    def _parse_python_inline(self, token: Token) -> PythonNode:
        return PythonNode(token.line, normalize(token.args or ""))


def parse(tokens: List[Token]) -> Body:
    """Convenience wrapper: parse ``tokens`` with a fresh parser."""
    return BlockParser().parse(tokens)


__all__ = [
    "BlockParser",
    "RESERVED_SECTION",
    "directive_key",
    "parse",
]
