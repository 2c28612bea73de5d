"""
The Rule Table: the fixed, ordered acceptance grammar of the directive language.

At every position of the source the lexer tries the rules below in table
order and the first rule that accepts wins. Order is therefore part of the
language definition:

* comment and escaped-echo rules precede the generic echo rule, which also
  refuses to match right after ``@``;
* multi-line units (``@error ... @enderror``, ``@python ... @endpython``)
  are claimed as a whole before any single-tag rule could see their
  ``@else`` or closing keyword;
* variadic helpers have one rule per arity, most arguments first;
* ``@empty(...)`` (conditional) and bare ``@empty`` (for-else branch) are
  told apart by a lookahead for the opening parenthesis;
* loop rules come last among control-flow rules.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Optional, Pattern, Tuple

from .expressions import split_default
from .tokens import TokenType


class ArgPolicy(enum.Enum):
    """Whether a directive takes a parenthesised argument list."""
    NONE = "none"            # @endif
    REQUIRED = "required"    # @if(...)
    OPTIONAL = "optional"    # @csrf / @csrf(...)


@dataclass(frozen=True)
class DirectiveRule:
    """
    One entry of the Rule Table.

    ``pattern`` is matched at the current lexer position. For DIRECTIVE
    rules it only covers ``@keyword``; the argument list is then consumed
    with a bracket-aware scan and checked against ``min_args``/``max_args``.
    Rules with a ``closer`` (echoes) only match their opening delimiter; the
    body is then scanned up to the closer with string and bracket awareness,
    and ``accept`` may veto the stripped body (used to route echoes).
    """
    name: str
    token_type: TokenType
    pattern: Pattern[str]
    keyword: str = ""
    args: ArgPolicy = ArgPolicy.NONE
    min_args: int = 0
    max_args: Optional[int] = 0
    accept: Optional[Callable[[str], bool]] = None
    closer: Optional[str] = None

    def accepts_arity(self, count: int) -> bool:
        if count < self.min_args:
            return False
        return self.max_args is None or count <= self.max_args


_PAREN_AHEAD = r"(?=[ \t]*\()"
_NO_PAREN_AHEAD = r"(?![ \t]*\()"


def _lexical(name: str, token_type: TokenType, pattern: str, *,
             closer: Optional[str] = None,
             accept: Optional[Callable[[str], bool]] = None) -> DirectiveRule:
    return DirectiveRule(
        name=name,
        token_type=token_type,
        pattern=re.compile(pattern, re.DOTALL),
        accept=accept,
        closer=closer,
    )


def _directive(keyword: str, args: ArgPolicy = ArgPolicy.NONE,
               arity: Tuple[int, Optional[int]] = (0, 0), *,
               name: Optional[str] = None,
               token_type: TokenType = TokenType.DIRECTIVE) -> DirectiveRule:
    if args is ArgPolicy.REQUIRED:
        pattern = rf"@{keyword}\b{_PAREN_AHEAD}"
    else:
        pattern = rf"@{keyword}\b"
    min_args, max_args = arity
    return DirectiveRule(
        name=name or keyword,
        token_type=token_type,
        pattern=re.compile(pattern),
        keyword=keyword,
        args=args,
        min_args=min_args,
        max_args=max_args,
    )


def _variadic(keyword: str, arities: Tuple[int, ...], args: ArgPolicy = ArgPolicy.REQUIRED) -> Tuple[DirectiveRule, ...]:
    """One rule per supported arity, most arguments first."""
    return tuple(
        _directive(keyword, args, (n, n), name=f"{keyword}/{n}")
        for n in sorted(arities, reverse=True)
    )


def _echo_has_default(body: str) -> bool:
    return split_default(body) is not None


R = ArgPolicy.REQUIRED
O = ArgPolicy.OPTIONAL

RULE_TABLE: Tuple[DirectiveRule, ...] = (
    # -- lexical layer -----------------------------------------------------
    _lexical("comment", TokenType.COMMENT, r"\{\{--.*?--\}\}"),
    _lexical("escaped_echo", TokenType.ESCAPED_ECHO, r"@\{\{", closer="}}"),
    _lexical("at_escape", TokenType.TEXT, r"@(@\w+)"),
    _lexical("verbatim", TokenType.TEXT, r"@verbatim\b(.*?)@endverbatim\b"),
    _lexical("raw_echo", TokenType.RAW_ECHO, r"\{!!", closer="!!}"),
    _lexical("echo_default", TokenType.ECHO_DEFAULT, r"(?<!@)\{\{", closer="}}",
             accept=_echo_has_default),
    _lexical("echo", TokenType.ECHO, r"(?<!@)\{\{", closer="}}"),

    # -- multi-line units, claimed before any single tag ---------------------
    _directive("error", R, (1, 1), token_type=TokenType.ERROR_BLOCK),
    DirectiveRule(
        name="python_block",
        token_type=TokenType.PYTHON_BLOCK,
        pattern=re.compile(rf"@python\b{_NO_PAREN_AHEAD}(.*?)@endpython\b", re.DOTALL),
        keyword="python",
    ),

    # -- layout, sections, includes ------------------------------------------
    _directive("extends", R, (1, 2)),
    _directive("section", R, (1, 2)),
    _directive("push", R, (1, 1)),
    _directive("prepend", R, (1, 1)),
    _directive("endsection"),
    _directive("stop"),
    _directive("endpush"),
    _directive("endprepend"),
    _directive("yield", R, (1, 2)),
    _directive("stack", R, (1, 2)),
    _directive("includeIf", R, (1, 2)),
    _directive("includeWhen", R, (2, 3)),
    _directive("includeUnless", R, (2, 3)),
    _directive("includeFirst", R, (1, 2)),
    _directive("include", R, (1, 2)),

    # -- output helpers ----------------------------------------------------
    *_variadic("csrf", (2, 1, 0), O),
    *_variadic("json", (3, 2, 1)),
    *_variadic("js", (3, 2, 1)),
    *_variadic("method", (2, 1)),
    _directive("lower", R, (1, 1)),
    _directive("upper", R, (1, 1)),
    _directive("ucfirst", R, (1, 1)),
    _directive("ucwords", R, (1, 1)),
    _directive("format", R, (1, None)),
    _directive("sprintf", R, (1, None)),
    *_variadic("wrap", (3, 2, 1)),
    _directive("class", R, (1, 1)),
    _directive("style", R, (1, 1)),
    _directive("checked", R, (1, 1)),
    _directive("selected", R, (1, 1)),
    _directive("disabled", R, (1, 1)),
    _directive("readonly", R, (1, 1)),
    _directive("required", R, (1, 1)),
    _directive("set", R, (2, 2)),
    _directive("unset", R, (1, 1)),

    # -- conditionals --------------------------------------------------------
    _directive("isset", R, (1, 1)),
    _directive("endisset"),
    _directive("has", R, (1, 1)),
    _directive("endhas"),
    _directive("unless", R, (1, 1)),
    _directive("endunless"),
    _directive("empty", R, (1, 1), name="empty_if"),
    _directive("endempty"),
    _directive("switch", R, (1, 1)),
    _directive("case", R, (1, 1)),
    _directive("default"),
    _directive("endswitch"),
    _directive("if", R, (1, 1)),
    _directive("elseif", R, (1, 1)),
    _directive("else"),
    _directive("endif"),
    _directive("python", R, (1, 1), name="python_inline"),

    # -- loops: permissive headers, so they go last ---------------------------
    *_variadic("break", (1, 0), O),
    *_variadic("continue", (1, 0), O),
    _directive("foreach", R, (1, None)),
    _directive("endforeach"),
    _directive("forelse", R, (1, None)),
    DirectiveRule(
        name="empty_else",
        token_type=TokenType.DIRECTIVE,
        pattern=re.compile(rf"@empty\b{_NO_PAREN_AHEAD}"),
        keyword="empty",
    ),
    _directive("endforelse"),
    _directive("for", R, (1, None)),
    _directive("endfor"),
    *_variadic("each", (4, 3)),
    _directive("while", R, (1, 1)),
    _directive("endwhile"),
)


def _index_keywords() -> Dict[str, Tuple[DirectiveRule, ...]]:
    index: Dict[str, Tuple[DirectiveRule, ...]] = {}
    for rule in RULE_TABLE:
        if rule.keyword:
            index[rule.keyword] = index.get(rule.keyword, ()) + (rule,)
    return index


#: keyword -> rules for that keyword, in table order
RULES_BY_KEYWORD: Dict[str, Tuple[DirectiveRule, ...]] = _index_keywords()

#: every keyword the table knows about
KEYWORDS: FrozenSet[str] = frozenset(RULES_BY_KEYWORD)

#: characters a non-TEXT token can start with
START_CHARS: FrozenSet[str] = frozenset("@{")


__all__ = [
    "ArgPolicy",
    "DirectiveRule",
    "RULE_TABLE",
    "RULES_BY_KEYWORD",
    "KEYWORDS",
    "START_CHARS",
]
