"""
Directive lexer.

Walks the source once, left to right. At every position that may start a
special construct it tries the Rule Table in order; anything no rule claims
is collected into TEXT tokens. Unknown ``@words`` (e-mail addresses, CSS
at-rules) are therefore plain text.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Tuple

from ..errors import TemplateSyntaxError
from .expressions import find_closing_paren, find_delimiter, split_args
from .rules import RULE_TABLE, START_CHARS, ArgPolicy, DirectiveRule
from .tokens import Token, TokenType

logger = logging.getLogger(__name__)

_ENDERROR_RE = re.compile(r"@enderror\b")
_HSPACE_RE = re.compile(r"[ \t]*")
_ADDRESS_RE = re.compile(r"@[\w-]+(?:\.[\w-]+)+")


class DirectiveLexer:
    """
    Tokenizer driven by the Rule Table.

    Tracks line and column so that every token (and every error) points back
    into the original source.
    """

    def __init__(self):
        self.text = ""
        self.position = 0
        self.line = 1
        self.column = 1
        self.length = 0

    def tokenize(self, text: str, *, offset: int = 0, line: int = 1, column: int = 1) -> List[Token]:
        """
        Split ``text`` into tokens.

        Args:
            text: Source text
            offset: Absolute offset of ``text`` in the enclosing source
            line: Line of the first character
            column: Column of the first character

        Returns:
            Tokens ending with a single EOF token

        Raises:
            TemplateSyntaxError: On an unterminated argument list or block unit
        """
        self._initialize(text, line, column)
        tokens: List[Token] = []

        while self.position < self.length:
            token = self._match_next_token(offset)
            if token is None:
                token = self._handle_unparsed_content(offset)
            if token.type is TokenType.TEXT and tokens and tokens[-1].type is TokenType.TEXT:
                prev = tokens[-1]
                tokens[-1] = Token(TokenType.TEXT, prev.value + token.value,
                                   prev.position, prev.line, prev.column)
            else:
                tokens.append(token)

        tokens.append(Token(TokenType.EOF, "", offset + self.position, self.line, self.column))
        logger.debug(f"Tokenized text of length {self.length} into {len(tokens)} tokens")
        return tokens

    def _initialize(self, text: str, line: int, column: int) -> None:
        self.text = text
        self.position = 0
        self.line = line
        self.column = column
        self.length = len(text)

    def _match_next_token(self, offset: int) -> Optional[Token]:
        """Try the Rule Table at the current position; first accepting rule wins."""
        if self.text[self.position] not in START_CHARS or self._at_address():
            return None

        arity_miss: Optional[DirectiveRule] = None
        for rule in RULE_TABLE:
            match = rule.pattern.match(self.text, self.position)
            if not match:
                continue

            if rule.closer is not None:
                token = self._emit_delimited(rule, match, offset)
                if token is None:
                    continue
                return token

            if rule.token_type in (TokenType.DIRECTIVE, TokenType.ERROR_BLOCK) and rule.args is not ArgPolicy.NONE:
                token = self._match_directive_args(rule, match, offset)
                if token is None:
                    arity_miss = arity_miss or rule
                    continue
                return token

            return self._emit_lexical(rule, match, offset)

        if arity_miss is not None:
            raise TemplateSyntaxError(
                f"No form of @{arity_miss.keyword} accepts these arguments",
                self.line, self.column,
            )
        return None

    def _at_address(self) -> bool:
        """``info@default.com``: an ``@`` glued to a word and followed by a dotted host."""
        if self.position == 0 or self.text[self.position] != "@":
            return False
        before = self.text[self.position - 1]
        if not (before.isalnum() or before in "_."):
            return False
        return _ADDRESS_RE.match(self.text, self.position) is not None

    def _delimited_end(self, rule: DirectiveRule, match: re.Match) -> Optional[Tuple[int, str]]:
        """End of a delimited construct and its stripped body, or None."""
        closer = find_delimiter(self.text, match.end(), rule.closer)
        if closer < 0:
            # unbalanced expression: close at the first delimiter and let
            # the generated code report it
            closer = self.text.find(rule.closer, match.end())
            if closer < 0:
                return None
        body = self.text[match.end():closer].strip()
        if rule.accept is not None and not rule.accept(body):
            return None
        return closer + len(rule.closer), body

    def _emit_delimited(self, rule: DirectiveRule, match: re.Match, offset: int) -> Optional[Token]:
        found = self._delimited_end(rule, match)
        if found is None:
            return None
        end, body = found
        start, line, column = self.position, self.line, self.column
        matched = self.text[start:end]
        self._advance(end - start)

        # @{{ expr }} keeps its braces
        value = matched[1:] if rule.token_type is TokenType.ESCAPED_ECHO else body
        logger.debug(f"Matched rule {rule.name}: {matched[:40]!r}")
        return Token(rule.token_type, value, offset + start, line, column, name=rule.name)

    def _emit_lexical(self, rule: DirectiveRule, match: re.Match, offset: int) -> Token:
        """Build a token for a rule whose pattern covers the whole construct."""
        start, line, column = self.position, self.line, self.column
        matched = match.group(0)
        self._advance(len(matched))

        if rule.token_type in (TokenType.DIRECTIVE, TokenType.COMMENT):
            value = matched
        else:
            value = match.group(1)

        logger.debug(f"Matched rule {rule.name}: {matched[:40]!r}")
        return Token(rule.token_type, value, offset + start, line, column, name=rule.keyword or rule.name)

    def _match_directive_args(self, rule: DirectiveRule, match: re.Match, offset: int) -> Optional[Token]:
        """
        Consume ``@keyword(args)`` for rules with an argument list.

        Returns None when the rule does not accept the call (wrong arity), so
        that the next rule for the same keyword can be tried.
        """
        after_kw = match.end()
        paren = _HSPACE_RE.match(self.text, after_kw).end()
        has_paren = paren < self.length and self.text[paren] == "("

        if not has_paren:
            if rule.args is ArgPolicy.REQUIRED or not rule.accepts_arity(0):
                return None
            args_text = None
            end = after_kw
        else:
            close = find_closing_paren(self.text, paren)
            if close < 0:
                raise TemplateSyntaxError(
                    f"Unterminated argument list for @{rule.keyword}", self.line, self.column
                )
            args_text = self.text[paren + 1:close]
            end = close + 1

        if not rule.accepts_arity(len(split_args(args_text))):
            return None

        parts: tuple = ()
        if rule.token_type is TokenType.ERROR_BLOCK:
            closing = _ENDERROR_RE.search(self.text, end)
            if closing is None:
                raise TemplateSyntaxError("Unclosed @error block", self.line, self.column)
            parts = (self.text[end:closing.start()],)
            end = closing.end()

        start, line, column = self.position, self.line, self.column
        value = self.text[start:end]
        self._advance(end - start)

        logger.debug(f"Matched rule {rule.name}: {value[:40]!r}")
        return Token(rule.token_type, value, offset + start, line, column,
                     name=rule.keyword, args=args_text, parts=parts)

    def _handle_unparsed_content(self, offset: int) -> Token:
        """
        Collect literal text up to the next position where a rule could match.

        At least one character is consumed so the lexer always makes progress.
        """
        start, line, column = self.position, self.line, self.column
        self._advance(1)
        while self.position < self.length:
            next_special = self._find_next_start_char()
            if next_special < 0:
                self._advance(self.length - self.position)
                break
            self._advance(next_special - self.position)
            if self._could_start_token():
                break
            self._advance(1)

        return Token(TokenType.TEXT, self.text[start:self.position], offset + start, line, column)

    def _find_next_start_char(self) -> int:
        candidates = [self.text.find(ch, self.position) for ch in START_CHARS]
        found = [c for c in candidates if c >= 0]
        return min(found) if found else -1

    def _could_start_token(self) -> bool:
        if self._at_address():
            return False
        for rule in RULE_TABLE:
            match = rule.pattern.match(self.text, self.position)
            if not match:
                continue
            if rule.closer is None or self._delimited_end(rule, match) is not None:
                return True
        return False

    def _advance(self, count: int) -> None:
        """Move forward, keeping line and column in sync."""
        chunk = self.text[self.position:self.position + count]
        newlines = chunk.count("\n")
        if newlines:
            self.line += newlines
            self.column = len(chunk) - chunk.rfind("\n")
        else:
            self.column += len(chunk)
        self.position += len(chunk)


def tokenize(text: str) -> List[Token]:
    """Convenience wrapper: tokenize ``text`` with a fresh lexer."""
    return DirectiveLexer().tokenize(text)


__all__ = ["DirectiveLexer", "tokenize"]
