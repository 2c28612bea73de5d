"""
Tests for the directive lexer.

Covers plain text, echoes, comments, directives with and without argument
lists, block units and position tracking.
"""

import pytest

from slate.compiler.lexer import DirectiveLexer, tokenize
from slate.compiler.tokens import TokenType
from slate.errors import TemplateSyntaxError


def types(tokens):
    return [t.type for t in tokens]


class TestDirectiveLexer:

    def test_empty_template(self):
        tokens = tokenize("")

        assert len(tokens) == 1
        assert tokens[0].type == TokenType.EOF
        assert tokens[0].position == 0
        assert tokens[0].line == 1
        assert tokens[0].column == 1

    def test_plain_text(self):
        tokens = tokenize("Hello, world!")

        assert types(tokens) == [TokenType.TEXT, TokenType.EOF]
        assert tokens[0].value == "Hello, world!"

    def test_multiline_text_positions(self):
        tokens = tokenize("Line 1\nLine 2\nLine 3")

        assert tokens[1].line == 3
        assert tokens[1].column == 7

    def test_echo(self):
        tokens = tokenize("Hi {{ $name }}!")

        assert types(tokens) == [TokenType.TEXT, TokenType.ECHO, TokenType.TEXT, TokenType.EOF]
        assert tokens[1].value == "$name"
        assert tokens[1].column == 4

    def test_echo_with_default(self):
        tokens = tokenize("{{ title or 'Untitled' }}")

        assert tokens[0].type == TokenType.ECHO_DEFAULT
        assert tokens[0].value == "title or 'Untitled'"

    def test_or_inside_string_is_not_a_default(self):
        tokens = tokenize("{{ 'this or that' }}")

        assert tokens[0].type == TokenType.ECHO

    def test_raw_echo(self):
        tokens = tokenize("{!! html !!}")

        assert tokens[0].type == TokenType.RAW_ECHO
        assert tokens[0].value == "html"

    def test_escaped_echo_keeps_braces(self):
        tokens = tokenize("@{{ name }}")

        assert tokens[0].type == TokenType.ESCAPED_ECHO
        assert tokens[0].value == "{{ name }}"

    def test_comment(self):
        tokens = tokenize("a{{-- {{ hidden }} @if(x) --}}b")

        assert types(tokens) == [TokenType.TEXT, TokenType.COMMENT, TokenType.TEXT, TokenType.EOF]

    def test_directive_with_args(self):
        tokens = tokenize("@if($a > (b + 1))yes@endif")

        assert tokens[0].type == TokenType.DIRECTIVE
        assert tokens[0].name == "if"
        assert tokens[0].args == "$a > (b + 1)"
        assert tokens[1].value == "yes"
        assert tokens[2].name == "endif"
        assert tokens[2].args is None

    def test_parenthesis_inside_string_argument(self):
        tokens = tokenize("@include('a)b')")

        assert tokens[0].args == "'a)b'"
        assert tokens[1].type == TokenType.EOF

    def test_unknown_at_word_is_text(self):
        tokens = tokenize("mail me@example.com or @media screen")

        assert types(tokens) == [TokenType.TEXT, TokenType.EOF]
        assert tokens[0].value == "mail me@example.com or @media screen"

    def test_address_with_keyword_host_is_text(self):
        tokens = tokenize("info@default.com and x@csrf.io")

        assert types(tokens) == [TokenType.TEXT, TokenType.EOF]

    def test_echo_body_is_scanned_past_strings(self):
        tokens = tokenize("{{ '}}' }} tail")

        assert tokens[0].type == TokenType.ECHO
        assert tokens[0].value == "'}}'"
        assert tokens[1].value == " tail"

    def test_unbalanced_echo_closes_at_first_delimiter(self):
        tokens = tokenize("{{ x[ }} tail")

        assert tokens[0].value == "x["
        assert tokens[1].value == " tail"

    def test_unclosed_echo_is_text(self):
        tokens = tokenize("a {{ b")

        assert types(tokens) == [TokenType.TEXT, TokenType.EOF]

    def test_for_header_commas_are_not_arguments(self):
        tokens = tokenize("@for($i = 0, $j = 1; $i < 2; $i++, $j++)")

        assert tokens[0].name == "for"
        assert tokens[0].args == "$i = 0, $j = 1; $i < 2; $i++, $j++"


    def test_double_at_escapes_directive(self):
        tokens = tokenize("@@if(x)")

        assert tokens[0].type == TokenType.TEXT
        assert tokens[0].value.startswith("@if")

    def test_verbatim_is_text(self):
        tokens = tokenize("@verbatim{{ x }} @if(y)@endverbatim")

        assert types(tokens) == [TokenType.TEXT, TokenType.EOF]
        assert tokens[0].value == "{{ x }} @if(y)"

    def test_keyword_prefix_is_not_a_directive(self):
        # @iffy is not @if
        tokens = tokenize("@iffy")

        assert types(tokens) == [TokenType.TEXT, TokenType.EOF]

    def test_directive_line_and_column(self):
        tokens = tokenize("one\n  @foreach($xs as $x)\n@endforeach")

        foreach = tokens[1]
        assert foreach.name == "foreach"
        assert foreach.line == 2
        assert foreach.column == 3
        assert tokens[-2].name == "endforeach"
        assert tokens[-2].line == 3

    def test_error_block_is_one_token(self):
        tokens = tokenize("@error('email')<b>{{ message }}</b>@enderror")

        assert tokens[0].type == TokenType.ERROR_BLOCK
        assert tokens[0].args == "'email'"
        assert tokens[0].parts == ("<b>{{ message }}</b>",)
        assert tokens[1].type == TokenType.EOF

    def test_unclosed_error_block(self):
        with pytest.raises(TemplateSyntaxError, match="Unclosed @error"):
            tokenize("@error('x') no end")

    def test_python_block(self):
        tokens = tokenize("@python\nx = 1\n@endpython")

        assert tokens[0].type == TokenType.PYTHON_BLOCK
        assert tokens[0].value == "\nx = 1\n"

    def test_python_inline_is_a_directive(self):
        tokens = tokenize("@python(x = 1)")

        assert tokens[0].type == TokenType.DIRECTIVE
        assert tokens[0].name == "python"
        assert tokens[0].args == "x = 1"

    def test_unterminated_argument_list(self):
        with pytest.raises(TemplateSyntaxError, match="Unterminated argument list for @if") as exc:
            tokenize("text\n@if($a")

        assert exc.value.line == 2
        assert exc.value.column == 1

    def test_adjacent_text_is_merged(self):
        tokens = tokenize("a @unknown b @@c d")

        assert types(tokens) == [TokenType.TEXT, TokenType.EOF]

    def test_tokenize_with_offset(self):
        tokens = DirectiveLexer().tokenize("{{ x }}", offset=10, line=4, column=5)

        assert tokens[0].position == 10
        assert tokens[0].line == 4
        assert tokens[0].column == 5
