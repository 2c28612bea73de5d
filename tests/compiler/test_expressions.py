"""
Tests for the expression-fragment helpers used by the parser.
"""

import pytest

from slate.compiler.expressions import (
    find_closing_paren,
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


class TestSplitArgs:

    def test_empty(self):
        assert split_args(None) == []
        assert split_args("   ") == []

    def test_nested_and_quoted_commas(self):
        assert split_args("'a, b', f(1, 2), [3, 4], {'k': (5, 6)}") == [
            "'a, b'", "f(1, 2)", "[3, 4]", "{'k': (5, 6)}",
        ]

    def test_escaped_quote_in_string(self):
        assert split_args(r"'it\'s, ok', x") == [r"'it\'s, ok'", "x"]


class TestFindClosingParen:

    def test_nested(self):
        text = "(a(b)c)d"
        assert find_closing_paren(text, 0) == 6

    def test_unterminated(self):
        assert find_closing_paren("(a(b)", 0) == -1

    def test_mismatched_bracket(self):
        assert find_closing_paren("(a]", 0) == -1


class TestNormalize:

    @pytest.mark.parametrize("source,expected", [
        ("$name", "name"),
        ("$user->profile->email", "user.profile.email"),
        ("'$literal->kept'", "'$literal->kept'"),
        ("$a + $b", "a + b"),
        ("price$", "price$"),
    ])
    def test_normalize(self, source, expected):
        assert normalize(source) == expected


class TestSplitDefault:

    def test_simple(self):
        assert split_default("$title or 'Untitled'") == ("$title", "'Untitled'")

    def test_first_or_wins(self):
        assert split_default("a or b or c") == ("a", "b or c")

    def test_or_in_call_is_not_top_level(self):
        assert split_default("f(a or b)") is None

    def test_word_containing_or_is_not_a_keyword(self):
        assert split_default("color") is None
        assert split_default("editor_name") is None


class TestLoopHeaders:

    def test_foreach_value(self):
        assert parse_foreach("$users as $user") == ("users", "user", None)

    def test_foreach_key_value(self):
        assert parse_foreach("$map as $key => $value") == ("map", "value", "key")

    def test_foreach_without_as(self):
        assert parse_foreach("$users") is None

    def test_foreach_as_inside_string(self):
        assert parse_foreach("['a as b'] as $x") == ("['a as b']", "x", None)

    def test_c_for(self):
        init, cond, step = parse_c_for("$i = 0; $i < 3; $i++")
        assert init == ["i = 0"]
        assert cond == "i < 3"
        assert step == ["i += 1"]

    def test_c_for_multiple_clauses(self):
        init, cond, step = parse_c_for("$i = 0, $j = 10; $i < $j; ++$i, $j--")
        assert init == ["i = 0", "j = 10"]
        assert step == ["i += 1", "j -= 1"]

    def test_c_for_empty_condition(self):
        _, cond, _ = parse_c_for("i = 0;; i += 1")
        assert cond == "True"

    def test_not_c_for(self):
        assert parse_c_for("x in range(3)") is None

    def test_python_for(self):
        assert parse_python_for("$x in range(3)") == ("x", "range(3)")
        assert parse_python_for("x, y in pairs") == ("x, y", "pairs")
        assert parse_python_for("nothing") is None


class TestLiterals:

    def test_literal_string(self):
        assert literal_string("'title'") == "title"
        assert literal_string('"x"') == "x"
        assert literal_string("name") is None
        assert literal_string("3") is None

    def test_literal_int(self):
        assert literal_int("2") == 2
        assert literal_int("True") is None
        assert literal_int("n") is None

    def test_is_identifier(self):
        assert is_identifier("count")
        assert not is_identifier("a.b")
        assert not is_identifier("1x")
