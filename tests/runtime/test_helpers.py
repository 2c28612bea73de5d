import pytest

from slate.runtime import helpers
from slate.runtime.escape import Markup


class TestAttributeHelpers:

    def test_class_attr(self):
        assert helpers.class_attr(["btn", {"active": True, "hidden": False}]) == 'class="btn active"'

    def test_class_attr_escapes(self):
        assert helpers.class_attr('a"b') == 'class="a&#34;b"'

    def test_style_attr(self):
        result = helpers.style_attr(["color: red", {"font-weight: bold;": True, "display: none": False}])
        assert result == 'style="color: red; font-weight: bold;"'

    @pytest.mark.parametrize("fn,expected", [
        (helpers.checked, 'checked="checked"'),
        (helpers.disabled, 'disabled="disabled"'),
        (helpers.selected, "selected"),
        (helpers.readonly, "readonly"),
        (helpers.required, "required"),
    ])
    def test_boolean_attributes(self, fn, expected):
        assert fn(True) == expected
        assert fn(0) == ""
        assert isinstance(fn(True), Markup)

    def test_csrf_and_method_fields(self):
        assert helpers.csrf_field("t<k") == '<input type="hidden" name="_csrf_token" value="t&lt;k">'
        assert helpers.method_field("PUT") == '<input type="hidden" name="_METHOD" value="PUT">'
        assert helpers.method_field("PUT", "_method") == '<input type="hidden" name="_method" value="PUT">'


class TestJson:

    def test_html_significant_characters_are_escaped(self):
        result = helpers.to_json({"html": "</script><b a='1'>&"})
        assert result == '{"html": "\\u003c/script\\u003e\\u003cb a=\\u00271\\u0027\\u003e\\u0026"}'

    def test_options(self):
        assert helpers.to_json({"b": 1, "a": 2}, sort_keys=True) == '{"a": 2, "b": 1}'
        assert helpers.to_json([1], indent=2) == "[\n  1\n]"

    def test_js_scalars(self):
        assert helpers.to_js("x") == '"x"'
        assert helpers.to_js(None) == "null"
        assert helpers.to_js(1.5) == "1.5"

    def test_js_containers(self):
        assert helpers.to_js({"a": [1, 2]}) == "JSON.parse('{\"a\": [1, 2]}')"
        assert helpers.to_js({"q": "it's"}) == "JSON.parse('{\"q\": \"it\\\\u0027s\"}')"


class TestTextHelpers:

    def test_case_helpers(self):
        assert helpers.lower("ABC") == "abc"
        assert helpers.upper("abc") == "ABC"
        assert helpers.ucfirst("hELLO world") == "Hello world"
        assert helpers.ucwords("hello  big\tWORLD") == "Hello  Big\tWorld"

    def test_sprintf(self):
        assert helpers.sprintf("%s has %d items", "cart", 3) == "cart has 3 items"
        assert helpers.sprintf("100%") == "100%"

    def test_wordwrap(self):
        assert helpers.wordwrap("The quick brown fox", 10) == "The quick\nbrown fox"

    def test_wordwrap_custom_break(self):
        assert helpers.wordwrap("A very long woooooooooooord.", 8, "<br>") == "A very<br>long<br>woooooooooooord."

    def test_wordwrap_cut(self):
        assert helpers.wordwrap("abcdefghij", 4, "\n", True) == "abcd\nefgh\nij"

    def test_wordwrap_keeps_existing_breaks(self):
        assert helpers.wordwrap("one two\nthree", 20) == "one two\nthree"

    def test_wordwrap_cut_needs_width(self):
        with pytest.raises(ValueError):
            helpers.wordwrap("x", 0, "\n", True)
