import pytest

from slate.errors import UnknownFunctionError
from slate.functions import FunctionRegistry


class TestFunctionRegistry:

    def setup_method(self):
        self.registry = FunctionRegistry()

    def test_register_and_get(self):
        self.registry.register("double", lambda x: x * 2)

        assert self.registry.exists("double")
        assert "double" in self.registry
        assert len(self.registry) == 1
        assert self.registry.get("double")(4) == 8

    def test_decorator(self):
        @self.registry.function()
        def shout(s):
            return s.upper()

        @self.registry.function("whisper")
        def _quiet(s):
            return s.lower()

        assert self.registry.names() == ["shout", "whisper"]
        assert shout("a") == "A"

    @pytest.mark.parametrize("name", ["", "1abc", "a-b", "a.b"])
    def test_invalid_names(self, name):
        with pytest.raises(ValueError, match="is not valid"):
            self.registry.register(name, len)

    def test_duplicate(self):
        self.registry.register("f", len)
        with pytest.raises(ValueError, match="already registered"):
            self.registry.register("f", len)

    def test_not_callable(self):
        with pytest.raises(ValueError, match="must be callable"):
            self.registry.register("f", "nope")

    def test_drop(self):
        self.registry.register("f", len)
        self.registry.drop("f")
        assert not self.registry.exists("f")

        with pytest.raises(UnknownFunctionError):
            self.registry.drop("f")

    def test_unknown_lists_available(self):
        self.registry.register("b", len)
        self.registry.register("a", len)

        with pytest.raises(UnknownFunctionError) as exc:
            self.registry.get("zzz")
        assert str(exc.value) == 'The template function "zzz" was not found. Available: a, b'

    def test_bind(self):
        frame = object()
        self.registry.register("plain", lambda x: x)
        self.registry.register("framed", lambda f, x: (f, x), pass_frame=True)

        assert self.registry.bind("plain", frame)(1) == 1
        assert self.registry.bind("framed", frame)(1) == (frame, 1)
