import pytest

from slate.runtime.buffers import BufferStack


class TestBufferStack:

    def setup_method(self):
        self.buffers = BufferStack()

    def test_push_write_pop(self):
        assert self.buffers.push() == 1
        self.buffers.write("a")
        self.buffers.write(1)
        self.buffers.write(None)
        assert self.buffers.pop() == "a1"
        assert self.buffers.level == 0

    def test_empty_stack_errors(self):
        with pytest.raises(IndexError):
            self.buffers.pop()
        with pytest.raises(IndexError):
            self.buffers.write("x")

    def test_unwind(self):
        self.buffers.push()
        self.buffers.push()
        self.buffers.push()
        assert self.buffers.unwind(1) == 2
        assert self.buffers.level == 1
        assert self.buffers.unwind(5) == 0

    def test_capture(self):
        self.buffers.push()
        self.buffers.write("outer ")
        with self.buffers.capture() as captured:
            self.buffers.write("inner")
        assert captured.value == "inner"
        assert self.buffers.pop() == "outer "

    def test_capture_discards_levels_on_error(self):
        self.buffers.push()
        with pytest.raises(RuntimeError):
            with self.buffers.capture():
                self.buffers.push()
                self.buffers.push()
                self.buffers.write("lost")
                raise RuntimeError("boom")
        assert self.buffers.level == 1

    def test_capture_closes_leftover_levels(self):
        with self.buffers.capture() as captured:
            self.buffers.write("kept")
            self.buffers.push()
            self.buffers.write("dropped")
        assert captured.value == "kept"
        assert self.buffers.level == 0
