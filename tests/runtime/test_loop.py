import pytest

from slate.runtime.loop import Loop


class TestLoop:

    def test_initial_state(self):
        loop = Loop(3)

        assert loop.index == 0
        assert loop.iteration == 1
        assert loop.remaining == 2
        assert loop.first is True
        assert loop.last is False
        assert loop.odd is True
        assert loop.even is False
        assert loop.depth == 1
        assert loop.parent() is None

    def test_walk_to_last(self):
        loop = Loop(3)
        loop.increment()
        loop.increment()

        assert loop.iteration == 3
        assert loop.remaining == 0
        assert loop.first is False
        assert loop.last is True
        assert loop.odd is True

    def test_single_item_is_first_and_last(self):
        loop = Loop(1)
        assert loop.first and loop.last

    def test_nesting(self):
        outer = Loop(2)
        inner = Loop(5, outer)

        assert inner.parent() is outer
        assert inner.depth == 2
        assert Loop(1, inner).depth == 3

    def test_unsized(self):
        loop = Loop(0, sized=False)
        loop.increment()

        assert loop.iteration == 2
        assert loop.remaining is None
        assert loop.last is None
        assert loop.even is True

    def test_negative_count(self):
        with pytest.raises(ValueError):
            Loop(-1)
