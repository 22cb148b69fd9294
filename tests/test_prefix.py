import pytest

from calamus.editor.prefix import Minus, PrefixArgumentState, Universal, describe_prefix_arg, prefix_numeric_value


def test_take_current_clears():
    state = PrefixArgumentState()
    assert not state.is_set
    state.set(Universal())
    assert state.is_set
    assert state.take_current() == Universal(4)
    assert state.take_current() is None
    assert not state.is_set


def test_clear():
    state = PrefixArgumentState()
    state.set(7)
    state.clear()
    assert state.value is None


@pytest.mark.parametrize(
    "arg,expected",
    [(None, 1), (Universal(), 4), (Universal(16), 16), (Minus(), -1), (0, 0), (-12, -12)],
)
def test_prefix_numeric_value(arg, expected):
    assert prefix_numeric_value(arg) == expected


@pytest.mark.parametrize(
    "arg,expected",
    [(Universal(), "C-u"), (Universal(64), "C-u(64)"), (Minus(), "C-u(-)"), (5, "C-u(5)"), (-3, "C-u(-3)")],
)
def test_describe_prefix_arg(arg, expected):
    assert describe_prefix_arg(arg) == expected


def test_prefix_numeric_value_rejects_junk():
    with pytest.raises(TypeError):
        prefix_numeric_value("4")
