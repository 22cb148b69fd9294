from __future__ import annotations

import typing

import msgspec


class Universal(msgspec.Struct, frozen=True):
    count: int = 4


class Minus(msgspec.Struct, frozen=True):
    pass


PrefixArg = typing.Union[Universal, Minus, int]


class PrefixArgumentState:
    """The prefix argument pending for the next command.

    Only the commands that set a prefix argument know how successive presses combine;
    this just holds whatever was last set until the dispatch loop takes it.
    """

    def __init__(self):
        self._value: typing.Optional[PrefixArg] = None

    @property
    def value(self) -> typing.Optional[PrefixArg]:
        return self._value

    @property
    def is_set(self):
        return self._value is not None

    def set(self, value: typing.Optional[PrefixArg]):
        self._value = value

    def take_current(self) -> typing.Optional[PrefixArg]:
        value = self._value
        self._value = None
        return value

    def clear(self):
        self._value = None


def prefix_numeric_value(arg: typing.Optional[PrefixArg]) -> int:
    match arg:
        case None:
            return 1
        case Universal(count=count):
            return count
        case Minus():
            return -1
        case int():
            return arg
    raise TypeError(f"not a prefix argument: {arg!r}")


def describe_prefix_arg(arg: PrefixArg) -> str:
    match arg:
        case Universal(count=4):
            return "C-u"
        case Universal(count=count):
            return f"C-u({count})"
        case Minus():
            return "C-u(-)"
        case _:
            return f"C-u({arg})"
