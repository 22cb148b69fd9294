from __future__ import annotations

import typing

from ..commontypes import EditorError
from .commands import CommandRegistry
from .prefix import prefix_numeric_value

if typing.TYPE_CHECKING:
    from .buffer import Buffer
    from .prefix import PrefixArg

EDITING_COMMANDS = CommandRegistry()

EDITING_KEYBINDINGS = {
    "RET": "newline",
    "C-j": "newline",
    "TAB": "self_insert",
    "C-f": "forward_char",
    "<right>": "forward_char",
    "ESC [ C": "forward_char",
    "C-b": "backward_char",
    "<left>": "backward_char",
    "ESC [ D": "backward_char",
    "C-d": "delete_char",
    "<deletechar>": "delete_char",
    "DEL": "backward_delete_char",
    "C-h": "backward_delete_char",
    "<backspace>": "backward_delete_char",
    "C-a": "beginning_of_line",
    "<home>": "beginning_of_line",
    "C-e": "end_of_line",
    "<end>": "end_of_line",
    "C-x C-s": "save_buffer",
}


def _require(buffer: typing.Optional[Buffer]) -> Buffer:
    if buffer is None:
        raise EditorError("No current buffer")
    return buffer


def decode_keys(keys: tuple[int, ...]) -> str:
    if all(key <= 0xFF for key in keys):
        return bytes(keys).decode("utf-8", errors="replace")
    return "".join(chr(key) for key in keys)


@EDITING_COMMANDS.command()
def self_insert(buffer: typing.Optional[Buffer], keys: tuple[int, ...], prefix_arg: typing.Optional[PrefixArg]):
    n = prefix_numeric_value(prefix_arg)
    if n > 0:
        _require(buffer).insert(decode_keys(keys) * n)


@EDITING_COMMANDS.command()
def newline(buffer: typing.Optional[Buffer], prefix_arg: typing.Optional[PrefixArg]):
    n = prefix_numeric_value(prefix_arg)
    if n > 0:
        _require(buffer).insert("\n" * n)


@EDITING_COMMANDS.command()
def forward_char(buffer: typing.Optional[Buffer], prefix_arg: typing.Optional[PrefixArg]):
    _require(buffer).forward_char(prefix_numeric_value(prefix_arg))


@EDITING_COMMANDS.command()
def backward_char(buffer: typing.Optional[Buffer], prefix_arg: typing.Optional[PrefixArg]):
    _require(buffer).backward_char(prefix_numeric_value(prefix_arg))


@EDITING_COMMANDS.command()
def delete_char(buffer: typing.Optional[Buffer], prefix_arg: typing.Optional[PrefixArg]):
    _require(buffer).delete_char(prefix_numeric_value(prefix_arg))


@EDITING_COMMANDS.command()
def backward_delete_char(buffer: typing.Optional[Buffer], prefix_arg: typing.Optional[PrefixArg]):
    _require(buffer).backward_delete_char(prefix_numeric_value(prefix_arg))


@EDITING_COMMANDS.command()
def beginning_of_line(buffer: typing.Optional[Buffer]):
    _require(buffer).beginning_of_line()


@EDITING_COMMANDS.command()
def end_of_line(buffer: typing.Optional[Buffer]):
    _require(buffer).end_of_line()


@EDITING_COMMANDS.command()
def save_buffer(buffer: typing.Optional[Buffer], controller):
    buffer = _require(buffer)
    buffer.save()
    controller.echo_area.show_message(f"Wrote {buffer.path}")
