# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import collections.abc
import logging
import typing

from ..commontypes import EditorError, QuitSignal
from .hooks import HookType
from .keymap import SELF_INSERT, Keymap
from .prefix import Minus, Universal, prefix_numeric_value

if typing.TYPE_CHECKING:
    from .controller import Controller
    from .prefix import PrefixArg

logger = logging.getLogger(__name__)

Command = collections.abc.Callable[..., typing.Any]


class UndefinedCommand(EditorError):
    def __init__(self, name: str):
        super().__init__(f"Undefined command: {name}")
        self.name = name


class CommandRegistry:
    def __init__(self):
        self._commands: dict[str, Command] = {}

    def define(self, name: str, body: Command):
        if name in self._commands:
            logger.debug("Redefining command %s", name)
        self._commands[name] = body

    def command(self, name: typing.Optional[str] = None):
        def decorator(body: Command):
            self.define(name or body.__name__, body)
            return body

        return decorator

    def resolve(self, name: str) -> Command:
        try:
            return self._commands[name]
        except KeyError:
            raise UndefinedCommand(name) from None

    def update(self, other: CommandRegistry):
        for name, body in other._commands.items():
            self.define(name, body)

    def names(self):
        return sorted(self._commands)

    def __contains__(self, name: str):
        return name in self._commands


CORE_COMMANDS = CommandRegistry()

PREFIX_COMMANDS = frozenset({"universal_argument", "digit_argument", "negative_argument"})

# While a prefix argument is being typed, bare digits and "-" extend it instead of
# inserting themselves.
UNIVERSAL_ARGUMENT_MAP = Keymap({"-": "negative_argument", "C-u": "universal_argument"})
for _digit in "0123456789":
    UNIVERSAL_ARGUMENT_MAP.define_key(_digit, "digit_argument")


def leave_universal_argument_mode(controller: Controller):
    if controller.overriding_map is UNIVERSAL_ARGUMENT_MAP:
        controller.overriding_map = None
    if _exit_universal_argument_mode in controller.hooks[HookType.PRE_COMMAND]:
        controller.hooks.remove(HookType.PRE_COMMAND, _exit_universal_argument_mode)


def _exit_universal_argument_mode(controller: Controller):
    if controller.this_command not in PREFIX_COMMANDS:
        leave_universal_argument_mode(controller)


def _enter_universal_argument_mode(controller: Controller, value: PrefixArg):
    controller.prefix_arg = value
    controller.overriding_map = UNIVERSAL_ARGUMENT_MAP
    if _exit_universal_argument_mode not in controller.hooks[HookType.PRE_COMMAND]:
        controller.hooks.add(HookType.PRE_COMMAND, _exit_universal_argument_mode)


@CORE_COMMANDS.command()
def universal_argument(controller: Controller, prefix_arg: typing.Optional[PrefixArg]):
    match prefix_arg:
        case Universal(count=count):
            value = Universal(count * 4)
        case None:
            value = Universal()
        case _:
            value = prefix_arg
    _enter_universal_argument_mode(controller, value)


@CORE_COMMANDS.command()
def digit_argument(controller: Controller, prefix_arg: typing.Optional[PrefixArg]):
    digit = (controller.last_key & 0x7F) - ord("0")
    if not 0 <= digit <= 9:
        raise EditorError(f"digit_argument must be bound to a digit key, not {controller.last_key}")
    match prefix_arg:
        case Minus():
            value = -digit
        case int() if prefix_arg < 0:
            value = prefix_arg * 10 - digit
        case int():
            value = prefix_arg * 10 + digit
        case _:
            value = digit
    _enter_universal_argument_mode(controller, value)


@CORE_COMMANDS.command()
def negative_argument(controller: Controller, prefix_arg: typing.Optional[PrefixArg]):
    match prefix_arg:
        case int():
            value = -prefix_arg
        case Minus():
            value = None
        case _:
            value = Minus()
    _enter_universal_argument_mode(controller, value)


@CORE_COMMANDS.command()
def keyboard_quit():
    raise QuitSignal()


@CORE_COMMANDS.command()
def start_kbd_macro(controller: Controller):
    controller.start_keyboard_macro()
    controller.echo_area.show_message("Defining kbd macro...")


@CORE_COMMANDS.command()
def end_kbd_macro(controller: Controller):
    controller.end_keyboard_macro()
    controller.echo_area.show_message("Keyboard macro defined")


@CORE_COMMANDS.command()
async def call_last_kbd_macro(controller: Controller, prefix_arg: typing.Optional[PrefixArg]):
    await controller.call_last_keyboard_macro(prefix_numeric_value(prefix_arg))


@CORE_COMMANDS.command()
async def recursive_edit(controller: Controller):
    await controller.recursive_edit()


@CORE_COMMANDS.command()
def exit_recursive_edit(controller: Controller):
    controller.exit_recursive_edit()


@CORE_COMMANDS.command()
def abort_recursive_edit(controller: Controller):
    controller.abort_recursive_edit()


@CORE_COMMANDS.command()
def top_level(controller: Controller):
    controller.top_level()


CORE_KEYBINDINGS = {
    "C-g": "keyboard_quit",
    "C-u": "universal_argument",
    "M--": "negative_argument",
    "C-x (": "start_kbd_macro",
    "C-x )": "end_kbd_macro",
    "C-x e": "call_last_kbd_macro",
    "C-M-c": "exit_recursive_edit",
    "C-]": "abort_recursive_edit",
}
CORE_KEYBINDINGS.update({f"M-{digit}": "digit_argument" for digit in "0123456789"})


def make_global_map(*overlays: collections.abc.Mapping[str, str] | Keymap) -> Keymap:
    """Build the global keymap: printable ASCII inserts itself, then the core bindings,
    then each overlay in order, later ones winning."""
    global_map = Keymap()
    for code in range(0x20, 0x7F):
        global_map.bind((code,), SELF_INSERT)
    for keys, name in CORE_KEYBINDINGS.items():
        global_map.define_key(keys, name)
    for overlay in overlays:
        if isinstance(overlay, Keymap):
            for key_sequence, binding in overlay.items():
                global_map.bind(key_sequence, binding)
        else:
            for keys, name in overlay.items():
                global_map.define_key(keys, name)
    return global_map
