# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import enum
import logging
import typing

import msgspec
import trio_util

from ..commontypes import EditorError, QuitSignal
from ..util import ainvoke
from .commands import leave_universal_argument_mode
from .hooks import HookRegistry, HookType
from .keymap import ByName, Inline, Leaf, Partial, Undefined, classify_multibyte
from .keys import key_sequence_string
from .macros import KeyboardMacroPlayer, KeyboardMacroRecorder, MacroNotDefined
from .prefix import PrefixArgumentState, describe_prefix_arg

if typing.TYPE_CHECKING:
    from collections.abc import Sequence

    from .commands import CommandRegistry
    from .keymap import Binding, Keymap, LookupResult
    from .macros import KeyboardMacro
    from .prefix import PrefixArg
    from .types import Display, EchoArea, KeySource, TextContext

logger = logging.getLogger(__name__)

# seconds
ECHO_DELAY = 1.0
ERROR_PAUSE = 2.0


class LoopTag(enum.Enum):
    TOP_LEVEL = enum.auto()
    RECURSIVE_EDIT = enum.auto()


class Finished(msgspec.Struct, frozen=True):
    pass


class QuitRequested(msgspec.Struct, frozen=True):
    pass


LoopResult = Finished | QuitRequested


class LoopExit(Exception):
    """Unwinds to the innermost command loop running under `tag`, which returns `result`.

    The per-iteration error handling in the command loop always re-raises this.
    """

    def __init__(self, tag: LoopTag, result: LoopResult):
        super().__init__(tag, result)
        self.tag = tag
        self.result = result


class Controller:
    key_sequence: list[int]
    this_command_keys: tuple[int, ...]
    overriding_map: typing.Optional[Keymap]
    current_prefix_arg: typing.Optional[PrefixArg]
    last_keyboard_macro: typing.Optional[KeyboardMacro]

    def __init__(
        self,
        *,
        key_source: KeySource,
        commands: CommandRegistry,
        global_map: Keymap,
        text_context: TextContext,
        echo_area: EchoArea,
        display: Display,
        hooks: typing.Optional[HookRegistry] = None,
        echo_delay: float = ECHO_DELAY,
        error_pause: float = ERROR_PAUSE,
    ):
        self.key_source = key_source
        self.commands = commands
        self.global_map = global_map
        self.text_context = text_context
        self.echo_area = echo_area
        self.display = display
        self.hooks = hooks if hooks is not None else HookRegistry()
        self.echo_delay = echo_delay
        self.error_pause = error_pause

        self.key_sequence = []
        self.last_key = None
        self.this_command_keys = ()
        self.this_command = None
        self.last_command = None
        self.overriding_map = None
        self.prefix_arg_state = PrefixArgumentState()
        self.current_prefix_arg = None
        self.recursive_edit_depth = trio_util.AsyncValue(0)
        self.input_exhausted = False
        self._echo_immediately = False

        self.recorder = KeyboardMacroRecorder()
        self.last_keyboard_macro = None
        self._players: list[KeyboardMacroPlayer] = []

    @property
    def prefix_arg(self) -> typing.Optional[PrefixArg]:
        return self.prefix_arg_state.value

    @prefix_arg.setter
    def prefix_arg(self, value: typing.Optional[PrefixArg]):
        self.prefix_arg_state.set(value)

    @property
    def recursive_edit_level(self) -> int:
        return self.recursive_edit_depth.value

    @property
    def recording_keyboard_macro(self):
        return self.recorder.recording

    @property
    def executing_keyboard_macro(self):
        return bool(self._players)

    async def run(self) -> LoopResult:
        """Run the top-level command loop until the live key source runs dry."""
        while True:
            result = await self.command_loop(LoopTag.TOP_LEVEL)
            if self.input_exhausted:
                return result
            logger.debug("Back to top level")

    async def command_loop(self, tag: LoopTag) -> LoopResult:
        try:
            while True:
                try:
                    await self.echo_input()
                    key = await self.read_key()
                    if key is None:
                        self.key_sequence.clear()
                        return Finished()
                    self.echo_area.clear_message()
                    self.last_key = key
                    self.key_sequence.append(key)
                    match self.key_binding(self.key_sequence):
                        case Leaf(binding=binding):
                            await self.execute(binding)
                        case Undefined():
                            keys = key_sequence_string(self.key_sequence)
                            logger.debug("%s is undefined", keys)
                            self.key_sequence.clear()
                            self.reset_prefix_arg()
                            self.echo_area.show_message(f"{keys} is undefined")
                        case Partial():
                            pass
                    self.display.request_redraw()
                except LoopExit:
                    raise
                except Exception as e:
                    await self.recover_from(e)
        except LoopExit as exit_request:
            if exit_request.tag is not tag:
                raise
            return exit_request.result

    def key_binding(self, key_sequence: Sequence[int]) -> LookupResult:
        buffer = self.text_context.current_buffer
        layers = (
            self.overriding_map,
            buffer.local_keymap if buffer is not None else None,
            self.global_map,
        )
        for keymap in layers:
            if keymap is None:
                continue
            result = keymap.lookup(key_sequence)
            if not isinstance(result, Undefined):
                return result
        return classify_multibyte(key_sequence)

    async def execute(self, binding: Binding):
        self.this_command_keys = tuple(self.key_sequence)
        self.key_sequence.clear()
        self.current_prefix_arg = self.prefix_arg_state.take_current()
        match binding:
            case ByName(name=name):
                body = self.commands.resolve(name)
            case Inline(action=action):
                body = action
        command = self.this_command = binding.identifier
        try:
            await self.hooks.run(HookType.PRE_COMMAND, controller=self)
            logger.debug("Executing %s (prefix %r)", self.this_command, self.current_prefix_arg)
            await ainvoke(body, **self.command_kwargs())
        finally:
            await self.hooks.run(HookType.POST_COMMAND, controller=self)
            self.last_command = command
            self.this_command = None

    def command_kwargs(self):
        return dict(
            controller=self,
            prefix_arg=self.current_prefix_arg,
            keys=self.this_command_keys,
            buffer=self.text_context.current_buffer,
        )

    def reset_prefix_arg(self):
        """Forget any pending prefix argument, including the digit keys that extend it."""
        self.prefix_arg_state.clear()
        leave_universal_argument_mode(self)

    async def recover_from(self, e: Exception):
        self.show_exception(e)
        self.key_sequence.clear()
        self.reset_prefix_arg()
        self.recorder.cancel()
        self.display.request_redraw()
        if self.echo_area.is_message_active():
            await self.wait_input(self.error_pause)
            self.echo_area.clear_message()
            self.display.request_redraw()

    def show_exception(self, e: Exception):
        if isinstance(e, EditorError):
            logger.debug("%s: %s", type(e).__name__, e)
            self.echo_area.show_message(str(e))
        else:
            logger.error("Unexpected error in command loop (last command: %s)", self.last_command, exc_info=e)
            self.echo_area.show_message(f"{type(e).__name__}: {e}")

    async def echo_input(self):
        if self.executing_keyboard_macro:
            return
        if not (self.prefix_arg_state.is_set or self.key_sequence):
            self._echo_immediately = False
            return
        if not self._echo_immediately:
            if await self.wait_input(self.echo_delay):
                return
        self._echo_immediately = True
        parts = []
        if self.prefix_arg_state.is_set:
            parts.append(describe_prefix_arg(self.prefix_arg_state.value))
        if self.key_sequence:
            parts.append(key_sequence_string(self.key_sequence))
        self.echo_area.show_message(" ".join(parts) + "-")
        self.display.request_redraw()

    async def wait_input(self, timeout: float) -> bool:
        if self._players:
            return self._players[-1].has_input()
        return await self.key_source.wait_input(timeout)

    async def read_key(self) -> typing.Optional[int]:
        if self._players:
            return self._players[-1].next_key()
        key = await self.key_source.read_key()
        return self._received_live(key)

    def read_key_nowait(self) -> typing.Optional[int]:
        if self._players:
            return self._players[-1].next_key()
        return self._received_live(self.key_source.read_key_nowait(), blocking=False)

    def _received_live(self, key: typing.Optional[int], blocking: bool = True):
        if key is None:
            if blocking:
                self.input_exhausted = True
            return None
        self.recorder.record(key)
        return key

    def received_keyboard_quit(self) -> bool:
        "Drain pending input without blocking, reporting whether a keyboard_quit key was among it."
        quit_binding = Leaf(binding=ByName("keyboard_quit"))
        # poll the live source even during macro playback, or we would eat the macro
        while (key := self._received_live(self.key_source.read_key_nowait(), blocking=False)) is not None:
            if self.global_map.lookup([key]) == quit_binding:
                return True
        return False

    async def recursive_edit(self) -> LoopResult:
        self.recursive_edit_depth.value += 1
        try:
            result = await self.command_loop(LoopTag.RECURSIVE_EDIT)
        finally:
            self.recursive_edit_depth.value -= 1
        if isinstance(result, QuitRequested):
            raise QuitSignal()
        return result

    def _require_recursive_edit(self):
        if self.recursive_edit_level == 0:
            raise EditorError("No recursive edit is in progress")

    def exit_recursive_edit(self):
        self._require_recursive_edit()
        raise LoopExit(LoopTag.RECURSIVE_EDIT, Finished())

    def abort_recursive_edit(self):
        self._require_recursive_edit()
        raise LoopExit(LoopTag.RECURSIVE_EDIT, QuitRequested())

    def top_level(self):
        raise LoopExit(LoopTag.TOP_LEVEL, Finished())

    def start_keyboard_macro(self):
        self.recorder.start()

    def end_keyboard_macro(self) -> KeyboardMacro:
        macro = self.recorder.stop(trailing=len(self.this_command_keys))
        self.last_keyboard_macro = macro
        return macro

    async def execute_keyboard_macro(self, macro: KeyboardMacro, repeat_count: int = 1):
        if repeat_count < 1:
            raise EditorError(f"Invalid repeat count {repeat_count} for keyboard macro")
        for _ in range(repeat_count):
            self._players.append(KeyboardMacroPlayer(macro))
            try:
                await self.recursive_edit()
            finally:
                self._players.pop()

    async def call_last_keyboard_macro(self, repeat_count: int = 1):
        if self.last_keyboard_macro is None:
            raise MacroNotDefined()
        await self.execute_keyboard_macro(self.last_keyboard_macro, repeat_count)
