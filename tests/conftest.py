from __future__ import annotations

import typing

import pytest

from calamus.device.keysources import ScriptedKeySource
from calamus.editor.buffer import Buffer, BufferList
from calamus.editor.commands import CORE_COMMANDS, CommandRegistry, make_global_map
from calamus.editor.controller import Controller
from calamus.editor.editing import EDITING_COMMANDS, EDITING_KEYBINDINGS
from calamus.editor.keys import kbd


class FakeEchoArea:
    def __init__(self):
        self.message: typing.Optional[str] = None
        self.history: list[str] = []

    def show_message(self, text: str):
        self.message = text
        self.history.append(text)

    def clear_message(self):
        self.message = None

    def is_message_active(self):
        return self.message is not None


class FakeDisplay:
    def __init__(self):
        self.redraws = 0

    def request_redraw(self):
        self.redraws += 1


def keys(*notations: str) -> list[int]:
    codes = []
    for notation in notations:
        codes.extend(kbd(notation))
    return codes


class Harness:
    """A controller wired to fakes, with a few commands that note how they were called."""

    def __init__(self, key_source, text: str = "", bindings: typing.Optional[dict] = None, error_pause: float = 0):
        self.calls: list[tuple[str, typing.Any]] = []
        self.echo_area = FakeEchoArea()
        self.display = FakeDisplay()
        self.buffer = Buffer("test", text)
        self.buffers = BufferList(self.buffer)

        self.commands = CommandRegistry()
        self.commands.update(CORE_COMMANDS)
        self.commands.update(EDITING_COMMANDS)
        self.commands.define("quit", self.quit)
        self.commands.define("note_prefix", self.note_prefix)
        self.commands.define("note_depth", self.note_depth)
        self.commands.define("explode", self.explode)

        test_bindings = {
            "C-x C-c": "quit",
            "C-x r": "recursive_edit",
            "C-c C-g": "top_level",
            "C-c p": "note_prefix",
            "C-c d": "note_depth",
            "C-c b": "explode",
        }
        if bindings:
            test_bindings.update(bindings)
        self.controller = Controller(
            key_source=key_source,
            commands=self.commands,
            global_map=make_global_map(EDITING_KEYBINDINGS, test_bindings),
            text_context=self.buffers,
            echo_area=self.echo_area,
            display=self.display,
            echo_delay=1.0,
            error_pause=error_pause,
        )

    def quit(self, prefix_arg):
        self.calls.append(("quit", prefix_arg))

    def note_prefix(self, prefix_arg):
        self.calls.append(("note_prefix", prefix_arg))

    def note_depth(self, controller):
        self.calls.append(("note_depth", controller.recursive_edit_level))

    def explode(self):
        raise RuntimeError("boom")

    async def run(self):
        return await self.controller.run()


@pytest.fixture
def harness():
    def make(
        *notations: str, text: str = "", bindings: typing.Optional[dict] = None, key_source=None, error_pause: float = 0
    ):
        if key_source is None:
            key_source = ScriptedKeySource(keys(*notations))
        return Harness(key_source, text=text, bindings=bindings, error_pause=error_pause)

    return make
