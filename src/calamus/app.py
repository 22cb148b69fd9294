from __future__ import annotations

import argparse
import logging
import pathlib
import sys
import typing

import trio

from .device.keysources import Recorder, load_recording
from .device.terminal import TerminalKeySource, TerminalScreen, raw_terminal
from .editor.buffer import Buffer, BufferList
from .editor.commands import CORE_COMMANDS, CommandRegistry, make_global_map
from .editor.controller import Controller
from .editor.editing import EDITING_COMMANDS, EDITING_KEYBINDINGS
from .editor.keymap import Inline
from .editor.keys import KeyCode
from .settings import Settings

if typing.TYPE_CHECKING:
    from .editor.types import KeySource

logger = logging.getLogger(__name__)


class Calamus:
    def __init__(self, settings: Settings, key_source: KeySource, screen: TerminalScreen, buffers: BufferList):
        self.settings = settings
        self.key_source = key_source
        self.screen = screen
        self.buffers = buffers
        self._cancel_scope: typing.Optional[trio.CancelScope] = None

        self.commands = CommandRegistry()
        self.commands.update(CORE_COMMANDS)
        self.commands.update(EDITING_COMMANDS)
        self.commands.define("exit_editor", self.exit_editor)

        global_map = make_global_map(EDITING_KEYBINDINGS, {"C-x C-c": "exit_editor"}, settings.keybindings)
        global_map.bind((KeyCode.RESIZE,), Inline(self.handle_resize, "handle_resize"))

        self.controller = Controller(
            key_source=key_source,
            commands=self.commands,
            global_map=global_map,
            text_context=buffers,
            echo_area=screen,
            display=screen,
            echo_delay=settings.echo_delay,
            error_pause=settings.error_pause,
        )

    def exit_editor(self):
        logger.info("Exiting")
        if self._cancel_scope is not None:
            self._cancel_scope.cancel()

    def handle_resize(self):
        self.screen.resize()

    async def track_depth(self):
        async for depth in self.controller.recursive_edit_depth.eventual_values():
            self.screen.depth = depth
            self.screen.request_redraw()

    async def run(self):
        async with trio.open_nursery() as nursery:
            self._cancel_scope = nursery.cancel_scope
            source = self.key_source.wrapped if isinstance(self.key_source, Recorder) else self.key_source
            if isinstance(source, TerminalKeySource):
                await nursery.start(source.run)
            nursery.start_soon(self.track_depth)
            await self.controller.run()
            nursery.cancel_scope.cancel()
        self._cancel_scope = None
        self.screen.clear()
        logger.debug("goodbye")


async def start_calamus(settings: Settings, path: pathlib.Path, record: typing.Optional[pathlib.Path], replay: typing.Optional[pathlib.Path]):
    buffers = BufferList(Buffer.visit(path))
    screen = TerminalScreen(buffers)
    key_source: KeySource
    if replay is not None:
        key_source = load_recording(replay)
    else:
        key_source = TerminalKeySource(sys.stdin.fileno())
    if record is not None:
        key_source = Recorder(key_source)
    app = Calamus(settings, key_source, screen, buffers)
    try:
        await app.run()
    finally:
        if isinstance(key_source, Recorder):
            key_source.save_events(record)


parser = argparse.ArgumentParser(prog="calamus")
parser.add_argument("file", type=pathlib.Path)
parser.add_argument("--settings", type=pathlib.Path, help="JSON settings file")
parser.add_argument("--record", type=pathlib.Path, help="save every key typed to this file")
parser.add_argument("--replay", type=pathlib.Path, help="play back keys saved with --record")


def main(argv=sys.argv):
    """
    Args:
        argv (list): List of arguments

    Returns:
        int: A return code
    """
    parsed = parser.parse_args(argv[1:])
    if parsed.settings is not None and parsed.settings.exists():
        settings = Settings.load(parsed.settings)
    else:
        settings = Settings.default(parsed.settings)
    # stderr belongs to the terminal while we're running
    logging.basicConfig(level=logging.DEBUG, filename=settings.log_path or "calamus.log")
    with raw_terminal(sys.stdin.fileno()):
        trio.run(start_calamus, settings, parsed.file, parsed.record, parsed.replay)
    return 0
