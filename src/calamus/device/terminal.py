# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import contextlib
import logging
import os
import signal
import sys
import termios
import tty
import typing

import trio

from ..editor.keys import KeyCode
from .keysources import ChannelKeySource

if typing.TYPE_CHECKING:
    from ..editor.buffer import BufferList

logger = logging.getLogger(__name__)

CSI = "\x1b["


@contextlib.contextmanager
def raw_terminal(fd: int):
    saved = termios.tcgetattr(fd)
    tty.setraw(fd)
    try:
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSAFLUSH, saved)


class TerminalKeySource(ChannelKeySource):
    """Each byte read from the terminal is one key; a window resize arrives as KeyCode.RESIZE."""

    def __init__(self, fd: int):
        self.fd = fd
        self._send_channel, receive_channel = trio.open_memory_channel(256)
        super().__init__(receive_channel)

    async def run(self, *, task_status=trio.TASK_STATUS_IGNORED):
        async with self._send_channel, trio.open_nursery() as nursery:
            nursery.start_soon(self._watch_resize, self._send_channel.clone())
            task_status.started()
            stream = trio.lowlevel.FdStream(os.dup(self.fd))
            async with stream:
                while data := await stream.receive_some():
                    for byte in data:
                        await self._send_channel.send(byte)
            logger.debug("Terminal input closed")
            nursery.cancel_scope.cancel()

    async def _watch_resize(self, send_channel: trio.MemorySendChannel[int]):
        with trio.open_signal_receiver(signal.SIGWINCH) as signals:
            async with send_channel:
                async for _ in signals:
                    await send_channel.send(KeyCode.RESIZE)


class TerminalScreen:
    """Echo area and display in one: redraws the whole window with plain ANSI sequences."""

    def __init__(self, buffers: BufferList, outfile: typing.TextIO = sys.stdout):
        self.buffers = buffers
        self.outfile = outfile
        self.message: typing.Optional[str] = None
        self.depth = 0
        self.resize()

    def resize(self):
        try:
            self.columns, self.lines = os.get_terminal_size(self.outfile.fileno())
        except (OSError, ValueError):
            self.columns, self.lines = 80, 24
        logger.debug("Terminal size is %dx%d", self.columns, self.lines)

    def show_message(self, text: str):
        self.message = text

    def clear_message(self):
        self.message = None

    def is_message_active(self) -> bool:
        return self.message is not None

    def mode_line(self) -> str:
        buffer = self.buffers.current_buffer
        if buffer is None:
            return "-- *none*"
        line, column = buffer.line_and_column
        marker = "**" if buffer.modified else "--"
        brackets = "[" * self.depth, "]" * self.depth
        return f"-{marker} {buffer.name}  L{line + 1} C{column}  {brackets[0]}(Fundamental){brackets[1]}"

    def request_redraw(self):
        text_lines = self.lines - 2
        buffer = self.buffers.current_buffer
        out = [CSI + "H", CSI + "2J"]
        cursor = (0, 0)
        if buffer is not None:
            line, column = buffer.line_and_column
            top = max(0, line - text_lines + 1)
            for row in buffer.text.split("\n")[top : top + text_lines]:
                out.append(row[: self.columns] + "\r\n")
            cursor = (line - top, min(column, self.columns - 1))
        out.append(CSI + f"{text_lines + 1};1H" + CSI + "7m" + self.mode_line()[: self.columns].ljust(self.columns) + CSI + "0m")
        out.append(CSI + f"{self.lines};1H" + (self.message or "")[: self.columns])
        out.append(CSI + f"{cursor[0] + 1};{cursor[1] + 1}H")
        self.outfile.write("".join(out))
        self.outfile.flush()

    def clear(self):
        self.outfile.write(CSI + "H" + CSI + "2J")
        self.outfile.flush()
