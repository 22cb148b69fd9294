# SPDX-FileCopyrightText: 2023 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import logging
import pathlib
import typing

from ..commontypes import EditorError

if typing.TYPE_CHECKING:
    from .keymap import Keymap

logger = logging.getLogger(__name__)


# The text is a plain str and the point is an index into it. That is all the command
# loop needs to demonstrate itself; nothing here tries to be clever about large files.
class Buffer:
    def __init__(
        self,
        name: str,
        text: str = "",
        *,
        path: typing.Optional[pathlib.Path] = None,
        local_keymap: typing.Optional[Keymap] = None,
    ):
        self.name = name
        self.text = text
        self.path = path
        self.local_keymap = local_keymap
        self.point = 0
        self.modified = False

    @classmethod
    def visit(cls, path: pathlib.Path):
        text = path.read_text(encoding="utf-8") if path.exists() else ""
        return cls(path.name, text, path=path)

    def insert(self, s: str):
        self.text = self.text[: self.point] + s + self.text[self.point :]
        self.point += len(s)
        self.modified = True

    def delete_char(self, n: int = 1):
        if n < 0:
            return self.backward_delete_char(-n)
        if self.point + n > len(self.text):
            raise EditorError("End of buffer")
        self.text = self.text[: self.point] + self.text[self.point + n :]
        self.modified = True

    def backward_delete_char(self, n: int = 1):
        if n < 0:
            return self.delete_char(-n)
        if self.point - n < 0:
            raise EditorError("Beginning of buffer")
        self.text = self.text[: self.point - n] + self.text[self.point :]
        self.point -= n
        self.modified = True

    def forward_char(self, n: int = 1):
        new_point = self.point + n
        if new_point > len(self.text):
            raise EditorError("End of buffer")
        if new_point < 0:
            raise EditorError("Beginning of buffer")
        self.point = new_point

    def backward_char(self, n: int = 1):
        self.forward_char(-n)

    def beginning_of_line(self):
        self.point = self.text.rfind("\n", 0, self.point) + 1

    def end_of_line(self):
        end = self.text.find("\n", self.point)
        self.point = len(self.text) if end == -1 else end

    @property
    def line_and_column(self) -> tuple[int, int]:
        before = self.text[: self.point]
        return before.count("\n"), self.point - (before.rfind("\n") + 1)

    def save(self):
        if self.path is None:
            raise EditorError(f"Buffer {self.name} is not visiting a file")
        self.path.write_text(self.text, encoding="utf-8")
        self.modified = False
        logger.info("Wrote %s", self.path)


class BufferList:
    def __init__(self, *buffers: Buffer):
        self.buffers: list[Buffer] = list(buffers)
        self._current: typing.Optional[Buffer] = self.buffers[0] if self.buffers else None

    @property
    def current_buffer(self) -> typing.Optional[Buffer]:
        return self._current

    def add(self, buffer: Buffer):
        self.buffers.append(buffer)
        if self._current is None:
            self._current = buffer

    def switch_to(self, buffer: Buffer):
        if buffer not in self.buffers:
            self.buffers.append(buffer)
        self._current = buffer
