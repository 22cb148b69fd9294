# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import typing

if typing.TYPE_CHECKING:
    from .keymap import Keymap


class KeySource(typing.Protocol):
    async def read_key(self) -> typing.Optional[int]:
        """Block until a key arrives. None means the input has ended."""
        ...

    def read_key_nowait(self) -> typing.Optional[int]:
        """Return a key if one is already pending, otherwise None."""
        ...

    async def wait_input(self, timeout: float) -> bool:
        """Wait up to timeout seconds for input without consuming it."""
        ...


class EchoArea(typing.Protocol):
    def show_message(self, text: str) -> None:
        ...

    def clear_message(self) -> None:
        ...

    def is_message_active(self) -> bool:
        ...


class Display(typing.Protocol):
    def request_redraw(self) -> None:
        ...


class BufferLike(typing.Protocol):
    local_keymap: typing.Optional[Keymap]


class TextContext(typing.Protocol):
    @property
    def current_buffer(self) -> typing.Optional[BufferLike]:
        ...
