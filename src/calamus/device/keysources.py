# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import collections
import collections.abc
import json
import logging
import pathlib
import typing

import trio
from trio.lowlevel import checkpoint

if typing.TYPE_CHECKING:
    from ..editor.types import KeySource

logger = logging.getLogger(__name__)


class ScriptedKeySource:
    """Serves a fixed list of keys, then reports end of input."""

    def __init__(self, keys: collections.abc.Iterable[int]):
        self._keys = collections.deque(keys)

    @property
    def remaining(self):
        return len(self._keys)

    async def read_key(self) -> typing.Optional[int]:
        await checkpoint()
        return self.read_key_nowait()

    def read_key_nowait(self) -> typing.Optional[int]:
        if not self._keys:
            return None
        return self._keys.popleft()

    async def wait_input(self, timeout: float) -> bool:
        # either a key or the end of input is always immediately available
        await checkpoint()
        return True


class ChannelKeySource:
    """Reads keys from a trio memory channel; closing the sending side ends the input."""

    def __init__(self, channel: trio.MemoryReceiveChannel[int]):
        self._channel = channel
        self._peeked: collections.deque[int] = collections.deque()
        self._closed = False

    async def read_key(self) -> typing.Optional[int]:
        if self._peeked:
            await checkpoint()
            return self._peeked.popleft()
        if self._closed:
            await checkpoint()
            return None
        try:
            return await self._channel.receive()
        except (trio.EndOfChannel, trio.ClosedResourceError):
            self._closed = True
            return None

    def read_key_nowait(self) -> typing.Optional[int]:
        if self._peeked:
            return self._peeked.popleft()
        if self._closed:
            return None
        try:
            return self._channel.receive_nowait()
        except trio.WouldBlock:
            return None
        except (trio.EndOfChannel, trio.ClosedResourceError):
            self._closed = True
            return None

    async def wait_input(self, timeout: float) -> bool:
        if self._peeked or self._closed:
            await checkpoint()
            return True
        with trio.move_on_after(timeout):
            try:
                self._peeked.append(await self._channel.receive())
            except (trio.EndOfChannel, trio.ClosedResourceError):
                self._closed = True
            return True
        return False


class Recorder:
    """Wraps another key source, logging every key read along with when it arrived."""

    def __init__(self, wrapped: KeySource):
        self.wrapped = wrapped
        self.zero_time = None
        self.events: list[tuple[float, int]] = []

    def _log(self, key: typing.Optional[int]):
        if key is not None:
            now = trio.current_time()
            if self.zero_time is None:
                self.zero_time = now
            self.events.append((now - self.zero_time, key))
        return key

    def save_events(self, path: pathlib.Path):
        with path.open("w") as outfile:
            json.dump(self.events, outfile)
        logger.debug("Saved %d keys to %s", len(self.events), path)

    async def read_key(self) -> typing.Optional[int]:
        return self._log(await self.wrapped.read_key())

    def read_key_nowait(self) -> typing.Optional[int]:
        return self._log(self.wrapped.read_key_nowait())

    async def wait_input(self, timeout: float) -> bool:
        return await self.wrapped.wait_input(timeout)


def load_recording(path: pathlib.Path) -> ScriptedKeySource:
    with path.open() as infile:
        events = json.load(infile)
    return ScriptedKeySource(key for _, key in events)
