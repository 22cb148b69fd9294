# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import collections
import logging
import typing

from ..commontypes import EditorError

logger = logging.getLogger(__name__)

KeyboardMacro = tuple[int, ...]


class KeyboardMacroError(EditorError):
    pass


class AlreadyRecording(KeyboardMacroError):
    def __init__(self):
        super().__init__("Already recording keyboard macro")


class NotRecording(KeyboardMacroError):
    def __init__(self):
        super().__init__("Not recording keyboard macro")


class EmptyMacro(KeyboardMacroError):
    def __init__(self):
        super().__init__("Empty keyboard macro")


class MacroNotDefined(KeyboardMacroError):
    def __init__(self):
        super().__init__("Keyboard macro not defined")


class KeyboardMacroRecorder:
    _keys: typing.Optional[list[int]]

    def __init__(self):
        self._keys = None

    @property
    def recording(self):
        return self._keys is not None

    @property
    def keys(self) -> KeyboardMacro:
        return tuple(self._keys or ())

    def start(self):
        if self._keys is not None:
            self._keys = None
            raise AlreadyRecording()
        logger.debug("Defining keyboard macro")
        self._keys = []

    def record(self, key: int):
        if self._keys is not None:
            self._keys.append(key)

    def stop(self, trailing: int = 0) -> KeyboardMacro:
        """Finish recording, dropping the last `trailing` keys (the ones that asked us to stop)."""
        if self._keys is None:
            raise NotRecording()
        keys = self._keys[: max(0, len(self._keys) - trailing)]
        if not keys:
            raise EmptyMacro()
        self._keys = None
        logger.debug("Keyboard macro defined: %r", keys)
        return tuple(keys)

    def cancel(self):
        if self._keys is not None:
            logger.debug("Keyboard macro definition cancelled")
        self._keys = None


class KeyboardMacroPlayer:
    def __init__(self, macro: KeyboardMacro):
        self.macro = macro
        self._remaining = collections.deque(macro)

    def has_input(self):
        return bool(self._remaining)

    def next_key(self) -> typing.Optional[int]:
        if not self._remaining:
            return None
        return self._remaining.popleft()
