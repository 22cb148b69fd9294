# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import codecs
import collections.abc
import logging
import typing

import msgspec
import pygtrie

from .keys import KeySpec, kbd

logger = logging.getLogger(__name__)


class ByName(msgspec.Struct, frozen=True):
    name: str

    @property
    def identifier(self):
        return self.name


class Inline(msgspec.Struct, frozen=True):
    action: collections.abc.Callable[..., typing.Any]
    name: str = ""

    @property
    def identifier(self):
        return self.name or getattr(self.action, "__name__", repr(self.action))


Binding = ByName | Inline


class Leaf(msgspec.Struct, frozen=True):
    binding: Binding


class Partial(msgspec.Struct, frozen=True):
    pass


class Undefined(msgspec.Struct, frozen=True):
    pass


LookupResult = Leaf | Partial | Undefined

PARTIAL = Partial()
UNDEFINED = Undefined()
SELF_INSERT = ByName("self_insert")


def as_binding(command: str | Binding | collections.abc.Callable[..., typing.Any]) -> Binding:
    match command:
        case ByName() | Inline():
            return command
        case str():
            return ByName(command)
        case _ if callable(command):
            return Inline(command)
    raise TypeError(f"Cannot bind {command!r}")


# A node is either a branch or a leaf, never both. pygtrie would happily store a value on
# an interior node, so bind() prunes whichever side would make a node do double duty.
class Keymap:
    def __init__(self, bindings: typing.Optional[collections.abc.Mapping[KeySpec, typing.Any]] = None):
        self._trie = pygtrie.Trie()
        if bindings is not None:
            for keys, command in bindings.items():
                self.define_key(keys, command)

    def bind(self, key_sequence: collections.abc.Sequence[int], binding: Binding):
        key = tuple(key_sequence)
        if not key:
            raise ValueError("Cannot bind the empty key sequence")
        for i in range(1, len(key)):
            prefix = key[:i]
            if self._trie.has_key(prefix):
                logger.debug("Rebinding %r discards the binding at prefix %r", key, prefix)
                del self._trie[prefix]
        if self._trie.has_subtrie(key):
            del self._trie[key:]
        self._trie[key] = binding

    def define_key(self, keys: KeySpec, command: str | Binding | collections.abc.Callable[..., typing.Any]):
        self.bind(kbd(keys), as_binding(command))

    def unbind(self, key_sequence: collections.abc.Sequence[int]):
        self._trie.pop(tuple(key_sequence), None)

    def lookup(self, key_sequence: collections.abc.Sequence[int]) -> LookupResult:
        key = tuple(key_sequence)
        found = self._trie.has_node(key)
        if found & pygtrie.Trie.HAS_VALUE:
            return Leaf(binding=self._trie[key])
        if found & pygtrie.Trie.HAS_SUBTRIE:
            return PARTIAL
        return UNDEFINED

    def items(self) -> list[tuple[tuple[int, ...], Binding]]:
        return list(self._trie.items())

    def copy(self):
        new = Keymap()
        for key, binding in self._trie.items():
            new._trie[key] = binding
        return new

    def __len__(self):
        return len(self._trie)

    def __eq__(self, other):
        if not isinstance(other, Keymap):
            return NotImplemented
        return dict(self._trie.items()) == dict(other._trie.items())

    def __repr__(self):
        return f"<Keymap with {len(self)} bindings>"


def classify_multibyte(key_sequence: collections.abc.Sequence[int]) -> LookupResult:
    """Treat a run of high bytes as UTF-8 text to be inserted.

    Returns PARTIAL while the bytes are a valid but incomplete encoding, a self_insert leaf
    once they decode to exactly one character, and UNDEFINED otherwise.
    """
    if not key_sequence or not all(0x80 <= code <= 0xFF for code in key_sequence):
        return UNDEFINED
    decoder = codecs.getincrementaldecoder("utf-8")()
    try:
        text = decoder.decode(bytes(key_sequence), final=False)
    except UnicodeDecodeError:
        return UNDEFINED
    pending, _ = decoder.getstate()
    if not text:
        return PARTIAL
    if len(text) == 1 and not pending:
        return Leaf(binding=SELF_INSERT)
    return UNDEFINED
