# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later
from __future__ import annotations

import collections.abc
import enum
import typing

ESC = 0x1B
DEL = 0x7F


# Bytes 0x00-0xFF arrive from the terminal as-is. Anything the terminal layer has to
# synthesize gets a code above that range; the values match curses' KEY_* constants.
class KeyCode(enum.IntEnum):
    DOWN = 0o402
    UP = 0o403
    LEFT = 0o404
    RIGHT = 0o405
    HOME = 0o406
    BACKSPACE = 0o407
    DELETECHAR = 0o512
    INSERTCHAR = 0o513
    NEXT = 0o522
    PRIOR = 0o523
    END = 0o550
    RESIZE = 0o632


NAMED_KEYS = {
    0x00: "C-@",
    0x09: "TAB",
    0x0D: "RET",
    ESC: "ESC",
    0x1C: "C-\\",
    0x1D: "C-]",
    0x1E: "C-^",
    0x1F: "C-_",
    0x20: "SPC",
    DEL: "DEL",
}
KEYS_BY_NAME = {name: code for code, name in NAMED_KEYS.items()}
KEYS_BY_NAME["C-SPC"] = 0x00
KEYS_BY_NAME["LFD"] = 0x0A

KeySpec = typing.Union[str, int, collections.abc.Iterable[int]]


def key_name(code: int) -> str:
    if code in NAMED_KEYS:
        return NAMED_KEYS[code]
    if code < 0x20:
        return "C-" + chr(code + 0x60)
    if code < DEL:
        return chr(code)
    if code <= 0xFF:
        return "\\{:o}".format(code)
    try:
        return "<{}>".format(KeyCode(code).name.lower())
    except ValueError:
        return "<{:#x}>".format(code)


def key_sequence_string(key_sequence: collections.abc.Iterable[int]) -> str:
    names = []
    pending_meta = False
    for code in key_sequence:
        if pending_meta:
            names.append("M-" + key_name(code))
            pending_meta = False
        elif code == ESC:
            pending_meta = True
        else:
            names.append(key_name(code))
    if pending_meta:
        names.append(key_name(ESC))
    return " ".join(names)


def _parse_key(token: str) -> list[int]:
    if token in KEYS_BY_NAME:
        return [KEYS_BY_NAME[token]]
    if token.startswith("<") and token.endswith(">") and len(token) > 2:
        try:
            return [KeyCode[token[1:-1].upper().replace("-", "")]]
        except KeyError:
            raise ValueError(f"Unknown key name {token}") from None
    if token.startswith("\\") and len(token) > 1:
        try:
            code = int(token[1:], 8)
        except ValueError:
            raise ValueError(f"Invalid octal key {token}") from None
        if not 0x80 <= code <= 0xFF:
            raise ValueError(f"Octal key {token} out of range")
        return [code]
    if token.startswith("M-") and len(token) > 2:
        return [ESC] + _parse_key(token[2:])
    if token.startswith("C-M-") and len(token) > 4:
        return [ESC] + _parse_key("C-" + token[4:])
    if token.startswith("C-") and len(token) > 2:
        base_codes = _parse_key(token[2:])
        if len(base_codes) != 1:
            raise ValueError(f"Cannot apply control to {token}")
        base = base_codes[0]
        if base == 0x3F:
            return [DEL]
        if 0x40 <= base <= 0x7E:
            return [base & 0x1F]
        raise ValueError(f"Cannot apply control to {token}")
    if len(token) == 1:
        return list(token.encode("utf-8"))
    raise ValueError(f"Invalid key {token!r}")


def parse_key_sequence(notation: str) -> tuple[int, ...]:
    "Parse Emacs-style key notation, such as 'C-x C-c' or 'M-x', into key codes."
    tokens = notation.split()
    if not tokens:
        raise ValueError("Empty key sequence")
    codes: list[int] = []
    for token in tokens:
        codes.extend(_parse_key(token))
    return tuple(codes)


def kbd(keys: KeySpec) -> tuple[int, ...]:
    match keys:
        case str():
            return parse_key_sequence(keys)
        case int():
            return (keys,)
        case _:
            codes = tuple(keys)
            if not all(isinstance(c, int) for c in codes):
                raise TypeError(f"invalid key sequence {keys!r}")
            return codes
