# SPDX-FileCopyrightText: 2021 Rose Davidson <rose@metaclassical.com>
#
# SPDX-License-Identifier: GPL-3.0-or-later


class CalamusError(Exception):
    pass


class EditorError(CalamusError):
    """A recoverable failure meant to be shown to the user as-is."""


class QuitSignal(EditorError):
    def __init__(self, message: str = "Quit"):
        super().__init__(message)
