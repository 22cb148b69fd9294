from __future__ import annotations

import collections.abc
import enum
import logging
import typing

from ..util import ainvoke

logger = logging.getLogger(__name__)

Hook = collections.abc.Callable[..., typing.Any]


class HookType(enum.Enum):
    PRE_COMMAND = enum.auto()
    POST_COMMAND = enum.auto()


class HookRegistry:
    def __init__(self):
        self._hooks: dict[HookType, list[Hook]] = {hook_type: [] for hook_type in HookType}

    def add(self, hook_type: HookType, hook: Hook):
        self._hooks[hook_type].append(hook)

    def remove(self, hook_type: HookType, hook: Hook):
        self._hooks[hook_type].remove(hook)

    def __getitem__(self, hook_type: HookType) -> tuple[Hook, ...]:
        return tuple(self._hooks[hook_type])

    async def run(self, hook_type: HookType, **kwargs):
        # iterate over a snapshot; a failing hook is detached from the live list
        for hook in tuple(self._hooks[hook_type]):
            try:
                await ainvoke(hook, **kwargs)
            except Exception:
                logger.exception("%s hook %r failed; removing it", hook_type.name, hook)
                if hook in self._hooks[hook_type]:
                    self._hooks[hook_type].remove(hook)
