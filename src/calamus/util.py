from __future__ import annotations

import inspect
import typing


def invoke(c: typing.Callable, **provided_kwargs):
    sig = inspect.signature(c)
    if any(p.kind is inspect.Parameter.VAR_KEYWORD for p in sig.parameters.values()):
        return c(**provided_kwargs)
    used_kwargs = {k: v for k, v in provided_kwargs.items() if k in sig.parameters}
    return c(**used_kwargs)


async def ainvoke(c: typing.Callable, **provided_kwargs):
    "Call c with whichever of the provided kwargs it accepts, awaiting the result if c turned out to be async."
    result = invoke(c, **provided_kwargs)
    if inspect.isawaitable(result):
        return await result
    return result
