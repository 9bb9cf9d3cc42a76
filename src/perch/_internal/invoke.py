"""Invoke helpers: call sync or async handlers uniformly.

Handlers can be ``def`` or ``async def`` and declare only the
arguments they need. Anything that calls a user-provided handler goes
through here so the sync/async check and the argument injection live
in exactly one place.

Usage::

    from perch._internal.invoke import build_kwargs, invoke

    kwargs = build_kwargs(handler, request=request, next=next_step)
    result = await invoke(handler, **kwargs)
"""

import inspect
from typing import Any

# Names an error-stage handler may use for the exception argument
_EXC_NAMES = frozenset({"exc", "err", "error"})


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a handler and await the result if it's awaitable."""
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


def build_kwargs(
    handler: Any,
    *,
    request: Any,
    next: Any,  # noqa: A002: mirrors the argument name handlers declare
    path_params: dict[str, str] | None = None,
    exc: BaseException | None = None,
) -> dict[str, Any]:
    """Inspect *handler*'s signature and pick the arguments it asks for.

    Resolution by parameter name:

    1. ``request``
    2. ``next``
    3. ``exc`` / ``err`` / ``error`` (error-stage handlers only)
    4. path parameters, by name; a ``**kwargs`` parameter receives all
       path parameters not already bound
    """
    params = path_params or {}
    sig = inspect.signature(handler)
    kwargs: dict[str, Any] = {}
    takes_var_kw = False

    for name, param in sig.parameters.items():
        if param.kind is inspect.Parameter.VAR_KEYWORD:
            takes_var_kw = True
        elif name == "request":
            kwargs[name] = request
        elif name == "next":
            kwargs[name] = next
        elif exc is not None and name in _EXC_NAMES:
            kwargs[name] = exc
        elif name in params:
            kwargs[name] = params[name]

    if takes_var_kw:
        for name, value in params.items():
            kwargs.setdefault(name, value)

    return kwargs
