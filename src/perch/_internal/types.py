"""Shared type aliases used across perch modules."""

from collections.abc import Awaitable, Callable
from typing import Any, TypeAlias

# Route handler: user-defined function; arguments are injected by name
Handler: TypeAlias = Callable[..., Any]

# Error-stage handler: receives (exc, request, next) by name
ErrorHandler: TypeAlias = Callable[..., Any]

# Continuation handed to handlers as ``next``.
# ``await next()`` continues the chain, ``await next(exc)`` enters the error stage.
Next: TypeAlias = Callable[..., Awaitable[Any]]
