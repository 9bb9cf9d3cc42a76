"""Data model for convention-based service routes.

Immutable frozen dataclasses describing what a service module declares
and what the Registry keeps after discovery. Built once at startup.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any, Protocol

from perch._internal.types import Handler


class Verb(StrEnum):
    """The HTTP verbs a route descriptor may declare.

    Values are lowercase so they double as descriptor keys
    (``{"get": [...], "post": [...]}``).
    """

    GET = "get"
    POST = "post"
    PUT = "put"
    DELETE = "delete"

    @property
    def method(self) -> str:
        """The HTTP method name, e.g. ``"GET"``."""
        return self.value.upper()

    @classmethod
    def parse(cls, value: "str | Verb") -> "Verb":
        """Accept ``"get"``, ``"GET"`` or a ``Verb``.

        Raises ``ValueError`` for anything outside the fixed set.
        """
        if isinstance(value, Verb):
            return value
        if isinstance(value, str):
            try:
                return cls(value.lower())
            except ValueError:
                pass
        msg = f"Unsupported verb {value!r}. Use one of: {', '.join(v.value for v in cls)}"
        raise ValueError(msg)


# Registration order for register_all_verbs(); the server matches
# first-registered-first, so this order is part of the contract.
ALL_VERBS: tuple[Verb, ...] = (Verb.GET, Verb.POST, Verb.DELETE, Verb.PUT)


@dataclass(frozen=True, slots=True)
class RouteEntry:
    """One path and its ordered handler chain."""

    path: str
    handlers: tuple[Handler, ...]


@dataclass(frozen=True, slots=True)
class RouteDescriptor:
    """Routes declared by one service, grouped by verb.

    A verb missing from ``routes`` simply has no routes. Build from raw
    module data with :func:`perch.services.validate.coerce_descriptor`.
    """

    routes: Mapping[Verb, tuple[RouteEntry, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def entries(self, verb: Verb) -> tuple[RouteEntry, ...]:
        """Entries for *verb*, or ``()`` when the verb is absent."""
        return self.routes.get(verb, ())

    @property
    def verbs(self) -> tuple[Verb, ...]:
        """Verbs with at least one entry, in declaration order."""
        return tuple(verb for verb, entries in self.routes.items() if entries)

    def __len__(self) -> int:
        return sum(len(entries) for entries in self.routes.values())


@dataclass(frozen=True, slots=True)
class ServiceRecord:
    """A discovered service module and its validated routes."""

    filename: str
    routes: RouteDescriptor


class RouteServer(Protocol):
    """What the Registry needs from a server: one registration method per verb.

    :class:`perch.app.App` satisfies this.
    """

    def get(self, path: str, *handlers: Handler) -> Any: ...

    def post(self, path: str, *handlers: Handler) -> Any: ...

    def put(self, path: str, *handlers: Handler) -> Any: ...

    def delete(self, path: str, *handlers: Handler) -> Any: ...


def server_method(server: RouteServer, verb: Verb) -> Callable[..., Any]:
    """Return the server's registration method for *verb*."""
    table: dict[Verb, Callable[..., Any]] = {
        Verb.GET: server.get,
        Verb.POST: server.post,
        Verb.PUT: server.put,
        Verb.DELETE: server.delete,
    }
    return table[verb]
