"""Route descriptor validation.

Turns whatever a service module exported into a :class:`RouteDescriptor`
and rejects malformed entries eagerly, so broken route wiring stops the
process at startup instead of surfacing at request time.

Accepted entry shapes::

    RouteEntry("/users", (list_users,))
    {"path": "/users", "handlers": [auth, list_users]}
    {"path": "/users", "func": list_users}      # single handler
"""

from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import Any

from perch.errors import DescriptorError
from perch.services.types import RouteDescriptor, RouteEntry, Verb


def _misconfigured(verb: Verb, path: Any, reason: str = "") -> DescriptorError:
    msg = f"Misconfigured {verb.value} route. Route path is '{path}'"
    if reason:
        msg = f"{msg}: {reason}"
    return DescriptorError(msg)


def validate_entry(verb: Verb, entry: RouteEntry) -> None:
    """Raise ``DescriptorError`` unless *entry* has a path and callable handlers."""
    if not entry.path or not isinstance(entry.path, str) or not entry.handlers:
        raise _misconfigured(verb, entry.path)
    for position, handler in enumerate(entry.handlers, start=1):
        if not callable(handler):
            raise _misconfigured(verb, entry.path, f"handler {position} is not callable")


def validate_descriptor(descriptor: RouteDescriptor) -> RouteDescriptor:
    """Check every entry of every verb present; fail on the first bad one."""
    for verb, entries in descriptor.routes.items():
        for entry in entries:
            validate_entry(verb, entry)
    return descriptor


def _coerce_handlers(raw: Any) -> tuple[Any, ...]:
    if raw is None:
        return ()
    if callable(raw):
        return (raw,)
    if isinstance(raw, Sequence) and not isinstance(raw, str | bytes):
        return tuple(raw)
    return (raw,)


def _coerce_entry(verb: Verb, raw: Any) -> RouteEntry:
    if isinstance(raw, RouteEntry):
        return raw
    if not isinstance(raw, Mapping):
        raise _misconfigured(verb, None, f"expected a mapping, got {type(raw).__name__}")
    handlers = raw.get("handlers")
    if handlers is None:
        handlers = raw.get("func", raw.get("handler"))
    return RouteEntry(path=raw.get("path"), handlers=_coerce_handlers(handlers))


def coerce_descriptor(raw: Any, *, source: str = "routes") -> RouteDescriptor:
    """Build and validate a descriptor from a module's ``routes`` export.

    *raw* is a ``RouteDescriptor`` or a mapping from verb (``"get"``,
    ``"GET"`` or ``Verb``) to a sequence of entries. ``None`` for a verb
    means no routes. Any problem raises ``DescriptorError``; the whole
    descriptor is rejected.
    """
    if isinstance(raw, RouteDescriptor):
        return validate_descriptor(raw)
    if not isinstance(raw, Mapping):
        msg = f"{source}: routes must map verbs to route lists, got {type(raw).__name__}"
        raise DescriptorError(msg)

    routes: dict[Verb, tuple[RouteEntry, ...]] = {}
    for key, value in raw.items():
        try:
            verb = Verb.parse(key)
        except ValueError as exc:
            msg = f"{source}: {exc}"
            raise DescriptorError(msg) from exc
        if value is None:
            continue
        if not isinstance(value, Sequence) or isinstance(value, str | bytes):
            msg = f"{source}: {verb.value} routes must be a list, got {type(value).__name__}"
            raise DescriptorError(msg)
        entries = tuple(_coerce_entry(verb, item) for item in value)
        routes[verb] = routes.get(verb, ()) + entries

    return validate_descriptor(RouteDescriptor(routes=MappingProxyType(routes)))
