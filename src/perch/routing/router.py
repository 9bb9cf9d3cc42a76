"""Ordered router with first-registered-wins matching.

Each route compiles to one anchored regex. Matching walks the table in
registration order, so a catch-all registered last only sees requests
that nothing earlier claimed.
"""

import re
from collections.abc import Iterator
from dataclasses import dataclass

from perch.errors import ConfigurationError
from perch.routing.route import PathSegment, Route, RouteMatch

# regex pattern for each supported converter
CONVERTERS: dict[str, str] = {
    "str": r"[^/]+",
    "int": r"\d+",
    "float": r"\d+(?:\.\d+)?",
    "path": r".+",
}

_PARAM_NAME_RE = re.compile(r"^[A-Za-z_]\w*$")


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route path string into segments.

    Examples::

        "/users"             -> [PathSegment("users")]
        "/users/{id:int}"    -> [PathSegment("users"), PathSegment("{id:int}", is_param=True, ...)]
        "/files/{rest:path}" -> [PathSegment("files"), PathSegment("{rest:path}", ...)]
        "*"                  -> [PathSegment("*", is_wildcard=True)]
    """
    segments: list[PathSegment] = []
    for part in path.strip("/").split("/"):
        if not part:
            continue
        if part == "*":
            segments.append(PathSegment(value=part, is_wildcard=True))
        elif part.startswith("{") and part.endswith("}"):
            inner = part[1:-1]
            if ":" in inner:
                param_name, param_type = inner.split(":", 1)
            else:
                param_name, param_type = inner, "str"
            if not _PARAM_NAME_RE.match(param_name):
                msg = f"Invalid parameter name {param_name!r} in route {path!r}"
                raise ConfigurationError(msg)
            if param_type not in CONVERTERS:
                msg = (
                    f"Unknown converter {param_type!r} in route {path!r}. "
                    f"Use one of: {', '.join(sorted(CONVERTERS))}"
                )
                raise ConfigurationError(msg)
            segments.append(
                PathSegment(
                    value=part,
                    is_param=True,
                    param_name=param_name,
                    param_type=param_type,
                )
            )
        elif part.startswith("<") and part.endswith(">"):
            msg = f"Route {path!r} uses <param> syntax; perch expects {{param}}."
            raise ConfigurationError(msg)
        else:
            segments.append(PathSegment(value=part))
    return segments


def _compile(segments: list[PathSegment]) -> re.Pattern[str]:
    """Build an anchored regex over the slash-stripped request path."""
    pattern = ""
    for seg in segments:
        if seg.is_wildcard:
            # Consumes the remainder, including nothing at all
            pattern += "(?:/.*)?" if pattern else ".*"
            break
        if seg.is_param:
            piece = f"(?P<{seg.param_name}>{CONVERTERS[seg.param_type]})"
        else:
            piece = re.escape(seg.value)
        pattern += f"/{piece}" if pattern else piece
    return re.compile(f"^{pattern}$")


def _normalise(path: str) -> str:
    return "/".join(p for p in path.strip("/").split("/") if p)


@dataclass(frozen=True, slots=True)
class _Entry:
    route: Route
    regex: re.Pattern[str]


class Router:
    """Ordered route table.

    Usage::

        router = Router()
        router.add(Route("/users/{id:int}", (show_user,), frozenset({"GET"})))
        router.add(Route("*", (invalid_call,), frozenset({"GET"})))
        router.compile()
        first = next(router.match_all("GET", "/users/42"))
    """

    __slots__ = ("_compiled", "_entries")

    def __init__(self) -> None:
        self._entries: list[_Entry] = []
        self._compiled = False

    def add(self, route: Route) -> None:
        """Append a route. Must be called before compile()."""
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)
        self._entries.append(_Entry(route=route, regex=_compile(parse_path(route.path))))

    @property
    def routes(self) -> list[Route]:
        """All registered routes, in registration order (duplicates kept)."""
        return [entry.route for entry in self._entries]

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    def match_all(self, method: str, path: str) -> Iterator[RouteMatch]:
        """Yield every route matching *method* and *path*, first-registered first."""
        target = _normalise(path)
        for entry in self._entries:
            if method not in entry.route.methods:
                continue
            found = entry.regex.match(target)
            if found is not None:
                yield RouteMatch(route=entry.route, path_params=found.groupdict())
