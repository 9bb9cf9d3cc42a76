"""Route and RouteMatch frozen dataclasses."""

from dataclasses import dataclass

from perch._internal.types import Handler


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route path.

    Static:    ``/users``        (is_param=False)
    Param:     ``/{id}``         (is_param=True, param_name="id")
    Typed:     ``/{id:int}``     (is_param=True, param_name="id", param_type="int")
    Wildcard:  ``/*``            (is_wildcard=True) matches the rest of the path
    """

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"
    is_wildcard: bool = False


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route definition with its ordered handler chain."""

    path: str
    handlers: tuple[Handler, ...]
    methods: frozenset[str]
    name: str | None = None


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    path_params: dict[str, str]
