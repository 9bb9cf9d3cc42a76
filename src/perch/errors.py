"""perch exception hierarchy.

Shared across discovery, Registry, Router, and the request pipeline so
every module raises and catches the same types.
"""

from dataclasses import dataclass


class PerchError(Exception):
    """Base for all perch-specific errors."""


class ConfigurationError(PerchError):
    """Raised when setup is invalid.

    Covers a bad services directory and invalid route patterns.
    Fatal at construction; nothing partially built is usable.
    """


class DescriptorError(PerchError):
    """Raised when a service's route descriptor is malformed.

    The message names the offending verb and path so broken route
    wiring is caught at startup, not at request time.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(PerchError):
    """An error that maps directly to an HTTP status code.

    Raised by the router or by handlers. The ASGI handler turns these
    into plain status responses without involving the error stage.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818: conventional name in web frameworks
    """404: no route matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)
