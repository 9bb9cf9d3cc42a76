"""Response helpers shared by service handlers and the error stage.

Uniform success and error responses, operator-visible error logging,
and an adapter that routes failures of (possibly async) handlers into
the error stage.

Typical wiring::

    app.error(log_errors)
    app.error(send_error_to_client)

    async def fetch_user(request, user_id):
        ...

    routes = {"get": [{"path": "/users/{user_id}", "handlers": [wrap_async(fetch_user)]}]}
"""

import json as json_module
import logging
import traceback
from typing import Any

from perch._internal.invoke import build_kwargs, invoke
from perch._internal.types import Handler, Next
from perch.errors import HTTPError
from perch.http.request import Request
from perch.http.response import JSON_CONTENT_TYPE, Response

logger = logging.getLogger("perch.helpers")

GENERIC_ERROR_PAYLOAD: dict[str, Any] = {"error": {"message": "Something went terribly wrong"}}

INVALID_API_CALL_PAYLOAD: dict[str, Any] = {
    "error": {
        "message": (
            "Invalid use of API. Please check that you have included all the "
            "required parameters in your call."
        )
    }
}


def write_response(status: int, data: Any = None, err: Any = None) -> Response:
    """Build a response with *status* carrying *data*, or *err* when given.

    Errors are JSON-serialized here rather than left to negotiation so
    their wire format stays fixed. Exceptions serialize as
    ``{"message": str(err)}``.
    """
    if err is not None:
        payload = {"message": str(err)} if isinstance(err, BaseException) else err
        return Response(
            body=json_module.dumps(payload, default=str),
            status=status,
            content_type=JSON_CONTENT_TYPE,
        )
    if data is None:
        return Response(status=status)
    if isinstance(data, str | bytes):
        return Response(body=data, status=status)
    return Response.json(data, status=status)


async def log_errors(exc: BaseException, request: Request, next: Next | None = None) -> Any:  # noqa: A002
    """Log *exc* with its stack, then forward it down the error stage."""
    stack = "".join(traceback.format_exception(exc)).rstrip()
    logger.error("Error: %s\r\nStack: %s", exc, stack)
    if next is not None:
        return await next(exc)
    return None


async def send_error_to_client(
    exc: BaseException,
    request: Request,
    next: Next | None = None,  # noqa: A002
) -> Response:
    """Answer 500 with a generic payload, then forward *exc* for diagnostics.

    The message and stack never reach the client. A failure further
    down the error stage is logged and does not replace this response.
    """
    response = Response.json(GENERIC_ERROR_PAYLOAD, status=500)
    if next is not None:
        try:
            await next(exc)
        except Exception:
            logger.exception("Error handler after send_error_to_client failed")
    return response


def send_invalid_api_call(request: Request) -> Response:
    """Answer 400 with the fixed invalid-usage payload."""
    return Response.json(INVALID_API_CALL_PAYLOAD, status=400)


def wrap_async(handler: Handler) -> Handler:
    """Adapt *handler* so any failure is forwarded to the error stage once.

    The wrapped handler may be sync or async. An exception raised while
    it runs is passed to ``next(exc)`` and not retried; ``HTTPError``
    propagates unchanged since it already names its own status.
    """

    async def wrapped(request: Request, next: Next, **path_params: str) -> Any:  # noqa: A002
        kwargs = build_kwargs(handler, request=request, next=next, path_params=path_params)
        try:
            return await invoke(handler, **kwargs)
        except HTTPError:
            raise
        except Exception as exc:
            return await next(exc)

    # Not functools.wraps: __wrapped__ would make signature inspection
    # see the inner handler's parameters instead of these.
    wrapped.__name__ = getattr(handler, "__name__", "wrapped")
    wrapped.__qualname__ = getattr(handler, "__qualname__", wrapped.__name__)
    wrapped.__doc__ = getattr(handler, "__doc__", None)
    return wrapped
