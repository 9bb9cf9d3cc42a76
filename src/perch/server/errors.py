"""Error handling pipeline for perch requests.

``HTTPError`` maps straight to its status. Every other failure, raised
or forwarded with ``next(exc)``, runs through the app's error stage:
the registered error handlers in order, each able to forward to the
next one. With no error handlers the failure is logged and answered
with a plain 500.
"""

import logging
from collections.abc import Sequence

from perch._internal.invoke import build_kwargs, invoke
from perch._internal.types import ErrorHandler
from perch.errors import HTTPError
from perch.http.request import Request
from perch.http.response import Response
from perch.server.negotiation import negotiate

logger = logging.getLogger("perch.server")


def handle_http_error(exc: HTTPError, request: Request) -> Response:
    """Map an HTTPError to a plain status response."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)
    resp = Response(body=exc.detail or f"Error {exc.status}", status=exc.status)
    for name, value in exc.headers:
        resp = resp.with_header(name, value)
    return resp


def default_error_response(exc: BaseException, *, debug: bool) -> Response:
    """The response left when no error handler produced one."""
    if isinstance(exc, HTTPError):
        return Response(body=exc.detail or f"Error {exc.status}", status=exc.status)
    if debug:
        return Response(body=f"Internal Server Error: {exc!r}", status=500)
    return Response(body="Internal Server Error", status=500)


async def run_error_stage(
    exc: BaseException,
    request: Request,
    error_handlers: Sequence[ErrorHandler],
    *,
    debug: bool,
) -> Response:
    """Run *exc* through the error handlers and return the final response."""
    if not error_handlers:
        if isinstance(exc, HTTPError):
            return handle_http_error(exc, request)
        logger.error("500 %s %s", request.method, request.path, exc_info=exc)
        return default_error_response(exc, debug=debug)

    async def step(index: int, error: BaseException) -> Response:
        if index == len(error_handlers):
            return default_error_response(error, debug=debug)

        async def forward(forwarded: BaseException | None = None) -> Response:
            return await step(index + 1, forwarded if forwarded is not None else error)

        handler = error_handlers[index]
        kwargs = build_kwargs(handler, request=request, next=forward, exc=error)
        result = await invoke(handler, **kwargs)
        if result is None:
            msg = f"Error handler {getattr(handler, '__name__', handler)!r} returned None"
            raise TypeError(msg)
        return negotiate(result)

    try:
        return await step(0, exc)
    except Exception:
        logger.exception("Error stage failed for %s %s", request.method, request.path)
        return default_error_response(exc, debug=debug)
