"""ASGI handler: translates ASGI scope/messages to perch types.

The only component that turns raw ASGI into a Request, walks the
matching handler chains, and sends the Response back through send().
"""

from collections.abc import Callable, Sequence
from typing import Any

from perch._internal.asgi import Receive, Scope, Send
from perch._internal.invoke import build_kwargs, invoke
from perch._internal.types import ErrorHandler
from perch.errors import HTTPError, NotFound
from perch.http.request import Request
from perch.http.response import Response
from perch.routing.route import RouteMatch
from perch.routing.router import Router
from perch.server.errors import handle_http_error, run_error_stage
from perch.server.negotiation import negotiate
from perch.server.sender import send_response


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
    error_handlers: Sequence[ErrorHandler],
    debug: bool,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)

    async def on_error(exc: BaseException, req: Request) -> Response:
        return await run_error_stage(exc, req, error_handlers, debug=debug)

    try:
        response = await dispatch(request, router, on_error)
    except HTTPError as exc:
        response = handle_http_error(exc, request)
    except Exception as exc:
        response = await on_error(exc, request)

    await send_response(response, send)


async def dispatch(
    request: Request,
    router: Router,
    on_error: Callable[[BaseException, Request], Any],
) -> Response:
    """Run the first matching route's chain, falling through on ``next()``.

    When the last handler of a chain calls ``next()``, the next matching
    route (in registration order) takes over. Running out of routes
    raises ``NotFound``.
    """
    matches = router.match_all(request.method, request.path)

    async def next_route() -> Response:
        match = next(matches, None)
        if match is None:
            raise NotFound(f"No route matches {request.method} {request.path!r}")
        return await _run_chain(match, request, next_route, on_error)

    return await next_route()


async def _run_chain(
    match: RouteMatch,
    request: Request,
    fall_through: Callable[[], Any],
    on_error: Callable[[BaseException, Request], Any],
) -> Response:
    """Call a route's handlers in order, each one reaching the rest via ``next``."""
    handlers = match.route.handlers
    request = request.with_path_params(match.path_params)

    async def step(index: int) -> Response:
        async def proceed(exc: BaseException | None = None) -> Response:
            if exc is not None:
                return await on_error(exc, request)
            if index + 1 < len(handlers):
                return await step(index + 1)
            return await fall_through()

        handler = handlers[index]
        kwargs = build_kwargs(
            handler,
            request=request,
            next=proceed,
            path_params=match.path_params,
        )
        result = await invoke(handler, **kwargs)
        if result is None:
            msg = (
                f"Handler {getattr(handler, '__name__', handler)!r} for "
                f"{match.route.path!r} returned None. Return a response or `await next()`."
            )
            raise TypeError(msg)
        return negotiate(result)

    return await step(0)
