"""perch application class: the server the Registry registers against.

Mutable during setup (route and error-handler registration).
Frozen at runtime when ``__call__()`` is first invoked.
"""

import threading
from collections.abc import Callable

from perch._internal.asgi import Receive, Scope, Send
from perch._internal.types import ErrorHandler, Handler
from perch.config import AppConfig
from perch.errors import ConfigurationError
from perch.routing.route import Route
from perch.routing.router import Router, parse_path
from perch.server.handler import handle_request


class App:
    """A minimal ASGI server with per-verb route registration.

    Routes match first-registered-first. A chain whose last handler
    calls ``await next()`` falls through to the next matching route,
    which is what lets a wildcard registered last catch only the
    requests nothing else claimed.

    Thread safety:
        Setup is single-threaded. The freeze transition uses a Lock +
        double-check so exactly one thread compiles the route table.
    """

    __slots__ = (
        "_error_handlers",
        "_freeze_lock",
        "_frozen",
        "_pending_routes",
        "_router",
        "config",
    )

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self._pending_routes: list[Route] = []
        self._error_handlers: list[ErrorHandler] = []
        self._router: Router | None = None
        self._frozen = False
        self._freeze_lock: threading.Lock = threading.Lock()

    # -- Per-verb registration --

    def get(self, path: str, *handlers: Handler) -> None:
        """Register a GET route with an ordered handler chain."""
        self.add_route(path, handlers, methods=("GET",))

    def post(self, path: str, *handlers: Handler) -> None:
        """Register a POST route with an ordered handler chain."""
        self.add_route(path, handlers, methods=("POST",))

    def put(self, path: str, *handlers: Handler) -> None:
        """Register a PUT route with an ordered handler chain."""
        self.add_route(path, handlers, methods=("PUT",))

    def delete(self, path: str, *handlers: Handler) -> None:
        """Register a DELETE route with an ordered handler chain."""
        self.add_route(path, handlers, methods=("DELETE",))

    def add_route(
        self,
        path: str,
        handlers: tuple[Handler, ...],
        *,
        methods: tuple[str, ...] = ("GET",),
        name: str | None = None,
    ) -> Route:
        """Append a route to the table. Duplicates are kept, not merged."""
        self._check_not_frozen()
        if not handlers:
            msg = f"Route {path!r} needs at least one handler."
            raise ConfigurationError(msg)
        # Fail on bad patterns at registration, not at first request
        parse_path(path)
        route = Route(
            path=path,
            handlers=tuple(handlers),
            methods=frozenset(m.upper() for m in methods),
            name=name,
        )
        self._pending_routes.append(route)
        return route

    def route(
        self,
        path: str,
        *,
        methods: list[str] | None = None,
        name: str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Register a single-handler route via decorator.

        Args:
            path: URL path pattern. Use ``{param}`` for path parameters.
            methods: HTTP methods. Defaults to ``["GET"]``.
            name: Optional route name.
        """

        def decorator(func: Handler) -> Handler:
            self.add_route(path, (func,), methods=tuple(methods or ["GET"]), name=name)
            return func

        return decorator

    def error(self, handler: ErrorHandler) -> ErrorHandler:
        """Append a handler to the error stage. Usable as a decorator.

        Error handlers run in registration order. Each receives any of
        ``exc``, ``request``, ``next`` by name and either returns a
        response or forwards with ``await next(exc)``.
        """
        self._check_not_frozen()
        self._error_handlers.append(handler)
        return handler

    @property
    def routes(self) -> tuple[Route, ...]:
        """Every registered route, in registration order."""
        return tuple(self._pending_routes)

    # -- ASGI --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        self._ensure_frozen()
        assert self._router is not None

        await handle_request(
            scope,
            receive,
            send,
            router=self._router,
            error_handlers=tuple(self._error_handlers),
            debug=self.config.debug,
        )

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Freeze at startup, before the first request, and ack the server."""
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                try:
                    self._ensure_frozen()
                except Exception as exc:
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Freezing --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the route table. MUST only be called while holding _freeze_lock."""
        router = Router()
        for route in self._pending_routes:
            router.add(route)
        router.compile()
        self._router = router
        self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes and error handlers before the first request."
            )
            raise RuntimeError(msg)
