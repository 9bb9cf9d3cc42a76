"""perch: convention-based route registration for ASGI apps.

Scans a directory of service modules, validates the routes each one
declares, and registers them on a server under an optional prefix.

Basic usage::

    from perch import App, Registry
    from perch.helpers import log_errors, send_error_to_client

    app = App()
    app.error(log_errors)
    app.error(send_error_to_client)

    registry = Registry(app, "services", prefix="/api")
    registry.register_all_verbs()
    registry.install_fallback()
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "DescriptorError",
    "HTTPError",
    "NotFound",
    "PerchError",
    "Registry",
    "RegistryConfig",
    "Request",
    "Response",
    "RouteDescriptor",
    "RouteEntry",
    "ServiceRecord",
    "Verb",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import perch`` fast while providing a clean top-level API.
    """
    if name == "App":
        from perch.app import App

        return App

    if name in ("AppConfig", "RegistryConfig"):
        from perch import config as _config

        return getattr(_config, name)

    if name == "Request":
        from perch.http.request import Request

        return Request

    if name == "Response":
        from perch.http.response import Response

        return Response

    if name in ("Registry", "RouteDescriptor", "RouteEntry", "ServiceRecord", "Verb"):
        from perch import services as _services

        return getattr(_services, name)

    if name in (
        "ConfigurationError",
        "DescriptorError",
        "HTTPError",
        "NotFound",
        "PerchError",
    ):
        from perch import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
