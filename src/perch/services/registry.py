"""The service route Registry.

Construction scans a services directory (when given), validates every
descriptor, and keeps the results. Later calls register those routes,
or caller-supplied raw descriptors, against the server verb by verb.

Usage::

    app = App()
    app.error(log_errors)
    app.error(send_error_to_client)

    registry = Registry(app, Path(__file__).parent / "services", prefix="/api")
    registry.register_all_verbs()
    registry.install_fallback()
"""

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, TypeAlias

from perch.config import RegistryConfig
from perch.services.discovery import check_directory, discover_services
from perch.services.fallback import install_fallback
from perch.services.types import (
    ALL_VERBS,
    RouteDescriptor,
    RouteEntry,
    RouteServer,
    ServiceRecord,
    Verb,
    server_method,
)
from perch.services.validate import coerce_descriptor

RawDescriptor: TypeAlias = RouteDescriptor | Mapping[Any, Any]


def _default_logger(level: str | None, owner: object) -> logging.Logger:
    """``perch.registry``, or a child of it when *level* is set.

    A configured level goes on a per-registry child so two registries
    never overwrite each other's verbosity. Records still propagate to
    handlers on ``perch.registry``.
    """
    if level is None:
        return logging.getLogger("perch.registry")
    logger = logging.getLogger(f"perch.registry.{id(owner):x}")
    logger.setLevel(level.upper())
    return logger


class Registry:
    """Discovered services plus the operations that register them.

    Attributes:
        server: Anything with ``get``/``post``/``put``/``delete``
            registration methods (see :class:`RouteServer`).
        directory: Resolved services directory, or ``None`` when the
            registry was built for raw registration only.
        prefix: Prepended verbatim to every registered path.
        services: Discovered records, in file-name order. Fixed after
            construction.

    Registration is not idempotent: calling a register method twice
    registers every route twice. Tolerating duplicates is the server's
    business.
    """

    __slots__ = ("config", "directory", "logger", "prefix", "server", "services")

    def __init__(
        self,
        server: RouteServer,
        directory: str | Path | None = None,
        prefix: str | None = None,
        *,
        config: RegistryConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config: RegistryConfig = config or RegistryConfig()
        self.server = server
        self.prefix: str = self.config.prefix if prefix is None else prefix
        self.logger: logging.Logger = logger or _default_logger(self.config.log_level, self)
        self.directory: Path | None = None
        self.services: tuple[ServiceRecord, ...] = ()

        if directory is not None:
            self.directory = check_directory(directory)
            self.services = discover_services(
                self.directory,
                extensions=self.config.extensions,
                hidden_prefixes=self.config.hidden_prefixes,
                logger=self.logger,
            )
            self.logger.info(
                "loaded %d service(s) from %s", len(self.services), self.directory
            )

    @classmethod
    def build(
        cls,
        server: RouteServer,
        directory: str | Path | None = None,
        prefix: str | None = None,
        *,
        config: RegistryConfig | None = None,
        logger: logging.Logger | None = None,
    ) -> "Registry":
        """Build phase of a two-step setup; follow with :meth:`install`.

        Raises ``ConfigurationError`` or ``DescriptorError`` and leaves
        the server untouched when discovery fails.
        """
        return cls(server, directory, prefix, config=config, logger=logger)

    # -- Scanned services --

    def register_verb(self, verb: Verb | str) -> int:
        """Register every discovered route for *verb*; return how many."""
        verb = Verb.parse(verb)
        count = 0
        for record in self.services:
            entries = record.routes.entries(verb)
            if not entries:
                continue
            self.logger.debug("adding %s routes for: %s", verb.value, record.filename)
            count += self._register_entries(verb, entries)
        return count

    def register_all_verbs(self) -> int:
        """Register discovered routes for GET, POST, DELETE, then PUT."""
        return sum(self.register_verb(verb) for verb in ALL_VERBS)

    def add_get_routes(self) -> int:
        return self.register_verb(Verb.GET)

    def add_post_routes(self) -> int:
        return self.register_verb(Verb.POST)

    def add_put_routes(self) -> int:
        return self.register_verb(Verb.PUT)

    def add_delete_routes(self) -> int:
        return self.register_verb(Verb.DELETE)

    # -- Raw descriptors --

    def register_raw(self, descriptor: RawDescriptor, verb: Verb | str) -> int:
        """Register *descriptor*'s routes for one verb, bypassing discovery.

        The descriptor is validated first and never joins ``services``.
        """
        verb = Verb.parse(verb)
        validated = coerce_descriptor(descriptor, source="raw routes")
        return self._register_entries(verb, validated.entries(verb))

    def register_all_raw_verbs(self, descriptor: RawDescriptor) -> int:
        """:meth:`register_raw` across every verb, in registration order."""
        validated = coerce_descriptor(descriptor, source="raw routes")
        return sum(self._register_entries(verb, validated.entries(verb)) for verb in ALL_VERBS)

    # -- Fallback --

    def install_fallback(self, verbs: Iterable[Verb | str] = ALL_VERBS) -> int:
        """Install the invalid-call wildcard. Call after all specific routes."""
        return install_fallback(self.server, verbs)

    def install(self) -> int:
        """Install phase: every discovered route, then the fallback."""
        count = self.register_all_verbs()
        self.install_fallback()
        return count

    # -- Internals --

    def _register_entries(self, verb: Verb, entries: Iterable[RouteEntry]) -> int:
        register = server_method(self.server, verb)
        count = 0
        for entry in entries:
            path = f"{self.prefix}{entry.path}"
            self.logger.debug("%s %s (%d handler(s))", verb.method, path, len(entry.handlers))
            register(path, *entry.handlers)
            count += 1
        return count

    def __repr__(self) -> str:
        return (
            f"Registry(directory={self.directory!s}, prefix={self.prefix!r}, "
            f"services={len(self.services)})"
        )
