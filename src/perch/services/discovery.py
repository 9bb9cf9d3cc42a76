"""Filesystem discovery of service modules.

Lists one directory (no recursion) and loads every eligible file as an
isolated module. A module takes part by exporting routes in one of two
ways::

    # direct export: a mapping, or a zero-argument function returning one
    routes = {"get": [{"path": "/users", "handlers": [list_users]}]}

    # wrapped export: an object carrying ``routes``
    service = UserService()      # UserService.routes -> mapping

Modules exporting neither are ignored. Every export is validated; the
first malformed descriptor aborts the whole scan.
"""

import importlib.util
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from types import ModuleType
from typing import Any

from perch.errors import ConfigurationError
from perch.services.types import ServiceRecord
from perch.services.validate import coerce_descriptor

_log = logging.getLogger("perch.discovery")


def check_directory(path: str | Path) -> Path:
    """Resolve *path*, insisting it names an existing directory."""
    if not str(path) or not Path(path).exists():
        msg = f"Invalid services directory passed to Registry: {path!s}"
        raise ConfigurationError(msg)
    if not Path(path).is_dir():
        msg = f"Invalid services directory passed to Registry - it needs to be a directory: {path!s}"
        raise ConfigurationError(msg)
    return Path(path).resolve()


def is_eligible(
    name: str,
    *,
    extensions: Sequence[str] = (".py",),
    hidden_prefixes: Sequence[str] = (".",),
) -> bool:
    """Whether a file name looks like a loadable service module.

    Names starting with one of *hidden_prefixes* (dotfiles by default)
    and dunder files such as ``__init__.py`` are skipped. A single
    leading underscore is not hidden: ``_users.py`` is loaded.
    """
    if name.startswith(tuple(hidden_prefixes)) or name.startswith("__"):
        return False
    return Path(name).suffix in extensions


def load_module(file: Path) -> ModuleType:
    """Execute *file* as a fresh module under a private name.

    The module is registered in ``sys.modules`` before it runs, so code that
    resolves its own module (dataclasses with postponed annotations,
    pickling) works. A module that fails to load is removed again.
    """
    module_name = f"_perch_service_{file.stem}_{id(file)}"
    spec = importlib.util.spec_from_file_location(module_name, file)
    if spec is None or spec.loader is None:
        msg = f"Cannot load service module: {file}"
        raise ConfigurationError(msg)
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(module_name, None)
        raise
    return module


def resolve_routes(module: ModuleType) -> Any | None:
    """Return the module's routes export, or ``None`` if it has none.

    A ``service`` object takes precedence over a module-level
    ``routes``. A callable ``routes`` is called with no arguments.
    """
    target: Any = getattr(module, "service", None)
    if target is None:
        target = module
    routes = getattr(target, "routes", None)
    if routes is None:
        return None
    if callable(routes):
        routes = routes()
    return routes


def discover_services(
    directory: str | Path,
    *,
    extensions: Sequence[str] = (".py",),
    hidden_prefixes: Sequence[str] = (".",),
    logger: logging.Logger | None = None,
) -> tuple[ServiceRecord, ...]:
    """Scan *directory* and return a record per module exporting routes.

    Records come back in file-name order. Errors (bad directory, a
    module that fails to import, a malformed descriptor) propagate and
    nothing is returned.
    """
    log = logger or _log
    root = check_directory(directory)

    log.debug("parsing routes for services in %s", root)
    records: list[ServiceRecord] = []
    for item in sorted(root.iterdir()):
        if not item.is_file():
            continue
        if not is_eligible(item.name, extensions=extensions, hidden_prefixes=hidden_prefixes):
            continue

        exported = resolve_routes(load_module(item))
        if exported is None:
            log.debug("no routes exported by %s", item.name)
            continue

        descriptor = coerce_descriptor(exported, source=item.name)
        log.debug("parsing routes for service: %s", item.name)
        records.append(ServiceRecord(filename=item.name, routes=descriptor))

    return tuple(records)
