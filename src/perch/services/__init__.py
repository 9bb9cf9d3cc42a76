"""Convention-based service route registration.

A services directory holds one module per service. Each module that
exports ``routes`` (or a ``service`` object carrying them) is loaded,
validated, and registered against the server under an optional prefix::

    services/
      users.py       # routes = {"get": [...], "post": [...]}
      orders.py      # service = OrderService()
      _helpers.py    # skipped: hidden prefix
      notes.txt      # skipped: not a .py file
"""

from perch.services.discovery import check_directory, discover_services
from perch.services.fallback import FALLBACK_PATH, install_fallback
from perch.services.registry import Registry
from perch.services.types import (
    ALL_VERBS,
    RouteDescriptor,
    RouteEntry,
    RouteServer,
    ServiceRecord,
    Verb,
)
from perch.services.validate import coerce_descriptor, validate_descriptor

__all__ = [
    "ALL_VERBS",
    "FALLBACK_PATH",
    "Registry",
    "RouteDescriptor",
    "RouteEntry",
    "RouteServer",
    "ServiceRecord",
    "Verb",
    "check_directory",
    "coerce_descriptor",
    "discover_services",
    "install_fallback",
    "validate_descriptor",
]
