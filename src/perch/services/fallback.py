"""Catch-all handlers for requests no service route claimed.

Install after every specific route: the server matches
first-registered-first, so the wildcard only sees leftovers.
"""

from collections.abc import Iterable

from perch.helpers import send_invalid_api_call
from perch.services.types import ALL_VERBS, RouteServer, Verb, server_method

# Matches any path, including the root
FALLBACK_PATH = "*"


def install_fallback(server: RouteServer, verbs: Iterable[Verb | str] = ALL_VERBS) -> int:
    """Register the invalid-call responder on ``*`` for each verb.

    Returns the number of fallback routes registered.
    """
    count = 0
    for verb in verbs:
        server_method(server, Verb.parse(verb))(FALLBACK_PATH, send_invalid_api_call)
        count += 1
    return count
