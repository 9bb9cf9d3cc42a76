"""``perch routes``: list the routes a services directory declares.

Runs the same discovery and validation as ``Registry`` and prints
VERB, PATH, HANDLERS and FILE in registration order.
"""

import argparse
import sys

from perch.errors import ConfigurationError, DescriptorError
from perch.services.discovery import discover_services
from perch.services.types import ALL_VERBS


def run_routes(args: argparse.Namespace) -> None:
    """Print a table of every route the directory would register."""
    try:
        services = discover_services(args.directory)
    except (ConfigurationError, DescriptorError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    rows: list[tuple[str, str, str, str]] = []
    for verb in ALL_VERBS:
        for record in services:
            for entry in record.routes.entries(verb):
                handler_names = " -> ".join(
                    getattr(h, "__name__", repr(h)) for h in entry.handlers
                )
                rows.append((verb.method, f"{args.prefix}{entry.path}", handler_names, record.filename))

    if not rows:
        print("No routes declared.")
        return

    headers = ("VERB", "PATH", "HANDLERS", "FILE")
    widths = [max(len(headers[i]), *(len(row[i]) for row in rows)) for i in range(3)]
    fmt = f"{{:<{widths[0]}}}  {{:<{widths[1]}}}  {{:<{widths[2]}}}  {{}}"
    print(fmt.format(*headers))
    print("-" * min(sum(widths) + 6 + max(len(r[3]) for r in rows), 80))
    for row in rows:
        print(fmt.format(*row))
