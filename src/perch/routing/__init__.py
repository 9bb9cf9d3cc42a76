"""Routing: ordered route table with first-registered-wins matching.

Routes are registered during setup and the table is frozen when the
app serves its first request. Overlapping patterns are legal: every
match is yielded in registration order so a handler chain can fall
through to the next route.
"""

from perch.routing.route import PathSegment, Route, RouteMatch
from perch.routing.router import Router, parse_path

__all__ = ["PathSegment", "Route", "RouteMatch", "Router", "parse_path"]
