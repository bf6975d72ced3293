"""Routing: ordered route rules, first match wins.

Rules are registered during setup and compiled into an immutable table
when the app freezes.
"""

from okapi.routing.route import Route, RouteMatch
from okapi.routing.router import Router, parse_path

__all__ = ["Route", "RouteMatch", "Router", "parse_path"]
