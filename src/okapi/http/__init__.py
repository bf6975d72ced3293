"""HTTP primitives: immutable request, value-type response, headers, forms."""

from okapi.http.request import Request
from okapi.http.response import Response

__all__ = ["Request", "Response"]
