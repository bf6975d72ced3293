"""Testing utilities for okapi applications."""

from okapi.testing.client import TestClient, encode_multipart

__all__ = ["TestClient", "encode_multipart"]
