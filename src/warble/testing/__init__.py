"""Test utilities for warble applications.

    from warble.testing import TestClient
"""

from warble.testing.client import StreamResult, TestClient

__all__ = ["StreamResult", "TestClient"]
