"""Shared pytest configuration: in-memory log service fixtures."""
from __future__ import annotations

pytest_plugins = ["mp_eventstore.testing.fixtures"]
