"""
Pytest configuration for all tests.
Sets up environment variables and fixtures used across test modules.
"""

import os
from datetime import datetime

import pytest


# Set environment variables BEFORE any other imports
# This must happen at module import time to affect app.py initialization
os.environ['TESTING'] = 'true'
os.environ['HTTPS_ENABLED'] = 'false'
os.environ.pop('ADMIN_TOKEN', None)


@pytest.fixture(autouse=True)
def reset_container():
    """Reset the dependency injection container before each test."""
    from dependencies import reset_container
    reset_container()
    yield
    reset_container()


@pytest.fixture
def store(tmp_path):
    """A fresh status database in a temporary directory."""
    from status_database import StatusDatabase

    db = StatusDatabase(str(tmp_path / "status.db"))
    db.connect()
    yield db
    db.close()


@pytest.fixture
def clock():
    """A clock frozen on 2025-02-13 08:05 UTC."""
    from status_engine import FixedClock
    return FixedClock(datetime(2025, 2, 13, 8, 5))


@pytest.fixture
def container_with_store(store, clock):
    """
    Fixture that injects the temporary store and the fixed clock into the
    DI container, so Flask routes read from them.
    """
    from dependencies import get_container

    container = get_container()
    container.set_test_store(store)
    container.set_test_clock(clock)

    yield container

    container.clear_test_overrides()
