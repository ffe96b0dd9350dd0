"""
Dependency Injection Container for the Status Page.

This module provides a lightweight dependency injection container that manages
the lifecycle of the store and the clock used by the Flask routes. Tests swap
in a temporary store and a fixed clock through the same container.
"""

import logging
from typing import Optional

from config import get_config
from status_database import ServiceDeletionPolicy, StatusDatabase
from status_engine import StatusQueries, SystemClock

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Dependency injection container for managing application services.

    Services are created lazily and cached, so each container hands out a
    single store and a single clock.
    """

    def __init__(self):
        """Initialize the service container with empty caches."""
        self._config = None
        self._store = None
        self._clock = None
        self._test_store = None  # For test overrides
        self._test_clock = None

    def get_config(self):
        """Get the application configuration (singleton)."""
        if self._config is None:
            self._config = get_config()
        return self._config

    def get_store(self) -> StatusDatabase:
        """
        Get the status database (singleton).

        Returns:
            StatusDatabase connected to the configured path
        """
        if self._test_store is not None:
            return self._test_store
        if self._store is None:
            config = self.get_config()
            self._store = StatusDatabase(
                db_path=config.database_path,
                deletion_policy=ServiceDeletionPolicy(config.service_deletion_policy),
                deleted_service_label=config.deleted_service_label,
            )
            self._store.connect()
            logger.info(f"Status database initialized at {config.database_path}")
        return self._store

    def get_clock(self):
        """Get the clock used to sample the request instant."""
        if self._test_clock is not None:
            return self._test_clock
        if self._clock is None:
            self._clock = SystemClock()
        return self._clock

    def get_queries(self) -> StatusQueries:
        """Build a query façade over a fresh snapshot of the store."""
        return StatusQueries(self.get_store().snapshot())

    def set_test_store(self, store: StatusDatabase):
        """
        Set a store for testing purposes.

        Args:
            store: Store instance to use instead of the configured one
        """
        self._test_store = store

    def set_test_clock(self, clock):
        """
        Set a clock for testing purposes.

        Args:
            clock: Object with a ``now()`` method, usually a FixedClock
        """
        self._test_clock = clock

    def clear_test_overrides(self):
        """Clear the test store and clock overrides."""
        self._test_store = None
        self._test_clock = None

    def reset(self):
        """
        Reset all cached instances. Useful for testing.

        This forces recreation of all services on next access.
        """
        if self._store is not None:
            try:
                self._store.close()
            except Exception as e:
                logger.error(f"Error closing status database: {e}")

        self._config = None
        self._store = None
        self._clock = None
        self._test_store = None
        self._test_clock = None
        logger.info("Service container reset")


# Global container instance
_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """
    Get the global service container instance (singleton).

    Returns:
        ServiceContainer instance
    """
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container():
    """
    Reset the global container. Useful for testing.

    Forces recreation of all services on next access.
    """
    global _container
    if _container is not None:
        _container.reset()
    _container = None
