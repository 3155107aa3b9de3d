"""Registry of connection pools, one per division database.

The registry is the only shared mutable state of the lifecycle engine. It is
owned by the process and injected into the services rather than accessed as
a module global.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from divisions.domain.value_objects import DivisionCode
from infrastructure.database.connection_pool import ConnectionPool
from infrastructure.observability.probes import (
    ConnectionProbe,
    DefaultConnectionProbe,
)

if TYPE_CHECKING:
    from infrastructure.settings import DatabaseSettings


class ConnectionPoolRegistry:
    """Lazily creates and caches one ConnectionPool per division.

    Safe for concurrent use: lookups and insertions are guarded by a lock
    with double-checked creation, so two callers asking for the same code
    receive the same pool.
    """

    def __init__(
        self,
        settings: DatabaseSettings,
        probe: ConnectionProbe | None = None,
    ):
        self._settings = settings
        self._probe = probe or DefaultConnectionProbe()
        self._pools: dict[str, ConnectionPool] = {}
        self._platform_pool: ConnectionPool | None = None
        self._lock = threading.Lock()

    def _create_pool(self, database: str) -> ConnectionPool:
        pool = ConnectionPool(self._settings, database, probe=self._probe)
        self._probe.pool_created(database=database)
        return pool

    def get_pool(self, code: DivisionCode) -> ConnectionPool:
        """Return the cached pool for a division, creating it on first use.

        The pool is returned even if the backing database does not exist;
        the failure surfaces on the first query.
        """
        database = code.database_name
        pool = self._pools.get(database)
        if pool is None:
            with self._lock:
                # Double-check after acquiring lock
                pool = self._pools.get(database)
                if pool is None:
                    pool = self._create_pool(database)
                    self._pools[database] = pool
        return pool

    def close_pool(self, code: DivisionCode) -> None:
        """Drain and evict a division's pool; later get_pool recreates it."""
        with self._lock:
            pool = self._pools.pop(code.database_name, None)
        if pool is not None:
            pool.close_all()

    def get_platform_pool(self) -> ConnectionPool:
        """Pool for the shared platform database."""
        if self._platform_pool is None:
            with self._lock:
                if self._platform_pool is None:
                    self._platform_pool = self._create_pool(
                        self._settings.platform_database
                    )
        return self._platform_pool

    def close_all(self) -> None:
        """Drain every cached pool, including the platform pool."""
        with self._lock:
            pools = list(self._pools.values())
            self._pools.clear()
            platform_pool, self._platform_pool = self._platform_pool, None
        for pool in pools:
            pool.close_all()
        if platform_pool is not None:
            platform_pool.close_all()
