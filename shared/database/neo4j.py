"""
Neo4j Client
============

Async Bolt client for the partner graph (Neo4j or Memgraph).

Clients are constructed explicitly and passed to whatever needs them;
there is no module-level driver.

Version: 0.1.0
"""

import time
from typing import Any

from neo4j import AsyncDriver, AsyncGraphDatabase, AsyncManagedTransaction, AsyncSession

from shared.config.settings import GraphDialect, Neo4jSettings
from shared.database.retry import connect_with_retry
from shared.logging import get_logger


logger = get_logger(__name__)


class Neo4jClient:
    """
    Async graph client wrapper.

    Manages driver lifecycle and provides query utilities.

    Args:
        config: Graph connection settings
    """

    def __init__(self, config: Neo4jSettings) -> None:
        self._config = config
        self._driver: AsyncDriver | None = None

    @property
    def dialect(self) -> GraphDialect:
        return self._config.dialect

    @property
    def driver(self) -> AsyncDriver:
        """The open driver; connect() must have been called."""
        if self._driver is None:
            raise RuntimeError("Neo4jClient is not connected")
        return self._driver

    @property
    def is_connected(self) -> bool:
        return self._driver is not None

    def _open_driver(self) -> AsyncDriver:
        auth = None
        if self._config.auth_enabled:
            auth = (self._config.user, self._config.password.get_secret_value())
        driver = AsyncGraphDatabase.driver(
            self._config.uri,
            auth=auth,
            max_connection_pool_size=self._config.max_connection_pool_size,
            connection_acquisition_timeout=30.0,
        )
        logger.info("neo4j_driver_created", uri=self._config.uri, dialect=self.dialect.value)
        return driver

    async def connect(self, attempts: int = 5, backoff_seconds: float = 2.0) -> None:
        """
        Open the driver and verify connectivity with bounded retry.

        Raises:
            TransportConnectError: If the graph stayed unreachable
        """
        if self._driver is None:
            self._driver = self._open_driver()
        await connect_with_retry(
            self.verify,
            target="neo4j",
            attempts=attempts,
            backoff_seconds=backoff_seconds,
        )

    async def verify(self) -> None:
        """Round-trip to the server; raises if it is unreachable."""
        await self.driver.verify_connectivity()

    async def close(self) -> None:
        """Close the driver and release all connections."""
        if self._driver is not None:
            await self._driver.close()
            self._driver = None
            logger.info("neo4j_driver_closed")

    async def health_check(self) -> dict[str, Any]:
        """
        Check database health.

        Returns:
            dict with status and server info
        """
        try:
            start = time.perf_counter()
            records = await self.run_query("RETURN 1 AS n")
            if not records:
                raise RuntimeError("empty health check result")
            latency_ms = (time.perf_counter() - start) * 1000

            server_info = await self.driver.get_server_info()

            return {
                "status": "healthy",
                "latency_ms": round(latency_ms, 2),
                "server_version": server_info.agent,
                "protocol_version": str(server_info.protocol_version),
            }
        except Exception as e:
            logger.error("neo4j_health_check_failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e),
            }

    def _session(self) -> AsyncSession:
        if self._config.database:
            return self.driver.session(database=self._config.database)
        return self.driver.session()

    async def run_query(
        self,
        query: str,
        parameters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Execute an auto-commit Cypher query and return results.

        Schema statements go through here as well, since Memgraph refuses
        index and constraint changes inside explicit transactions.

        Args:
            query: Cypher query string
            parameters: Query parameters

        Returns:
            List of result records as dictionaries
        """
        async with self._session() as session:
            result = await session.run(query, parameters or {})
            return await result.data()

    async def run_write_query(
        self,
        query: str,
        parameters: dict[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Execute a write query inside one managed write transaction.

        Args:
            query: Cypher query string
            parameters: Query parameters

        Returns:
            Records returned by the statement
        """

        async def _write_tx(tx: AsyncManagedTransaction) -> list[dict[str, Any]]:
            result = await tx.run(query, parameters or {})
            return await result.data()

        async with self._session() as session:
            return await session.execute_write(_write_tx)
