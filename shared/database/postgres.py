"""
Relational Source Client
========================

Async SQL client using SQLAlchemy 2.0 (asyncpg by default; any async
dialect through POSTGRES_DSN). Used read-only, to stream table rows for
bulk loads.

Version: 0.1.0
"""

import re
from collections.abc import AsyncIterator
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from shared.config.settings import PostgresSettings
from shared.logging import get_logger


logger = get_logger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class PostgresClient:
    """
    Async relational client wrapper.

    Manages the engine lifecycle and streams rows out of source tables.

    Args:
        config: Source database settings
        echo: Echo SQL statements (debugging)
    """

    def __init__(self, config: PostgresSettings, echo: bool = False) -> None:
        self._config = config
        self._echo = echo
        self._engine: AsyncEngine | None = None

    @property
    def engine(self) -> AsyncEngine:
        """Get or create the async engine."""
        if self._engine is None:
            self._engine = create_async_engine(
                self._config.async_url,
                echo=self._echo,
                pool_size=5,
                max_overflow=5,
                pool_pre_ping=True,
                pool_recycle=3600,
            )
            logger.info(
                "postgres_engine_created",
                host=self._config.host,
                database=self._config.db,
            )
        return self._engine

    async def close(self) -> None:
        """Close the engine and release all connections."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            logger.info("postgres_engine_closed")

    async def stream_rows(self, table: str) -> AsyncIterator[dict[str, Any]]:
        """
        Stream every row of a table as a column-name mapping.

        Args:
            table: Unqualified table name

        Yields:
            One dict per row
        """
        if not _IDENTIFIER.match(table):
            raise ValueError(f"Invalid table name: {table!r}")

        async with self.engine.connect() as conn:
            result = await conn.stream(text(f"SELECT * FROM {table}"))
            async for row in result.mappings():
                yield dict(row)
