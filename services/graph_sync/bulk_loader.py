"""
Bulk Loader
===========

Replays the full current state of the relational store into the graph.

Tables are loaded in dependency order through the same translators the
change stream uses, so a bulk-loaded row and its replayed change event
converge to the same graph state. Loading is best-effort: a failed row
or a failed table is logged and the load moves on.

Version: 0.1.0
"""

import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from services.graph_sync.errors import BulkLoadTableError, TranslatorApplyError
from services.graph_sync.events import Operation
from services.graph_sync.translators import MIRRORED_TABLES, EntityTranslator
from shared.database.postgres import PostgresClient
from shared.logging import get_logger


logger = get_logger(__name__)


@dataclass
class TableLoadResult:
    """Result of loading one table."""

    table: str
    rows_read: int = 0
    rows_applied: int = 0
    rows_failed: int = 0
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class BulkLoadResult:
    """Result of a full bulk load."""

    tables: list[TableLoadResult] = field(default_factory=list)

    # Timing
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    completed_at: datetime | None = None
    duration_seconds: float = 0.0

    @property
    def rows_applied(self) -> int:
        return sum(t.rows_applied for t in self.tables)

    @property
    def rows_failed(self) -> int:
        return sum(t.rows_failed for t in self.tables)

    @property
    def failed_tables(self) -> list[str]:
        return [t.table for t in self.tables if not t.succeeded]

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows_applied": self.rows_applied,
            "rows_failed": self.rows_failed,
            "failed_tables": self.failed_tables,
            "duration_seconds": self.duration_seconds,
            "tables": [
                {
                    "table": t.table,
                    "rows_read": t.rows_read,
                    "rows_applied": t.rows_applied,
                    "rows_failed": t.rows_failed,
                    "error": t.error,
                }
                for t in self.tables
            ],
        }


class BulkLoader:
    """
    Full-table replay from the relational store.

    Args:
        source: Relational client to read rows from
        translators: Translators keyed by table name
        tables: Tables to load, in order (default: all mirrored tables)
    """

    def __init__(
        self,
        source: PostgresClient,
        translators: dict[str, EntityTranslator],
        tables: tuple[str, ...] = MIRRORED_TABLES,
    ) -> None:
        self._source = source
        self._translators = translators
        self._tables = tables

    async def load(self) -> BulkLoadResult:
        """
        Load every table in dependency order.

        Returns:
            BulkLoadResult with per-table counts
        """
        result = BulkLoadResult()
        start = time.perf_counter()

        logger.info("bulk_load_started", tables=list(self._tables))

        for table in self._tables:
            result.tables.append(await self.load_table(table))

        result.completed_at = datetime.now(UTC)
        result.duration_seconds = round(time.perf_counter() - start, 3)

        logger.info(
            "bulk_load_completed",
            rows_applied=result.rows_applied,
            rows_failed=result.rows_failed,
            failed_tables=result.failed_tables,
            duration_seconds=result.duration_seconds,
        )

        return result

    async def load_table(self, table: str) -> TableLoadResult:
        """
        Stream one table through its translator.

        A read failure ends this table only; rows already applied stay.
        """
        table_result = TableLoadResult(table=table)
        translator = self._translators[table]

        try:
            async for row in self._source.stream_rows(table):
                table_result.rows_read += 1
                try:
                    await translator.apply(Operation.CREATE, None, row)
                    table_result.rows_applied += 1
                except TranslatorApplyError as e:
                    table_result.rows_failed += 1
                    logger.warning(
                        "bulk_load_row_failed",
                        table=table,
                        key=e.key,
                        error=str(e),
                    )
        except Exception as e:
            error = BulkLoadTableError(table, e)
            table_result.error = str(error)
            logger.error(
                "bulk_load_table_failed",
                table=table,
                rows_read=table_result.rows_read,
                error=str(e),
            )
            return table_result

        logger.info(
            "bulk_load_table_completed",
            table=table,
            rows_read=table_result.rows_read,
            rows_applied=table_result.rows_applied,
            rows_failed=table_result.rows_failed,
        )
        return table_result
