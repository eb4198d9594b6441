"""Tests for the bulk loader."""

from collections.abc import AsyncIterator
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from services.graph_sync.bulk_loader import BulkLoader
from services.graph_sync.errors import EndpointMissingError
from services.graph_sync.events import Operation
from services.graph_sync.translators import MIRRORED_TABLES


class FakeSource:
    """Relational source double yielding canned rows per table."""

    def __init__(self, rows: dict[str, list[dict[str, Any]]], broken: str | None = None) -> None:
        self.rows = rows
        self.broken = broken
        self.read_order: list[str] = []

    async def stream_rows(self, table: str) -> AsyncIterator[dict[str, Any]]:
        self.read_order.append(table)
        for row in self.rows.get(table, []):
            yield row
        if table == self.broken:
            raise ConnectionError("connection reset")


def _translators() -> dict[str, MagicMock]:
    translators = {}
    for table in MIRRORED_TABLES:
        translator = MagicMock()
        translator.apply = AsyncMock()
        translators[table] = translator
    return translators


class TestBulkLoader:
    """Tests for BulkLoader."""

    @pytest.mark.asyncio
    async def test_dependency_order(self) -> None:
        """Test nodes load before the edges that need them."""
        source = FakeSource({"users": [{"id": 7}], "businesses": [{"id": 1, "operator_user_id": 7}]})
        translators = _translators()

        result = await BulkLoader(source, translators).load()

        assert source.read_order == list(MIRRORED_TABLES)
        assert result.rows_applied == 2
        assert result.failed_tables == []
        translators["users"].apply.assert_awaited_once_with(Operation.CREATE, None, {"id": 7})

    @pytest.mark.asyncio
    async def test_row_failure_is_counted(self) -> None:
        source = FakeSource({"user_skills": [{"user_id": 7, "skill_id": 3}, {"user_id": 8, "skill_id": 3}]})
        translators = _translators()
        translators["user_skills"].apply.side_effect = [
            None,
            EndpointMissingError("user_skills", "endpoint not in graph yet", key={"user_id": 8}),
        ]

        result = await BulkLoader(source, translators).load()

        table = next(t for t in result.tables if t.table == "user_skills")
        assert table.rows_read == 2
        assert table.rows_applied == 1
        assert table.rows_failed == 1
        assert table.succeeded

    @pytest.mark.asyncio
    async def test_table_failure_continues(self) -> None:
        """Test a failed table read does not stop later tables."""
        source = FakeSource(
            {"skills": [{"id": 3}], "projects": [{"id": 5, "managed_by_user_id": 7}]},
            broken="skills",
        )
        translators = _translators()

        result = await BulkLoader(source, translators).load()

        assert result.failed_tables == ["skills"]
        skills = next(t for t in result.tables if t.table == "skills")
        assert skills.rows_applied == 1
        assert "connection reset" in skills.error
        translators["projects"].apply.assert_awaited_once()
        assert result.to_dict()["failed_tables"] == ["skills"]
