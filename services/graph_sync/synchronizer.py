"""
Graph Synchronizer
==================

Owns the CDC consume loop.

States:
    CONNECTING -> SCHEMA_INIT -> BULK_LOADING -> STREAMING -> STOPPED
    any startup state -> FAILED when a data store stays unreachable

Every delivered message is parsed, dispatched to its table's translator
and then committed (offset + 1 on its partition). Malformed payloads,
unknown tables and translator failures are logged and committed as
well; a single bad event never stops the stream.

Version: 0.1.0
"""

import asyncio
import time
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

from aiokafka import AIOKafkaConsumer
from aiokafka.errors import KafkaError

from services.graph_sync.bulk_loader import BulkLoader, BulkLoadResult
from services.graph_sync.errors import EnvelopeParseError, TranslatorApplyError, UnknownTableError
from services.graph_sync.events import ChangeEvent, parse_change_event
from services.graph_sync.schema import apply_schema
from services.graph_sync.translators import (
    MIRRORED_TABLES,
    ApplyOutcome,
    EntityTranslator,
    build_translators,
)
from shared.config.settings import SyncSettings
from shared.database.kafka import KafkaClient, commit_message
from shared.database.neo4j import Neo4jClient
from shared.database.postgres import PostgresClient
from shared.database.retry import TransportConnectError
from shared.logging import bind_context, clear_context, get_logger


logger = get_logger(__name__)


class SyncState(str, Enum):
    """Synchronizer lifecycle state."""

    CONNECTING = "connecting"
    SCHEMA_INIT = "schema_init"
    BULK_LOADING = "bulk_loading"
    STREAMING = "streaming"
    FAILED = "failed"
    STOPPED = "stopped"


class MessageOutcome(str, Enum):
    """How one consumed message was handled."""

    APPLIED = "applied"
    SKIPPED = "skipped"
    TOMBSTONE = "tombstone"
    PARSE_ERROR = "parse_error"
    UNKNOWN_TABLE = "unknown_table"
    APPLY_ERROR = "apply_error"


@dataclass
class SyncStats:
    """Running counters for the consume loop."""

    received: int = 0
    applied: int = 0
    skipped: int = 0
    tombstones: int = 0
    parse_errors: int = 0
    unknown_tables: int = 0
    apply_errors: int = 0
    reloads: int = 0

    def record(self, outcome: MessageOutcome) -> None:
        match outcome:
            case MessageOutcome.APPLIED:
                self.applied += 1
            case MessageOutcome.SKIPPED:
                self.skipped += 1
            case MessageOutcome.TOMBSTONE:
                self.tombstones += 1
            case MessageOutcome.PARSE_ERROR:
                self.parse_errors += 1
            case MessageOutcome.UNKNOWN_TABLE:
                self.unknown_tables += 1
            case MessageOutcome.APPLY_ERROR:
                self.apply_errors += 1

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


class GraphSynchronizer:
    """
    CDC consumer that keeps the graph in step with the relational store.

    Args:
        graph: Graph client (connected during start())
        kafka: Kafka client used to create the consumer
        source: Relational client for bulk loads (None disables them)
        config: Synchronizer settings
        translators: Translators keyed by table (default: all mirrored tables)
    """

    def __init__(
        self,
        graph: Neo4jClient,
        kafka: KafkaClient,
        source: PostgresClient | None,
        config: SyncSettings,
        translators: dict[str, EntityTranslator] | None = None,
    ) -> None:
        self._graph = graph
        self._kafka = kafka
        self._config = config
        self._translators = translators if translators is not None else build_translators(graph)
        self._bulk_loader = BulkLoader(source, self._translators) if source is not None else None

        self._consumer: AIOKafkaConsumer | None = None
        self._stop_event = asyncio.Event()
        self._last_load_at: float | None = None

        self.state = SyncState.CONNECTING
        self.stats = SyncStats()

    @property
    def topics(self) -> list[str]:
        return self._config.topic_list(list(MIRRORED_TABLES))

    def _set_state(self, state: SyncState) -> None:
        if state != self.state:
            logger.info("sync_state_changed", previous=self.state.value, state=state.value)
        self.state = state

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """
        Connect, initialize the schema, bulk load and attach the consumer.

        Raises:
            TransportConnectError: If the graph or the broker stayed
                unreachable (state becomes FAILED)
        """
        self._set_state(SyncState.CONNECTING)
        try:
            await self._graph.connect(
                attempts=self._config.connect_attempts,
                backoff_seconds=self._config.connect_backoff_seconds,
            )
        except TransportConnectError:
            self._set_state(SyncState.FAILED)
            raise

        self._set_state(SyncState.SCHEMA_INIT)
        await apply_schema(self._graph)

        if self._config.bulk_load_enabled and self._bulk_loader is not None:
            self._set_state(SyncState.BULK_LOADING)
            await self.bulk_load()

        try:
            self._consumer = await self._kafka.start_consumer(
                self.topics,
                self._config.group_id,
                auto_offset_reset=self._config.auto_offset_reset,
                max_poll_records=self._config.max_poll_records,
                max_poll_interval_ms=self._config.max_poll_interval_ms,
                attempts=self._config.connect_attempts,
                backoff_seconds=self._config.connect_backoff_seconds,
            )
        except TransportConnectError:
            self._set_state(SyncState.FAILED)
            raise

    async def run(self) -> None:
        """Start, then stream until stop() is called."""
        await self.start()
        self._set_state(SyncState.STREAMING)
        if self._last_load_at is None:
            self._last_load_at = time.monotonic()
        try:
            await self._stream()
        finally:
            await self._close_consumer()
            self._set_state(SyncState.STOPPED)
            logger.info("sync_stopped", **self.stats.to_dict())

    def stop(self) -> None:
        """Request a graceful stop after the current batch."""
        logger.info("sync_stop_requested")
        self._stop_event.set()

    async def _close_consumer(self) -> None:
        if self._consumer is not None:
            await self._consumer.stop()
            self._consumer = None

    async def bulk_load(self) -> BulkLoadResult | None:
        """Run one full bulk load (no-op without a relational source)."""
        if self._bulk_loader is None:
            return None
        result = await self._bulk_loader.load()
        self._last_load_at = time.monotonic()
        return result

    # =========================================================================
    # Streaming
    # =========================================================================

    async def _stream(self) -> None:
        consumer = self._require_consumer()
        while not self._stop_event.is_set():
            try:
                batches = await consumer.getmany(
                    timeout_ms=self._config.poll_timeout_ms,
                    max_records=self._config.max_poll_records,
                )
            except KafkaError as e:
                # Broker-side errors are transient; the consumer recovers on the next poll
                logger.warning("kafka_poll_failed", error_type=type(e).__name__, error=str(e))
                continue
            for messages in batches.values():
                for msg in messages:
                    await self.process_message(msg)
            await self._maybe_reload()

    async def _maybe_reload(self) -> None:
        interval = self._config.reload_interval_seconds
        if interval <= 0 or self._bulk_loader is None:
            return
        if time.monotonic() - (self._last_load_at or 0.0) < interval:
            return
        logger.info("sync_periodic_reload", interval_seconds=interval)
        await self.bulk_load()
        self.stats.reloads += 1

    def _require_consumer(self) -> AIOKafkaConsumer:
        if self._consumer is None:
            raise RuntimeError("Consumer not started")
        return self._consumer

    async def process_message(self, msg: Any) -> MessageOutcome:
        """
        Handle one consumed message and commit its offset.

        Args:
            msg: aiokafka ConsumerRecord

        Returns:
            MessageOutcome
        """
        bind_context(topic=msg.topic, partition=msg.partition, offset=msg.offset)
        try:
            outcome = await self.handle_value(msg.value, topic=msg.topic)
            try:
                await commit_message(self._require_consumer(), msg)
            except KafkaError as e:
                # The next rebalance redelivers; upserts are idempotent
                logger.warning("offset_commit_failed", error=str(e))
            return outcome
        finally:
            clear_context()

    async def handle_value(self, value: Any, topic: str | None = None) -> MessageOutcome:
        """
        Parse and apply one message value. Never raises for a bad event.

        Args:
            value: Message value (None for tombstones)
            topic: Source topic

        Returns:
            MessageOutcome
        """
        self.stats.received += 1
        outcome = await self._handle(value, topic)
        self.stats.record(outcome)
        return outcome

    async def _handle(self, value: Any, topic: str | None) -> MessageOutcome:
        if value is None:
            logger.debug("tombstone_skipped", topic=topic)
            return MessageOutcome.TOMBSTONE

        try:
            event = parse_change_event(value, topic=topic)
        except EnvelopeParseError as e:
            logger.warning("change_event_parse_failed", topic=topic, error=str(e))
            return MessageOutcome.PARSE_ERROR

        try:
            return await self.dispatch(event)
        except UnknownTableError as e:
            logger.info("change_event_unknown_table", table=e.table, topic=topic)
            return MessageOutcome.UNKNOWN_TABLE
        except TranslatorApplyError as e:
            logger.error(
                "change_event_apply_failed",
                table=event.table,
                op=event.op.value,
                key=e.key,
                error_type=type(e).__name__,
                error=str(e),
            )
            return MessageOutcome.APPLY_ERROR
        except Exception as e:
            logger.exception(
                "change_event_unexpected_error",
                table=event.table,
                op=event.op.value,
                error=str(e),
            )
            return MessageOutcome.APPLY_ERROR

    async def dispatch(self, event: ChangeEvent) -> MessageOutcome:
        """
        Route a parsed event to its table's translator.

        Raises:
            UnknownTableError: If no translator handles the table
            TranslatorApplyError: If the translator failed
        """
        translator = self._translators.get(event.table)
        if translator is None:
            raise UnknownTableError(event.table)

        result = await translator.apply(event.op, event.before, event.after)
        logger.debug(
            "change_event_applied",
            table=event.table,
            op=event.op.value,
            result=result.value,
            source_ts_ms=event.source_ts_ms,
        )

        if result is ApplyOutcome.SKIPPED:
            return MessageOutcome.SKIPPED
        return MessageOutcome.APPLIED
