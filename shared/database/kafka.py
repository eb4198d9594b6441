"""
Kafka Client
============

Async Kafka consumer factory for change-data-capture streams.

Consumers are created with auto-commit disabled: offsets are committed
by the caller once a message has been fully processed. Values are
delivered as raw bytes; decoding belongs to the event parser so that a
malformed payload is handled per message instead of failing the fetch.

Version: 0.1.0
"""

from typing import Any

from aiokafka import AIOKafkaConsumer
from aiokafka.structs import TopicPartition

from shared.config.settings import KafkaSettings
from shared.database.retry import connect_with_retry
from shared.logging import get_logger


logger = get_logger(__name__)


class KafkaClient:
    """
    Async Kafka client wrapper.

    Args:
        config: Broker connection settings
    """

    def __init__(self, config: KafkaSettings) -> None:
        self._config = config

    def create_consumer(
        self,
        topics: list[str],
        group_id: str,
        auto_offset_reset: str = "earliest",
        max_poll_records: int | None = None,
        max_poll_interval_ms: int = 300000,
    ) -> AIOKafkaConsumer:
        """
        Create a new manual-commit consumer instance.

        Args:
            topics: List of topics to subscribe to
            group_id: Consumer group ID
            auto_offset_reset: Where to start reading ('earliest' or 'latest')
            max_poll_records: Upper bound on records returned per poll
            max_poll_interval_ms: Longest gap between polls before the
                group evicts this member

        Returns:
            AIOKafkaConsumer instance (not started)
        """
        return AIOKafkaConsumer(
            *topics,
            bootstrap_servers=self._config.bootstrap_servers,
            security_protocol=self._config.security_protocol,
            group_id=group_id,
            auto_offset_reset=auto_offset_reset,
            enable_auto_commit=False,
            max_poll_records=max_poll_records,
            max_poll_interval_ms=max_poll_interval_ms,
        )

    async def start_consumer(
        self,
        topics: list[str],
        group_id: str,
        auto_offset_reset: str = "earliest",
        max_poll_records: int | None = None,
        max_poll_interval_ms: int = 300000,
        attempts: int = 5,
        backoff_seconds: float = 2.0,
    ) -> AIOKafkaConsumer:
        """
        Create and start a consumer with bounded connect retry.

        Raises:
            TransportConnectError: If the broker stayed unreachable
        """
        consumer = self.create_consumer(
            topics,
            group_id,
            auto_offset_reset,
            max_poll_records,
            max_poll_interval_ms,
        )
        await connect_with_retry(
            consumer.start,
            target="kafka",
            attempts=attempts,
            backoff_seconds=backoff_seconds,
        )
        logger.info(
            "kafka_consumer_started",
            bootstrap_servers=self._config.bootstrap_servers,
            group_id=group_id,
            topics=topics,
        )
        return consumer


async def commit_message(consumer: AIOKafkaConsumer, msg: Any) -> None:
    """Commit the offset following msg on its partition."""
    tp = TopicPartition(msg.topic, msg.partition)
    await consumer.commit({tp: msg.offset + 1})
