"""
Graph Sync Worker - Main Entry Point
====================================

Runs the CDC graph synchronizer until SIGINT/SIGTERM.

Usage:
    python -m services.graph_sync.main

Version: 0.1.0
"""

import asyncio
import signal
import sys

from services.graph_sync.synchronizer import GraphSynchronizer
from shared.config import settings
from shared.database.kafka import KafkaClient
from shared.database.neo4j import Neo4jClient
from shared.database.postgres import PostgresClient
from shared.database.retry import TransportConnectError
from shared.logging import get_logger, setup_logging


# Setup logging
setup_logging(
    log_level=settings.log_level.value,
    json_logs=settings.is_production,
    service_name="graph-sync",
)

logger = get_logger(__name__)


async def run_worker() -> int:
    """
    Run the synchronizer until stopped.

    Returns:
        Process exit code
    """
    graph = Neo4jClient(settings.neo4j)
    kafka = KafkaClient(settings.kafka)
    source = PostgresClient(settings.postgres) if settings.sync.bulk_load_enabled else None

    synchronizer = GraphSynchronizer(graph, kafka, source, settings.sync)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, synchronizer.stop)

    logger.info(
        "graph_sync_starting",
        environment=settings.environment.value,
        graph_uri=settings.neo4j.uri,
        dialect=settings.neo4j.dialect.value,
        topics=synchronizer.topics,
        group_id=settings.sync.group_id,
    )

    try:
        await synchronizer.run()
    except TransportConnectError as e:
        logger.error("graph_sync_failed", target=e.target, attempts=e.attempts, error=str(e))
        return 1
    finally:
        await graph.close()
        if source is not None:
            await source.close()

    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(run_worker()))
