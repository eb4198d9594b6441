#!/usr/bin/env python3
"""
Graph Initialization Script
===========================

Apply the partner graph schema and/or run a one-off bulk load from the
relational store, without starting the CDC consumer.

Usage:
    python scripts/init_graph.py
    python scripts/init_graph.py --schema-only
    python scripts/init_graph.py --load-only

Version: 0.1.0
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from shared.logging import get_logger, setup_logging

setup_logging(log_level="INFO", json_logs=False, service_name="init-graph")
logger = get_logger(__name__)


async def main(args: argparse.Namespace) -> int:
    """Main initialization function."""
    from services.graph_sync.bulk_loader import BulkLoader
    from services.graph_sync.schema import apply_schema
    from services.graph_sync.translators import build_translators
    from shared.config import settings
    from shared.database.neo4j import Neo4jClient
    from shared.database.postgres import PostgresClient
    from shared.database.retry import TransportConnectError

    graph = Neo4jClient(settings.neo4j)
    source = PostgresClient(settings.postgres)
    failed: list[str] = []

    try:
        await graph.connect(
            attempts=settings.sync.connect_attempts,
            backoff_seconds=settings.sync.connect_backoff_seconds,
        )

        if not args.load_only:
            schema = await apply_schema(graph)
            if schema["constraints_failed"] or schema["indexes_failed"]:
                failed.append("schema")

        if not args.schema_only:
            result = await BulkLoader(source, build_translators(graph)).load()
            logger.info("bulk_load_summary", **result.to_dict())
            if result.failed_tables:
                failed.append("bulk_load")

    except TransportConnectError as e:
        logger.error("graph_unreachable", error=str(e))
        return 1
    finally:
        await graph.close()
        await source.close()

    if failed:
        logger.error("init_graph_failed", steps=failed)
        return 1

    logger.info("init_graph_completed")
    return 0


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Initialize the partner graph",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--schema-only",
        action="store_true",
        help="Apply constraints and indexes only",
    )
    group.add_argument(
        "--load-only",
        action="store_true",
        help="Run the bulk load only",
    )

    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    exit_code = asyncio.run(main(args))
    sys.exit(exit_code)
