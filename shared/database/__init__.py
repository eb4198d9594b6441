"""
Database Module
===============

Async clients for the partner graph data stores.

Clients:
- Neo4j / Memgraph (neo4j async driver)
- Kafka (aiokafka)
- Relational source (SQLAlchemy async + asyncpg)

Usage:
    from shared.config import settings
    from shared.database import Neo4jClient

    graph = Neo4jClient(settings.neo4j)
    await graph.connect()
    try:
        rows = await graph.run_query("MATCH (b:Business) RETURN count(b) AS n")
    finally:
        await graph.close()
"""

from shared.database.kafka import KafkaClient, commit_message
from shared.database.neo4j import Neo4jClient
from shared.database.postgres import PostgresClient
from shared.database.retry import TransportConnectError, connect_with_retry


__all__ = [
    # Neo4j
    "Neo4jClient",
    # Kafka
    "KafkaClient",
    "commit_message",
    # Relational source
    "PostgresClient",
    # Retry
    "TransportConnectError",
    "connect_with_retry",
]
