"""
Graph Sync Service
==================

CDC worker that mirrors the relational store into the partner graph.

Features:
- Debezium change-event parsing
- Idempotent per-table node/edge translators
- Schema bootstrap (Neo4j or Memgraph)
- Dependency-ordered bulk load and optional periodic reload
- Manual-commit Kafka consume loop
"""

__version__ = "0.1.0"
