"""
Partner Graph Services
======================

Services:
- graph_sync: CDC worker mirroring the relational store into the graph
- connection_analyzer: Partnership recommendations over the graph
"""

__all__ = [
    "graph_sync",
    "connection_analyzer",
]
