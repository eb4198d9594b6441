"""
Partner Graph Shared Library
============================

Common utilities, configuration and client abstractions shared by the
graph synchronizer and the connection analyzer.

Modules:
    - config: Configuration management with Pydantic Settings
    - logging: Structured logging with structlog
    - database: Graph, Kafka and relational client abstractions
    - models: Shared Pydantic response models

Version: 0.1.0
"""

__version__ = "0.1.0"

from shared.config import settings
from shared.logging import get_logger, setup_logging

__all__ = [
    "settings",
    "get_logger",
    "setup_logging",
    "__version__",
]
