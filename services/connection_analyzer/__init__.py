"""
Connection Analyzer Service
===========================

Graph-native partnership recommendations between businesses.

Features:
- Complementary, alliance and mastermind strategies
- Concurrent combined recommendations with per-strategy error isolation
- Connection, skill and project analysis

Port: 8082
"""

__version__ = "0.1.0"
