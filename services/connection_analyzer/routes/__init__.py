"""
Connection Analyzer Routes
==========================

API route handlers for the Connection Analyzer Service.

Routes:
- connections: Partnership recommendations and connection analysis
"""

from services.connection_analyzer.routes import connections


__all__ = ["connections"]
