"""
Shared Models
=============

Pydantic models shared across the partner graph services.

Models:
- Common response models (ErrorResponse, HealthResponse)
"""

from shared.models.common import ErrorResponse, HealthResponse


__all__ = [
    "ErrorResponse",
    "HealthResponse",
]
