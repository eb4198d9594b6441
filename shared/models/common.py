"""
Common Models
=============

Response models shared by the HTTP services.

Version: 0.1.0
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error response model."""

    success: bool = False
    error: str
    error_code: str | None = None
    details: dict[str, Any] | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class HealthResponse(BaseModel):
    """Service health check response."""

    status: str = "healthy"
    service: str
    version: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Component health
    components: dict[str, dict[str, Any]] = Field(default_factory=dict)

    @property
    def is_healthy(self) -> bool:
        """Check if all components are healthy."""
        if self.status != "healthy":
            return False
        return all(c.get("status") == "healthy" for c in self.components.values())

    @classmethod
    def from_components(
        cls,
        service: str,
        version: str,
        components: dict[str, dict[str, Any]],
    ) -> "HealthResponse":
        """Build a response whose status is degraded if any component is unhealthy."""
        healthy = all(c.get("status") == "healthy" for c in components.values())
        return cls(
            status="healthy" if healthy else "degraded",
            service=service,
            version=version,
            components=components,
        )
