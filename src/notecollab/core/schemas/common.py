"""
Shared response schemas - health
"""

from typing import Any
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HealthCheckResponse(BaseModel):
    """Health check response schema."""

    status: str = Field(description="Overall health status")
    timestamp: datetime = Field(default_factory=_utcnow)
    version: str = Field(description="Application version")
    checks: dict[str, dict[str, Any]] = Field(description="Individual component health checks")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "healthy",
                "timestamp": "2025-09-13T10:30:00Z",
                "version": "1.0.0",
                "checks": {
                    "redis": {
                        "status": "healthy",
                        "response_time_ms": 5
                    },
                    "collaboration": {
                        "status": "healthy",
                        "connections": 4,
                        "rooms": 2,
                        "users": 3
                    }
                }
            }
        }
    )
