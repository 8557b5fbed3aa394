"""Common Pydantic schemas used across the API.

Visitor stats are passed through from upstream untouched, so the only
bodies the proxy defines itself are errors and the service endpoints.
"""

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Standard error response.

    Attributes:
        error: Human-readable error description
    """

    error: str = Field(..., description="Human-readable error description")

    model_config = ConfigDict(
        json_schema_extra={"example": {"error": "Invalid website parameter"}}
    )


class HealthResponse(BaseModel):
    """Liveness/readiness check body."""

    status: str = Field(..., description="ok or error")
    checks: dict[str, str] | None = Field(
        None, description="Per-dependency check results"
    )


class ServiceInfo(BaseModel):
    """API root body."""

    service: str
    version: str
    deployment: str
    health: str = "/health/live"
