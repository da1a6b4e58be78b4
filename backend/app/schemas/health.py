"""Blog Backend - Health Check Schema."""

from pydantic import Field

from app.schemas.post import CamelModel


class HealthResponse(CamelModel):
    """
    What:  Service and dependency status returned by GET /health.
    Who:   Docker health checks and load balancer probes.
    """

    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
