"""
MEDS Backend — Shared Response Schemas
========================================

What:  Response envelopes used across routes: paginated record lists,
       errors and the health probe.

Record list keys are camelCase (`perPage`, `totalItems`) to match what the
frontend's records client already expects.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RecordListResponse(BaseModel):
    """One page of records from a collection."""

    model_config = ConfigDict(populate_by_name=True)

    page: int = Field(description="1-based page number")
    per_page: int = Field(alias="perPage", description="Requested page size")
    total_items: int = Field(alias="totalItems", description="Records matching the filters")
    total_pages: int = Field(alias="totalPages", description="Number of pages at this page size")
    items: List[Dict[str, Any]] = Field(description="Serialized records")


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "error": "validation_error",
            "message": "patients with ID 'abc' was not found",
            "details": {"field": "patient"},
            "request_id": "1f0c2a9b"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health for monitoring and container health checks."""

    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
