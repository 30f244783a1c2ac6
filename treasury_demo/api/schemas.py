"""
Pydantic schemas for API responses.

Request bodies are validated by the core services so that every violation
is reported in one message.
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorDetail(BaseModel):
    """Error payload."""

    message: str = Field(..., description="Human readable error message")


class ApiResponse(BaseModel):
    """Envelope shared by every endpoint."""

    success: bool = Field(..., description="Whether the request succeeded")
    data: Optional[Dict[str, Any]] = Field(default=None, description="Response data")
    error: Optional[ErrorDetail] = Field(default=None, description="Error details")

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"success": True, "data": {"redirectUrl": "/"}},
                {"success": False, "error": {"message": "businessName: Field required"}},
            ]
        }
    )


class HealthCheckResponse(BaseModel):
    """Response schema for health checks."""

    status: str = Field(..., description="Overall health status (healthy/unhealthy)")
    checks: Optional[Dict[str, Any]] = Field(default=None, description="Individual service checks")
    message: Optional[str] = Field(default=None, description="Status message")


def api_response(
    success: bool,
    data: Optional[Dict[str, Any]] = None,
    error_message: Optional[str] = None,
) -> Dict[str, Any]:
    """Serialize a response envelope, leaving out empty members."""
    response = ApiResponse(
        success=success,
        data=data,
        error=ErrorDetail(message=error_message) if error_message is not None else None,
    )
    return response.model_dump(exclude_none=True)
