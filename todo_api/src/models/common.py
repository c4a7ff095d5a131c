"""
Response envelope shared by every endpoint.

Success responses look like::

    {"error": false, "data": ..., "message": "...", "pagination": {...}}

``pagination`` is only present on list endpoints.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class Pagination(BaseModel):
    """Pagination block returned by list endpoints."""

    total_items: int = Field(..., ge=0, alias="totalItems", description="Rows matching the filters")
    total_pages: int = Field(..., ge=0, alias="totalPages", description="ceil(totalItems / limit)")
    current_page: int = Field(..., ge=1, alias="currentPage", description="1-based page number")

    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(BaseModel):
    """Error envelope schema (used for OpenAPI documentation)."""

    error: bool = Field(default=True)
    code: Optional[str] = Field(None, description="Stable error code")
    message: str = Field(..., min_length=1, description="Error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Per-field validation failures")

    model_config = {
        "json_schema_extra": {
            "example": {
                "error": True,
                "code": "TOKEN_INVALID",
                "message": "Token invalid"
            }
        }
    }


def envelope(
    data: Any,
    message: str,
    pagination: Optional[Pagination] = None,
    **extra: Any
) -> Dict[str, Any]:
    """
    Build a success envelope.

    Args:
        data: Payload (model, list of models or plain value)
        message: Human readable message
        pagination: Pagination block for list endpoints
        **extra: Additional top-level keys (e.g. accessToken)

    Returns:
        Envelope dict ready to be serialised by FastAPI
    """
    body: Dict[str, Any] = {"error": False, "data": data, "message": message}
    if pagination is not None:
        body["pagination"] = pagination
    body.update(extra)
    return body
