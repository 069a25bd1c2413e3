"""
Base schemas used across the application.
"""
from datetime import datetime
from typing import Optional, Any, Dict
from pydantic import BaseModel, Field, ConfigDict

from farm_market.utils.time import utc_now

class ResponseBase(BaseModel):
    """Base response envelope for API endpoints with an optional data payload."""
    success: bool = True
    message: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)
    data: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

class ErrorResponse(BaseModel):
    """Body of every non-2xx response rendered by the exception handlers."""
    success: bool = False
    code: str = Field(description="VALIDATION, NOT_FOUND, CONFLICT, INTERNAL or HTTP_<status>")
    message: str
    request_id: str
    details: Optional[Any] = None
