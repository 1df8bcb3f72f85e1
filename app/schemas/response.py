from pydantic import BaseModel, Field
from typing import Generic, TypeVar, Optional, Any, Dict

DataType = TypeVar("DataType")

class APIResponse(BaseModel, Generic[DataType]):
    """Envelope for every successful response."""
    message: str = Field(..., description="Short human-readable outcome, e.g. 'Exam submitted successfully'.")
    data: Optional[DataType] = Field(None, description="Payload of the operation.")

class ErrorDetail(BaseModel):
    code: str = Field(..., description="Stable error code, e.g. RETAKE_NOT_ALLOWED or EXAM_UNAVAILABLE")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(
        None, description="Reason-specific context: attempt_id, boundary, prior_summary, stage..."
    )

class ErrorResponse(BaseModel):
    """Envelope built by the exception handlers."""
    error: ErrorDetail
    timestamp: str = Field(..., description="ISO 8601 UTC timestamp")
    path: str = Field(..., description="Request URL")
    request_id: Optional[str] = Field(None, description="Matches the X-Request-ID response header")
