"""Unified API response envelope.

Every endpoint, success or failure, returns:
{
    "code": 0,              // 0 = success, otherwise the AppError code
    "message": "success",
    "data": {...},          // {"kind": "<ErrorKind>"} on failure
    "timestamp": "...",     // ISO-8601 UTC
    "request_id": "req_…"   // matches the X-Request-ID header
}
"""

import uuid
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field


def new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    request_id: str = Field(default_factory=new_request_id)


def success_response(data: Any = None) -> ApiResponse:
    return ApiResponse(data=data)


def error_response(code: int, message: str, kind: str | None = None) -> ApiResponse:
    return ApiResponse(
        code=code,
        message=message,
        data={"kind": kind} if kind is not None else None,
    )
