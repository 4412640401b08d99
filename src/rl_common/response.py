"""JSON envelope shared by every endpoint.

    {
        "code": 0,            // 0 = success, otherwise an AppError code
        "message": "success",
        "data": { ... },      // null on business errors
        "timestamp": "...",
        "request_id": "..."
    }
"""

import uuid
from typing import Any

from pydantic import BaseModel, Field

from src.rl_common.datetime_utils import utc_now


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())
    request_id: str = Field(default_factory=lambda: f"req_{uuid.uuid4().hex[:12]}")


def success_response(data: Any = None, message: str = "success") -> ApiResponse:
    return ApiResponse(code=0, message=message, data=data)


def error_response(code: int, message: str, data: Any = None) -> ApiResponse:
    return ApiResponse(code=code, message=message, data=data)
