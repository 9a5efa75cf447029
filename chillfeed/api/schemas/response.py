from __future__ import annotations

from typing import Generic, Optional, TypeVar

from fastapi.responses import JSONResponse
from pydantic import BaseModel

T = TypeVar("T")


class APIResponse(BaseModel, Generic[T]):
    """统一响应信封：成功时 code 为 0，失败时 code 与 HTTP 状态码一致。"""

    code: int = 0
    message: str = "success"
    data: Optional[T] = None

    @classmethod
    def success(cls, data: Optional[T] = None, message: str = "success") -> "APIResponse[T]":
        return cls(message=message, data=data)

    def to_response(self, status_code: int) -> JSONResponse:
        return JSONResponse(
            status_code=status_code,
            content=self.model_dump(mode="json", by_alias=True),
        )


def error_response(status_code: int, message: str) -> JSONResponse:
    return APIResponse[None](code=status_code, message=message).to_response(status_code)
