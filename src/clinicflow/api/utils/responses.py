from typing import Any, Optional

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from ..schemas.common import ApiResponse, ErrorResponse


def ok(request: Request, data: Any = None, message: str = "") -> ApiResponse[Any]:
    req_id = getattr(request.state, "request_id", None)
    return ApiResponse(success=True, message=message, request_id=req_id or "", data=data)


def fail(request: Request, error: str, message: str, details: Optional[dict] = None, status_message: str = "") -> ErrorResponse:
    req_id = getattr(request.state, "request_id", None)
    return ErrorResponse(error=error, message=message or status_message, request_id=req_id or "", details=details or {})


def error_json(request: Request, status_code: int, error: str, message: str, details: Optional[dict] = None) -> JSONResponse:
    body = fail(request, error, message, details)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body.model_dump()))
