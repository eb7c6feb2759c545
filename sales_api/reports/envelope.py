"""
Response Envelope

Uniform JSON envelope for every API response:
``{"success": true, "data": ..., "meta": {...}}`` on success and
``{"success": false, "error": {"code": ..., "message": ...}}`` on failure.

Author: Waqqas Hanafi
Copyright: © 2025 Calaveras County Health and Human Services Agency
"""

from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from ..constants import HTTPStatus
from .models import ResponseMeta, ErrorResponse, ErrorDetail


def build_success_body(data: Any, meta: Optional[ResponseMeta] = None) -> Dict[str, Any]:
    """Envelope body; unset meta fields are left out"""
    body = {"success": True, "data": jsonable_encoder(data)}
    if meta is not None:
        body["meta"] = meta.model_dump(exclude_none=True)
    return body


def build_error_body(code: str, message: str) -> Dict[str, Any]:
    return ErrorResponse(error=ErrorDetail(code=code, message=message)).model_dump()


def success_response(data: Any, meta: Optional[ResponseMeta] = None) -> JSONResponse:
    return JSONResponse(status_code=HTTPStatus.OK, content=build_success_body(data, meta))


def error_response(status_code: int, code: str, message: str, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=build_error_body(code, message),
        headers=headers
    )
