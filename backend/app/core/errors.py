"""
Error response rendering
"""
from http import HTTPStatus
from typing import Any

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

UNAUTHORIZED_MESSAGE = "unauthorized access"
FORBIDDEN_MESSAGE = "forbidden access"


def _default_message(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Request failed"


def _message_from_detail(detail: Any, status_code: int) -> str:
    if isinstance(detail, str) and detail:
        return detail
    if isinstance(detail, dict):
        return detail.get("message") or detail.get("detail") or _default_message(status_code)
    return _default_message(status_code)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render every HTTP error as ``{"message": ...}``"""
    payload = {"message": _message_from_detail(exc.detail, exc.status_code)}
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder(payload),
        headers=getattr(exc, "headers", None),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
