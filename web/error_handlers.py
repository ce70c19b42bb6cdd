"""
전역 예외 핸들러

- RotationError → {"error": code, "detail": message} (코드별 HTTP 상태)
- RequestValidationError → 400 + 필드별 오류
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from core.rotation.errors import RotationError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """전역 예외 핸들러 등록"""

    @app.exception_handler(RotationError)
    async def rotation_error_handler(request: Request, exc: RotationError) -> JSONResponse:
        logger.warning(f"{exc.code} on {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.http_status, content=exc.to_response())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        logger.warning(f"요청 검증 실패 {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "InvalidRequest",
                "detail": [
                    {
                        "field": ".".join(str(loc) for loc in error["loc"]),
                        "message": error["msg"],
                    }
                    for error in exc.errors()
                ],
            },
        )
