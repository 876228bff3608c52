from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from subdraft.api.errors import SubdraftApiError, from_domain_error
from subdraft.api.middlewares.request_context import get_request_id
from subdraft.core.errors import TranscriptError
from subdraft.utils.logger import get_logger

logger = get_logger("subdraft.api")


def _err_payload(
    *,
    code: str,
    message: str,
    request_id: Optional[str],
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
            "request_id": request_id or "",
        }
    }


def _api_error_response(request: Request, exc: SubdraftApiError) -> JSONResponse:
    rid = get_request_id(request)
    logger.info(f"API_ERROR rid={rid} code={exc.code} status={exc.status_code} msg={exc.message}")
    logger.debug(f"API_ERROR rid={rid} details={exc.details}")
    return JSONResponse(
        status_code=exc.status_code,
        content=_err_payload(code=exc.code, message=exc.message, request_id=rid, details=exc.details),
    )


def install_error_handlers(app: FastAPI) -> None:
    """
    Centralized error handling: every failure leaves as the same JSON envelope
    with the request_id. Domain errors are mapped to HTTP statuses here so
    routes never catch them.
    """

    @app.exception_handler(SubdraftApiError)
    async def _handle_api_error(request: Request, exc: SubdraftApiError) -> JSONResponse:
        return _api_error_response(request, exc)

    @app.exception_handler(TranscriptError)
    async def _handle_domain_error(request: Request, exc: TranscriptError) -> JSONResponse:
        return _api_error_response(request, from_domain_error(exc))

    @app.exception_handler(RequestValidationError)
    async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        rid = get_request_id(request)
        logger.info(f"API_ERROR rid={rid} code=validation_error status=422")
        return JSONResponse(
            status_code=422,
            content=_err_payload(
                code="validation_error",
                message="request validation failed",
                request_id=rid,
                details={"errors": jsonable_encoder(exc.errors())},
            ),
        )

    @app.exception_handler(Exception)
    async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        rid = get_request_id(request)
        logger.exception(f"API_UNHANDLED_ERROR rid={rid}")
        return JSONResponse(
            status_code=500,
            content=_err_payload(code="internal_error", message=str(exc), request_id=rid),
        )
