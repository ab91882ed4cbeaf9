"""
Error taxonomy for the telemetry API.

- ``malformed_input``: request body could not be parsed into a JSON object.
- ``internal_fault``: anything unexpected while serving the store.

Readings that parse but fail validation are *not* errors; they come back
as a skipped acknowledgement from the ingest route.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class VitalsError(Exception):
    code = "internal_fault"
    status_code = 500


class MalformedInput(VitalsError):
    code = "malformed_input"
    status_code = 400


class InternalFault(VitalsError):
    code = "internal_fault"
    status_code = 500
    default_message = "Internal error while serving telemetry"

    def __init__(self, message: str = default_message) -> None:
        super().__init__(message)


class ConfigError(VitalsError, ValueError):
    code = "config_error"


def error_body(code: str, message: str) -> dict:
    return {"ok": False, "error": code, "message": message}


def _error_response(exc: VitalsError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.code, str(exc)))


async def _vitals_error_handler(request: Request, exc: VitalsError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)
    return _error_response(exc)


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    # The traceback stays in the log; the caller only sees a fixed message.
    return _error_response(InternalFault())


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(VitalsError, _vitals_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
