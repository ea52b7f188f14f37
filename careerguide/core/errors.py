"""JSON error envelopes shared by every route.

Errors leave the API as ``{"success": false, "error": "..."}`` with the HTTP
status carried on the response. Request validation failures are reported as
400 rather than FastAPI's default 422.
"""

import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

DATABASE_ERROR_DETAIL = 'Database error.'
INVALID_JSON_DETAIL = 'Invalid JSON input.'


def error_response(status_code: int, detail, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={'success': False, 'error': detail},
        headers=headers,
    )


def database_error(exc: Exception) -> HTTPException:
    logger.exception('Database operation failed', exc_info=exc)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=DATABASE_ERROR_DETAIL,
    )


def describe_validation_errors(errors) -> str:
    if any(error.get('type') == 'json_invalid' for error in errors):
        return INVALID_JSON_DETAIL

    if not errors:
        return 'Invalid request.'

    first = errors[0]
    location = [str(part) for part in first.get('loc', ()) if part != 'body']
    message = first.get('msg', 'Invalid value')
    if message.startswith('Value error, '):
        message = message[len('Value error, '):]
    error_type = first.get('type')
    # Empty body, or a JSON body that is not an object.
    if error_type == 'model_attributes_type' or (error_type == 'missing' and not location):
        return INVALID_JSON_DETAIL
    if error_type == 'missing':
        return f'{location[-1]} is required.'
    if not location:
        return message
    return f'{location[-1]}: {message}'


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return error_response(exc.status_code, exc.detail, getattr(exc, 'headers', None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(status.HTTP_400_BAD_REQUEST, describe_validation_errors(exc.errors()))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
