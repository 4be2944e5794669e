from http import HTTPStatus
from typing import Any, Callable, Coroutine

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from src.platform.exception.exceptions import CustomBaseError

# Type alias for exception handlers (compatible with Starlette's expected signature)
ExceptionHandler = Callable[[Request, Exception], Coroutine[Any, Any, Response]]

INTERNAL_ERROR_MESSAGE = 'An unexpected error occurred'


def error_envelope(*, status_code: int, message: str) -> dict[str, str]:
    return {'error': HTTPStatus(status_code).phrase, 'message': message}


def error_response(*, status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_envelope(status_code=status_code, message=message),
    )


async def custom_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = (
        exc
        if isinstance(exc, CustomBaseError)
        else CustomBaseError(INTERNAL_ERROR_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)
    )
    return error_response(status_code=error.status_code, message=error.message)


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = exc if isinstance(exc, RequestValidationError) else RequestValidationError([])
    messages = [
        f'{".".join(str(part) for part in err.get("loc", ()))}: {err.get("msg", "invalid")}'
        for err in error.errors()
    ]
    return error_response(
        status_code=status.HTTP_400_BAD_REQUEST,
        message='; '.join(messages) or 'Malformed request',
    )


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, StarletteHTTPException):
        return await general_500_exception_handler(request, exc)

    if exc.status_code == status.HTTP_404_NOT_FOUND:
        message = f'Route {request.method} {request.url.path} not found'
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(status_code=exc.status_code, message=message),
        headers=getattr(exc, 'headers', None),
    )


async def general_500_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    return error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message=INTERNAL_ERROR_MESSAGE,
    )


# Exception handler mapping
EXCEPTION_HANDLERS: dict[type[Exception], ExceptionHandler] = {
    CustomBaseError: custom_error_handler,
    RequestValidationError: validation_error_handler,
    StarletteHTTPException: http_exception_handler,
    Exception: general_500_exception_handler,  # Catch-all for unhandled exceptions
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
