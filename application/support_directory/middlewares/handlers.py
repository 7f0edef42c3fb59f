from fastapi import FastAPI, Request, status
from fastapi.exceptions import HTTPException, RequestValidationError
from fastapi.responses import JSONResponse

from support_directory.config.sentry import capture_exception, add_breadcrumb
from support_directory.core.exceptions import DirectoryError
from support_directory.logging.utils import get_app_logger
from support_directory.middlewares.request_context import request_context
from support_directory.config.settings import DirectoryConfigs

logger = get_app_logger(__name__)
configs = DirectoryConfigs()

# DEBUG=false means production
DEBUG = configs.DEBUG


def _payload(message: str, **extra) -> dict:
    return {"success": False, "message": message, **extra}


async def _directory_exception_handler(request: Request, exc: DirectoryError):
    """Service-layer errors already carry a caller-safe message."""
    request_context.module_name = 'middleware_handlers'
    if exc.status_code >= 500:
        logger.error(f"directory_error | method={request.method} path={request.url.path} status_code={exc.status_code} message={exc.message}", exc_info=True)
        capture_exception(exc)
    else:
        logger.warning(f"directory_error | method={request.method} path={request.url.path} status_code={exc.status_code} message={exc.message}")
    return JSONResponse(status_code=exc.status_code, content=_payload(exc.message))


async def _validation_exception_handler(request: Request, exc: RequestValidationError):
    """Request schema errors are client errors: 400 with field detail in debug mode."""
    request_context.module_name = 'middleware_handlers'
    logger.warning(f"validation_error | method={request.method} path={request.url.path} errors={exc.errors()}")

    add_breadcrumb(
        message=f"Validation error on {request.method} {request.url.path}",
        category="validation",
        level="warning",
        data={"errors": str(exc.errors())}
    )

    if not DEBUG:
        payload = _payload("Invalid request data")
    else:
        error_messages = []
        for err in exc.errors():
            field_path = " -> ".join(str(loc) for loc in err.get("loc", []))
            error_messages.append(f"{field_path}: {err.get('msg', 'Invalid input')}")
        if len(error_messages) == 1:
            payload = _payload(error_messages[0])
        else:
            payload = _payload("Validation errors", errors=error_messages)

    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=payload)


async def _http_exception_handler(request: Request, exc: HTTPException):
    request_context.module_name = 'middleware_handlers'
    status_code = getattr(exc, 'status_code', status.HTTP_500_INTERNAL_SERVER_ERROR)
    detail = getattr(exc, 'detail', str(exc))
    if status_code >= 500:
        logger.error(f"http_exception | method={request.method} path={request.url.path} status_code={status_code} detail={detail}", exc_info=True)
        capture_exception(exc)
    else:
        logger.warning(f"http_exception | method={request.method} path={request.url.path} status_code={status_code} detail={detail}")

    if not DEBUG:
        if status_code == 404:
            message = "Resource not found"
        elif status_code == 405:
            message = "Method not allowed"
        elif 400 <= status_code < 500:
            message = "Invalid request"
        else:
            message = "Something went wrong"
    else:
        message = str(detail)

    return JSONResponse(status_code=status_code, content=_payload(message), headers=getattr(exc, "headers", None))


async def _general_exception_handler(request: Request, exc: Exception):
    """Unhandled exceptions: generic message in production."""
    request_context.module_name = 'middleware_handlers'
    logger.error(
        f"unhandled_exception | method={request.method} path={request.url.path} exception_type={type(exc).__name__} exception_message={exc}",
        exc_info=True,
    )
    add_breadcrumb(
        message=f"Unhandled exception on {request.method} {request.url.path}",
        category="exception",
        level="error",
        data={"exception_type": type(exc).__name__}
    )
    capture_exception(exc)

    message = f"Internal server error: {exc}" if DEBUG else "Something went wrong"
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_payload(message))


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the given FastAPI instance."""
    from starlette.exceptions import HTTPException as StarletteHTTPException

    app.add_exception_handler(DirectoryError, _directory_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _general_exception_handler)
