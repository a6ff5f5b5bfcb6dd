"""
Exception Handlers & Request Logging Middleware
"""
import traceback
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from scopegrid.core.exceptions import ScopeGridError


async def scopegrid_exception_handler(request: Request, exc: ScopeGridError):
    """Render an expected service failure with its own status code."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message} ({exc.detail})")
    else:
        logger.info(f"{request.method} {request.url.path} rejected [{exc.status_code}]: {exc.message}")
    content = {"success": False, "message": exc.message}
    if exc.detail is not None:
        content["detail"] = exc.detail
    return JSONResponse(status_code=exc.status_code, content=content)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies and path parameters are client errors (400)."""
    errors = [
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": "Invalid request", "detail": errors},
    )


async def global_exception_handler(request: Request, exc: Exception):
    """Catch all unhandled exceptions and return structured error."""
    logger.error(f"Unhandled exception: {exc}\n{traceback.format_exc()}")
    debug = getattr(request.app.state, "debug", False)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "message": "Internal server error",
            "detail": str(exc) if debug else "An unexpected error occurred",
        },
    )


async def request_logging_middleware(request: Request, call_next):
    """Log all incoming requests."""
    logger.info(f"{request.method} {request.url.path}")
    response = await call_next(request)
    logger.info(f"{request.method} {request.url.path} → {response.status_code}")
    return response
