# storefront/api/errors.py
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from storefront.domain.errors import ShopError
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message, **extra})


async def shop_error_handler(request: Request, exc: ShopError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return _error(exc.status_code, exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in err["loc"] if p != "body"), "error": err["msg"]}
        for err in exc.errors()
    ]
    return _error(400, "Invalid input", errors=errors)


async def database_error_handler(request: Request, exc: OperationalError):
    logger.error(f"{request.method} {request.url.path} database error: {exc}")
    return _error(503, "Database unavailable")


async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"{request.method} {request.url.path} unexpected error")
    return _error(500, "Internal server error")


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(ShopError, shop_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(OperationalError, database_error_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
