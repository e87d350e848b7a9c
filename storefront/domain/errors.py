# storefront/domain/errors.py


class ShopError(Exception):
    """Base class for failures translated into a JSON error response."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(ShopError):
    status_code = 400
    default_message = "Invalid input"


class InsufficientStockError(ShopError):
    status_code = 400
    default_message = "Insufficient stock"


class NotFoundError(ShopError):
    status_code = 404
    default_message = "Not found"


class UnauthorizedError(ShopError):
    status_code = 401
    default_message = "Invalid credentials"


class InvalidTokenError(UnauthorizedError):
    default_message = "Invalid or expired session"


class ForbiddenError(ShopError):
    status_code = 403
    default_message = "Forbidden"


class ConflictError(ShopError):
    status_code = 409
    default_message = "Conflict"


class ConcurrentUpdateError(ConflictError):
    default_message = "Cart was modified by another request, retry the operation"


class ServiceUnavailableError(ShopError):
    status_code = 503
    default_message = "Service temporarily unavailable"
