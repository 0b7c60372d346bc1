from typing import Optional


class ServiceError(Exception):
    """Base exception for all service errors.

    Carries the name of the operation that failed and, when the error wraps
    a lower-level failure, the original exception as ``cause``.
    """

    def __init__(self, operation: str, message: str, cause: Optional[BaseException] = None) -> None:
        self.operation = operation
        self.message = message
        self.cause = cause
        super().__init__(f"{operation}: {message}")


class ValidationError(ServiceError):
    """Raised when request data is rejected before touching storage."""
    pass


class EmptyOrderError(ValidationError):
    """Raised when an order contains no line items."""
    pass


class NonPositiveQuantityError(ValidationError):
    """Raised when a line item quantity is zero or negative."""
    pass


class InvalidDateRangeError(ValidationError):
    """Raised when an analytics date range starts after it ends."""
    pass


class InvalidPaginationError(ValidationError):
    """Raised when limit or offset are out of range."""
    pass


class NotFoundError(ServiceError):
    """Raised when a referenced record does not exist."""
    pass


class InvalidProductError(NotFoundError):
    """Raised when an order references an unknown product id."""
    pass


class OrderNotFoundError(NotFoundError):
    """Raised when an order lookup finds nothing."""
    pass


class ConflictError(ServiceError):
    """Raised when a write conflicts with the current state of storage."""
    pass


class InsufficientStockError(ConflictError):
    """Raised when a product does not have enough stock for a line item."""
    pass


class StorageFailure(ServiceError):
    """Raised when a query, commit or rollback fails in the database."""
    pass


class QueryFailure(StorageFailure):
    """Raised when a read-only analytics query fails."""
    pass


class CacheFailure(ServiceError):
    """Raised by the cache client. Never surfaced by read operations."""
    pass
