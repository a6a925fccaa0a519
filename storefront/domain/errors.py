# storefront/domain/errors.py
"""
Business errors raised by the storefront services.

Every error carries the HTTP status the routers answer with.
``OrderProcessingError`` is the generic failure for anything the store
itself rejected (connection lost, constraint violation, version conflict).
"""


class StorefrontError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(StorefrontError):
    status_code = 404


class AccessDenied(StorefrontError):
    status_code = 403

    def __init__(self, message: str = "Access denied to this order"):
        super().__init__(message)


class EmptyCart(StorefrontError):
    status_code = 400

    def __init__(self, message: str = "Cart is empty"):
        super().__init__(message)


class InsufficientStock(StorefrontError):
    status_code = 409

    def __init__(self, product_id: int, product_name: str, available: int, requested: int):
        super().__init__(
            f"Insufficient stock for product '{product_name}'. "
            f"Available: {available}, Requested: {requested}"
        )
        self.product_id = product_id
        self.product_name = product_name
        self.available = available
        self.requested = requested


class InvalidState(StorefrontError):
    status_code = 409


class IllegalTransition(StorefrontError):
    status_code = 409

    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot transition from {current} to {target}")
        self.current = current
        self.target = target


class NotCancellable(StorefrontError):
    status_code = 409

    def __init__(self, status: str):
        super().__init__(
            f"Order cannot be cancelled in {status} status. "
            "Cancellation allowed only before SHIPPED."
        )
        self.status = status


class AlreadyConfirmed(StorefrontError):
    status_code = 409

    def __init__(self, message: str = "Payment already confirmed"):
        super().__init__(message)


class CartConflict(StorefrontError):
    status_code = 409

    def __init__(self, message: str = "Cart was modified by another operation"):
        super().__init__(message)


class OrderProcessingError(Exception):
    """Unexpected store failure; the transaction was rolled back."""

    status_code = 500

    def __init__(self, operation: str):
        super().__init__(f"Unexpected error during {operation}")
        self.operation = operation
