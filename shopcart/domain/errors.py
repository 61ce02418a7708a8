# shopcart/domain/errors.py
"""
Domain errors.

They subclass the builtins the services have always raised (ValueError for
bad input/state, PermissionError for access, RuntimeError for conflicts), so
routers keep mapping them by the base class and only refine where the HTTP
status differs (404, 401, 409).
"""


class NotFoundError(ValueError):
    pass


class DuplicateError(ValueError):
    pass


class CartStateError(ValueError):
    pass


class InsufficientStockError(ValueError):
    def __init__(self, product_id: int, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product {product_id}: "
            f"requested {requested}, available {available}"
        )


class ConcurrencyError(RuntimeError):
    pass


class InvalidCredentialsError(Exception):
    pass
