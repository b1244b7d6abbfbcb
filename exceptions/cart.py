"""
Cart-related exceptions.
"""

from .base import ShopException


class CartException(ShopException):
    """Base exception for cart-related errors."""
    pass


class InvalidBagSizeException(CartException):
    """Raised when a bag size outside {1, 5, 10, 25} kg is requested."""

    def __init__(self, size):
        super().__init__(
            f"Invalid bag size {size!r}. Valid sizes: 1, 5, 10, 25 kg",
            details={'size': size}
        )
        self.size = size


class InvalidQuantityException(CartException):
    """Raised when a quantity or bag count is negative."""

    def __init__(self, quantity, reason: str = "quantity must not be negative"):
        super().__init__(
            f"Invalid quantity {quantity!r}: {reason}",
            details={'quantity': quantity, 'reason': reason}
        )
        self.quantity = quantity
        self.reason = reason


class EmptyCartException(CartException):
    """Raised when trying to checkout with empty cart."""

    def __init__(self, customer_id: str):
        super().__init__(
            f"Cart is empty for customer {customer_id}",
            details={'customer_id': customer_id}
        )
        self.customer_id = customer_id


class CartItemNotFoundException(CartException):
    """Raised when cart item not found."""

    def __init__(self, product_id: str):
        super().__init__(
            f"Cart item for product {product_id} not found",
            details={'product_id': product_id}
        )
        self.product_id = product_id
