"""
Order-related exceptions.
"""

from .base import ShopException


class OrderException(ShopException):
    """Base exception for order-related errors."""
    pass


class OrderNotFoundException(OrderException):
    """Raised when order is not found in database."""

    def __init__(self, order_id: str):
        super().__init__(
            f"Order {order_id} not found",
            details={'order_id': order_id}
        )
        self.order_id = order_id


class InvalidOrderStateException(OrderException):
    """Raised when order is in invalid state for requested operation."""

    def __init__(self, order_id: str, current_state: str, required_state: str):
        super().__init__(
            f"Order {order_id} is in state '{current_state}', required '{required_state}'",
            details={'order_id': order_id, 'current_state': current_state, 'required_state': required_state}
        )
        self.order_id = order_id
        self.current_state = current_state
        self.required_state = required_state


class OrderSummaryMismatchException(OrderException):
    """Raised when denormalized order totals drift from the sum of its items."""

    def __init__(self, order_id: str, field: str, stored: float, expected: float):
        super().__init__(
            f"Order {order_id} summary field '{field}' is {stored}, items sum to {expected}",
            details={'order_id': order_id, 'field': field, 'stored': stored, 'expected': expected}
        )
        self.order_id = order_id
        self.field = field
        self.stored = stored
        self.expected = expected


class ImmutableOrderItemFieldException(OrderException):
    """Raised when an update tries to touch a frozen price field of an order item."""

    def __init__(self, order_item_id: str, fields: list[str]):
        super().__init__(
            f"Order item {order_item_id} price snapshot is immutable: {', '.join(sorted(fields))}",
            details={'order_item_id': order_item_id, 'fields': sorted(fields)}
        )
        self.order_item_id = order_item_id
        self.fields = sorted(fields)


class OrderItemNotFoundException(OrderException):
    """Raised when an order item is not found in database."""

    def __init__(self, order_item_id: str):
        super().__init__(
            f"Order item {order_item_id} not found",
            details={'order_item_id': order_item_id}
        )
        self.order_item_id = order_item_id
