"""
Loyalty reward and discount code exceptions.
"""

from .base import ShopException


class LoyaltyException(ShopException):
    """Base exception for loyalty-related errors."""
    pass


class InvalidDiscountCodeException(LoyaltyException):
    """Raised when a discount code does not exist or does not belong to the customer."""

    def __init__(self, code: str, reason: str = "unknown code"):
        super().__init__(
            f"Invalid discount code {code}: {reason}",
            details={'code': code, 'reason': reason}
        )
        self.code = code
        self.reason = reason


class DiscountCodeAlreadyUsedException(LoyaltyException):
    """Raised when a discount code was already redeemed."""

    def __init__(self, code: str):
        super().__init__(
            f"Discount code {code} has already been used",
            details={'code': code}
        )
        self.code = code


class DiscountCodeInactiveException(LoyaltyException):
    """Raised when a discount code was superseded, revoked or its rule disabled."""

    def __init__(self, code: str, status: str):
        super().__init__(
            f"Discount code {code} is not active (status: {status})",
            details={'code': code, 'status': status}
        )
        self.code = code
        self.status = status


class DiscountCodeGenerationException(LoyaltyException):
    """Raised when no unused discount code could be generated."""

    def __init__(self, attempts: int):
        super().__init__(
            f"Could not generate a unique discount code after {attempts} attempts",
            details={'attempts': attempts}
        )
        self.attempts = attempts


class LoyaltyIssuanceException(LoyaltyException):
    """
    Raised when persisting a loyalty reward fails.

    Recoverable: the order that triggered the reward is already committed,
    callers log this and carry on without a reward.
    """

    def __init__(self, customer_id: str, order_id: str, reason: str):
        super().__init__(
            f"Loyalty reward for customer {customer_id}, order {order_id} could not be issued: {reason}",
            details={'customer_id': customer_id, 'order_id': order_id, 'reason': reason}
        )
        self.customer_id = customer_id
        self.order_id = order_id
        self.reason = reason
