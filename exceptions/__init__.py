"""
Custom exceptions for the rice shop core.

This module provides a hierarchy of custom exceptions for consistent error handling
throughout the application.

Exception Hierarchy:
--------------------
ShopException (base)
├── CartException
│   ├── InvalidBagSizeException
│   ├── InvalidQuantityException
│   ├── EmptyCartException
│   └── CartItemNotFoundException
├── ProductException
│   └── ProductNotFoundException
├── OrderException
│   ├── OrderNotFoundException
│   ├── InvalidOrderStateException
│   ├── OrderSummaryMismatchException
│   ├── ImmutableOrderItemFieldException
│   └── OrderItemNotFoundException
└── LoyaltyException
    ├── InvalidDiscountCodeException
    ├── DiscountCodeAlreadyUsedException
    ├── DiscountCodeInactiveException
    ├── DiscountCodeGenerationException
    └── LoyaltyIssuanceException

Usage:
------
Services raise specific exceptions:
    raise OrderNotFoundException(order_id="ord_123")

Callers catch and report:
    try:
        await OrderService.update_status(order_id, OrderStatus.ACCEPTED, session)
    except InvalidOrderStateException as e:
        logging.warning(str(e))
"""

from .base import ShopException
from .cart import (
    CartException,
    InvalidBagSizeException,
    InvalidQuantityException,
    EmptyCartException,
    CartItemNotFoundException,
)
from .product import ProductException, ProductNotFoundException
from .order import (
    OrderException,
    OrderNotFoundException,
    InvalidOrderStateException,
    OrderSummaryMismatchException,
    ImmutableOrderItemFieldException,
    OrderItemNotFoundException,
)
from .loyalty import (
    LoyaltyException,
    InvalidDiscountCodeException,
    DiscountCodeAlreadyUsedException,
    DiscountCodeInactiveException,
    DiscountCodeGenerationException,
    LoyaltyIssuanceException,
)

__all__ = [
    # Base
    'ShopException',

    # Cart
    'CartException',
    'InvalidBagSizeException',
    'InvalidQuantityException',
    'EmptyCartException',
    'CartItemNotFoundException',

    # Product
    'ProductException',
    'ProductNotFoundException',

    # Order
    'OrderException',
    'OrderNotFoundException',
    'InvalidOrderStateException',
    'OrderSummaryMismatchException',
    'ImmutableOrderItemFieldException',
    'OrderItemNotFoundException',

    # Loyalty
    'LoyaltyException',
    'InvalidDiscountCodeException',
    'DiscountCodeAlreadyUsedException',
    'DiscountCodeInactiveException',
    'DiscountCodeGenerationException',
    'LoyaltyIssuanceException',
]
