"""
Models Package

This file ensures all SQLAlchemy models are imported and registered,
which is required for relationships to work correctly.
"""

from models.base import Base
from models.product import Product
from models.customer import Customer
from models.order import Order
from models.orderItem import OrderItem
from models.loyalty_record import LoyaltyRecord

__all__ = [
    'Base',
    'Product',
    'Customer',
    'Order',
    'OrderItem',
    'LoyaltyRecord',
]
