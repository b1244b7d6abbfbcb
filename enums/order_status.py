from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"                      # Placed by customer, not yet reviewed
    ACCEPTED = "accepted"                    # Confirmed by admin
    OUT_FOR_DELIVERY = "out_for_delivery"    # Handed to delivery
    DELIVERED = "delivered"                  # Final
    RETURNED = "returned"                    # Final, admin only
