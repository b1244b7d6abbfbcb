from enum import Enum


class LoyaltyCodeStatus(str, Enum):
    """
    Status of a single issued discount code.

    ACTIVE: Issued and redeemable (at most one per customer)
    USED: Redeemed in an order
    SUPERSEDED: Replaced by a newer issuance before redemption
    REVOKED: Withdrawn because the qualifying order was returned
    """
    ACTIVE = "active"
    USED = "used"
    SUPERSEDED = "superseded"
    REVOKED = "revoked"
