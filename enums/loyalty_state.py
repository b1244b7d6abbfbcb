from enum import Enum


class LoyaltyState(str, Enum):
    """
    Per-customer loyalty state.

    NONE -> PENDING_ISSUE -> ISSUED -> REDEEMED
    REDEEMED customers start a fresh cycle; a newer issuance while ISSUED
    replaces the active code instead of stacking.
    """
    NONE = "none"
    PENDING_ISSUE = "pending_issue"
    ISSUED = "issued"
    REDEEMED = "redeemed"
