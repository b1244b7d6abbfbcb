"""
Order State Machine for validating order status transitions.

Orders move forward through fulfilment one step at a time. Any order that
has not been delivered can be returned by an admin; a returned order no
longer counts towards loyalty qualification.
"""

import logging
from typing import Dict, List, Optional, Set

from enums.order_status import OrderStatus

logger = logging.getLogger(__name__)


class OrderStatusTransition:
    """Represents a valid status transition with metadata"""

    def __init__(self, from_status: OrderStatus, to_status: OrderStatus, requires_admin: bool = False,
                 description: str = ""):
        self.from_status = from_status
        self.to_status = to_status
        self.requires_admin = requires_admin
        self.description = description

    def __repr__(self):
        admin_flag = " (Admin)" if self.requires_admin else ""
        return f"{self.from_status.value} -> {self.to_status.value}{admin_flag}"


class OrderStateMachine:
    """
    Finite state machine for order status transitions with audit logging.

    Valid status transitions:
    - PENDING -> ACCEPTED
    - ACCEPTED -> OUT_FOR_DELIVERY
    - OUT_FOR_DELIVERY -> DELIVERED
    - PENDING / ACCEPTED / OUT_FOR_DELIVERY -> RETURNED (admin only)

    DELIVERED and RETURNED are final.
    """

    VALID_TRANSITIONS: List[OrderStatusTransition] = [
        OrderStatusTransition(
            OrderStatus.PENDING,
            OrderStatus.ACCEPTED,
            description="Order accepted by the shop"
        ),
        OrderStatusTransition(
            OrderStatus.ACCEPTED,
            OrderStatus.OUT_FOR_DELIVERY,
            description="Order handed to delivery"
        ),
        OrderStatusTransition(
            OrderStatus.OUT_FOR_DELIVERY,
            OrderStatus.DELIVERED,
            description="Order delivered to customer"
        ),
        OrderStatusTransition(
            OrderStatus.PENDING,
            OrderStatus.RETURNED,
            requires_admin=True,
            description="Pending order returned by admin"
        ),
        OrderStatusTransition(
            OrderStatus.ACCEPTED,
            OrderStatus.RETURNED,
            requires_admin=True,
            description="Accepted order returned by admin"
        ),
        OrderStatusTransition(
            OrderStatus.OUT_FOR_DELIVERY,
            OrderStatus.RETURNED,
            requires_admin=True,
            description="Order returned during delivery"
        ),
    ]

    FINAL_STATUSES: Set[OrderStatus] = {OrderStatus.DELIVERED, OrderStatus.RETURNED}

    _transition_map: Dict[OrderStatus, Set[OrderStatus]] = {}
    _admin_required_transitions: Set[tuple] = set()
    _transition_descriptions: Dict[tuple, str] = {}

    @classmethod
    def _build_transition_map(cls):
        if cls._transition_map:
            return

        for transition in cls.VALID_TRANSITIONS:
            cls._transition_map.setdefault(transition.from_status, set()).add(transition.to_status)
            if transition.requires_admin:
                cls._admin_required_transitions.add((transition.from_status, transition.to_status))
            cls._transition_descriptions[(transition.from_status, transition.to_status)] = transition.description

    @classmethod
    def is_valid_transition(cls, from_status: OrderStatus, to_status: OrderStatus) -> bool:
        """
        Check if a status transition is valid according to the state machine.

        Staying in the same status is not a transition and is rejected.
        """
        cls._build_transition_map()
        return to_status in cls._transition_map.get(from_status, set())

    @classmethod
    def requires_admin(cls, from_status: OrderStatus, to_status: OrderStatus) -> bool:
        cls._build_transition_map()
        return (from_status, to_status) in cls._admin_required_transitions

    @classmethod
    def get_valid_transitions(cls, from_status: OrderStatus) -> List[OrderStatus]:
        cls._build_transition_map()
        return sorted(cls._transition_map.get(from_status, set()), key=lambda status: status.value)

    @classmethod
    def get_transition_description(cls, from_status: OrderStatus, to_status: OrderStatus) -> str:
        cls._build_transition_map()
        return cls._transition_descriptions.get(
            (from_status, to_status),
            f"Transition from {from_status.value} to {to_status.value}"
        )

    @classmethod
    def is_final_status(cls, status: OrderStatus) -> bool:
        return status in cls.FINAL_STATUSES

    @classmethod
    def validate_and_log_transition(cls, order_id: str, from_status: OrderStatus, to_status: OrderStatus,
                                    admin_id: Optional[str] = None) -> bool:
        """
        Validate a status transition and write an audit log entry.

        Args:
            order_id: ID of the order being transitioned
            from_status: Current order status
            to_status: Desired new status
            admin_id: ID of admin performing transition (if applicable)

        Returns:
            True if transition is valid and logged, False otherwise
        """
        if not cls.is_valid_transition(from_status, to_status):
            logger.error(f"Invalid status transition for order {order_id}: {from_status.value} -> {to_status.value}")
            return False

        if cls.requires_admin(from_status, to_status) and admin_id is None:
            logger.error(f"Admin required for transition {from_status.value} -> {to_status.value} on order {order_id}")
            return False

        transition_desc = cls.get_transition_description(from_status, to_status)
        performer = f"admin {admin_id}" if admin_id else "system"
        logger.info(
            f"ORDER_STATUS_TRANSITION: Order {order_id} {from_status.value} -> {to_status.value} "
            f"by {performer}: {transition_desc}"
        )
        return True
