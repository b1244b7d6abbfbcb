import logging
import secrets
import string
from datetime import datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_commit, session_rollback
from enums.loyalty_code_status import LoyaltyCodeStatus
from enums.loyalty_state import LoyaltyState
from enums.order_status import OrderStatus
from exceptions.loyalty import (
    LoyaltyException,
    InvalidDiscountCodeException,
    DiscountCodeAlreadyUsedException,
    DiscountCodeInactiveException,
    DiscountCodeGenerationException,
    LoyaltyIssuanceException,
)
from models.loyalty_record import LoyaltyRecordDTO, LoyaltyRuleDTO, DiscountValidationResultDTO
from models.order import CustomerOrderStatsDTO
from repositories.customer import CustomerRepository
from repositories.loyalty_record import LoyaltyRecordRepository
from repositories.order import OrderRepository
from repositories.orderItem import OrderItemRepository


class LoyaltyService:
    """
    Loyalty reward engine.

    After an order is committed, issue_reward() decides whether it earns
    the customer a single-use discount code. Issuance happens at most once
    per (customer, qualifying order): the database enforces
    UNIQUE(customer_id, qualifying_order_id), so retried or concurrent
    calls for the same order all end up with the same record.

    A customer holds at most one active code. A newer reward supersedes an
    unredeemed older one instead of stacking with it.
    """

    CODE_ALPHABET = string.ascii_uppercase + string.digits
    MAX_CODE_ATTEMPTS = 10

    @staticmethod
    def generate_code(prefix: str = "LOYALTY", length: int = 6) -> str:
        """
        Generate a discount code: prefix + random uppercase alphanumerics.

        Examples:
            >>> LoyaltyService.generate_code()
            'LOYALTY7QX2KD'
        """
        return prefix + "".join(secrets.choice(LoyaltyService.CODE_ALPHABET) for _ in range(length))

    @staticmethod
    def is_excluded_product(product_name: str | None, excluded_keywords: list[str]) -> bool:
        """Bulk/wholesale products (e.g. hotel or restaurant packs) never earn rewards."""
        if not product_name:
            return False
        name = product_name.lower()
        return any(keyword.lower() in name for keyword in excluded_keywords)

    @staticmethod
    async def _generate_unique_code(rule: LoyaltyRuleDTO, session: AsyncSession | Session) -> str:
        for _ in range(LoyaltyService.MAX_CODE_ATTEMPTS):
            code = LoyaltyService.generate_code(rule.code_prefix, rule.code_random_length)
            if not await LoyaltyRecordRepository.code_exists(code, session):
                return code
            logging.warning("⚠️ Discount code collision, regenerating")
        raise DiscountCodeGenerationException(LoyaltyService.MAX_CODE_ATTEMPTS)

    @staticmethod
    async def check_eligibility(
        customer_id: str,
        order_id: str,
        session: AsyncSession | Session,
        rule: LoyaltyRuleDTO
    ) -> CustomerOrderStatsDTO | None:
        """
        Recompute qualification from persisted data only.

        Returns:
            The customer's order aggregate if the order qualifies, None otherwise
        """
        order = await OrderRepository.get_by_id(order_id, session)
        if order is None or order.customer_id != customer_id:
            logging.warning(f"⚠️ Loyalty check for unknown order {order_id} of customer {customer_id}")
            return None

        if order.status == OrderStatus.RETURNED:
            logging.info(f"Order {order_id} was returned, no loyalty reward")
            return None

        if order.total_price < rule.min_order_amount:
            logging.info(
                f"Order {order_id} total {order.total_price} below loyalty minimum {rule.min_order_amount}"
            )
            return None

        items = await OrderItemRepository.get_by_order_id(order_id, session)
        excluded = [
            item.product_name for item in items
            if LoyaltyService.is_excluded_product(item.product_name, rule.excluded_keywords)
        ]
        if excluded:
            logging.info(f"Order {order_id} contains excluded products {excluded}, no loyalty reward")
            return None

        stats = await OrderRepository.get_stats_by_customer(customer_id, session)
        if stats.total_orders < rule.min_total_orders or stats.total_spend < rule.min_total_spend:
            logging.info(
                f"Customer {customer_id} below loyalty milestone "
                f"(orders={stats.total_orders}, spend={stats.total_spend})"
            )
            return None
        return stats

    @staticmethod
    async def issue_reward(
        customer_id: str,
        order_id: str,
        session: AsyncSession | Session,
        rule: LoyaltyRuleDTO | None = None,
        notifier=None
    ) -> LoyaltyRecordDTO | None:
        """
        Issue a loyalty code for a committed order, at most once per order.

        Must run after the order itself is committed. The record insert is
        the first write of the transaction so a concurrent caller for the
        same order fails on the unique constraint instead of creating a
        second code.

        Args:
            customer_id: Customer who placed the order
            order_id: The qualifying order
            session: Database session
            rule: Loyalty rule (defaults to config)
            notifier: Optional NotificationService for the code email

        Returns:
            The record for this order (new or replayed), or None if the order does not qualify

        Raises:
            LoyaltyIssuanceException: If the record could not be persisted
            DiscountCodeGenerationException: If no unused code could be generated
        """
        rule = rule or LoyaltyRuleDTO.from_config()
        if not rule.enabled:
            logging.debug("Loyalty program disabled, skipping reward")
            return None

        existing = await LoyaltyRecordRepository.get_by_customer_and_order(customer_id, order_id, session)
        if existing is not None:
            logging.info(f"🔁 Loyalty reward for order {order_id} already issued, returning existing record")
            return existing

        stats = await LoyaltyService.check_eligibility(customer_id, order_id, session, rule)
        if stats is None:
            return None

        customer = await CustomerRepository.get_by_id(customer_id, session)
        logging.info(f"🎁 Customer {customer_id} qualifies for a loyalty reward ({LoyaltyState.PENDING_ISSUE.value})")

        superseded = 0
        for attempt in range(1, LoyaltyService.MAX_CODE_ATTEMPTS + 1):
            code = await LoyaltyService._generate_unique_code(rule, session)
            record_dto = LoyaltyRecordDTO(
                customer_id=customer_id,
                customer_name=customer.full_name if customer else None,
                total_purchases=stats.total_orders,
                total_purchase_amount=stats.total_spend,
                rule_name=rule.rule_name,
                rule_active=True,
                discount_percentage=rule.discount_percentage,
                extra_discount_percentage=rule.discount_percentage,
                discount_code=code,
                code_status=LoyaltyCodeStatus.ACTIVE,
                qualifying_order_id=order_id,
            )

            try:
                record_id = await LoyaltyRecordRepository.create(record_dto, session)
                superseded = await LoyaltyRecordRepository.supersede_active(customer_id, record_id, session)
                await session_commit(session)
                break
            except IntegrityError as e:
                await session_rollback(session)
                winner = await LoyaltyRecordRepository.get_by_customer_and_order(customer_id, order_id, session)
                if winner is not None:
                    logging.info(f"🔁 Concurrent loyalty issuance for order {order_id}, returning existing record")
                    return winner
                # Another customer took the same code between the check and the insert
                logging.warning(
                    f"⚠️ Discount code {code} already taken (attempt {attempt}/{LoyaltyService.MAX_CODE_ATTEMPTS}): {e}"
                )
            except SQLAlchemyError as e:
                await session_rollback(session)
                logging.error(f"❌ Failed to persist loyalty reward for order {order_id}: {e}")
                raise LoyaltyIssuanceException(customer_id, order_id, str(e)) from e
        else:
            logging.error(f"❌ Loyalty insert for order {order_id} kept violating a constraint")
            raise LoyaltyIssuanceException(customer_id, order_id, "uniqueness violation")

        if superseded:
            logging.info(f"Superseded {superseded} older loyalty code(s) of customer {customer_id}")

        record = await LoyaltyRecordRepository.get_by_customer_and_order(customer_id, order_id, session)
        logging.info(f"✅ Loyalty code issued to customer {customer_id} for order {order_id}: {record.discount_code}")

        if notifier is not None and customer is not None:
            await notifier.notify_loyalty_code_issued(customer, record)
        return record

    @staticmethod
    async def require_valid_code(
        code: str,
        session: AsyncSession | Session,
        customer_id: str | None = None,
        rule: LoyaltyRuleDTO | None = None
    ) -> LoyaltyRecordDTO:
        """
        Look up a code that can be redeemed right now.

        Raises:
            InvalidDiscountCodeException: Unknown code or code of another customer
            DiscountCodeAlreadyUsedException: Code was redeemed before
            DiscountCodeInactiveException: Code superseded/revoked or program disabled
        """
        rule = rule or LoyaltyRuleDTO.from_config()
        normalized = (code or "").strip().upper()
        record = await LoyaltyRecordRepository.get_by_code(normalized, session) if normalized else None

        if record is None:
            raise InvalidDiscountCodeException(normalized, "unknown code")
        if customer_id is not None and record.customer_id != customer_id:
            raise InvalidDiscountCodeException(normalized, "code belongs to another customer")
        if record.code_status == LoyaltyCodeStatus.USED:
            raise DiscountCodeAlreadyUsedException(normalized)
        if record.code_status != LoyaltyCodeStatus.ACTIVE:
            raise DiscountCodeInactiveException(normalized, record.code_status.value)
        if not record.rule_active or not rule.enabled:
            raise DiscountCodeInactiveException(normalized, "loyalty program inactive")
        return record

    @staticmethod
    async def validate_code(
        code: str,
        session: AsyncSession | Session,
        customer_id: str | None = None,
        rule: LoyaltyRuleDTO | None = None
    ) -> DiscountValidationResultDTO:
        try:
            record = await LoyaltyService.require_valid_code(code, session, customer_id, rule)
        except LoyaltyException as e:
            return DiscountValidationResultDTO(is_valid=False, message=e.message)
        return DiscountValidationResultDTO(
            is_valid=True,
            discount_percentage=record.extra_discount_percentage,
            message=f"{record.extra_discount_percentage:g}% discount applied",
            record=record
        )

    @staticmethod
    async def redeem_code(code: str, order_id: str, session: AsyncSession | Session) -> None:
        """
        Mark a code as used by an order. Does not commit.

        Raises:
            DiscountCodeAlreadyUsedException: If the code was not active anymore
        """
        if not await LoyaltyRecordRepository.mark_used(code, order_id, datetime.now(), session):
            raise DiscountCodeAlreadyUsedException(code)
        logging.info(f"🎟️ Discount code redeemed in order {order_id}")

    @staticmethod
    async def revoke_for_order(order_id: str, session: AsyncSession | Session) -> int:
        """Revoke the still-active code an order earned (e.g. the order was returned). Does not commit."""
        revoked = await LoyaltyRecordRepository.revoke_active_by_order(order_id, session)
        if revoked:
            logging.info(f"🚫 Revoked loyalty code earned by order {order_id}")
        return revoked

    @staticmethod
    async def get_active_record(customer_id: str, session: AsyncSession | Session) -> LoyaltyRecordDTO | None:
        return await LoyaltyRecordRepository.get_active_by_customer(customer_id, session)

    @staticmethod
    async def get_customer_state(customer_id: str, session: AsyncSession | Session) -> LoyaltyState:
        """
        Derive the customer's loyalty state from stored records.

        PENDING_ISSUE only exists inside issue_reward() and is never stored.
        A customer whose latest code was revoked or superseded without a
        replacement is back at NONE.
        """
        if await LoyaltyRecordRepository.get_active_by_customer(customer_id, session) is not None:
            return LoyaltyState.ISSUED

        latest = await LoyaltyRecordRepository.get_latest_by_customer(customer_id, session)
        if latest is not None and latest.code_status == LoyaltyCodeStatus.USED:
            return LoyaltyState.REDEEMED
        return LoyaltyState.NONE
