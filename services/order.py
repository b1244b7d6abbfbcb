import logging
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_commit, session_rollback
from enums.order_status import OrderStatus
from enums.pricing_tier import PricingTier
from exceptions.cart import EmptyCartException
from exceptions.loyalty import LoyaltyException
from exceptions.order import (
    OrderNotFoundException,
    InvalidOrderStateException,
    OrderSummaryMismatchException,
    OrderItemNotFoundException,
)
from models.cart import BagCounts, CartDTO
from models.loyalty_record import LoyaltyRuleDTO
from models.order import OrderDTO, OrderSummaryDTO, PlacedOrderDTO
from models.orderItem import OrderItemDTO
from models.product import ProductDTO
from repositories.customer import CustomerRepository
from repositories.order import OrderRepository
from repositories.orderItem import OrderItemRepository
from repositories.product import ProductRepository
from services.loyalty import LoyaltyService
from services.pricing import PricingService
from utils.legacy_order_items import parse_order_items
from utils.order_state_machine import OrderStateMachine

UNKNOWN_PRODUCT_NAME = "Unknown Product"


class OrderService:

    @staticmethod
    def _snapshot_item(
        order_id: str,
        product_id: str,
        product: ProductDTO | None,
        quantity_kg: float,
        bags: BagCounts,
        discount_percentage: float,
        discount_reason: str | None
    ) -> OrderItemDTO:
        """Freeze one order line. A missing product becomes a zero-priced placeholder."""
        bag_fields = {
            "bags_1kg": bags.kg1,
            "bags_5kg": bags.kg5,
            "bags_10kg": bags.kg10,
            "bags_25kg": bags.kg25,
        }

        if product is None:
            logging.warning(
                f"⚠️ Product {product_id} not found while building order {order_id}, "
                f"adding placeholder item for reconciliation"
            )
            return OrderItemDTO(
                id=uuid4().hex,
                order_id=order_id,
                product_id=product_id,
                product_name=UNKNOWN_PRODUCT_NAME,
                product_description="",
                quantity_kg=quantity_kg,
                **bag_fields,
                price_per_kg_at_order=0.0,
                base_price_per_kg_at_order=0.0,
                tier_applied=PricingTier.BASE.value,
                tier_price_at_order=None,
                discount_percentage=discount_percentage,
                discount_amount=0.0,
                discount_reason=discount_reason,
                subtotal_before_discount=0.0,
                total_after_discount=0.0,
                needs_reconciliation=True,
                notes="Product not found at checkout"
            )

        tier = PricingService.tier_for_quantity(product, quantity_kg)
        price_per_kg = PricingService.price_per_kg(product, quantity_kg)
        subtotal = round(price_per_kg * quantity_kg, 2)
        discount_amount = round(subtotal * discount_percentage / 100, 2)

        return OrderItemDTO(
            id=uuid4().hex,
            order_id=order_id,
            product_id=product_id,
            product_name=product.name,
            product_description=product.description or "",
            quantity_kg=quantity_kg,
            **bag_fields,
            price_per_kg_at_order=price_per_kg,
            base_price_per_kg_at_order=product.base_price_per_kg,
            tier_applied=(tier or PricingTier.BASE).value,
            tier_price_at_order=PricingService.tier_price(product, tier),
            discount_percentage=discount_percentage,
            discount_amount=discount_amount,
            discount_reason=discount_reason,
            subtotal_before_discount=subtotal,
            total_after_discount=round(subtotal - discount_amount, 2)
        )

    @staticmethod
    async def build_order_items(
        cart: CartDTO,
        order_id: str,
        session: AsyncSession | Session,
        discount_percentage: float = 0.0,
        discount_reason: str | None = None
    ) -> list[OrderItemDTO]:
        """
        Build frozen order item snapshots from a cart.

        Prices are taken from the current product rows, never from the
        product copy embedded in the cart. A product deleted since it was
        added to the cart yields a placeholder line flagged for manual
        reconciliation; the other lines are built normally.

        Args:
            cart: Cart being checked out
            order_id: ID of the order the items belong to
            session: Database session
            discount_percentage: Discount applied to every line (e.g. loyalty code)
            discount_reason: Human-readable reason stored with the discount

        Returns:
            List of OrderItemDTO, one per product
        """
        # One line per product, a tampered stored cart may repeat a product
        lines: dict[str, BagCounts] = {}
        for item in cart.items:
            product_id = item.product_id or ""
            if product_id in lines:
                logging.warning(f"⚠️ Duplicate cart line for product {product_id}, merging bags")
                lines[product_id] = lines[product_id].merged(item.bags)
            else:
                lines[product_id] = item.bags

        products = await ProductRepository.get_by_ids(list(lines), session)

        return [
            OrderService._snapshot_item(
                order_id, product_id, products.get(product_id), bags.quantity_kg, bags,
                discount_percentage, discount_reason
            )
            for product_id, bags in lines.items()
        ]

    @staticmethod
    def summarize(items: list[OrderItemDTO]) -> OrderSummaryDTO:
        subtotal = round(sum(item.subtotal_before_discount for item in items), 2)
        discount = round(sum(item.discount_amount for item in items), 2)
        return OrderSummaryDTO(
            total_items_count=len(items),
            total_weight_kg=round(sum(item.quantity_kg for item in items), 3),
            subtotal_before_discount=subtotal,
            total_discount_amount=discount,
            total_price=round(sum(item.total_after_discount for item in items), 2)
        )

    @staticmethod
    def verify_summary(order: OrderDTO, items: list[OrderItemDTO]) -> None:
        """
        Check that the denormalized order totals equal the sum of its items.

        Raises:
            OrderSummaryMismatchException: On the first field that drifted
        """
        expected = OrderService.summarize(items)
        for field, expected_value in expected.model_dump().items():
            stored_value = getattr(order, field)
            if round(stored_value, 2) != round(expected_value, 2):
                raise OrderSummaryMismatchException(order.id, field, stored_value, expected_value)

    @staticmethod
    async def place_order(
        cart: CartDTO,
        customer_id: str,
        session: AsyncSession | Session,
        address_id: str | None = None,
        loyalty_code: str | None = None,
        notifier=None,
        rule: LoyaltyRuleDTO | None = None
    ) -> PlacedOrderDTO:
        """
        Checkout: persist the order with its item snapshots, then reward and notify.

        Flow:
        1. Reject an empty cart
        2. Validate the loyalty code (nothing is written for an invalid code)
        3. Build snapshots, create order + items, redeem the code, commit
        4. Issue a loyalty reward for the committed order (failures are logged, never raised)
        5. Send the order confirmation email (best effort)

        Args:
            cart: Cart to check out
            customer_id: Customer placing the order
            session: Database session
            address_id: Delivery address reference
            loyalty_code: Discount code to redeem
            notifier: Optional NotificationService
            rule: Loyalty rule (defaults to config)

        Returns:
            PlacedOrderDTO with the committed order, its items and the reward (or None)

        Raises:
            EmptyCartException: If cart has no items
            LoyaltyException: If the loyalty code cannot be redeemed
            SQLAlchemyError: If the order could not be persisted
        """
        if cart.is_empty:
            raise EmptyCartException(customer_id)

        discount_percentage = 0.0
        discount_reason = None
        if loyalty_code:
            record = await LoyaltyService.require_valid_code(loyalty_code, session, customer_id=customer_id, rule=rule)
            loyalty_code = record.discount_code
            discount_percentage = record.extra_discount_percentage
            discount_reason = f"Loyalty discount ({record.rule_name})"

        order_id = uuid4().hex
        items = await OrderService.build_order_items(cart, order_id, session, discount_percentage, discount_reason)
        summary = OrderService.summarize(items)

        order_dto = OrderDTO(
            id=order_id,
            customer_id=customer_id,
            address_id=address_id,
            status=OrderStatus.PENDING,
            loyalty_code_applied=loyalty_code or None,
            **summary.model_dump()
        )

        try:
            await OrderRepository.create(order_dto, session)
            await OrderItemRepository.create_many(items, session)
            if loyalty_code:
                await LoyaltyService.redeem_code(loyalty_code, order_id, session)
            await session_commit(session)
        except (SQLAlchemyError, LoyaltyException) as e:
            await session_rollback(session)
            logging.error(f"❌ Failed to place order for customer {customer_id}: {e}")
            raise

        order = await OrderRepository.get_by_id(order_id, session)
        items = await OrderItemRepository.get_by_order_id(order_id, session)
        logging.info(
            f"✅ Order {order_id} placed: {summary.total_items_count} item(s), "
            f"{summary.total_weight_kg} kg, total {summary.total_price}"
        )

        # The order is committed; nothing below may undo it
        reward = None
        try:
            reward = await LoyaltyService.issue_reward(customer_id, order_id, session, rule=rule, notifier=notifier)
        except Exception as e:
            logging.error(f"❌ Loyalty reward for order {order_id} failed, order stays placed: {e}")

        if notifier is not None:
            customer = await CustomerRepository.get_by_id(customer_id, session)
            if customer is not None:
                await notifier.notify_order_placed(customer, order, items)

        return PlacedOrderDTO(order=order, items=items, reward=reward)

    @staticmethod
    async def update_status(
        order_id: str,
        new_status: OrderStatus,
        session: AsyncSession | Session,
        admin_id: str | None = None
    ) -> OrderDTO:
        """
        Move an order to a new status.

        Returning an order also revokes the loyalty code it earned, as long
        as that code has not been redeemed yet.

        Raises:
            OrderNotFoundException: If order doesn't exist
            InvalidOrderStateException: If the transition is not allowed
        """
        order = await OrderRepository.get_by_id(order_id, session)
        if order is None:
            raise OrderNotFoundException(order_id)

        if not OrderStateMachine.validate_and_log_transition(order_id, order.status, new_status, admin_id):
            allowed = [status.value for status in OrderStateMachine.get_valid_transitions(order.status)]
            raise InvalidOrderStateException(
                order_id=order_id,
                current_state=order.status.value,
                required_state=" or ".join(allowed) if allowed else "none (final status)"
            )

        await OrderRepository.update_status(order_id, new_status, session)
        if new_status == OrderStatus.RETURNED:
            await LoyaltyService.revoke_for_order(order_id, session)
        await session_commit(session)

        return await OrderRepository.get_by_id(order_id, session)

    @staticmethod
    async def update_item_notes(
        order_item_id: str,
        notes: str,
        session: AsyncSession | Session,
        needs_reconciliation: bool | None = None
    ) -> OrderItemDTO:
        """Administrative correction of an order item. Price snapshots stay untouched."""
        order_item = await OrderItemRepository.get_by_id(order_item_id, session)
        if order_item is None:
            raise OrderItemNotFoundException(order_item_id)

        values = {"notes": notes}
        if needs_reconciliation is not None:
            values["needs_reconciliation"] = needs_reconciliation
        await OrderItemRepository.update(order_item_id, values, session)
        await session_commit(session)
        return await OrderItemRepository.get_by_id(order_item_id, session)

    @staticmethod
    async def migrate_legacy_order(order_id: str, session: AsyncSession | Session) -> list[OrderItemDTO]:
        """
        Build normalized order items for an order that only has the legacy CSV list.

        The CSV carries no prices, so lines are priced at the current
        product prices and flagged for reconciliation. Orders that already
        have order items are left alone.

        Returns:
            The order's items after migration

        Raises:
            OrderNotFoundException: If order doesn't exist
        """
        order = await OrderRepository.get_by_id(order_id, session)
        if order is None:
            raise OrderNotFoundException(order_id)

        if await OrderItemRepository.count_by_order_id(order_id, session) > 0:
            logging.debug(f"Order {order_id} already has order items, skipping legacy migration")
            return await OrderItemRepository.get_by_order_id(order_id, session)

        quantities: dict[str, float] = {}
        for product_id, quantity_kg in parse_order_items(order.order_items):
            quantities[product_id] = quantities.get(product_id, 0) + quantity_kg
        if not quantities:
            logging.warning(f"⚠️ Order {order_id} has no parseable legacy items, nothing to migrate")
            return []

        products = await ProductRepository.get_by_ids(list(quantities), session)
        items = []
        for product_id, quantity_kg in quantities.items():
            # Quantity must equal the bag sum, fractions are kept in the notes only
            bags = BagCounts.from_quantity(quantity_kg)
            item = OrderService._snapshot_item(
                order_id, product_id, products.get(product_id), bags.quantity_kg, bags, 0.0, None
            )
            item.needs_reconciliation = True
            notes = [item.notes or "Migrated from legacy order items, priced at migration time"]
            if quantity_kg != bags.quantity_kg:
                dropped_kg = round(quantity_kg - bags.quantity_kg, 3)
                logging.warning(
                    f"⚠️ Legacy order {order_id}: {product_id} had {quantity_kg:g} kg, "
                    f"{dropped_kg:g} kg cannot be expressed in bags"
                )
                notes.append(f"Legacy quantity {quantity_kg:g} kg, {dropped_kg:g} kg not representable in bags")
            item.notes = "; ".join(notes)
            items.append(item)

        summary = OrderService.summarize(items)
        if round(order.total_price, 2) != summary.total_price:
            logging.warning(
                f"⚠️ Legacy order {order_id} total changes from {order.total_price} to {summary.total_price} "
                f"after migration"
            )

        await OrderItemRepository.create_many(items, session)
        await OrderRepository.update_summary(order_id, summary, session)
        await session_commit(session)
        logging.info(f"🔄 Migrated legacy order {order_id}: {len(items)} item(s)")
        return await OrderItemRepository.get_by_order_id(order_id, session)

    @staticmethod
    async def migrate_legacy_orders(session: AsyncSession | Session) -> int:
        """Run migrate_legacy_order() for every order still carrying a CSV item list."""
        migrated = 0
        for order in await OrderRepository.get_legacy_orders(session):
            if await OrderItemRepository.count_by_order_id(order.id, session) == 0:
                await OrderService.migrate_legacy_order(order.id, session)
                migrated += 1
        return migrated
