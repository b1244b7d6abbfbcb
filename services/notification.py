import logging

import config
from enums.email_template import EmailTemplate
from enums.text_entity import TextEntity
from models.customer import CustomerDTO
from models.loyalty_record import LoyaltyRecordDTO
from models.order import OrderDTO
from models.orderItem import OrderItemDTO
from utils.email_sender import EmailSender
from utils.localizator import Localizator


class NotificationService:
    """
    Customer emails.

    Sending is best effort: every method catches delivery errors, logs them
    and returns False so the calling flow (checkout, loyalty issuance) is
    never affected by a mail outage.
    """

    def __init__(self, sender: EmailSender):
        self.sender = sender

    async def _send(self, template: EmailTemplate, customer: CustomerDTO, data: dict) -> bool:
        if not customer.email:
            logging.info(f"📭 Customer {customer.id} has no email address, skipping {template.value}")
            return False
        try:
            await self.sender.send_email(template, customer.email, data)
            return True
        except Exception as e:
            logging.error(f"❌ Failed to send {template.value} email to customer {customer.id}: {e}")
            return False

    async def notify_loyalty_code_issued(self, customer: CustomerDTO, record: LoyaltyRecordDTO) -> bool:
        data = {
            "customer_name": customer.full_name or "",
            "discount_code": record.discount_code,
            "discount_percentage": f"{record.extra_discount_percentage:g}",
            "order_id": record.qualifying_order_id,
        }
        return await self._send(EmailTemplate.LOYALTY_CODE_ISSUED, customer, data)

    @staticmethod
    def format_order_lines(items: list[OrderItemDTO]) -> str:
        lines = []
        for item in items:
            lines.append(Localizator.get_text(TextEntity.COMMON, "order_line").format(
                product_name=item.product_name,
                quantity_kg=f"{item.quantity_kg:g}",
                currency_sym=config.CURRENCY_SYMBOL,
                price_per_kg=item.price_per_kg_at_order,
                total=item.subtotal_before_discount
            ))
            if item.discount_amount > 0:
                lines.append(Localizator.get_text(TextEntity.COMMON, "order_line_discount").format(
                    discount_percentage=f"{item.discount_percentage:g}",
                    currency_sym=config.CURRENCY_SYMBOL,
                    discount_amount=item.discount_amount
                ))
        return "\n".join(lines)

    async def notify_order_placed(self, customer: CustomerDTO, order: OrderDTO, items: list[OrderItemDTO]) -> bool:
        try:
            data = {
                "customer_name": customer.full_name or "",
                "order_id": order.id,
                "order_lines": self.format_order_lines(items),
                "total_weight_kg": f"{order.total_weight_kg:g}",
                "currency_sym": config.CURRENCY_SYMBOL,
                "subtotal": order.subtotal_before_discount,
                "discount": order.total_discount_amount,
                "total": order.total_price,
                "discount_code": order.loyalty_code_applied or Localizator.get_text(TextEntity.COMMON, "no_discount_code"),
            }
        except (KeyError, OSError) as e:
            logging.error(f"❌ Could not render order confirmation for order {order.id}: {e}")
            return False
        return await self._send(EmailTemplate.ORDER_CONFIRMATION, customer, data)
