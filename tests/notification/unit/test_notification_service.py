"""
NotificationService and SmtpEmailSender Unit Tests

Delivery is best effort: a failing mail server must never surface as an
exception to checkout or loyalty issuance.
"""

import smtplib
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from enums.email_template import EmailTemplate
from models.customer import CustomerDTO
from models.loyalty_record import LoyaltyRecordDTO
from models.order import OrderDTO
from models.orderItem import OrderItemDTO
from services.notification import NotificationService
from utils.email_sender import SmtpEmailSender


@pytest.fixture
def customer():
    return CustomerDTO(id="c1", full_name="Asha Perera", email="asha@example.com")


@pytest.fixture
def record():
    return LoyaltyRecordDTO(
        customer_id="c1",
        discount_code="LOYALTYAB12CD",
        extra_discount_percentage=3.0,
        qualifying_order_id="o1"
    )


@pytest.fixture
def sender():
    mock_sender = MagicMock()
    mock_sender.send_email = AsyncMock()
    return mock_sender


def order_item(**overrides) -> OrderItemDTO:
    values = {
        "product_name": "Premium Basmati",
        "quantity_kg": 7.0,
        "price_per_kg_at_order": 180.0,
        "subtotal_before_discount": 1260.0,
        "total_after_discount": 1260.0,
    }
    values.update(overrides)
    return OrderItemDTO(**values)


class TestNotifyLoyaltyCodeIssued:

    @pytest.mark.asyncio
    async def test_sends_code_email(self, sender, customer, record):
        sent = await NotificationService(sender).notify_loyalty_code_issued(customer, record)

        assert sent is True
        template, recipient, data = sender.send_email.await_args.args
        assert template == EmailTemplate.LOYALTY_CODE_ISSUED
        assert recipient == "asha@example.com"
        assert data["discount_code"] == "LOYALTYAB12CD"
        assert data["discount_percentage"] == "3"
        assert data["order_id"] == "o1"

    @pytest.mark.asyncio
    async def test_delivery_failure_is_swallowed(self, sender, customer, record):
        sender.send_email.side_effect = smtplib.SMTPServerDisconnected("connection lost")

        sent = await NotificationService(sender).notify_loyalty_code_issued(customer, record)

        assert sent is False

    @pytest.mark.asyncio
    async def test_customer_without_email_is_skipped(self, sender, record):
        customer = CustomerDTO(id="c2", full_name="Nimal Silva", email=None)

        sent = await NotificationService(sender).notify_loyalty_code_issued(customer, record)

        assert sent is False
        sender.send_email.assert_not_awaited()


class TestNotifyOrderPlaced:

    def test_format_order_lines(self):
        items = [
            order_item(),
            order_item(
                product_name="Red Samba",
                quantity_kg=25.0,
                price_per_kg_at_order=150.0,
                subtotal_before_discount=3750.0,
                discount_percentage=3.0,
                discount_amount=112.5,
                total_after_discount=3637.5
            ),
        ]

        lines = NotificationService.format_order_lines(items).split("\n")

        assert lines == [
            "Premium Basmati: 7 kg x Rs. 180.00/kg = Rs. 1260.00",
            "Red Samba: 25 kg x Rs. 150.00/kg = Rs. 3750.00",
            "  discount 3%: -Rs. 112.50",
        ]

    @pytest.mark.asyncio
    async def test_order_confirmation_data(self, sender, customer):
        order = OrderDTO(
            id="o1",
            customer_id="c1",
            total_weight_kg=7.0,
            subtotal_before_discount=1260.0,
            total_price=1260.0
        )

        sent = await NotificationService(sender).notify_order_placed(customer, order, [order_item()])

        assert sent is True
        template, _, data = sender.send_email.await_args.args
        assert template == EmailTemplate.ORDER_CONFIRMATION
        assert data["discount_code"] == "none"
        assert data["total_weight_kg"] == "7"
        assert "Premium Basmati: 7 kg" in data["order_lines"]


class TestSmtpEmailSender:

    def make_sender(self, host="smtp.example.com") -> SmtpEmailSender:
        return SmtpEmailSender(
            host=host,
            port=465,
            user="shop",
            password="secret",
            sender="shop@example.com",
            use_ssl=True
        )

    def test_build_message_renders_template(self):
        message = self.make_sender().build_message(
            EmailTemplate.LOYALTY_CODE_ISSUED,
            "asha@example.com",
            {
                "customer_name": "Asha Perera",
                "discount_code": "LOYALTYAB12CD",
                "discount_percentage": "3",
                "order_id": "o1",
            }
        )

        assert message["Subject"] == "Your loyalty discount code LOYALTYAB12CD"
        assert message["To"] == "asha@example.com"
        assert message["From"] == "shop@example.com"
        body = message.get_content()
        assert "Hello Asha Perera" in body
        assert "3% off" in body

    @pytest.mark.asyncio
    @patch('utils.email_sender.smtplib.SMTP_SSL')
    async def test_send_email_logs_in_and_sends(self, mock_smtp_ssl):
        smtp = mock_smtp_ssl.return_value.__enter__.return_value

        await self.make_sender().send_email(
            EmailTemplate.ORDER_CONFIRMATION,
            "asha@example.com",
            {
                "customer_name": "Asha Perera",
                "order_id": "o1",
                "order_lines": "",
                "total_weight_kg": "7",
                "currency_sym": "Rs.",
                "subtotal": 1260.0,
                "discount": 0.0,
                "total": 1260.0,
                "discount_code": "none",
            }
        )

        mock_smtp_ssl.assert_called_once_with("smtp.example.com", 465, timeout=30)
        smtp.login.assert_called_once_with("shop", "secret")
        smtp.send_message.assert_called_once()

    @pytest.mark.asyncio
    @patch('utils.email_sender.smtplib.SMTP_SSL')
    async def test_send_email_without_host_is_skipped(self, mock_smtp_ssl):
        await self.make_sender(host="").send_email(EmailTemplate.LOYALTY_CODE_ISSUED, "asha@example.com", {})

        mock_smtp_ssl.assert_not_called()
