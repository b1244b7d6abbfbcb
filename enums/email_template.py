from enum import Enum


class EmailTemplate(str, Enum):
    LOYALTY_CODE_ISSUED = "loyalty_code_issued"
    ORDER_CONFIRMATION = "order_confirmation"
