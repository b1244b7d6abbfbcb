import os
import sys

from dotenv import load_dotenv

from enums.runtime_environment import RuntimeEnvironment

# Load .env but don't override existing environment variables
# This allows test scripts to set RUNTIME_ENVIRONMENT=TEST before import
load_dotenv(".env", override=False)

# Parse RUNTIME_ENVIRONMENT with clear error message on misconfiguration
try:
    RUNTIME_ENVIRONMENT = RuntimeEnvironment(os.environ.get("RUNTIME_ENVIRONMENT", "DEV"))
except ValueError as e:
    valid_values = [env.value for env in RuntimeEnvironment]
    print(f"\n ERROR: Invalid RUNTIME_ENVIRONMENT configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Valid values: {', '.join(valid_values)}", file=sys.stderr)
    print(f"Current value: {os.environ.get('RUNTIME_ENVIRONMENT', '(not set)')}", file=sys.stderr)
    print(f"\nAdd to .env: RUNTIME_ENVIRONMENT={valid_values[0]}\n", file=sys.stderr)
    sys.exit(1)

DB_NAME = os.environ.get("DB_NAME", "shop.db")

SHOP_LANGUAGE = os.environ.get("SHOP_LANGUAGE", "en")  # Default to English
CURRENCY_SYMBOL = os.environ.get("CURRENCY_SYMBOL", "Rs.")

# Loyalty Reward Configuration
# A customer qualifies when a single non-returned order reaches LOYALTY_MIN_ORDER_AMOUNT
# and their order history reaches LOYALTY_MIN_TOTAL_ORDERS / LOYALTY_MIN_TOTAL_SPEND.
LOYALTY_ENABLED = os.environ.get("LOYALTY_ENABLED", "true") == "true"
LOYALTY_RULE_NAME = os.environ.get("LOYALTY_RULE_NAME", "Loyalty Discount Program")
LOYALTY_CODE_PREFIX = os.environ.get("LOYALTY_CODE_PREFIX", "LOYALTY")
LOYALTY_EXCLUDED_KEYWORDS = [
    keyword.strip()
    for keyword in os.environ.get("LOYALTY_EXCLUDED_KEYWORDS", "hotel,restaurant").split(",")
    if keyword.strip()
]

# Parse numeric loyalty settings with error handling
try:
    LOYALTY_MIN_ORDER_AMOUNT = float(os.environ.get("LOYALTY_MIN_ORDER_AMOUNT", "5000"))
    LOYALTY_MIN_TOTAL_ORDERS = int(os.environ.get("LOYALTY_MIN_TOTAL_ORDERS", "1"))
    LOYALTY_MIN_TOTAL_SPEND = float(os.environ.get("LOYALTY_MIN_TOTAL_SPEND", "0"))
    LOYALTY_DISCOUNT_PERCENTAGE = float(os.environ.get("LOYALTY_DISCOUNT_PERCENTAGE", "3.0"))
    LOYALTY_CODE_RANDOM_LENGTH = int(os.environ.get("LOYALTY_CODE_RANDOM_LENGTH", "6"))
    if not 0 < LOYALTY_DISCOUNT_PERCENTAGE <= 100:
        raise ValueError(f"LOYALTY_DISCOUNT_PERCENTAGE must be in (0, 100] (got: {LOYALTY_DISCOUNT_PERCENTAGE})")
    if LOYALTY_CODE_RANDOM_LENGTH < 4:
        raise ValueError(f"LOYALTY_CODE_RANDOM_LENGTH must be at least 4 (got: {LOYALTY_CODE_RANDOM_LENGTH})")
except ValueError as e:
    print(f"\n ERROR: Invalid loyalty configuration\n", file=sys.stderr)
    print(f"Reason: {e}", file=sys.stderr)
    print(f"Expected: numeric LOYALTY_* values (e.g., LOYALTY_MIN_ORDER_AMOUNT=5000)\n", file=sys.stderr)
    sys.exit(1)

# Cart Storage (Redis)
REDIS_HOST = os.environ.get("REDIS_HOST", "localhost")
REDIS_PORT = int(os.environ.get("REDIS_PORT", "6379"))
REDIS_PASSWORD = os.environ.get("REDIS_PASSWORD")
CART_TTL_SECONDS = int(os.environ.get("CART_TTL_SECONDS", str(30 * 24 * 3600)))  # Default: 30 days

# Email (SMTP)
SMTP_HOST = os.environ.get("SMTP_HOST", "")
SMTP_PORT = int(os.environ.get("SMTP_PORT", "465"))
SMTP_USER = os.environ.get("SMTP_USER", "")
SMTP_PASSWORD = os.environ.get("SMTP_PASSWORD", "")
SMTP_SENDER = os.environ.get("SMTP_SENDER", SMTP_USER)
SMTP_USE_SSL = os.environ.get("SMTP_USE_SSL", "true") == "true"

# Logging Configuration
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")  # DEBUG, INFO, WARNING, ERROR, CRITICAL
LOG_MASK_SECRETS = os.environ.get("LOG_MASK_SECRETS", "true") == "true"  # Mask sensitive data in logs

# Log Retention: Environment-specific defaults
# Dev: 30 days for debugging
# Prod: 5 days default to save disk space
if RUNTIME_ENVIRONMENT == RuntimeEnvironment.DEV:
    LOG_RETENTION_DAYS = int(os.environ.get("LOG_RETENTION_DAYS", "30"))
else:
    LOG_RETENTION_DAYS = int(os.environ.get("LOG_RETENTION_DAYS", "5"))
