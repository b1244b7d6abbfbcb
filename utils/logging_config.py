"""
Centralized Logging Configuration

Provides logging with:
- Configurable log levels
- Automatic log rotation
- Secret masking to prevent credential and customer data leaks
"""

import logging
import logging.handlers
import re
from pathlib import Path
from typing import Pattern

import config


class SecretMaskingFilter(logging.Filter):
    """
    Logging filter that masks sensitive data in log records.

    Masks:
    - Passwords and tokens (SMTP, Redis)
    - Customer email addresses and phone numbers
    - Loyalty discount codes (a leaked code can be redeemed by anyone)
    """

    PATTERNS: list[tuple[Pattern, str]] = [
        # Tokens
        (re.compile(r'(token["\']?\s*[:=]\s*["\']?)([A-Za-z0-9_\-:]{20,})(["\']?)', re.IGNORECASE), r'\1[REDACTED_TOKEN]\3'),
        (re.compile(r'(Bearer\s+)([A-Za-z0-9_\-\.]+)', re.IGNORECASE), r'\1[REDACTED_BEARER_TOKEN]'),

        # Passwords
        (re.compile(r'(password["\']?\s*[:=]\s*["\']?)([^\s"\']+)(["\']?)', re.IGNORECASE), r'\1[REDACTED_PASSWORD]\3'),

        # Email addresses (PII)
        (re.compile(r'\b([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})\b'), '[REDACTED_EMAIL]'),

        # Phone numbers (various formats)
        (re.compile(r'(?<![\w-])(\+?\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}\b'), '[REDACTED_PHONE]'),
    ]

    def __init__(self, code_prefix: str | None = None):
        super().__init__()
        code_prefix = code_prefix or getattr(config, "LOYALTY_CODE_PREFIX", "LOYALTY")
        self.patterns = self.PATTERNS + [
            (re.compile(rf'\b{re.escape(code_prefix)}[A-Z0-9]{{4,}}\b'), '[REDACTED_DISCOUNT_CODE]'),
        ]

    def mask(self, text: str) -> str:
        for pattern, replacement in self.patterns:
            text = pattern.sub(replacement, text)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Mask secrets in the record message and string arguments.

        Returns:
            True (always - we modify but don't block records)
        """
        if record.msg:
            record.msg = self.mask(str(record.msg))

        if record.args:
            record.args = tuple(self.mask(arg) if isinstance(arg, str) else arg for arg in record.args)

        return True


# SQL statements and driver chatter stay out of the shop log
QUIET_LOGGERS = ['aiosqlite', 'sqlalchemy', 'sqlalchemy.engine', 'sqlalchemy.pool', 'sqlalchemy.orm']


def _build_handlers(log_dir: Path, level: int, retention_days: int, mask_secrets: bool) -> list[logging.Handler]:
    formatter = logging.Formatter(
        fmt='%(asctime)s | %(name)-25s | %(levelname)-8s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    handlers = [
        logging.handlers.TimedRotatingFileHandler(
            filename=log_dir / "shop.log",
            when="midnight",
            backupCount=retention_days,
            encoding="utf-8"
        ),
        logging.StreamHandler(),
    ]
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(level)
        if mask_secrets:
            handler.addFilter(SecretMaskingFilter())
    return handlers


def setup_logging(log_dir: Path = Path("logs")):
    """
    Configure the root logger for the shop. Call once at startup.

    Level, retention and secret masking come from config
    (LOG_LEVEL, LOG_RETENTION_DAYS, LOG_MASK_SECRETS). Output goes to the
    console and to log_dir/shop.log, rotated every midnight.
    """
    log_dir.mkdir(exist_ok=True)

    level_name = getattr(config, "LOG_LEVEL", "INFO")
    level = getattr(logging, level_name.upper(), logging.INFO)
    retention_days = getattr(config, "LOG_RETENTION_DAYS", 7)
    mask_secrets = getattr(config, "LOG_MASK_SECRETS", True)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in _build_handlers(log_dir, level, retention_days, mask_secrets):
        root_logger.addHandler(handler)

    for logger_name in QUIET_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.info(
        f"📝 Logging initialized: level={level_name}, retention={retention_days} days, "
        f"masking={'on' if mask_secrets else 'off'}"
    )
