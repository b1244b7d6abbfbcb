import asyncio
import logging

from redis.asyncio import Redis

import config
from utils.logging_config import setup_logging

# Initialize centralized logging configuration
setup_logging()

from db import create_db_and_tables, get_db_session
from services.cart_storage import CartStorage
from services.notification import NotificationService
from services.order import OrderService
from utils.email_sender import SmtpEmailSender

redis = Redis(host=config.REDIS_HOST, port=config.REDIS_PORT, password=config.REDIS_PASSWORD)
cart_storage = CartStorage(redis, ttl_seconds=config.CART_TTL_SECONDS)
notifier = NotificationService(SmtpEmailSender())


async def startup():
    """Create missing tables and move legacy CSV orders to order items."""
    await create_db_and_tables()
    logging.info("[Startup] Database ready")

    async with get_db_session() as session:
        migrated = await OrderService.migrate_legacy_orders(session)
    logging.info(f"[Startup] Migrated {migrated} legacy order(s)")

    await redis.ping()
    logging.info(f"[Startup] Cart storage connected ({config.REDIS_HOST}:{config.REDIS_PORT})")


async def shutdown():
    logging.warning('Shutting down..')
    await redis.aclose()


async def main():
    try:
        await startup()
    finally:
        await shutdown()


if __name__ == '__main__':
    asyncio.run(main())
