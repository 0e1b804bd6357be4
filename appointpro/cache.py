"""
Redis connection factory
Backs the shared OTP store when OTP_STORE_BACKEND=redis
"""

import logging
from typing import Optional

import redis

from .config import REDIS_DB, REDIS_HOST, REDIS_PASSWORD, REDIS_PORT, REDIS_SSL, REDIS_URL

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None


def _mask_url(url: str) -> str:
    if "@" in url:
        url_parts = url.split("@")
        protocol = url_parts[0].split(":")[0]
        return f"{protocol}:****@{url_parts[1]}"
    return "****"


def get_redis_client() -> redis.Redis:
    """
    Get or create the shared Redis client.
    Uses REDIS_URL when set, otherwise the individual host/port settings.
    Connection failures propagate to the caller.
    """
    global redis_client

    if redis_client is None:
        logger.info("🔄 Initializing Redis connection...")

        if REDIS_URL:
            logger.info(f"📡 Using Redis URL connection: {_mask_url(REDIS_URL)}")
            client = redis.from_url(
                REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=15,
                socket_timeout=30,
                retry_on_timeout=True,
                health_check_interval=30,
                max_connections=20,
            )
        else:
            logger.info(
                f"📡 Using Redis at {REDIS_HOST}:{REDIS_PORT} db={REDIS_DB} "
                f"(SSL: {'Enabled' if REDIS_SSL else 'Disabled'}, "
                f"Password: {'Set' if REDIS_PASSWORD else 'Not set'})"
            )
            client = redis.Redis(
                host=REDIS_HOST,
                port=REDIS_PORT,
                password=REDIS_PASSWORD,
                db=REDIS_DB,
                ssl=REDIS_SSL,
                decode_responses=True,
                socket_connect_timeout=15,
                socket_timeout=30,
                retry_on_timeout=True,
                health_check_interval=30,
                max_connections=20,
            )

        try:
            client.ping()
        except redis.RedisError as e:
            logger.error(f"❌ Failed to connect to Redis: {str(e)}")
            raise

        logger.info("✅ Redis connected successfully")
        redis_client = client

    return redis_client
