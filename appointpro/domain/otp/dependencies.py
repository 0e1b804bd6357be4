"""OTP service construction and request-scoped access"""

import logging

from fastapi import Request

from ...config import (
    OTP_MAX_ATTEMPTS,
    OTP_STORE_BACKEND,
    OTP_TEST_CODE,
    OTP_TEST_MODE,
    OTP_TEST_PHONES,
    OTP_TTL_SECONDS,
)
from ...services.twilio_service import SmsChannel, TwilioClient, WhatsAppTemplateChannel
from ...shared.errors import ServiceUnavailable
from .service import OtpService
from .store import InMemoryOtpStore, OtpStore, RedisOtpStore

logger = logging.getLogger(__name__)


def build_otp_store(backend: str = OTP_STORE_BACKEND) -> OtpStore:
    if backend == "redis":
        from ...cache import get_redis_client

        logger.info("📦 Using Redis OTP store")
        return RedisOtpStore(get_redis_client())
    if backend != "memory":
        raise ValueError(f"Unknown OTP_STORE_BACKEND: {backend}")
    logger.info("📦 Using in-memory OTP store")
    return InMemoryOtpStore()


def build_otp_service(store: OtpStore = None) -> OtpService:
    client = TwilioClient()
    if not client.is_configured and not OTP_TEST_MODE:
        logger.warning("⚠️ Twilio credentials missing - OTP delivery will fail")
    if OTP_TEST_MODE:
        logger.warning("🧪 OTP test mode enabled - fixed codes, no delivery")

    return OtpService(
        store=store or build_otp_store(),
        primary=WhatsAppTemplateChannel(client),
        secondary=SmsChannel(client),
        ttl_seconds=OTP_TTL_SECONDS,
        max_attempts=OTP_MAX_ATTEMPTS,
        test_mode=OTP_TEST_MODE,
        test_code=OTP_TEST_CODE,
        test_phones=OTP_TEST_PHONES,
    )


def get_otp_service(request: Request) -> OtpService:
    """Dependency injection for OtpService (constructed during startup)"""
    service = getattr(request.app.state, "otp_service", None)
    if service is None:
        raise ServiceUnavailable("OTP service is not ready", error_code="OTP_UNAVAILABLE")
    return service
