"""
OTP service - issues, delivers and verifies one-time codes

A code is written to the store before any delivery attempt. Delivery tries
the primary channel first and falls back to the secondary channel only when
the primary fails. Delivery problems are reported as outcomes, never raised.
"""

import asyncio
import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

from ...security_utils import generate_numeric_code
from ...services.twilio_service import ChannelResult
from ...shared.validators import normalize_phone
from .store import OtpEntry, OtpStore

logger = logging.getLogger(__name__)

OTP_LENGTH = 6


class MessageChannel(Protocol):
    name: str

    async def deliver(self, phone: str, code: str) -> ChannelResult: ...


class OtpFailure(str, enum.Enum):
    NOT_FOUND = "OTP_NOT_FOUND"
    EXPIRED = "OTP_EXPIRED"
    ATTEMPTS_EXCEEDED = "OTP_ATTEMPTS_EXCEEDED"
    MISMATCH = "OTP_MISMATCH"


FAILURE_MESSAGES = {
    OtpFailure.NOT_FOUND: "No OTP found for this phone number. Please request a new one.",
    OtpFailure.EXPIRED: "OTP has expired. Please request a new one.",
    OtpFailure.ATTEMPTS_EXCEEDED: "Too many failed attempts. Please request a new OTP.",
    OtpFailure.MISMATCH: "Invalid OTP.",
}


@dataclass
class DeliveryOutcome:
    success: bool
    phone: str
    channel: Optional[str] = None  # whatsapp, sms or test
    message_id: Optional[str] = None
    fallback_used: bool = False
    errors: dict[str, str] = field(default_factory=dict)


@dataclass
class VerifyOutcome:
    success: bool
    phone: str
    failure: Optional[OtpFailure] = None
    remaining_attempts: Optional[int] = None

    @property
    def message(self) -> str:
        if self.success:
            return "OTP verified successfully"
        text = FAILURE_MESSAGES[self.failure]
        if self.failure == OtpFailure.MISMATCH and self.remaining_attempts is not None:
            text = f"{text} {self.remaining_attempts} attempts remaining."
        return text


class OtpService:
    """Business logic for the phone verification flow"""

    def __init__(
        self,
        store: OtpStore,
        primary: MessageChannel,
        secondary: Optional[MessageChannel] = None,
        clock: Callable[[], float] = time.time,
        ttl_seconds: int = 300,
        max_attempts: int = 3,
        test_mode: bool = False,
        test_code: str = "123456",
        test_phones: Optional[list[str]] = None,
    ):
        self.store = store
        self.primary = primary
        self.secondary = secondary
        self.clock = clock
        self.ttl_seconds = ttl_seconds
        self.max_attempts = max_attempts
        self.test_mode = test_mode
        self.test_code = test_code
        self.test_phones = {normalize_phone(p) for p in (test_phones or [])}

    def _uses_test_code(self, phone: str) -> bool:
        if not self.test_mode:
            return False
        return not self.test_phones or phone in self.test_phones

    async def send(self, phone: str) -> DeliveryOutcome:
        """
        Issue a fresh code for a phone and deliver it.

        Raises:
            ValueError: If the phone number cannot be normalized
        """
        phone = normalize_phone(phone)

        if self._uses_test_code(phone):
            await self._save(phone, OtpEntry(self.test_code, self.clock() + self.ttl_seconds))
            logger.info(f"🧪 Test mode OTP stored for {phone}: {self.test_code}")
            return DeliveryOutcome(success=True, phone=phone, channel="test")

        code = generate_numeric_code(OTP_LENGTH)
        # Overwrites any previous entry for this phone
        await self._save(phone, OtpEntry(code=code, expires_at=self.clock() + self.ttl_seconds))

        outcome = DeliveryOutcome(success=False, phone=phone)

        result = await self._attempt(self.primary, phone, code)
        if result.success:
            outcome.success = True
            outcome.channel = self.primary.name
            outcome.message_id = result.message_id
            logger.info(f"✅ OTP sent to {phone} via {self.primary.name}")
            return outcome
        outcome.errors[self.primary.name] = result.error or "Delivery failed"

        if self.secondary is None:
            logger.error(f"❌ OTP delivery failed for {phone}: {outcome.errors}")
            return outcome

        logger.info(f"🔄 Falling back to {self.secondary.name} for {phone}")
        result = await self._attempt(self.secondary, phone, code)
        if result.success:
            outcome.success = True
            outcome.channel = self.secondary.name
            outcome.message_id = result.message_id
            outcome.fallback_used = True
            logger.info(f"✅ OTP sent to {phone} via {self.secondary.name} (fallback)")
            return outcome
        outcome.errors[self.secondary.name] = result.error or "Delivery failed"

        logger.error(f"❌ OTP delivery failed on all channels for {phone}: {outcome.errors}")
        return outcome

    async def _save(self, phone: str, entry: OtpEntry) -> None:
        # Store backends may do network I/O; keep it off the event loop
        await asyncio.to_thread(self.store.set, phone, entry)

    async def _attempt(self, channel: MessageChannel, phone: str, code: str) -> ChannelResult:
        try:
            return await channel.deliver(phone, code)
        except Exception as e:
            logger.error(f"❌ {channel.name} channel raised for {phone}: {e}")
            return ChannelResult(success=False, error=str(e))

    def verify(self, phone: str, submitted_code: str) -> VerifyOutcome:
        """
        Check a submitted code.

        Raises:
            ValueError: If the phone number cannot be normalized
        """
        phone = normalize_phone(phone)
        entry = self.store.get(phone)

        if entry is None:
            return VerifyOutcome(success=False, phone=phone, failure=OtpFailure.NOT_FOUND)

        if entry.is_expired(self.clock()):
            self.store.delete(phone)
            logger.info(f"⏰ OTP expired for {phone}")
            return VerifyOutcome(success=False, phone=phone, failure=OtpFailure.EXPIRED)

        if entry.attempts >= self.max_attempts:
            self.store.delete(phone)
            logger.warning(f"🚫 OTP attempt limit reached for {phone}")
            return VerifyOutcome(success=False, phone=phone, failure=OtpFailure.ATTEMPTS_EXCEEDED)

        if entry.code == (submitted_code or "").strip():
            self.store.delete(phone)
            logger.info(f"✅ OTP verified for {phone}")
            return VerifyOutcome(success=True, phone=phone)

        entry.attempts += 1
        self.store.set(phone, entry)
        return VerifyOutcome(
            success=False,
            phone=phone,
            failure=OtpFailure.MISMATCH,
            remaining_attempts=max(0, self.max_attempts - entry.attempts),
        )

    def purge_expired(self) -> int:
        return self.store.purge_expired(self.clock())

    async def run_sweeper(self, interval_seconds: float) -> None:
        """Periodically drop entries nobody came back to verify. Runs until cancelled."""
        logger.info(f"🧹 OTP sweeper started (every {interval_seconds}s)")
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                removed = await asyncio.to_thread(self.purge_expired)
                if removed:
                    logger.info(f"🧹 Removed {removed} expired OTP entries")
            except Exception as e:
                logger.error(f"❌ OTP sweep failed: {e}")
