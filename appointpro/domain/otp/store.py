"""OTP store - pending one-time codes keyed by normalized phone"""

import json
import logging
import math
import time
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from threading import Lock
from typing import Optional

import redis

logger = logging.getLogger(__name__)


@dataclass
class OtpEntry:
    code: str
    expires_at: float  # Epoch seconds
    attempts: int = 0

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


class OtpStore(ABC):
    """Storage contract for pending codes. At most one entry per phone."""

    @abstractmethod
    def get(self, phone: str) -> Optional[OtpEntry]: ...

    @abstractmethod
    def set(self, phone: str, entry: OtpEntry) -> None: ...

    @abstractmethod
    def delete(self, phone: str) -> None: ...

    @abstractmethod
    def purge_expired(self, now: float) -> int:
        """Drop entries past expiry. Returns how many were removed."""


class InMemoryOtpStore(OtpStore):
    """Process-local store. Each call is atomic; read-then-write sequences are not."""

    def __init__(self):
        self._entries: dict[str, OtpEntry] = {}
        self._lock = Lock()

    def get(self, phone: str) -> Optional[OtpEntry]:
        with self._lock:
            entry = self._entries.get(phone)
            # Copy so callers cannot mutate stored state without set()
            return OtpEntry(**asdict(entry)) if entry else None

    def set(self, phone: str, entry: OtpEntry) -> None:
        with self._lock:
            self._entries[phone] = OtpEntry(**asdict(entry))

    def delete(self, phone: str) -> None:
        with self._lock:
            self._entries.pop(phone, None)

    def purge_expired(self, now: float) -> int:
        with self._lock:
            expired = [phone for phone, entry in self._entries.items() if entry.is_expired(now)]
            for phone in expired:
                del self._entries[phone]
        if expired:
            logger.debug(f"🧹 Purged {len(expired)} expired OTP entries")
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RedisOtpStore(OtpStore):
    """
    Shared store for multi-instance deployments.
    Entries are JSON values whose Redis TTL tracks the remaining lifetime,
    so the server evicts them and purge_expired has nothing to do.
    """

    KEY_PREFIX = "otp:"

    def __init__(self, client: redis.Redis, clock=None):
        self.client = client
        self.clock = clock or time.time

    def _key(self, phone: str) -> str:
        return f"{self.KEY_PREFIX}{phone}"

    def get(self, phone: str) -> Optional[OtpEntry]:
        raw = self.client.get(self._key(phone))
        if not raw:
            return None
        try:
            return OtpEntry(**json.loads(raw))
        except (TypeError, ValueError) as e:
            logger.warning(f"⚠️ Discarding unreadable OTP entry for {phone}: {e}")
            self.client.delete(self._key(phone))
            return None

    def set(self, phone: str, entry: OtpEntry) -> None:
        remaining = max(1, math.ceil(entry.expires_at - self.clock()))
        self.client.set(self._key(phone), json.dumps(asdict(entry)), ex=remaining)

    def delete(self, phone: str) -> None:
        self.client.delete(self._key(phone))

    def purge_expired(self, now: float) -> int:
        return 0
