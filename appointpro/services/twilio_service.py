"""
Twilio Messaging Service
Delivers one-time codes over WhatsApp (approved template) and plain SMS
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from ..config import (
    TWILIO_ACCOUNT_SID,
    TWILIO_API_BASE,
    TWILIO_AUTH_TOKEN,
    TWILIO_PHONE_NUMBER,
    TWILIO_WHATSAPP_TEMPLATE_SID,
)

logger = logging.getLogger(__name__)

SMS_OTP_TEMPLATE = "Your AppointPro verification code is: {code}. This code will expire in 5 minutes."


@dataclass
class ChannelResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class TwilioError(Exception):
    """Raised when the Twilio API rejects a message"""

    pass


class TwilioClient:
    """Thin async wrapper over the Twilio Messages REST endpoint"""

    def __init__(
        self,
        account_sid: Optional[str] = TWILIO_ACCOUNT_SID,
        auth_token: Optional[str] = TWILIO_AUTH_TOKEN,
        from_number: Optional[str] = TWILIO_PHONE_NUMBER,
        api_base: str = TWILIO_API_BASE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.api_base = api_base.rstrip("/")
        self.transport = transport
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    async def _create_message(self, data: dict) -> str:
        if not self.is_configured:
            raise TwilioError("Twilio credentials are not configured")

        url = f"{self.api_base}/Accounts/{self.account_sid}/Messages.json"
        async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
            response = await client.post(url, auth=(self.account_sid, self.auth_token), data=data)

        logger.info(f"📡 Twilio API response status: {response.status_code}")

        if response.status_code not in (200, 201):
            try:
                error_message = response.json().get("message", response.text)
            except ValueError:
                error_message = response.text
            raise TwilioError(f"Twilio API error ({response.status_code}): {error_message}")

        return response.json().get("sid")

    async def send_templated_message(self, to: str, template_sid: str, variables: dict) -> str:
        """Send a pre-approved WhatsApp content template. Returns the message SID."""
        return await self._create_message(
            {
                "To": f"whatsapp:{to}",
                "From": f"whatsapp:{self.from_number}",
                "ContentSid": template_sid,
                "ContentVariables": json.dumps(variables),
            }
        )

    async def send_plain_message(self, to: str, body: str) -> str:
        """Send a plain SMS. Returns the message SID."""
        return await self._create_message({"To": to, "From": self.from_number, "Body": body})


class WhatsAppTemplateChannel:
    """Primary OTP channel: WhatsApp template with the code as variable "1" """

    name = "whatsapp"

    def __init__(self, client: TwilioClient, template_sid: Optional[str] = TWILIO_WHATSAPP_TEMPLATE_SID):
        self.client = client
        self.template_sid = template_sid

    async def deliver(self, phone: str, code: str) -> ChannelResult:
        if not self.template_sid:
            return ChannelResult(success=False, error="WhatsApp template is not configured")
        try:
            logger.info(f"📱 Sending WhatsApp OTP to {phone}")
            sid = await self.client.send_templated_message(phone, self.template_sid, {"1": code})
            return ChannelResult(success=True, message_id=sid)
        except (TwilioError, httpx.HTTPError) as e:
            logger.warning(f"⚠️ WhatsApp delivery failed for {phone}: {e}")
            return ChannelResult(success=False, error=str(e))


class SmsChannel:
    """Fallback OTP channel: plain SMS body embedding the code"""

    name = "sms"

    def __init__(self, client: TwilioClient, template: str = SMS_OTP_TEMPLATE):
        self.client = client
        self.template = template

    async def deliver(self, phone: str, code: str) -> ChannelResult:
        try:
            logger.info(f"📱 Sending SMS OTP to {phone}")
            sid = await self.client.send_plain_message(phone, self.template.format(code=code))
            return ChannelResult(success=True, message_id=sid)
        except (TwilioError, httpx.HTTPError) as e:
            logger.warning(f"⚠️ SMS delivery failed for {phone}: {e}")
            return ChannelResult(success=False, error=str(e))
