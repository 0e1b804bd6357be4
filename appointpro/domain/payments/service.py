"""Payment service - Business logic for Ziina payments"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional
from urllib.parse import quote

from sqlalchemy.orm import Session

from ...config import FRONTEND_URL
from ...models import Payment, User
from ...shared.errors import NotFoundOrForbidden, UpstreamError
from ..appointments.service import BookingEngine, parse_order_id
from .repository import PaymentRepository
from .schemas import PaymentCreate, PaymentWebhook
from .ziina_service import ZiinaClient

logger = logging.getLogger(__name__)

GATEWAY_STATUS_MAP = {
    "completed": "completed",
    "failed": "failed",
    "canceled": "cancelled",
    "cancelled": "cancelled",
}


def map_gateway_status(raw: Optional[str]) -> str:
    """Collapse gateway states into pending/completed/failed/cancelled"""
    return GATEWAY_STATUS_MAP.get((raw or "").strip().lower(), "pending")


def to_minor_units(amount: Decimal) -> int:
    minor = (Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(minor)


def from_minor_units(amount_minor) -> Optional[Decimal]:
    if amount_minor is None:
        return None
    return (Decimal(str(amount_minor)) / 100).quantize(Decimal("0.01"))


class PaymentService:
    """Service layer for payment business logic"""

    def __init__(self, db: Session, gateway: ZiinaClient, engine: Optional[BookingEngine] = None):
        self.db = db
        self.repo = PaymentRepository()
        self.gateway = gateway
        self.engine = engine or BookingEngine(db)

    async def create_payment(self, data: PaymentCreate, user: User) -> tuple[Payment, dict]:
        # Appointment orders may only be paid by their owner
        appointment_id = parse_order_id(data.order_id)
        if appointment_id is not None:
            self.engine.get_for_owner(appointment_id, user)

        order = quote(data.order_id)
        success_url = data.return_url or f"{FRONTEND_URL}/payment/success?order_id={order}"
        cancel_url = data.cancel_url or f"{FRONTEND_URL}/payment/cancel?order_id={order}"

        intent = await self.gateway.create_payment_intent(
            amount_minor=to_minor_units(data.amount),
            currency=data.currency,
            success_url=success_url,
            cancel_url=cancel_url,
            message=data.description,
        )

        payment_id = intent.get("id")
        if not payment_id:
            logger.error(f"❌ Ziina intent without id: {intent}")
            raise UpstreamError("Payment gateway returned no payment id", error_code="PAYMENT_GATEWAY_ERROR")

        payment = self.repo.create(
            self.db,
            user_id=user.id,
            order_id=data.order_id,
            payment_id=payment_id,
            amount=data.amount,
            currency=data.currency,
            status="pending",
            payment_method="ziina",
        )
        logger.info(f"💳 Payment {payment_id} created for order {data.order_id} (user {user.id})")
        return payment, intent

    async def refresh_status(self, payment_id: str, user: User) -> dict:
        """Poll the gateway for a payment the caller owns and persist the result"""
        payment = self.repo.get_for_owner(self.db, payment_id, user.id)
        if not payment:
            raise NotFoundOrForbidden("Payment not found or not authorized")

        intent = await self.gateway.get_payment_intent(payment_id)
        gateway_status = intent.get("status")
        status = map_gateway_status(gateway_status)

        self._apply_status(payment_id, status, payment.order_id)

        return {
            "payment_id": payment_id,
            "status": status,
            "gateway_status": gateway_status,
            "amount": from_minor_units(intent.get("amount")),
            "currency": intent.get("currency_code") or intent.get("currency") or payment.currency,
            "order_id": payment.order_id,
        }

    def handle_webhook(self, event: PaymentWebhook) -> dict:
        status = map_gateway_status(event.status)
        order_id = event.order_id

        if event.payment_id:
            stored = self.repo.get_by_payment_id(self.db, event.payment_id)
            if not stored:
                logger.warning(f"⚠️ Webhook for unknown payment {event.payment_id}")
            order_id = order_id or (stored.order_id if stored else None)
        else:
            logger.info(f"📥 Webhook without payment id for order {order_id}")

        appointment = self._apply_status(event.payment_id, status, order_id)

        return {
            "message": "Webhook processed successfully",
            "payment_id": event.payment_id,
            "status": status,
            "appointment_id": appointment.id if appointment else None,
        }

    def _apply_status(self, payment_id: Optional[str], status: str, order_id: Optional[str]):
        if payment_id:
            updated = self.repo.set_status(self.db, payment_id, status)
            logger.info(f"💳 Payment {payment_id} -> {status} ({updated} row(s))")

        if status == "completed":
            return self.engine.confirm_from_order(order_id)
        return None
