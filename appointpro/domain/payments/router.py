"""Payment router - Ziina payment creation, polling and webhooks"""

import json
import logging

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...config import ZIINA_WEBHOOK_SECRET
from ...database import get_db
from ...models import User
from ...shared.errors import ValidationFailed
from ...webhook_security import verify_ziina_webhook
from .schemas import PaymentCreate, PaymentCreatedResponse, PaymentStatusResponse, PaymentWebhook
from .service import PaymentService
from .ziina_service import ZiinaClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payments/ziina", tags=["Payments"])


def get_ziina_client() -> ZiinaClient:
    return ZiinaClient()


def get_payment_service(
    db: Session = Depends(get_db), gateway: ZiinaClient = Depends(get_ziina_client)
) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db, gateway)


@router.post("/create", response_model=PaymentCreatedResponse)
async def create_payment(
    data: PaymentCreate,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    payment, intent = await service.create_payment(data, current_user)
    return PaymentCreatedResponse(
        payment_id=payment.payment_id,
        payment_url=intent.get("redirect_url"),
        status=intent.get("status") or payment.status,
    )


@router.get("/status/{payment_id}", response_model=PaymentStatusResponse)
async def get_payment_status(
    payment_id: str,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    """Poll the gateway; a completed payment confirms its appointment"""
    return await service.refresh_status(payment_id, current_user)


@router.post("/webhook")
async def ziina_webhook(request: Request, service: PaymentService = Depends(get_payment_service)):
    raw_body = await verify_ziina_webhook(request, ZIINA_WEBHOOK_SECRET)

    try:
        event = PaymentWebhook.model_validate(json.loads(raw_body or b"{}"))
    except (ValueError, ValidationError) as e:
        logger.warning(f"⚠️ Malformed Ziina webhook: {e}")
        raise ValidationFailed("Malformed webhook payload", error_code="INVALID_WEBHOOK") from e

    logger.info(f"📥 Ziina webhook: payment={event.payment_id} status={event.status} order={event.order_id}")
    return service.handle_webhook(event)
