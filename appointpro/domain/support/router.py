"""Support router - FastAPI endpoints for support tickets"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_admin
from ...database import get_db
from ...models import SupportTicket, User
from .schemas import (
    AdminTicketResponse,
    TicketCreate,
    TicketPriorityUpdate,
    TicketResponse,
    TicketResponseUpdate,
    TicketStats,
    TicketStatusUpdate,
)
from .service import SupportService

router = APIRouter(prefix="/api/user/support-tickets", tags=["Support"])
admin_router = APIRouter(prefix="/api/admin/support-tickets", tags=["Support Admin"])


def get_support_service(db: Session = Depends(get_db)) -> SupportService:
    """Dependency injection for SupportService"""
    return SupportService(db)


def _admin_view(ticket: SupportTicket) -> AdminTicketResponse:
    return AdminTicketResponse(
        **TicketResponse.model_validate(ticket).model_dump(),
        admin_id=ticket.admin_id,
        user_name=ticket.user.full_name if ticket.user else None,
        user_email=ticket.user.email if ticket.user else None,
    )


@router.get("", response_model=list[TicketResponse])
def list_tickets(
    current_user: User = Depends(get_current_user),
    service: SupportService = Depends(get_support_service),
):
    return service.list_tickets(current_user)


@router.post("", response_model=TicketResponse, status_code=201)
def create_ticket(
    data: TicketCreate,
    current_user: User = Depends(get_current_user),
    service: SupportService = Depends(get_support_service),
):
    return service.create_ticket(data, current_user)


@router.get("/{ticket_id}", response_model=TicketResponse)
def get_ticket(
    ticket_id: int,
    current_user: User = Depends(get_current_user),
    service: SupportService = Depends(get_support_service),
):
    return service.get_ticket(ticket_id, current_user)


# ============================================================================
# ADMIN
# ============================================================================


@admin_router.get("/stats", response_model=TicketStats)
def ticket_stats(
    _admin: User = Depends(require_admin),
    service: SupportService = Depends(get_support_service),
):
    return service.stats()


@admin_router.get("", response_model=list[AdminTicketResponse])
def admin_list_tickets(
    _admin: User = Depends(require_admin),
    service: SupportService = Depends(get_support_service),
):
    return [_admin_view(t) for t in service.list_all()]


@admin_router.put("/{ticket_id}/status", response_model=AdminTicketResponse)
def admin_set_status(
    ticket_id: int,
    data: TicketStatusUpdate,
    _admin: User = Depends(require_admin),
    service: SupportService = Depends(get_support_service),
):
    return _admin_view(service.set_status(ticket_id, data.status))


@admin_router.put("/{ticket_id}/response", response_model=AdminTicketResponse)
def admin_respond(
    ticket_id: int,
    data: TicketResponseUpdate,
    admin: User = Depends(require_admin),
    service: SupportService = Depends(get_support_service),
):
    return _admin_view(service.respond(ticket_id, admin, data.admin_response))


@admin_router.put("/{ticket_id}/priority", response_model=AdminTicketResponse)
def admin_set_priority(
    ticket_id: int,
    data: TicketPriorityUpdate,
    _admin: User = Depends(require_admin),
    service: SupportService = Depends(get_support_service),
):
    return _admin_view(service.set_priority(ticket_id, data.priority))
