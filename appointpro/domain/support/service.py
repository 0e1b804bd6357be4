"""Support service - Business logic for support tickets"""

import logging

from sqlalchemy.orm import Session

from ...models import TICKET_PRIORITIES, TICKET_STATUSES, SupportTicket, User
from ...shared.errors import NotFoundOrForbidden, ValidationFailed
from .repository import SupportTicketRepository
from .schemas import TicketCreate

logger = logging.getLogger(__name__)


class SupportService:
    """Service layer for support ticket business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SupportTicketRepository()

    def list_tickets(self, user: User) -> list[SupportTicket]:
        return self.repo.list_for_user(self.db, user.id)

    def get_ticket(self, ticket_id: int, user: User) -> SupportTicket:
        ticket = self.repo.get_for_user(self.db, ticket_id, user.id)
        if not ticket:
            raise NotFoundOrForbidden("Support ticket not found")
        return ticket

    def create_ticket(self, data: TicketCreate, user: User) -> SupportTicket:
        ticket = self.repo.create(
            self.db, user_id=user.id, subject=data.subject, message=data.message, status="open"
        )
        logger.info(f"🎫 Support ticket {ticket.id} opened by user {user.id}")
        return ticket

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    def list_all(self) -> list[SupportTicket]:
        return self.repo.list_for_admin(self.db)

    def _update(self, ticket_id: int, fields: dict) -> SupportTicket:
        if not self.repo.update(self.db, ticket_id, fields):
            raise NotFoundOrForbidden("Support ticket not found", error_code="TICKET_NOT_FOUND")
        return self.repo.get_by_id(self.db, ticket_id)

    def set_status(self, ticket_id: int, status: str) -> SupportTicket:
        if status not in TICKET_STATUSES:
            raise ValidationFailed(
                f"Invalid status. Must be one of: {', '.join(TICKET_STATUSES)}", error_code="INVALID_STATUS"
            )
        logger.info(f"🎫 Ticket {ticket_id} status -> {status}")
        return self._update(ticket_id, {"status": status})

    def set_priority(self, ticket_id: int, priority: str) -> SupportTicket:
        if priority not in TICKET_PRIORITIES:
            raise ValidationFailed(
                f"Invalid priority. Must be one of: {', '.join(TICKET_PRIORITIES)}",
                error_code="INVALID_PRIORITY",
            )
        return self._update(ticket_id, {"priority": priority})

    def respond(self, ticket_id: int, admin: User, response: str) -> SupportTicket:
        logger.info(f"💬 Admin {admin.id} responded to ticket {ticket_id}")
        return self._update(ticket_id, {"admin_response": response, "admin_id": admin.id})

    def stats(self) -> dict:
        return self.repo.stats(self.db)
