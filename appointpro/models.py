from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

USER_ROLES = ("user", "manager", "admin", "super_admin")
ADMIN_ROLES = ("admin", "super_admin")
# Roles a super admin may hand out
STAFF_ROLES = ("admin", "manager")

APPOINTMENT_STATUSES = ("pending", "confirmed", "in-progress", "completed", "cancelled")
PAYMENT_STATUSES = ("pending", "completed", "failed", "cancelled")
TICKET_STATUSES = ("open", "in_progress", "resolved", "closed")
TICKET_PRIORITIES = ("low", "medium", "high")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    phone = Column(String(20), unique=True, index=True, nullable=False)  # E.164, leading +
    full_name = Column(String(100), nullable=True)
    email = Column(String(100), unique=True, index=True, nullable=True)
    password_hash = Column(String(255), nullable=True)  # Null for OTP-only accounts
    role = Column(String(20), default="user", nullable=False)  # user, manager, admin, super_admin
    registered_via_otp = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    appointments = relationship(
        "Appointment", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    payments = relationship(
        "Payment", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    support_tickets = relationship(
        "SupportTicket",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
        foreign_keys="SupportTicket.user_id",
    )

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES


service_category_property_types = Table(
    "service_category_property_types",
    Base.metadata,
    Column(
        "service_category_id",
        Integer,
        ForeignKey("service_categories.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "property_type_id",
        Integer,
        ForeignKey("property_types.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class ServiceCategory(Base):
    __tablename__ = "service_categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    sort_order = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    property_types = relationship(
        "PropertyType", secondary=service_category_property_types, order_by="PropertyType.sort_order"
    )


class PropertyType(Base):
    __tablename__ = "property_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(100), unique=True, index=True, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    service = Column(String(100), nullable=False)
    appointment_date = Column(Date, nullable=False)
    appointment_time = Column(String(8), nullable=False)  # 24-hour HH:MM:SS
    status = Column(String(20), default="pending", nullable=False)
    location = Column(JSON, nullable=False)  # Structured address
    price = Column(Numeric(10, 2), nullable=False)
    notes = Column(Text, nullable=True)
    room_type = Column(String(100), nullable=True)
    room_type_slug = Column(String(100), nullable=True)
    property_type = Column(String(100), nullable=True)
    property_type_slug = Column(String(100), nullable=True)
    quantity = Column(Integer, default=1, nullable=False)
    service_category = Column(String(100), nullable=True)
    service_category_slug = Column(String(100), nullable=True)
    extra_price = Column(Numeric(10, 2), default=0, nullable=False)
    cod_fee = Column(Numeric(10, 2), default=0, nullable=False)
    payment_method = Column(String(50), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="appointments")


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    order_id = Column(String(255), nullable=False, index=True)  # e.g. appointment_42
    payment_id = Column(String(255), nullable=False, index=True)  # Gateway payment intent id
    amount = Column(Numeric(10, 2), nullable=False)  # Major units
    currency = Column(String(10), default="AED", nullable=False)
    status = Column(String(20), default="pending", nullable=False)
    payment_method = Column(String(50), nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="payments")


class AvailableDate(Base):
    __tablename__ = "available_dates"
    __table_args__ = (UniqueConstraint("date", "service_category_id", name="uq_date_category"),)

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)
    service_category_id = Column(
        Integer, ForeignKey("service_categories.id", ondelete="CASCADE"), nullable=True
    )  # Null applies to all categories
    is_available = Column(Boolean, default=True, nullable=False)
    max_appointments = Column(Integer, default=10, nullable=False)  # Informational only
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    service_category = relationship("ServiceCategory")


class AvailableTimeSlot(Base):
    __tablename__ = "available_time_slots"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)
    extra_price = Column(Numeric(10, 2), default=0, nullable=False)  # Surcharge for this window
    service_category_id = Column(
        Integer, ForeignKey("service_categories.id", ondelete="CASCADE"), nullable=True
    )
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    service_category = relationship("ServiceCategory")


class SupportTicket(Base):
    __tablename__ = "support_tickets"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    subject = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    status = Column(String(20), default="open", nullable=False)
    priority = Column(String(10), default="medium", nullable=False)
    admin_response = Column(Text, nullable=True)
    admin_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="support_tickets", foreign_keys=[user_id])
