import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

RESERVATION_STATUSES = ("confirmed", "cancelled", "pending")
ACTIVE_STATUSES = ("confirmed", "pending")


def generate_uuid():
    return str(uuid.uuid4())


class Slot(Base):
    __tablename__ = "slots"
    __table_args__ = (CheckConstraint("end_time > start_time", name="valid_time_range"),)

    id = Column(String(36), primary_key=True, default=generate_uuid)
    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    end_time = Column(DateTime(timezone=True), nullable=False)
    is_available = Column(Boolean, default=True, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    reservations = relationship("Reservation", back_populates="slot")


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    slot_id = Column(String(36), ForeignKey("slots.id"), nullable=True, index=True)
    user_name = Column(String(255), nullable=False)
    user_email = Column(String(255), nullable=False, index=True)
    group_id = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    reference = Column(String(32), unique=True, nullable=False, index=True)
    status = Column(String(20), default="confirmed", nullable=False, index=True)  # confirmed, cancelled, pending
    status_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    slot = relationship("Slot", back_populates="reservations")

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


class User(Base):
    """Lightweight profile cache, upserted on every booking"""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=False)
    group_id = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Setting(Base):
    __tablename__ = "settings"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    key = Column(String(100), unique=True, nullable=False)
    value = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
