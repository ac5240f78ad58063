"""
Session: one booked appointment between a client and a psychologist.

The partial unique index on (psychologist_id, scheduled_at) ignoring cancelled
rows is what makes booking atomic: two concurrent bookings of the same slot
cannot both commit.
"""
import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import String, Integer, DateTime, Uuid, ForeignKey, Index, text, func
from sqlalchemy.orm import Mapped, mapped_column

from psysupport.database import Base


class SessionStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Session(Base):
    __tablename__ = "sessions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    psychologist_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("psychologists.id", ondelete="RESTRICT"), nullable=False
    )
    scheduled_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False
    )  # naive wall-clock in settings.SCHEDULE_TIMEZONE
    duration_minutes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=60
    )  # copied from the availability window at booking time
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SessionStatus.PENDING.value
    )  # pending | confirmed | completed | cancelled
    meeting_link: Mapped[str | None] = mapped_column(
        String(500), nullable=True
    )  # snapshot of the psychologist's link, never updated afterwards
    notes: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        Index(
            "uq_sessions_psychologist_slot",
            "psychologist_id",
            "scheduled_at",
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
        Index("idx_sessions_client_time", "client_id", "scheduled_at"),
        Index("idx_sessions_status_time", "status", "scheduled_at"),
    )
    # fetch created_at at flush time
    __mapper_args__ = {"eager_defaults": True}
