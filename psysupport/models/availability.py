"""
Availability: a psychologist's recurring weekly window for one weekday.
At most one window per (psychologist, day_of_week); a new window for the same
day replaces the existing row in place.
"""
import uuid
from datetime import time

from sqlalchemy import (
    Integer, Time, Uuid, ForeignKey, UniqueConstraint, CheckConstraint, Index,
)
from sqlalchemy.orm import Mapped, mapped_column

from psysupport.database import Base


class Availability(Base):
    __tablename__ = "availabilities"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    psychologist_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("psychologists.id", ondelete="CASCADE"),
        nullable=False,
    )
    day_of_week: Mapped[int] = mapped_column(
        Integer, nullable=False
    )  # 0 = Sunday ... 6 = Saturday
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    slot_duration_minutes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=60
    )

    __table_args__ = (
        UniqueConstraint("psychologist_id", "day_of_week", name="uq_availabilities_psychologist_day"),
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availabilities_day_of_week"),
        CheckConstraint("start_time < end_time", name="ck_availabilities_time_order"),
        CheckConstraint("slot_duration_minutes > 0", name="ck_availabilities_slot_duration"),
        Index("idx_availabilities_psychologist", "psychologist_id"),
    )
