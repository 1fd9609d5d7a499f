import secrets
from typing import Optional
from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Text, Integer, ForeignKey, DateTime, Boolean, CheckConstraint, func

from caresignup.db.base import Base


def new_checkin_seed() -> str:
    return secrets.token_hex(16)


class Event(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(160), nullable=True)
    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    end_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    # None = sem limite de vagas
    capacity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    requires_approval: Mapped[bool] = mapped_column(Boolean, default=False)
    allow_waitlist: Mapped[bool] = mapped_column(Boolean, default=True)
    checkin_seed: Mapped[str] = mapped_column(String(64), default=new_checkin_seed)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    owner = relationship("User")
    signups = relationship("Signup", back_populates="event", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint("end_at > start_at", name="time_window"),
        CheckConstraint("capacity IS NULL OR capacity >= 0", name="capacity_non_negative"),
    )
