from enum import Enum
from typing import Optional
from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import ForeignKey, Text, UniqueConstraint, DateTime, Index

from caresignup.core.clock import utcnow
from caresignup.db.base import Base


class SignupStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    WAITLISTED = "WAITLISTED"
    DECLINED = "DECLINED"
    CANCELLED = "CANCELLED"
    CHECKED_IN = "CHECKED_IN"


# Status que ocupam vaga no evento (única definição usada em todo o fluxo)
CONSUMING_STATUSES = frozenset({SignupStatus.APPROVED, SignupStatus.CHECKED_IN})
# Status "mortos": liberam o par (aluno, evento) para uma nova inscrição
INACTIVE_STATUSES = frozenset({SignupStatus.CANCELLED, SignupStatus.DECLINED})


class Signup(Base):
    __tablename__ = "signups"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    subject_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"))
    assisted_by_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True)
    approved_by_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), nullable=True)
    status: Mapped[SignupStatus] = mapped_column(default=SignupStatus.PENDING)
    note: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    # precisão de microssegundos: define a ordem da fila de espera
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    checked_in_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    subject = relationship("User", foreign_keys=[subject_id])
    assisted_by = relationship("User", foreign_keys=[assisted_by_id])
    approved_by = relationship("User", foreign_keys=[approved_by_id])
    event = relationship("Event", back_populates="signups")

    __table_args__ = (
        UniqueConstraint("subject_id", "event_id", name="uq_signup_subject_event"),
        Index("ix_signups_event_status_created", "event_id", "status", "created_at"),
    )

    @property
    def is_active(self) -> bool:
        return self.status not in INACTIVE_STATUSES

    @property
    def consumes_capacity(self) -> bool:
        return self.status in CONSUMING_STATUSES
