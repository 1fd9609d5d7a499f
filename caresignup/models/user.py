from enum import Enum
from datetime import datetime

from sqlalchemy import ForeignKey, String, UniqueConstraint, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from caresignup.db.base import Base


class UserRole(str, Enum):
    STUDENT = "STUDENT"
    CAREGIVER = "CAREGIVER"
    STAFF = "STAFF"


class User(Base):
    """Identidade mínima; cadastro e credenciais ficam no provedor externo."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120))
    email: Mapped[str] = mapped_column(String(160), unique=True, index=True)
    role: Mapped[UserRole] = mapped_column(default=UserRole.STUDENT)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class CaregiverLink(Base):
    __tablename__ = "caregiver_links"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    caregiver_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    student_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    caregiver = relationship("User", foreign_keys=[caregiver_id])
    student = relationship("User", foreign_keys=[student_id])

    __table_args__ = (UniqueConstraint("caregiver_id", "student_id", name="uq_caregiver_link_pair"),)
