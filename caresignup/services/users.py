# caresignup/services/users.py
import logging
from typing import List

from sqlalchemy.orm import Session

from caresignup.core.errors import NotFound, PermissionDenied
from caresignup.crud.user import user_crud
from caresignup.models.user import User, UserRole

logger = logging.getLogger(__name__)


def _require_caregiver(actor: User) -> None:
    if actor.role != UserRole.CAREGIVER:
        raise PermissionDenied("Only caregivers have linked students")


def my_students(db: Session, *, actor: User) -> List[User]:
    _require_caregiver(actor)
    return user_crud.linked_students(db, actor.id)


def link_student(db: Session, *, actor: User, student_id: int) -> List[User]:
    _require_caregiver(actor)
    if user_crud.role_of(db, student_id) != UserRole.STUDENT:
        raise NotFound("Student not found", student_id=student_id)
    if user_crud.link_student(db, actor.id, student_id):
        logger.info(f"Caregiver {actor.id} linked to student {student_id}")
    return user_crud.linked_students(db, actor.id)
