from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from caresignup.crud.base import CRUDBase
from caresignup.models.user import User, UserRole, CaregiverLink


class CRUDUser(CRUDBase[User, Any, Any]):
    def role_of(self, db: Session, user_id: int) -> Optional[UserRole]:
        return db.scalar(select(User.role).where(User.id == user_id))

    def is_caregiver_linked(self, db: Session, caregiver_id: int, student_id: int) -> bool:
        link_id = db.scalar(
            select(CaregiverLink.id).where(
                CaregiverLink.caregiver_id == caregiver_id,
                CaregiverLink.student_id == student_id,
            )
        )
        return link_id is not None

    def link_student(self, db: Session, caregiver_id: int, student_id: int) -> bool:
        """Cria o vínculo se ainda não existe. Retorna True quando criou."""
        if self.is_caregiver_linked(db, caregiver_id, student_id):
            return False
        db.add(CaregiverLink(caregiver_id=caregiver_id, student_id=student_id))
        db.commit()
        return True

    def linked_students(self, db: Session, caregiver_id: int) -> List[User]:
        stmt = (
            select(User)
            .join(CaregiverLink, CaregiverLink.student_id == User.id)
            .where(CaregiverLink.caregiver_id == caregiver_id)
            .order_by(User.name)
        )
        return list(db.scalars(stmt).all())


user_crud = CRUDUser(User)
