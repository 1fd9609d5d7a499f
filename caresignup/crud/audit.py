from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from caresignup.crud.base import CRUDBase
from caresignup.models.audit import AuditLog
from caresignup.models.signup import Signup, SignupStatus

SIGNUP_ENTITY = "signup"


class CRUDAudit(CRUDBase[AuditLog, Any, Any]):
    def record_transition(
        self,
        db: Session,
        *,
        signup: Signup,
        action: str,
        from_status: Optional[SignupStatus],
        actor_id: Optional[int],
    ) -> AuditLog:
        row = AuditLog(
            user_id=actor_id,
            entity=SIGNUP_ENTITY,
            entity_id=signup.id,
            action=action,
            diff_json={
                "from": from_status.value if from_status else None,
                "to": signup.status.value,
                "note": signup.note,
            },
        )
        db.add(row)
        db.flush()
        return row

    def signup_history(self, db: Session, signup_id: int) -> List[AuditLog]:
        stmt = (
            select(AuditLog)
            .where(AuditLog.entity == SIGNUP_ENTITY, AuditLog.entity_id == signup_id)
            .order_by(AuditLog.created_at.asc(), AuditLog.id.asc())
        )
        return list(db.scalars(stmt).all())


audit_crud = CRUDAudit(AuditLog)
