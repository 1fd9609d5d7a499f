from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import select, func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from caresignup.core.clock import utcnow
from caresignup.core.errors import AlreadyRegistered, InvalidState
from caresignup.crud.base import CRUDBase
from caresignup.models.event import Event
from caresignup.models.signup import Signup, SignupStatus, CONSUMING_STATUSES, INACTIVE_STATUSES


class CRUDSignup(CRUDBase[Signup, Any, Any]):
    """
    Acesso às inscrições. Nenhum método daqui faz commit: quem decide o fim
    da transação é o serviço (ver event_crud.locked).
    """

    def get_fresh(self, db: Session, signup_id: int) -> Optional[Signup]:
        return db.execute(
            select(Signup).where(Signup.id == signup_id).execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def find_for_pair(self, db: Session, subject_id: int, event_id: int) -> Optional[Signup]:
        return db.execute(
            select(Signup)
            .where(Signup.subject_id == subject_id, Signup.event_id == event_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def find_active(self, db: Session, subject_id: int, event_id: int) -> Optional[Signup]:
        signup = self.find_for_pair(db, subject_id, event_id)
        if signup is None or signup.status in INACTIVE_STATUSES:
            return None
        return signup

    def count_consuming(self, db: Session, event_id: int) -> int:
        return db.scalar(
            select(func.count())
            .select_from(Signup)
            .where(Signup.event_id == event_id, Signup.status.in_(CONSUMING_STATUSES))
        ) or 0

    def status_counts(self, db: Session, event_id: int) -> Dict[SignupStatus, int]:
        """Quantidade de inscrições do evento em cada status (zero para os ausentes)."""
        rows = db.execute(
            select(Signup.status, func.count())
            .where(Signup.event_id == event_id)
            .group_by(Signup.status)
        ).all()
        counts = {status: 0 for status in SignupStatus}
        for status, total in rows:
            counts[status] = total
        return counts

    def count_by_event(self, db: Session, event_ids: Sequence[int]) -> Dict[int, int]:
        ids = list(event_ids)
        if not ids:
            return {}
        rows = db.execute(
            select(Signup.event_id, func.count())
            .where(Signup.event_id.in_(ids))
            .group_by(Signup.event_id)
        ).all()
        return {event_id: total for event_id, total in rows}

    def create_or_reset(
        self,
        db: Session,
        *,
        subject_id: int,
        event_id: int,
        status: SignupStatus,
        assisted_by_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Signup:
        now = now or utcnow()
        signup = self.find_for_pair(db, subject_id, event_id)
        if signup is not None and signup.status not in INACTIVE_STATUSES:
            raise AlreadyRegistered(subject_id=subject_id, event_id=event_id)
        if signup is None:
            signup = Signup(subject_id=subject_id, event_id=event_id)
            db.add(signup)

        # reinscrição reaproveita a linha e volta para o fim da fila
        signup.assisted_by_id = assisted_by_id
        signup.status = status
        signup.created_at = now
        signup.approved_at = now if status == SignupStatus.APPROVED else None
        signup.approved_by_id = None
        signup.cancelled_at = None
        signup.checked_in_at = None
        signup.note = None
        try:
            db.flush()
        except IntegrityError as exc:
            # corrida com outra transação criando o mesmo par (aluno, evento)
            raise AlreadyRegistered(subject_id=subject_id, event_id=event_id) from exc
        return signup

    def update_status(self, db: Session, signup: Signup, status: SignupStatus, **fields: Any) -> Signup:
        signup.status = status
        for name, value in fields.items():
            setattr(signup, name, value)
        db.add(signup)
        db.flush()
        return signup

    def list_waitlisted(self, db: Session, event_id: int, limit: int) -> List[Signup]:
        if limit <= 0:
            return []
        stmt = (
            select(Signup)
            .where(Signup.event_id == event_id, Signup.status == SignupStatus.WAITLISTED)
            .order_by(Signup.created_at.asc(), Signup.id.asc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return list(db.scalars(stmt).all())

    def batch_update_status(
        self,
        db: Session,
        signup_ids: Sequence[int],
        status: SignupStatus,
        *,
        expected_status: Optional[SignupStatus] = None,
        **fields: Any,
    ) -> List[Signup]:
        """
        Um único UPDATE para todos os ids. Se expected_status for passado e
        alguma linha não estiver mais nele, levanta InvalidState e a
        transação inteira é desfeita pelo chamador (tudo ou nada).
        """
        ids = list(signup_ids)
        if not ids:
            return []
        stmt = update(Signup).where(Signup.id.in_(ids))
        if expected_status is not None:
            stmt = stmt.where(Signup.status == expected_status)
        result = db.execute(
            stmt.values(status=status, **fields).execution_options(synchronize_session=False)
        )
        if result.rowcount != len(ids):
            raise InvalidState(
                "Batch update touched fewer rows than selected",
                expected=len(ids),
                updated=result.rowcount,
            )
        db.flush()
        rows = db.execute(
            select(Signup)
            .where(Signup.id.in_(ids))
            .order_by(Signup.created_at.asc(), Signup.id.asc())
            .execution_options(populate_existing=True)
        ).scalars().all()
        return list(rows)

    def list_for_event(self, db: Session, event_id: int) -> List[Signup]:
        stmt = (
            select(Signup)
            .options(joinedload(Signup.subject), joinedload(Signup.assisted_by))
            .where(Signup.event_id == event_id)
            .order_by(Signup.created_at.asc(), Signup.id.asc())
        )
        return list(db.scalars(stmt).all())

    def list_for_subject(self, db: Session, subject_id: int) -> List[Signup]:
        stmt = (
            select(Signup)
            .join(Signup.event)
            .options(joinedload(Signup.event))
            .where(Signup.subject_id == subject_id)
            .order_by(Event.start_at.asc(), Signup.id.asc())
        )
        return list(db.scalars(stmt).all())


signup_crud = CRUDSignup(Signup)
