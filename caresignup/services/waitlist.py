# caresignup/services/waitlist.py
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from caresignup.core.clock import utcnow
from caresignup.crud.audit import audit_crud
from caresignup.crud.event import event_crud
from caresignup.crud.signup import signup_crud
from caresignup.models.event import Event
from caresignup.models.signup import Signup, SignupStatus
from caresignup.services.transitions import PROMOTED_NOTE

logger = logging.getLogger(__name__)

PROMOTE_ACTION = "promote"


def promote_in_scope(db: Session, event: Optional[Event], now: Optional[datetime] = None) -> List[Signup]:
    """
    Promove a fila de espera de um evento para as vagas livres.

    Precisa rodar dentro de event_crud.locked(db, event.id): a contagem, a
    seleção e o UPDATE em lote entram no mesmo commit do chamador. Eventos
    sem limite, sem fila de espera ou com aprovação manual nunca promovem.
    """
    if event is None or event.capacity is None or not event.allow_waitlist or event.requires_approval:
        return []

    consuming = signup_crud.count_consuming(db, event.id)
    free_slots = event.capacity - consuming
    if free_slots <= 0:
        return []

    # FIFO: mais antigos primeiro
    candidates = signup_crud.list_waitlisted(db, event.id, free_slots)
    if not candidates:
        return []

    promoted = signup_crud.batch_update_status(
        db,
        [s.id for s in candidates],
        SignupStatus.APPROVED,
        expected_status=SignupStatus.WAITLISTED,
        approved_at=now or utcnow(),
        note=PROMOTED_NOTE,
    )
    for signup in promoted:
        audit_crud.record_transition(
            db,
            signup=signup,
            action=PROMOTE_ACTION,
            from_status=SignupStatus.WAITLISTED,
            actor_id=None,
        )

    logger.info(
        f"Promoted {len(promoted)} waitlisted signup(s) on event {event.id} "
        f"({consuming}/{event.capacity} before): {[s.id for s in promoted]}"
    )
    return promoted


def promote_waitlist(db: Session, event_id: int, now: Optional[datetime] = None) -> List[Signup]:
    with event_crud.locked(db, event_id) as event:
        promoted = promote_in_scope(db, event, now=now)
    return promoted
