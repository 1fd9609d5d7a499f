# caresignup/services/signups.py
"""
Ciclo de vida das inscrições.

Toda operação que depende de vagas roda dentro de event_crud.locked: a
contagem de vagas ocupadas, a decisão (services.transitions.decide) e a
escrita acontecem na mesma transação, serializada por evento. Erros de
domínio (caresignup.core.errors) desfazem a transação e sobem para a API.
"""
import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from caresignup.core.clock import utcnow, as_utc
from caresignup.core.errors import SignupError, NotFound, EventEnded, PermissionDenied
from caresignup.crud.audit import audit_crud
from caresignup.crud.event import event_crud
from caresignup.crud.signup import signup_crud
from caresignup.crud.user import user_crud
from caresignup.models.audit import AuditLog
from caresignup.models.event import Event
from caresignup.models.signup import Signup, SignupStatus
from caresignup.models.user import User, UserRole
from caresignup.schemas.signup import BulkFailure, BulkSignupResult
from caresignup.services import permissions, qr
from caresignup.services.transitions import Action, CapacityContext, decide, frees_capacity
from caresignup.services.waitlist import promote_in_scope

logger = logging.getLogger(__name__)


def _capacity(db: Session, event: Event) -> CapacityContext:
    return CapacityContext.for_event(event, signup_crud.count_consuming(db, event.id))


def _event_id_of(db: Session, signup_id: int) -> int:
    signup = signup_crud.get(db, signup_id)
    if signup is None:
        raise NotFound("Signup not found", signup_id=signup_id)
    return signup.event_id


def _locked_signup(db: Session, event: Optional[Event], signup_id: int) -> Signup:
    # relê sob o lock: o status pode ter mudado desde a primeira leitura
    signup = signup_crud.get_fresh(db, signup_id)
    if event is None or signup is None:
        raise NotFound("Signup not found", signup_id=signup_id)
    return signup


def _require_manager(actor: User, event: Event) -> None:
    if not permissions.can_manage(actor, is_owner=event.owner_id == actor.id):
        raise PermissionDenied("Only the event owner or staff can manage signups")


def _is_linked(db: Session, actor: User, student_id: int) -> bool:
    if actor.role != UserRole.CAREGIVER:
        return False
    return user_crud.is_caregiver_linked(db, actor.id, student_id)


def _log_transition(signup: Signup, previous: Optional[SignupStatus], action: Action) -> None:
    logger.info(
        f"Signup {signup.id} event={signup.event_id} subject={signup.subject_id} "
        f"{action.value}: {previous.value if previous else 'NONE'} -> {signup.status.value}"
    )


# ---------- create ----------

def create_signup(
    db: Session,
    *,
    subject: User,
    event_id: int,
    assisted_by: Optional[User] = None,
    now: Optional[datetime] = None,
) -> Signup:
    now = now or utcnow()
    subject_id = subject.id
    actor_id = assisted_by.id if assisted_by else subject_id
    try:
        with event_crud.locked(db, event_id) as event:
            if event is None:
                raise NotFound("Event not found", event_id=event_id)
            if now > as_utc(event.end_at):
                raise EventEnded(event_id=event_id)

            existing = signup_crud.find_for_pair(db, subject.id, event_id)
            previous = existing.status if existing else None
            decision = decide(previous, Action.CREATE, _capacity(db, event))

            signup = signup_crud.create_or_reset(
                db,
                subject_id=subject.id,
                event_id=event_id,
                status=decision.status,
                assisted_by_id=assisted_by.id if assisted_by else None,
                now=now,
            )
            audit_crud.record_transition(
                db, signup=signup, action=Action.CREATE.value, from_status=previous, actor_id=actor_id
            )
    except SignupError as exc:
        logger.info(f"Signup rejected subject={subject_id} event={event_id}: {exc.code}")
        raise

    _log_transition(signup, previous, Action.CREATE)
    return signup


def caregiver_signup(db: Session, *, actor: User, student_id: int, event_id: int) -> Signup:
    if actor.role not in (UserRole.CAREGIVER, UserRole.STAFF):
        raise PermissionDenied("Only caregivers or staff can sign up students")

    student = user_crud.get(db, student_id)
    if student is None or student.role != UserRole.STUDENT:
        raise NotFound("Student not found", student_id=student_id)

    if not permissions.can_assist(actor, is_linked=_is_linked(db, actor, student_id)):
        raise PermissionDenied("Caregiver is not linked to this student", student_id=student_id)

    return create_signup(db, subject=student, event_id=event_id, assisted_by=actor)


def bulk_signup(db: Session, *, actor: User, student_ids: Iterable[int], event_id: int) -> BulkSignupResult:
    """Cada aluno é independente: a falha de um não desfaz nem interrompe os outros."""
    result = BulkSignupResult()
    for student_id in student_ids:
        try:
            caregiver_signup(db, actor=actor, student_id=student_id, event_id=event_id)
        except SignupError as exc:
            result.failed.append(BulkFailure(subject_id=student_id, code=exc.code, message=exc.message))
        else:
            result.succeeded.append(student_id)

    logger.info(
        f"Bulk signup by user {actor.id} on event {event_id}: "
        f"{len(result.succeeded)} succeeded, {len(result.failed)} failed"
    )
    return result


# ---------- manager actions ----------

def approve_signup(db: Session, *, actor: User, signup_id: int, now: Optional[datetime] = None) -> Signup:
    now = now or utcnow()
    with event_crud.locked(db, _event_id_of(db, signup_id)) as event:
        signup = _locked_signup(db, event, signup_id)
        _require_manager(actor, event)

        previous = signup.status
        # vagas recontadas agora, não no momento da inscrição
        decision = decide(previous, Action.APPROVE, _capacity(db, event))
        if decision.status == SignupStatus.APPROVED:
            signup_crud.update_status(
                db, signup, SignupStatus.APPROVED, approved_at=now, approved_by_id=actor.id, note=None
            )
        else:
            signup_crud.update_status(db, signup, decision.status, note=decision.note)
        audit_crud.record_transition(
            db, signup=signup, action=Action.APPROVE.value, from_status=previous, actor_id=actor.id
        )

    _log_transition(signup, previous, Action.APPROVE)
    return signup


def decline_signup(
    db: Session, *, actor: User, signup_id: int, note: Optional[str] = None, now: Optional[datetime] = None
) -> Signup:
    now = now or utcnow()
    with event_crud.locked(db, _event_id_of(db, signup_id)) as event:
        signup = _locked_signup(db, event, signup_id)
        _require_manager(actor, event)

        previous = signup.status
        decision = decide(previous, Action.DECLINE, note=note)
        signup_crud.update_status(db, signup, decision.status, note=decision.note, cancelled_at=now)
        audit_crud.record_transition(
            db, signup=signup, action=Action.DECLINE.value, from_status=previous, actor_id=actor.id
        )
        # o promotor recalcula do zero: sem vaga liberada ele não faz nada
        promote_in_scope(db, event, now=now)

    _log_transition(signup, previous, Action.DECLINE)
    if frees_capacity(previous):
        logger.info(f"Decline of signup {signup.id} freed a slot on event {signup.event_id}")
    return signup


def cancel_signup(db: Session, *, actor: User, signup_id: int, now: Optional[datetime] = None) -> Signup:
    now = now or utcnow()
    with event_crud.locked(db, _event_id_of(db, signup_id)) as event:
        signup = _locked_signup(db, event, signup_id)
        allowed = permissions.can_cancel(
            actor,
            signup,
            is_owner=event.owner_id == actor.id,
            is_linked=_is_linked(db, actor, signup.subject_id),
        )
        if not allowed:
            raise PermissionDenied("You do not have permission to cancel this signup")

        previous = signup.status
        decision = decide(previous, Action.CANCEL)
        signup_crud.update_status(db, signup, decision.status, cancelled_at=now)
        audit_crud.record_transition(
            db, signup=signup, action=Action.CANCEL.value, from_status=previous, actor_id=actor.id
        )
        promote_in_scope(db, event, now=now)

    _log_transition(signup, previous, Action.CANCEL)
    return signup


def _apply_check_in(db: Session, signup: Signup, actor: User, now: datetime) -> Signup:
    previous = signup.status
    decision = decide(previous, Action.CHECK_IN)
    if decision.unchanged:
        return signup
    signup_crud.update_status(db, signup, decision.status, checked_in_at=now)
    audit_crud.record_transition(
        db, signup=signup, action=Action.CHECK_IN.value, from_status=previous, actor_id=actor.id
    )
    _log_transition(signup, previous, Action.CHECK_IN)
    return signup


def check_in_signup(db: Session, *, actor: User, signup_id: int, now: Optional[datetime] = None) -> Signup:
    now = now or utcnow()
    with event_crud.locked(db, _event_id_of(db, signup_id)) as event:
        signup = _locked_signup(db, event, signup_id)
        _require_manager(actor, event)
        signup = _apply_check_in(db, signup, actor, now)
    return signup


def check_in_with_token(
    db: Session, *, actor: User, event_id: int, token: str, now: Optional[datetime] = None
) -> Signup:
    """Check-in feito pelo próprio aluno com o token exibido na entrada do evento."""
    now = now or utcnow()
    with event_crud.locked(db, event_id) as event:
        if event is None:
            raise NotFound("Event not found", event_id=event_id)
        if not qr.validate_checkin_token(event.checkin_seed, event.id, token):
            raise PermissionDenied("Invalid or expired check-in token")
        signup = signup_crud.find_active(db, actor.id, event_id)
        if signup is None:
            raise NotFound("No active signup for this event", event_id=event_id)
        signup = _apply_check_in(db, signup, actor, now)
    return signup


# ---------- leitura ----------

def get_signup_for(db: Session, *, actor: User, signup_id: int) -> Signup:
    signup = signup_crud.get(db, signup_id)
    if signup is None:
        raise NotFound("Signup not found", signup_id=signup_id)
    allowed = permissions.can_view(
        actor,
        signup,
        is_owner=event_crud.is_owner(db, signup.event_id, actor.id),
        is_linked=_is_linked(db, actor, signup.subject_id),
    )
    if not allowed:
        raise PermissionDenied("You do not have permission to view this signup")
    return signup


def list_event_signups(db: Session, *, actor: User, event_id: int) -> List[Signup]:
    event = event_crud.get(db, event_id)
    if event is None:
        raise NotFound("Event not found", event_id=event_id)
    _require_manager(actor, event)
    return signup_crud.list_for_event(db, event_id)


def signup_history(db: Session, *, actor: User, signup_id: int) -> List[AuditLog]:
    signup = get_signup_for(db, actor=actor, signup_id=signup_id)
    return audit_crud.signup_history(db, signup.id)
