# caresignup/services/events.py
import logging
import math
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from caresignup.core.clock import as_utc
from caresignup.core.errors import InvalidState, NotFound, PermissionDenied
from caresignup.crud.event import event_crud
from caresignup.crud.signup import signup_crud
from caresignup.models.event import Event
from caresignup.models.user import User, UserRole
from caresignup.schemas.event import EventCreate, EventDetail, EventPage, EventSummary, Pagination
from caresignup.services import permissions
from caresignup.services.waitlist import promote_in_scope

logger = logging.getLogger(__name__)

# Campos cuja mudança pode abrir vagas para a fila de espera
_CAPACITY_FIELDS = {"capacity", "allow_waitlist", "requires_approval"}


def create_event(db: Session, *, actor: User, body: EventCreate) -> Event:
    if actor.role not in (UserRole.CAREGIVER, UserRole.STAFF):
        raise PermissionDenied("Only caregivers or staff can create events")
    event = event_crud.create(db, body, extra={"owner_id": actor.id})
    logger.info(f"Event {event.id} created by user {actor.id} (capacity={event.capacity})")
    return event


def _managed_event(actor: User, event: Event | None, event_id: int) -> Event:
    if event is None:
        raise NotFound("Event not found", event_id=event_id)
    if not permissions.can_manage(actor, is_owner=event.owner_id == actor.id):
        raise PermissionDenied("Only the event owner or staff can change this event")
    return event


def update_event(db: Session, *, actor: User, event_id: int, changes: Dict[str, Any]) -> Event:
    with event_crud.locked(db, event_id) as event:
        event = _managed_event(actor, event, event_id)

        start_at = as_utc(changes.get("start_at") or event.start_at)
        end_at = as_utc(changes.get("end_at") or event.end_at)
        if end_at <= start_at:
            raise InvalidState("end_at must be after start_at", event_id=event_id)

        if changes.get("capacity") is not None:
            consuming = signup_crud.count_consuming(db, event_id)
            if changes["capacity"] < consuming:
                raise InvalidState(
                    "Capacity cannot be lower than the number of approved signups",
                    capacity=changes["capacity"],
                    consuming=consuming,
                )

        event_crud.update(db, event, changes, commit=False)
        if _CAPACITY_FIELDS & changes.keys():
            promote_in_scope(db, event)

    logger.info(f"Event {event_id} updated by user {actor.id}: {sorted(changes)}")
    return event


def delete_event(db: Session, *, actor: User, event_id: int) -> None:
    with event_crud.locked(db, event_id) as event:
        event = _managed_event(actor, event, event_id)
        db.delete(event)
    event_crud.forget_lock(event_id)
    logger.info(f"Event {event_id} deleted by user {actor.id}")


def rotate_checkin_seed(db: Session, *, actor: User, event_id: int) -> Event:
    event = _managed_event(actor, event_crud.get(db, event_id), event_id)
    return event_crud.rotate_checkin_seed(db, event)


def list_events(
    db: Session,
    *,
    page: int = 1,
    page_size: int = 50,
    start_from: Optional[datetime] = None,
    start_to: Optional[datetime] = None,
    search: Optional[str] = None,
    owner_id: Optional[int] = None,
) -> EventPage:
    events, total = event_crud.list_events(
        db,
        skip=(page - 1) * page_size,
        limit=page_size,
        start_from=start_from,
        start_to=start_to,
        search=search,
        owner_id=owner_id,
    )
    counts = signup_crud.count_by_event(db, [e.id for e in events])
    items = [
        EventSummary.model_validate(e).model_copy(update={"signup_count": counts.get(e.id, 0)})
        for e in events
    ]
    return EventPage(
        items=items,
        pagination=Pagination(
            page=page,
            page_size=page_size,
            total=total,
            total_pages=math.ceil(total / page_size),
        ),
    )


def get_event_detail(db: Session, *, event_id: int) -> EventDetail:
    event = event_crud.get(db, event_id)
    if event is None:
        raise NotFound("Event not found", event_id=event_id)
    counts = signup_crud.status_counts(db, event_id)
    return EventDetail.model_validate(event).model_copy(
        update={
            "signup_count": sum(counts.values()),
            "status_counts": {status.value: total for status, total in counts.items()},
        }
    )
