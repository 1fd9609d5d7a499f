# caresignup/api/v1/events.py
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session

from caresignup.api.deps import get_db, get_current_user
from caresignup.core.rbac import require_roles, EVENT_MANAGER_ROLES
from caresignup.core.errors import NotFound, PermissionDenied
from caresignup.crud.event import event_crud
from caresignup.schemas.event import Event, EventCreate, EventDetail, EventPage, EventUpdate, CheckInToken
from caresignup.schemas.signup import SignupWithSubject
from caresignup.services import events as event_service
from caresignup.services import permissions, qr
from caresignup.services import signups as signup_service

router = APIRouter()

# campos que aceitam null explícito no PUT
_NULLABLE = {"description", "location", "capacity"}


@router.get("/", response_model=EventPage)
def list_events(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    start_from: Optional[datetime] = Query(None, description="Events starting at or after"),
    start_to: Optional[datetime] = Query(None, description="Events starting at or before"),
    search: Optional[str] = Query(None, max_length=200),
    owner_id: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
    _=Depends(get_current_user),
):
    return event_service.list_events(
        db,
        page=page,
        page_size=page_size,
        start_from=start_from,
        start_to=start_to,
        search=search,
        owner_id=owner_id,
    )


@router.post("/", response_model=Event, status_code=status.HTTP_201_CREATED)
def create_event(
    body: EventCreate,
    db: Session = Depends(get_db),
    user=Depends(require_roles(*EVENT_MANAGER_ROLES)),
):
    return event_service.create_event(db, actor=user, body=body)


@router.get("/{event_id}", response_model=EventDetail)
def get_event(
    event_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    _=Depends(get_current_user),
):
    return event_service.get_event_detail(db, event_id=event_id)


@router.put("/{event_id}", response_model=Event)
def update_event(
    event_id: int = Path(..., ge=1),
    body: EventUpdate = Body(...),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    # aplica apenas os campos enviados
    data = body.model_dump(exclude_unset=True)
    changes = {k: v for k, v in data.items() if v is not None or k in _NULLABLE}
    if not changes:
        raise HTTPException(status_code=400, detail="No valid fields to update")
    return event_service.update_event(db, actor=user, event_id=event_id, changes=changes)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event(
    event_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    event_service.delete_event(db, actor=user, event_id=event_id)
    return None  # 204


@router.get("/{event_id}/signups", response_model=List[SignupWithSubject])
def list_event_signups(
    event_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return signup_service.list_event_signups(db, actor=user, event_id=event_id)


@router.get("/{event_id}/check-in-token", response_model=CheckInToken)
def get_checkin_token(
    event_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    e = event_crud.get(db, event_id)
    if not e:
        raise NotFound("Event not found", event_id=event_id)
    if not permissions.can_manage(user, is_owner=e.owner_id == user.id):
        raise PermissionDenied("Only the event owner or staff can display the check-in token")
    return CheckInToken(
        event_id=e.id,
        token=qr.build_checkin_token(e.checkin_seed, e.id),
        expires_in=qr.seconds_until_rotation(),
    )


@router.post("/{event_id}/check-in-token/rotate", response_model=CheckInToken)
def rotate_checkin_token(
    event_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    e = event_service.rotate_checkin_seed(db, actor=user, event_id=event_id)
    return CheckInToken(
        event_id=e.id,
        token=qr.build_checkin_token(e.checkin_seed, e.id),
        expires_in=qr.seconds_until_rotation(),
    )
