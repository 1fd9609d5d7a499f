# caresignup/api/v1/signups.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Body, Depends, Path, status
from sqlalchemy.orm import Session

from caresignup.api.deps import get_db, get_current_user
from caresignup.core.rbac import require_roles, EVENT_MANAGER_ROLES
from caresignup.crud.signup import signup_crud
from caresignup.schemas.signup import (
    BulkSignupCreate,
    BulkSignupResult,
    CaregiverSignupCreate,
    DeclineIn,
    SelfCheckIn,
    Signup,
    SignupCreate,
    SignupHistoryEntry,
    SignupWithEvent,
)
from caresignup.services import signups as signup_service

router = APIRouter()


@router.post("/", response_model=Signup, status_code=status.HTTP_201_CREATED)
def create_signup(
    body: SignupCreate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return signup_service.create_signup(db, subject=user, event_id=body.event_id)


@router.post("/caregiver", response_model=Signup, status_code=status.HTTP_201_CREATED)
def caregiver_signup(
    body: CaregiverSignupCreate,
    db: Session = Depends(get_db),
    user=Depends(require_roles(*EVENT_MANAGER_ROLES)),
):
    return signup_service.caregiver_signup(db, actor=user, student_id=body.student_id, event_id=body.event_id)


@router.post("/bulk", response_model=BulkSignupResult)
def bulk_signup(
    body: BulkSignupCreate,
    db: Session = Depends(get_db),
    user=Depends(require_roles(*EVENT_MANAGER_ROLES)),
):
    return signup_service.bulk_signup(db, actor=user, student_ids=body.student_ids, event_id=body.event_id)


@router.get("/my", response_model=List[SignupWithEvent])
def my_signups(
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return signup_crud.list_for_subject(db, user.id)


# self check-in com o token exibido na entrada do evento
@router.post("/check-in", response_model=Signup)
def self_check_in(
    body: SelfCheckIn,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return signup_service.check_in_with_token(db, actor=user, event_id=body.event_id, token=body.token)


@router.get("/{signup_id}", response_model=Signup)
def get_signup(
    signup_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return signup_service.get_signup_for(db, actor=user, signup_id=signup_id)


@router.delete("/{signup_id}", response_model=Signup)
def cancel_signup(
    signup_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return signup_service.cancel_signup(db, actor=user, signup_id=signup_id)


@router.post("/{signup_id}/approve", response_model=Signup)
def approve_signup(
    signup_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return signup_service.approve_signup(db, actor=user, signup_id=signup_id)


@router.post("/{signup_id}/decline", response_model=Signup)
def decline_signup(
    signup_id: int = Path(..., ge=1),
    body: DeclineIn | None = Body(default=None),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return signup_service.decline_signup(db, actor=user, signup_id=signup_id, note=body.note if body else None)


@router.post("/{signup_id}/check-in", response_model=Signup)
def check_in_signup(
    signup_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return signup_service.check_in_signup(db, actor=user, signup_id=signup_id)


@router.get("/{signup_id}/history", response_model=List[SignupHistoryEntry])
def signup_history(
    signup_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return signup_service.signup_history(db, actor=user, signup_id=signup_id)
