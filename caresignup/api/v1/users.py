# caresignup/api/v1/users.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from caresignup.api.deps import get_db, get_current_user
from caresignup.schemas.user import StudentLinkCreate, UserOut
from caresignup.services import users as user_service

router = APIRouter()


@router.get("/me", response_model=UserOut)
def me(user=Depends(get_current_user)):
    return user


@router.get("/me/students", response_model=List[UserOut])
def my_students(
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    return user_service.my_students(db, actor=user)


@router.post("/me/students", response_model=List[UserOut])
def link_student(
    body: StudentLinkCreate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    # idempotente: repetir o vínculo não falha
    return user_service.link_student(db, actor=user, student_id=body.student_id)
