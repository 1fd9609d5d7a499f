# caresignup/schemas/user.py
from __future__ import annotations

from pydantic import BaseModel

from caresignup.models.user import UserRole


class UserOut(BaseModel):
    id: int
    name: str
    email: str
    role: UserRole

    model_config = {"from_attributes": True}


class StudentLinkCreate(BaseModel):
    student_id: int
