from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from caresignup.models.signup import SignupStatus


# ---- referências "lite" usadas na resposta ----

class UserRef(BaseModel):
    id: int
    name: str
    email: str

    model_config = {"from_attributes": True}


class EventRef(BaseModel):
    id: int
    title: str
    location: Optional[str] = None
    start_at: datetime
    end_at: datetime

    model_config = {"from_attributes": True}


# ---- entrada ----

class SignupCreate(BaseModel):
    event_id: int


class CaregiverSignupCreate(BaseModel):
    event_id: int
    student_id: int


class BulkSignupCreate(BaseModel):
    event_id: int
    student_ids: List[int] = Field(min_length=1)


class DeclineIn(BaseModel):
    note: Optional[str] = Field(default=None, max_length=500)


class SelfCheckIn(BaseModel):
    event_id: int
    token: str = Field(min_length=1)


# ---- saída ----

class Signup(BaseModel):
    id: int
    subject_id: int
    event_id: int
    assisted_by_id: Optional[int] = None
    approved_by_id: Optional[int] = None
    status: SignupStatus
    note: Optional[str] = None
    created_at: datetime
    approved_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    checked_in_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class SignupWithEvent(Signup):
    event: EventRef


class SignupWithSubject(Signup):
    subject: UserRef
    assisted_by: Optional[UserRef] = None


class BulkFailure(BaseModel):
    subject_id: int
    code: str
    message: str


class BulkSignupResult(BaseModel):
    succeeded: List[int] = Field(default_factory=list)
    failed: List[BulkFailure] = Field(default_factory=list)


class SignupHistoryEntry(BaseModel):
    id: int
    action: str
    user_id: Optional[int] = None
    diff_json: Optional[Dict[str, Any]] = None
    created_at: datetime

    model_config = {"from_attributes": True}
