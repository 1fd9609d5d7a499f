from pydantic import BaseModel, Field, model_validator
from typing import Dict, List, Optional
from datetime import datetime

from caresignup.core.clock import as_utc

# ---------------------------
# Event Schemas
# ---------------------------


class EventBase(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    location: Optional[str] = None
    start_at: datetime
    end_at: datetime
    capacity: Optional[int] = Field(default=None, ge=0)
    requires_approval: bool = False
    allow_waitlist: bool = True


class EventCreate(EventBase):
    @model_validator(mode="after")
    def _check_window(self):
        # datas sem fuso são tratadas como UTC
        if as_utc(self.end_at) <= as_utc(self.start_at):
            raise ValueError("end_at must be after start_at")
        return self


class EventUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    location: str | None = None
    start_at: datetime | None = None
    end_at: datetime | None = None
    capacity: int | None = Field(default=None, ge=0)
    requires_approval: bool | None = None
    allow_waitlist: bool | None = None


class Event(EventBase):
    id: int
    owner_id: int
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CheckInToken(BaseModel):
    event_id: int
    token: str
    expires_in: int


# ---- leitura com contagens ----

class EventSummary(Event):
    signup_count: int = 0


class Pagination(BaseModel):
    page: int
    page_size: int
    total: int
    total_pages: int


class EventPage(BaseModel):
    items: List[EventSummary]
    pagination: Pagination


class EventDetail(Event):
    signup_count: int = 0
    # chave = SignupStatus; todos os status aparecem, mesmo com zero
    status_counts: Dict[str, int] = Field(default_factory=dict)
