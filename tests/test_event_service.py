from datetime import timedelta

import pytest

from caresignup.core.clock import utcnow
from caresignup.core.errors import InvalidState, NotFound, PermissionDenied
from caresignup.crud.event import _event_locks, event_crud
from caresignup.crud.signup import signup_crud
from caresignup.models import SignupStatus, UserRole
from caresignup.schemas.event import EventCreate
from caresignup.services import events as event_service
from caresignup.services import signups as svc


def event_body(**overrides):
    start = utcnow() + timedelta(days=3)
    data = {"title": "Science fair", "start_at": start, "end_at": start + timedelta(hours=2)}
    data.update(overrides)
    return EventCreate(**data)


def test_create_event_sets_owner(db, make_user):
    caregiver = make_user(UserRole.CAREGIVER)
    event = event_service.create_event(db, actor=caregiver, body=event_body(capacity=10))
    assert event.owner_id == caregiver.id
    assert event.capacity == 10
    assert event.allow_waitlist is True
    assert event.checkin_seed


def test_students_cannot_create_events(db, make_user):
    with pytest.raises(PermissionDenied):
        event_service.create_event(db, actor=make_user(), body=event_body())


def test_raising_capacity_promotes_waitlist(db, make_user, make_event, clock):
    owner = make_user(UserRole.CAREGIVER)
    event = make_event(owner, capacity=1)
    created = [svc.create_signup(db, subject=make_user(), event_id=event.id, now=clock()) for _ in range(4)]

    event_service.update_event(db, actor=owner, event_id=event.id, changes={"capacity": 3})

    statuses = [signup_crud.get_fresh(db, s.id).status for s in created]
    assert statuses == [SignupStatus.APPROVED] * 3 + [SignupStatus.WAITLISTED]


def test_turning_off_approval_promotes_waitlist(db, make_user, make_event):
    owner = make_user(UserRole.STAFF)
    event = make_event(owner, capacity=1, requires_approval=True)
    a = svc.create_signup(db, subject=make_user(), event_id=event.id)
    b = svc.create_signup(db, subject=make_user(), event_id=event.id)
    svc.approve_signup(db, actor=owner, signup_id=a.id)
    svc.approve_signup(db, actor=owner, signup_id=b.id)
    svc.cancel_signup(db, actor=owner, signup_id=a.id)
    assert signup_crud.get_fresh(db, b.id).status == SignupStatus.WAITLISTED

    event_service.update_event(db, actor=owner, event_id=event.id, changes={"requires_approval": False})
    assert signup_crud.get_fresh(db, b.id).status == SignupStatus.APPROVED


def test_capacity_below_approved_is_rejected(db, make_user, make_event):
    owner = make_user(UserRole.CAREGIVER)
    event = make_event(owner, capacity=3)
    for _ in range(2):
        svc.create_signup(db, subject=make_user(), event_id=event.id)
    with pytest.raises(InvalidState):
        event_service.update_event(db, actor=owner, event_id=event.id, changes={"capacity": 1})
    assert event_crud.get(db, event.id).capacity == 3


def test_update_rejects_inverted_window(db, make_user, make_event):
    owner = make_user(UserRole.CAREGIVER)
    event = make_event(owner)
    with pytest.raises(InvalidState):
        event_service.update_event(
            db, actor=owner, event_id=event.id, changes={"end_at": utcnow() - timedelta(days=30)}
        )


def test_only_managers_update_or_delete(db, make_user, make_event):
    owner = make_user(UserRole.CAREGIVER)
    other = make_user(UserRole.CAREGIVER)
    event = make_event(owner)
    with pytest.raises(PermissionDenied):
        event_service.update_event(db, actor=other, event_id=event.id, changes={"title": "Mine"})
    with pytest.raises(PermissionDenied):
        event_service.delete_event(db, actor=other, event_id=event.id)


def test_delete_event_removes_signups(db, make_user, make_event):
    owner = make_user(UserRole.CAREGIVER)
    event = make_event(owner)
    student = make_user()
    svc.create_signup(db, subject=student, event_id=event.id)
    event_service.delete_event(db, actor=owner, event_id=event.id)
    assert event_crud.get(db, event.id) is None
    assert signup_crud.find_for_pair(db, student.id, event.id) is None
    with pytest.raises(NotFound):
        event_service.delete_event(db, actor=owner, event_id=event.id)


def test_rotate_seed_invalidates_tokens(db, make_user, make_event):
    owner = make_user(UserRole.CAREGIVER)
    event = make_event(owner)
    old_seed = event.checkin_seed
    rotated = event_service.rotate_checkin_seed(db, actor=owner, event_id=event.id)
    assert rotated.checkin_seed != old_seed


def test_list_events_filters_and_pages(db, make_user):
    alice = make_user(UserRole.CAREGIVER)
    bob = make_user(UserRole.CAREGIVER)
    base = utcnow() + timedelta(days=10)
    for i, (owner, title) in enumerate([(alice, "Zoo trip"), (alice, "Science fair"), (bob, "ZOO night"), (bob, "Chess club")]):
        event_service.create_event(
            db, actor=owner, body=event_body(title=title, start_at=base + timedelta(days=i), end_at=base + timedelta(days=i, hours=2))
        )

    page = event_service.list_events(db, page=1, page_size=3)
    assert page.pagination.total == 4
    assert page.pagination.total_pages == 2
    assert [e.title for e in page.items] == ["Zoo trip", "Science fair", "ZOO night"]
    assert [e.title for e in event_service.list_events(db, page=2, page_size=3).items] == ["Chess club"]

    found = event_service.list_events(db, search="zoo")
    assert {e.title for e in found.items} == {"Zoo trip", "ZOO night"}

    assert {e.title for e in event_service.list_events(db, owner_id=bob.id).items} == {"ZOO night", "Chess club"}

    window = event_service.list_events(db, start_from=base + timedelta(days=1), start_to=base + timedelta(days=2))
    assert [e.title for e in window.items] == ["Science fair", "ZOO night"]
    assert window.pagination.total == 2


def test_list_events_reports_signup_count(db, make_user, make_event):
    owner = make_user(UserRole.STAFF)
    busy = make_event(owner, capacity=1)
    make_event(owner)
    for _ in range(3):
        svc.create_signup(db, subject=make_user(), event_id=busy.id)

    counts = {e.id: e.signup_count for e in event_service.list_events(db).items}
    assert counts[busy.id] == 3
    assert sorted(counts.values()) == [0, 3]


def test_event_detail_counts_each_status(db, make_user, make_event):
    owner = make_user(UserRole.STAFF)
    event = make_event(owner, capacity=1)
    first = svc.create_signup(db, subject=make_user(), event_id=event.id)
    svc.create_signup(db, subject=make_user(), event_id=event.id)
    svc.create_signup(db, subject=make_user(), event_id=event.id)
    svc.check_in_signup(db, actor=owner, signup_id=first.id)

    detail = event_service.get_event_detail(db, event_id=event.id)
    assert detail.signup_count == 3
    assert detail.status_counts == {
        "PENDING": 0,
        "APPROVED": 0,
        "WAITLISTED": 2,
        "DECLINED": 0,
        "CANCELLED": 0,
        "CHECKED_IN": 1,
    }
    with pytest.raises(NotFound):
        event_service.get_event_detail(db, event_id=9999)


def test_delete_event_releases_its_lock(db, make_user, make_event):
    owner = make_user(UserRole.STAFF)
    event = make_event(owner)
    event_service.update_event(db, actor=owner, event_id=event.id, changes={"title": "Renamed"})
    assert event.id in _event_locks
    event_service.delete_event(db, actor=owner, event_id=event.id)
    assert event.id not in _event_locks
