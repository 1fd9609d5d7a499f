from caresignup.crud.signup import signup_crud
from caresignup.models import SignupStatus, UserRole
from caresignup.services import signups as svc


def test_bulk_signup_reports_each_student(db, make_user, make_event, link):
    caregiver = make_user(UserRole.CAREGIVER)
    owner = make_user(UserRole.STAFF)
    s1, s2, s3 = (make_user() for _ in range(3))
    link(caregiver, s1)
    link(caregiver, s2)
    event = make_event(owner)
    svc.create_signup(db, subject=s1, event_id=event.id)

    result = svc.bulk_signup(db, actor=caregiver, student_ids=[s1.id, s2.id, s3.id], event_id=event.id)

    assert result.succeeded == [s2.id]
    failures = {f.subject_id: f.code for f in result.failed}
    assert failures == {s1.id: "ALREADY_REGISTERED", s3.id: "PERMISSION_DENIED"}
    assert signup_crud.find_for_pair(db, s2.id, event.id).assisted_by_id == caregiver.id


def test_bulk_signup_stops_at_capacity_without_waitlist(db, make_user, make_event):
    staff = make_user(UserRole.STAFF)
    students = [make_user() for _ in range(4)]
    event = make_event(staff, capacity=2, allow_waitlist=False)

    result = svc.bulk_signup(db, actor=staff, student_ids=[s.id for s in students], event_id=event.id)

    assert result.succeeded == [students[0].id, students[1].id]
    assert [f.code for f in result.failed] == ["EVENT_FULL", "EVENT_FULL"]
    assert signup_crud.count_consuming(db, event.id) == 2


def test_bulk_signup_waitlists_overflow(db, make_user, make_event):
    staff = make_user(UserRole.STAFF)
    students = [make_user() for _ in range(3)]
    event = make_event(staff, capacity=1)

    result = svc.bulk_signup(db, actor=staff, student_ids=[s.id for s in students], event_id=event.id)

    assert len(result.succeeded) == 3
    statuses = [signup_crud.find_for_pair(db, s.id, event.id).status for s in students]
    assert statuses == [SignupStatus.APPROVED, SignupStatus.WAITLISTED, SignupStatus.WAITLISTED]


def test_bulk_signup_unknown_student(db, make_user, make_event):
    staff = make_user(UserRole.STAFF)
    event = make_event(staff)
    result = svc.bulk_signup(db, actor=staff, student_ids=[9999], event_id=event.id)
    assert result.succeeded == []
    assert result.failed[0].code == "NOT_FOUND"
