import pytest

from caresignup.core.errors import InvalidState
from caresignup.crud.event import event_crud
from caresignup.crud.signup import signup_crud
from caresignup.models import Signup, SignupStatus, UserRole
from caresignup.services import signups as svc
from caresignup.services.waitlist import promote_waitlist


@pytest.fixture
def owner(make_user):
    return make_user(UserRole.STAFF, "Owner")


def waitlisted(db, event, subject, at):
    """Entrada direta na fila, sem passar pela decisão de vagas."""
    signup = Signup(subject_id=subject.id, event_id=event.id, status=SignupStatus.WAITLISTED, created_at=at)
    db.add(signup)
    db.commit()
    return signup


def test_promotes_oldest_first(db, owner, make_user, make_event, clock):
    event = make_event(owner, capacity=2)
    late = waitlisted(db, event, make_user(), clock())
    early_times = [clock() for _ in range(2)]
    # inseridos depois, mas com created_at menor
    first = waitlisted(db, event, make_user(), early_times[0].replace(year=early_times[0].year - 1))
    second = waitlisted(db, event, make_user(), early_times[1].replace(year=early_times[1].year - 1))

    promoted = promote_waitlist(db, event.id)
    assert [s.id for s in promoted] == [first.id, second.id]
    assert signup_crud.get_fresh(db, late.id).status == SignupStatus.WAITLISTED


def test_promotes_only_free_slots(db, owner, make_user, make_event, clock):
    event = make_event(owner, capacity=3)
    svc.create_signup(db, subject=make_user(), event_id=event.id, now=clock())
    queue = [waitlisted(db, event, make_user(), clock()) for _ in range(4)]

    promoted = promote_waitlist(db, event.id)
    assert [s.id for s in promoted] == [queue[0].id, queue[1].id]
    assert all(s.approved_at is not None for s in promoted)
    assert signup_crud.count_consuming(db, event.id) == 3
    # nada mais a promover
    assert promote_waitlist(db, event.id) == []


def test_no_promotion_when_full(db, owner, make_user, make_event, clock):
    event = make_event(owner, capacity=1)
    svc.create_signup(db, subject=make_user(), event_id=event.id, now=clock())
    waitlisted(db, event, make_user(), clock())
    assert promote_waitlist(db, event.id) == []


@pytest.mark.parametrize(
    "options",
    [
        {"capacity": None},
        {"capacity": 5, "requires_approval": True},
        {"capacity": 5, "allow_waitlist": False},
    ],
)
def test_no_promotion_for_ineligible_events(db, owner, make_user, make_event, clock, options):
    event = make_event(owner, **options)
    entry = waitlisted(db, event, make_user(), clock())
    assert promote_waitlist(db, event.id) == []
    assert signup_crud.get_fresh(db, entry.id).status == SignupStatus.WAITLISTED


def test_missing_event_is_a_no_op(db):
    assert promote_waitlist(db, 4242) == []


def test_batch_update_is_all_or_nothing(db, owner, make_user, make_event, clock):
    event = make_event(owner, capacity=5)
    queue = [waitlisted(db, event, make_user(), clock()) for _ in range(3)]
    # uma das linhas sai da fila antes do UPDATE em lote
    signup_crud.update_status(db, queue[1], SignupStatus.CANCELLED)
    db.commit()

    with pytest.raises(InvalidState):
        with event_crud.locked(db, event.id):
            signup_crud.batch_update_status(
                db,
                [s.id for s in queue],
                SignupStatus.APPROVED,
                expected_status=SignupStatus.WAITLISTED,
            )

    assert signup_crud.get_fresh(db, queue[0].id).status == SignupStatus.WAITLISTED
    assert signup_crud.get_fresh(db, queue[2].id).status == SignupStatus.WAITLISTED
    assert signup_crud.count_consuming(db, event.id) == 0
