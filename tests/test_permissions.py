from caresignup.models.signup import Signup
from caresignup.models.user import User, UserRole
from caresignup.services import permissions

student = User(id=1, name="Ana", email="ana@example.org", role=UserRole.STUDENT)
other_student = User(id=2, name="Bia", email="bia@example.org", role=UserRole.STUDENT)
caregiver = User(id=3, name="Carla", email="carla@example.org", role=UserRole.CAREGIVER)
staff = User(id=4, name="Davi", email="davi@example.org", role=UserRole.STAFF)


def test_can_manage():
    assert permissions.can_manage(staff, is_owner=False)
    assert permissions.can_manage(caregiver, is_owner=True)
    assert not permissions.can_manage(caregiver, is_owner=False)
    assert not permissions.can_manage(student, is_owner=False)


def test_can_assist_requires_link_for_caregivers():
    assert permissions.can_assist(staff, is_linked=False)
    assert permissions.can_assist(caregiver, is_linked=True)
    assert not permissions.can_assist(caregiver, is_linked=False)
    # vínculo não dá poder a quem não é cuidador
    assert not permissions.can_assist(student, is_linked=True)


def test_can_cancel_own_or_assisted_signup():
    signup = Signup(subject_id=student.id, event_id=10, assisted_by_id=caregiver.id)
    assert permissions.can_cancel(student, signup, is_owner=False, is_linked=False)
    assert permissions.can_cancel(caregiver, signup, is_owner=False, is_linked=False)
    assert not permissions.can_cancel(other_student, signup, is_owner=False, is_linked=False)


def test_can_cancel_as_manager_or_linked_caregiver():
    signup = Signup(subject_id=student.id, event_id=10)
    assert permissions.can_cancel(staff, signup, is_owner=False, is_linked=False)
    assert permissions.can_cancel(caregiver, signup, is_owner=True, is_linked=False)
    assert permissions.can_cancel(caregiver, signup, is_owner=False, is_linked=True)
    assert not permissions.can_cancel(caregiver, signup, is_owner=False, is_linked=False)


def test_can_view_follows_cancel_rules():
    signup = Signup(subject_id=student.id, event_id=10)
    assert permissions.can_view(student, signup, is_owner=False, is_linked=False)
    assert not permissions.can_view(other_student, signup, is_owner=False, is_linked=False)
