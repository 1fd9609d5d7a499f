# caresignup/services/permissions.py
# Predicados puros: quem consulta dono do evento e vínculo cuidador-aluno é o serviço.
from caresignup.models.signup import Signup
from caresignup.models.user import User, UserRole


def can_manage(actor: User, *, is_owner: bool) -> bool:
    """Aprovar, recusar, fazer check-in e ver inscritos: staff ou dono do evento."""
    return actor.role == UserRole.STAFF or is_owner


def can_assist(actor: User, *, is_linked: bool) -> bool:
    """Inscrever um aluno em nome dele: staff, ou cuidador vinculado ao aluno."""
    if actor.role == UserRole.STAFF:
        return True
    return actor.role == UserRole.CAREGIVER and is_linked


def can_cancel(actor: User, signup: Signup, *, is_owner: bool, is_linked: bool) -> bool:
    if actor.id == signup.subject_id:
        return True
    if signup.assisted_by_id is not None and actor.id == signup.assisted_by_id:
        return True
    if can_manage(actor, is_owner=is_owner):
        return True
    return actor.role == UserRole.CAREGIVER and is_linked


def can_view(actor: User, signup: Signup, *, is_owner: bool, is_linked: bool) -> bool:
    return can_cancel(actor, signup, is_owner=is_owner, is_linked=is_linked)
