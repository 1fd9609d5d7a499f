# Importar caresignup.db.base registra todas as tabelas no metadata
from caresignup.db.base import Base  # noqa: F401
from caresignup.models.user import User, UserRole, CaregiverLink  # noqa: F401
from caresignup.models.event import Event  # noqa: F401
from caresignup.models.signup import Signup, SignupStatus, CONSUMING_STATUSES  # noqa: F401
from caresignup.models.audit import AuditLog  # noqa: F401
