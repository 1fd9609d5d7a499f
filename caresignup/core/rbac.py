# caresignup/core/rbac.py
from fastapi import Depends, HTTPException, status

from caresignup.api.deps import get_current_user
from caresignup.models.user import UserRole

ROLE_STUDENT = UserRole.STUDENT
ROLE_CAREGIVER = UserRole.CAREGIVER
ROLE_STAFF = UserRole.STAFF

# Quem pode criar eventos e inscrever alunos em nome deles
EVENT_MANAGER_ROLES = (ROLE_CAREGIVER, ROLE_STAFF)


def require_roles(*roles: UserRole):
    allowed = set(roles)

    def dep(user=Depends(get_current_user)):
        if user.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")
        return user

    return dep
