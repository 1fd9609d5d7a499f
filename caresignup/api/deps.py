from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from caresignup.db.session import get_db
from caresignup.models.user import User
from caresignup.core.tokens import decode_access

__all__ = ["get_db", "get_bearer_token", "get_current_user"]


# ----------------------------------------------------------------------
# Lê o Bearer do header Authorization (sem usar OAuth2PasswordBearer)
# ----------------------------------------------------------------------
def get_bearer_token(authorization: str = Header(None, alias="Authorization")) -> str:
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing Authorization header")
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid Authorization header")
    return parts[1]


# ----------------------------------------------------------------------
# Usuário atual: sub do token = id do usuário no provedor de identidade
# ----------------------------------------------------------------------
def get_current_user(
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_db),
) -> User:
    payload = decode_access(token)
    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid token subject")

    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")
    return user
