# caresignup/core/tokens.py
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt, JWTError
from caresignup.core.config import settings

# Os tokens são emitidos pelo provedor de identidade, que compartilha SECRET_KEY.
# Aqui só verificamos; create_access_token existe para scripts e testes.


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(*, sub: str | int, expires_minutes: Optional[int] = None) -> str:
    expire_min = expires_minutes if expires_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    payload: Dict[str, Any] = {
        "type": "access",
        "sub": str(sub),
        "jti": uuid.uuid4().hex,
        "iat": int(_now().timestamp()),
        "exp": int((_now() + timedelta(minutes=expire_min)).timestamp()),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access(token: str) -> Optional[Dict[str, Any]]:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    if not isinstance(payload, dict):
        return None
    if payload.get("type") != "access":
        return None
    if not payload.get("sub"):
        return None
    return payload
