# caresignup/core/errors.py
"""
Erros de domínio do fluxo de inscrições.

Todos são condições recuperáveis pelo chamador: a API converte cada um em
JSON {"code", "message", "details"} com o status HTTP correspondente.
"""
from __future__ import annotations

from typing import Any, Optional


class SignupError(Exception):
    code = "SIGNUP_ERROR"
    status_code = 400
    default_message = "Signup operation failed"

    def __init__(self, message: Optional[str] = None, **details: Any):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "details": self.details or None}


class NotFound(SignupError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found"


class EventEnded(SignupError):
    code = "EVENT_ENDED"
    status_code = 400
    default_message = "Cannot sign up for a past event"


class AlreadyRegistered(SignupError):
    code = "ALREADY_REGISTERED"
    status_code = 409
    default_message = "User is already signed up for this event"


class EventFull(SignupError):
    code = "EVENT_FULL"
    status_code = 409
    default_message = "Event is at capacity"


class InvalidState(SignupError):
    code = "INVALID_STATE"
    status_code = 409
    default_message = "Transition not allowed from the current status"


class PermissionDenied(SignupError):
    code = "PERMISSION_DENIED"
    status_code = 403
    default_message = "You do not have permission to perform this action"
