"""
Tabela de transições das inscrições.

decide(status_atual, ação, contexto_de_vagas) -> Decision, ou levanta o erro
de domínio correspondente. É uma função pura: não lê banco nem relógio, então
cada transição legal/ilegal pode ser testada isoladamente.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from caresignup.core.errors import AlreadyRegistered, EventFull, InvalidState
from caresignup.models.signup import SignupStatus, CONSUMING_STATUSES, INACTIVE_STATUSES

DEMOTED_NOTE = "Auto-moved to waitlist (capacity reached)."
PROMOTED_NOTE = "Auto-promoted from waitlist."


class Action(str, Enum):
    CREATE = "create"
    APPROVE = "approve"
    DECLINE = "decline"
    CANCEL = "cancel"
    CHECK_IN = "check_in"


@dataclass(frozen=True)
class CapacityContext:
    capacity: Optional[int]
    consuming: int
    requires_approval: bool = False
    allow_waitlist: bool = False

    @property
    def has_room(self) -> bool:
        return self.capacity is None or self.consuming < self.capacity

    @classmethod
    def for_event(cls, event, consuming: int) -> "CapacityContext":
        return cls(
            capacity=event.capacity,
            consuming=consuming,
            requires_approval=bool(event.requires_approval),
            allow_waitlist=bool(event.allow_waitlist),
        )


@dataclass(frozen=True)
class Decision:
    status: SignupStatus
    note: Optional[str] = None
    # True quando nada muda (check-in repetido)
    unchanged: bool = False


# Origens válidas de cada ação (CREATE é tratado à parte: também aceita "sem registro")
_ALLOWED_FROM = {
    Action.APPROVE: frozenset({SignupStatus.PENDING, SignupStatus.WAITLISTED}),
    # quem já fez check-in pode sair: a vaga volta para a fila
    Action.DECLINE: frozenset(
        {SignupStatus.PENDING, SignupStatus.APPROVED, SignupStatus.WAITLISTED, SignupStatus.CHECKED_IN}
    ),
    Action.CANCEL: frozenset(
        {SignupStatus.PENDING, SignupStatus.APPROVED, SignupStatus.WAITLISTED, SignupStatus.CHECKED_IN}
    ),
    Action.CHECK_IN: frozenset({SignupStatus.APPROVED, SignupStatus.CHECKED_IN}),
}


def _require_context(action: Action, ctx: Optional[CapacityContext]) -> CapacityContext:
    if ctx is None:
        raise ValueError(f"{action.value} needs a capacity context")
    return ctx


def _decide_create(current: Optional[SignupStatus], ctx: CapacityContext) -> Decision:
    if current is not None and current not in INACTIVE_STATUSES:
        raise AlreadyRegistered()
    if ctx.requires_approval:
        return Decision(SignupStatus.PENDING)
    if ctx.has_room:
        return Decision(SignupStatus.APPROVED)
    if ctx.allow_waitlist:
        return Decision(SignupStatus.WAITLISTED)
    raise EventFull(capacity=ctx.capacity, consuming=ctx.consuming)


def _decide_approve(ctx: CapacityContext) -> Decision:
    if ctx.has_room:
        return Decision(SignupStatus.APPROVED)
    if ctx.allow_waitlist:
        return Decision(SignupStatus.WAITLISTED, note=DEMOTED_NOTE)
    raise EventFull(capacity=ctx.capacity, consuming=ctx.consuming)


def decide(
    current: Optional[SignupStatus],
    action: Action,
    ctx: Optional[CapacityContext] = None,
    *,
    note: Optional[str] = None,
) -> Decision:
    if action == Action.CREATE:
        return _decide_create(current, _require_context(action, ctx))

    if current is None or current not in _ALLOWED_FROM[action]:
        raise InvalidState(
            f"Cannot {action.value.replace('_', ' ')} a signup in status {current.value if current else 'NONE'}",
            status=current.value if current else None,
            action=action.value,
        )

    if action == Action.APPROVE:
        return _decide_approve(_require_context(action, ctx))
    if action == Action.DECLINE:
        return Decision(SignupStatus.DECLINED, note=note)
    if action == Action.CANCEL:
        return Decision(SignupStatus.CANCELLED)
    # CHECK_IN
    if current == SignupStatus.CHECKED_IN:
        return Decision(SignupStatus.CHECKED_IN, unchanged=True)
    return Decision(SignupStatus.CHECKED_IN)


def frees_capacity(previous: Optional[SignupStatus]) -> bool:
    return previous in CONSUMING_STATUSES
