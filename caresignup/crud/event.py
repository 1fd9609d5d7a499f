import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from caresignup.core.clock import as_utc
from caresignup.crud.base import CRUDBase
from caresignup.models.event import Event, new_checkin_seed
from caresignup.schemas.event import EventCreate, EventUpdate

_registry_guard = threading.Lock()
_event_locks: dict[int, threading.RLock] = {}


def _event_lock(event_id: int) -> threading.RLock:
    with _registry_guard:
        lock = _event_locks.get(event_id)
        if lock is None:
            lock = _event_locks[event_id] = threading.RLock()
        return lock


def _drop_event_lock(event_id: int) -> None:
    with _registry_guard:
        _event_locks.pop(event_id, None)


class CRUDEvent(CRUDBase[Event, EventCreate, EventUpdate]):
    def list_events(
        self,
        db: Session,
        *,
        skip: int = 0,
        limit: int = 100,
        start_from: Optional[datetime] = None,
        start_to: Optional[datetime] = None,
        search: Optional[str] = None,
        owner_id: Optional[int] = None,
    ) -> Tuple[List[Event], int]:
        """Página de eventos (ordem de início) e o total que casa com os filtros."""
        conditions = []
        if start_from is not None:
            conditions.append(Event.start_at >= as_utc(start_from))
        if start_to is not None:
            conditions.append(Event.start_at <= as_utc(start_to))
        if search:
            conditions.append(Event.title.ilike(f"%{search.strip()}%"))
        if owner_id is not None:
            conditions.append(Event.owner_id == owner_id)

        total = db.scalar(select(func.count()).select_from(Event).where(*conditions)) or 0
        stmt = select(Event).where(*conditions).order_by(Event.start_at, Event.id).offset(skip).limit(limit)
        return list(db.scalars(stmt).all()), total

    def is_owner(self, db: Session, event_id: int, actor_id: int) -> bool:
        owner_id = db.scalar(select(Event.owner_id).where(Event.id == event_id))
        return owner_id is not None and owner_id == actor_id

    def rotate_checkin_seed(self, db: Session, event: Event) -> Event:
        event.checkin_seed = new_checkin_seed()
        return self._persist(db, event, commit=True)

    def forget_lock(self, event_id: int) -> None:
        """Descarta o lock de um evento apagado."""
        _drop_event_lock(event_id)

    @contextmanager
    def locked(self, db: Session, event_id: int) -> Iterator[Optional[Event]]:
        """
        Transação serializada por evento.

        Segura um lock de processo por evento e faz SELECT ... FOR UPDATE na
        linha do evento (no PostgreSQL isso serializa também entre processos;
        no SQLite o FOR UPDATE é ignorado e vale só o lock local). Tudo que
        for lido e escrito dentro do bloco é confirmado num único commit;
        qualquer exceção desfaz a transação inteira.

        Entrega None se o evento não existe.
        """
        with _event_lock(event_id):
            try:
                event = db.execute(
                    select(Event)
                    .where(Event.id == event_id)
                    .with_for_update()
                    .execution_options(populate_existing=True)
                ).scalar_one_or_none()
                yield event
                db.commit()
            except Exception:
                db.rollback()
                raise


event_crud = CRUDEvent(Event)
