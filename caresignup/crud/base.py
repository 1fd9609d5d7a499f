from typing import TypeVar, Generic, Type, Any, Optional, Dict
from sqlalchemy.orm import Session
from pydantic import BaseModel
from caresignup.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)
CreateSchema = TypeVar("CreateSchema", bound=BaseModel)
UpdateSchema = TypeVar("UpdateSchema", bound=BaseModel)


class CRUDBase(Generic[ModelType, CreateSchema, UpdateSchema]):
    """
    Operações genéricas por model.

    commit=False só faz flush: usado quando a escrita participa de uma
    transação maior aberta pelo serviço (ex.: decisão de vaga sob lock).
    """

    def __init__(self, model: Type[ModelType]):
        self.model = model

    def get(self, db: Session, id: Any) -> Optional[ModelType]:
        return db.get(self.model, id)

    def _persist(self, db: Session, obj: ModelType, commit: bool) -> ModelType:
        db.add(obj)
        if commit:
            db.commit()
            db.refresh(obj)
        else:
            db.flush()
        return obj

    def create(self, db: Session, obj_in: CreateSchema, extra: Dict[str, Any] | None = None, commit: bool = True) -> ModelType:
        data = obj_in.model_dump()
        if extra:
            data.update(extra)
        return self._persist(db, self.model(**data), commit)

    def update(self, db: Session, db_obj: ModelType, obj_in: UpdateSchema | Dict[str, Any], commit: bool = True) -> ModelType:
        data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_unset=True)
        for f, v in data.items():
            setattr(db_obj, f, v)
        return self._persist(db, db_obj, commit)
