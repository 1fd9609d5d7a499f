# caresignup/db/base.py
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import MetaData

naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=naming_convention)


# IMPORTE TODOS OS MODELS AQUI (Alembic e create_all dependem disso)
import caresignup.models.user  # noqa: E402,F401
import caresignup.models.event  # noqa: E402,F401
import caresignup.models.signup  # noqa: E402,F401
import caresignup.models.audit  # noqa: E402,F401
