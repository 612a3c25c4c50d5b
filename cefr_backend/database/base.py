"""
SQLAlchemy Base Configuration

Declarative base with a constraint naming convention, shared by all table
models.
"""

from typing import Any, Dict

from sqlalchemy import MetaData
from sqlalchemy.orm import declarative_base

convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s"
}

metadata = MetaData(naming_convention=convention)

Base = declarative_base(metadata=metadata)


class ModelBase(Base):
    """Base class for all table models."""

    __abstract__ = True

    def to_dict(self) -> Dict[str, Any]:
        """Column name to value mapping for this row."""
        return {
            column.name: getattr(self, column.name)
            for column in self.__table__.columns
        }
