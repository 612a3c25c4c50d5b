"""
Database Module

SQLAlchemy declarative base, table models and async engine management for
persisted tests and attempts.
"""

from cefr_backend.database.base import Base, ModelBase, metadata

__all__ = ['Base', 'ModelBase', 'metadata']
