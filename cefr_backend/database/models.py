"""
Placement Table Models

Tests and attempts are document-shaped; their nested parts (sections,
rubric, answers, feedback) are stored in JSON columns while the fields
used for lookups and the completion check are real columns.
"""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String

from cefr_backend.database.base import ModelBase


class PlacementTestRecord(ModelBase):
    __tablename__ = "placement_tests"

    id = Column(String(64), primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(String, default="")
    cefr_level = Column(String(2), nullable=False)
    test_type = Column(String(32), nullable=False, index=True)
    passing_score = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True)
    sections = Column(JSON, nullable=False)
    scoring_rubric = Column(JSON, nullable=True)
    score_ranges = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class AttemptRecord(ModelBase):
    __tablename__ = "attempts"

    id = Column(String(64), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    test_id = Column(String(64), nullable=False, index=True)
    status = Column(String(16), nullable=False, default="in_progress")
    max_score = Column(Integer, nullable=False)
    started_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    completed_at = Column(DateTime, nullable=True)
    score = Column(Integer, nullable=True)
    time_spent = Column(Integer, default=0)
    is_passed = Column(Boolean, nullable=True)
    cefr_level = Column(String(2), nullable=True)
    recommended_level = Column(String(2), nullable=True)
    answers = Column(JSON, nullable=True)
    skills = Column(JSON, nullable=True)
    feedback = Column(JSON, nullable=True)
