"""
SQLAlchemy Placement Repositories

Async SQLAlchemy implementations of the test and attempt repositories.
Completion is a conditional UPDATE on ``status = 'in_progress'``, so two
concurrent submissions of the same attempt cannot both be written.
"""

from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from cefr_backend.common.exceptions import (
    AttemptAlreadyCompletedError,
    DatabaseError,
    NotFoundError,
)
from cefr_backend.common.logger import get_logger
from cefr_backend.database.models import AttemptRecord, PlacementTestRecord
from cefr_backend.assessments.placement.models import Attempt, AttemptStatus, PlacementTest
from cefr_backend.assessments.placement.repositories import AttemptRepository, TestRepository

logger = get_logger(__name__)


def _test_from_record(record: PlacementTestRecord) -> PlacementTest:
    return PlacementTest.from_dict({
        "id": record.id,
        "title": record.title,
        "description": record.description or "",
        "cefr_level": record.cefr_level,
        "test_type": record.test_type,
        "passing_score": record.passing_score,
        "is_active": record.is_active,
        "sections": record.sections,
        "scoring_rubric": record.scoring_rubric,
        "score_ranges": record.score_ranges,
    })


def _attempt_from_record(record: AttemptRecord) -> Attempt:
    return Attempt.from_dict(record.to_dict())


def _attempt_values(attempt: Attempt) -> dict:
    data = attempt.to_dict()
    return {
        "user_id": attempt.user_id,
        "test_id": attempt.test_id,
        "status": attempt.status.value,
        "max_score": attempt.max_score,
        "started_at": attempt.started_at,
        "completed_at": attempt.completed_at,
        "score": attempt.score,
        "time_spent": attempt.time_spent,
        "is_passed": attempt.is_passed,
        "cefr_level": data["cefr_level"],
        "recommended_level": data["recommended_level"],
        "answers": data["answers"],
        "skills": data["skills"],
        "feedback": data["feedback"],
    }


class SqlTestRepository(TestRepository):
    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def get_by_id(self, test_id: str) -> Optional[PlacementTest]:
        try:
            async with self._session_factory() as session:
                record = await session.get(PlacementTestRecord, test_id)
                return _test_from_record(record) if record else None
        except SQLAlchemyError as e:
            logger.error(f"Error loading test {test_id}: {e}")
            raise DatabaseError(f"could not load test {test_id}", e)

    async def save(self, test: PlacementTest) -> PlacementTest:
        data = test.to_dict()
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await session.merge(PlacementTestRecord(
                        id=test.id,
                        title=test.title,
                        description=test.description,
                        cefr_level=data["cefr_level"],
                        test_type=data["test_type"],
                        passing_score=test.passing_score,
                        is_active=test.is_active,
                        sections=data["sections"],
                        scoring_rubric=data["scoring_rubric"],
                        score_ranges=data["score_ranges"],
                    ))
        except SQLAlchemyError as e:
            logger.error(f"Error saving test {test.id}: {e}")
            raise DatabaseError(f"could not save test {test.id}", e)
        return test


class SqlAttemptRepository(AttemptRepository):
    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def get_by_id(self, attempt_id: str) -> Optional[Attempt]:
        try:
            async with self._session_factory() as session:
                record = await session.get(AttemptRecord, attempt_id)
                return _attempt_from_record(record) if record else None
        except SQLAlchemyError as e:
            logger.error(f"Error loading attempt {attempt_id}: {e}")
            raise DatabaseError(f"could not load attempt {attempt_id}", e)

    async def create(self, attempt: Attempt) -> Attempt:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    session.add(AttemptRecord(id=attempt.id, **_attempt_values(attempt)))
        except SQLAlchemyError as e:
            logger.error(f"Error creating attempt {attempt.id}: {e}")
            raise DatabaseError(f"could not create attempt {attempt.id}", e)
        return attempt

    async def complete(self, attempt: Attempt) -> Attempt:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    result = await session.execute(
                        update(AttemptRecord)
                        .where(AttemptRecord.id == attempt.id)
                        .where(AttemptRecord.status == AttemptStatus.IN_PROGRESS.value)
                        .values(**_attempt_values(attempt))
                    )
                    updated = result.rowcount
                    exists = True
                    if updated == 0:
                        exists = await session.get(AttemptRecord, attempt.id) is not None
        except SQLAlchemyError as e:
            logger.error(f"Error completing attempt {attempt.id}: {e}")
            raise DatabaseError(f"could not complete attempt {attempt.id}", e)

        if updated == 0:
            if not exists:
                raise NotFoundError("Attempt", attempt.id)
            raise AttemptAlreadyCompletedError(attempt.id)
        return attempt

    async def find_completed_by_user(self, user_id: str, limit: int = 5) -> List[Attempt]:
        query = (
            select(AttemptRecord)
            .where(AttemptRecord.user_id == user_id)
            .where(AttemptRecord.status == AttemptStatus.COMPLETED.value)
            .order_by(AttemptRecord.completed_at.desc())
            .limit(limit)
        )
        return await self._fetch(query)

    async def find_completed_by_test(self, test_id: str) -> List[Attempt]:
        query = (
            select(AttemptRecord)
            .where(AttemptRecord.test_id == test_id)
            .where(AttemptRecord.status == AttemptStatus.COMPLETED.value)
        )
        return await self._fetch(query)

    async def _fetch(self, query) -> List[Attempt]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(query)
                return [_attempt_from_record(record) for record in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Error querying attempts: {e}")
            raise DatabaseError("could not query attempts", e)
