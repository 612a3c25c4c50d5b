"""
Placement Repositories

Repository interfaces for tests and attempts, plus in-memory
implementations for development and testing. The attempt repository
owns the single-write rule: ``complete()`` only succeeds while the stored
attempt is still in progress.
"""

import copy
import asyncio
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from cefr_backend.common.exceptions import AttemptAlreadyCompletedError, NotFoundError
from cefr_backend.common.logger import get_logger
from cefr_backend.assessments.placement.models import Attempt, AttemptStatus, PlacementTest

logger = get_logger(__name__)


class TestRepository(ABC):
    """Read access to seeded tests."""

    __test__ = False

    @abstractmethod
    async def get_by_id(self, test_id: str) -> Optional[PlacementTest]:
        """
        Retrieve a test by its ID.

        Returns:
            The test if found, None otherwise
        """
        pass

    @abstractmethod
    async def save(self, test: PlacementTest) -> PlacementTest:
        """Create or replace a test (used for seeding)."""
        pass


class AttemptRepository(ABC):
    """Storage for learner attempts."""

    @abstractmethod
    async def get_by_id(self, attempt_id: str) -> Optional[Attempt]:
        """
        Retrieve an attempt by its ID.

        Returns:
            The attempt if found, None otherwise
        """
        pass

    @abstractmethod
    async def create(self, attempt: Attempt) -> Attempt:
        """Store a new in-progress attempt."""
        pass

    @abstractmethod
    async def complete(self, attempt: Attempt) -> Attempt:
        """
        Write back a completed attempt.

        The write only applies if the stored attempt is still in progress.

        Raises:
            NotFoundError: If the attempt does not exist
            AttemptAlreadyCompletedError: If it was already completed
        """
        pass

    @abstractmethod
    async def find_completed_by_user(self, user_id: str, limit: int = 5) -> List[Attempt]:
        """Completed attempts of a user, most recent first."""
        pass

    @abstractmethod
    async def find_completed_by_test(self, test_id: str) -> List[Attempt]:
        """All completed attempts of a test."""
        pass


class MemoryTestRepository(TestRepository):
    """
    In-memory test repository.

    Stored objects are copied on the way in and out so callers cannot
    mutate the stored state.
    """

    def __init__(self, initial_data: Optional[List[PlacementTest]] = None):
        self._tests: Dict[str, PlacementTest] = {}
        for test in initial_data or []:
            self._tests[test.id] = copy.deepcopy(test)

    async def get_by_id(self, test_id: str) -> Optional[PlacementTest]:
        test = self._tests.get(test_id)
        return copy.deepcopy(test) if test else None

    async def save(self, test: PlacementTest) -> PlacementTest:
        self._tests[test.id] = copy.deepcopy(test)
        return test


class MemoryAttemptRepository(AttemptRepository):
    """In-memory attempt repository with a lock around the completion check."""

    def __init__(self, initial_data: Optional[List[Attempt]] = None):
        self._attempts: Dict[str, Attempt] = {}
        self._lock = asyncio.Lock()
        for attempt in initial_data or []:
            self._attempts[attempt.id] = copy.deepcopy(attempt)

    async def get_by_id(self, attempt_id: str) -> Optional[Attempt]:
        attempt = self._attempts.get(attempt_id)
        return copy.deepcopy(attempt) if attempt else None

    async def create(self, attempt: Attempt) -> Attempt:
        self._attempts[attempt.id] = copy.deepcopy(attempt)
        return attempt

    async def complete(self, attempt: Attempt) -> Attempt:
        async with self._lock:
            stored = self._attempts.get(attempt.id)
            if stored is None:
                raise NotFoundError("Attempt", attempt.id)
            if stored.status != AttemptStatus.IN_PROGRESS:
                raise AttemptAlreadyCompletedError(attempt.id)
            self._attempts[attempt.id] = copy.deepcopy(attempt)
        logger.debug(f"Attempt {attempt.id} stored as completed")
        return attempt

    async def find_completed_by_user(self, user_id: str, limit: int = 5) -> List[Attempt]:
        completed = [
            a for a in self._attempts.values()
            if a.user_id == user_id and a.is_completed
        ]
        completed.sort(key=lambda a: a.completed_at, reverse=True)
        return [copy.deepcopy(a) for a in completed[:limit]]

    async def find_completed_by_test(self, test_id: str) -> List[Attempt]:
        return [
            copy.deepcopy(a) for a in self._attempts.values()
            if a.test_id == test_id and a.is_completed
        ]
