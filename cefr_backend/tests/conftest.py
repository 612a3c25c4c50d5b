import pytest

from cefr_backend.tests.factories import build_attempt, build_test


@pytest.fixture
def placement_test():
    return build_test()


@pytest.fixture
def attempt(placement_test):
    return build_attempt(placement_test)
