"""
Pytest Configuration and Fixtures
"""

import pytest

from actionbus import Arguments, EventBus
from tests.fixtures.owners import Session


@pytest.fixture
def bus() -> EventBus:
    """Returns a fresh EventBus instance."""
    return EventBus()


@pytest.fixture
def session() -> Session:
    return Session()


@pytest.fixture
def login_args(session) -> Arguments:
    """Arguments for a "user.login" dispatch emitted by ``session``."""
    return Arguments.create(session).register_value("username", "alice")
