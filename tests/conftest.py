from unittest.mock import MagicMock

import pytest

from collect import CodeforcesClient
from factories import FakeClock


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def client(clock, session):
    return CodeforcesClient(session=session, clock=clock, sleep=clock.sleep)
