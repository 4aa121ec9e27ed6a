import pytest

from fixtures import FakeClock, RecordingSleep


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleep():
    return RecordingSleep()
