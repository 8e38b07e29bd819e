import pytest
import viewengine as ve
from helpers import RecordingSleep


@pytest.fixture
def sleep() -> RecordingSleep:
	return RecordingSleep()


@pytest.fixture
def endpoints() -> ve.StaticEndpoints:
	return ve.StaticEndpoints()


@pytest.fixture
def dispatcher(
	endpoints: ve.StaticEndpoints, sleep: RecordingSleep
) -> ve.ActionDispatcher:
	return ve.ActionDispatcher(endpoints, sleep=sleep)
