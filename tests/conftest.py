"""
Pytest configuration and shared fixtures.

Every test gets its own in-memory SQLite database and a fake content
generator, so nothing here talks to a real LLM.
"""
import pytest

from lessongen import models  # noqa: F401  (registers tables)
from lessongen.db import Base, make_engine, make_session_factory
from lessongen.settings import Settings

from helpers import FakeClient, lesson_json


def pytest_configure(config):
	config.addinivalue_line("markers", "unit: Unit tests")
	config.addinivalue_line("markers", "api: HTTP API tests")


def pytest_collection_modifyitems(config, items):
	for item in items:
		if "unit" in str(item.fspath):
			item.add_marker(pytest.mark.unit)
		elif "api" in str(item.fspath):
			item.add_marker(pytest.mark.api)


@pytest.fixture
def engine():
	eng = make_engine("sqlite://")
	Base.metadata.create_all(bind=eng)
	yield eng
	eng.dispose()


@pytest.fixture
def session_factory(engine):
	return make_session_factory(engine)


@pytest.fixture
def db(session_factory):
	session = session_factory()
	yield session
	session.close()


@pytest.fixture
def make_settings():
	def _make(**overrides):
		values = {
			"gemini_api_key": None,
			"openrouter_api_key": None,
			"generation_mode": "sync",
			"response_format": "structured_json",
		}
		values.update(overrides)
		return Settings(**values)

	return _make


@pytest.fixture
def fake_client():
	return FakeClient(lesson_json())
