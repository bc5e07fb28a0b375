import sys
import os
import tempfile
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

os.environ["TESTING"] = "true"
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "attempt_engine_test_logs"))

import random
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from attempt_engine.core.database import Base
from attempt_engine.models import registry  # noqa: F401
from attempt_engine.services.catalog import catalog_accessor
from attempt_engine.services import engine as engine_service
from attempt_engine.services import session as session_service
from attempt_engine.utils import deps as deps_utils
import main
from tests.helpers.factories import create_attempt, create_test


@pytest.fixture(scope="function")
def database_engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()

@pytest.fixture(scope="function")
def session_factory(database_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=database_engine)

@pytest.fixture(scope="function")
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.rollback()
        db.close()

@pytest.fixture
def make_test(db_session):
    """Create a test from question specs (see tests.helpers.factories) and return its id."""
    def _make(questions, **kwargs):
        return create_test(db_session, questions=questions, **kwargs)
    return _make

@pytest.fixture
def make_attempt(db_session):
    def _make(test_id, **kwargs):
        return create_attempt(db_session, test_id=test_id, **kwargs)
    return _make

@pytest.fixture
def load_catalog(session_factory):
    def _load(test_id):
        db = session_factory()
        try:
            return catalog_accessor.load(db, test_id)
        finally:
            db.close()
    return _load

@pytest.fixture
def make_session(session_factory):
    """Build an unloaded TestSession with a seeded shuffle and no scheduler."""
    def _make(test_id, attempt_id, user_id=1, event_id=1, **kwargs):
        kwargs.setdefault("rng", random.Random(42))
        kwargs.setdefault("resume_timer_from_start_time", False)
        return session_service.TestSession(
            attempt_id=attempt_id,
            test_id=test_id,
            event_id=event_id,
            user_id=user_id,
            session_factory=session_factory,
            **kwargs,
        )
    return _make

@pytest.fixture
def engine_registry(session_factory):
    registry_ = engine_service.TestEngine(session_factory, rng=random.Random(42))
    yield registry_
    registry_.shutdown()

@pytest.fixture(scope="function")
def client(session_factory, engine_registry):
    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    main.app.dependency_overrides[deps_utils.get_db] = _get_db
    main.app.dependency_overrides[deps_utils.get_engine] = lambda: engine_registry
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()

@pytest.fixture
def participant_headers():
    return {"X-Participant-Id": "1"}
