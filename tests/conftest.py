"""Pytest fixtures for testing"""

import pytest
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from negotiation_gateway.api.main import create_app
from negotiation_gateway.api.dependencies import get_classifier_client, get_model_client
from negotiation_gateway.domain.models import PolicyConfig, SessionState
from negotiation_gateway.domain.session import NegotiationSession, start_session
from negotiation_gateway.infrastructure.database.models import Base
from negotiation_gateway.infrastructure.database.session import get_db
from tests.fakes import FakeClassifier, FakeModel


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEBT_CENTS = 240_000  # $2,400.00


@pytest.fixture
def policy() -> PolicyConfig:
    return PolicyConfig()


@pytest.fixture
def fake_model() -> FakeModel:
    return FakeModel()


@pytest.fixture
def fake_classifier() -> FakeClassifier:
    return FakeClassifier({"termination_letter.pdf": True})


@pytest.fixture
def state() -> SessionState:
    return start_session("session-1", DEBT_CENTS)


@pytest.fixture
def negotiation(state, policy, fake_model, fake_classifier) -> NegotiationSession:
    return NegotiationSession(state, policy, fake_model, fake_classifier, model_timeout=0.5, classifier_timeout=0.5)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session, fake_model: FakeModel, fake_classifier: FakeClassifier) -> TestClient:
    """Create FastAPI test client with test database and fake collaborators"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_model_client] = lambda: fake_model
    app.dependency_overrides[get_classifier_client] = lambda: fake_classifier
    return TestClient(app)
