from datetime import date

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Import all models to ensure their tables are created
import app.db.base  # noqa: F401
from app.db.base_class import Base
from app.models.professional import Professional

# Segunda-feira; todos os testes usam um "hoje" fixo
TODAY = date(2025, 3, 10)


# Create an in-memory SQLite database for testing
@pytest.fixture(scope="session")
def engine():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture(autouse=True)
def _reset_schema(engine):
    """Tabelas novas a cada teste: nenhum estado vaza entre testes."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="session")
def TestingSessionLocal(engine):
    """Create a session factory for the test database."""
    return sessionmaker(
        bind=engine, autoflush=False, autocommit=False, expire_on_commit=False
    )


# Override the database dependency to use our test database
@pytest.fixture
def override_get_db(TestingSessionLocal):
    """Override the database dependency to use our test database."""

    def _override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    return _override_get_db


@pytest.fixture
def db_session(TestingSessionLocal):
    """Create a database session for each test."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(override_get_db):
    """Create a test client for API tests."""
    from fastapi.testclient import TestClient

    from app.db import get_db
    from app.main import app

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app, headers={"X-Client-Today": TODAY.isoformat()}) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def test_professional(db_session):
    """Create a test professional."""
    professional = Professional(
        name="Test Professional",
        speciality="Test Speciality",
        is_active=True,
        schedule_version=0,
    )
    db_session.add(professional)
    db_session.commit()
    db_session.refresh(professional)
    return professional


@pytest.fixture
def inactive_professional(db_session):
    professional = Professional(
        name="Inactive Professional", is_active=False, schedule_version=0
    )
    db_session.add(professional)
    db_session.commit()
    db_session.refresh(professional)
    return professional
