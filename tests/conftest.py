import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker

from horizon_library.main import app
from horizon_library.database import get_db
from horizon_library.core.security import LIBRARIAN_ROLE, create_access_token
from horizon_library.models import Base
from horizon_library.services.file_storage import LocalFileStorage, get_file_storage

from horizon_library.scripts.create_librarian import ensure_librarian


@pytest.fixture
def session_factory():
    # In-memory SQLite per test (shared across threads/connections)
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    yield TestingSessionLocal
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def storage(tmp_path):
    return LocalFileStorage(str(tmp_path / "uploads"), "/uploads/")


@pytest.fixture
def client(session_factory, storage):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_file_storage] = lambda: storage
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def librarian(db):
    return ensure_librarian("marian", "Pw123456!", db=db)


@pytest.fixture
def librarian_headers(librarian):
    token = create_access_token(librarian.id, LIBRARIAN_ROLE)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def student_headers():
    token = create_access_token(42, "student")
    return {"Authorization": f"Bearer {token}"}
