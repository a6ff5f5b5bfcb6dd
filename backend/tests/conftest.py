"""
Pytest configuration and fixtures for ScopeGrid tests
"""
import os
import sys

# Settings are read once at import time, so the test database must be
# configured before anything from scopegrid is imported
os.environ["DB_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-scopegrid-at-least-32-chars"
os.environ["LOG_FILE"] = ""
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["SEED_ON_STARTUP"] = "false"
os.environ["SEED_SAMPLE_DATA"] = "false"

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from scopegrid.database.session import Base, SessionLocal, create_all_tables, engine  # noqa: E402
from scopegrid.models.business import Site  # noqa: E402
from scopegrid.models.rbac import Permission, Resource, Role, User  # noqa: E402
from scopegrid.security.password import hash_password  # noqa: E402
from scopegrid.services.auth_service import AuthService  # noqa: E402
from scopegrid.services.bootstrap import seed_access_catalog  # noqa: E402
from main import app  # noqa: E402

TEST_PASSWORD = "Password@123"
_PASSWORD_HASH = hash_password(TEST_PASSWORD)


@pytest.fixture(scope="function")
def db():
    """
    Fresh in-memory database per test, seeded with the access catalog
    (roles admin/sales/content, permissions and resource bundles).
    """
    create_all_tables()
    session = SessionLocal()
    seed_access_catalog(session)
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    """Test client for the FastAPI app; lifespan (bootstrap) is not run."""
    return TestClient(app)


@pytest.fixture
def role(db):
    def _get(name: str) -> Role:
        return db.query(Role).filter(Role.name == name).one()
    return _get


@pytest.fixture
def permission(db):
    def _get(key: str) -> Permission:
        return db.query(Permission).filter(Permission.key == key).one()
    return _get


@pytest.fixture
def resource(db):
    def _get(key: str) -> Resource:
        return db.query(Resource).filter(Resource.key == key).one()
    return _get


@pytest.fixture
def make_user(db, role):
    """Factory: create a committed user holding the named role."""
    counter = {"n": 0}

    def _make(role_name: str = "sales", email: str = None, suspended: bool = False) -> User:
        counter["n"] += 1
        user = User(
            name=f"{role_name.title()} User {counter['n']}",
            email=email or f"{role_name}{counter['n']}@example.com",
            password_hash=_PASSWORD_HASH,
            role_id=role(role_name).id,
            suspended=suspended,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def token_for(db):
    """Factory: issue a bearer token exactly as sign-in would."""
    def _issue(user: User) -> str:
        db.expire_all()
        return AuthService(db).issue_credential(user)
    return _issue


@pytest.fixture
def auth_headers(token_for):
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {token_for(user)}"}
    return _headers


@pytest.fixture
def sites(db):
    """Sixty vendor sites across three niches, one with wide-integer traffic."""
    niches = ["tech", "travel", "finance"]
    rows = []
    for i in range(1, 61):
        rows.append(Site(
            website=f"site{i:02d}.example.com",
            niche=niches[(i - 1) % 3],
            price=i * 10,
            da=i % 100,
            traffic=i * 1000,
            bank_details=f"IBAN-{i:04d}",
            language="en" if i % 2 else "de",
        ))
    rows[0].traffic = 2 ** 60
    db.add_all(rows)
    db.commit()
    return rows
