"""
Shared fixtures: a throwaway SQLite database seeded with a small tenant
tree, principals for each role and an API client bound to it.

Tenant tree:
    HO  (head office)
    └── BR1 (branch)
        └── GC (grandchild, outside HO's scope)
    OT  (unrelated company)
"""
import os
import tempfile
from types import SimpleNamespace

import pytest

# Keep test logs out of the project directory; must run before config is imported
os.environ.setdefault("LOG_FILE", os.path.join(tempfile.gettempdir(), "course_admin_test.log"))
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from fastapi.testclient import TestClient

import config
from auth.principal import Principal
from auth.security import get_password_hash, create_access_token
from database.connection import Database
from database.models import Company, Site, User, UserRole

TEST_PASSWORD = "Secret123"


@pytest.fixture(scope="session")
def password_hash():
    return get_password_hash(TEST_PASSWORD)


@pytest.fixture
def database(tmp_path):
    database = Database(database_url=f"sqlite:///{tmp_path / 'test.db'}")
    database.create_tables()
    yield database
    database.dispose()


@pytest.fixture
def db(database):
    session = database.SessionLocal()
    yield session
    session.close()


def _user(company, username, role, password_hash, site=None):
    return User(
        company_id=company.id,
        site_id=site.id if site else None,
        username=username,
        email=f"{username}@example.com",
        hashed_password=password_hash,
        first_name=username.capitalize(),
        last_name="Tester",
        role=role,
        is_active=True,
    )


@pytest.fixture
def tenants(db, password_hash):
    head = Company(code="HO", name="Head Office", is_head_office=True)
    other = Company(code="OT", name="Other Group", is_head_office=True)
    db.add_all([head, other])
    db.flush()

    branch = Company(code="BR1", name="Branch One", parent_company_id=head.id)
    db.add(branch)
    db.flush()

    grandchild = Company(code="GC", name="Grandchild", parent_company_id=branch.id)
    db.add(grandchild)
    db.flush()

    head_site = Site(company_id=head.id, code="HS", name="Head Site")
    branch_site = Site(company_id=branch.id, code="BS", name="Branch Site")
    other_site = Site(company_id=other.id, code="OS", name="Other Site")
    db.add_all([head_site, branch_site, other_site])
    db.flush()

    users = SimpleNamespace(
        root=_user(head, "root", UserRole.SUPER_ADMIN, password_hash),
        admin=_user(head, "admin", UserRole.ADMIN, password_hash),
        site_admin=_user(branch, "siteadmin", UserRole.SITE_ADMIN, password_hash, branch_site),
        teacher=_user(branch, "teacher", UserRole.TEACHER, password_hash, branch_site),
        spare=_user(head, "spare", UserRole.TEACHER, password_hash, head_site),
        outsider=_user(other, "outsider", UserRole.ADMIN, password_hash),
    )
    db.add_all(vars(users).values())
    db.commit()

    return SimpleNamespace(
        head=head, branch=branch, grandchild=grandchild, other=other,
        head_site=head_site, branch_site=branch_site, other_site=other_site,
        users=users,
    )


def principal_for(user: User) -> Principal:
    return Principal(
        user_id=user.id,
        company_id=user.company_id,
        site_id=user.site_id,
        role=user.role,
        display_name=user.full_name,
        ip_address="127.0.0.1",
        user_agent="pytest",
    )


@pytest.fixture
def principals(tenants):
    return SimpleNamespace(**{
        name: principal_for(user) for name, user in vars(tenants.users).items()
    })


@pytest.fixture
def client(database, monkeypatch):
    """TestClient over the app; the lifespan is not run, the test database is injected."""
    from app import app
    monkeypatch.setattr(config, "db", database)
    return TestClient(app)


def auth_headers(user: User) -> dict:
    token = create_access_token(
        {
            "sub": str(user.id),
            "company_id": user.company_id,
            "site_id": user.site_id,
            "role": user.role.value,
            "name": user.full_name,
        },
        config.SECRET_KEY,
    )
    return {"Authorization": f"Bearer {token}"}
