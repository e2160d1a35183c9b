import pytest

from conftest import TEST_PASSWORD, auth_headers
from database.models import AuditLog
from schemas.drafts import ProfileDraft
from services.auth_service import AuthService
from services.errors import NotFound, ValidationError


def _fields(excinfo):
    return {e.field for e in excinfo.value.errors}


def _user_logs(db, user_id):
    return (
        db.query(AuditLog)
        .filter(AuditLog.table_name == "Users", AuditLog.record_id == user_id)
        .order_by(AuditLog.id)
        .all()
    )


def test_get_profile_names_company_and_site(db, tenants, principals):
    view = AuthService.get_profile(db, principals.site_admin)
    assert view.user.username == "siteadmin"
    assert view.company_name == "Branch One"
    assert view.site_name == "Branch Site"

    view = AuthService.get_profile(db, principals.admin)
    assert view.company_name == "Head Office"
    assert view.site_name is None


def test_inactive_account_has_no_profile(db, tenants, principals):
    tenants.users.spare.is_active = False
    db.commit()
    with pytest.raises(NotFound):
        AuthService.get_profile(db, principals.spare)


def test_update_profile(db, tenants, principals):
    draft = ProfileDraft(first_name="  Ada ", last_name="Admin", email="ada@example.com", phone="0812")
    user = AuthService.update_profile(db, principals.admin, draft)
    assert user.full_name == "Ada Admin"
    assert user.email == "ada@example.com"
    assert user.updated_by == principals.admin.user_id

    log = _user_logs(db, user.id)[-1]
    assert log.old_values["first_name"] == "Admin"
    assert log.new_values["first_name"] == "Ada"
    assert "hashed_password" not in log.old_values
    assert "hashed_password" not in log.new_values


def test_update_profile_rules(db, tenants, principals):
    draft = ProfileDraft(first_name="", last_name="x" * 51, email="nope")
    with pytest.raises(ValidationError) as excinfo:
        AuthService.update_profile(db, principals.admin, draft)
    assert _fields(excinfo) == {"first_name", "last_name", "email"}


def test_update_profile_email_taken(db, tenants, principals):
    draft = ProfileDraft(first_name="Admin", last_name="Tester", email="ROOT@example.com")
    with pytest.raises(ValidationError) as excinfo:
        AuthService.update_profile(db, principals.admin, draft)
    assert _fields(excinfo) == {"email"}


def test_update_profile_keeps_own_email(db, tenants, principals):
    draft = ProfileDraft(first_name="Admin", last_name="Renamed", email="admin@example.com")
    user = AuthService.update_profile(db, principals.admin, draft)
    assert user.last_name == "Renamed"


def test_change_password(db, tenants, principals):
    AuthService.change_password(db, principals.teacher, TEST_PASSWORD, "Fresh456")

    assert AuthService.authenticate_user(db, "teacher", TEST_PASSWORD) is None
    assert AuthService.authenticate_user(db, "teacher", "Fresh456") is not None

    log = _user_logs(db, tenants.users.teacher.id)[-1]
    assert log.user_id == principals.teacher.user_id
    assert "hashed_password" not in log.new_values


def test_change_password_wrong_current(db, tenants, principals):
    with pytest.raises(ValidationError) as excinfo:
        AuthService.change_password(db, principals.teacher, "Wrong123", "Fresh456")
    assert _fields(excinfo) == {"current_password"}
    assert AuthService.authenticate_user(db, "teacher", TEST_PASSWORD) is not None


def test_change_password_weak_or_unchanged(db, tenants, principals):
    with pytest.raises(ValidationError) as excinfo:
        AuthService.change_password(db, principals.teacher, TEST_PASSWORD, "short")
    assert _fields(excinfo) == {"new_password"}

    with pytest.raises(ValidationError) as excinfo:
        AuthService.change_password(db, principals.teacher, TEST_PASSWORD, TEST_PASSWORD)
    assert _fields(excinfo) == {"new_password"}


# ----------------------------------------------------------------------
# API
# ----------------------------------------------------------------------

def test_profile_api(client, tenants):
    headers = auth_headers(tenants.users.site_admin)
    response = client.get("/api/auth/profile", headers=headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["username"] == "siteadmin"
    assert data["companyName"] == "Branch One"
    assert data["siteName"] == "Branch Site"

    response = client.put(
        "/api/auth/profile",
        json={"firstName": "Sam", "lastName": "Site", "email": "sam@example.com"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["fullName"] == "Sam Site"


def test_profile_api_rejects_taken_email(client, tenants):
    response = client.put(
        "/api/auth/profile",
        json={"firstName": "Sam", "lastName": "Site", "email": "admin@example.com"},
        headers=auth_headers(tenants.users.site_admin),
    )
    assert response.status_code == 422
    assert [e["field"] for e in response.json()["errors"]] == ["email"]


def test_change_password_api(client, tenants):
    response = client.post(
        "/api/auth/change-password",
        json={"currentPassword": TEST_PASSWORD, "newPassword": "Fresh456"},
        headers=auth_headers(tenants.users.teacher),
    )
    assert response.status_code == 200
    assert response.json()["success"] is True

    old = client.post("/api/auth/login", json={"username": "teacher", "password": TEST_PASSWORD})
    assert old.status_code == 401
    new = client.post("/api/auth/login", json={"username": "teacher", "password": "Fresh456"})
    assert new.status_code == 200


def test_account_routes_require_token(client, tenants):
    assert client.get("/api/auth/profile").status_code == 401
    assert client.put("/api/auth/profile", json={}).status_code == 401
    response = client.post(
        "/api/auth/change-password", json={"currentPassword": TEST_PASSWORD, "newPassword": "Fresh456"}
    )
    assert response.status_code == 401
