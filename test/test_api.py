from conftest import TEST_PASSWORD, auth_headers


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["checks"]["database"] == {"status": "ok"}


def test_login_and_me(client, tenants):
    response = client.post("/api/auth/login", json={"username": "Admin", "password": TEST_PASSWORD})
    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["role"] == "Admin"

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["companyId"] == tenants.head.id
    assert "DeleteAll" in me.json()["permissions"]


def test_login_with_wrong_password(client, tenants):
    response = client.post("/api/auth/login", json={"username": "admin", "password": "Wrong123"})
    assert response.status_code == 401


def test_protected_route_without_token(client, tenants):
    assert client.get("/api/sites").status_code == 401
    bad = client.get("/api/sites", headers={"Authorization": "Bearer not-a-token"})
    assert bad.status_code == 401


def test_role_guard(client, tenants):
    response = client.post(
        "/api/sites",
        json={"companyId": tenants.branch.id, "code": "NEW", "name": "New"},
        headers=auth_headers(tenants.users.teacher),
    )
    assert response.status_code == 403


def test_list_sites_is_scoped(client, tenants):
    response = client.get("/api/sites", headers=auth_headers(tenants.users.admin))
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert {row["code"] for row in body["data"]} == {"HS", "BS"}


def test_out_of_scope_row_looks_missing(client, tenants):
    response = client.get(f"/api/sites/{tenants.head_site.id}", headers=auth_headers(tenants.users.outsider))
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Site not found"}


def test_validation_errors_are_listed(client, tenants):
    response = client.post(
        "/api/sites",
        json={"code": "X", "name": ""},
        headers=auth_headers(tenants.users.admin),
    )
    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert {e["field"] for e in body["errors"]} == {"company_id", "code", "name"}


def test_create_then_duplicate(client, tenants):
    headers = auth_headers(tenants.users.admin)
    payload = {"companyId": tenants.head.id, "code": "lib", "name": "Library"}

    created = client.post("/api/sites", json=payload, headers=headers)
    assert created.status_code == 201
    assert created.json()["data"]["code"] == "LIB"

    duplicate = client.post("/api/sites", json=payload, headers=headers)
    assert duplicate.status_code == 409
    assert duplicate.json()["message"] == "Site code 'LIB' already exists"


def test_blocked_delete_lists_reasons(client, tenants):
    response = client.delete(f"/api/sites/{tenants.branch_site.id}", headers=auth_headers(tenants.users.admin))
    assert response.status_code == 409
    assert response.json()["reasons"] == ["2 user(s)"]


def test_book_toggle_and_delete(client, tenants):
    headers = auth_headers(tenants.users.admin)
    created = client.post(
        "/api/books",
        json={"companyId": tenants.head.id, "code": "BK1", "title": "First Steps"},
        headers=headers,
    )
    book_id = created.json()["data"]["id"]

    toggled = client.patch(f"/api/books/{book_id}/toggle-status", headers=headers)
    assert toggled.status_code == 200
    assert toggled.json()["data"]["isActive"] is False

    deleted = client.delete(f"/api/books/{book_id}", headers=headers)
    assert deleted.status_code == 200
    assert deleted.json()["mode"] == "hard"


def test_audit_log_endpoint(client, tenants):
    headers = auth_headers(tenants.users.admin)
    client.post("/api/grades", json={"companyId": tenants.head.id, "code": "G1", "name": "One"}, headers=headers)

    response = client.get("/api/audit-logs", headers=headers)
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["data"][0]["tableName"] == "Grades"
    assert body["data"][0]["action"] == "Insert"

    staff = client.get("/api/audit-logs", headers=auth_headers(tenants.users.teacher))
    assert staff.status_code == 403
