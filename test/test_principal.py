from starlette.requests import Request

from auth.principal import (
    GUEST, Principal, principal_from_claims, has_permission, client_ip
)
from auth.security import create_access_token, decode_access_token
from database.models import UserRole


def _request(headers=None, client=("10.1.1.1", 5000)):
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


def test_missing_claims_give_guest():
    assert principal_from_claims(None) is GUEST
    assert principal_from_claims({}) is GUEST
    assert GUEST.is_guest
    assert GUEST.company_id == 0
    assert GUEST.display_name == "Guest"


def test_claims_are_parsed_leniently():
    principal = principal_from_claims({
        "sub": "12",
        "company_id": "3",
        "site_id": "not-a-number",
        "role": "Admin",
    })
    assert principal.user_id == 12
    assert principal.company_id == 3
    assert principal.site_id is None
    assert principal.role == UserRole.ADMIN
    assert principal.display_name == "Unknown"
    assert not principal.is_guest


def test_unknown_role_degrades_to_guest():
    principal = principal_from_claims({"sub": "4", "company_id": 1, "role": "Janitor"})
    assert principal.role == UserRole.GUEST
    assert principal.is_guest


def test_token_round_trip_keeps_identity():
    token = create_access_token(
        {"sub": "7", "company_id": 2, "site_id": 5, "role": "SiteAdmin", "name": "Sam Site"},
        "secret"
    )
    principal = principal_from_claims(decode_access_token(token, "secret"))
    assert (principal.user_id, principal.company_id, principal.site_id) == (7, 2, 5)
    assert principal.role == UserRole.SITE_ADMIN
    assert principal.display_name == "Sam Site"


def test_tampered_token_is_rejected():
    token = create_access_token({"sub": "7"}, "secret")
    assert decode_access_token(token, "other-secret") is None
    assert decode_access_token("garbage", "secret") is None


def test_permissions_by_role():
    root = Principal(user_id=1, company_id=1, role=UserRole.SUPER_ADMIN)
    staff = Principal(user_id=2, company_id=1, role=UserRole.STAFF)
    assert has_permission(root, "DeleteAll")
    assert has_permission(root, "AnythingAtAll")
    assert has_permission(staff, "ViewStaff")
    assert not has_permission(staff, "DeleteAll")
    assert not has_permission(GUEST, "ViewStaff")


def test_client_ip_prefers_forwarded_header():
    request = _request({"X-Forwarded-For": "203.0.113.9, 10.0.0.2", "X-Real-IP": "10.9.9.9"})
    assert client_ip(request) == "203.0.113.9"


def test_client_ip_falls_back():
    assert client_ip(_request({"X-Real-IP": "10.9.9.9"})) == "10.9.9.9"
    assert client_ip(_request()) == "10.1.1.1"
    assert client_ip(_request(client=None)) == "Unknown"


def test_with_request_copies_address_and_agent():
    principal = Principal(user_id=1, company_id=1, role=UserRole.ADMIN)
    stamped = principal.with_request(_request({"User-Agent": "pytest-agent"}))
    assert stamped.ip_address == "10.1.1.1"
    assert stamped.user_agent == "pytest-agent"
    assert principal.ip_address is None
