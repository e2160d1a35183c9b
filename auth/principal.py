"""
Identity of the caller for one request.

A Principal is built from verified token claims and handed explicitly to
every service call. Parsing never fails: anything missing or malformed
degrades to the guest values.
"""
from dataclasses import dataclass, replace
from typing import Optional, Dict, Any

from fastapi import Request

from database.models import UserRole


@dataclass(frozen=True)
class Principal:
    """Authenticated (or guest) caller."""
    user_id: int = 0
    company_id: int = 0
    site_id: Optional[int] = None
    role: UserRole = UserRole.GUEST
    display_name: str = "Guest"
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    @property
    def is_guest(self) -> bool:
        return self.role == UserRole.GUEST or self.user_id == 0

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPER_ADMIN

    def with_request(self, request: Request) -> "Principal":
        """Copy carrying the request's client address and user agent."""
        return replace(
            self,
            ip_address=client_ip(request),
            user_agent=request.headers.get("user-agent"),
        )


GUEST = Principal()


# Role -> permission table used by the UI to show or hide actions
ROLE_PERMISSIONS: Dict[UserRole, frozenset] = {
    UserRole.ADMIN: frozenset({"ViewAll", "CreateAll", "UpdateAll", "DeleteAll"}),
    UserRole.SITE_ADMIN: frozenset({"ViewSite", "CreateSite", "UpdateSite", "DeleteSite"}),
    UserRole.TEACHER: frozenset({"ViewTeacher", "UpdateTeacher"}),
    UserRole.STAFF: frozenset({"ViewStaff"}),
}
ALL_PERMISSIONS = frozenset().union(*ROLE_PERMISSIONS.values())


def _to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _to_role(value: Any) -> UserRole:
    if isinstance(value, UserRole):
        return value
    try:
        return UserRole(str(value))
    except ValueError:
        return UserRole.GUEST


def principal_from_claims(claims: Optional[Dict[str, Any]]) -> Principal:
    """
    Build a Principal from decoded token claims.

    Args:
        claims: Token payload (sub, company_id, site_id, role, name)

    Returns:
        Principal; GUEST when claims is empty
    """
    if not claims:
        return GUEST

    return Principal(
        user_id=_to_int(claims.get("sub")) or 0,
        company_id=_to_int(claims.get("company_id")) or 0,
        site_id=_to_int(claims.get("site_id")),
        role=_to_role(claims.get("role", UserRole.GUEST.value)),
        display_name=claims.get("name") or "Unknown",
    )


def has_permission(principal: Principal, permission: str) -> bool:
    """SuperAdmin holds every permission; other roles use ROLE_PERMISSIONS."""
    if principal.is_super_admin:
        return True
    return permission in ROLE_PERMISSIONS.get(principal.role, frozenset())


def client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, then X-Real-IP, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    if request.client and request.client.host:
        return request.client.host
    return "Unknown"
