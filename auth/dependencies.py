"""
Authentication dependencies for FastAPI.
"""
from typing import Optional
from fastapi import Depends, HTTPException, Request, status, Security
from fastapi.security import HTTPAuthorizationCredentials

from database.models import UserRole
from auth.principal import Principal, GUEST, principal_from_claims
from auth.security import security_optional, decode_access_token
import config


def get_db_session():
    """Get database session."""
    if not config.db:
        raise HTTPException(status_code=503, detail="Database not initialized")
    with config.db.get_session() as session:
        yield session


async def current_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security_optional),
) -> Principal:
    """
    Resolve the caller from the bearer token.

    Never raises: a missing, expired or tampered token yields the guest
    principal. Claims are trusted as issued; no user lookup is made.
    """
    principal = GUEST
    if credentials is not None:
        payload = decode_access_token(credentials.credentials, config.SECRET_KEY)
        if payload is not None:
            principal = principal_from_claims(payload)
    return principal.with_request(request)


async def require_principal(
    principal: Principal = Depends(current_principal)
) -> Principal:
    """Reject guests with 401."""
    if principal.is_guest:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal


def require_role(allowed_roles: list[str]):
    """
    Dependency factory for role-based access control.

    Args:
        allowed_roles: List of allowed role names

    Returns:
        Dependency function
    """
    async def role_checker(
        principal: Principal = Depends(require_principal)
    ) -> Principal:
        if principal.role.value not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required roles: {', '.join(allowed_roles)}"
            )
        return principal

    return role_checker


require_company_admin = require_role([UserRole.SUPER_ADMIN.value, UserRole.ADMIN.value])
require_site_admin = require_role([
    UserRole.SUPER_ADMIN.value, UserRole.ADMIN.value, UserRole.SITE_ADMIN.value
])
