"""
Authentication APIs.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional

from auth.dependencies import get_db_session, require_principal
from auth.principal import Principal, has_permission, ALL_PERMISSIONS
from database.models import User
from schemas.drafts import PasswordChangeDraft, ProfileDraft
from services.auth_service import AuthService
from core.logger import logger
import config


router = APIRouter(prefix="/api/auth", tags=["auth"])


class LoginRequest(BaseModel):
    """Login request. Username or email."""
    username: str
    password: str


class TokenResponse(BaseModel):
    """Token response model."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: dict


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db_session)
):
    """
    Login with username (or email) + password.
    Returns a JWT carrying user, company, site and role claims.
    """
    user = AuthService.authenticate_user(db, credentials.username, credentials.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password"
        )

    access_token = AuthService.create_token(user)
    logger.info(f"User {user.username} logged in")

    return TokenResponse(
        access_token=access_token,
        expires_in=config.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user={
            "id": user.id,
            "username": user.username,
            "email": user.email,
            "fullName": user.full_name,
            "role": user.role.value,
            "companyId": user.company_id,
            "siteId": user.site_id,
            "lastLoginDate": user.last_login_date.isoformat() if user.last_login_date else None,
        }
    )


@router.get("/me", response_model=dict)
async def me(principal: Principal = Depends(require_principal)):
    """Current identity as read from the token."""
    permissions = sorted(p for p in ALL_PERMISSIONS if has_permission(principal, p))
    return {
        "userId": principal.user_id,
        "companyId": principal.company_id,
        "siteId": principal.site_id,
        "role": principal.role.value,
        "name": principal.display_name,
        "ip": principal.ip_address,
        "permissions": permissions,
    }


def _profile_to_dict(user: User, company_name: Optional[str] = None, site_name: Optional[str] = None) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "fullName": user.full_name,
        "email": user.email,
        "phone": user.phone,
        "role": user.role.value,
        "companyId": user.company_id,
        "companyName": company_name,
        "siteId": user.site_id,
        "siteName": site_name,
        "lastLoginDate": user.last_login_date.isoformat() if user.last_login_date else None,
    }


@router.get("/profile")
async def get_profile(
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db_session)
):
    """
    Get own profile.
    All authenticated users.
    """
    view = AuthService.get_profile(db, principal)
    return {"success": True, "data": _profile_to_dict(view.user, view.company_name, view.site_name)}


@router.put("/profile")
async def update_profile(
    draft: ProfileDraft,
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db_session)
):
    """Update own name, email and phone."""
    AuthService.update_profile(db, principal, draft)
    view = AuthService.get_profile(db, principal)
    return {
        "success": True,
        "message": "Profile updated successfully",
        "data": _profile_to_dict(view.user, view.company_name, view.site_name)
    }


@router.post("/change-password")
async def change_password(
    draft: PasswordChangeDraft,
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db_session)
):
    """Change own password. The current password must be supplied."""
    AuthService.change_password(db, principal, draft.current_password, draft.new_password)
    return {"success": True, "message": "Password changed successfully"}
