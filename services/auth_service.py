"""
Authentication service: credential checks, access tokens, account creation
and self-service profile and password changes.
"""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from auth.principal import Principal
from database.models import AuditAction, Company, Site, User, UserRole
from auth.security import verify_password, get_password_hash, validate_password, create_access_token
from schemas.drafts import ProfileDraft
from services.audit_service import AuditService, snapshot
from services.errors import NotFound
from services.validation import FieldRules, clean_str
from core.clock import utcnow
from core.logger import logger
import config


# Never copied into audit snapshots
USER_AUDIT_EXCLUDE = ("hashed_password",)


@dataclass(frozen=True)
class ProfileView:
    """User with the names of its company and site."""
    user: User
    company_name: Optional[str]
    site_name: Optional[str]


class AuthService:
    """Service for authentication operations."""

    @staticmethod
    def create_user(
        db: Session,
        username: str,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role: UserRole,
        company_id: int,
        site_id: Optional[int] = None,
        phone: Optional[str] = None,
        created_by: Optional[int] = None,
    ) -> User:
        """
        Create a new user.

        Args:
            db: Database session
            username: Login name (unique)
            email: Email address (unique)
            password: Plain text password
            first_name: First name
            last_name: Last name
            role: User role
            company_id: Home company
            site_id: Home site, if any
            phone: Phone number
            created_by: User ID who created this user

        Returns:
            Created User

        Raises:
            ValueError: weak password or username/email already taken
        """
        if role == UserRole.GUEST:
            raise ValueError("Guest is not an assignable role")

        is_valid, error_message = validate_password(password)
        if not is_valid:
            raise ValueError(error_message)

        existing = db.query(User).filter(
            (func.lower(User.username) == username.lower()) | (func.lower(User.email) == email.lower())
        ).first()
        if existing:
            raise ValueError("User with this username or email already exists")

        user = User(
            username=username,
            email=email,
            hashed_password=get_password_hash(password),
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            role=role,
            company_id=company_id,
            site_id=site_id,
            is_active=True,
            created_by=created_by,
            created_date=utcnow(),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info(f"Created user: {username} (role: {role.value})")
        return user

    @staticmethod
    def authenticate_user(db: Session, username: str, password: str) -> Optional[User]:
        """
        Authenticate a user by username or email.

        Returns:
            User if authenticated, None otherwise
        """
        login = username.strip().lower()
        user = db.query(User).filter(
            (func.lower(User.username) == login) | (func.lower(User.email) == login)
        ).first()

        if not user or not user.hashed_password:
            return None

        if not verify_password(password, user.hashed_password):
            logger.warning(f"Failed login attempt for: {username}")
            return None

        if not user.is_active:
            logger.warning(f"Login attempt for inactive account: {username}")
            return None

        user.last_login_date = utcnow()
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def create_token(user: User) -> str:
        """
        Issue an access token carrying the identity claims.

        Args:
            user: Authenticated user

        Returns:
            Encoded JWT
        """
        data = {
            "sub": str(user.id),
            "company_id": user.company_id,
            "site_id": user.site_id,
            "role": user.role.value,
            "name": user.full_name,
        }
        return create_access_token(data, config.SECRET_KEY)

    @staticmethod
    def _own_user(db: Session, principal: Principal) -> User:
        user = db.get(User, principal.user_id)
        if user is None or not user.is_active:
            raise NotFound("User", principal.user_id)
        return user

    @staticmethod
    def get_profile(db: Session, principal: Principal) -> ProfileView:
        """The caller's own account with company and site names."""
        user = AuthService._own_user(db, principal)
        company = db.get(Company, user.company_id)
        site = db.get(Site, user.site_id) if user.site_id else None
        return ProfileView(
            user=user,
            company_name=company.name if company else None,
            site_name=site.name if site else None,
        )

    @staticmethod
    def update_profile(db: Session, principal: Principal, draft: ProfileDraft) -> User:
        """
        Update the caller's name, email and phone.

        Raises:
            ValidationError: field rules or email already used by another account
        """
        user = AuthService._own_user(db, principal)
        values = {key: clean_str(value) for key, value in draft.model_dump().items()}

        rules = FieldRules()
        rules.length("first_name", values["first_name"], "First name", 50, required=True)
        rules.length("last_name", values["last_name"], "Last name", 50, required=True)
        if rules.required("email", values["email"], "Email"):
            rules.email("email", values["email"], "Email")
        rules.length("phone", values["phone"], "Phone", 20)
        if values["email"] and not rules.has_error("email"):
            taken = db.query(User.id).filter(
                func.lower(User.email) == values["email"].lower(), User.id != user.id
            ).first()
            if taken:
                rules.add("email", "Email already in use")
        rules.raise_if_any()

        old_values = snapshot(user, USER_AUDIT_EXCLUDE)
        for key, value in values.items():
            setattr(user, key, value)
        user.updated_by = principal.user_id
        user.updated_date = utcnow()
        db.commit()
        db.refresh(user)

        AuditService.record(
            db, principal, "Users", user.id, AuditAction.UPDATE,
            old_values=old_values, new_values=snapshot(user, USER_AUDIT_EXCLUDE)
        )
        logger.info(f"Profile of user {user.username} updated")
        return user

    @staticmethod
    def change_password(db: Session, principal: Principal, current_password: str, new_password: str) -> None:
        """
        Replace the caller's password after checking the current one.

        Raises:
            ValidationError: current password wrong or new password too weak
        """
        user = AuthService._own_user(db, principal)

        rules = FieldRules()
        if not current_password or not verify_password(current_password, user.hashed_password):
            rules.add("current_password", "Current password is incorrect")
        is_valid, error_message = validate_password(new_password)
        if not is_valid:
            rules.add("new_password", error_message)
        elif new_password == current_password:
            rules.add("new_password", "New password must differ from the current password")
        if rules.errors:
            logger.warning(f"Password change refused for user {user.username}")
        rules.raise_if_any()

        old_values = snapshot(user, USER_AUDIT_EXCLUDE)
        user.hashed_password = get_password_hash(new_password)
        user.updated_by = principal.user_id
        user.updated_date = utcnow()
        db.commit()
        db.refresh(user)

        AuditService.record(
            db, principal, "Users", user.id, AuditAction.UPDATE,
            old_values=old_values, new_values=snapshot(user, USER_AUDIT_EXCLUDE)
        )
        logger.info(f"Password changed for user {user.username}")
