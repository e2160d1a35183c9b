"""
Request bodies for creating and editing entities.

Drafts carry types only; length, range and reference rules are checked by
the services so that every violation is reported together. JSON accepts
camelCase (as the front end sends it) or snake_case keys.
"""
from datetime import date
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Draft(BaseModel):
    """Base for all drafts."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CompanyDraft(Draft):
    """Create/edit company."""
    parent_company_id: Optional[int] = None
    code: str = ""
    name: str = ""
    address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    is_head_office: bool = False
    is_active: bool = True


class SiteDraft(Draft):
    """Create/edit site."""
    company_id: Optional[int] = None
    code: str = ""
    name: str = ""
    address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    manager_name: Optional[str] = None
    is_active: bool = True


class GradeDraft(Draft):
    """Create/edit grade."""
    company_id: Optional[int] = None
    code: str = ""
    name: str = ""
    description: Optional[str] = None
    duration: Optional[int] = None
    sort_order: Optional[int] = None
    is_active: bool = True


class BookDraft(Draft):
    """Create/edit book."""
    company_id: Optional[int] = None
    code: str = ""
    title: str = ""
    author: Optional[str] = None
    publisher: Optional[str] = None
    isbn: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True


class TeacherDraft(Draft):
    """Create/edit teacher."""
    user_id: Optional[int] = None
    company_id: Optional[int] = None
    site_id: Optional[int] = None
    code: str = ""
    specialization: Optional[str] = None
    experience_years: Optional[int] = None
    hourly_rate: Optional[Decimal] = None
    max_students_per_day: int = 8
    is_available_for_trial: bool = True
    is_active: bool = True


class StudentDraft(Draft):
    """Create/edit student."""
    company_id: Optional[int] = None
    site_id: Optional[int] = None
    code: str = ""
    first_name: str = ""
    last_name: str = ""
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    parent_name: str = ""
    parent_phone: Optional[str] = None
    parent_email: Optional[str] = None
    registration_date: Optional[date] = None
    status: str = "Pending"
    current_grade_id: Optional[int] = None
    assigned_teacher_id: Optional[int] = None
    notes: Optional[str] = None
    is_active: bool = True


class ProfileDraft(Draft):
    """Edit own profile."""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: Optional[str] = None


class PasswordChangeDraft(Draft):
    """Change own password."""
    current_password: str = ""
    new_password: str = ""
