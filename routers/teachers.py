"""
Teacher Management APIs.
"""
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional, List

from auth.dependencies import get_db_session, require_principal, require_site_admin
from auth.principal import Principal
from database.models import Teacher
from schemas.drafts import TeacherDraft
from services.teacher_service import teacher_service, TeacherView
import config


router = APIRouter(prefix="/api/teachers", tags=["teachers"])


class TeacherListResponse(BaseModel):
    """Teacher list response."""
    data: List[dict]
    total: int
    page: int
    limit: int


def _teacher_to_dict(teacher: Teacher) -> dict:
    return {
        "id": teacher.id,
        "userId": teacher.user_id,
        "companyId": teacher.company_id,
        "siteId": teacher.site_id,
        "code": teacher.code,
        "specialization": teacher.specialization,
        "experienceYears": teacher.experience_years,
        "hourlyRate": float(teacher.hourly_rate) if teacher.hourly_rate is not None else None,
        "maxStudentsPerDay": teacher.max_students_per_day,
        "isAvailableForTrial": teacher.is_available_for_trial,
        "isActive": teacher.is_active,
        "createdDate": teacher.created_date.isoformat() if teacher.created_date else None,
        "updatedDate": teacher.updated_date.isoformat() if teacher.updated_date else None,
    }


def _view_to_dict(view: TeacherView) -> dict:
    data = _teacher_to_dict(view.teacher)
    data.update({
        "fullName": view.full_name,
        "email": view.email,
        "siteName": view.site_name,
    })
    return data


@router.get("", response_model=TeacherListResponse)
async def list_teachers(
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db_session)
):
    """List teachers with their user name and site, by code."""
    views, total = teacher_service.list_with_user(db, principal, search, page, limit)
    return TeacherListResponse(
        data=[_view_to_dict(v) for v in views],
        total=total,
        page=page,
        limit=limit
    )


@router.get("/available-users")
async def available_users(
    teacher_id: Optional[int] = Query(None, alias="teacherId"),
    principal: Principal = Depends(require_site_admin),
    db: Session = Depends(get_db_session)
):
    """Active users that can still be bound to a teacher profile."""
    users = teacher_service.available_users(db, principal, teacher_id)
    return {
        "data": [
            {"id": u.id, "fullName": u.full_name, "email": u.email, "companyId": u.company_id}
            for u in users
        ]
    }


@router.get("/{teacher_id}")
async def get_teacher(
    teacher_id: int,
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db_session)
):
    """Get teacher by ID."""
    teacher = teacher_service.get_by_id(db, principal, teacher_id)
    return {"success": True, "data": _teacher_to_dict(teacher)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_teacher(
    draft: TeacherDraft,
    principal: Principal = Depends(require_site_admin),
    db: Session = Depends(get_db_session)
):
    """Create teacher profile for an existing user."""
    teacher = teacher_service.create(db, principal, draft)
    return {"success": True, "message": "Teacher created successfully", "data": _teacher_to_dict(teacher)}


@router.put("/{teacher_id}")
async def update_teacher(
    teacher_id: int,
    draft: TeacherDraft,
    principal: Principal = Depends(require_site_admin),
    db: Session = Depends(get_db_session)
):
    """Update teacher."""
    teacher = teacher_service.update(db, principal, teacher_id, draft)
    return {"success": True, "message": "Teacher updated successfully", "data": _teacher_to_dict(teacher)}


@router.delete("/{teacher_id}")
async def delete_teacher(
    teacher_id: int,
    principal: Principal = Depends(require_site_admin),
    db: Session = Depends(get_db_session)
):
    """
    Deactivate teacher.
    Refused while upcoming classes or active students are assigned.
    """
    result = teacher_service.delete(db, principal, teacher_id)
    return {"success": True, "message": "Teacher deactivated successfully", "mode": result.mode.value}
