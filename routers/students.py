"""
Student Management APIs.
"""
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional, List

from auth.dependencies import get_db_session, require_principal, require_site_admin
from auth.principal import Principal
from database.models import Student
from schemas.drafts import StudentDraft
from services.student_service import student_service, StudentView
import config


router = APIRouter(prefix="/api/students", tags=["students"])


class StudentListResponse(BaseModel):
    """Student list response."""
    data: List[dict]
    total: int
    page: int
    limit: int


def _student_to_dict(student: Student) -> dict:
    return {
        "id": student.id,
        "companyId": student.company_id,
        "siteId": student.site_id,
        "code": student.code,
        "firstName": student.first_name,
        "lastName": student.last_name,
        "fullName": student.full_name,
        "dateOfBirth": student.date_of_birth.isoformat() if student.date_of_birth else None,
        "gender": student.gender,
        "phone": student.phone,
        "email": student.email,
        "address": student.address,
        "city": student.city,
        "parentName": student.parent_name,
        "parentPhone": student.parent_phone,
        "parentEmail": student.parent_email,
        "registrationDate": student.registration_date.isoformat() if student.registration_date else None,
        "status": student.status.value if hasattr(student.status, "value") else student.status,
        "currentGradeId": student.current_grade_id,
        "assignedTeacherId": student.assigned_teacher_id,
        "notes": student.notes,
        "isActive": student.is_active,
        "createdDate": student.created_date.isoformat() if student.created_date else None,
        "updatedDate": student.updated_date.isoformat() if student.updated_date else None,
    }


def _view_to_dict(view: StudentView) -> dict:
    data = _student_to_dict(view.student)
    data.update({
        "siteName": view.site_name,
        "gradeName": view.grade_name,
        "teacherCode": view.teacher_code,
        "teacherName": view.teacher_name,
    })
    return data


@router.get("", response_model=StudentListResponse)
async def list_students(
    search: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db_session)
):
    """List students with site, grade and teacher, by code."""
    views, total = student_service.list_with_refs(db, principal, search, status_filter, page, limit)
    return StudentListResponse(
        data=[_view_to_dict(v) for v in views],
        total=total,
        page=page,
        limit=limit
    )


@router.get("/{student_id}")
async def get_student(
    student_id: int,
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db_session)
):
    """Get student by ID."""
    student = student_service.get_by_id(db, principal, student_id)
    return {"success": True, "data": _student_to_dict(student)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_student(
    draft: StudentDraft,
    principal: Principal = Depends(require_site_admin),
    db: Session = Depends(get_db_session)
):
    """Register student."""
    student = student_service.create(db, principal, draft)
    return {"success": True, "message": "Student created successfully", "data": _student_to_dict(student)}


@router.put("/{student_id}")
async def update_student(
    student_id: int,
    draft: StudentDraft,
    principal: Principal = Depends(require_site_admin),
    db: Session = Depends(get_db_session)
):
    """Update student."""
    student = student_service.update(db, principal, student_id, draft)
    return {"success": True, "message": "Student updated successfully", "data": _student_to_dict(student)}


@router.delete("/{student_id}")
async def delete_student(
    student_id: int,
    principal: Principal = Depends(require_site_admin),
    db: Session = Depends(get_db_session)
):
    """Deactivate student. History is kept."""
    result = student_service.delete(db, principal, student_id)
    return {"success": True, "message": "Student deactivated successfully", "mode": result.mode.value}
