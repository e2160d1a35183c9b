"""
Grade Management APIs.
"""
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional, List

from auth.dependencies import get_db_session, require_principal, require_site_admin
from auth.principal import Principal
from database.models import Grade
from schemas.drafts import GradeDraft
from services.company_service import company_service
from services.grade_service import grade_service
import config


router = APIRouter(prefix="/api/grades", tags=["grades"])


class GradeListResponse(BaseModel):
    """Grade list response."""
    data: List[dict]
    total: int
    page: int
    limit: int


def _grade_to_dict(grade: Grade, company_name: Optional[str] = None) -> dict:
    return {
        "id": grade.id,
        "companyId": grade.company_id,
        "companyName": company_name,
        "code": grade.code,
        "name": grade.name,
        "description": grade.description,
        "duration": grade.duration,
        "sortOrder": grade.sort_order,
        "isActive": grade.is_active,
        "createdDate": grade.created_date.isoformat() if grade.created_date else None,
        "updatedDate": grade.updated_date.isoformat() if grade.updated_date else None,
    }


@router.get("", response_model=GradeListResponse)
async def list_grades(
    search: Optional[str] = Query(None),
    active_only: bool = Query(False, alias="activeOnly"),
    page: int = Query(1, ge=1),
    limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db_session)
):
    """List grades by sort order, then name."""
    grades, total = grade_service.list_page(db, principal, page, limit, search, active_only)
    names = company_service.names_for(db, (g.company_id for g in grades))
    return GradeListResponse(
        data=[_grade_to_dict(g, names.get(g.company_id)) for g in grades],
        total=total,
        page=page,
        limit=limit
    )


@router.get("/{grade_id}")
async def get_grade(
    grade_id: int,
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db_session)
):
    """Get grade by ID."""
    grade = grade_service.get_by_id(db, principal, grade_id)
    names = company_service.names_for(db, [grade.company_id])
    return {"success": True, "data": _grade_to_dict(grade, names.get(grade.company_id))}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_grade(
    draft: GradeDraft,
    principal: Principal = Depends(require_site_admin),
    db: Session = Depends(get_db_session)
):
    """Create grade."""
    grade = grade_service.create(db, principal, draft)
    return {"success": True, "message": "Grade created successfully", "data": _grade_to_dict(grade)}


@router.put("/{grade_id}")
async def update_grade(
    grade_id: int,
    draft: GradeDraft,
    principal: Principal = Depends(require_site_admin),
    db: Session = Depends(get_db_session)
):
    """Update grade."""
    grade = grade_service.update(db, principal, grade_id, draft)
    return {"success": True, "message": "Grade updated successfully", "data": _grade_to_dict(grade)}


@router.delete("/{grade_id}")
async def delete_grade(
    grade_id: int,
    principal: Principal = Depends(require_site_admin),
    db: Session = Depends(get_db_session)
):
    """
    Delete grade.
    Refused while students or book assignments reference it.
    """
    result = grade_service.delete(db, principal, grade_id)
    return {"success": True, "message": "Grade deleted successfully", "mode": result.mode.value}
