"""
Company Management APIs.
"""
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional, List

from auth.dependencies import get_db_session, require_principal, require_company_admin
from auth.principal import Principal
from database.models import Company
from schemas.drafts import CompanyDraft
from services.company_service import company_service
import config


router = APIRouter(prefix="/api/companies", tags=["companies"])


class CompanyListResponse(BaseModel):
    """Company list response."""
    data: List[dict]
    total: int
    page: int
    limit: int


def _company_to_dict(company: Company, parent_name: Optional[str] = None) -> dict:
    return {
        "id": company.id,
        "parentCompanyId": company.parent_company_id,
        "parentCompanyName": parent_name,
        "code": company.code,
        "name": company.name,
        "address": company.address,
        "city": company.city,
        "province": company.province,
        "phone": company.phone,
        "email": company.email,
        "isHeadOffice": company.is_head_office,
        "isActive": company.is_active,
        "createdDate": company.created_date.isoformat() if company.created_date else None,
        "createdBy": company.created_by,
        "updatedDate": company.updated_date.isoformat() if company.updated_date else None,
        "updatedBy": company.updated_by,
    }


@router.get("", response_model=CompanyListResponse)
async def list_companies(
    search: Optional[str] = Query(None),
    active_only: bool = Query(False, alias="activeOnly"),
    page: int = Query(1, ge=1),
    limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db_session)
):
    """
    List companies.
    SuperAdmin: all companies. Others: own company and its direct children.
    """
    companies, total = company_service.list_page(db, principal, page, limit, search, active_only)
    parents = company_service.names_for(db, (c.parent_company_id for c in companies))
    return CompanyListResponse(
        data=[_company_to_dict(c, parents.get(c.parent_company_id)) for c in companies],
        total=total,
        page=page,
        limit=limit
    )


@router.get("/parent-options")
async def parent_options(
    exclude_id: Optional[int] = Query(None, alias="excludeId"),
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db_session)
):
    """Active companies selectable as a parent."""
    companies = company_service.parent_options(db, principal, exclude_id)
    return {"data": [{"id": c.id, "code": c.code, "name": c.name} for c in companies]}


@router.get("/{company_id}")
async def get_company(
    company_id: int,
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db_session)
):
    """Get company by ID."""
    company = company_service.get_by_id(db, principal, company_id)
    parents = company_service.names_for(db, [company.parent_company_id])
    return {"success": True, "data": _company_to_dict(company, parents.get(company.parent_company_id))}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_company(
    draft: CompanyDraft,
    principal: Principal = Depends(require_company_admin),
    db: Session = Depends(get_db_session)
):
    """
    Create company.
    SuperAdmin and Admin (child companies of their own only).
    """
    company = company_service.create(db, principal, draft)
    return {
        "success": True,
        "message": "Company created successfully",
        "data": _company_to_dict(company)
    }


@router.put("/{company_id}")
async def update_company(
    company_id: int,
    draft: CompanyDraft,
    principal: Principal = Depends(require_company_admin),
    db: Session = Depends(get_db_session)
):
    """Update company."""
    company = company_service.update(db, principal, company_id, draft)
    return {
        "success": True,
        "message": "Company updated successfully",
        "data": _company_to_dict(company)
    }


@router.delete("/{company_id}")
async def delete_company(
    company_id: int,
    principal: Principal = Depends(require_company_admin),
    db: Session = Depends(get_db_session)
):
    """
    Deactivate company.
    Refused while it still has active child companies, sites or users.
    """
    result = company_service.delete(db, principal, company_id)
    return {
        "success": True,
        "message": "Company deactivated successfully",
        "mode": result.mode.value
    }
