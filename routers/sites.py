"""
Site Management APIs.
"""
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional, List

from auth.dependencies import get_db_session, require_principal, require_site_admin
from auth.principal import Principal
from database.models import Site
from schemas.drafts import SiteDraft
from services.company_service import company_service
from services.site_service import site_service
import config


router = APIRouter(prefix="/api/sites", tags=["sites"])


class SiteListResponse(BaseModel):
    """Site list response."""
    data: List[dict]
    total: int
    page: int
    limit: int


def _site_to_dict(site: Site, company_name: Optional[str] = None) -> dict:
    return {
        "id": site.id,
        "companyId": site.company_id,
        "companyName": company_name,
        "code": site.code,
        "name": site.name,
        "address": site.address,
        "city": site.city,
        "province": site.province,
        "phone": site.phone,
        "email": site.email,
        "managerName": site.manager_name,
        "isActive": site.is_active,
        "createdDate": site.created_date.isoformat() if site.created_date else None,
        "updatedDate": site.updated_date.isoformat() if site.updated_date else None,
    }


@router.get("", response_model=SiteListResponse)
async def list_sites(
    search: Optional[str] = Query(None),
    active_only: bool = Query(False, alias="activeOnly"),
    page: int = Query(1, ge=1),
    limit: int = Query(config.DEFAULT_PAGE_SIZE, ge=1, le=config.MAX_PAGE_SIZE),
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db_session)
):
    """List sites of the caller's companies, by name."""
    sites, total = site_service.list_page(db, principal, page, limit, search, active_only)
    names = company_service.names_for(db, (s.company_id for s in sites))
    return SiteListResponse(
        data=[_site_to_dict(s, names.get(s.company_id)) for s in sites],
        total=total,
        page=page,
        limit=limit
    )


@router.get("/by-company/{company_id}")
async def list_sites_by_company(
    company_id: int,
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db_session)
):
    """Active sites of one company (for pickers)."""
    sites = site_service.list_by_company(db, principal, company_id)
    return {"data": [{"id": s.id, "code": s.code, "name": s.name} for s in sites]}


@router.get("/{site_id}")
async def get_site(
    site_id: int,
    principal: Principal = Depends(require_principal),
    db: Session = Depends(get_db_session)
):
    """Get site by ID."""
    site = site_service.get_by_id(db, principal, site_id)
    names = company_service.names_for(db, [site.company_id])
    return {"success": True, "data": _site_to_dict(site, names.get(site.company_id))}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_site(
    draft: SiteDraft,
    principal: Principal = Depends(require_site_admin),
    db: Session = Depends(get_db_session)
):
    """Create site."""
    site = site_service.create(db, principal, draft)
    return {"success": True, "message": "Site created successfully", "data": _site_to_dict(site)}


@router.put("/{site_id}")
async def update_site(
    site_id: int,
    draft: SiteDraft,
    principal: Principal = Depends(require_site_admin),
    db: Session = Depends(get_db_session)
):
    """Update site."""
    site = site_service.update(db, principal, site_id, draft)
    return {"success": True, "message": "Site updated successfully", "data": _site_to_dict(site)}


@router.delete("/{site_id}")
async def delete_site(
    site_id: int,
    principal: Principal = Depends(require_site_admin),
    db: Session = Depends(get_db_session)
):
    """
    Delete site.
    Refused while users, students, teachers or stock still reference it.
    """
    result = site_service.delete(db, principal, site_id)
    return {"success": True, "message": "Site deleted successfully", "mode": result.mode.value}
