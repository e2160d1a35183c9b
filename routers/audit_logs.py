"""
Audit Trail APIs (SuperAdmin and Admin).
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import Optional, List

from auth.dependencies import get_db_session, require_company_admin
from auth.principal import Principal
from database.models import AuditLog
from services.audit_service import AuditService
import config


router = APIRouter(prefix="/api/audit-logs", tags=["audit-logs"])


class AuditLogListResponse(BaseModel):
    """Audit log list response."""
    data: List[dict]
    total: int
    page: int
    limit: int


def _audit_to_dict(log: AuditLog) -> dict:
    return {
        "id": log.id,
        "companyId": log.company_id,
        "userId": log.user_id,
        "tableName": log.table_name,
        "recordId": log.record_id,
        "action": log.action.value if hasattr(log.action, "value") else log.action,
        "oldValues": log.old_values,
        "newValues": log.new_values,
        "ip": log.ip_address,
        "userAgent": log.user_agent,
        "actionDate": log.action_date.isoformat(),
    }


@router.get("", response_model=AuditLogListResponse)
async def list_audit_logs(
    days: Optional[int] = Query(None, ge=1, le=3650),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=config.MAX_PAGE_SIZE),
    principal: Principal = Depends(require_company_admin),
    db: Session = Depends(get_db_session)
):
    """
    Recent audit rows of the caller's companies, newest first.
    Defaults to the last AUDIT_DEFAULT_DAYS days.
    """
    logs, total = AuditService.recent_logs(db, principal, days, page, limit)
    return AuditLogListResponse(
        data=[_audit_to_dict(log) for log in logs],
        total=total,
        page=page,
        limit=limit
    )


@router.get("/{table_name}/{record_id}")
async def entity_history(
    table_name: str,
    record_id: int,
    principal: Principal = Depends(require_company_admin),
    db: Session = Depends(get_db_session)
):
    """Full change history of one record, newest first."""
    logs = AuditService.entity_history(db, principal, table_name, record_id)
    return {"data": [_audit_to_dict(log) for log in logs]}
