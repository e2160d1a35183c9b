"""
Audit trail for entity mutations.

Rows are written after the primary change has committed, in their own
commit. A failed audit write is logged and never undoes or fails the
mutation it describes.
"""
from datetime import datetime, timedelta
from typing import Optional, Dict, Any, List, Tuple

from fastapi.encoders import jsonable_encoder
from sqlalchemy import inspect
from sqlalchemy.orm import Session

from auth.principal import Principal
from database.models import AuditLog, AuditAction
from services.tenant_scope import allowed_company_ids
from core.clock import utcnow
from core.logger import logger
import config


def snapshot(entity, exclude: Tuple[str, ...] = ()) -> Dict[str, Any]:
    """JSON-safe dict of an entity's column values, minus `exclude`."""
    mapper = inspect(entity).mapper
    values = {
        attr.key: getattr(entity, attr.key)
        for attr in mapper.column_attrs if attr.key not in exclude
    }
    return jsonable_encoder(values)


class AuditService:
    """Service for audit logging."""

    @staticmethod
    def record(
        db: Session,
        principal: Principal,
        table_name: str,
        record_id: int,
        action: AuditAction,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
        action_date: Optional[datetime] = None
    ) -> None:
        """
        Append one audit row. Never raises.

        Args:
            db: Database session (primary change already committed)
            principal: Caller who made the change
            table_name: Audited table, e.g. "Sites"
            record_id: Primary key of the changed row
            action: Insert, Update or Delete
            old_values: Snapshot before the change (Update, Delete)
            new_values: Snapshot after the change (Insert, Update)
            action_date: Timestamp, defaults to now
        """
        try:
            audit_log = AuditLog(
                company_id=principal.company_id,
                user_id=principal.user_id,
                table_name=table_name,
                record_id=record_id,
                action=action,
                old_values=old_values,
                new_values=new_values,
                ip_address=principal.ip_address,
                user_agent=(principal.user_agent or "")[:500] or None,
                action_date=action_date or utcnow()
            )
            db.add(audit_log)
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(
                f"Failed to log audit trail for {table_name} #{record_id} ({action.value}): {e}",
                exc_info=True
            )

    @staticmethod
    def recent_logs(
        db: Session,
        principal: Principal,
        days: Optional[int] = None,
        page: int = 1,
        limit: int = 50
    ) -> Tuple[List[AuditLog], int]:
        """
        Audit rows of the caller's tenant scope from the last `days` days, newest first.

        Returns:
            Tuple of (rows, total)
        """
        days = config.AUDIT_DEFAULT_DAYS if days is None else days
        since = utcnow() - timedelta(days=days)
        scope = allowed_company_ids(db, principal)

        query = scope.filter(db.query(AuditLog), AuditLog.company_id)
        query = query.filter(AuditLog.action_date >= since)
        total = query.count()

        page = max(page, 1)
        limit = min(max(limit, 1), config.MAX_PAGE_SIZE)
        rows = (
            query.order_by(AuditLog.action_date.desc(), AuditLog.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return rows, total

    @staticmethod
    def entity_history(
        db: Session,
        principal: Principal,
        table_name: str,
        record_id: int
    ) -> List[AuditLog]:
        """Every audit row for one record within the caller's scope, newest first."""
        scope = allowed_company_ids(db, principal)
        query = scope.filter(db.query(AuditLog), AuditLog.company_id)
        return (
            query.filter(AuditLog.table_name == table_name, AuditLog.record_id == record_id)
            .order_by(AuditLog.action_date.desc(), AuditLog.id.desc())
            .all()
        )
