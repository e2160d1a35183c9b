"""
Tenant-scoped repository shared by the company, site, grade, book, teacher
and student services.

Every operation takes the caller's Principal. Reads are filtered to the
caller's tenant scope; writes validate the whole draft, re-check scope and
references, enforce code uniqueness, stamp who/when, commit once and then
append an audit row.
"""
import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, Query

from auth.principal import Principal
from database.models import AuditAction
from services.audit_service import AuditService, snapshot
from services.errors import AccessDenied, DuplicateCode, NotFound
from services.tenant_scope import TenantScope, allowed_company_ids
from services.validation import FieldRules, clean_str
from core.clock import utcnow
from core.logger import logger
import config


class DeleteMode(str, enum.Enum):
    HARD = "hard"
    SOFT = "soft"


@dataclass(frozen=True)
class DeleteResult:
    mode: DeleteMode

    @property
    def soft(self) -> bool:
        return self.mode == DeleteMode.SOFT


def paginate(query: Query, page: int, limit: int) -> Query:
    """Apply page/limit, clamping page to >= 1 and limit to 1..MAX_PAGE_SIZE."""
    page = max(page or 1, 1)
    limit = min(max(limit or config.DEFAULT_PAGE_SIZE, 1), config.MAX_PAGE_SIZE)
    return query.offset((page - 1) * limit).limit(limit)


class EntityRepository:
    """
    Base class; subclasses set the model and override the hooks below.

    Hooks:
        normalize            trim strings, uppercase the code
        check_fields         field rules
        check_references     referenced rows exist and are in scope; ids left
                             empty by the draft are skipped
        check_conflicts      uniqueness, raises domain errors
        delete_mode          HARD or SOFT, or raise Blocked
    """
    model = None
    entity_name = "Record"
    table_name = ""
    code_unique_per_company = True
    search_columns: Tuple = ()

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self.clock = clock

    # ------------------------------------------------------------------
    # Scope helpers
    # ------------------------------------------------------------------

    @property
    def scope_column(self):
        return self.model.company_id

    def scope_key(self, entity) -> Optional[int]:
        return entity.company_id

    def order_by(self) -> List:
        return [self.model.code]

    def assert_writable(self, principal: Principal, scope: TenantScope,
                        values: Dict[str, Any], existing=None):
        """The draft's target company must be inside the caller's scope."""
        if not scope.contains(values.get("company_id")):
            logger.warning(
                f"{self.entity_name} write outside scope refused for user {principal.user_id} "
                f"(company {values.get('company_id')})"
            )
            raise AccessDenied(self.entity_name, existing.id if existing is not None else None)

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def normalize(self, values: Dict[str, Any]) -> Dict[str, Any]:
        for key, value in list(values.items()):
            if isinstance(value, str):
                values[key] = clean_str(value)
        if values.get("code"):
            values["code"] = values["code"].upper()
        return values

    def check_fields(self, values: Dict[str, Any], rules: FieldRules):
        pass

    def check_references(self, db: Session, scope: TenantScope,
                         values: Dict[str, Any], rules: FieldRules, existing=None):
        pass

    def check_conflicts(self, db: Session, values: Dict[str, Any], exclude_id: Optional[int] = None):
        """Raise DuplicateCode when the code is taken in its uniqueness scope."""
        query = db.query(self.model.id).filter(func.upper(self.model.code) == values["code"])
        if self.code_unique_per_company:
            query = query.filter(self.model.company_id == values["company_id"])
        if exclude_id is not None:
            query = query.filter(self.model.id != exclude_id)
        if query.first() is not None:
            raise DuplicateCode(self.entity_name, values["code"])

    def delete_mode(self, db: Session, entity) -> DeleteMode:
        return DeleteMode.HARD

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def scoped_query(self, db: Session, principal: Principal, search: Optional[str] = None,
                     active_only: bool = False) -> Query:
        scope = allowed_company_ids(db, principal)
        query = scope.filter(db.query(self.model), self.scope_column)
        if active_only:
            query = query.filter(self.model.is_active.is_(True))
        search = clean_str(search)
        if search and self.search_columns:
            pattern = f"%{search}%"
            query = query.filter(or_(*(column.ilike(pattern) for column in self.search_columns)))
        return query

    def list(self, db: Session, principal: Principal, search: Optional[str] = None,
             active_only: bool = False) -> List:
        """All visible rows, ordered."""
        return self.scoped_query(db, principal, search, active_only).order_by(*self.order_by()).all()

    def list_page(self, db: Session, principal: Principal, page: int = 1,
                  limit: int = 20, search: Optional[str] = None,
                  active_only: bool = False) -> Tuple[List, int]:
        """One page of visible rows plus the total count."""
        query = self.scoped_query(db, principal, search, active_only)
        total = query.count()
        rows = paginate(query.order_by(*self.order_by()), page, limit).all()
        return rows, total

    def get_by_id(self, db: Session, principal: Principal, entity_id: int):
        """
        Fetch one row.

        Raises:
            NotFound: no such row
            AccessDenied: row exists but is outside the caller's scope
        """
        entity = db.get(self.model, entity_id)
        if entity is None:
            raise NotFound(self.entity_name, entity_id)
        scope = allowed_company_ids(db, principal)
        if not scope.contains(self.scope_key(entity)):
            logger.warning(
                f"{self.entity_name} #{entity_id} read outside scope refused for user {principal.user_id}"
            )
            raise AccessDenied(self.entity_name, entity_id)
        return entity

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _prepare(self, db: Session, principal: Principal, draft: BaseModel, existing=None) -> Dict[str, Any]:
        values = self.normalize(draft.model_dump())

        rules = FieldRules()
        self.check_fields(values, rules)

        scope = allowed_company_ids(db, principal)
        # A missing company is reported as a field violation, not as a scope refusal
        if not rules.has_error("company_id"):
            self.assert_writable(principal, scope, values, existing)

        self.check_references(db, scope, values, rules, existing)
        rules.raise_if_any()

        self.check_conflicts(db, values, existing.id if existing is not None else None)
        return values

    def _commit(self, db: Session, values: Dict[str, Any], exclude_id: Optional[int] = None):
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(f"{self.entity_name} write hit a unique constraint, re-checking conflicts")
            self.check_conflicts(db, values, exclude_id)
            raise

    def create(self, db: Session, principal: Principal, draft: BaseModel):
        """Validate, scope-check and insert a new row."""
        values = self._prepare(db, principal, draft)

        entity = self.model(**values)
        entity.created_by = principal.user_id
        entity.created_date = self.clock()
        db.add(entity)
        self._commit(db, values)
        db.refresh(entity)

        AuditService.record(
            db, principal, self.table_name, entity.id, AuditAction.INSERT,
            new_values=snapshot(entity), action_date=self.clock()
        )
        logger.info(f"{self.entity_name} {entity.code} created by user {principal.user_id}")
        return entity

    def update(self, db: Session, principal: Principal, entity_id: int, draft: BaseModel):
        """Replace the editable fields of an existing row."""
        entity = self.get_by_id(db, principal, entity_id)
        old_values = snapshot(entity)
        values = self._prepare(db, principal, draft, existing=entity)

        for key, value in values.items():
            setattr(entity, key, value)
        entity.updated_by = principal.user_id
        entity.updated_date = self.clock()
        self._commit(db, values, entity_id)
        db.refresh(entity)

        AuditService.record(
            db, principal, self.table_name, entity.id, AuditAction.UPDATE,
            old_values=old_values, new_values=snapshot(entity), action_date=self.clock()
        )
        logger.info(f"{self.entity_name} {entity.code} updated by user {principal.user_id}")
        return entity

    def set_active(self, db: Session, principal: Principal, entity_id: int, is_active: bool):
        """Flip the active flag without touching other fields."""
        entity = self.get_by_id(db, principal, entity_id)
        old_values = snapshot(entity)

        entity.is_active = is_active
        entity.updated_by = principal.user_id
        entity.updated_date = self.clock()
        db.commit()
        db.refresh(entity)

        AuditService.record(
            db, principal, self.table_name, entity.id, AuditAction.UPDATE,
            old_values=old_values, new_values=snapshot(entity), action_date=self.clock()
        )
        logger.info(
            f"{self.entity_name} {entity.code} {'activated' if is_active else 'deactivated'} "
            f"by user {principal.user_id}"
        )
        return entity

    def delete(self, db: Session, principal: Principal, entity_id: int) -> DeleteResult:
        """
        Remove or deactivate a row according to the type's delete policy.

        Raises:
            Blocked: dependent rows prevent the delete
        """
        entity = self.get_by_id(db, principal, entity_id)
        old_values = snapshot(entity)
        code = entity.code

        mode = self.delete_mode(db, entity)
        if mode == DeleteMode.HARD:
            db.delete(entity)
        else:
            entity.is_active = False
            entity.updated_by = principal.user_id
            entity.updated_date = self.clock()
        db.commit()

        AuditService.record(
            db, principal, self.table_name, entity_id, AuditAction.DELETE,
            old_values=old_values, action_date=self.clock()
        )
        logger.info(f"{self.entity_name} {code} deleted ({mode.value}) by user {principal.user_id}")
        return DeleteResult(mode)
