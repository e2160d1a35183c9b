"""
Company (tenant) management.
"""
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from auth.principal import Principal
from database.models import Company, Site, User
from services.errors import AccessDenied, Blocked, FieldError, ValidationError
from services.repository import EntityRepository, DeleteMode
from services.tenant_scope import TenantScope
from services.validation import FieldRules
from core.logger import logger


class CompanyService(EntityRepository):
    model = Company
    entity_name = "Company"
    table_name = "Companies"
    code_unique_per_company = False  # company codes are global
    search_columns = (Company.code, Company.name, Company.city)

    @property
    def scope_column(self):
        return Company.id

    def scope_key(self, entity) -> Optional[int]:
        return entity.id

    def order_by(self) -> List:
        return [Company.name]

    def assert_writable(self, principal: Principal, scope: TenantScope,
                        values: Dict[str, Any], existing=None):
        """
        Non-SuperAdmins may only create companies directly under their own,
        may not move a company out of their scope, and may edit their own
        company only while keeping its parent.
        """
        if principal.is_super_admin:
            return
        if existing is not None and existing.id == principal.company_id:
            if values.get("parent_company_id") != existing.parent_company_id:
                logger.warning(
                    f"Parent change of own company {existing.code} refused for user {principal.user_id}"
                )
                raise ValidationError([
                    FieldError("parent_company_id", "The parent of your own company cannot be changed")
                ])
            return
        if values.get("parent_company_id") != principal.company_id:
            logger.warning(
                f"Company write with parent {values.get('parent_company_id')} refused "
                f"for user {principal.user_id}"
            )
            raise AccessDenied(self.entity_name, existing.id if existing is not None else None)

    def check_fields(self, values: Dict[str, Any], rules: FieldRules):
        rules.length("code", values.get("code"), "Company code", 10, 2, required=True)
        rules.length("name", values.get("name"), "Company name", 100, required=True)
        rules.length("address", values.get("address"), "Address", 500)
        rules.length("city", values.get("city"), "City", 50)
        rules.length("province", values.get("province"), "Province", 50)
        rules.length("phone", values.get("phone"), "Phone", 20)
        rules.email("email", values.get("email"), "Email")

    def check_references(self, db: Session, scope: TenantScope,
                         values: Dict[str, Any], rules: FieldRules, existing=None):
        parent_id = values.get("parent_company_id")
        if parent_id is None:
            return
        if existing is not None:
            if parent_id == existing.id:
                rules.add("parent_company_id", "A company cannot be its own parent")
                return
            # An unchanged parent was valid when it was set
            if parent_id == existing.parent_company_id:
                return
        parent = db.get(Company, parent_id)
        if parent is None or not scope.contains(parent.id):
            rules.add("parent_company_id", "Parent company not found")
        elif existing is not None and self.is_descendant(db, parent.id, existing.id):
            rules.add("parent_company_id", "A company cannot be moved under one of its own children")

    def is_descendant(self, db: Session, company_id: int, ancestor_id: int) -> bool:
        """True when ancestor_id appears on company_id's parent chain."""
        seen = set()
        current = db.query(Company.parent_company_id).filter(Company.id == company_id).scalar()
        while current is not None and current not in seen:
            if current == ancestor_id:
                return True
            seen.add(current)
            current = db.query(Company.parent_company_id).filter(Company.id == current).scalar()
        return False

    def delete_mode(self, db: Session, entity: Company) -> DeleteMode:
        reasons = []
        children = db.query(Company).filter(
            Company.parent_company_id == entity.id, Company.is_active.is_(True)
        ).count()
        if children:
            reasons.append(f"{children} active child compan{'y' if children == 1 else 'ies'}")
        sites = db.query(Site).filter(Site.company_id == entity.id, Site.is_active.is_(True)).count()
        if sites:
            reasons.append(f"{sites} active site(s)")
        users = db.query(User).filter(User.company_id == entity.id, User.is_active.is_(True)).count()
        if users:
            reasons.append(f"{users} active user(s)")
        if reasons:
            logger.warning(f"Delete of company {entity.code} blocked: {', '.join(reasons)}")
            raise Blocked(self.entity_name, reasons)
        return DeleteMode.SOFT

    def parent_options(self, db: Session, principal: Principal,
                       exclude_id: Optional[int] = None) -> List[Company]:
        """Active companies the caller may pick as a parent."""
        query = self.scoped_query(db, principal, active_only=True)
        if exclude_id is not None:
            query = query.filter(Company.id != exclude_id)
        return query.order_by(Company.name).all()

    def names_for(self, db: Session, company_ids) -> Dict[int, str]:
        """Map of id -> name for display columns."""
        ids = {cid for cid in company_ids if cid is not None}
        if not ids:
            return {}
        return dict(db.query(Company.id, Company.name).filter(Company.id.in_(ids)).all())


company_service = CompanyService()
