"""
Site (branch) management.
"""
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from auth.principal import Principal
from database.models import (
    Company, Site, User, Student, Teacher, Inventory, ClassSchedule, Registration
)
from services.errors import AccessDenied, Blocked
from services.repository import EntityRepository, DeleteMode
from services.tenant_scope import TenantScope, allowed_company_ids
from services.validation import FieldRules
from core.logger import logger


class SiteService(EntityRepository):
    model = Site
    entity_name = "Site"
    table_name = "Sites"
    search_columns = (Site.code, Site.name, Site.city, Site.manager_name)

    def order_by(self) -> List:
        return [Site.name]

    def check_fields(self, values: Dict[str, Any], rules: FieldRules):
        rules.required("company_id", values.get("company_id"), "Company")
        rules.length("code", values.get("code"), "Site code", 10, 2, required=True)
        rules.length("name", values.get("name"), "Site name", 100, required=True)
        rules.length("address", values.get("address"), "Address", 500)
        rules.length("city", values.get("city"), "City", 50)
        rules.length("province", values.get("province"), "Province", 50)
        rules.length("phone", values.get("phone"), "Phone", 20)
        rules.email("email", values.get("email"), "Email")
        rules.length("manager_name", values.get("manager_name"), "Manager name", 100)

    def check_references(self, db: Session, scope: TenantScope,
                         values: Dict[str, Any], rules: FieldRules, existing=None):
        company_id = values.get("company_id")
        if company_id is not None and db.get(Company, company_id) is None:
            rules.add("company_id", "Company not found")

    def delete_mode(self, db: Session, entity: Site) -> DeleteMode:
        reasons = []
        for label, model in (
            ("user(s)", User),
            ("student(s)", Student),
            ("teacher(s)", Teacher),
            ("inventory record(s)", Inventory),
            ("class schedule(s)", ClassSchedule),
            ("registration(s)", Registration),
        ):
            count = db.query(model).filter(model.site_id == entity.id).count()
            if count:
                reasons.append(f"{count} {label}")
        if reasons:
            logger.warning(f"Delete of site {entity.code} blocked: {', '.join(reasons)}")
            raise Blocked(self.entity_name, reasons)
        return DeleteMode.HARD

    def list_by_company(self, db: Session, principal: Principal, company_id: int) -> List[Site]:
        """Active sites of one company, for pickers."""
        scope = allowed_company_ids(db, principal)
        if not scope.contains(company_id):
            raise AccessDenied("Company", company_id)
        return (
            db.query(Site)
            .filter(Site.company_id == company_id, Site.is_active.is_(True))
            .order_by(Site.name)
            .all()
        )


site_service = SiteService()
